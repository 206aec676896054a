"""
Tests for the HTTP layer: routing, DTOs and error mapping.
"""

import pytest
from fastapi.testclient import TestClient

from config.settings import settings
from infrastructure.web.dependencies import get_clock
from main import app


@pytest.fixture
def client(db_path, clock, monkeypatch):
    monkeypatch.setattr(settings, "DB_PATH", db_path)
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(client, nickname, card_number=None):
    response = client.post("/users", json={"nickname": nickname, "card_number": card_number})
    assert response.status_code == 201
    return response.json()


class TestUsersApi:

    def test_register_and_fetch(self, client):
        user = make_user(client, "Alice", "12345")
        assert user["balance_cents"] == 0
        assert user["balance"] == "+0,00€"

        response = client.get(f"/users/{user['id']}")
        assert response.status_code == 200
        assert response.json()["nickname"] == "Alice"

    def test_list_users(self, client):
        make_user(client, "Alice")
        make_user(client, "Bob")
        assert [u["nickname"] for u in client.get("/users").json()] == ["Alice", "Bob"]

    def test_missing_user(self, client):
        response = client.get("/users/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "No such user exists!"

    def test_lookup_by_card(self, client):
        user = make_user(client, "Alice", "12345")
        assert client.get("/users/by-card/12345").json()["id"] == user["id"]
        response = client.get("/users/by-card/00000")
        assert response.status_code == 200
        assert response.json() is None

    def test_settings_conflict(self, client):
        make_user(client, "Alice", "12345")
        bob = make_user(client, "Bob")
        response = client.put(f"/users/{bob['id']}/settings", json={"nickname": "Bob", "card_number": "12345"})
        assert response.status_code == 409
        assert response.json()["detail"] == "The card number is already used!"

    def test_settings_clear_card(self, client):
        alice = make_user(client, "Alice", "12345")
        response = client.put(f"/users/{alice['id']}/settings", json={"nickname": "Ali", "card_number": ""})
        assert response.status_code == 200
        assert response.json()["card_number"] is None
        assert response.json()["nickname"] == "Ali"

    def test_settings_require_card_number(self, client):
        alice = make_user(client, "Alice", "12345")
        response = client.put(f"/users/{alice['id']}/settings", json={"nickname": "Ali"})
        assert response.status_code == 422

        user = client.get(f"/users/{alice['id']}").json()
        assert user["card_number"] == "12345"
        assert user["nickname"] == "Alice"

    def test_empty_nickname(self, client):
        response = client.post("/users", json={"nickname": " "})
        assert response.status_code == 400


class TestLedgerApi:

    def test_deposit_transfer_undo(self, client, clock):
        alice = make_user(client, "Alice")
        bob = make_user(client, "Bob")

        response = client.post(f"/users/{alice['id']}/deposit", json={"amount_cents": 1000})
        assert response.status_code == 200
        assert response.json()["balances_cents"][str(alice["id"])] == 1000

        response = client.post(
            f"/users/{alice['id']}/transfer", json={"receiver_id": bob["id"], "amount_cents": 400}
        )
        assert response.status_code == 200
        sent = response.json()["transactions"][0]
        assert sent["type"] == "transfer_sent"
        assert sent["amount"] == "-4,00€"

        clock.advance(seconds=20)
        response = client.post(f"/users/{alice['id']}/transactions/{sent['id']}/undo")
        assert response.status_code == 200
        assert response.json()["balances_cents"] == {str(alice["id"]): 1000, str(bob["id"]): 0}

        response = client.post(f"/users/{alice['id']}/transactions/{sent['id']}/undo")
        assert response.status_code == 409
        assert response.json()["detail"] == "The transaction has already been undone!"

    def test_expired_undo(self, client, clock):
        alice = make_user(client, "Alice")
        tx = client.post(f"/users/{alice['id']}/withdraw", json={"amount_cents": 300}).json()["transactions"][0]
        clock.advance(minutes=5)
        response = client.post(f"/users/{alice['id']}/transactions/{tx['id']}/undo")
        assert response.status_code == 409
        assert response.json()["detail"] == "The transaction can no longer be undone!"

    def test_invalid_amount(self, client):
        alice = make_user(client, "Alice")
        response = client.post(f"/users/{alice['id']}/deposit", json={"amount_cents": 0})
        assert response.status_code == 400
        assert response.json()["detail"] == "The amount must be a positive number!"

    def test_transfer_to_self(self, client):
        alice = make_user(client, "Alice")
        response = client.post(
            f"/users/{alice['id']}/transfer", json={"receiver_id": alice["id"], "amount_cents": 5}
        )
        assert response.status_code == 400

    def test_unknown_user(self, client):
        response = client.post("/users/77/withdraw", json={"amount_cents": 5})
        assert response.status_code == 404

    def test_purchase_and_history(self, client):
        alice = make_user(client, "Alice")
        article = client.post("/articles", json={"name": "Club Mate", "price_cents": 220}).json()
        assert article["price"] == "2,20€"

        response = client.post(f"/users/{alice['id']}/purchase", json={"article_id": article["id"], "quantity": 2})
        assert response.status_code == 200
        assert response.json()["balances_cents"][str(alice["id"])] == -440

        history = client.get(f"/users/{alice['id']}/transactions", params={"limit": 500}).json()
        assert len(history) == 1
        assert history[0]["type"] == "purchase"
        assert history[0]["quantity"] == 2

        assert client.get(f"/users/{alice['id']}").json()["balance"] == "-4,40€"

    def test_purchase_unknown_article(self, client):
        alice = make_user(client, "Alice")
        response = client.post(f"/users/{alice['id']}/purchase", json={"article_id": 5})
        assert response.status_code == 404
        assert response.json()["detail"] == "No such article exists!"

    def test_verify_balance(self, client):
        alice = make_user(client, "Alice")
        client.post(f"/users/{alice['id']}/deposit", json={"amount_cents": 50})
        body = client.get(f"/users/{alice['id']}/balance/verify").json()
        assert body == {"user_id": alice["id"], "cached_cents": 50, "computed_cents": 50, "consistent": True}


class TestArticlesApi:

    def test_change_price(self, client):
        article = client.post("/articles", json={"name": "Tea", "price_cents": 100}).json()
        response = client.put(f"/articles/{article['id']}/price", json={"price_cents": 120})
        assert response.status_code == 200
        assert client.get(f"/articles/{article['id']}").json()["price_cents"] == 120

    def test_negative_price(self, client):
        response = client.post("/articles", json={"name": "Tea", "price_cents": -1})
        assert response.status_code == 400

    def test_missing_article(self, client):
        assert client.get("/articles/9").status_code == 404
        assert client.put("/articles/9/price", json={"price_cents": 1}).status_code == 404
