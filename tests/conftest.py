from datetime import datetime, timedelta, timezone

import pytest

from core.services.clock import Clock
from core.use_cases.article_use_cases import create_article
from core.use_cases.ledger_use_cases import LedgerEngine
from core.use_cases.user_use_cases import create_user
from infrastructure.db.sqlite import build_sqlite_uow_factory, init_db


class FrozenClock(Clock):
    """Clock that only moves when a test tells it to."""

    def __init__(self, start=None):
        self.current = start or datetime(2025, 3, 1, 18, 30, tzinfo=timezone.utc)

    def now(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "ledger.db")
    init_db(path)
    return path


@pytest.fixture
def uow_factory(db_path):
    return build_sqlite_uow_factory(db_path, timeout=5.0)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def engine(uow_factory, clock):
    return LedgerEngine(uow_factory, clock=clock)


@pytest.fixture
def alice(uow_factory):
    return create_user(uow_factory, "Alice", card_number="12345")


@pytest.fixture
def bob(uow_factory):
    return create_user(uow_factory, "Bob")


@pytest.fixture
def coffee(uow_factory):
    return create_article(uow_factory, "Coffee", 150)


@pytest.fixture
def ledger_state(uow_factory):
    """Returns (cached balance, sum of non-undone transactions, all transactions) for a user."""
    def _state(user_id):
        with uow_factory(read_only=True) as uow:
            user = uow.users.get_by_id(user_id)
            computed = uow.transactions.sum_active(user_id)
            history = uow.transactions.list_for_user(user_id, limit=1000)
        return user.balance.cents, computed.cents, history
    return _state
