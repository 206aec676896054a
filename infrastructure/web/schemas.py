from datetime import datetime
from typing import Optional, List, Dict

from pydantic import BaseModel

from config.settings import settings
from core.entities.article import Article
from core.entities.money import Money
from core.entities.transaction import Transaction
from core.entities.user import User


def format_money(money: Money) -> str:
    return money.format(settings.CURRENCY_SYMBOL, settings.DECIMAL_SEPARATOR)

def format_diff(money: Money) -> str:
    return money.format_signed_diff(settings.CURRENCY_SYMBOL, settings.DECIMAL_SEPARATOR)


class UserResponse(BaseModel):
    id: int
    nickname: str
    card_number: Optional[str] = None
    balance_cents: int
    balance: str
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            nickname=user.nickname,
            card_number=user.card_number,
            balance_cents=user.balance.cents,
            balance=format_diff(user.balance),
            created_at=user.created_at,
        )


class TransactionItem(BaseModel):
    id: int
    user_id: int
    type: str
    amount_cents: int
    amount: str
    counterparty_id: Optional[int] = None
    paired_id: Optional[int] = None
    reverses_id: Optional[int] = None
    quantity: Optional[int] = None
    undone: bool
    timestamp: datetime

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "TransactionItem":
        return cls(
            id=tx.id,
            user_id=tx.user_id,
            type=tx.t_type.value,
            amount_cents=tx.money.cents,
            amount=format_diff(tx.money),
            counterparty_id=tx.counterparty_id,
            paired_id=tx.paired_id,
            reverses_id=tx.reverses_id,
            quantity=tx.quantity,
            undone=tx.undone,
            timestamp=tx.timestamp,
        )


class OperationResponse(BaseModel):
    transactions: List[TransactionItem]
    balances_cents: Dict[int, int]


class ArticleResponse(BaseModel):
    id: int
    name: str
    price_cents: int
    price: str
    created_at: datetime

    @classmethod
    def from_article(cls, article: Article) -> "ArticleResponse":
        return cls(
            id=article.id,
            name=article.name,
            price_cents=article.price.cents,
            price=format_money(article.price),
            created_at=article.created_at,
        )
