from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import total_ordering
from typing import Optional

from core.entities.money import Money


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    PURCHASE = "purchase"
    TRANSFER_SENT = "transfer_sent"
    TRANSFER_RECEIVED = "transfer_received"

    @property
    def is_transfer(self) -> bool:
        return self in (TransactionType.TRANSFER_SENT, TransactionType.TRANSFER_RECEIVED)


@total_ordering
@dataclass(eq=False)
class Transaction:
    id: int
    user_id: int
    t_type: TransactionType
    money: Money            # зачисление: >0, списание: <0
    timestamp: datetime
    counterparty_id: Optional[int] = None   # пользователь (перевод) или товар (покупка)
    paired_id: Optional[int] = None         # у TransferReceived: id парной TransferSent
    reverses_id: Optional[int] = None       # у компенсирующей записи: id отменённой
    quantity: Optional[int] = None
    undone: bool = False

    def __setattr__(self, name, value):
        if name != "undone" and name in self.__dict__:
            raise AttributeError(f"Transaction.{name} cannot be changed once set")
        super().__setattr__(name, value)

    @property
    def is_compensating(self) -> bool:
        return self.reverses_id is not None

    def __eq__(self, other):
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.id == other.id

    def __lt__(self, other):
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.id < other.id

    def __hash__(self):
        return hash(self.id)
