from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from core.entities.money import Money
from core.entities.transaction import Transaction, TransactionType


class TransactionRepository(ABC):
    @abstractmethod
    def add(
        self,
        user_id: int,
        t_type: TransactionType,
        money: Money,
        timestamp: datetime,
        counterparty_id: Optional[int] = None,
        paired_id: Optional[int] = None,
        reverses_id: Optional[int] = None,
        quantity: Optional[int] = None,
        undone: bool = False,
    ) -> Transaction:...

    @abstractmethod
    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:...

    @abstractmethod
    def get_pair(self, transaction: Transaction) -> Optional[Transaction]:...

    @abstractmethod
    def mark_undone(self, transaction_id: int) -> bool:...

    @abstractmethod
    def list_for_user(self, user_id: int, limit: int = 10, offset: int = 0) -> List[Transaction]:...

    @abstractmethod
    def sum_active(self, user_id: int) -> Money:...
