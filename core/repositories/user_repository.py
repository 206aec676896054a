from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.money import Money
from core.entities.user import User


class UserRepository(ABC):
    @abstractmethod
    def create_user(self, nickname: str, card_number: Optional[str] = None) -> User:...

    @abstractmethod
    def get_by_id(self, user_id: int) -> Optional[User]:...

    @abstractmethod
    def get_for_update(self, user_id: int) -> Optional[User]:...

    @abstractmethod
    def get_all(self) -> List[User]:...

    @abstractmethod
    def get_by_card_number(self, card_number: str) -> Optional[User]:...

    @abstractmethod
    def set_nickname(self, user_id: int, nickname: str) -> None:...

    @abstractmethod
    def set_card_number(self, user_id: int, card_number: Optional[str]) -> None:...

    @abstractmethod
    def add_balance(self, user_id: int, delta: Money) -> User:...

    @abstractmethod
    def set_balance(self, user_id: int, balance: Money) -> User:...
