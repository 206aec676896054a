from abc import ABC, abstractmethod
from typing import Callable

from core.repositories.article_repository import ArticleRepository
from core.repositories.transaction_repository import TransactionRepository
from core.repositories.user_repository import UserRepository


class UnitOfWork(ABC):
    """Одна атомарная транзакция хранилища: всё чтение и запись операции внутри неё.

    Изменения видны другим только после commit(); выход из блока без commit()
    или с исключением откатывает всё.
    """
    users: UserRepository
    transactions: TransactionRepository
    articles: ArticleRepository

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.rollback()

    @abstractmethod
    def commit(self) -> None:...

    @abstractmethod
    def rollback(self) -> None:...


# фабрика: uow_factory() для записи, uow_factory(read_only=True) для чтения
UnitOfWorkFactory = Callable[..., UnitOfWork]
