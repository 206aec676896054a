from typing import Optional


class LedgerError(Exception):
    """Базовая ошибка ядра учёта"""


class InvalidAmount(LedgerError, ValueError):
    def __init__(self, amount, message: Optional[str] = None):
        self.amount = amount
        super().__init__(message or f"Amount must be a positive integer number of cents, got {amount!r}")


class InvalidTransfer(LedgerError, ValueError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} cannot transfer money to themselves")


class AmountOverflow(LedgerError, ArithmeticError):
    def __init__(self, cents: int):
        self.cents = cents
        super().__init__(f"Amount of {cents} cents is out of the supported range")


class UserNotFound(LedgerError, LookupError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class ArticleNotFound(LedgerError, LookupError):
    def __init__(self, article_id: int):
        self.article_id = article_id
        super().__init__(f"Article {article_id} not found")


class CardNumberInUse(LedgerError):
    def __init__(self, card_number: str):
        self.card_number = card_number
        super().__init__(f"Card number {card_number!r} is already used by another user")


class TransactionNotFound(LedgerError, LookupError):
    def __init__(self, transaction_id: int, user_id: Optional[int] = None):
        self.transaction_id = transaction_id
        self.user_id = user_id
        owner = f" for user {user_id}" if user_id is not None else ""
        super().__init__(f"Transaction {transaction_id} not found{owner}")


class AlreadyUndone(LedgerError):
    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} has already been undone")


class GracePeriodExpired(LedgerError):
    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} can no longer be undone")


class StorageFailure(LedgerError):
    """Любая ошибка хранилища; операцию нужно повторить целиком"""
