from typing import Dict, Tuple, Type

from fastapi import HTTPException, status

from core.errors import (
    AlreadyUndone,
    AmountOverflow,
    ArticleNotFound,
    CardNumberInUse,
    GracePeriodExpired,
    InvalidAmount,
    InvalidTransfer,
    LedgerError,
    StorageFailure,
    TransactionNotFound,
    UserNotFound,
)

# стабильные сообщения для пользователя, без деталей хранилища
ERROR_RESPONSES: Dict[Type[LedgerError], Tuple[int, str]] = {
    InvalidAmount: (status.HTTP_400_BAD_REQUEST, "The amount must be a positive number!"),
    InvalidTransfer: (status.HTTP_400_BAD_REQUEST, "You cannot transfer money to yourself!"),
    AmountOverflow: (status.HTTP_400_BAD_REQUEST, "The amount is too large!"),
    UserNotFound: (status.HTTP_404_NOT_FOUND, "No such user exists!"),
    ArticleNotFound: (status.HTTP_404_NOT_FOUND, "No such article exists!"),
    TransactionNotFound: (status.HTTP_404_NOT_FOUND, "No such transaction exists!"),
    CardNumberInUse: (status.HTTP_409_CONFLICT, "The card number is already used!"),
    AlreadyUndone: (status.HTTP_409_CONFLICT, "The transaction has already been undone!"),
    GracePeriodExpired: (status.HTTP_409_CONFLICT, "The transaction can no longer be undone!"),
    StorageFailure: (status.HTTP_503_SERVICE_UNAVAILABLE, "The ledger is temporarily unavailable, please try again!"),
}


def to_http_exception(error: LedgerError) -> HTTPException:
    for cls in type(error).__mro__:
        if cls in ERROR_RESPONSES:
            status_code, detail = ERROR_RESPONSES[cls]
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected ledger error!")
