from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from config.settings import settings
from core.errors import LedgerError
from core.repositories.unit_of_work import UnitOfWorkFactory
from core.use_cases.ledger_use_cases import LedgerEngine, OperationResult
from core.use_cases.user_use_cases import get_user_transactions
from infrastructure.web.dependencies import get_engine, get_uow_factory
from infrastructure.web.errors import to_http_exception
from infrastructure.web.schemas import OperationResponse, TransactionItem


router = APIRouter(prefix="/users/{user_id}", tags=["ledger"])


class AmountRequest(BaseModel):
    amount_cents: int

class TransferRequest(BaseModel):
    receiver_id: int
    amount_cents: int

class PurchaseRequest(BaseModel):
    article_id: int
    quantity: int = 1


def to_response(result: OperationResult) -> OperationResponse:
    return OperationResponse(
        transactions=[TransactionItem.from_transaction(tx) for tx in result.transactions],
        balances_cents={uid: money.cents for uid, money in result.balances.items()},
    )


@router.post("/deposit", response_model=OperationResponse)
def deposit(user_id: int, payload: AmountRequest, engine: LedgerEngine = Depends(get_engine)):
    try:
        return to_response(engine.deposit(user_id, payload.amount_cents))
    except LedgerError as e:
        raise to_http_exception(e)

@router.post("/withdraw", response_model=OperationResponse)
def withdraw(user_id: int, payload: AmountRequest, engine: LedgerEngine = Depends(get_engine)):
    try:
        return to_response(engine.withdraw(user_id, payload.amount_cents))
    except LedgerError as e:
        raise to_http_exception(e)

@router.post("/transfer", response_model=OperationResponse)
def transfer(user_id: int, payload: TransferRequest, engine: LedgerEngine = Depends(get_engine)):
    try:
        return to_response(engine.transfer(user_id, payload.receiver_id, payload.amount_cents))
    except LedgerError as e:
        raise to_http_exception(e)

@router.post("/purchase", response_model=OperationResponse)
def purchase(user_id: int, payload: PurchaseRequest, engine: LedgerEngine = Depends(get_engine)):
    try:
        return to_response(engine.purchase(user_id, payload.article_id, payload.quantity))
    except LedgerError as e:
        raise to_http_exception(e)

@router.post("/transactions/{transaction_id}/undo", response_model=OperationResponse)
def undo(user_id: int, transaction_id: int, engine: LedgerEngine = Depends(get_engine)):
    try:
        return to_response(engine.undo(user_id, transaction_id))
    except LedgerError as e:
        raise to_http_exception(e)

@router.get("/transactions", response_model=List[TransactionItem])
def get_transactions(
    user_id: int,
    limit: int = settings.TRANSACTIONS_DEFAULT_LIMIT,
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
):
    limit = max(1, min(settings.TRANSACTIONS_MAX_LIMIT, int(limit)))  # пагинация, не хотим возвращать много
    try:
        txs = get_user_transactions(uow_factory, user_id, limit=limit)
    except LedgerError as e:
        raise to_http_exception(e)
    return [TransactionItem.from_transaction(tx) for tx in txs]
