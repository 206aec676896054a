from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from core.errors import LedgerError
from core.repositories.unit_of_work import UnitOfWorkFactory
from core.use_cases.identity_use_cases import resolve_by_card_number
from core.use_cases.ledger_use_cases import LedgerEngine
from core.use_cases.user_use_cases import create_user, update_user, get_user, get_all_users
from infrastructure.web.dependencies import get_engine, get_uow_factory
from infrastructure.web.errors import to_http_exception
from infrastructure.web.schemas import UserResponse


router = APIRouter(prefix="/users", tags=["users"])


class CreateUserRequest(BaseModel):
    nickname: str
    card_number: Optional[str] = None

class UpdateUserRequest(BaseModel):
    nickname: str
    card_number: str  # пустая строка удаляет карту

class BalanceCheckResponse(BaseModel):
    user_id: int
    cached_cents: int
    computed_cents: int
    consistent: bool


@router.post("", response_model=UserResponse, status_code=201)
def register(payload: CreateUserRequest, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)):
    try:
        user = create_user(uow_factory, nickname=payload.nickname, card_number=payload.card_number)
    except LedgerError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UserResponse.from_user(user)

@router.get("", response_model=List[UserResponse])
def list_users(uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)):
    try:
        users = get_all_users(uow_factory)
    except LedgerError as e:
        raise to_http_exception(e)
    return [UserResponse.from_user(u) for u in users]

@router.get("/by-card/{code}", response_model=Optional[UserResponse])
def get_by_card_number(code: str, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)):
    try:
        user = resolve_by_card_number(uow_factory, code)
    except LedgerError as e:
        raise to_http_exception(e)
    return UserResponse.from_user(user) if user else None

@router.get("/{user_id}", response_model=UserResponse)
def get_profile(user_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)):
    try:
        user = get_user(uow_factory, user_id)
    except LedgerError as e:
        raise to_http_exception(e)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No such user exists!")
    return UserResponse.from_user(user)

@router.put("/{user_id}/settings", response_model=UserResponse)
def update_settings(
    user_id: int,
    payload: UpdateUserRequest,
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
):
    try:
        user = update_user(uow_factory, user_id, nickname=payload.nickname, card_number=payload.card_number)
    except LedgerError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UserResponse.from_user(user)

@router.get("/{user_id}/balance/verify", response_model=BalanceCheckResponse)
def verify_balance(user_id: int, engine: LedgerEngine = Depends(get_engine)):
    try:
        check = engine.verify_balance(user_id)
    except LedgerError as e:
        raise to_http_exception(e)
    return BalanceCheckResponse(
        user_id=check.user_id,
        cached_cents=check.cached.cents,
        computed_cents=check.computed.cents,
        consistent=check.consistent,
    )
