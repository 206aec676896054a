from typing import List, Optional

import structlog

from core.entities.transaction import Transaction
from core.entities.user import User
from core.errors import UserNotFound
from core.repositories.unit_of_work import UnitOfWorkFactory
from core.use_cases.identity_use_cases import ensure_card_number_free, normalize_card_number

logger = structlog.get_logger(__name__)


def _clean_nickname(nickname: str) -> str:
    nickname = (nickname or "").strip()
    if not nickname:
        raise ValueError("Nickname must not be empty")
    return nickname


def create_user(uow_factory: UnitOfWorkFactory, nickname: str, card_number: Optional[str] = None) -> User:
    nickname = _clean_nickname(nickname)
    card_number = normalize_card_number(card_number)
    with uow_factory() as uow:
        ensure_card_number_free(uow, None, card_number)
        user = uow.users.create_user(nickname=nickname, card_number=card_number)
        uow.commit()
    logger.info("user_created", user_id=user.id)
    return user


def update_user(uow_factory: UnitOfWorkFactory, user_id: int, nickname: str, card_number: Optional[str]) -> User:
    """Никнейм и номер карты меняются вместе или не меняются вовсе"""
    nickname = _clean_nickname(nickname)
    card_number = normalize_card_number(card_number)
    with uow_factory() as uow:
        if uow.users.get_for_update(user_id) is None:
            raise UserNotFound(user_id)
        ensure_card_number_free(uow, user_id, card_number)
        uow.users.set_nickname(user_id, nickname)
        uow.users.set_card_number(user_id, card_number)
        uow.commit()
        user = uow.users.get_by_id(user_id)
    logger.info("user_updated", user_id=user_id)
    return user


def get_user(uow_factory: UnitOfWorkFactory, user_id: int) -> Optional[User]:
    with uow_factory(read_only=True) as uow:
        return uow.users.get_by_id(user_id)


def get_all_users(uow_factory: UnitOfWorkFactory) -> List[User]:
    with uow_factory(read_only=True) as uow:
        return uow.users.get_all()


def get_user_transactions(uow_factory: UnitOfWorkFactory, user_id: int, limit: int = 10) -> List[Transaction]:
    """Последние limit транзакций пользователя, новые сверху"""
    with uow_factory(read_only=True) as uow:
        if uow.users.get_by_id(user_id) is None:
            raise UserNotFound(user_id)
        if limit <= 0:
            return []
        return uow.transactions.list_for_user(user_id, limit=limit)
