from typing import Optional

import structlog

from core.entities.user import User
from core.errors import CardNumberInUse, UserNotFound
from core.repositories.unit_of_work import UnitOfWork, UnitOfWorkFactory

logger = structlog.get_logger(__name__)


def normalize_card_number(card_number: Optional[str]) -> Optional[str]:
    # пустая строка означает "карты нет"
    if not card_number:
        return None
    return card_number


def resolve_by_card_number(uow_factory: UnitOfWorkFactory, code: Optional[str]) -> Optional[User]:
    if not code:
        return None
    logger.debug("resolving_card_number", code=code)
    with uow_factory(read_only=True) as uow:
        return uow.users.get_by_card_number(code)


def ensure_card_number_free(uow: UnitOfWork, user_id: Optional[int], card_number: Optional[str]) -> None:
    if card_number is None:
        return
    holder = uow.users.get_by_card_number(card_number)
    if holder is not None and holder.id != user_id:
        logger.warning("card_number_in_use", card_number=card_number, holder_id=holder.id, user_id=user_id)
        raise CardNumberInUse(card_number)


def assign_card_number(uow_factory: UnitOfWorkFactory, user_id: int, code: Optional[str]) -> User:
    card_number = normalize_card_number(code)
    with uow_factory() as uow:
        if uow.users.get_for_update(user_id) is None:
            raise UserNotFound(user_id)
        ensure_card_number_free(uow, user_id, card_number)
        uow.users.set_card_number(user_id, card_number)
        uow.commit()
        user = uow.users.get_by_id(user_id)
    logger.info("card_number_assigned", user_id=user_id, cleared=card_number is None)
    return user
