from datetime import timedelta

from fastapi import Depends

from config.settings import settings
from core.repositories.unit_of_work import UnitOfWorkFactory
from core.services.clock import Clock, SystemClock
from core.services.event_publisher import EventPublisher
from core.services.grace_period import GracePeriodPolicy
from core.use_cases.ledger_use_cases import LedgerEngine
from infrastructure.db.sqlite import build_sqlite_uow_factory

# один издатель на процесс, подписчики живут дольше запроса
_publisher = EventPublisher()


def get_uow_factory() -> UnitOfWorkFactory:
    return build_sqlite_uow_factory(settings.DB_PATH)

def get_clock() -> Clock:
    return SystemClock()

def get_grace_policy() -> GracePeriodPolicy:
    return GracePeriodPolicy(timedelta(seconds=settings.GRACE_PERIOD_SECONDS))

def get_publisher() -> EventPublisher:
    return _publisher

def get_engine(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    clock: Clock = Depends(get_clock),
    grace_policy: GracePeriodPolicy = Depends(get_grace_policy),
    publisher: EventPublisher = Depends(get_publisher),
) -> LedgerEngine:
    return LedgerEngine(uow_factory, clock=clock, grace_policy=grace_policy, publisher=publisher)
