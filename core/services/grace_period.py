from datetime import datetime, timedelta
from typing import Optional

from core.entities.transaction import Transaction
from core.errors import GracePeriodExpired

DEFAULT_GRACE_PERIOD = timedelta(minutes=2)


class GracePeriodPolicy:
    """Транзакцию можно отменить, пока с момента её создания прошло не больше grace_period"""

    def __init__(self, grace_period: timedelta = DEFAULT_GRACE_PERIOD):
        if grace_period < timedelta(0):
            raise ValueError("grace_period must not be negative")
        self.grace_period = grace_period

    def is_eligible(self, timestamp: datetime, now: datetime) -> bool:
        return now - timestamp <= self.grace_period

    def check(self, transaction: Transaction, now: datetime, anchor: Optional[datetime] = None) -> None:
        # для переводов anchor - время стороны отправителя
        timestamp = anchor if anchor is not None else transaction.timestamp
        if not self.is_eligible(timestamp, now):
            raise GracePeriodExpired(transaction.id)
