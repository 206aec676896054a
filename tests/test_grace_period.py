"""
Tests for the undo grace-period policy.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.entities.money import Money
from core.entities.transaction import Transaction, TransactionType
from core.errors import GracePeriodExpired
from core.services.grace_period import DEFAULT_GRACE_PERIOD, GracePeriodPolicy

CREATED = datetime(2025, 3, 1, 18, 30, tzinfo=timezone.utc)


def tx(timestamp=CREATED):
    return Transaction(id=7, user_id=1, t_type=TransactionType.WITHDRAW, money=Money(-100), timestamp=timestamp)


class TestGracePeriodPolicy:

    def test_default_is_two_minutes(self):
        assert DEFAULT_GRACE_PERIOD == timedelta(minutes=2)
        assert GracePeriodPolicy().grace_period == timedelta(minutes=2)

    def test_boundary_is_inclusive(self):
        policy = GracePeriodPolicy()
        assert policy.is_eligible(CREATED, CREATED + timedelta(minutes=2))
        assert not policy.is_eligible(CREATED, CREATED + timedelta(minutes=2, microseconds=1))

    def test_check_raises_when_expired(self):
        policy = GracePeriodPolicy(timedelta(seconds=30))
        with pytest.raises(GracePeriodExpired) as exc_info:
            policy.check(tx(), CREATED + timedelta(seconds=31))
        assert exc_info.value.transaction_id == 7

    def test_check_uses_anchor_when_given(self):
        policy = GracePeriodPolicy()
        late_leg = tx(timestamp=CREATED + timedelta(minutes=5))
        with pytest.raises(GracePeriodExpired):
            policy.check(late_leg, CREATED + timedelta(minutes=3), anchor=CREATED)

    def test_received_leg_is_judged_by_sent_timestamp(self):
        policy = GracePeriodPolicy()
        sent_at = CREATED
        received = Transaction(
            id=8, user_id=2, t_type=TransactionType.TRANSFER_RECEIVED, money=Money(100),
            timestamp=sent_at + timedelta(minutes=1), counterparty_id=1, paired_id=7,
        )
        now = sent_at + timedelta(minutes=2, seconds=30)

        # без якоря приёмная сторона ещё в окне
        policy.check(received, now)
        with pytest.raises(GracePeriodExpired) as exc_info:
            policy.check(received, now, anchor=sent_at)
        assert exc_info.value.transaction_id == 8

        policy.check(received, sent_at + timedelta(minutes=2), anchor=sent_at)

    def test_negative_grace_period_is_rejected(self):
        with pytest.raises(ValueError):
            GracePeriodPolicy(timedelta(seconds=-1))
