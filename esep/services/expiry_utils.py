import math
from typing import Any, Iterable, List, Optional
from datetime import datetime, timedelta

from esep.config.settings import settings
from esep.db.models import RegistrationStatus
from esep.utils.datetime_utils import naive_utc_now

SECONDS_PER_DAY = 24 * 60 * 60


def _status_value(status: Any) -> Optional[str]:
    if isinstance(status, RegistrationStatus):
        return status.value
    return status


class ExpiryCalculator:
    """Pure date arithmetic over registration snapshots.

    Works with ORM rows or any object exposing ``expiry_date`` and ``status``.
    ``now`` defaults to the current naive UTC time.
    """

    @staticmethod
    def compute_expiry_date(
        approved_at: datetime, expiry_days: Optional[int]
    ) -> datetime:
        """Approval timestamp plus the category window in calendar days"""
        if not expiry_days or expiry_days <= 0:
            expiry_days = settings.DEFAULT_EXPIRY_DAYS
        return approved_at + timedelta(days=expiry_days)

    @staticmethod
    def days_remaining(registration: Any, now: Optional[datetime] = None) -> Optional[int]:
        """Whole days until expiry, rounded up. None means no expiry is set."""
        expiry_date = getattr(registration, "expiry_date", None)
        if expiry_date is None:
            return None

        now = now or naive_utc_now()
        seconds = (expiry_date - now).total_seconds()
        return math.ceil(seconds / SECONDS_PER_DAY)

    @staticmethod
    def is_expired(registration: Any, now: Optional[datetime] = None) -> bool:
        expiry_date = getattr(registration, "expiry_date", None)
        if expiry_date is None:
            return False
        return expiry_date < (now or naive_utc_now())

    @staticmethod
    def list_expiring_soon(
        registrations: Iterable[Any],
        now: Optional[datetime] = None,
        window_days: int = 5,
    ) -> List[Any]:
        """Pending registrations with 0 < days remaining <= window, soonest first"""
        now = now or naive_utc_now()
        expiring = []
        for registration in registrations:
            if _status_value(registration.status) != RegistrationStatus.PENDING.value:
                continue
            days = ExpiryCalculator.days_remaining(registration, now)
            if days is not None and 0 < days <= window_days:
                expiring.append((days, registration))

        expiring.sort(key=lambda item: item[0])
        return [registration for _, registration in expiring]
