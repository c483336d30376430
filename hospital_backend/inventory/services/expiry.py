# inventory/services/expiry.py

"""
EXPIRY CLASSIFICATION

One rule, used by every stock view and by discard:
- expired        expiry_date <  today
- expiring soon  today <= expiry_date <= today + window (inclusive)
- days_remaining expiry_date - today (negative once expired)

Dates are calendar dates; "today" is the local date of the server timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from django.conf import settings
from django.utils import timezone

STATUS_EXPIRED = "expired"
STATUS_EXPIRING_SOON = "expiring_soon"
STATUS_GOOD = "good"


@dataclass(frozen=True)
class ExpiryStatus:
    expired: bool
    expiring_soon: bool
    days_remaining: int

    @property
    def label(self) -> str:
        if self.expired:
            return STATUS_EXPIRED
        if self.expiring_soon:
            return STATUS_EXPIRING_SOON
        return STATUS_GOOD


def expiring_window_days() -> int:
    return int(getattr(settings, "INVENTORY_EXPIRING_SOON_DAYS", 10))


def today() -> date:
    return timezone.localdate()


def expiring_cutoff(reference_date: date | None = None, window_days: int | None = None) -> date:
    ref = reference_date or today()
    window = expiring_window_days() if window_days is None else int(window_days)
    return ref + timedelta(days=window)


def classify_expiry(
    expiry_date: date,
    reference_date: date | None = None,
    window_days: int | None = None,
) -> ExpiryStatus:
    ref = reference_date or today()
    days_remaining = (expiry_date - ref).days
    expired = expiry_date < ref
    expiring_soon = (not expired) and expiry_date <= expiring_cutoff(ref, window_days)
    return ExpiryStatus(
        expired=expired,
        expiring_soon=expiring_soon,
        days_remaining=days_remaining,
    )


def is_low_stock(total_quantity: int, reorder_level: int) -> bool:
    return int(total_quantity) <= int(reorder_level)
