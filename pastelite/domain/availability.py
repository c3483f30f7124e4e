from __future__ import annotations

import enum
from datetime import datetime, timezone

from .models import Paste


class PasteAvailability(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    MISSING = "MISSING"
    EXPIRED = "EXPIRED"
    EXHAUSTED = "EXHAUSTED"


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        # SQLite hands back naive datetimes; everything is stored in UTC.
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """A paste is gone once ``now`` reaches ``expires_at``."""
    if expires_at is None:
        return False
    return as_utc(now) >= as_utc(expires_at)


def is_exhausted(max_views: int | None, remaining_views: int | None) -> bool:
    if max_views is None:
        return False
    return (remaining_views or 0) <= 0


def evaluate_availability(paste: Paste | None, now: datetime) -> PasteAvailability:
    """
    Decide whether ``paste`` may be served at ``now``.

    Expiry is checked before the view budget, so a paste that is both expired
    and exhausted reports ``EXPIRED``.
    """

    if paste is None:
        return PasteAvailability.MISSING
    if is_expired(paste.expires_at, now):
        return PasteAvailability.EXPIRED
    if is_exhausted(paste.max_views, paste.remaining_views):
        return PasteAvailability.EXHAUSTED
    return PasteAvailability.AVAILABLE
