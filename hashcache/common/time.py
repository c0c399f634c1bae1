"""
Time Utilities

Expiry policy:
- Record expiry is always sent to the store as a relative number of seconds.
- Absolute deadlines are converted against the caller's clock, so clock skew
  between caller and store is resolved on the caller side.
- Naive datetimes are treated as UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

UTC = timezone.utc

Expiry = Union[int, timedelta, datetime]


def utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is UTC-aware.

    - If `dt` is naive, treat it as UTC.
    - If `dt` is timezone-aware, convert it to UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_expiry_seconds(expiry: Expiry, now: Optional[datetime] = None) -> int:
    """
    Convert an expiry to whole seconds relative to now.

    - `int` is returned unchanged.
    - `timedelta` is truncated toward zero.
    - `datetime` is a deadline, measured from `now` (defaults to `utc_now()`).

    A deadline in the past yields zero or a negative number; the store
    deletes the record immediately in that case.
    """
    if isinstance(expiry, bool):
        raise TypeError("expiry must be seconds, a timedelta or a datetime, not bool")
    if isinstance(expiry, int):
        return expiry
    if isinstance(expiry, datetime):
        current = ensure_utc(now) if now is not None else utc_now()
        expiry = ensure_utc(expiry) - current
    if isinstance(expiry, timedelta):
        return int(expiry.total_seconds())
    raise TypeError(f"Unsupported expiry type: {type(expiry).__name__}")
