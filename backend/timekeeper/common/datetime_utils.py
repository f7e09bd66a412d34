"""
UTC helpers for timestamps and report periods.

SQLite hands datetimes back without tzinfo, so values read from the
database go through as_utc before they are compared or returned.
"""
from datetime import date, datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time.

    Wrapped so tests can patch it.
    """
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)
