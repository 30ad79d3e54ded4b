"""
Time helpers shared by the scheduling and enrollment services.

All persisted instants are UTC. Weekday numbers follow the 0=Sunday ... 6=Saturday
convention used by stored schedule rules.
"""

from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    Some backends (SQLite) hand back naive values for timezone-aware columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sunday_based_weekday(day: date) -> int:
    """Map a date to 0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % 7
