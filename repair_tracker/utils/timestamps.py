"""Timestamp utilities for UTC handling.

Every "today" in the application is the UTC calendar day, so report
boundaries never depend on the machine's local timezone.
"""

from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current calendar day in UTC."""
    return utc_now().date()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    If the datetime is timezone-naive, it's treated as UTC.
    If the datetime has a different timezone, it's converted to UTC.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as ISO 8601 string in UTC with a 'Z' suffix.

    Example:
        >>> format_timestamp(datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")
