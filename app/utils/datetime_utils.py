"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Make a datetime timezone-aware in UTC.

    Some backends (SQLite) return naive datetimes for timezone-aware
    columns; naive values are assumed to already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def shift_hours(value: datetime, hours: int) -> datetime:
    """Shift an aware datetime by a fixed number of hours."""
    return as_utc(value) + timedelta(hours=hours)


def isoformat_or_none(value: datetime | None) -> str | None:
    """ISO-8601 string in UTC or None."""
    value = as_utc(value)
    return value.isoformat() if value else None
