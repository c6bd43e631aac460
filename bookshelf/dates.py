"""
Timestamp helpers for backup files.

Backups store dates as seconds counted from 2001-01-01T00:00:00Z (the
Core Foundation reference date), not from the Unix epoch.
"""

from datetime import datetime, timezone, timedelta
from typing import Union

REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)

Number = Union[int, float]


def to_timestamp(value: datetime) -> float:
    """
    Encode a datetime as seconds since the reference date.

    Naive datetimes are interpreted as local time.

    Args:
        value: The datetime to encode

    Returns:
        Seconds between 2001-01-01T00:00:00Z and ``value``
    """
    if value.tzinfo is None:
        value = value.astimezone()
    return (value - REFERENCE_DATE).total_seconds()


def from_timestamp(seconds: Number) -> datetime:
    """
    Decode a stored timestamp into an aware UTC datetime.

    Args:
        seconds: Seconds since the reference date

    Returns:
        The corresponding datetime in UTC
    """
    return REFERENCE_DATE + timedelta(seconds=seconds)


def now_timestamp() -> float:
    """Current instant as a stored timestamp."""
    return to_timestamp(datetime.now(timezone.utc))


def format_date(value: datetime) -> str:
    """Format a datetime as ``Mon D, YYYY`` in local time."""
    local = value.astimezone()
    return f"{local:%b} {local.day}, {local.year}"


def format_timestamp(seconds: Number) -> str:
    """Format a stored timestamp as a local calendar date (``Jan 5, 2025``)."""
    return format_date(from_timestamp(seconds))


def format_duration(seconds: Number) -> str:
    """
    Format elapsed seconds for display.

    Examples:
        5400 -> "1h 30m"
        1800 -> "30m"
    """
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
