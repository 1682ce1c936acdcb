"""Shared utilities used across the booking core."""

from datetime import datetime, time, timezone
from typing import Union

WEEKDAY_NAMES: tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


def parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` wall-clock string.

    Examples:
        >>> parse_clock("09:30")
        datetime.time(9, 30)
    """
    return datetime.strptime(value.strip(), "%H:%M").time()


def weekday_index(day: Union[int, str]) -> int:
    """Normalize a weekday given as 0-6 (Monday=0) or a day name.

    Examples:
        >>> weekday_index("Tuesday")
        1
        >>> weekday_index(6)
        6
    """
    if isinstance(day, int):
        if not 0 <= day <= 6:
            raise ValueError(f"Weekday must be between 0 and 6, got {day}")
        return day
    normalized = day.strip().lower()
    if normalized.isdigit():
        return weekday_index(int(normalized))
    for index, name in enumerate(WEEKDAY_NAMES):
        if name == normalized or name[:3] == normalized:
            return index
    raise ValueError(f"Unknown weekday: {day!r}")


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
