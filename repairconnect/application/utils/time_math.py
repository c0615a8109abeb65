from __future__ import annotations

import re
from datetime import date, datetime, time, tzinfo

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


def is_valid_time(value: str) -> bool:
    """Check an "HH:MM" string (single-digit hours allowed)."""
    return bool(TIME_PATTERN.match(value or ""))


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight. Raises ValueError on bad input."""
    if not is_valid_time(value):
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM", wrapping past midnight."""
    minutes = minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def hours_to_minutes(hours: float) -> int:
    return int(round(hours * 60))


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap on minutes. Touching intervals do not overlap."""
    return start_a < end_b and start_b < end_a


def combine(day: date, value: str, tz: tzinfo | None = None) -> datetime:
    """Build a datetime for a calendar day at an "HH:MM" time."""
    minutes = time_to_minutes(value)
    return datetime.combine(day, time(hour=minutes // 60, minute=minutes % 60), tzinfo=tz)


def as_date(value: date | datetime) -> date:
    """Drop any time-of-day component."""
    if isinstance(value, datetime):
        return value.date()
    return value
