# venue_booking/utils/date_utils.py
"""
Date and time utility functions used by the booking core.

Notes:
- Nothing here reads the clock; callers always pass ``now`` in.
- Whole-hour / whole-day differences truncate toward zero, so an event
  23h59m away is 23 whole hours away, and one 23h59m in the past is -23.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
MINUTES_PER_DAY = 24 * 60


class DateUtilsError(ValueError):
    """Raised for malformed date or time input."""
    pass


def start_of_day(d: date, tz: Optional[tzinfo] = None) -> datetime:
    """Return the start (00:00) of a given date, carrying ``tz`` if given."""
    if not isinstance(d, date):
        raise DateUtilsError("Input must be a date object")
    if isinstance(d, datetime):
        d = d.date()
    return datetime.combine(d, time.min).replace(tzinfo=tz)


def at_minutes(d: date, minutes: int, tz: Optional[tzinfo] = None) -> datetime:
    """Return ``d`` at ``minutes`` past midnight (1440 gives the next midnight)."""
    return start_of_day(d, tz) + timedelta(minutes=minutes)


def whole_hours_between(start: datetime, end: datetime) -> int:
    seconds = (end - start).total_seconds()
    return int(seconds / SECONDS_PER_HOUR)


def whole_days_between(start: datetime, end: datetime) -> int:
    seconds = (end - start).total_seconds()
    return int(seconds / SECONDS_PER_DAY)


def parse_time_of_day(value: str) -> int:
    """
    Parse ``"HH:MM"`` into minutes past midnight.

    ``"24:00"`` is accepted as the end of the day and returns 1440.
    """
    if not isinstance(value, str):
        raise DateUtilsError(f"Time must be a 'HH:MM' string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise DateUtilsError(f"Time must be in 'HH:MM' format, got {value!r}")

    hours, minutes = int(parts[0]), int(parts[1])
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise DateUtilsError(f"Time out of range: {value!r}")
    return hours * 60 + minutes


def format_time_of_day(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"
