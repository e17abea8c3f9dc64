"""Calendar helpers for Monday-based scheduling weeks.

All functions are pure and time-zone naive.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from rosterhelper.domain.models import WEEKDAY_KEYS, DayTypeTier
from rosterhelper.domain.policies import DayTypePolicy, WeekdayDayTypePolicy


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_week(value: Union[date, datetime]) -> date:
    """Get the Monday of the week containing a date.

    Example:
        >>> start_of_week(date(2024, 1, 21))  # Sunday
        datetime.date(2024, 1, 15)
    """
    day = _as_date(value)
    return day - timedelta(days=day.weekday())


def week_dates(week_start: date) -> list[date]:
    """Get the seven consecutive dates of a week."""
    return [week_start + timedelta(days=i) for i in range(7)]


def date_range(start: date, end: date) -> list[date]:
    """Get every date from start to end, both inclusive."""
    if end < start:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def previous_week(week_start: date) -> date:
    return week_start - timedelta(days=7)


def next_week(week_start: date) -> date:
    return week_start + timedelta(days=7)


def weekday_key(day: date) -> str:
    """Three-letter weekday key used by operating hours ("Mon".."Sun")."""
    return WEEKDAY_KEYS[day.weekday()]


def parse_hhmm(text: str) -> time:
    """Parse an "HH:MM" string.

    "24:00" is accepted as midnight, matching how closing times are
    sometimes written.

    Raises:
        ValueError: If the text is not a valid time.
    """
    parts = str(text).strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time {text!r}, expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if hours == 24 and minutes == 0:
        return time(0, 0)
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time {text!r}, expected HH:MM")
    return time(hours, minutes)


def format_hhmm(value: Optional[time]) -> str:
    if value is None:
        return "--:--"
    return value.strftime("%H:%M")


def classify_day_type(day: date, policy: Optional[DayTypePolicy] = None) -> DayTypeTier:
    """Get the demand tier of a date using the given (or default) policy."""
    policy = policy or WeekdayDayTypePolicy()
    return policy.classify(day)
