"""Calendar bucket keys and date navigation.

Every expense is filed under three string keys derived from the date it is
attributed to:

    day_key    "YYYY-MM-DD"
    week_key   "YYYY-Www"   (depends on the configured week-start day)
    month_key  "YYYY-MM"

Keys are computed from the date's own calendar fields; no time-zone
conversion happens here. All helpers are pure and accept either ``date`` or
``datetime``; navigation helpers return the same type they were given.

Week numbering generalizes ISO-8601 to any start day: a week belongs to the
year holding the majority of its seven days (the year of its fourth day),
and week 1 is the first week whose fourth day falls in that year. With a
Monday start this is exactly the ISO week.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import List, Tuple, TypeVar

from dateutil.relativedelta import relativedelta

D = TypeVar("D", date, datetime)

_WEEK_KEY_RE = re.compile(r"^(\d{4})-W(\d{2})$")
_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _weekday_sunday0(d: date) -> int:
    # date.weekday() is Monday=0; week-start days use Sunday=0
    return (d.weekday() + 1) % 7


def _check_week_start(week_start_day: int) -> None:
    if not 0 <= week_start_day <= 6:
        raise ValueError(f"week_start_day must be 0..6, got {week_start_day}")


# ---------------- Keys -----------------


def day_key(value: date) -> str:
    d = _as_date(value)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def month_key(value: date) -> str:
    d = _as_date(value)
    return f"{d.year:04d}-{d.month:02d}"


def week_start(value: date, week_start_day: int) -> date:
    _check_week_start(week_start_day)
    d = _as_date(value)
    return d - timedelta(days=(_weekday_sunday0(d) - week_start_day) % 7)


def week_end(value: date, week_start_day: int) -> date:
    return week_start(value, week_start_day) + timedelta(days=6)


def days_in_week(value: date, week_start_day: int) -> List[date]:
    start = week_start(value, week_start_day)
    return [start + timedelta(days=i) for i in range(7)]


def week_key(value: date, week_start_day: int) -> str:
    anchor = week_start(value, week_start_day) + timedelta(days=3)
    week = (anchor.timetuple().tm_yday - 1) // 7 + 1
    return f"{anchor.year:04d}-W{week:02d}"


def bucket_keys(value: date, week_start_day: int) -> Tuple[str, str, str]:
    """Return ``(day_key, week_key, month_key)`` for one date."""
    return day_key(value), week_key(value, week_start_day), month_key(value)


def parse_week_key(key: str) -> Tuple[int, int]:
    match = _WEEK_KEY_RE.match(key or "")
    if not match:
        raise ValueError(f"invalid week key '{key}', expected YYYY-Www")
    year, week = int(match.group(1)), int(match.group(2))
    if not 1 <= week <= 53:
        raise ValueError(f"invalid week number in '{key}'")
    return year, week


def parse_month_key(key: str) -> Tuple[int, int]:
    match = _MONTH_KEY_RE.match(key or "")
    if not match:
        raise ValueError(f"invalid month key '{key}', expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"invalid month in '{key}'")
    return year, month


# ---------------- Ranges -----------------


def days_in_range(start: date, end: date) -> List[date]:
    """Inclusive ascending list of days; empty when start is after end."""
    first, last = _as_date(start), _as_date(end)
    span = (last - first).days
    return [first + timedelta(days=i) for i in range(span + 1)]


def month_start(value: date) -> date:
    return _as_date(value).replace(day=1)


def month_end(value: date) -> date:
    # day=31 clamps to the last day of the month
    return _as_date(value) + relativedelta(day=31)


def days_in_month(value: date) -> List[date]:
    return days_in_range(month_start(value), month_end(value))


def week_keys_in_month(value: date, week_start_day: int) -> List[str]:
    keys: List[str] = []
    for d in days_in_month(value):
        key = week_key(d, week_start_day)
        if key not in keys:
            keys.append(key)
    return keys


# ---------------- Navigation -----------------


def previous_day(value: D) -> D:
    return value - timedelta(days=1)


def next_day(value: D) -> D:
    return value + timedelta(days=1)


def previous_week(value: D) -> D:
    return value - timedelta(weeks=1)


def next_week(value: D) -> D:
    return value + timedelta(weeks=1)


def add_months(value: D, months: int) -> D:
    """Shift by whole months, clamping the day to the target month's length."""
    return value + relativedelta(months=months)


def previous_month(value: D) -> D:
    return add_months(value, -1)


def next_month(value: D) -> D:
    return add_months(value, 1)


# ---------------- Display labels -----------------


def format_week_range(start: date, week_start_day: int) -> str:
    """e.g. "Jan 13 - Jan 19, 2026"."""
    first = week_start(start, week_start_day)
    last = first + timedelta(days=6)
    return f"{first:%b} {first.day} - {last:%b} {last.day}, {last.year}"


def format_month(value: date) -> str:
    """e.g. "January 2026"."""
    return f"{_as_date(value):%B %Y}"


def day_name(value: date) -> str:
    return f"{_as_date(value):%a}"


__all__ = [
    "day_key",
    "week_key",
    "month_key",
    "bucket_keys",
    "parse_week_key",
    "parse_month_key",
    "week_start",
    "week_end",
    "days_in_week",
    "days_in_range",
    "month_start",
    "month_end",
    "days_in_month",
    "week_keys_in_month",
    "previous_day",
    "next_day",
    "previous_week",
    "next_week",
    "add_months",
    "previous_month",
    "next_month",
    "format_week_range",
    "format_month",
    "day_name",
]
