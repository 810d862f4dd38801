"""Clock-time, weekday and interval helpers shared by the engines."""

from __future__ import annotations

from datetime import date
from typing import List, Tuple

import pandas as pd


MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
SHORT_WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
WEEKEND = ("Sat", "Sun")

_SHORT_BY_ALIAS = {}
for _full, _short in zip(WEEKDAY_NAMES, SHORT_WEEKDAY_NAMES):
    _SHORT_BY_ALIAS[_full.lower()] = _short
    _SHORT_BY_ALIAS[_short.lower()] = _short


def is_clock_time(value: str | None) -> bool:
    """True for ``HH:MM`` values, False for ``EOD``/``Continuous``/empty."""
    if not value or ":" not in value:
        return False
    parts = value.strip().split(":")
    return len(parts) == 2 and all(p.isdigit() for p in parts)


def time_to_minutes(value: str) -> int:
    hours, minutes = [int(x) for x in value.strip().split(":")]
    return hours * 60 + minutes


def minutes_to_time(total_minutes: int) -> str:
    hours, minutes = divmod(int(total_minutes), 60)
    return f"{hours % 24:02d}:{minutes:02d}"


def calculate_duration(start: str, end: str) -> int:
    """Minutes between two clock times; an earlier end wraps past midnight."""
    start_min = time_to_minutes(start)
    end_min = time_to_minutes(end)
    if end_min < start_min:
        end_min += MINUTES_PER_DAY
    return end_min - start_min


def calculate_shift_hours(start: str, end: str) -> float:
    return calculate_duration(start, end) / 60.0


def interval(start: str, end: str) -> Tuple[int, int]:
    """Return ``(start, end)`` in minutes from midnight with overnight ends unwrapped."""
    start_min = time_to_minutes(start)
    return start_min, start_min + calculate_duration(start, end)


def overlaps(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    a0, a1 = interval(a_start, a_end)
    b0, b1 = interval(b_start, b_end)
    return a0 < b1 and b0 < a1


def contains(outer_start: str, outer_end: str, inner_start: str, inner_end: str) -> bool:
    """True when the inner window lies entirely within the outer window."""
    o0, o1 = interval(outer_start, outer_end)
    i0, i1 = interval(inner_start, inner_end)
    return o0 <= i0 and i1 <= o1


def weekday_names(day: date) -> Tuple[str, str]:
    """Return the full and three-letter weekday names, e.g. ``("Monday", "Mon")``."""
    full = pd.Timestamp(day).day_name()
    return full, full[:3]


def normalize_weekday(value: str) -> str:
    """Map any full or short weekday spelling to its three-letter form."""
    try:
        return _SHORT_BY_ALIAS[value.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown weekday: {value!r}") from None


def same_weekday(a: str, b: str) -> bool:
    try:
        return normalize_weekday(a) == normalize_weekday(b)
    except ValueError:
        return False


def iso_week(day: date) -> str:
    """ISO week identifier, e.g. ``2025-W36``."""
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def shift_class_for(start: str, day: str) -> str:
    """Coarse shift class from a start time; weekend days override."""
    if normalize_weekday(day) in WEEKEND:
        return "Weekend"
    start_min = time_to_minutes(start)
    if start_min < 9 * 60:
        return "Opening"
    if start_min >= 14 * 60:
        return "Closing"
    return "Mid-Shift"


def planning_dates(start: date, days: int) -> List[date]:
    """Consecutive calendar dates starting at ``start``."""
    return [ts.date() for ts in pd.date_range(start, periods=days, freq="D")]
