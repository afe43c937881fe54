from __future__ import annotations

import calendar
from datetime import date

# Sunday-first weekday indices
SUNDAY = 0
SATURDAY = 6


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def iso_week_number(day: date) -> int:
    return day.isocalendar()[1]


def weekday_sunday_first(day: date) -> int:
    """
    0=Sunday ... 6=Saturday.
    Python's date.weekday() is Monday-first (0=Monday).
    """
    return (day.weekday() + 1) % 7


def mask_index(weekday: int) -> int:
    """
    Translate a Sunday-first weekday (0=Sunday) into the Monday-first
    position used by weekly masks (0=Monday ... 6=Sunday).
    """
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be in 0..6 (got {weekday})")
    return 6 if weekday == SUNDAY else weekday - 1
