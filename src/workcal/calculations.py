from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from .dates import SATURDAY, SUNDAY
from .domain import CalendarDay, DayState, WorkingHours, round_half_up
from .results import StageError, stage


def round2(value: float) -> float:
    """Half-up rounding to 2 decimals (2.345 -> 2.35)."""
    return round_half_up(value, 2)


def weekday_rate(weekday: int, working_hours: WorkingHours) -> float:
    if weekday == SUNDAY:
        return working_hours.sunday
    if weekday == SATURDAY:
        return working_hours.saturday
    return working_hours.weekday


def day_hours(day: CalendarDay, working_hours: WorkingHours) -> float:
    """
    Hours for one day, by state:
        Trabajo          -> weekday/saturday/sunday rate
        FestivoTrabajado -> holiday rate
        Guardia          -> hours already assigned
        anything else    -> 0
    """
    if day.state == DayState.TRABAJO:
        return weekday_rate(day.weekday, working_hours)
    if day.state == DayState.FESTIVO_TRABAJADO:
        return working_hours.holiday
    if day.state == DayState.GUARDIA:
        return day.hours_worked
    return 0.0


@dataclass(frozen=True)
class HoursOutput:
    days: list[CalendarDay]
    total_hours: float
    work_days_count: int  # Trabajo + FestivoTrabajado
    regular_work_days: int
    worked_holidays_count: int
    guardia_days_count: int
    guardia_hours: float
    average_hours_per_work_day: float


@stage("hours")
def apply_hours(days: Sequence[CalendarDay], working_hours: WorkingHours) -> HoursOutput:
    """
    Recompute hours for every day. Idempotent.

    average = total_hours / (work days + guardia days), 0 if none
    """
    if not days:
        raise StageError("El calendario está vacío")

    out: list[CalendarDay] = []
    total = guardia_total = 0.0
    regular = holidays = guardias = 0
    for day in days:
        hours = day_hours(day, working_hours)
        out.append(day if hours == day.hours_worked else replace(day, hours_worked=hours))
        total += hours
        if day.state == DayState.TRABAJO:
            regular += 1
        elif day.state == DayState.FESTIVO_TRABAJADO:
            holidays += 1
        elif day.state == DayState.GUARDIA:
            guardias += 1
            guardia_total += hours

    worked_days = regular + holidays + guardias
    average = total / worked_days if worked_days else 0.0
    return HoursOutput(
        days=out,
        total_hours=round2(total),
        work_days_count=regular + holidays,
        regular_work_days=regular,
        worked_holidays_count=holidays,
        guardia_days_count=guardias,
        guardia_hours=round2(guardia_total),
        average_hours_per_work_day=round2(average),
    )
