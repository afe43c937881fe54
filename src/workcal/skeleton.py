from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date

from .dates import days_in_month, iso_week_number, weekday_sunday_first
from .domain import CalendarDay, DayState, EmploymentStatus, Year
from .results import InvariantViolation, StageError, stage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkeletonOutput:
    days: list[CalendarDay]
    total_days: int
    not_contracted_days: int


def _blank_day(day: date) -> CalendarDay:
    return CalendarDay(
        date=day,
        weekday=weekday_sunday_first(day),
        iso_week=iso_week_number(day),
        month=day.month,
        day_of_month=day.day,
    )


@stage("skeleton")
def generate_calendar(
    year: Year,
    employment_status: EmploymentStatus | None = None,
    contract_start: date | None = None,
) -> SkeletonOutput:
    """
    One blank day per date of the year.
    With STARTED_THIS_YEAR, days strictly before contract_start are NoContratado.
    """
    if employment_status == EmploymentStatus.STARTED_THIS_YEAR:
        if contract_start is None:
            raise StageError("Falta la fecha de inicio de contrato")
        if not year.contains(contract_start):
            raise StageError(
                f"La fecha de inicio de contrato {contract_start.isoformat()} "
                f"no pertenece al año {year.value}"
            )
        cutoff = contract_start
    else:
        cutoff = None

    days: list[CalendarDay] = []
    not_contracted = 0
    for month in range(1, 13):
        for dom in range(1, days_in_month(year.value, month) + 1):
            day = _blank_day(date(year.value, month, dom))
            if cutoff is not None and day.date < cutoff:
                day = replace(day, state=DayState.NO_CONTRATADO, hours_worked=0.0)
                not_contracted += 1
            days.append(day)

    if len(days) != year.total_days:
        raise InvariantViolation(
            f"generated {len(days)} days for {year.value}, expected {year.total_days}"
        )

    logger.debug("skeleton %s: %d days, %d not contracted", year.value, len(days), not_contracted)
    return SkeletonOutput(days=days, total_days=len(days), not_contracted_days=not_contracted)
