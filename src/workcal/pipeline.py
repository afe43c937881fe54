from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .calculations import HoursOutput, apply_hours
from .cycles import apply_cycle
from .domain import CalendarConfig, CalendarDay, EmploymentStatus
from .overlays import apply_guardias, apply_holidays, apply_vacations
from .results import Result
from .skeleton import generate_calendar
from .statistics import DayStatistics, calculate_statistics
from .validation import ValidationReport, validate_calendar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarResult:
    days: list[CalendarDay]
    hours: HoursOutput
    statistics: DayStatistics
    validation: ValidationReport
    stage_reports: dict[str, Any] = field(default_factory=dict)


def build_calendar(config: CalendarConfig, *, hours_per_day: float = 8.0) -> Result[CalendarResult]:
    """
    skeleton -> cycle -> vacations -> holidays -> guardias -> hours
    -> statistics + validation

    The first failing stage stops the run and its failure is returned as is.
    """
    started = config.employment_status == EmploymentStatus.STARTED_THIS_YEAR
    contract_start = config.contract_start if started else None
    # the offset only describes a contract running before Jan 1
    offset = None if started else config.cycle_offset
    reports: dict[str, Any] = {}

    skeleton = generate_calendar(config.year, config.employment_status, contract_start)
    if not skeleton.ok:
        return skeleton
    reports["skeleton"] = skeleton.value
    days = skeleton.value.days

    steps = (
        ("cycle", lambda d: apply_cycle(d, config.cycle, offset, contract_start)),
        ("vacations", lambda d: apply_vacations(d, config.vacations)),
        (
            "holidays",
            lambda d: apply_holidays(d, config.holidays, config.working_hours, config.holiday_policy),
        ),
        ("guardias", lambda d: apply_guardias(d, config.guardias)),
        ("hours", lambda d: apply_hours(d, config.working_hours)),
    )
    for name, run in steps:
        result = run(days)
        if not result.ok:
            logger.info("calendar %s stopped at %s: %s", config.year.value, result.stage, result.error)
            return result
        reports[name] = result.value
        days = result.value.days

    stats = calculate_statistics(
        days,
        annual_contract_hours=config.annual_contract_hours,
        hours_per_day=hours_per_day,
        extra_shifts=config.extra_shifts,
    )
    if not stats.ok:
        return stats

    validation = validate_calendar(
        days,
        config.year,
        contract_start=contract_start,
        vacations=config.vacations,
        holidays=config.holidays,
        holiday_policy=config.holiday_policy,
    )
    if not validation.ok:
        return validation

    logger.debug(
        "calendar %s built: %s h, valid=%s",
        config.year.value,
        reports["hours"].total_hours,
        validation.value.valid,
    )
    return Result.success(
        CalendarResult(
            days=days,
            hours=reports["hours"],
            statistics=stats.value,
            validation=validation.value,
            stage_reports=reports,
        )
    )
