from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Sequence

from .domain import (
    GUARDIA_ELIGIBLE_STATES,
    HOLIDAY_BLOCKING_STATES,
    CalendarDay,
    DayState,
    Guardia,
    Holiday,
    HolidayPolicy,
    HolidayPolicyMode,
    VacationPeriod,
    WorkingHours,
    round_half_up,
)
from .results import stage

logger = logging.getLogger(__name__)

NULL_STATE_KEY = "null"


def _state_key(state: DayState | None) -> str:
    return NULL_STATE_KEY if state is None else state.value


def _index_by_date(days: Sequence[CalendarDay]) -> dict[date, int]:
    return {d.date: i for i, d in enumerate(days)}


# ---------------------------------------------------------------------------
# Vacations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VacationOutput:
    days: list[CalendarDay]
    days_marked: int  # counts every application, overlapping periods count twice
    periods_processed: int
    previous_states: dict[str, int] = field(default_factory=dict)


@stage("vacations")
def apply_vacations(
    days: Sequence[CalendarDay],
    periods: Sequence[VacationPeriod],
) -> VacationOutput:
    out = list(days)
    index = _index_by_date(out)
    marked = 0
    previous: Counter[str] = Counter()

    for period in periods:
        for day_date in period.dates():
            i = index.get(day_date)
            if i is None:
                continue
            current = out[i]
            if current.state == DayState.NO_CONTRATADO:
                continue
            previous[_state_key(current.state)] += 1
            out[i] = replace(
                current,
                state=DayState.VACACIONES,
                hours_worked=0.0,
                description=period.description or current.description,
            )
            marked += 1

    return VacationOutput(
        days=out,
        days_marked=marked,
        periods_processed=len(periods),
        previous_states=dict(previous),
    )


# ---------------------------------------------------------------------------
# Holidays
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HolidayOutput:
    days: list[CalendarDay]
    holiday_days_marked: int
    worked_holiday_days_marked: int
    holidays_processed: int
    holidays_skipped: int
    previous_states: dict[str, int] = field(default_factory=dict)


def is_holiday_worked(
    holiday: Holiday,
    current: DayState | None,
    policy: HolidayPolicy,
) -> bool:
    if policy.mode == HolidayPolicyMode.EXPLICIT_FLAG:
        return holiday.date in policy.worked_dates
    if policy.respect_holidays:
        return False
    # a duplicate entry finds the day already FestivoTrabajado
    return current in (DayState.TRABAJO, DayState.FESTIVO_TRABAJADO)


@stage("holidays")
def apply_holidays(
    days: Sequence[CalendarDay],
    holidays: Sequence[Holiday],
    working_hours: WorkingHours,
    policy: HolidayPolicy | None = None,
) -> HolidayOutput:
    """
    Mark holidays as Festivo (0 h) or FestivoTrabajado (holiday rate).
    NoContratado and Vacaciones days keep their state.
    """
    policy = policy or HolidayPolicy()
    out = list(days)
    index = _index_by_date(out)
    marked = worked = skipped = 0
    previous: Counter[str] = Counter()

    for holiday in holidays:
        i = index.get(holiday.date)
        if i is None:
            logger.info("holiday %s outside the calendar, skipped", holiday.date.isoformat())
            skipped += 1
            continue
        current = out[i]
        if current.state in HOLIDAY_BLOCKING_STATES:
            skipped += 1
            continue

        previous[_state_key(current.state)] += 1
        if is_holiday_worked(holiday, current.state, policy):
            state, hours = DayState.FESTIVO_TRABAJADO, working_hours.holiday
            worked += 1
        else:
            state, hours = DayState.FESTIVO, 0.0
            marked += 1
        out[i] = replace(
            current,
            state=state,
            hours_worked=hours,
            description=holiday.name or current.description,
        )

    return HolidayOutput(
        days=out,
        holiday_days_marked=marked,
        worked_holiday_days_marked=worked,
        holidays_processed=len(holidays),
        holidays_skipped=skipped,
        previous_states=dict(previous),
    )


# ---------------------------------------------------------------------------
# Guardias
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GuardiaOutput:
    days: list[CalendarDay]
    guardia_days_marked: int
    guardias_processed: int
    total_guardia_hours: float
    skipped: int
    previous_states: dict[str, int] = field(default_factory=dict)


@stage("guardias")
def apply_guardias(
    days: Sequence[CalendarDay],
    guardias: Sequence[Guardia],
) -> GuardiaOutput:
    """
    Guardias only land on rest or holiday days.
    Any other state (or a missing date) skips the guardia.
    """
    out = list(days)
    index = _index_by_date(out)
    marked = skipped = 0
    total_hours = 0.0
    previous: Counter[str] = Counter()

    for guardia in guardias:
        i = index.get(guardia.date)
        if i is None or out[i].state not in GUARDIA_ELIGIBLE_STATES:
            state = None if i is None else out[i].state
            logger.warning(
                "guardia on %s skipped (day state: %s)",
                guardia.date.isoformat(),
                _state_key(state),
            )
            skipped += 1
            continue
        current = out[i]
        previous[_state_key(current.state)] += 1
        out[i] = replace(
            current,
            state=DayState.GUARDIA,
            hours_worked=guardia.hours,
            description=guardia.description or current.description,
        )
        marked += 1
        total_hours += guardia.hours

    return GuardiaOutput(
        days=out,
        guardia_days_marked=marked,
        guardias_processed=len(guardias),
        total_guardia_hours=round_half_up(total_hours),
        skipped=skipped,
        previous_states=dict(previous),
    )
