from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from .calculations import round2
from .dates import mask_index, weekday_sunday_first
from .domain import (
    HOUR_STATES,
    WORKED_STATES,
    AnnualContractHours,
    CalendarDay,
    DayState,
    ExtraShift,
)
from .results import InvariantViolation, StageError, stage

logger = logging.getLogger(__name__)

# Monday-first, also the tie-break order for most/least worked weekday
WEEKDAY_NAMES = ("lunes", "martes", "miercoles", "jueves", "viernes", "sabado", "domingo")


class BalanceType(str, Enum):
    COMPANY_OWES = "empresa_debe"
    EMPLOYEE_OWES = "empleado_debe"
    BALANCED = "equilibrado"


class BalanceSeverity(str, Enum):
    CRITICAL = "critico"
    WARNING = "advertencia"
    OK = "ok"
    EXCELLENT = "excelente"


@dataclass(frozen=True)
class WeeklyDistribution:
    days_per_weekday: dict[str, int]
    percentages: dict[str, float]
    extra_shifts_per_weekday: dict[str, int]
    most_worked_weekday: str | None
    least_worked_weekday: str | None
    total_worked_days: int


@dataclass(frozen=True)
class HoursBalance:
    worked_hours: float
    annual_contract_hours: float
    contract_hours: float  # prorated target
    balance: float
    absolute_balance: float
    balance_type: BalanceType
    message: str
    equivalent_days: float
    fulfillment_percentage: float
    severity: BalanceSeverity


@dataclass(frozen=True)
class DayStatistics:
    worked_days: int
    rest_days: int
    vacation_days: int
    holiday_days: int
    worked_holiday_days: int
    guardia_days: int
    not_contracted_days: int
    null_days: int
    total_work_days: int
    total_non_work_days: int
    total_days: int
    effective_days: int
    work_percentage: float
    rest_percentage: float
    vacation_percentage: float
    total_hours: float
    extra_shift_hours: float
    extra_shifts_count: int
    monthly_hours: list[float]
    monthly_worked_days: list[int]
    monthly_extra_hours: list[float]
    weekly_distribution: WeeklyDistribution
    hours_balance: HoursBalance | None = None


def percentage(part: float, total: float) -> float:
    if total == 0:
        return 0.0
    return round2(part / total * 100)


def weekday_name(weekday: int) -> str:
    """Sunday-first index (0=Sunday) -> Spanish weekday name."""
    return WEEKDAY_NAMES[mask_index(weekday)]


# ---------------------------------------------------------------------------
# Weekly distribution
# ---------------------------------------------------------------------------

def calculate_weekly_distribution(
    days: Sequence[CalendarDay],
    extra_shifts: Iterable[ExtraShift] = (),
) -> WeeklyDistribution:
    """
    Worked days (Trabajo, FestivoTrabajado) per weekday. Guardias are not counted.
    Ties on most/least resolve to the first weekday from Monday.
    """
    counts = dict.fromkeys(WEEKDAY_NAMES, 0)
    for day in days:
        if day.state in WORKED_STATES:
            counts[weekday_name(day.weekday)] += 1

    extra_counts = dict.fromkeys(WEEKDAY_NAMES, 0)
    for shift in extra_shifts:
        extra_counts[weekday_name(weekday_sunday_first(shift.date))] += 1

    total = sum(counts.values())
    if total:
        most = max(WEEKDAY_NAMES, key=lambda name: counts[name])
        least = min(WEEKDAY_NAMES, key=lambda name: counts[name])
    else:
        most = least = None

    return WeeklyDistribution(
        days_per_weekday=counts,
        percentages={name: percentage(counts[name], total) for name in WEEKDAY_NAMES},
        extra_shifts_per_weekday=extra_counts,
        most_worked_weekday=most,
        least_worked_weekday=least,
        total_worked_days=total,
    )


# ---------------------------------------------------------------------------
# Hours balance
# ---------------------------------------------------------------------------

def prorate_contract_hours(annual_hours: float, effective_days: int, total_days: int) -> float:
    """
    Target hours for the contracted part of the year:
        annual_hours * effective_days / total_days
    """
    if total_days <= 0:
        raise ValueError(f"total_days must be > 0 (got {total_days})")
    if not 0 <= effective_days <= total_days:
        raise ValueError(f"effective_days must be in 0..{total_days} (got {effective_days})")
    return round2(annual_hours * effective_days / total_days)


def balance_severity(balance: float) -> BalanceSeverity:
    if balance < -100:
        return BalanceSeverity.CRITICAL
    if balance < 0:
        return BalanceSeverity.WARNING
    if balance <= 100:
        return BalanceSeverity.OK
    return BalanceSeverity.EXCELLENT


def calculate_hours_balance(
    worked_hours: float,
    annual_contract_hours: AnnualContractHours | float,
    effective_days: int,
    total_days: int,
    hours_per_day: float = 8.0,
) -> HoursBalance:
    """
    saldo = worked_hours - prorated target
    equivalent_days = |saldo| / hours_per_day
    fulfillment = worked_hours / prorated target * 100
    """
    if hours_per_day <= 0:
        raise ValueError(f"hours_per_day must be > 0 (got {hours_per_day})")
    if isinstance(annual_contract_hours, AnnualContractHours):
        annual = annual_contract_hours.hours
    else:
        annual = float(annual_contract_hours)

    target = prorate_contract_hours(annual, effective_days, total_days)
    balance = round2(worked_hours - target)
    absolute = abs(balance)

    if balance > 0:
        balance_type = BalanceType.COMPANY_OWES
        message = f"La empresa te debe {absolute:.2f} horas"
    elif balance < 0:
        balance_type = BalanceType.EMPLOYEE_OWES
        message = f"Debes {absolute:.2f} horas"
    else:
        balance_type = BalanceType.BALANCED
        message = "Horas equilibradas"

    return HoursBalance(
        worked_hours=round2(worked_hours),
        annual_contract_hours=annual,
        contract_hours=target,
        balance=balance,
        absolute_balance=absolute,
        balance_type=balance_type,
        message=message,
        equivalent_days=round2(absolute / hours_per_day),
        fulfillment_percentage=percentage(worked_hours, target),
        severity=balance_severity(balance),
    )


# ---------------------------------------------------------------------------
# Day statistics
# ---------------------------------------------------------------------------

@stage("statistics")
def calculate_statistics(
    days: Sequence[CalendarDay],
    annual_contract_hours: AnnualContractHours | float | None = None,
    hours_per_day: float = 8.0,
    extra_shifts: Iterable[ExtraShift] = (),
) -> DayStatistics:
    if not days:
        raise StageError("No se proporcionaron días para calcular estadísticas")

    counts: Counter[DayState | None] = Counter()
    monthly_hours = [0.0] * 12
    monthly_worked = [0] * 12
    total_hours = 0.0
    for day in days:
        counts[day.state] += 1
        total_hours += day.hours_worked
        monthly_hours[day.month - 1] += day.hours_worked
        if day.state in HOUR_STATES:
            monthly_worked[day.month - 1] += 1

    total_days = len(days)
    counted = sum(counts[state] for state in DayState)
    if counted + counts[None] != total_days:
        raise InvariantViolation(
            f"day count mismatch: {counted} with state + {counts[None]} without state, "
            f"but the calendar holds {total_days}"
        )

    calendar_dates = {d.date for d in days}
    shifts: list[ExtraShift] = []
    for shift in extra_shifts:
        if shift.date in calendar_dates:
            shifts.append(shift)
        else:
            logger.info("extra shift on %s outside the calendar, ignored", shift.date.isoformat())
    monthly_extra = [0.0] * 12
    for shift in shifts:
        monthly_extra[shift.date.month - 1] += shift.hours
    extra_hours = sum(s.hours for s in shifts)

    worked = counts[DayState.TRABAJO]
    worked_holidays = counts[DayState.FESTIVO_TRABAJADO]
    guardia = counts[DayState.GUARDIA]
    rest = counts[DayState.DESCANSO]
    vacation = counts[DayState.VACACIONES]
    holidays = counts[DayState.FESTIVO]
    not_contracted = counts[DayState.NO_CONTRATADO]

    work_days_total = worked + guardia + worked_holidays
    effective = total_days - not_contracted

    balance = None
    if annual_contract_hours is not None:
        balance = calculate_hours_balance(
            worked_hours=total_hours + extra_hours,
            annual_contract_hours=annual_contract_hours,
            effective_days=effective,
            total_days=total_days,
            hours_per_day=hours_per_day,
        )

    return DayStatistics(
        worked_days=worked,
        rest_days=rest,
        vacation_days=vacation,
        holiday_days=holidays,
        worked_holiday_days=worked_holidays,
        guardia_days=guardia,
        not_contracted_days=not_contracted,
        null_days=counts[None],
        total_work_days=work_days_total,
        total_non_work_days=rest + vacation + holidays,
        total_days=total_days,
        effective_days=effective,
        work_percentage=percentage(worked + worked_holidays, effective),
        rest_percentage=percentage(rest, effective),
        vacation_percentage=percentage(vacation, effective),
        total_hours=round2(total_hours),
        extra_shift_hours=round2(extra_hours),
        extra_shifts_count=len(shifts),
        monthly_hours=[round2(h) for h in monthly_hours],
        monthly_worked_days=monthly_worked,
        monthly_extra_hours=[round2(h) for h in monthly_extra],
        weekly_distribution=calculate_weekly_distribution(days, shifts),
        hours_balance=balance,
    )
