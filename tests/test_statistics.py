from dataclasses import replace
from datetime import date

import pytest

from workcal.calculations import apply_hours
from workcal.domain import (AnnualContractHours, CalendarDay, DayState,
                            ExtraShift, WorkingHours)
from workcal.results import InvariantViolation
from workcal.statistics import (BalanceSeverity, BalanceType,
                                calculate_hours_balance, calculate_statistics,
                                calculate_weekly_distribution,
                                prorate_contract_hours)


@pytest.fixture
def hours_2025(weekly_2025):
    return apply_hours(weekly_2025, WorkingHours()).unwrap().days


def test_full_year_statistics(hours_2025):
    stats = calculate_statistics(hours_2025).unwrap()
    assert stats.worked_days == 261
    assert stats.rest_days == 104
    assert stats.total_work_days == 261
    assert stats.total_non_work_days == 104
    assert stats.total_days == 365
    assert stats.effective_days == 365
    assert stats.work_percentage == 71.51
    assert stats.rest_percentage == 28.49
    assert stats.vacation_percentage == 0
    assert stats.total_hours == 2088
    assert stats.monthly_worked_days[0] == 23
    assert stats.monthly_hours[0] == 184
    assert stats.hours_balance is None


def test_guardia_counts_as_laborable_but_not_in_weekly_distribution(hours_2025):
    days = [
        replace(d, state=DayState.GUARDIA, hours_worked=12) if d.date == date(2025, 1, 4) else d
        for d in hours_2025
    ]
    stats = calculate_statistics(days).unwrap()
    assert stats.guardia_days == 1
    assert stats.total_work_days == 262
    # a guardia is laborable but not a worked day
    assert stats.work_percentage == 71.51
    assert stats.monthly_worked_days[0] == 24
    assert stats.weekly_distribution.days_per_weekday["sabado"] == 0


def test_not_contracted_days_shrink_effective_days(hours_2025):
    days = [
        replace(d, state=DayState.NO_CONTRATADO, hours_worked=0) if d.month <= 2 else d
        for d in hours_2025
    ]
    stats = calculate_statistics(days, annual_contract_hours=AnnualContractHours(1752)).unwrap()
    assert stats.not_contracted_days == 59
    assert stats.effective_days == 306
    assert stats.hours_balance.contract_hours == pytest.approx(1752 * 306 / 365, abs=0.01)


def test_no_effective_days_gives_zero_percentages(hours_2025):
    days = [replace(d, state=DayState.NO_CONTRATADO, hours_worked=0) for d in hours_2025]
    stats = calculate_statistics(days).unwrap()
    assert stats.effective_days == 0
    assert stats.work_percentage == 0
    assert stats.rest_percentage == 0


def test_unknown_state_breaks_the_count(hours_2025):
    days = list(hours_2025)
    days[10] = replace(days[10], state="Baja")
    with pytest.raises(InvariantViolation):
        calculate_statistics(days)


def test_statistics_fail_on_empty_calendar():
    result = calculate_statistics([])
    assert not result.ok
    assert result.stage == "statistics"


def test_extra_shifts_are_added_to_worked_hours(hours_2025):
    shifts = [
        ExtraShift(date(2025, 3, 3), 4),   # Monday
        ExtraShift(date(2025, 3, 8), 2.5),  # Saturday
        ExtraShift(date(2026, 1, 1), 8),   # ignored
    ]
    stats = calculate_statistics(
        hours_2025, annual_contract_hours=2000, extra_shifts=shifts
    ).unwrap()
    assert stats.extra_shifts_count == 2
    assert stats.extra_shift_hours == 6.5
    assert stats.monthly_extra_hours[2] == 6.5
    assert stats.weekly_distribution.extra_shifts_per_weekday["lunes"] == 1
    assert stats.weekly_distribution.extra_shifts_per_weekday["sabado"] == 1
    # calendar hours stay untouched, the balance sees both
    assert stats.total_hours == 2088
    assert stats.hours_balance.worked_hours == 2094.5


# ---------------------------------------------------------------------------
# Weekly distribution
# ---------------------------------------------------------------------------

def _worked(d: date) -> CalendarDay:
    return CalendarDay(
        date=d,
        weekday=(d.weekday() + 1) % 7,
        iso_week=d.isocalendar()[1],
        month=d.month,
        day_of_month=d.day,
        state=DayState.TRABAJO,
        hours_worked=8,
    )


def test_weekly_tie_resolves_to_monday():
    days = [_worked(date(2025, 1, 6)), _worked(date(2025, 1, 7))]  # Monday, Tuesday
    dist = calculate_weekly_distribution(days)
    assert dist.most_worked_weekday == "lunes"
    assert dist.least_worked_weekday == "miercoles"
    assert dist.percentages["lunes"] == 50
    assert dist.total_worked_days == 2


def test_weekly_distribution_without_work():
    dist = calculate_weekly_distribution([])
    assert dist.most_worked_weekday is None
    assert dist.least_worked_weekday is None
    assert all(p == 0 for p in dist.percentages.values())


def test_extra_shifts_per_weekday_follow_calendar_weekdays():
    shifts = [ExtraShift(date(2025, 3, 9), 3), ExtraShift(date(2025, 3, 10), 3)]  # Sunday, Monday
    dist = calculate_weekly_distribution([], shifts)
    assert dist.extra_shifts_per_weekday["domingo"] == 1
    assert dist.extra_shifts_per_weekday["lunes"] == 1
    assert dist.extra_shifts_per_weekday["sabado"] == 0


def test_weekly_distribution_full_year(hours_2025):
    dist = calculate_weekly_distribution(hours_2025)
    assert dist.days_per_weekday["miercoles"] == 53
    assert dist.days_per_weekday["domingo"] == 0
    assert dist.most_worked_weekday == "miercoles"
    assert dist.least_worked_weekday == "sabado"


# ---------------------------------------------------------------------------
# Hours balance
# ---------------------------------------------------------------------------

def test_balance_company_owes():
    balance = calculate_hours_balance(1800, 1600, effective_days=365, total_days=365)
    assert balance.balance == 200
    assert balance.balance_type == BalanceType.COMPANY_OWES
    assert balance.severity == BalanceSeverity.EXCELLENT
    assert balance.equivalent_days == 25
    assert balance.message == "La empresa te debe 200.00 horas"
    assert balance.fulfillment_percentage == 112.5


def test_balance_employee_owes():
    balance = calculate_hours_balance(1550, AnnualContractHours(1600), 365, 365)
    assert balance.balance == -50
    assert balance.absolute_balance == 50
    assert balance.balance_type == BalanceType.EMPLOYEE_OWES
    assert balance.severity == BalanceSeverity.WARNING
    assert balance.message == "Debes 50.00 horas"


@pytest.mark.parametrize(
    "worked, severity",
    [
        (1450, BalanceSeverity.CRITICAL),
        (1500, BalanceSeverity.WARNING),
        (1600, BalanceSeverity.OK),
        (1700, BalanceSeverity.OK),
        (1700.5, BalanceSeverity.EXCELLENT),
    ],
)
def test_balance_severity_thresholds(worked, severity):
    assert calculate_hours_balance(worked, 1600, 365, 365).severity == severity


def test_balanced_hours():
    balance = calculate_hours_balance(1600, 1600, 365, 365)
    assert balance.balance_type == BalanceType.BALANCED
    assert balance.message == "Horas equilibradas"
    assert balance.equivalent_days == 0


def test_prorated_contract_hours():
    assert prorate_contract_hours(1752, 183, 365) == pytest.approx(1752 * 183 / 365)
    assert prorate_contract_hours(1752, 365, 365) == 1752
    with pytest.raises(ValueError):
        prorate_contract_hours(1752, 10, 0)
