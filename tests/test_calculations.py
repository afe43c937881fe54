from datetime import date

import pytest

from workcal.calculations import apply_hours, day_hours, round2
from workcal.domain import CalendarDay, DayState, Guardia, Holiday, WorkingHours
from workcal.overlays import apply_guardias, apply_holidays

HOURS = WorkingHours(weekday=8, saturday=6, sunday=4, holiday=10)


def _day(d: date, state, hours=0.0) -> CalendarDay:
    return CalendarDay(
        date=d,
        weekday=(d.weekday() + 1) % 7,
        iso_week=d.isocalendar()[1],
        month=d.month,
        day_of_month=d.day,
        state=state,
        hours_worked=hours,
    )


def test_round2_half_up():
    assert round2(1.005) == 1.01
    assert round2(9.333333) == 9.33


@pytest.mark.parametrize(
    "d, state, expected",
    [
        (date(2025, 1, 6), DayState.TRABAJO, 8),   # Monday
        (date(2025, 1, 4), DayState.TRABAJO, 6),   # Saturday
        (date(2025, 1, 5), DayState.TRABAJO, 4),   # Sunday
        (date(2025, 1, 5), DayState.FESTIVO_TRABAJADO, 10),
        (date(2025, 1, 6), DayState.DESCANSO, 0),
        (date(2025, 1, 6), DayState.VACACIONES, 0),
        (date(2025, 1, 6), DayState.FESTIVO, 0),
        (date(2025, 1, 6), DayState.NO_CONTRATADO, 0),
        (date(2025, 1, 6), None, 0),
    ],
)
def test_day_hours_by_state(d, state, expected):
    assert day_hours(_day(d, state), HOURS) == expected


def test_guardia_hours_are_never_recalculated():
    assert day_hours(_day(date(2025, 1, 4), DayState.GUARDIA, 12.5), HOURS) == 12.5


def test_apply_hours_aggregates():
    days = [
        _day(date(2025, 1, 6), DayState.TRABAJO),
        _day(date(2025, 1, 7), DayState.TRABAJO),
        _day(date(2025, 1, 8), DayState.FESTIVO_TRABAJADO),
        _day(date(2025, 1, 11), DayState.GUARDIA, 12),
        _day(date(2025, 1, 12), DayState.DESCANSO),
    ]
    out = apply_hours(days, HOURS).unwrap()
    assert out.total_hours == 38
    assert out.work_days_count == 3
    assert out.regular_work_days == 2
    assert out.worked_holidays_count == 1
    assert out.guardia_days_count == 1
    assert out.guardia_hours == 12
    # 38 h over 4 worked days
    assert out.average_hours_per_work_day == 9.5


def test_apply_hours_without_worked_days():
    out = apply_hours([_day(date(2025, 1, 6), DayState.DESCANSO)], HOURS).unwrap()
    assert out.total_hours == 0
    assert out.average_hours_per_work_day == 0


def test_apply_hours_fails_on_empty_calendar():
    result = apply_hours([], HOURS)
    assert not result.ok
    assert result.stage == "hours"


def test_apply_hours_is_idempotent(weekly_2025):
    days = apply_holidays(weekly_2025, [Holiday(date(2025, 1, 1))], HOURS).unwrap().days
    days = apply_guardias(days, [Guardia(date(2025, 1, 4), 12)]).unwrap().days
    first = apply_hours(days, HOURS).unwrap()
    second = apply_hours(first.days, HOURS).unwrap()
    assert second.days == first.days
    assert second.total_hours == first.total_hours
    # 260 weekdays at 8 h + New Year at 10 h + one guardia
    assert first.total_hours == 260 * 8 + 10 + 12
