import logging
from datetime import date

import pytest

from workcal.domain import (AnnualContractHours, CalendarConfig, CycleDayType,
                            CycleOffset, DayState, EmploymentStatus,
                            ExtraShift, Guardia, Holiday, VacationPeriod,
                            WorkCycle, Year)
from workcal.pipeline import build_calendar
from workcal.results import InvariantViolation, Result, StageError, stage

MONDAY_TO_FRIDAY = (True, True, True, True, True, False, False)


def _on(days, d):
    return next(day for day in days if day.date == d)


# ---------------------------------------------------------------------------
# Stage boundary
# ---------------------------------------------------------------------------

def test_stage_turns_business_errors_into_failures():
    @stage("demo")
    def failing():
        raise StageError("nope")

    result = failing()
    assert not result.ok
    assert result.stage == "demo"
    assert result.error == "nope"
    with pytest.raises(StageError):
        result.unwrap()


def test_stage_logs_unexpected_errors(caplog):
    @stage("demo")
    def broken():
        raise KeyError("boom")

    with caplog.at_level(logging.ERROR, logger="workcal.results"):
        result = broken()
    assert not result.ok
    assert result.stage == "demo"
    assert "unexpected error" in caplog.text


def test_stage_reraises_invariant_violations():
    @stage("demo")
    def inconsistent():
        raise InvariantViolation("count mismatch")

    with pytest.raises(InvariantViolation):
        inconsistent()


def test_result_success():
    result = Result.success(3)
    assert result.ok
    assert result.unwrap() == 3


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def test_full_year_pipeline():
    config = CalendarConfig(
        year=Year(2025),
        cycle=WorkCycle.weekly(MONDAY_TO_FRIDAY),
        annual_contract_hours=AnnualContractHours(1762),
        holidays=(Holiday(date(2025, 1, 1), "Año Nuevo"), Holiday(date(2025, 12, 25), "Navidad")),
        vacations=(VacationPeriod(date(2025, 8, 4), date(2025, 8, 8)),),
        guardias=(Guardia(date(2025, 1, 4), 12),),
        extra_shifts=(ExtraShift(date(2025, 3, 3), 2),),
    )
    built = build_calendar(config).unwrap()

    assert len(built.days) == 365
    assert _on(built.days, date(2025, 1, 1)).state == DayState.FESTIVO_TRABAJADO
    assert _on(built.days, date(2025, 1, 4)).state == DayState.GUARDIA
    assert _on(built.days, date(2025, 8, 6)).state == DayState.VACACIONES

    stats = built.statistics
    assert stats.worked_days == 261 - 2 - 5
    assert stats.worked_holiday_days == 2
    assert stats.vacation_days == 5
    assert stats.guardia_days == 1
    assert built.hours.total_hours == 256 * 8 + 12
    assert stats.hours_balance.worked_hours == 256 * 8 + 12 + 2
    assert built.validation.valid
    assert set(built.stage_reports) == {
        "skeleton", "cycle", "vacations", "holidays", "guardias", "hours"
    }


def test_parts_cycle_with_offset_and_late_start():
    config = CalendarConfig(
        year=Year(2025),
        cycle=WorkCycle.from_parts([(6, 3), (6, 2)]),
        employment_status=EmploymentStatus.STARTED_THIS_YEAR,
        contract_start=date(2025, 3, 1),
        # ignored: the contract starts this year
        cycle_offset=CycleOffset(2, 1, CycleDayType.WORK),
        annual_contract_hours=AnnualContractHours(1752),
    )
    built = build_calendar(config).unwrap()
    assert built.statistics.not_contracted_days == 59
    assert built.statistics.effective_days == 306
    assert _on(built.days, date(2025, 3, 1)).metadata.part_number == 1
    assert built.validation.valid


def test_first_failing_stage_is_reported():
    config = CalendarConfig(
        year=Year(2025),
        cycle=WorkCycle.weekly(MONDAY_TO_FRIDAY),
        employment_status=EmploymentStatus.STARTED_THIS_YEAR,
    )
    result = build_calendar(config)
    assert not result.ok
    assert result.stage == "skeleton"
    assert "fecha de inicio" in result.error


def test_identical_inputs_give_identical_outputs():
    config = CalendarConfig(year=Year(2024), cycle=WorkCycle.from_parts([(4, 4)]))
    assert build_calendar(config).unwrap() == build_calendar(config).unwrap()
