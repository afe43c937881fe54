from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .domain import (
    AnnualContractHours,
    CalendarConfig,
    CycleDayType,
    CycleMode,
    CycleOffset,
    CyclePart,
    DayState,
    EmploymentStatus,
    ExtraShift,
    Guardia,
    Holiday,
    HolidayPolicy,
    HolidayPolicyMode,
    VacationPeriod,
    WorkCycle,
    WorkingHours,
    Year,
)
from .pipeline import CalendarResult
from .statistics import BalanceSeverity, BalanceType
from .validation import ConfigurationDraft, SectionStatus

# ---------------------------------------------------------------------------
# Configuration (in)
# ---------------------------------------------------------------------------

class CyclePartIn(BaseModel):
    work_days: int = Field(gt=0)
    rest_days: int = Field(gt=0)


class WorkCycleIn(BaseModel):
    mode: CycleMode
    weekly_mask: list[bool] | None = None
    parts: list[CyclePartIn] | None = None

    def to_domain(self) -> WorkCycle:
        if self.mode == CycleMode.WEEKLY:
            return WorkCycle.weekly(self.weekly_mask or [])
        return WorkCycle.from_parts(
            CyclePart(p.work_days, p.rest_days) for p in (self.parts or [])
        )


class CycleOffsetIn(BaseModel):
    part_number: int = Field(ge=1)
    day_within_part: int = Field(ge=1)
    day_type: CycleDayType

    def to_domain(self) -> CycleOffset:
        return CycleOffset(self.part_number, self.day_within_part, self.day_type)


class WorkingHoursIn(BaseModel):
    weekday: float = Field(default=8.0, ge=0, le=24)
    saturday: float = Field(default=8.0, ge=0, le=24)
    sunday: float = Field(default=8.0, ge=0, le=24)
    holiday: float = Field(default=8.0, ge=0, le=24)

    def to_domain(self) -> WorkingHours:
        return WorkingHours.from_dict(self.model_dump())


class HolidayIn(BaseModel):
    date: date
    name: str | None = None


class VacationIn(BaseModel):
    start: date
    end: date
    description: str | None = None


class GuardiaIn(BaseModel):
    date: date
    hours: float = Field(gt=0, le=24)
    description: str | None = None


class ExtraShiftIn(BaseModel):
    date: date
    hours: float = Field(gt=0, le=24)
    description: str | None = None


class HolidayPolicyIn(BaseModel):
    mode: HolidayPolicyMode = HolidayPolicyMode.AUTO_DETECT
    respect_holidays: bool = False
    worked_dates: list[date] = Field(default_factory=list)

    def to_domain(self) -> HolidayPolicy:
        return HolidayPolicy(
            mode=self.mode,
            respect_holidays=self.respect_holidays,
            worked_dates=frozenset(self.worked_dates),
        )


class ConfigurationDraftIn(BaseModel):
    """Configuration as typed so far. Any section may be missing."""

    year: int | None = None
    cycle: WorkCycleIn | None = None
    employment_status: EmploymentStatus | None = None
    contract_start: date | None = None
    cycle_offset: CycleOffsetIn | None = None
    working_hours: WorkingHoursIn | None = None
    annual_contract_hours: float | None = Field(default=None, gt=0)
    holidays: list[HolidayIn] = Field(default_factory=list)
    vacations: list[VacationIn] = Field(default_factory=list)
    guardias: list[GuardiaIn] = Field(default_factory=list)
    extra_shifts: list[ExtraShiftIn] = Field(default_factory=list)
    holiday_policy: HolidayPolicyIn = Field(default_factory=HolidayPolicyIn)

    def _year(self, today: date, past: int, future: int) -> Year | None:
        if self.year is None:
            return None
        return Year.within_window(self.year, today=today, past=past, future=future)

    def _collections(self) -> dict[str, tuple]:
        return {
            "holidays": tuple(Holiday(h.date, h.name) for h in self.holidays),
            "vacations": tuple(
                VacationPeriod(v.start, v.end, v.description) for v in self.vacations
            ),
            "guardias": tuple(Guardia(g.date, g.hours, g.description) for g in self.guardias),
        }

    def to_draft(self, *, today: date, past: int = 2, future: int = 5) -> ConfigurationDraft:
        """Raises ValueError on a malformed section."""
        return ConfigurationDraft(
            year=self._year(today, past, future),
            cycle=self.cycle.to_domain() if self.cycle else None,
            employment_status=self.employment_status,
            contract_start=self.contract_start,
            cycle_offset=self.cycle_offset.to_domain() if self.cycle_offset else None,
            working_hours=self.working_hours.to_domain() if self.working_hours else None,
            annual_contract_hours=(
                AnnualContractHours(self.annual_contract_hours)
                if self.annual_contract_hours is not None
                else None
            ),
            **self._collections(),
        )


class CalendarConfigIn(ConfigurationDraftIn):
    year: int
    cycle: WorkCycleIn
    working_hours: WorkingHoursIn = Field(default_factory=WorkingHoursIn)

    def to_domain(self, *, today: date, past: int = 2, future: int = 5) -> CalendarConfig:
        """Raises ValueError on a malformed section."""
        return CalendarConfig(
            year=self._year(today, past, future),
            cycle=self.cycle.to_domain(),
            employment_status=self.employment_status,
            contract_start=self.contract_start,
            cycle_offset=self.cycle_offset.to_domain() if self.cycle_offset else None,
            working_hours=self.working_hours.to_domain(),
            annual_contract_hours=(
                AnnualContractHours(self.annual_contract_hours)
                if self.annual_contract_hours is not None
                else None
            ),
            extra_shifts=tuple(
                ExtraShift(s.date, s.hours, s.description) for s in self.extra_shifts
            ),
            holiday_policy=self.holiday_policy.to_domain(),
            **self._collections(),
        )


# ---------------------------------------------------------------------------
# Results (out)
# ---------------------------------------------------------------------------

class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CycleMetadataOut(_FromAttributes):
    part_number: int
    day_within_part: int
    day_type: CycleDayType


class CalendarDayOut(_FromAttributes):
    date: date
    weekday: int
    iso_week: int
    month: int
    day_of_month: int
    state: DayState | None
    hours_worked: float
    description: str | None = None
    metadata: CycleMetadataOut | None = None


class HoursSummaryOut(_FromAttributes):
    total_hours: float
    work_days_count: int
    regular_work_days: int
    worked_holidays_count: int
    guardia_days_count: int
    guardia_hours: float
    average_hours_per_work_day: float


class WeeklyDistributionOut(_FromAttributes):
    days_per_weekday: dict[str, int]
    percentages: dict[str, float]
    extra_shifts_per_weekday: dict[str, int]
    most_worked_weekday: str | None
    least_worked_weekday: str | None
    total_worked_days: int


class HoursBalanceOut(_FromAttributes):
    worked_hours: float
    annual_contract_hours: float
    contract_hours: float
    balance: float
    absolute_balance: float
    balance_type: BalanceType
    message: str
    equivalent_days: float
    fulfillment_percentage: float
    severity: BalanceSeverity


class DayStatisticsOut(_FromAttributes):
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
    weekly_distribution: WeeklyDistributionOut
    hours_balance: HoursBalanceOut | None = None


class ValidationReportOut(_FromAttributes):
    valid: bool
    errors: list[str]
    warnings: list[str]


class CalendarOut(BaseModel):
    year: int
    hours: HoursSummaryOut
    statistics: DayStatisticsOut
    validation: ValidationReportOut
    stage_reports: dict[str, dict[str, Any]]
    days: list[CalendarDayOut] | None = None

    @classmethod
    def from_result(cls, year: int, built: CalendarResult, *, include_days: bool = True) -> CalendarOut:
        return cls(
            year=year,
            hours=HoursSummaryOut.model_validate(built.hours),
            statistics=DayStatisticsOut.model_validate(built.statistics),
            validation=ValidationReportOut.model_validate(built.validation),
            stage_reports={name: stage_summary(out) for name, out in built.stage_reports.items()},
            days=[CalendarDayOut.model_validate(d) for d in built.days] if include_days else None,
        )


class StageFailureOut(BaseModel):
    stage: str | None
    message: str


class SectionReportOut(_FromAttributes):
    field: str
    status: SectionStatus
    message: str | None = None


class ConfigurationReportOut(_FromAttributes):
    is_valid: bool
    is_complete: bool
    can_generate: bool
    completed_sections: int
    total_sections: int
    sections: list[SectionReportOut]
    warnings: list[str]


def stage_summary(output: Any) -> dict[str, Any]:
    """Stage counters without the day array."""
    if not is_dataclass(output):
        return {}
    return {f.name: getattr(output, f.name) for f in fields(output) if f.name != "days"}


# ---------------------------------------------------------------------------
# Saved configurations
# ---------------------------------------------------------------------------

class SavedConfigurationIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    config: CalendarConfigIn


class SavedConfigurationOut(_FromAttributes):
    id: int
    name: str
    version: str
    year: int
    payload: dict[str, Any]
    saved_at: datetime
    updated_at: datetime
