from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Iterator

from .dates import days_in_year

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DayState(str, Enum):
    NO_CONTRATADO = "NoContratado"
    VACACIONES = "Vacaciones"
    GUARDIA = "Guardia"
    FESTIVO = "Festivo"
    FESTIVO_TRABAJADO = "FestivoTrabajado"
    DESCANSO = "Descanso"
    TRABAJO = "Trabajo"

    @property
    def priority(self) -> int:
        return STATE_PRIORITY[self]

    def outranks(self, other: DayState | None) -> bool:
        if other is None:
            return True
        return self.priority > other.priority


# Higher wins. Festivo and FestivoTrabajado share a level.
STATE_PRIORITY: dict[DayState, int] = {
    DayState.NO_CONTRATADO: 6,
    DayState.VACACIONES: 5,
    DayState.GUARDIA: 4,
    DayState.FESTIVO: 3,
    DayState.FESTIVO_TRABAJADO: 3,
    DayState.DESCANSO: 2,
    DayState.TRABAJO: 1,
}

ZERO_HOUR_STATES = frozenset(
    {DayState.NO_CONTRATADO, DayState.DESCANSO, DayState.VACACIONES, DayState.FESTIVO}
)
HOUR_STATES = frozenset({DayState.TRABAJO, DayState.FESTIVO_TRABAJADO, DayState.GUARDIA})
WORKED_STATES = frozenset({DayState.TRABAJO, DayState.FESTIVO_TRABAJADO})
GUARDIA_ELIGIBLE_STATES = frozenset(
    {DayState.DESCANSO, DayState.FESTIVO, DayState.FESTIVO_TRABAJADO}
)
HOLIDAY_BLOCKING_STATES = frozenset({DayState.NO_CONTRATADO, DayState.VACACIONES})


class CycleMode(str, Enum):
    WEEKLY = "WEEKLY"
    PARTS = "PARTS"


class CycleDayType(str, Enum):
    WORK = "WORK"
    REST = "REST"


class EmploymentStatus(str, Enum):
    STARTED_THIS_YEAR = "STARTED_THIS_YEAR"
    WORKED_BEFORE = "WORKED_BEFORE"


class HolidayPolicyMode(str, Enum):
    EXPLICIT_FLAG = "EXPLICIT_FLAG"
    AUTO_DETECT = "AUTO_DETECT"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

MAX_DAY_HOURS = 24.0
MAX_ANNUAL_CONTRACT_HOURS = 3000.0
ANNUAL_HOURS_WARNING_LOW = 1000.0
ANNUAL_HOURS_WARNING_HIGH = 2500.0
WEEKS_PER_YEAR = 52


def round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _assert_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be > 0 (got {value})")


def _assert_day_hours(name: str, value: float, *, allow_zero: bool) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number (got {value})")
    if value < 0 or (value == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValueError(f"{name} must be {bound} (got {value})")
    if value > MAX_DAY_HOURS:
        raise ValueError(f"{name} must be <= {MAX_DAY_HOURS:g} (got {value})")


def _clean_text(name: str, value: str | None, max_length: int) -> str | None:
    if value is None:
        return None
    text = value.strip()
    if len(text) > max_length:
        raise ValueError(f"{name} must be at most {max_length} characters")
    return text or None


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Year:
    value: int

    def __post_init__(self) -> None:
        if not 1000 <= self.value <= 9999:
            raise ValueError(f"year must have 4 digits (got {self.value})")

    @classmethod
    def within_window(
        cls,
        value: int,
        *,
        today: date,
        past: int = 2,
        future: int = 5,
    ) -> Year:
        """
        Year accepted only in [today.year - past, today.year + future].
        `today` is injected so the check is deterministic.
        """
        year = cls(value)
        low, high = today.year - past, today.year + future
        if not low <= value <= high:
            raise ValueError(f"year must be between {low} and {high} (got {value})")
        return year

    @property
    def total_days(self) -> int:
        return days_in_year(self.value)

    @property
    def first_day(self) -> date:
        return date(self.value, 1, 1)

    @property
    def last_day(self) -> date:
        return date(self.value, 12, 31)

    def contains(self, day: date) -> bool:
        return day.year == self.value


@dataclass(frozen=True)
class CycleMetadata:
    part_number: int
    day_within_part: int
    day_type: CycleDayType


@dataclass(frozen=True)
class CalendarDay:
    date: date
    weekday: int  # 0=Sunday ... 6=Saturday
    iso_week: int
    month: int
    day_of_month: int
    state: DayState | None = None
    hours_worked: float = 0.0
    description: str | None = None
    metadata: CycleMetadata | None = None


@dataclass(frozen=True)
class CyclePart:
    work_days: int
    rest_days: int

    def __post_init__(self) -> None:
        _assert_positive("work_days", self.work_days)
        _assert_positive("rest_days", self.rest_days)

    @property
    def length(self) -> int:
        return self.work_days + self.rest_days


@dataclass(frozen=True)
class WorkCycle:
    mode: CycleMode
    weekly_mask: tuple[bool, ...] | None = None
    parts: tuple[CyclePart, ...] | None = None

    def __post_init__(self) -> None:
        if self.mode == CycleMode.WEEKLY:
            if self.weekly_mask is None or len(self.weekly_mask) != 7:
                raise ValueError("weekly mask must have 7 days (Monday to Sunday)")
            if not any(self.weekly_mask):
                raise ValueError("weekly mask must contain at least one work day")
            if self.parts is not None:
                raise ValueError("weekly cycle cannot define parts")
            object.__setattr__(self, "weekly_mask", tuple(bool(d) for d in self.weekly_mask))
        elif self.mode == CycleMode.PARTS:
            if not self.parts:
                raise ValueError("parts cycle must contain at least one part")
            if self.weekly_mask is not None:
                raise ValueError("parts cycle cannot define a weekly mask")
            object.__setattr__(self, "parts", tuple(self.parts))
        else:
            raise ValueError(f"Unknown cycle mode: {self.mode}")

    @classmethod
    def weekly(cls, mask: Iterable[bool]) -> WorkCycle:
        return cls(mode=CycleMode.WEEKLY, weekly_mask=tuple(mask))

    @classmethod
    def from_parts(cls, parts: Iterable[CyclePart | tuple[int, int]]) -> WorkCycle:
        normalized = tuple(p if isinstance(p, CyclePart) else CyclePart(*p) for p in parts)
        return cls(mode=CycleMode.PARTS, parts=normalized)

    @property
    def cycle_length(self) -> int:
        if self.mode == CycleMode.WEEKLY:
            return 7
        return sum(p.length for p in self.parts)

    @property
    def work_days_in_week(self) -> int:
        if self.mode != CycleMode.WEEKLY:
            return 0
        return sum(1 for d in self.weekly_mask if d)

    def display_text(self) -> str:
        if self.mode == CycleMode.WEEKLY:
            return f"Semanal: {self.work_days_in_week} días de trabajo"
        return "Por partes: " + ", ".join(f"{p.work_days}-{p.rest_days}" for p in self.parts)


@dataclass(frozen=True)
class CycleOffset:
    part_number: int
    day_within_part: int
    day_type: CycleDayType

    def __post_init__(self) -> None:
        if self.part_number < 1:
            raise ValueError(f"part_number must be >= 1 (got {self.part_number})")
        if self.day_within_part < 1:
            raise ValueError(f"day_within_part must be >= 1 (got {self.day_within_part})")
        object.__setattr__(self, "day_type", CycleDayType(self.day_type))

    @property
    def is_work(self) -> bool:
        return self.day_type == CycleDayType.WORK


@dataclass(frozen=True)
class Holiday:
    date: date
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _clean_text("holiday name", self.name, 100))


@dataclass(frozen=True)
class VacationPeriod:
    start: date  # inclusive
    end: date    # inclusive
    description: str | None = None

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("vacation end must be >= start")
        object.__setattr__(
            self, "description", _clean_text("vacation description", self.description, 100)
        )

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, other: VacationPeriod) -> bool:
        return self.start <= other.end and self.end >= other.start

    def dates(self) -> Iterator[date]:
        for offset in range(self.day_count):
            yield self.start + timedelta(days=offset)


@dataclass(frozen=True)
class Guardia:
    date: date
    hours: float
    description: str | None = None

    def __post_init__(self) -> None:
        _assert_day_hours("guardia hours", self.hours, allow_zero=False)
        object.__setattr__(self, "hours", round_half_up(self.hours))
        object.__setattr__(
            self, "description", _clean_text("guardia description", self.description, 200)
        )


@dataclass(frozen=True)
class ExtraShift:
    """Extra hours on any day. Never changes the day state."""

    date: date
    hours: float
    description: str | None = None

    def __post_init__(self) -> None:
        _assert_day_hours("extra shift hours", self.hours, allow_zero=False)
        object.__setattr__(self, "hours", round_half_up(self.hours))
        object.__setattr__(
            self, "description", _clean_text("extra shift description", self.description, 200)
        )


@dataclass(frozen=True)
class WorkingHours:
    weekday: float = 8.0
    saturday: float = 8.0
    sunday: float = 8.0
    holiday: float = 8.0

    def __post_init__(self) -> None:
        for name in ("weekday", "saturday", "sunday", "holiday"):
            value = getattr(self, name)
            _assert_day_hours(f"{name} hours", value, allow_zero=True)
            object.__setattr__(self, name, round_half_up(value))

    def to_dict(self) -> dict[str, float]:
        return {
            "weekday": self.weekday,
            "saturday": self.saturday,
            "sunday": self.sunday,
            "holiday": self.holiday,
        }

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> WorkingHours:
        known = {k: float(v) for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass(frozen=True)
class AnnualContractHours:
    hours: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.hours):
            raise ValueError(f"annual contract hours must be a finite number (got {self.hours})")
        _assert_positive("annual contract hours", self.hours)
        if self.hours > MAX_ANNUAL_CONTRACT_HOURS:
            raise ValueError(
                f"annual contract hours must be <= {MAX_ANNUAL_CONTRACT_HOURS:g} (got {self.hours})"
            )

    @classmethod
    def from_weekly_hours(cls, weekly_hours: float) -> AnnualContractHours:
        """
        Annual hours from a weekly schedule:
            round(weekly_hours * 52)
        """
        _assert_positive("weekly hours", weekly_hours)
        if weekly_hours > 168:
            raise ValueError(f"weekly hours must be <= 168 (got {weekly_hours})")
        return cls(float(round_half_up(weekly_hours * WEEKS_PER_YEAR, 0)))

    @property
    def weekly_hours(self) -> float:
        return round_half_up(self.hours / WEEKS_PER_YEAR)

    def warning(self) -> str | None:
        if self.hours < ANNUAL_HOURS_WARNING_LOW:
            return (
                "El valor es inusualmente bajo. Las jornadas completas suelen estar entre "
                f"{ANNUAL_HOURS_WARNING_LOW:g}-{ANNUAL_HOURS_WARNING_HIGH:g} horas/año"
            )
        if self.hours > ANNUAL_HOURS_WARNING_HIGH:
            return (
                "El valor es inusualmente alto. Las jornadas completas suelen estar entre "
                f"{ANNUAL_HOURS_WARNING_LOW:g}-{ANNUAL_HOURS_WARNING_HIGH:g} horas/año"
            )
        return None


@dataclass(frozen=True)
class HolidayPolicy:
    """
    Decides whether a holiday is worked.

    - EXPLICIT_FLAG: worked iff its date is listed in worked_dates.
    - AUTO_DETECT: worked iff the cycle put a work day there,
      unless respect_holidays is set (then never worked).
    """

    mode: HolidayPolicyMode = HolidayPolicyMode.AUTO_DETECT
    respect_holidays: bool = False
    worked_dates: frozenset[date] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", HolidayPolicyMode(self.mode))
        object.__setattr__(self, "worked_dates", frozenset(self.worked_dates))
        if self.mode == HolidayPolicyMode.EXPLICIT_FLAG and self.respect_holidays:
            raise ValueError("respect_holidays only applies to AUTO_DETECT policies")
        if self.mode == HolidayPolicyMode.AUTO_DETECT and self.worked_dates:
            raise ValueError("worked_dates only applies to EXPLICIT_FLAG policies")

    @classmethod
    def auto_detect(cls, respect_holidays: bool = False) -> HolidayPolicy:
        return cls(mode=HolidayPolicyMode.AUTO_DETECT, respect_holidays=respect_holidays)

    @classmethod
    def explicit(cls, worked_dates: Iterable[date]) -> HolidayPolicy:
        return cls(mode=HolidayPolicyMode.EXPLICIT_FLAG, worked_dates=frozenset(worked_dates))


@dataclass(frozen=True)
class CalendarConfig:
    year: Year
    cycle: WorkCycle
    employment_status: EmploymentStatus | None = None
    contract_start: date | None = None
    cycle_offset: CycleOffset | None = None
    working_hours: WorkingHours = field(default_factory=WorkingHours)
    annual_contract_hours: AnnualContractHours | None = None
    holidays: tuple[Holiday, ...] = ()
    vacations: tuple[VacationPeriod, ...] = ()
    guardias: tuple[Guardia, ...] = ()
    extra_shifts: tuple[ExtraShift, ...] = ()
    holiday_policy: HolidayPolicy = field(default_factory=HolidayPolicy)

    def __post_init__(self) -> None:
        for name in ("holidays", "vacations", "guardias", "extra_shifts"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
