from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Sequence

from .domain import (
    ZERO_HOUR_STATES,
    AnnualContractHours,
    CalendarConfig,
    CalendarDay,
    CycleMode,
    CycleOffset,
    DayState,
    EmploymentStatus,
    Guardia,
    Holiday,
    HolidayPolicy,
    HolidayPolicyMode,
    VacationPeriod,
    WorkCycle,
    WorkingHours,
    Year,
)
from .results import stage

MAX_VACATION_DAYS = 30

MONTH_NAMES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)


def _spanish_date(day: date) -> str:
    return f"{day.day} de {MONTH_NAMES[day.month - 1]}"


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


# ---------------------------------------------------------------------------
# Calendar validation
# ---------------------------------------------------------------------------

@dataclass
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def _check_count(days: Sequence[CalendarDay], year: Year, report: ValidationReport) -> None:
    if len(days) != year.total_days:
        report.errors.append(
            f"Número incorrecto de días: se esperaban {year.total_days} días pero hay {len(days)}"
        )


def _check_states(days: Sequence[CalendarDay], report: ValidationReport) -> None:
    missing = sum(1 for d in days if d.state is None)
    if missing:
        report.errors.append(f"Hay {missing} día(s) sin estado asignado (estado = null)")


def _check_continuity(days: Sequence[CalendarDay], year: Year, report: ValidationReport) -> None:
    if not days:
        report.errors.append("El calendario está vacío")
        return

    first, last = days[0].date, days[-1].date
    if first != year.first_day:
        report.errors.append(f"El primer día debería ser 1 de enero, pero es {_spanish_date(first)}")
    if last != year.last_day:
        report.errors.append(
            f"El último día debería ser 31 de diciembre, pero es {_spanish_date(last)}"
        )

    for prev, cur in zip(days, days[1:]):
        if cur.date - prev.date != timedelta(days=1):
            report.errors.append(
                f"Salto en las fechas: después de {_spanish_date(prev.date)} "
                f"viene {_spanish_date(cur.date)}"
            )
            break


def _check_hours(days: Sequence[CalendarDay], report: ValidationReport) -> None:
    negative = sum(1 for d in days if d.hours_worked < 0)
    if negative:
        report.errors.append(f"Hay {negative} día(s) con horas negativas")

    with_hours = sum(1 for d in days if d.state in ZERO_HOUR_STATES and d.hours_worked != 0)
    if with_hours:
        report.errors.append(
            f"Hay {with_hours} día(s) de tipo NoContratado/Descanso/Vacaciones/Festivo "
            "con horas != 0"
        )

    without_hours = sum(
        1
        for d in days
        if d.state in (DayState.TRABAJO, DayState.FESTIVO_TRABAJADO) and d.hours_worked == 0
    )
    if without_hours:
        report.warnings.append(
            f"Hay {without_hours} día(s) de tipo Trabajo/FestivoTrabajado con 0 horas "
            "(puede que las horas no se hayan calculado aún)"
        )


def _check_not_contracted(
    days: Sequence[CalendarDay],
    contract_start: date | None,
    report: ValidationReport,
) -> None:
    not_contracted = [d for d in days if d.state == DayState.NO_CONTRATADO]
    if contract_start is None:
        if not_contracted:
            report.warnings.append(
                f"Hay {len(not_contracted)} día(s) NoContratado pero no se proporcionó "
                "fecha de inicio de contrato"
            )
        return

    after = sum(1 for d in not_contracted if d.date >= contract_start)
    if after:
        report.errors.append(
            f"Hay {after} día(s) NoContratado después de la fecha de inicio de contrato"
        )
    missed = sum(
        1 for d in days if d.date < contract_start and d.state != DayState.NO_CONTRATADO
    )
    if missed:
        report.errors.append(
            f"Hay {missed} día(s) antes de la fecha de inicio que no están marcados "
            "como NoContratado"
        )


def _check_holidays(
    days: Sequence[CalendarDay],
    holidays: Sequence[Holiday],
    policy: HolidayPolicy | None,
    report: ValidationReport,
) -> None:
    zero = sum(
        1 for d in days if d.state == DayState.FESTIVO_TRABAJADO and d.hours_worked == 0
    )
    if zero:
        report.warnings.append(f"Hay {zero} festivo(s) trabajado(s) con 0 horas")

    if policy is None or policy.mode != HolidayPolicyMode.EXPLICIT_FLAG:
        return

    by_date = {d.date: d for d in days}
    missing = 0
    for holiday in holidays:
        if holiday.date not in policy.worked_dates:
            continue
        day = by_date.get(holiday.date)
        if day is None or day.state == DayState.FESTIVO_TRABAJADO:
            continue
        # a higher-priority state legitimately hides the holiday
        if day.state is not None and day.state.outranks(DayState.FESTIVO_TRABAJADO):
            continue
        missing += 1
    if missing:
        report.errors.append(
            f"Hay {missing} festivo(s) marcado(s) como trabajado(s) en la lista pero no "
            "están en el calendario como FestivoTrabajado"
        )


def _check_vacations(
    days: Sequence[CalendarDay],
    periods: Sequence[VacationPeriod],
    report: ValidationReport,
) -> None:
    for period in periods:
        off = sum(
            1
            for d in days
            if period.contains(d.date)
            and d.state not in (DayState.VACACIONES, DayState.NO_CONTRATADO)
        )
        if off:
            report.errors.append(
                f"Período de vacaciones {period.start.isoformat()} - {period.end.isoformat()}: "
                f"hay {off} día(s) no marcado(s) como Vacaciones"
            )

    orphans = sum(
        1
        for d in days
        if d.state == DayState.VACACIONES and not any(p.contains(d.date) for p in periods)
    )
    if orphans:
        report.warnings.append(
            f"Hay {orphans} día(s) marcado(s) como Vacaciones que no pertenecen a ningún "
            "período de vacaciones"
        )


@stage("validation")
def validate_calendar(
    days: Sequence[CalendarDay],
    year: Year,
    contract_start: date | None = None,
    vacations: Sequence[VacationPeriod] = (),
    holidays: Sequence[Holiday] = (),
    holiday_policy: HolidayPolicy | None = None,
) -> ValidationReport:
    """
    Blocking problems go to errors, informational ones to warnings.
    """
    report = ValidationReport()
    _check_count(days, year, report)
    _check_states(days, report)
    _check_continuity(days, year, report)
    _check_hours(days, report)
    _check_not_contracted(days, contract_start, report)
    _check_holidays(days, holidays, holiday_policy, report)
    _check_vacations(days, vacations, report)
    return report


# ---------------------------------------------------------------------------
# Configuration validation
# ---------------------------------------------------------------------------

class SectionStatus(str, Enum):
    COMPLETE = "COMPLETE"
    INCOMPLETE = "INCOMPLETE"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class SectionReport:
    field: str
    status: SectionStatus
    message: str | None = None


@dataclass(frozen=True)
class ConfigurationDraft:
    """A configuration that may still be missing sections."""

    year: Year | None = None
    cycle: WorkCycle | None = None
    employment_status: EmploymentStatus | None = None
    contract_start: date | None = None
    cycle_offset: CycleOffset | None = None
    working_hours: WorkingHours | None = None
    annual_contract_hours: AnnualContractHours | None = None
    holidays: tuple[Holiday, ...] = ()
    vacations: tuple[VacationPeriod, ...] = ()
    guardias: tuple[Guardia, ...] = ()

    @classmethod
    def from_config(cls, config: CalendarConfig) -> ConfigurationDraft:
        return cls(
            year=config.year,
            cycle=config.cycle,
            employment_status=config.employment_status,
            contract_start=config.contract_start,
            cycle_offset=config.cycle_offset,
            working_hours=config.working_hours,
            annual_contract_hours=config.annual_contract_hours,
            holidays=config.holidays,
            vacations=config.vacations,
            guardias=config.guardias,
        )


@dataclass(frozen=True)
class ConfigurationReport:
    sections: list[SectionReport]
    warnings: list[str]
    completed_sections: int
    total_sections: int

    @property
    def can_generate(self) -> bool:
        return not self.missing_sections()

    @property
    def is_valid(self) -> bool:
        return self.can_generate

    @property
    def is_complete(self) -> bool:
        return self.completed_sections == self.total_sections

    def missing_sections(self) -> list[SectionReport]:
        return [
            s for s in self.sections
            if s.status in (SectionStatus.INCOMPLETE, SectionStatus.ERROR)
        ]

    def warning_sections(self) -> list[SectionReport]:
        return [s for s in self.sections if s.status == SectionStatus.WARNING]


def _employment_section(draft: ConfigurationDraft) -> SectionReport:
    status = draft.employment_status
    if status is None:
        return SectionReport(
            "employment_status", SectionStatus.INCOMPLETE, "Debe indicar su situación laboral"
        )
    if status == EmploymentStatus.STARTED_THIS_YEAR:
        if draft.contract_start is None:
            return SectionReport(
                "contract_start",
                SectionStatus.INCOMPLETE,
                "Debe indicar la fecha de inicio de contrato",
            )
        if draft.year is not None and not draft.year.contains(draft.contract_start):
            return SectionReport(
                "contract_start",
                SectionStatus.ERROR,
                f"La fecha de inicio de contrato no pertenece al año {draft.year.value}",
            )
        return SectionReport(
            "employment_status",
            SectionStatus.COMPLETE,
            f"Empezó el {draft.contract_start.strftime('%d/%m/%Y')}",
        )
    # worked before: only a parts cycle needs to know where it stood on Jan 1
    if draft.cycle is not None and draft.cycle.mode == CycleMode.PARTS:
        if draft.cycle_offset is None:
            return SectionReport(
                "cycle_offset", SectionStatus.INCOMPLETE, "Debe indicar el offset del ciclo"
            )
        return SectionReport(
            "employment_status",
            SectionStatus.COMPLETE,
            "Ya trabajaba antes (offset configurado)",
        )
    return SectionReport("employment_status", SectionStatus.COMPLETE, "Ya trabajaba antes")


def _dates_outside_year(dates: Sequence[date], year: Year | None) -> int:
    if year is None:
        return 0
    return sum(1 for d in dates if not year.contains(d))


def unique_vacation_days(periods: Sequence[VacationPeriod]) -> int:
    """Days covered by the periods, overlapping days counted once."""
    merged: list[VacationPeriod] = []
    for period in sorted(periods, key=lambda p: p.start):
        if merged and merged[-1].overlaps(period):
            last = merged[-1]
            merged[-1] = VacationPeriod(last.start, max(last.end, period.end))
        else:
            merged.append(period)
    return sum(p.day_count for p in merged)


def validate_configuration(draft: ConfigurationDraft | CalendarConfig) -> ConfigurationReport:
    """
    Section by section status of a configuration.

    can_generate is False while a mandatory section is INCOMPLETE or ERROR.
    Empty holidays or vacations only warn.
    """
    if isinstance(draft, CalendarConfig):
        draft = ConfigurationDraft.from_config(draft)

    sections: list[SectionReport] = []
    warnings: list[str] = []

    if draft.year is None:
        sections.append(SectionReport("year", SectionStatus.INCOMPLETE, "Debe seleccionar un año"))
    else:
        sections.append(
            SectionReport("year", SectionStatus.COMPLETE, f"Año {draft.year.value} seleccionado")
        )

    if draft.cycle is None:
        sections.append(
            SectionReport("cycle", SectionStatus.INCOMPLETE, "Debe configurar su ciclo de trabajo")
        )
    else:
        sections.append(SectionReport("cycle", SectionStatus.COMPLETE, draft.cycle.display_text()))

    sections.append(_employment_section(draft))

    if draft.working_hours is None:
        sections.append(
            SectionReport(
                "working_hours", SectionStatus.INCOMPLETE, "Debe configurar las horas de trabajo"
            )
        )
    else:
        h = draft.working_hours
        sections.append(
            SectionReport(
                "working_hours",
                SectionStatus.COMPLETE,
                f"L-V: {h.weekday:g}h, Sáb: {h.saturday:g}h, Dom: {h.sunday:g}h, "
                f"Festivo: {h.holiday:g}h",
            )
        )

    if draft.annual_contract_hours is None:
        sections.append(
            SectionReport(
                "annual_contract_hours",
                SectionStatus.WARNING,
                "Sin horas anuales de convenio no se calcula el saldo de horas",
            )
        )
        warnings.append("No has indicado las horas anuales de convenio.")
    else:
        hint = draft.annual_contract_hours.warning()
        status = SectionStatus.WARNING if hint else SectionStatus.COMPLETE
        sections.append(
            SectionReport(
                "annual_contract_hours",
                status,
                f"{draft.annual_contract_hours.hours:g} horas/año",
            )
        )
        if hint:
            warnings.append(hint)

    holidays_outside = _dates_outside_year([h.date for h in draft.holidays], draft.year)
    if holidays_outside:
        sections.append(
            SectionReport(
                "holidays",
                SectionStatus.ERROR,
                f"Hay {holidays_outside} festivo(s) fuera del año seleccionado",
            )
        )
    elif not draft.holidays:
        sections.append(
            SectionReport("holidays", SectionStatus.WARNING, "No hay festivos configurados")
        )
        warnings.append(
            "No has añadido festivos. El calendario se generará sin festivos oficiales."
        )
    else:
        n = len(draft.holidays)
        sections.append(
            SectionReport(
                "holidays",
                SectionStatus.COMPLETE,
                f"{n} {_plural(n, 'festivo', 'festivos')} configurados",
            )
        )

    vacations_outside = sum(
        1 for p in draft.vacations
        if draft.year is not None
        and not (draft.year.contains(p.start) and draft.year.contains(p.end))
    )
    vacation_days = unique_vacation_days(draft.vacations)
    if not draft.vacations:
        sections.append(
            SectionReport("vacations", SectionStatus.WARNING, "No hay vacaciones configuradas")
        )
        warnings.append(
            "No has añadido períodos de vacaciones. "
            "El calendario se generará sin días de vacaciones."
        )
    elif vacations_outside:
        sections.append(
            SectionReport(
                "vacations",
                SectionStatus.ERROR,
                f"Hay {vacations_outside} período(s) de vacaciones fuera del año "
                f"{draft.year.value}",
            )
        )
    elif vacation_days > MAX_VACATION_DAYS:
        over = vacation_days - MAX_VACATION_DAYS
        sections.append(
            SectionReport(
                "vacations",
                SectionStatus.ERROR,
                f"{vacation_days} días de vacaciones: supera el límite de {MAX_VACATION_DAYS} "
                f"días/año por {over} {_plural(over, 'día', 'días')}",
            )
        )
    else:
        n = len(draft.vacations)
        sections.append(
            SectionReport(
                "vacations",
                SectionStatus.COMPLETE,
                f"{n} {_plural(n, 'período', 'períodos')} de vacaciones, "
                f"{vacation_days} {_plural(vacation_days, 'día', 'días')}",
            )
        )

    guardia_dates = [g.date for g in draft.guardias]
    duplicates = sorted(d for d, c in Counter(guardia_dates).items() if c > 1)
    guardias_outside = _dates_outside_year(guardia_dates, draft.year)
    if duplicates:
        sections.append(
            SectionReport(
                "guardias",
                SectionStatus.ERROR,
                "Guardias duplicadas: " + ", ".join(d.isoformat() for d in duplicates),
            )
        )
    elif guardias_outside:
        sections.append(
            SectionReport(
                "guardias",
                SectionStatus.ERROR,
                f"Hay {guardias_outside} guardia(s) fuera del año seleccionado",
            )
        )
    else:
        n = len(guardia_dates)
        sections.append(
            SectionReport(
                "guardias",
                SectionStatus.COMPLETE,
                f"{n} {_plural(n, 'guardia', 'guardias')} configuradas",
            )
        )

    completed = sum(1 for s in sections if s.status == SectionStatus.COMPLETE)
    return ConfigurationReport(
        sections=sections,
        warnings=warnings,
        completed_sections=completed,
        total_sections=len(sections),
    )
