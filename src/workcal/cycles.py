from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Sequence

from .dates import mask_index
from .domain import (
    CalendarDay,
    CycleDayType,
    CycleMetadata,
    CycleMode,
    CycleOffset,
    CyclePart,
    DayState,
    WorkCycle,
)
from .results import StageError, stage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleEntry:
    is_work: bool
    part_number: int      # 1-based
    day_within_part: int  # 1-based, counted inside the work or rest run

    @property
    def day_type(self) -> CycleDayType:
        return CycleDayType.WORK if self.is_work else CycleDayType.REST


@dataclass(frozen=True)
class CycleOutput:
    days: list[CalendarDay]
    work_days_marked: int
    rest_days_marked: int
    days_processed: int
    cycle_length: int
    start_index: int = 0


def expand_parts(parts: Sequence[CyclePart]) -> list[CycleEntry]:
    """
    Flatten the parts into one repeating sequence.
    6-3, 6-2 -> 6 work, 3 rest, 6 work, 2 rest (17 entries).
    """
    sequence: list[CycleEntry] = []
    for part_number, part in enumerate(parts, start=1):
        for n in range(1, part.work_days + 1):
            sequence.append(CycleEntry(True, part_number, n))
        for n in range(1, part.rest_days + 1):
            sequence.append(CycleEntry(False, part_number, n))
    return sequence


def resolve_start_index(sequence: Sequence[CycleEntry], offset: CycleOffset | None) -> int:
    if offset is None:
        return 0
    for idx, entry in enumerate(sequence):
        if (
            entry.part_number == offset.part_number
            and entry.day_within_part == offset.day_within_part
            and entry.is_work == offset.is_work
        ):
            return idx
    logger.warning(
        "cycle offset (part %s, day %s, %s) not found in sequence, starting at 0",
        offset.part_number,
        offset.day_within_part,
        offset.day_type.value,
    )
    return 0


# ---------------------------------------------------------------------------
# Appliers
# ---------------------------------------------------------------------------

def _weekly(days: Sequence[CalendarDay], cycle: WorkCycle) -> CycleOutput:
    if cycle.mode != CycleMode.WEEKLY:
        raise StageError("El ciclo semanal solo aplica a ciclos en modo WEEKLY")

    out: list[CalendarDay] = []
    work = rest = 0
    for day in days:
        if day.state == DayState.NO_CONTRATADO:
            out.append(day)
            continue
        if cycle.weekly_mask[mask_index(day.weekday)]:
            out.append(replace(day, state=DayState.TRABAJO))
            work += 1
        else:
            out.append(replace(day, state=DayState.DESCANSO))
            rest += 1

    return CycleOutput(
        days=out,
        work_days_marked=work,
        rest_days_marked=rest,
        days_processed=work + rest,
        cycle_length=7,
    )


def _parts(
    days: Sequence[CalendarDay],
    cycle: WorkCycle,
    offset: CycleOffset | None,
    contract_start: date | None,
) -> CycleOutput:
    if cycle.mode != CycleMode.PARTS:
        raise StageError("El ciclo por partes solo aplica a ciclos en modo PARTS")

    sequence = expand_parts(cycle.parts)
    if not sequence:
        raise StageError("No se pudo generar la secuencia del ciclo")
    start = resolve_start_index(sequence, offset)

    out: list[CalendarDay] = []
    work = rest = 0
    counter = start
    for day in days:
        if day.state == DayState.NO_CONTRATADO or (
            contract_start is not None and day.date < contract_start
        ):
            out.append(day)
            continue

        entry = sequence[counter % len(sequence)]
        metadata = CycleMetadata(
            part_number=entry.part_number,
            day_within_part=entry.day_within_part,
            day_type=entry.day_type,
        )
        if entry.is_work:
            out.append(replace(day, state=DayState.TRABAJO, metadata=metadata))
            work += 1
        else:
            out.append(replace(day, state=DayState.DESCANSO, metadata=metadata))
            rest += 1
        counter += 1

    return CycleOutput(
        days=out,
        work_days_marked=work,
        rest_days_marked=rest,
        days_processed=work + rest,
        cycle_length=len(sequence),
        start_index=start,
    )


@stage("weekly_cycle")
def apply_weekly_cycle(days: Sequence[CalendarDay], cycle: WorkCycle) -> CycleOutput:
    return _weekly(days, cycle)


@stage("parts_cycle")
def apply_parts_cycle(
    days: Sequence[CalendarDay],
    cycle: WorkCycle,
    offset: CycleOffset | None = None,
    contract_start: date | None = None,
) -> CycleOutput:
    return _parts(days, cycle, offset, contract_start)


@stage("cycle")
def apply_cycle(
    days: Sequence[CalendarDay],
    cycle: WorkCycle,
    offset: CycleOffset | None = None,
    contract_start: date | None = None,
) -> CycleOutput:
    if cycle.mode == CycleMode.WEEKLY:
        # weekly cycles align on the weekday, an offset has no meaning
        return _weekly(days, cycle)
    return _parts(days, cycle, offset, contract_start)
