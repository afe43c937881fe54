from datetime import date

import pytest

from workcal.cycles import apply_weekly_cycle
from workcal.domain import WorkCycle, Year
from workcal.skeleton import generate_calendar

MONDAY_TO_FRIDAY = (True, True, True, True, True, False, False)


@pytest.fixture
def today() -> date:
    return date(2025, 6, 1)


@pytest.fixture
def year_2025() -> Year:
    return Year(2025)


@pytest.fixture
def weekday_cycle() -> WorkCycle:
    return WorkCycle.weekly(MONDAY_TO_FRIDAY)


@pytest.fixture
def skeleton_2025(year_2025):
    return generate_calendar(year_2025).unwrap().days


@pytest.fixture
def weekly_2025(skeleton_2025, weekday_cycle):
    """2025 with a Monday to Friday cycle, no overlays."""
    return apply_weekly_cycle(skeleton_2025, weekday_cycle).unwrap().days
