"""
Pytest fixtures for sleep planning and energy tests.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from circasleep.ports import FixedClock, InMemorySessionStore
from circasleep.science.circadian_windows import DEFAULT_LOCATION, get_circadian_data
from circasleep.types import Location

from helpers import local, make_session


@pytest.fixture
def sf_location():
    """San Francisco, the fallback location."""
    return DEFAULT_LOCATION


@pytest.fixture
def london_location():
    return Location(latitude=51.5074, longitude=-0.1278, timezone="Europe/London")


@pytest.fixture
def summer_now():
    """Mid-morning on a June weekday in San Francisco (PDT)."""
    return local(2026, 6, 15, 10, 0)


@pytest.fixture
def summer_data(summer_now, sf_location):
    """Circadian data for San Francisco on the summer_now date."""
    return get_circadian_data(summer_now.date(), sf_location)


@pytest.fixture
def clock(summer_now):
    return FixedClock(summer_now)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def session_factory():
    """Build a session ending on a given day with a given length."""
    return make_session


@pytest.fixture
def rested_week(summer_now):
    """Seven nights of exactly 8 hours ending this morning."""
    return [
        make_session(summer_now.date(), 8.0, days_ago=offset) for offset in range(6, -1, -1)
    ]
