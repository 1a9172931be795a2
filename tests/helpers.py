"""
Test helper functions for building sessions and local timestamps.

These functions can be imported by test modules directly.
"""

import sys
from datetime import date, datetime, timedelta
from pathlib import Path

import pytz

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from circasleep.science.sleep_debt import create_sleep_session
from circasleep.types import SleepSession

DEFAULT_TZ = "America/Los_Angeles"


def local(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    tz_name: str = DEFAULT_TZ,
) -> datetime:
    """Aware datetime for a wall-clock time in tz_name."""
    return pytz.timezone(tz_name).localize(datetime(year, month, day, hour, minute))


def make_session(
    wake_day: date,
    hours: float,
    days_ago: int = 0,
    wake_hour: int = 7,
    quality: str | None = "good",
    source: str = "manual",
    tz_name: str = DEFAULT_TZ,
) -> SleepSession:
    """
    Build a session of `hours` ending at wake_hour:00 on wake_day - days_ago.

    Args:
        wake_day: Reference day
        hours: Sleep length in hours
        days_ago: Shift the wake day back this many days
        wake_hour: Local wake hour
        quality: Quality rating stored on the session
        source: "manual" or "automatic"
        tz_name: Timezone for bedtime and wake time

    Returns:
        SleepSession bucketed on the wake day
    """
    day = wake_day - timedelta(days=days_ago)
    wake = local(day.year, day.month, day.day, wake_hour, 0, tz_name)
    bedtime = pytz.timezone(tz_name).normalize(wake - timedelta(hours=hours))
    return create_sleep_session(bedtime, wake, quality=quality, source=source)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def hhmm(moment: datetime) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"
