"""
Solar-anchored circadian windows.

Derives the optimal sleep and wake windows for a date and location and
scores how well an actual bedtime/wake time sits inside them.

Window rules:
- Optimal sleep window: 2-4 hours after sunset
- Optimal wake window: 30 minutes before to 1 hour after sunrise

Alignment falls off linearly outside a window and reaches 0 at a distance
of twice the window's own length.
"""

import logging
import math
from datetime import date, datetime, timedelta

from ..circadian_math import format_time, get_current_datetime_in_tz, minutes_until
from ..errors import LocationUnavailableError
from ..ports import LocationSource
from ..types import (
    CircadianAlignment,
    CircadianData,
    Location,
    SunPhaseInfo,
    TimeWindow,
)
from .solar import get_solar_times

logger = logging.getLogger(__name__)

# San Francisco, used whenever the host cannot resolve a location
DEFAULT_LOCATION = Location(
    latitude=37.7749,
    longitude=-122.4194,
    timezone="America/Los_Angeles",
)

SLEEP_WINDOW_START_AFTER_SUNSET = timedelta(hours=2)
SLEEP_WINDOW_END_AFTER_SUNSET = timedelta(hours=4)
WAKE_WINDOW_START_BEFORE_SUNRISE = timedelta(minutes=30)
WAKE_WINDOW_END_AFTER_SUNRISE = timedelta(hours=1)

ALIGNMENT_SUGGESTION_THRESHOLD = 70
ALIGNMENT_PRAISE_THRESHOLD = 80
ALIGNMENT_FALLOFF_FACTOR = 2  # score hits 0 at 2x the window length


def resolve_location(source: LocationSource | None = None) -> Location:
    """
    Ask the location source for coordinates, falling back to DEFAULT_LOCATION.

    Unavailable locations (no support, permission denied, timeout) are not
    errors for the caller.
    """
    if source is None:
        return DEFAULT_LOCATION
    try:
        return source.get_location()
    except LocationUnavailableError as e:
        logger.warning("Location unavailable (%s), using default location", e)
        return DEFAULT_LOCATION


def get_circadian_data(day: date, location: Location | None = None) -> CircadianData:
    """
    Get solar times and optimal sleep/wake windows for a date.

    Args:
        day: Calendar date in the location's timezone
        location: Observer location, DEFAULT_LOCATION when omitted

    Returns:
        CircadianData with both windows populated
    """
    location = location or DEFAULT_LOCATION
    solar = get_solar_times(day, location)

    sleep_window = TimeWindow(
        start=solar.sunset + SLEEP_WINDOW_START_AFTER_SUNSET,
        end=solar.sunset + SLEEP_WINDOW_END_AFTER_SUNSET,
    )
    wake_window = TimeWindow(
        start=solar.sunrise - WAKE_WINDOW_START_BEFORE_SUNRISE,
        end=solar.sunrise + WAKE_WINDOW_END_AFTER_SUNRISE,
    )

    return CircadianData(
        day=day,
        location=location,
        solar=solar,
        optimal_sleep_window=sleep_window,
        optimal_wake_window=wake_window,
    )


def calculate_window_alignment(moment: datetime, window: TimeWindow) -> int:
    """
    Score 0-100 for how close a moment is to a window.

    100 anywhere inside the window (inclusive). Outside, the score drops
    linearly with distance and reaches 0 at twice the window's duration.
    """
    if window.contains(moment):
        return 100

    max_deviation = window.duration_minutes * ALIGNMENT_FALLOFF_FACTOR
    if moment < window.start:
        deviation = (window.start - moment).total_seconds() / 60
    else:
        deviation = (moment - window.end).total_seconds() / 60

    if max_deviation <= 0:
        return 0

    alignment = max(0.0, 100 - (deviation / max_deviation) * 100)
    return math.floor(alignment + 0.5)


def _window_range(window: TimeWindow) -> str:
    return f"{format_time(window.start)} - {format_time(window.end)}"


def calculate_circadian_alignment(
    bedtime: datetime, wake_time: datetime, data: CircadianData
) -> CircadianAlignment:
    """
    Score a bedtime/wake time pair against the optimal windows.

    Args:
        bedtime: Actual or planned bedtime
        wake_time: Actual or planned wake time
        data: Circadian data for the night in question

    Returns:
        CircadianAlignment with sub-scores, overall mean and advice
    """
    sleep_alignment = calculate_window_alignment(bedtime, data.optimal_sleep_window)
    wake_alignment = calculate_window_alignment(wake_time, data.optimal_wake_window)
    overall = (sleep_alignment + wake_alignment) / 2

    recommendations = []
    if sleep_alignment < ALIGNMENT_SUGGESTION_THRESHOLD:
        recommendations.append(
            f"Try going to bed between {_window_range(data.optimal_sleep_window)} "
            "for better circadian alignment"
        )
    if wake_alignment < ALIGNMENT_SUGGESTION_THRESHOLD:
        recommendations.append(
            f"Try waking up between {_window_range(data.optimal_wake_window)} "
            "to align with your natural rhythm"
        )
    if overall >= ALIGNMENT_PRAISE_THRESHOLD:
        recommendations.append("Your sleep schedule is well-aligned with your circadian rhythm!")

    return CircadianAlignment(
        sleep_alignment=sleep_alignment,
        wake_alignment=wake_alignment,
        overall_alignment=overall,
        recommendations=recommendations,
    )


def get_current_sun_phase(data: CircadianData, now: datetime | None = None) -> SunPhaseInfo:
    """
    Classify now as night, dawn, day or dusk.

    Boundaries in order: nautical dawn, sunrise, sunset, nautical dusk.
    After nautical dusk the next transition is the following day's
    nautical dawn.
    """
    if now is None:
        now = get_current_datetime_in_tz(data.location.timezone)

    solar = data.solar
    if now < solar.nautical_dawn:
        phase, boundary = "night", solar.nautical_dawn
    elif now < solar.sunrise:
        phase, boundary = "dawn", solar.sunrise
    elif now < solar.sunset:
        phase, boundary = "day", solar.sunset
    elif now < solar.nautical_dusk:
        phase, boundary = "dusk", solar.nautical_dusk
    else:
        tomorrow = get_solar_times(data.day + timedelta(days=1), data.location)
        phase, boundary = "night", tomorrow.nautical_dawn

    return SunPhaseInfo(
        phase=phase,
        next_transition=boundary,
        minutes_to_next=minutes_until(boundary, now),
    )


def get_time_to_optimal_sleep(data: CircadianData, now: datetime | None = None) -> int:
    """Minutes until the optimal sleep window opens, using tomorrow's if today's has started."""
    if now is None:
        now = get_current_datetime_in_tz(data.location.timezone)

    target = data.optimal_sleep_window.start
    if target <= now:
        target = target + timedelta(hours=24)
    return minutes_until(target, now)
