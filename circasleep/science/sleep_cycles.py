"""
Sleep-cycle bedtime and wake-time planning.

Scientific basis:
- Sleep architecture: ~90-minute NREM-REM cycles (Carskadon & Dement 2011)
- Waking at a cycle boundary reduces sleep inertia (Tassi & Muzet 2000)

Two planning modes:
- Simple: fixed wake time -> candidate bedtimes for 3-6 cycles
- Enhanced: last wake time + awake-duration hypotheses -> cycle-aligned
  wake times scored against a target wake time

Both modes add FALL_ASLEEP_MINUTES between getting into bed and sleep onset.
"""

import math
from datetime import datetime, timedelta

from ..circadian_math import local_now, minutes_until, now_like, parse_time, relocalize
from ..types import (
    CycleQuality,
    EnhancedSleepCalculation,
    EnhancedSleepOption,
    OptionQuality,
    SleepCalculation,
    SleepCycleOption,
)

# Sleep architecture constants
SLEEP_CYCLE_MINUTES = 90  # One complete NREM-REM cycle
FALL_ASLEEP_MINUTES = 30  # Sleep onset buffer after getting into bed
MIN_CYCLES = 3  # 4.5h
MAX_CYCLES = 6  # 9h

# Awake-duration hypotheses for enhanced planning (hours after waking)
STANDARD_AWAKE_OPTIONS: tuple[tuple[float, OptionQuality], ...] = (
    (14.5, "short"),
    (16.0, "recommended"),
    (18.0, "extended"),
)
CUSTOM_AWAKE_MIN_HOURS = 11.5  # inclusive
CUSTOM_AWAKE_MAX_HOURS = 14.5  # exclusive

# Match score hits 0 when the cycle-aligned wake time is this far off target
MAX_ACCEPTABLE_DIFF_MINUTES = 60


def classify_cycle_quality(cycles: int) -> CycleQuality:
    """Short for 3 or fewer cycles, extended for 5 or more, otherwise optimal."""
    if cycles <= 3:
        return "short"
    elif cycles >= 5:
        return "extended"
    return "optimal"


def calculate_bedtime_for_cycles(wake_time: datetime, cycles: int) -> datetime:
    """Bedtime that yields `cycles` full cycles before wake_time."""
    return wake_time - timedelta(minutes=cycles * SLEEP_CYCLE_MINUTES + FALL_ASLEEP_MINUTES)


def calculate_wake_time_from_bedtime(bedtime: datetime, cycles: int) -> datetime:
    """Wake time after `cycles` full cycles from bedtime (inverse of the above)."""
    return bedtime + timedelta(minutes=cycles * SLEEP_CYCLE_MINUTES + FALL_ASLEEP_MINUTES)


def calculate_optimal_bedtimes(
    wake_time: datetime, now: datetime | None = None
) -> SleepCalculation:
    """
    Calculate candidate bedtimes for a desired wake time.

    Args:
        wake_time: Desired wake time
        now: Current time (defaults to now in wake_time's timezone)

    Returns:
        SleepCalculation with one option per cycle count (3-6) plus
        minutes until the next future bedtime and until wake time
    """
    if now is None:
        now = now_like(wake_time)

    bedtimes = []
    for cycles in range(MIN_CYCLES, MAX_CYCLES + 1):
        sleep_minutes = cycles * SLEEP_CYCLE_MINUTES
        bedtimes.append(
            SleepCycleOption(
                bedtime=calculate_bedtime_for_cycles(wake_time, cycles),
                duration=sleep_minutes / 60,
                cycles=cycles,
                quality=classify_cycle_quality(cycles),
            )
        )

    next_bedtime = next((option for option in bedtimes if option.bedtime > now), None)
    time_until_bedtime = minutes_until(next_bedtime.bedtime, now) if next_bedtime else None

    time_until_wake = minutes_until(wake_time, now)

    return SleepCalculation(
        wake_time=wake_time,
        recommended_bedtimes=bedtimes,
        current_time=now,
        time_until_bedtime=time_until_bedtime,
        time_until_wake=time_until_wake if time_until_wake > 0 else None,
    )


def is_valid_custom_awake_duration(hours: float | None) -> bool:
    return hours is not None and CUSTOM_AWAKE_MIN_HOURS <= hours < CUSTOM_AWAKE_MAX_HOURS


def calculate_match_score(calculated_wake: datetime, target_wake: datetime) -> int:
    """0-100 score, 100 for an exact hit and 0 at an hour or more away."""
    diff_minutes = abs((calculated_wake - target_wake).total_seconds()) / 60
    score = max(0.0, 100 - (diff_minutes / MAX_ACCEPTABLE_DIFF_MINUTES) * 100)
    # Half-up to match the other 0-100 scores
    return math.floor(score + 0.5)


def calculate_sleep_option(
    current_wake_time: datetime,
    target_wake_time: datetime,
    awake_hours: float,
    quality: OptionQuality,
) -> EnhancedSleepOption:
    """
    Evaluate one awake-duration hypothesis.

    The bedtime alarm goes off `awake_hours` after waking; sleep starts
    FALL_ASLEEP_MINUTES later. Among 3-6 cycles, the wake time closest to
    target wins, the lower cycle count on ties.
    """
    bedtime_alarm = current_wake_time + timedelta(hours=awake_hours)
    actual_sleep_time = bedtime_alarm + timedelta(minutes=FALL_ASLEEP_MINUTES)

    best_cycles = MIN_CYCLES
    best_wake = actual_sleep_time + timedelta(minutes=MIN_CYCLES * SLEEP_CYCLE_MINUTES)
    best_diff = abs(best_wake - target_wake_time)

    for cycles in range(MIN_CYCLES + 1, MAX_CYCLES + 1):
        candidate = actual_sleep_time + timedelta(minutes=cycles * SLEEP_CYCLE_MINUTES)
        diff = abs(candidate - target_wake_time)
        if diff < best_diff:
            best_cycles, best_wake, best_diff = cycles, candidate, diff

    return EnhancedSleepOption(
        bedtime_alarm=bedtime_alarm,
        actual_sleep_time=actual_sleep_time,
        calculated_wake_time=best_wake,
        actual_sleep_duration=best_cycles * SLEEP_CYCLE_MINUTES / 60,
        cycles=best_cycles,
        awake_hours=awake_hours,
        quality=quality,
        match_score=calculate_match_score(best_wake, target_wake_time),
    )


def calculate_enhanced_sleep_schedule(
    current_wake_time: datetime,
    target_wake_time: datetime,
    custom_awake_duration: float | None = None,
) -> EnhancedSleepCalculation:
    """
    Plan tonight's bedtime from this morning's wake time and tomorrow's target.

    Args:
        current_wake_time: When the user woke up (already happened)
        target_wake_time: When the user wants to wake next; rolled forward
            by whole days until it is strictly after current_wake_time
        custom_awake_duration: Optional extra hypothesis in hours,
            accepted when 11.5 <= hours < 14.5

    Returns:
        EnhancedSleepCalculation with one option per hypothesis and the
        highest-scoring option (first listed wins ties)
    """
    while target_wake_time <= current_wake_time:
        target_wake_time = relocalize(target_wake_time + timedelta(days=1))

    hypotheses = list(STANDARD_AWAKE_OPTIONS)
    if is_valid_custom_awake_duration(custom_awake_duration):
        hypotheses.insert(0, (custom_awake_duration, "custom"))

    options = [
        calculate_sleep_option(current_wake_time, target_wake_time, hours, quality)
        for hours, quality in hypotheses
    ]

    best_match = None
    for option in options:
        if best_match is None or option.match_score > best_match.match_score:
            best_match = option

    return EnhancedSleepCalculation(
        current_wake_time=current_wake_time,
        target_wake_time=target_wake_time,
        sleep_options=options,
        best_match=best_match,
        custom_awake_duration=custom_awake_duration,
    )


def build_plan_from_strings(
    current_wake: str,
    target_wake: str,
    custom_awake_duration: float | None = None,
    now: datetime | None = None,
) -> EnhancedSleepCalculation:
    """
    Enhanced plan from two "HH:MM" strings.

    current_wake is the most recent occurrence of that clock time (it has
    already happened); target_wake is resolved relative to it.
    """
    if now is None:
        now = local_now()

    wake = parse_time(current_wake)
    current = relocalize(now.replace(hour=wake.hour, minute=wake.minute, second=0, microsecond=0))
    if current > now:
        current = relocalize(current - timedelta(days=1))
    target_clock = parse_time(target_wake)
    target = relocalize(current.replace(hour=target_clock.hour, minute=target_clock.minute))

    return calculate_enhanced_sleep_schedule(current, target, custom_awake_duration)
