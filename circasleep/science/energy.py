"""
Energy prediction from circadian phase and sleep debt.

Key concepts:
- Process C (circadian) sets a base energy curve across the day, shaped
  per sun phase: low floor at night, ramp through dawn, morning peak,
  post-lunch dip and late-afternoon recovery by day, decline at dusk
- Process S is approximated by sleep debt: each hour of debt costs 5
  points (capped at 40); a week averaging under 1h of debt earns +10
- Levels clamp to 5-100 and map onto peak / moderate / low / crash

Scientific basis:
- Two-Process Model: Borbély AA (1982). Human Neurobiology, 1(3), 195-204.
- Post-lunch dip: Monk TH (2005). Clinics in Sports Medicine, 24(2), e15-e23.
- Cost of sleep debt: Van Dongen et al. (2003). Sleep, 26(2), 117-126.

Confidence values are heuristics, not calibrated probabilities.
"""

import math
from datetime import datetime, timedelta
from typing import Any

import pytz

from ..circadian_math import (
    add_hours,
    format_time,
    get_current_datetime_in_tz,
    local_now,
    minutes_until,
)
from ..types import (
    CircadianData,
    CircadianPhase,
    EnergyData,
    EnergyInsight,
    EnergyLevel,
    EnergyPhaseTag,
    EnergyPrediction,
    EnergySettings,
    InsightAction,
    Location,
    SleepDebt,
    SleepSession,
    SunPhase,
)
from .circadian_windows import (
    DEFAULT_LOCATION,
    get_circadian_data,
    get_current_sun_phase,
    get_time_to_optimal_sleep,
)
from .sleep_debt import calculate_sleep_debt, get_sleep_debt_severity

# Energy level bounds and debt effects
MIN_ENERGY = 5
MAX_ENERGY = 100
DEBT_PENALTY_PER_HOUR = 5
MAX_DEBT_PENALTY = 40
CONSISTENCY_BONUS = 10
CONSISTENCY_MAX_WEEKLY_DEBT = 1.0  # hours

# Phase thresholds (inclusive lower bounds)
PEAK_THRESHOLD = 80
MODERATE_THRESHOLD = 60
LOW_THRESHOLD = 30

# Confidence heuristics
BASE_CONFIDENCE = 0.8
HIGH_DEBT_HOURS = 5
HIGH_DEBT_CONFIDENCE_PENALTY = 0.2
FRESH_DATA_HOURS = 12
FRESH_DATA_CONFIDENCE_BONUS = 0.1
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 1.0

# Forecast
FORECAST_HOURS = 24
FORECAST_BASE_CONFIDENCE = 0.7
FORECAST_CONFIDENCE_DECAY = 0.02  # per hour ahead
FORECAST_SLEEP_START_HOUR = 8  # assumed sleep between these forecast offsets
FORECAST_SLEEP_END_HOUR = 16
FORECAST_RECOVERED_DEBT_HOURS = 8
NEXT_PEAK_FALLBACK = timedelta(hours=12)
NEXT_LOW_FALLBACK = timedelta(hours=6)

# Insights
UPCOMING_PEAK_MINUTES = 120
UPCOMING_DIP_MINUTES = 60
RECENT_SLEEP_COUNT = 7


CIRCADIAN_PHASES: dict[str, CircadianPhase] = {
    "morning-rise": CircadianPhase(
        phase="morning-rise",
        description="Your body is naturally waking up and energy is rising",
        energy_trend="rising",
        recommendations=(
            "Get natural light exposure",
            "Light exercise or stretching",
            "Hydrate well",
        ),
        optimal_activities=("Planning", "Light tasks", "Morning routine"),
    ),
    "morning-peak": CircadianPhase(
        phase="morning-peak",
        description="Peak cognitive performance time for most people",
        energy_trend="stable",
        recommendations=(
            "Tackle complex tasks",
            "Important meetings",
            "Creative work",
        ),
        optimal_activities=("Deep work", "Problem solving", "Learning"),
    ),
    "afternoon-dip": CircadianPhase(
        phase="afternoon-dip",
        description="Natural energy dip - normal biological response",
        energy_trend="falling",
        recommendations=(
            "Take a short break",
            "Light snack if needed",
            "Avoid important decisions",
        ),
        optimal_activities=("Administrative tasks", "Emails", "Light exercise"),
    ),
    "evening-peak": CircadianPhase(
        phase="evening-peak",
        description="Second wind - good time for physical activity",
        energy_trend="rising",
        recommendations=(
            "Physical exercise",
            "Social activities",
            "Finish important tasks",
        ),
        optimal_activities=("Exercise", "Socializing", "Project completion"),
    ),
    "wind-down": CircadianPhase(
        phase="wind-down",
        description="Body preparing for sleep - start relaxing",
        energy_trend="falling",
        recommendations=(
            "Dim the lights",
            "Avoid screens",
            "Relaxing activities",
        ),
        optimal_activities=("Reading", "Meditation", "Light stretching"),
    ),
    "deep-sleep": CircadianPhase(
        phase="deep-sleep",
        description="Time for restorative sleep",
        energy_trend="stable",
        recommendations=(
            "Sleep in dark, cool room",
            "No screens or stimulation",
            "Consistent sleep schedule",
        ),
        optimal_activities=("Sleep", "Rest", "Recovery"),
    ),
}


def get_circadian_energy_level(sun_phase: SunPhase, at: datetime) -> float:
    """
    Base energy (roughly 5-95) for a sun phase and local clock time.

    Args:
        sun_phase: Phase of the sun used to pick the curve segment
        at: Moment whose local hour/minute drives the curve

    Returns:
        Unclamped base energy
    """
    t = at.hour + at.minute / 60

    if sun_phase == "night":
        return 10 + math.sin((t - 22) * math.pi / 10) * 10
    elif sun_phase == "dawn":
        dawn_progress = (t - 5) / 2  # ~2 hour dawn
        return 30 + dawn_progress * 40
    elif sun_phase == "day":
        if t < 12:
            # Morning peak
            return 70 + math.sin((t - 6) * math.pi / 6) * 20
        elif t < 15:
            # Post-lunch dip
            return 75 - math.sin((t - 12) * math.pi / 3) * 15
        # Late-afternoon recovery
        return 65 + math.sin((t - 15) * math.pi / 3) * 15
    elif sun_phase == "dusk":
        dusk_progress = (t - 17) / 3  # ~3 hour dusk
        return 80 - dusk_progress * 30
    raise ValueError(f"Unknown sun phase: {sun_phase!r}")


def classify_energy_phase(level: float) -> EnergyPhaseTag:
    if level >= PEAK_THRESHOLD:
        return "peak"
    elif level >= MODERATE_THRESHOLD:
        return "moderate"
    elif level >= LOW_THRESHOLD:
        return "low"
    return "crash"


def clamp_energy(value: float) -> float:
    return max(MIN_ENERGY, min(MAX_ENERGY, value))


def debt_penalty(debt_hours: float) -> float:
    return min(MAX_DEBT_PENALTY, debt_hours * DEBT_PENALTY_PER_HOUR)


def calculate_confidence(sleep_debt: SleepDebt, now: datetime) -> float:
    """Start at 0.8, -0.2 above 5h debt, +0.1 for a debt snapshot under 12h old."""
    confidence = BASE_CONFIDENCE

    if sleep_debt.total_hours > HIGH_DEBT_HOURS:
        confidence -= HIGH_DEBT_CONFIDENCE_PENALTY

    hours_old = (now - sleep_debt.last_updated).total_seconds() / 3600
    if hours_old < FRESH_DATA_HOURS:
        confidence += FRESH_DATA_CONFIDENCE_BONUS

    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, round(confidence, 10)))


def _now_for(data: CircadianData) -> datetime:
    return get_current_datetime_in_tz(data.location.timezone)


def calculate_current_energy_level(
    data: CircadianData,
    sleep_debt: SleepDebt,
    settings: EnergySettings | dict[str, Any] | None = None,
    now: datetime | None = None,
) -> EnergyLevel:
    """
    Current energy level from sun phase and sleep debt.

    Args:
        data: Circadian data for today
        sleep_debt: Current sleep debt
        settings: Accepted for interface symmetry; no setting changes the curve yet
        now: Current time (defaults to now in the location's timezone)

    Returns:
        EnergyLevel clamped to 5-100
    """
    if now is None:
        now = _now_for(data)

    sun_phase = get_current_sun_phase(data, now).phase
    base = get_circadian_energy_level(sun_phase, now)

    bonus = CONSISTENCY_BONUS if sleep_debt.weekly_average < CONSISTENCY_MAX_WEEKLY_DEBT else 0
    energy = clamp_energy(base - debt_penalty(sleep_debt.total_hours) + bonus)

    return EnergyLevel(
        timestamp=now,
        level=math.floor(energy + 0.5),
        phase=classify_energy_phase(energy),
        confidence=calculate_confidence(sleep_debt, now),
    )


def generate_energy_forecast(
    data: CircadianData,
    sleep_debt: SleepDebt,
    now: datetime | None = None,
) -> list[EnergyLevel]:
    """
    Hourly energy forecast for the next 24 hours.

    The current sun phase is reused for every offset rather than recomputed
    per hour, so offsets that cross dawn or dusk keep today's phase curve.
    Offsets strictly between 8 and 16 hours assume a night of sleep has
    paid back up to 8 hours of debt. No consistency bonus is applied.
    """
    if now is None:
        now = _now_for(data)

    sun_phase = get_current_sun_phase(data, now).phase

    forecast = []
    for i in range(FORECAST_HOURS):
        future = add_hours(now, i)
        base = get_circadian_energy_level(sun_phase, future)

        adjusted_debt = sleep_debt.total_hours
        if FORECAST_SLEEP_START_HOUR < i < FORECAST_SLEEP_END_HOUR:
            adjusted_debt = max(0.0, adjusted_debt - FORECAST_RECOVERED_DEBT_HOURS)

        energy = clamp_energy(base - debt_penalty(adjusted_debt))
        forecast.append(
            EnergyLevel(
                timestamp=future,
                level=math.floor(energy + 0.5),
                phase=classify_energy_phase(energy),
                confidence=round(FORECAST_BASE_CONFIDENCE - i * FORECAST_CONFIDENCE_DECAY, 10),
            )
        )
    return forecast


def get_circadian_phase_for_hour(hour: int) -> CircadianPhase:
    """
    Fixed hour-of-day phase table.

    12:00-12:59 and 22:00-05:59 fall through to deep-sleep.
    """
    if 6 <= hour < 10:
        return CIRCADIAN_PHASES["morning-rise"]
    elif 10 <= hour < 12:
        return CIRCADIAN_PHASES["morning-peak"]
    elif 13 <= hour < 15:
        return CIRCADIAN_PHASES["afternoon-dip"]
    elif 15 <= hour < 18:
        return CIRCADIAN_PHASES["evening-peak"]
    elif 18 <= hour < 22:
        return CIRCADIAN_PHASES["wind-down"]
    return CIRCADIAN_PHASES["deep-sleep"]


def get_current_circadian_phase(now: datetime | None = None) -> CircadianPhase:
    if now is None:
        now = local_now()
    return get_circadian_phase_for_hour(now.hour)


def _first_with_phase(forecast: list[EnergyLevel], phases: tuple[str, ...]) -> EnergyLevel | None:
    return next((f for f in forecast if f.phase in phases), None)


def generate_energy_insights(
    sleep_debt: SleepDebt,
    current_energy: EnergyLevel,
    circadian_phase: CircadianPhase,
    forecast: list[EnergyLevel],
    now: datetime | None = None,
) -> list[EnergyInsight]:
    """
    Build the insight list for this evaluation cycle, highest priority first.

    Rules:
    - Moderate or severe debt: warning (priority 7, 9 when severe)
    - Forecast peak within 120 minutes: success (6)
    - Forecast low/crash within 60 minutes: info (5)
    - First recommendation of the circadian phase: tip (4)

    Ties keep generation order.
    """
    if now is None:
        now = current_energy.timestamp

    insights = []

    severity = get_sleep_debt_severity(sleep_debt.total_hours)
    if severity.level in ("moderate", "severe"):
        insights.append(
            EnergyInsight(
                id="sleep-debt-warning",
                type="warning",
                title="Sleep Debt Detected",
                message=(
                    f"You have {sleep_debt.total_hours}h of sleep debt. "
                    "This is reducing your energy levels."
                ),
                actionable=True,
                action=InsightAction(label="See Recovery Plan", action_id="show-recovery-plan"),
                priority=9 if severity.level == "severe" else 7,
            )
        )

    next_peak = _first_with_phase(forecast, ("peak",))
    next_low = _first_with_phase(forecast, ("low", "crash"))

    if next_peak is not None and minutes_until(next_peak.timestamp, now) < UPCOMING_PEAK_MINUTES:
        insights.append(
            EnergyInsight(
                id="upcoming-peak",
                type="success",
                title="Peak Energy Approaching",
                message=(
                    f"Your energy will peak at {format_time(next_peak.timestamp)}. "
                    "Perfect time for important tasks."
                ),
                actionable=False,
                priority=6,
            )
        )

    if next_low is not None and minutes_until(next_low.timestamp, now) < UPCOMING_DIP_MINUTES:
        insights.append(
            EnergyInsight(
                id="upcoming-dip",
                type="info",
                title="Energy Dip Coming",
                message=(
                    f"Energy will dip at {format_time(next_low.timestamp)}. "
                    "Consider scheduling a break."
                ),
                actionable=False,
                priority=5,
            )
        )

    if circadian_phase.recommendations:
        insights.append(
            EnergyInsight(
                id="phase-recommendation",
                type="tip",
                title=f"{circadian_phase.phase.replace('-', ' ').upper()} Phase",
                message=circadian_phase.recommendations[0],
                actionable=False,
                priority=4,
            )
        )

    # sorted() is stable, so equal priorities keep generation order
    return sorted(insights, key=lambda insight: insight.priority, reverse=True)


def generate_energy_prediction(
    data: CircadianData,
    sleep_debt: SleepDebt,
    settings: EnergySettings | dict[str, Any] | None = None,
    now: datetime | None = None,
) -> EnergyPrediction:
    """Current level, 24h forecast, next peak/low and bedtime guidance."""
    if now is None:
        now = _now_for(data)

    current = calculate_current_energy_level(data, sleep_debt, settings, now=now)
    forecast = generate_energy_forecast(data, sleep_debt, now=now)

    next_peak = _first_with_phase(forecast, ("peak",))
    next_low = _first_with_phase(forecast, ("low", "crash"))

    return EnergyPrediction(
        current_level=current,
        hourly_forecast=forecast,
        next_peak_time=next_peak.timestamp if next_peak else now + NEXT_PEAK_FALLBACK,
        next_low_time=next_low.timestamp if next_low else now + NEXT_LOW_FALLBACK,
        recommended_bedtime=data.optimal_sleep_window.start,
        time_to_optimal_sleep=get_time_to_optimal_sleep(data, now),
    )


def generate_energy_data(
    sessions: list[SleepSession],
    location: Location | None = None,
    settings: EnergySettings | dict[str, Any] | None = None,
    now: datetime | None = None,
) -> EnergyData:
    """
    Compute everything the energy dashboard shows in one pass.

    Args:
        sessions: Session history snapshot (may be empty)
        location: Observer location, default location when omitted
        settings: Optional energy settings
        now: Current time (defaults to now in the location's timezone)
    """
    location = location or DEFAULT_LOCATION
    if now is None:
        now = get_current_datetime_in_tz(location.timezone)
    else:
        now = now.astimezone(pytz.timezone(location.timezone))
    data = get_circadian_data(now.date(), location)

    sleep_debt = calculate_sleep_debt(sessions, settings, now=now)
    prediction = generate_energy_prediction(data, sleep_debt, settings, now=now)
    phase = get_current_circadian_phase(now)
    insights = generate_energy_insights(
        sleep_debt, prediction.current_level, phase, prediction.hourly_forecast, now=now
    )
    recent = sorted(sessions, key=lambda s: s.date)[-RECENT_SLEEP_COUNT:]

    return EnergyData(
        sleep_debt=sleep_debt,
        prediction=prediction,
        current_phase=phase,
        insights=insights,
        recent_sleep=recent,
        last_calculated=now,
    )

