"""
Data structures for sleep planning and energy prediction.

Everything here is a plain value object. Derived records (solar times,
windows, debt, energy levels) are recomputed on every call and never
mutated in place.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

# =============================================================================
# Tag Types
# =============================================================================

SunPhase = Literal["night", "dawn", "day", "dusk"]

CycleQuality = Literal["short", "optimal", "extended"]

OptionQuality = Literal["custom", "short", "recommended", "extended"]

SessionQuality = Literal["poor", "fair", "good", "excellent"]

SessionSource = Literal["automatic", "manual"]

WakeConfidence = Literal["low", "medium", "high"]

WakeSource = Literal["visibility", "user-interaction", "manual"]

EnergyPhaseTag = Literal["peak", "moderate", "low", "crash"]

CircadianPhaseName = Literal[
    "morning-rise",  # 06-10
    "morning-peak",  # 10-12
    "afternoon-dip",  # 13-15
    "evening-peak",  # 15-18
    "wind-down",  # 18-22
    "deep-sleep",  # everything else
]

EnergyTrend = Literal["rising", "stable", "falling"]

InsightType = Literal["warning", "info", "success", "tip"]

DebtSeverityLevel = Literal["none", "mild", "moderate", "severe", "extreme"]

Chronotype = Literal["morning", "evening", "intermediate"]


# =============================================================================
# Location & Solar Types
# =============================================================================


@dataclass(frozen=True)
class Location:
    """Observer position plus the IANA zone used for local-time output."""

    latitude: float  # degrees, north positive
    longitude: float  # degrees, east positive
    timezone: str = "UTC"


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60

    def contains(self, moment: datetime) -> bool:
        """Inclusive containment test."""
        return self.start <= moment <= self.end


@dataclass(frozen=True)
class SolarTimes:
    """Sun events for one calendar date at one location."""

    sunrise: datetime
    sunset: datetime
    solar_noon: datetime
    nautical_dawn: datetime
    nautical_dusk: datetime
    nadir: datetime


@dataclass(frozen=True)
class CircadianData:
    """Solar times plus the optimal sleep and wake windows derived from them."""

    day: date
    location: Location
    solar: SolarTimes
    optimal_sleep_window: TimeWindow  # sunset +2h .. +4h
    optimal_wake_window: TimeWindow  # sunrise -30min .. +1h

    @property
    def sunrise(self) -> datetime:
        return self.solar.sunrise

    @property
    def sunset(self) -> datetime:
        return self.solar.sunset


@dataclass
class CircadianAlignment:
    sleep_alignment: int  # 0-100
    wake_alignment: int  # 0-100
    overall_alignment: float  # mean of the two
    recommendations: list[str] = field(default_factory=list)


@dataclass
class SunPhaseInfo:
    phase: SunPhase
    next_transition: datetime
    minutes_to_next: int


# =============================================================================
# Sleep Cycle Types
# =============================================================================


@dataclass(frozen=True)
class SleepCycleOption:
    """One candidate bedtime for a fixed wake time."""

    bedtime: datetime
    duration: float  # hours of sleep, excluding the onset buffer
    cycles: int  # 3-6
    quality: CycleQuality


@dataclass
class SleepCalculation:
    wake_time: datetime
    recommended_bedtimes: list[SleepCycleOption]
    current_time: datetime
    time_until_bedtime: int | None  # minutes until the next future bedtime
    time_until_wake: int | None  # minutes until wake time, None once passed


@dataclass(frozen=True)
class EnhancedSleepOption:
    """Best cycle-aligned wake time for one awake-duration hypothesis."""

    bedtime_alarm: datetime
    actual_sleep_time: datetime  # bedtime_alarm + onset buffer
    calculated_wake_time: datetime
    actual_sleep_duration: float  # hours
    cycles: int
    awake_hours: float
    quality: OptionQuality
    match_score: int  # 0-100


@dataclass
class EnhancedSleepCalculation:
    current_wake_time: datetime
    target_wake_time: datetime  # after roll-forward
    sleep_options: list[EnhancedSleepOption]
    best_match: EnhancedSleepOption | None
    custom_awake_duration: float | None = None


# =============================================================================
# Sleep Debt Types
# =============================================================================


@dataclass(frozen=True)
class SleepSession:
    """
    One night of sleep, either inferred by the wake detector or entered
    manually. Sessions are keyed by their `date` bucket (the wake day).
    """

    date: date
    bedtime: datetime
    wake_time: datetime
    actual_sleep_hours: float
    planned_sleep_hours: float
    quality: SessionQuality | None
    sleep_debt_impact: float  # planned - actual, signed hours
    source: SessionSource

    # Detector-inferred sessions only
    cycles: int | None = None
    wake_confidence: WakeConfidence | None = None

    @property
    def time_in_bed_hours(self) -> float:
        return (self.wake_time - self.bedtime).total_seconds() / 3600

    @property
    def duration_minutes(self) -> float:
        return (self.wake_time - self.bedtime).total_seconds() / 60


@dataclass(frozen=True)
class SleepDebt:
    total_hours: float  # 7-day rolling sum of daily shortfalls
    daily_deficit: float  # today's shortfall
    weekly_average: float  # mean of the 7 daily shortfalls
    optimal_sleep_hours: float
    last_updated: datetime


@dataclass(frozen=True)
class DebtSeverity:
    level: DebtSeverityLevel
    description: str
    color: str


@dataclass(frozen=True)
class RecoveryTimeline:
    days_to_recover: int
    recovery_date: datetime


# =============================================================================
# Wake Detection Types
# =============================================================================


@dataclass(frozen=True)
class WakeEvent:
    timestamp: datetime
    confidence: WakeConfidence
    source: WakeSource


# =============================================================================
# Energy Types
# =============================================================================


@dataclass(frozen=True)
class EnergyLevel:
    timestamp: datetime
    level: int  # 5-100 once clamped
    phase: EnergyPhaseTag
    confidence: float  # 0-1, heuristic


@dataclass
class EnergyPrediction:
    current_level: EnergyLevel
    hourly_forecast: list[EnergyLevel]  # next 24 hours
    next_peak_time: datetime
    next_low_time: datetime
    recommended_bedtime: datetime
    time_to_optimal_sleep: int  # minutes


@dataclass(frozen=True)
class CircadianPhase:
    phase: CircadianPhaseName
    description: str
    energy_trend: EnergyTrend
    recommendations: tuple[str, ...]
    optimal_activities: tuple[str, ...]


@dataclass(frozen=True)
class InsightAction:
    """Action descriptor; the presentation layer decides what it does."""

    label: str
    action_id: str


@dataclass
class EnergyInsight:
    id: str
    type: InsightType
    title: str
    message: str
    actionable: bool
    priority: int  # 1-10, 10 = highest
    action: InsightAction | None = None
    expires_at: datetime | None = None


@dataclass
class EnergyData:
    """Everything the energy dashboard needs, computed in one pass."""

    sleep_debt: SleepDebt
    prediction: EnergyPrediction
    current_phase: CircadianPhase
    insights: list[EnergyInsight]
    recent_sleep: list[SleepSession]
    last_calculated: datetime


# =============================================================================
# Settings
# =============================================================================


@dataclass
class EnergySettings:
    """User preferences that feed debt and energy calculations."""

    optimal_sleep_duration: float = 8.0  # hours
    bedtime_buffer: int = 30  # minutes of wind-down before sleep
    wake_time_consistency: float = 0.8  # 0-1
    energy_notifications: bool = True
    sleep_debt_threshold: float = 5.0  # hours of debt before warnings
    chronotype: Chronotype = "intermediate"
