"""
Plain-dict conversion for persistence and JSON transport.

Keys are camelCase; timestamps are ISO 8601 with offset and microseconds,
dates are ISO calendar dates. Every *_to_dict has a *_from_dict partner that
restores an equal value.
"""

from dataclasses import fields
from datetime import date, datetime
from typing import Any

from .types import (
    CircadianData,
    CircadianPhase,
    EnergyData,
    EnergyInsight,
    EnergyLevel,
    EnergyPrediction,
    EnergySettings,
    InsightAction,
    Location,
    SleepDebt,
    SleepSession,
    SolarTimes,
    TimeWindow,
    WakeEvent,
)


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# =============================================================================
# Sessions
# =============================================================================


def session_to_dict(s: SleepSession) -> dict[str, Any]:
    return {
        "date": s.date.isoformat(),
        "bedtime": _ts(s.bedtime),
        "wakeTime": _ts(s.wake_time),
        "actualSleepHours": s.actual_sleep_hours,
        "plannedSleepHours": s.planned_sleep_hours,
        "quality": s.quality,
        "sleepDebtImpact": s.sleep_debt_impact,
        "source": s.source,
        "cycles": s.cycles,
        "wakeConfidence": s.wake_confidence,
    }


def session_from_dict(d: dict[str, Any]) -> SleepSession:
    return SleepSession(
        date=date.fromisoformat(d["date"]),
        bedtime=_parse_ts(d["bedtime"]),
        wake_time=_parse_ts(d["wakeTime"]),
        actual_sleep_hours=float(d["actualSleepHours"]),
        planned_sleep_hours=float(d["plannedSleepHours"]),
        quality=d.get("quality"),
        sleep_debt_impact=float(d["sleepDebtImpact"]),
        source=d["source"],
        cycles=d.get("cycles"),
        wake_confidence=d.get("wakeConfidence"),
    )


def sessions_to_dict(sessions: list[SleepSession]) -> list[dict[str, Any]]:
    """Convert sessions to JSON-serializable dicts."""
    return [session_to_dict(s) for s in sessions]


def sessions_from_dict(data: list[dict[str, Any]] | None) -> list[SleepSession]:
    """Convert JSON dicts to SleepSession objects; None reads as no data."""
    return [session_from_dict(d) for d in data or []]


# =============================================================================
# Debt & Events
# =============================================================================


def sleep_debt_to_dict(debt: SleepDebt) -> dict[str, Any]:
    return {
        "totalHours": debt.total_hours,
        "dailyDeficit": debt.daily_deficit,
        "weeklyAverage": debt.weekly_average,
        "optimalSleepHours": debt.optimal_sleep_hours,
        "lastUpdated": _ts(debt.last_updated),
    }


def sleep_debt_from_dict(d: dict[str, Any]) -> SleepDebt:
    return SleepDebt(
        total_hours=d["totalHours"],
        daily_deficit=d["dailyDeficit"],
        weekly_average=d["weeklyAverage"],
        optimal_sleep_hours=d["optimalSleepHours"],
        last_updated=_parse_ts(d["lastUpdated"]),
    )


def wake_event_to_dict(event: WakeEvent) -> dict[str, Any]:
    return {
        "timestamp": _ts(event.timestamp),
        "confidence": event.confidence,
        "source": event.source,
    }


def wake_event_from_dict(d: dict[str, Any]) -> WakeEvent:
    return WakeEvent(
        timestamp=_parse_ts(d["timestamp"]),
        confidence=d["confidence"],
        source=d["source"],
    )


# =============================================================================
# Energy
# =============================================================================


def energy_level_to_dict(level: EnergyLevel) -> dict[str, Any]:
    return {
        "timestamp": _ts(level.timestamp),
        "level": level.level,
        "phase": level.phase,
        "confidence": level.confidence,
    }


def energy_level_from_dict(d: dict[str, Any]) -> EnergyLevel:
    return EnergyLevel(
        timestamp=_parse_ts(d["timestamp"]),
        level=d["level"],
        phase=d["phase"],
        confidence=d["confidence"],
    )


def insight_to_dict(insight: EnergyInsight) -> dict[str, Any]:
    action = insight.action
    return {
        "id": insight.id,
        "type": insight.type,
        "title": insight.title,
        "message": insight.message,
        "actionable": insight.actionable,
        "action": {"label": action.label, "actionId": action.action_id} if action else None,
        "priority": insight.priority,
        "expiresAt": _ts(insight.expires_at),
    }


def insight_from_dict(d: dict[str, Any]) -> EnergyInsight:
    action = d.get("action")
    return EnergyInsight(
        id=d["id"],
        type=d["type"],
        title=d["title"],
        message=d["message"],
        actionable=d["actionable"],
        priority=d["priority"],
        action=InsightAction(label=action["label"], action_id=action["actionId"]) if action else None,
        expires_at=_parse_ts(d.get("expiresAt")),
    )


def circadian_phase_to_dict(phase: CircadianPhase) -> dict[str, Any]:
    return {
        "phase": phase.phase,
        "description": phase.description,
        "energyTrend": phase.energy_trend,
        "recommendations": list(phase.recommendations),
        "optimalActivities": list(phase.optimal_activities),
    }


def prediction_to_dict(prediction: EnergyPrediction) -> dict[str, Any]:
    return {
        "currentLevel": energy_level_to_dict(prediction.current_level),
        "hourlyForecast": [energy_level_to_dict(f) for f in prediction.hourly_forecast],
        "nextPeakTime": _ts(prediction.next_peak_time),
        "nextLowTime": _ts(prediction.next_low_time),
        "recommendedBedtime": _ts(prediction.recommended_bedtime),
        "timeToOptimalSleep": prediction.time_to_optimal_sleep,
    }


def energy_data_to_dict(data: EnergyData) -> dict[str, Any]:
    return {
        "sleepDebt": sleep_debt_to_dict(data.sleep_debt),
        "prediction": prediction_to_dict(data.prediction),
        "currentPhase": circadian_phase_to_dict(data.current_phase),
        "insights": [insight_to_dict(i) for i in data.insights],
        "recentSleep": sessions_to_dict(data.recent_sleep),
        "lastCalculated": _ts(data.last_calculated),
    }


# =============================================================================
# Circadian Data
# =============================================================================


def _window_to_dict(window: TimeWindow) -> dict[str, Any]:
    return {"start": _ts(window.start), "end": _ts(window.end)}


def _window_from_dict(d: dict[str, Any]) -> TimeWindow:
    return TimeWindow(start=_parse_ts(d["start"]), end=_parse_ts(d["end"]))


def circadian_data_to_dict(data: CircadianData) -> dict[str, Any]:
    solar = data.solar
    return {
        "date": data.day.isoformat(),
        "location": location_to_dict(data.location),
        "sunrise": _ts(solar.sunrise),
        "sunset": _ts(solar.sunset),
        "solarNoon": _ts(solar.solar_noon),
        "nauticalDawn": _ts(solar.nautical_dawn),
        "nauticalDusk": _ts(solar.nautical_dusk),
        "nadir": _ts(solar.nadir),
        "optimalSleepWindow": _window_to_dict(data.optimal_sleep_window),
        "optimalWakeWindow": _window_to_dict(data.optimal_wake_window),
    }


def circadian_data_from_dict(d: dict[str, Any]) -> CircadianData:
    return CircadianData(
        day=date.fromisoformat(d["date"]),
        location=location_from_dict(d["location"]),
        solar=SolarTimes(
            sunrise=_parse_ts(d["sunrise"]),
            sunset=_parse_ts(d["sunset"]),
            solar_noon=_parse_ts(d["solarNoon"]),
            nautical_dawn=_parse_ts(d["nauticalDawn"]),
            nautical_dusk=_parse_ts(d["nauticalDusk"]),
            nadir=_parse_ts(d["nadir"]),
        ),
        optimal_sleep_window=_window_from_dict(d["optimalSleepWindow"]),
        optimal_wake_window=_window_from_dict(d["optimalWakeWindow"]),
    )


def location_to_dict(location: Location) -> dict[str, Any]:
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "timezone": location.timezone,
    }


def location_from_dict(d: dict[str, Any]) -> Location:
    return Location(
        latitude=float(d["latitude"]),
        longitude=float(d["longitude"]),
        timezone=d.get("timezone", "UTC"),
    )


# =============================================================================
# Settings
# =============================================================================

_SETTINGS_KEYS = {
    "optimalSleepDuration": "optimal_sleep_duration",
    "bedtimeBuffer": "bedtime_buffer",
    "wakeTimeConsistency": "wake_time_consistency",
    "energyNotifications": "energy_notifications",
    "sleepDebtThreshold": "sleep_debt_threshold",
    "chronotype": "chronotype",
}


def settings_from_dict(d: dict[str, Any] | None) -> EnergySettings:
    """
    Build EnergySettings from a partial dict.

    Accepts camelCase or snake_case keys; unknown keys are ignored and
    missing ones keep their defaults.
    """
    known = {f.name for f in fields(EnergySettings)}
    values = {}
    for key, value in (d or {}).items():
        name = _SETTINGS_KEYS.get(key, key)
        if name in known:
            values[name] = value
    return EnergySettings(**values)


def settings_to_dict(settings: EnergySettings) -> dict[str, Any]:
    return {camel: getattr(settings, snake) for camel, snake in _SETTINGS_KEYS.items()}
