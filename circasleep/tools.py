"""
JSON-facing tool implementations for sleep planning and energy.

Provides three tools:
1. get_sleep_plan - Bedtimes for a wake time, or an enhanced plan from
   this morning's wake time and tomorrow's target
2. get_circadian_report - Solar windows, sun phase and optional alignment
3. get_energy_report - Sleep debt, energy prediction and insights

Inputs are plain dicts with snake_case keys; outputs use the camelCase
shapes from circasleep.serialization.
"""

from datetime import date, datetime
from typing import Any

import pytz

from .circadian_math import (
    format_awake_duration,
    format_duration,
    format_time,
    get_current_datetime_in_tz,
    parse_wake_time,
)
from .science.circadian_windows import (
    DEFAULT_LOCATION,
    calculate_circadian_alignment,
    get_circadian_data,
    get_current_sun_phase,
    get_time_to_optimal_sleep,
)
from .science.energy import generate_energy_data
from .science.sleep_cycles import build_plan_from_strings, calculate_optimal_bedtimes
from .science.sleep_debt import (
    calculate_sleep_efficiency,
    get_sleep_debt_recovery,
    get_sleep_debt_severity,
)
from .serialization import (
    circadian_data_to_dict,
    energy_data_to_dict,
    location_from_dict,
    sessions_from_dict,
    settings_from_dict,
)
from .types import Location


def _location(params: dict[str, Any]) -> Location:
    raw = params.get("location")
    return location_from_dict(raw) if raw else DEFAULT_LOCATION


def _now(params: dict[str, Any], location: Location) -> datetime:
    """Optional ISO "now" from params, expressed in the location's zone."""
    tz = pytz.timezone(location.timezone)
    raw = params.get("now")
    if not raw:
        return get_current_datetime_in_tz(location.timezone)
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return tz.localize(parsed)
    return parsed.astimezone(tz)


def get_sleep_plan(params: dict[str, Any]) -> dict[str, Any]:
    """
    Plan tonight's sleep.

    With "current_wake_time" and "target_wake_time" (HH:MM) returns the
    enhanced plan; otherwise "wake_time" (HH:MM) yields the simple list of
    cycle-aligned bedtimes.
    """
    location = _location(params)
    now = _now(params, location)

    if "current_wake_time" in params and "target_wake_time" in params:
        plan = build_plan_from_strings(
            params["current_wake_time"],
            params["target_wake_time"],
            params.get("custom_awake_hours"),
            now=now,
        )
        options = [
            {
                "bedtimeAlarm": o.bedtime_alarm.isoformat(),
                "actualSleepTime": o.actual_sleep_time.isoformat(),
                "calculatedWakeTime": o.calculated_wake_time.isoformat(),
                "actualSleepDuration": o.actual_sleep_duration,
                "cycles": o.cycles,
                "awakeHours": o.awake_hours,
                "awakeLabel": format_awake_duration(o.awake_hours),
                "quality": o.quality,
                "matchScore": o.match_score,
            }
            for o in plan.sleep_options
        ]
        best = plan.best_match
        return {
            "mode": "enhanced",
            "currentWakeTime": plan.current_wake_time.isoformat(),
            "targetWakeTime": plan.target_wake_time.isoformat(),
            "options": options,
            "bestMatch": plan.sleep_options.index(best) if best is not None else None,
        }

    wake_time = parse_wake_time(params.get("wake_time", "07:00"), now)
    calc = calculate_optimal_bedtimes(wake_time, now)
    return {
        "mode": "simple",
        "wakeTime": calc.wake_time.isoformat(),
        "bedtimes": [
            {
                "bedtime": o.bedtime.isoformat(),
                "clock": format_time(o.bedtime),
                "duration": o.duration,
                "durationLabel": format_duration(o.duration),
                "cycles": o.cycles,
                "quality": o.quality,
            }
            for o in calc.recommended_bedtimes
        ],
        "timeUntilBedtime": calc.time_until_bedtime,
        "timeUntilWake": calc.time_until_wake,
    }


def get_circadian_report(params: dict[str, Any]) -> dict[str, Any]:
    """
    Solar times and optimal windows for a date and location.

    Optional "bedtime" and "wake_time" (ISO datetimes) add an alignment block.
    """
    location = _location(params)
    now = _now(params, location)
    day = date.fromisoformat(params["date"]) if params.get("date") else now.date()

    data = get_circadian_data(day, location)
    phase = get_current_sun_phase(data, now)

    report = {
        "circadian": circadian_data_to_dict(data),
        "sunPhase": {
            "phase": phase.phase,
            "nextTransition": phase.next_transition.isoformat(),
            "minutesToNext": phase.minutes_to_next,
        },
        "timeToOptimalSleep": get_time_to_optimal_sleep(data, now),
    }

    if params.get("bedtime") and params.get("wake_time"):
        alignment = calculate_circadian_alignment(
            datetime.fromisoformat(params["bedtime"]),
            datetime.fromisoformat(params["wake_time"]),
            data,
        )
        report["alignment"] = {
            "sleepAlignment": alignment.sleep_alignment,
            "wakeAlignment": alignment.wake_alignment,
            "overallAlignment": alignment.overall_alignment,
            "recommendations": alignment.recommendations,
        }

    return report


def get_energy_report(params: dict[str, Any]) -> dict[str, Any]:
    """
    Energy dashboard data from a serialized session history.

    Adds debt severity, recovery timeline and sleep efficiency to the
    serialized EnergyData.
    """
    location = _location(params)
    now = _now(params, location)
    sessions = sessions_from_dict(params.get("sessions"))
    settings = settings_from_dict(params.get("settings"))

    data = generate_energy_data(sessions, location, settings, now=now)
    severity = get_sleep_debt_severity(data.sleep_debt.total_hours)
    recovery = get_sleep_debt_recovery(data.sleep_debt.total_hours, now=now)

    report = energy_data_to_dict(data)
    report["severity"] = {
        "level": severity.level,
        "description": severity.description,
        "color": severity.color,
    }
    report["recovery"] = {
        "daysToRecover": recovery.days_to_recover,
        "recoveryDate": recovery.recovery_date.isoformat(),
    }
    report["sleepEfficiency"] = calculate_sleep_efficiency(sessions)
    return report


def invoke_tool(tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Router function for CLI/subprocess invocation."""
    if tool_name == "get_sleep_plan":
        return get_sleep_plan(arguments)
    elif tool_name == "get_circadian_report":
        return get_circadian_report(arguments)
    elif tool_name == "get_energy_report":
        return get_energy_report(arguments)
    else:
        raise ValueError(f"Unknown tool: {tool_name}")
