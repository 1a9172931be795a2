"""
Circasleep Sleep & Energy Planning

Solar-anchored sleep windows, 90-minute cycle bedtime planning, rolling
sleep debt, passive wake detection and circadian energy prediction.
"""

from .detection import WakeDetector
from .errors import (
    CircasleepError,
    LocationUnavailableError,
    SolarEventError,
    TimeParseError,
)
from .science import (
    DEFAULT_LOCATION,
    SessionHistory,
    calculate_circadian_alignment,
    calculate_enhanced_sleep_schedule,
    calculate_optimal_bedtimes,
    calculate_sleep_debt,
    generate_energy_data,
    get_circadian_data,
    get_solar_times,
)
from .types import (
    CircadianData,
    EnergyData,
    EnergySettings,
    Location,
    SleepDebt,
    SleepSession,
    WakeEvent,
)

__all__ = [
    # Types
    "Location",
    "CircadianData",
    "SleepSession",
    "SleepDebt",
    "WakeEvent",
    "EnergySettings",
    "EnergyData",
    # Errors
    "CircasleepError",
    "TimeParseError",
    "LocationUnavailableError",
    "SolarEventError",
    # Solar windows
    "DEFAULT_LOCATION",
    "get_solar_times",
    "get_circadian_data",
    "calculate_circadian_alignment",
    # Planning
    "calculate_optimal_bedtimes",
    "calculate_enhanced_sleep_schedule",
    # Debt
    "calculate_sleep_debt",
    "SessionHistory",
    # Detection
    "WakeDetector",
    # Energy
    "generate_energy_data",
]
