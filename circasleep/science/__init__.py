"""
Sleep Science Layer.

Pure functions of (date, location, session history, settings); nothing here
keeps state between calls.

Modules:
- solar: Sunrise, sunset, solar noon and nautical twilight (low-precision ephemeris)
- circadian_windows: Solar-anchored sleep/wake windows and alignment scoring
- sleep_cycles: 90-minute cycle bedtime planning (Carskadon & Dement 2011)
- sleep_debt: Rolling 7-day sleep debt (Van Dongen 2003)
- energy: Energy prediction from circadian phase and debt (Borbély 1982)
"""

from .circadian_windows import (
    DEFAULT_LOCATION,
    calculate_circadian_alignment,
    get_circadian_data,
    get_current_sun_phase,
    resolve_location,
)
from .energy import generate_energy_data, generate_energy_prediction
from .sleep_cycles import calculate_enhanced_sleep_schedule, calculate_optimal_bedtimes
from .sleep_debt import SessionHistory, calculate_sleep_debt, get_sleep_debt_severity
from .solar import get_solar_times

__all__ = [
    "get_solar_times",
    "DEFAULT_LOCATION",
    "resolve_location",
    "get_circadian_data",
    "calculate_circadian_alignment",
    "get_current_sun_phase",
    "calculate_optimal_bedtimes",
    "calculate_enhanced_sleep_schedule",
    "calculate_sleep_debt",
    "get_sleep_debt_severity",
    "SessionHistory",
    "generate_energy_prediction",
    "generate_energy_data",
]
