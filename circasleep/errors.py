"""Exceptions raised by circasleep."""


class CircasleepError(Exception):
    """Base class for all circasleep errors."""


class TimeParseError(CircasleepError, ValueError):
    """An "HH:MM" string could not be parsed into a valid clock time."""

    def __init__(self, value: str):
        super().__init__(f"Invalid time string {value!r}, expected HH:MM")
        self.value = value


class LocationUnavailableError(CircasleepError):
    """A location source could not provide coordinates (denied, unsupported, timed out)."""


class SolarEventError(CircasleepError, ValueError):
    """Sun times cannot be computed for these coordinates."""
