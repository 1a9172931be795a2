"""
Capabilities the core consumes from its host.

The integration layer supplies already-resolved values through these
protocols: a clock, a location source and a session store. Each comes with
a simple implementation suitable for tests and scripts.
"""

from datetime import datetime, timedelta
from typing import Protocol

from .circadian_math import get_current_datetime_in_tz
from .errors import LocationUnavailableError
from .types import Location, SleepSession


class Clock(Protocol):
    def now(self) -> datetime: ...


class LocationSource(Protocol):
    def get_location(self) -> Location:
        """Return the current location or raise LocationUnavailableError."""
        ...


class SessionStore(Protocol):
    def load(self) -> list[SleepSession]: ...

    def save(self, sessions: list[SleepSession]) -> None: ...


class SystemClock:
    """Wall clock in a fixed IANA timezone."""

    def __init__(self, tz_name: str = "UTC"):
        self.tz_name = tz_name

    def now(self) -> datetime:
        return get_current_datetime_in_tz(self.tz_name)


class FixedClock:
    """Settable clock for tests and replays."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current

    def advance(self, minutes: float = 0, hours: float = 0, seconds: float = 0) -> datetime:
        self.current = self.current + timedelta(hours=hours, minutes=minutes, seconds=seconds)
        return self.current


class StaticLocationSource:
    def __init__(self, location: Location):
        self.location = location

    def get_location(self) -> Location:
        return self.location


class UnavailableLocationSource:
    """Location source that always fails, e.g. permission denied."""

    def __init__(self, reason: str = "Geolocation is not supported"):
        self.reason = reason

    def get_location(self) -> Location:
        raise LocationUnavailableError(self.reason)


class InMemorySessionStore:
    """Session store that keeps a snapshot list in memory."""

    def __init__(self, sessions: list[SleepSession] | None = None):
        self._sessions: list[SleepSession] = list(sessions or [])

    def load(self) -> list[SleepSession]:
        return list(self._sessions)

    def save(self, sessions: list[SleepSession]) -> None:
        self._sessions = list(sessions)
