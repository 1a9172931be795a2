"""
Passive wake/sleep inference from device activity.

The host feeds two signals into a WakeDetector:
- Visibility changes (app foregrounded / backgrounded)
- Generic user interaction pulses (pointer, key, touch, focus)

A background period of at least SLEEP_THRESHOLD_MINUTES ending in a
foreground transition is read as a night of sleep: listeners get a
WakeEvent and an automatic SleepSession is recorded. The interaction path
only raises WakeEvents; the visibility path is the only one that writes
sessions.

Handlers run on the host's single event loop, so there is no locking.
Listeners are notified from a snapshot of the registry, which keeps
registration changes made inside a callback from affecting the current
delivery.
"""

import logging
import math
import statistics
from datetime import datetime, timedelta
from typing import Callable

from ..circadian_math import minutes_of_day
from ..ports import Clock, InMemorySessionStore, SessionStore, SystemClock
from ..science.sleep_cycles import SLEEP_CYCLE_MINUTES
from ..science.sleep_debt import (
    DEFAULT_OPTIMAL_SLEEP_HOURS,
    SessionHistory,
    create_sleep_session,
)
from ..types import SessionQuality, SleepSession, WakeConfidence, WakeEvent

logger = logging.getLogger(__name__)

WakeListener = Callable[[WakeEvent], None]

SLEEP_THRESHOLD_MINUTES = 180  # 3h minimum background time to count as sleep
HIGH_CONFIDENCE_MINUTES = 480  # 8h+
MEDIUM_CONFIDENCE_MINUTES = 360  # 6h+

# Interaction-path wake events are dropped this soon after a visibility-path one
INTERACTION_SUPPRESSION_SECONDS = 300

MIN_SESSIONS_FOR_CONSISTENCY = 3


def calculate_wake_confidence(inactive_minutes: float) -> WakeConfidence:
    """Grade a wake event by how long the device was idle."""
    if inactive_minutes >= HIGH_CONFIDENCE_MINUTES:
        return "high"
    if inactive_minutes >= MEDIUM_CONFIDENCE_MINUTES:
        return "medium"
    return "low"


def estimate_cycles(duration_minutes: float) -> int:
    return math.floor(duration_minutes / SLEEP_CYCLE_MINUTES + 0.5)


class WakeDetector:
    """
    Activity-driven wake detector.

    Owned by the integration layer: construct one, start() it, and forward
    visibility and interaction signals. State is limited to the last
    transition and its direction, the active flag and the listener registry.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        store: SessionStore | None = None,
        sleep_threshold_minutes: float = SLEEP_THRESHOLD_MINUTES,
        interaction_suppression_seconds: float = INTERACTION_SUPPRESSION_SECONDS,
        optimal_sleep_hours: float = DEFAULT_OPTIMAL_SLEEP_HOURS,
    ):
        self._clock = clock or SystemClock()
        self._history = SessionHistory(store or InMemorySessionStore())
        self.sleep_threshold_minutes = sleep_threshold_minutes
        self.interaction_suppression_seconds = interaction_suppression_seconds
        self.optimal_sleep_hours = optimal_sleep_hours

        self._last_transition: datetime | None = None
        self._foreground = False
        self._active = False
        self._listeners: list[WakeListener] = []

        # Tie-break state between the two signal paths
        self._last_visibility_wake: datetime | None = None
        self._interaction_fired_for: datetime | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        self._active = True

    def stop(self) -> None:
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def last_transition(self) -> datetime | None:
        return self._last_transition

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def add_listener(self, callback: WakeListener) -> Callable[[], None]:
        """
        Register a wake listener.

        Returns:
            A handle that unregisters this listener; calling it twice is harmless
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            self.remove_listener(callback)

        return unsubscribe

    def remove_listener(self, callback: WakeListener) -> None:
        self._listeners = [cb for cb in self._listeners if cb is not callback]

    def _notify(self, event: WakeEvent) -> None:
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                logger.exception("Wake listener %r failed", callback)

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    def on_visibility_change(self, visible: bool, now: datetime | None = None) -> WakeEvent | None:
        """
        Handle the app moving to the foreground (visible) or background.

        Returns:
            The emitted WakeEvent, or None
        """
        if not self._active:
            return None
        if now is None:
            now = self._clock.now()

        self._foreground = visible
        if visible:
            return self._handle_foreground(now)

        self._last_transition = now
        return None

    def on_user_interaction(self, now: datetime | None = None) -> WakeEvent | None:
        """
        Handle an interaction pulse.

        Emits a medium-confidence WakeEvent after a long enough background
        period, unless the visibility path already reported this wake-up.
        Pulses while the app is in the foreground are ignored; idle time is
        only counted from a background transition. Never records a session.
        """
        if not self._active or self._last_transition is None or self._foreground:
            return None
        if now is None:
            now = self._clock.now()

        inactive_minutes = (now - self._last_transition).total_seconds() / 60
        if inactive_minutes < self.sleep_threshold_minutes:
            return None

        if self._interaction_fired_for == self._last_transition:
            return None
        if self._last_visibility_wake is not None and now - self._last_visibility_wake < timedelta(
            seconds=self.interaction_suppression_seconds
        ):
            logger.debug("Interaction wake suppressed, visibility wake at %s", self._last_visibility_wake)
            return None

        self._interaction_fired_for = self._last_transition
        event = WakeEvent(timestamp=now, confidence="medium", source="user-interaction")
        self._notify(event)
        return event

    def _handle_foreground(self, now: datetime) -> WakeEvent | None:
        if self._last_transition is None:
            self._last_transition = now
            return None

        bedtime = self._last_transition
        inactive_minutes = (now - bedtime).total_seconds() / 60
        self._last_transition = now

        if inactive_minutes < self.sleep_threshold_minutes:
            return None

        confidence = calculate_wake_confidence(inactive_minutes)
        event = WakeEvent(timestamp=now, confidence=confidence, source="visibility")
        self._last_visibility_wake = now
        self._notify(event)

        session = create_sleep_session(
            bedtime,
            now,
            quality=None,
            source="automatic",
            planned_sleep_hours=self.optimal_sleep_hours,
            cycles=estimate_cycles(inactive_minutes),
            wake_confidence=confidence,
        )
        self._history.record(session, now=now)
        logger.info(
            "Inferred sleep %s -> %s (%.0f min, %s confidence)",
            bedtime.isoformat(),
            now.isoformat(),
            inactive_minutes,
            confidence,
        )
        return event

    # -------------------------------------------------------------------------
    # Manual logging
    # -------------------------------------------------------------------------

    def log_manual_sleep(
        self,
        bedtime: datetime,
        wake_time: datetime,
        quality: SessionQuality | None = None,
    ) -> SleepSession:
        """
        Record a user-entered night directly, bypassing the signal state machine.

        Emits a high-confidence manual WakeEvent at wake_time.
        """
        duration_minutes = (wake_time - bedtime).total_seconds() / 60
        session = create_sleep_session(
            bedtime,
            wake_time,
            quality=quality,
            source="manual",
            planned_sleep_hours=self.optimal_sleep_hours,
            cycles=estimate_cycles(duration_minutes),
        )
        self._history.record(session, now=self._clock.now())
        self._notify(WakeEvent(timestamp=wake_time, confidence="high", source="manual"))
        return session

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_sleep_history(self) -> list[SleepSession]:
        return self._history.sessions()

    def _recent_sessions(self, days: int, now: datetime | None) -> list[SleepSession]:
        if now is None:
            now = self._clock.now()
        cutoff = now - timedelta(days=days)
        return [s for s in self._history.sessions() if s.wake_time >= cutoff]

    def get_average_sleep_duration(self, days: int = 7, now: datetime | None = None) -> float | None:
        """Mean session length in minutes over the last `days`, None without data."""
        durations = [
            s.duration_minutes for s in self._recent_sessions(days, now) if s.duration_minutes > 0
        ]
        if not durations:
            return None
        return sum(durations) / len(durations)

    def get_sleep_consistency(self, days: int = 7, now: datetime | None = None) -> int | None:
        """
        Regularity score 0-100 from the spread of bedtimes and wake times.

        100 minus the mean of the two standard deviations (minutes of day),
        expressed per hour of spread, floored at 0. Needs at least 3 sessions.
        """
        recent = self._recent_sessions(days, now)
        if len(recent) < MIN_SESSIONS_FOR_CONSISTENCY:
            return None

        bedtime_std = statistics.pstdev([minutes_of_day(s.bedtime) for s in recent])
        wake_std = statistics.pstdev([minutes_of_day(s.wake_time) for s in recent])
        avg_std = (bedtime_std + wake_std) / 2

        consistency = max(0.0, 100 - (avg_std / 60) * 100)
        return math.floor(consistency + 0.5)
