"""
Sleep debt accumulation over a rolling week.

Scientific basis:
- Cumulative cost of sleep restriction: Van Dongen et al. (2003). Sleep, 26(2), 117-126.
- Recovery sleep is slower than accumulation: Banks et al. (2010). Sleep, 33(8), 1013-1026.

Key rules:
- Debt is the sum of daily shortfalls (optimal - actual, floored at 0) over
  the 7 calendar days ending today
- A day with no recorded session counts as a full optimal-hours shortfall
- Debt is recomputed from the full history on every call
"""

import math
from datetime import date, datetime, timedelta
from typing import Any

from ..circadian_math import local_now, round_half_up
from ..ports import SessionStore
from ..types import (
    DebtSeverity,
    EnergySettings,
    RecoveryTimeline,
    SessionQuality,
    SessionSource,
    SleepDebt,
    SleepSession,
)

DEFAULT_OPTIMAL_SLEEP_HOURS = 8.0
DEBT_WINDOW_DAYS = 7
HISTORY_RETENTION_DAYS = 30
EFFICIENCY_SESSION_COUNT = 7

# Upper bounds (inclusive) for each severity level, hours of total debt
SEVERITY_LEVELS: tuple[tuple[float, DebtSeverity], ...] = (
    (1, DebtSeverity(level="none", description="Well rested", color="green")),
    (3, DebtSeverity(level="mild", description="Slightly tired", color="yellow")),
    (6, DebtSeverity(level="moderate", description="Noticeably tired", color="orange")),
    (10, DebtSeverity(level="severe", description="Very tired", color="red")),
)
EXTREME_SEVERITY = DebtSeverity(level="extreme", description="Exhausted", color="red")


def optimal_sleep_hours(settings: EnergySettings | dict[str, Any] | None) -> float:
    """Optimal nightly sleep from settings, falling back to 8 hours."""
    if settings is None:
        return DEFAULT_OPTIMAL_SLEEP_HOURS
    if isinstance(settings, dict):
        value = settings.get("optimal_sleep_duration")
    else:
        value = settings.optimal_sleep_duration
    return float(value) if value else DEFAULT_OPTIMAL_SLEEP_HOURS


def calculate_sleep_debt(
    sessions: list[SleepSession],
    settings: EnergySettings | dict[str, Any] | None = None,
    now: datetime | None = None,
) -> SleepDebt:
    """
    Calculate sleep debt from session history.

    Args:
        sessions: Full session history, any order (may be empty)
        settings: Optional override of the optimal sleep duration
        now: Current time; "today" is now's calendar date

    Returns:
        SleepDebt with total, today's and average deficit rounded to 0.1h
    """
    if now is None:
        now = local_now()

    optimal = optimal_sleep_hours(settings)
    today = now.date()
    by_day: dict[date, SleepSession] = {}
    for session in sessions:
        by_day.setdefault(session.date, session)

    deficits = []
    for offset in range(DEBT_WINDOW_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        session = by_day.get(day)
        if session is not None:
            deficits.append(max(0.0, optimal - session.actual_sleep_hours))
        else:
            # No data counts as a full night missed
            deficits.append(optimal)

    total = sum(deficits)
    return SleepDebt(
        total_hours=round_half_up(total, 1),
        daily_deficit=round_half_up(deficits[-1], 1),
        weekly_average=round_half_up(total / DEBT_WINDOW_DAYS, 1),
        optimal_sleep_hours=optimal,
        last_updated=now,
    )


def add_sleep_session(
    sessions: list[SleepSession],
    session: SleepSession,
    now: datetime | None = None,
) -> list[SleepSession]:
    """
    Insert a session into a history snapshot.

    A session for a date that already has one replaces it. Only the last
    30 days are kept, sorted by date ascending. The input list is not
    modified.
    """
    if now is None:
        now = local_now()

    cutoff = (now - timedelta(days=HISTORY_RETENTION_DAYS)).date()
    kept = [s for s in sessions if s.date != session.date]
    kept.append(session)
    kept = [s for s in kept if s.date >= cutoff]
    kept.sort(key=lambda s: s.date)
    return kept


def create_sleep_session(
    bedtime: datetime,
    wake_time: datetime,
    quality: SessionQuality | None = "good",
    source: SessionSource = "manual",
    planned_sleep_hours: float = DEFAULT_OPTIMAL_SLEEP_HOURS,
    **extra: Any,
) -> SleepSession:
    """
    Build a session from bedtime and wake time.

    The session is bucketed on the wake day. `extra` passes detector
    metadata (cycles, wake_confidence) through to the record.
    """
    actual = round((wake_time - bedtime).total_seconds() / 3600, 2)
    return SleepSession(
        date=wake_time.date(),
        bedtime=bedtime,
        wake_time=wake_time,
        actual_sleep_hours=actual,
        planned_sleep_hours=planned_sleep_hours,
        quality=quality,
        sleep_debt_impact=round(planned_sleep_hours - actual, 2),
        source=source,
        **extra,
    )


def get_sleep_debt_severity(debt_hours: float) -> DebtSeverity:
    """Classify total debt: <=1 none, <=3 mild, <=6 moderate, <=10 severe, else extreme."""
    for upper_bound, severity in SEVERITY_LEVELS:
        if debt_hours <= upper_bound:
            return severity
    return EXTREME_SEVERITY


def get_sleep_debt_recovery(
    current_debt: float, daily_extra: float = 1.0, now: datetime | None = None
) -> RecoveryTimeline:
    """
    Estimate how long paying back the debt takes at `daily_extra` hours/night.

    Zero (or negative) debt recovers today.

    Raises:
        ValueError: if daily_extra is not positive
    """
    if daily_extra <= 0:
        raise ValueError(f"daily_extra must be positive, got {daily_extra}")
    if now is None:
        now = local_now()

    if current_debt <= 0:
        return RecoveryTimeline(days_to_recover=0, recovery_date=now)

    days = math.ceil(current_debt / daily_extra)
    return RecoveryTimeline(days_to_recover=days, recovery_date=now + timedelta(days=days))


def calculate_sleep_efficiency(sessions: list[SleepSession]) -> int:
    """
    Mean sleep efficiency (asleep / in bed) over the 7 most recent sessions, as a percentage.

    History may arrive in any order; recency is by wake time. Sessions with
    no time in bed are skipped; returns 0 without usable data.
    """
    recent = sorted(sessions, key=lambda s: s.wake_time)[-EFFICIENCY_SESSION_COUNT:]
    efficiencies = [
        s.actual_sleep_hours / s.time_in_bed_hours for s in recent if s.time_in_bed_hours > 0
    ]
    if not efficiencies:
        return 0
    return math.floor(sum(efficiencies) / len(efficiencies) * 100 + 0.5)


class SessionHistory:
    """
    Session history bound to a store.

    Loads the snapshot, applies insertion rules and writes the full list
    back; the store decides how it is persisted.
    """

    def __init__(self, store: SessionStore):
        self._store = store

    def sessions(self) -> list[SleepSession]:
        return self._store.load()

    def record(self, session: SleepSession, now: datetime | None = None) -> list[SleepSession]:
        updated = add_sleep_session(self._store.load(), session, now=now)
        self._store.save(updated)
        return updated

    def debt(
        self,
        settings: EnergySettings | dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> SleepDebt:
        return calculate_sleep_debt(self._store.load(), settings, now=now)
