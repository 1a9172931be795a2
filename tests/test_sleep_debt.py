"""
Tests for rolling sleep debt, session history and recovery.
"""

from dataclasses import replace
from datetime import date, timedelta

import pytest

from circasleep.ports import InMemorySessionStore
from circasleep.science.sleep_debt import (
    SessionHistory,
    add_sleep_session,
    calculate_sleep_debt,
    calculate_sleep_efficiency,
    create_sleep_session,
    get_sleep_debt_recovery,
    get_sleep_debt_severity,
)
from circasleep.types import EnergySettings

from helpers import local, make_session


class TestSleepDebt:
    """Seven calendar days ending today; missing days count in full."""

    def test_empty_history_is_maximal_debt(self, summer_now):
        debt = calculate_sleep_debt([], now=summer_now)

        assert debt.total_hours == 56.0
        assert debt.daily_deficit == 8.0
        assert debt.weekly_average == 8.0
        assert debt.optimal_sleep_hours == 8.0
        assert debt.last_updated == summer_now

    def test_full_week_at_optimal_is_zero(self, rested_week, summer_now):
        debt = calculate_sleep_debt(rested_week, now=summer_now)

        assert debt.total_hours == 0
        assert debt.daily_deficit == 0
        assert debt.weekly_average == 0

    def test_missing_today_counts_fully(self, summer_now):
        sessions = [make_session(summer_now.date(), 8.0, days_ago=d) for d in range(1, 7)]

        debt = calculate_sleep_debt(sessions, now=summer_now)

        assert debt.total_hours == 8.0
        assert debt.daily_deficit == 8.0
        assert debt.weekly_average == 1.1

    def test_short_night_today(self, rested_week, summer_now):
        sessions = rested_week[:-1] + [make_session(summer_now.date(), 6.5)]

        debt = calculate_sleep_debt(sessions, now=summer_now)

        assert debt.total_hours == 1.5
        assert debt.daily_deficit == 1.5
        assert debt.weekly_average == 0.2

    def test_oversleeping_does_not_pay_back(self, rested_week, summer_now):
        sessions = rested_week[:-1] + [make_session(summer_now.date(), 10.0)]
        assert calculate_sleep_debt(sessions, now=summer_now).total_hours == 0

    def test_sessions_outside_window_ignored(self, rested_week, summer_now):
        old = make_session(summer_now.date(), 2.0, days_ago=7)
        debt = calculate_sleep_debt([old] + rested_week, now=summer_now)
        assert debt.total_hours == 0

    def test_order_does_not_matter(self, rested_week, summer_now):
        shuffled = rested_week[3:] + rested_week[:3]
        assert calculate_sleep_debt(shuffled, now=summer_now).total_hours == 0

    def test_optimal_hours_from_dict(self, summer_now):
        debt = calculate_sleep_debt([], {"optimal_sleep_duration": 7}, now=summer_now)

        assert debt.total_hours == 49.0
        assert debt.optimal_sleep_hours == 7.0

    def test_optimal_hours_from_settings(self, rested_week, summer_now):
        debt = calculate_sleep_debt(
            rested_week, EnergySettings(optimal_sleep_duration=9), now=summer_now
        )
        assert debt.total_hours == 7.0
        assert debt.daily_deficit == 1.0


class TestCreateSession:
    def test_fields(self):
        bedtime = local(2026, 6, 14, 23, 0)
        wake = local(2026, 6, 15, 6, 30)

        session = create_sleep_session(bedtime, wake)

        assert session.date == date(2026, 6, 15)
        assert session.actual_sleep_hours == 7.5
        assert session.planned_sleep_hours == 8
        assert session.sleep_debt_impact == 0.5
        assert session.quality == "good"
        assert session.source == "manual"
        assert session.cycles is None

    def test_fractional_hours_rounded(self):
        bedtime = local(2026, 6, 14, 23, 0)
        wake = local(2026, 6, 15, 6, 20)

        session = create_sleep_session(bedtime, wake, quality="fair")

        assert session.actual_sleep_hours == 7.33
        assert session.quality == "fair"

    def test_detector_metadata_passes_through(self):
        bedtime = local(2026, 6, 14, 23, 0)
        wake = local(2026, 6, 15, 7, 0)

        session = create_sleep_session(
            bedtime, wake, quality=None, source="automatic", cycles=5, wake_confidence="high"
        )

        assert session.source == "automatic"
        assert session.cycles == 5
        assert session.wake_confidence == "high"


class TestAddSession:
    def test_same_day_replaces(self, summer_now):
        first = make_session(summer_now.date(), 6.0)
        second = make_session(summer_now.date(), 7.5)

        history = add_sleep_session([first], second, now=summer_now)

        assert history == [second]

    def test_sorted_by_date(self, summer_now):
        today = make_session(summer_now.date(), 8.0)
        earlier = make_session(summer_now.date(), 8.0, days_ago=3)

        history = add_sleep_session([today], earlier, now=summer_now)

        assert [s.date for s in history] == [earlier.date, today.date]

    def test_thirty_day_retention(self, summer_now):
        edge = make_session(summer_now.date(), 8.0, days_ago=30)
        stale = make_session(summer_now.date(), 8.0, days_ago=31)

        history = add_sleep_session([stale, edge], make_session(summer_now.date(), 8.0), now=summer_now)

        assert stale not in history
        assert edge in history
        assert len(history) == 2

    def test_input_not_modified(self, summer_now):
        original = [make_session(summer_now.date(), 8.0, days_ago=1)]
        snapshot = list(original)

        add_sleep_session(original, make_session(summer_now.date(), 7.0), now=summer_now)

        assert original == snapshot


class TestSeverity:
    @pytest.mark.parametrize(
        "hours,level",
        [
            (0, "none"),
            (1.0, "none"),
            (1.01, "mild"),
            (3.0, "mild"),
            (3.01, "moderate"),
            (6.0, "moderate"),
            (6.01, "severe"),
            (10.0, "severe"),
            (10.01, "extreme"),
        ],
    )
    def test_boundaries(self, hours, level):
        assert get_sleep_debt_severity(hours).level == level

    def test_descriptions_and_colors(self):
        assert get_sleep_debt_severity(0).description == "Well rested"
        assert get_sleep_debt_severity(2).color == "yellow"
        assert get_sleep_debt_severity(5).color == "orange"
        assert get_sleep_debt_severity(20).description == "Exhausted"
        assert get_sleep_debt_severity(20).color == "red"


class TestRecovery:
    def test_no_debt_recovers_today(self, summer_now):
        recovery = get_sleep_debt_recovery(0, now=summer_now)

        assert recovery.days_to_recover == 0
        assert recovery.recovery_date == summer_now

    def test_rounds_days_up(self, summer_now):
        recovery = get_sleep_debt_recovery(5.5, now=summer_now)

        assert recovery.days_to_recover == 6
        assert recovery.recovery_date == summer_now + timedelta(days=6)

    def test_custom_daily_extra(self, summer_now):
        assert get_sleep_debt_recovery(5.5, daily_extra=2, now=summer_now).days_to_recover == 3

    def test_non_positive_daily_extra_rejected(self, summer_now):
        for extra in (0, -1.0):
            with pytest.raises(ValueError, match="daily_extra"):
                get_sleep_debt_recovery(5.5, daily_extra=extra, now=summer_now)


class TestSleepEfficiency:
    def test_empty_history(self):
        assert calculate_sleep_efficiency([]) == 0

    def test_full_efficiency(self, rested_week):
        assert calculate_sleep_efficiency(rested_week) == 100

    def test_mean_rounds_half_up(self, summer_now):
        full = make_session(summer_now.date(), 8.0, days_ago=1)
        partial = replace(make_session(summer_now.date(), 8.0), actual_sleep_hours=6.0)

        assert calculate_sleep_efficiency([full, partial]) == 88

    def test_only_last_seven_count(self, rested_week, summer_now):
        poor = replace(
            make_session(summer_now.date(), 8.0, days_ago=10), actual_sleep_hours=2.0
        )
        assert calculate_sleep_efficiency([poor] + rested_week) == 100

    def test_unordered_history_uses_most_recent(self, rested_week, summer_now):
        """An older poor night listed last still falls outside the recent seven."""
        poor = replace(
            make_session(summer_now.date(), 8.0, days_ago=10), actual_sleep_hours=4.0
        )

        assert calculate_sleep_efficiency(rested_week + [poor]) == 100
        shuffled = [rested_week[3], poor] + rested_week[:3] + rested_week[4:]
        assert calculate_sleep_efficiency(shuffled) == 100

    def test_zero_time_in_bed_skipped(self, summer_now):
        wake = local(2026, 6, 15, 7, 0)
        empty = create_sleep_session(wake, wake)

        assert calculate_sleep_efficiency([empty]) == 0
        assert calculate_sleep_efficiency([empty, make_session(summer_now.date(), 8.0)]) == 100


class TestSessionHistory:
    def test_record_persists_through_store(self, summer_now):
        store = InMemorySessionStore()
        history = SessionHistory(store)

        history.record(make_session(summer_now.date(), 7.0), now=summer_now)

        assert len(store.load()) == 1
        assert history.sessions()[0].actual_sleep_hours == 7.0

    def test_debt_from_stored_sessions(self, rested_week, summer_now):
        history = SessionHistory(InMemorySessionStore(rested_week))
        assert history.debt(now=summer_now).total_hours == 0
