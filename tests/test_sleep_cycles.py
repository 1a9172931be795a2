"""
Tests for 90-minute cycle bedtime planning.
"""

from datetime import timedelta

import pytest

from circasleep.errors import TimeParseError
from circasleep.science.sleep_cycles import (
    FALL_ASLEEP_MINUTES,
    SLEEP_CYCLE_MINUTES,
    build_plan_from_strings,
    calculate_bedtime_for_cycles,
    calculate_enhanced_sleep_schedule,
    calculate_match_score,
    calculate_optimal_bedtimes,
    calculate_sleep_option,
    calculate_wake_time_from_bedtime,
    classify_cycle_quality,
    is_valid_custom_awake_duration,
)

from helpers import hhmm, local


class TestCycleArithmetic:
    """Bedtime and wake time are exact inverses."""

    @pytest.mark.parametrize("cycles", [3, 4, 5, 6])
    def test_round_trip(self, cycles):
        wake = local(2026, 6, 16, 6, 45)
        bedtime = calculate_bedtime_for_cycles(wake, cycles)
        assert calculate_wake_time_from_bedtime(bedtime, cycles) == wake

    @pytest.mark.parametrize("cycles", [3, 4, 5, 6])
    def test_bedtime_formula(self, cycles):
        wake = local(2026, 6, 16, 7, 0)
        expected = wake - timedelta(minutes=cycles * SLEEP_CYCLE_MINUTES + FALL_ASLEEP_MINUTES)
        assert calculate_bedtime_for_cycles(wake, cycles) == expected

    def test_quality_boundaries(self):
        assert classify_cycle_quality(3) == "short"
        assert classify_cycle_quality(4) == "optimal"
        assert classify_cycle_quality(5) == "extended"
        assert classify_cycle_quality(6) == "extended"


class TestOptimalBedtimes:
    """Simple planning mode: fixed wake time, four candidate bedtimes."""

    def test_seven_am_wake(self):
        now = local(2026, 6, 15, 20, 0)
        wake = local(2026, 6, 16, 7, 0)

        calc = calculate_optimal_bedtimes(wake, now)

        options = calc.recommended_bedtimes
        assert [o.cycles for o in options] == [3, 4, 5, 6]
        assert [o.duration for o in options] == [4.5, 6.0, 7.5, 9.0]
        assert [o.quality for o in options] == ["short", "optimal", "extended", "extended"]
        assert [hhmm(o.bedtime) for o in options] == ["02:00", "00:30", "23:00", "21:30"]

    def test_time_until_first_future_bedtime(self):
        now = local(2026, 6, 15, 20, 0)
        wake = local(2026, 6, 16, 7, 0)

        calc = calculate_optimal_bedtimes(wake, now)

        # The 3-cycle option (02:00) is the first listed one still ahead
        assert calc.time_until_bedtime == 6 * 60
        assert calc.time_until_wake == 11 * 60
        assert calc.current_time == now

    def test_only_late_bedtimes_left(self):
        now = local(2026, 6, 16, 1, 0)
        wake = local(2026, 6, 16, 7, 0)

        calc = calculate_optimal_bedtimes(wake, now)

        assert calc.time_until_bedtime == 60
        assert calc.time_until_wake == 6 * 60

    def test_wake_already_passed(self):
        now = local(2026, 6, 16, 8, 0)
        wake = local(2026, 6, 16, 7, 0)

        calc = calculate_optimal_bedtimes(wake, now)

        assert calc.time_until_bedtime is None
        assert calc.time_until_wake is None


class TestMatchScore:
    def test_exact_hit(self):
        t = local(2026, 6, 16, 7, 0)
        assert calculate_match_score(t, t) == 100

    def test_linear_to_zero_at_one_hour(self):
        t = local(2026, 6, 16, 7, 0)
        assert calculate_match_score(t + timedelta(minutes=30), t) == 50
        assert calculate_match_score(t - timedelta(minutes=45), t) == 25
        assert calculate_match_score(t + timedelta(minutes=60), t) == 0
        assert calculate_match_score(t + timedelta(hours=5), t) == 0


class TestCustomAwakeDuration:
    def test_bounds(self):
        assert is_valid_custom_awake_duration(11.5)
        assert is_valid_custom_awake_duration(14.0)
        assert not is_valid_custom_awake_duration(14.5)
        assert not is_valid_custom_awake_duration(11.4)
        assert not is_valid_custom_awake_duration(None)


class TestSleepOption:
    def test_picks_closest_cycle(self):
        current = local(2026, 6, 15, 7, 0)
        target = local(2026, 6, 16, 7, 0)

        option = calculate_sleep_option(current, target, 16.0, "recommended")

        assert hhmm(option.bedtime_alarm) == "23:00"
        assert hhmm(option.actual_sleep_time) == "23:30"
        assert option.cycles == 5
        assert option.calculated_wake_time == target
        assert option.actual_sleep_duration == 7.5
        assert option.match_score == 100

    def test_tie_prefers_fewer_cycles(self):
        """06:15 is 45 minutes from both the 4- and 5-cycle wake times."""
        current = local(2026, 6, 15, 7, 0)
        target = local(2026, 6, 16, 6, 15)

        option = calculate_sleep_option(current, target, 16.0, "recommended")

        assert option.cycles == 4
        assert hhmm(option.calculated_wake_time) == "05:30"
        assert option.match_score == 25


class TestEnhancedSchedule:
    """Enhanced planning mode: awake-duration hypotheses scored against a target."""

    def test_three_standard_options(self):
        current = local(2026, 6, 15, 7, 0)
        target = local(2026, 6, 16, 7, 0)

        plan = calculate_enhanced_sleep_schedule(current, target)

        assert [o.awake_hours for o in plan.sleep_options] == [14.5, 16.0, 18.0]
        assert [o.quality for o in plan.sleep_options] == ["short", "recommended", "extended"]
        assert [o.match_score for o in plan.sleep_options] == [100, 100, 50]
        assert [o.cycles for o in plan.sleep_options] == [6, 5, 4]

    def test_best_match_first_on_ties(self):
        current = local(2026, 6, 15, 7, 0)
        target = local(2026, 6, 16, 7, 0)

        plan = calculate_enhanced_sleep_schedule(current, target)

        assert plan.best_match is plan.sleep_options[0]

    def test_custom_option_listed_first(self):
        current = local(2026, 6, 15, 7, 0)
        target = local(2026, 6, 16, 7, 0)

        plan = calculate_enhanced_sleep_schedule(current, target, custom_awake_duration=14.0)

        custom = plan.sleep_options[0]
        assert len(plan.sleep_options) == 4
        assert custom.quality == "custom"
        assert custom.cycles == 6
        assert custom.match_score == 50
        assert plan.custom_awake_duration == 14.0

    def test_out_of_range_custom_ignored(self):
        current = local(2026, 6, 15, 7, 0)
        target = local(2026, 6, 16, 7, 0)

        plan = calculate_enhanced_sleep_schedule(current, target, custom_awake_duration=14.5)

        assert len(plan.sleep_options) == 3
        assert all(o.quality != "custom" for o in plan.sleep_options)

    def test_target_rolls_forward_by_days(self):
        current = local(2026, 6, 15, 7, 0)
        target = current - timedelta(days=3)

        plan = calculate_enhanced_sleep_schedule(current, target)

        assert plan.target_wake_time == current + timedelta(days=1)

    def test_scores_within_range(self):
        current = local(2026, 6, 15, 8, 20)
        target = local(2026, 6, 16, 6, 5)

        plan = calculate_enhanced_sleep_schedule(current, target)

        for option in plan.sleep_options:
            assert 0 <= option.match_score <= 100
        assert plan.best_match.match_score == max(o.match_score for o in plan.sleep_options)


class TestPlanFromStrings:
    def test_early_wake_late_target(self):
        """09:45 wake today, 04:15 target rolls to tomorrow morning."""
        now = local(2026, 6, 15, 12, 0)

        plan = build_plan_from_strings("09:45", "04:15", now=now)

        assert plan.current_wake_time == local(2026, 6, 15, 9, 45)
        assert plan.target_wake_time == local(2026, 6, 16, 4, 15)
        assert [o.awake_hours for o in plan.sleep_options] == [14.5, 16.0, 18.0]
        scores = [o.match_score for o in plan.sleep_options]
        assert all(0 <= s <= 100 for s in scores)
        assert plan.best_match.match_score == max(scores)

    def test_current_wake_not_yet_reached_means_yesterday(self):
        now = local(2026, 6, 15, 6, 0)

        plan = build_plan_from_strings("07:00", "07:00", now=now)

        assert plan.current_wake_time == local(2026, 6, 14, 7, 0)
        assert plan.target_wake_time == local(2026, 6, 15, 7, 0)

    def test_invalid_string_raises(self):
        with pytest.raises(TimeParseError):
            build_plan_from_strings("9.45", "04:15", now=local(2026, 6, 15, 12, 0))

    def test_spring_forward_keeps_wall_clock(self):
        """Yesterday's wake is PST, tomorrow's target is PDT (DST starts 2026-03-08)."""
        now = local(2026, 3, 8, 6, 0)

        plan = build_plan_from_strings("07:00", "07:00", now=now)

        assert plan.current_wake_time == local(2026, 3, 7, 7, 0)
        assert plan.current_wake_time.utcoffset() == timedelta(hours=-8)
        assert plan.target_wake_time == local(2026, 3, 8, 7, 0)
        assert plan.target_wake_time.utcoffset() == timedelta(hours=-7)

    def test_target_roll_over_across_dst(self):
        plan = calculate_enhanced_sleep_schedule(local(2026, 3, 7, 7, 0), local(2026, 3, 7, 6, 0))

        assert plan.target_wake_time == local(2026, 3, 8, 6, 0)
        assert plan.target_wake_time.hour == 6
