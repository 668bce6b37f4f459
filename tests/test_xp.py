"""Tests for XP calculation."""

import pytest

from habit_rank.records import DailyRecord
from habit_rank.xp import (
    ACCUMULATOR_POOLS,
    POOL_ACHIEVEMENT,
    POOL_DAILY_ACTIVITY,
    POOL_MISSION,
    POOL_STREAK_BONUS,
    XPBreakdown,
    aggregate_xp,
    calculate_daily_activity_xp,
    calculate_daily_xp,
    calculate_historical_xp,
    calculate_streak_bonus_xp,
    daily_bonus_amount,
    streak_multiplier,
    weekly_progress_xp,
)


def _week(habits=2, focus=1, negative=0, days=7):
    return [
        DailyRecord(f"2026-01-{5 + i:02d}", habits, focus, negative)
        for i in range(days)
    ]


class TestDailyXP:
    def test_basic_day(self):
        day = calculate_daily_xp(DailyRecord("2026-01-05", 2, 1, 0))
        assert day.breakdown == {"habits": 100, "focus": 25, "negative": 0}
        assert day.raw_xp == 125
        assert day.final_xp == 125

    def test_negative_actions_subtract(self):
        day = calculate_daily_xp(DailyRecord("2026-01-05", 1, 0, 2))
        assert day.final_xp == 30

    def test_floored_at_zero(self):
        day = calculate_daily_xp(DailyRecord("2026-01-05", 0, 0, 5))
        assert day.raw_xp == -50
        assert day.final_xp == 0

    def test_bad_day_does_not_cancel_good_day(self):
        records = [DailyRecord("2026-01-05", 2, 0, 0), DailyRecord("2026-01-06", 0, 0, 30)]
        assert calculate_daily_activity_xp(records) == 100

    def test_historical_sorted(self):
        records = [DailyRecord("2026-01-06", 1, 0, 0), DailyRecord("2026-01-05", 2, 0, 0)]
        assert [d.date for d in calculate_historical_xp(records)] == ["2026-01-05", "2026-01-06"]

    def test_seven_day_week(self):
        assert calculate_daily_activity_xp(_week()) == 875


class TestStreakBonus:
    def test_formula(self):
        assert calculate_streak_bonus_xp(7, 0) == 700
        assert calculate_streak_bonus_xp(7, 7) == 700 + 1050

    def test_negative_inputs_ignored(self):
        assert calculate_streak_bonus_xp(-3, -1) == 0


class TestDailyBonus:
    def test_multiplier(self):
        assert streak_multiplier(0) == pytest.approx(1.0)
        assert streak_multiplier(5) == pytest.approx(1.5)
        assert streak_multiplier(20) == pytest.approx(3.0)
        assert streak_multiplier(200) == pytest.approx(3.0)

    @pytest.mark.parametrize("streak,amount", [
        (0, 100),
        (1, 110),
        (3, 130),
        (7, 170),
        (19, 290),
        (20, 300),
        (365, 300),
    ])
    def test_amounts(self, streak, amount):
        assert daily_bonus_amount(streak) == amount


class TestWeeklyProgress:
    def test_ignores_negative_actions(self):
        records = [DailyRecord("2026-01-05", 2, 2, 10)]
        assert weekly_progress_xp(records) == 150

    def test_empty(self):
        assert weekly_progress_xp([]) == 0


class TestAggregate:
    def test_combines_pools(self):
        breakdown = aggregate_xp(_week(), 7, 7, {POOL_MISSION: 300, POOL_ACHIEVEMENT: 575})
        assert breakdown.get(POOL_DAILY_ACTIVITY) == 875
        assert breakdown.get(POOL_STREAK_BONUS) == 1750
        assert breakdown.get(POOL_MISSION) == 300
        assert breakdown.total_xp == 875 + 1750 + 300 + 575
        assert breakdown.level == 4
        assert breakdown.current_level_xp == 500

    def test_missing_accumulators_are_zero(self):
        breakdown = aggregate_xp([], 0, 0, {})
        for pool in ACCUMULATOR_POOLS:
            assert breakdown.get(pool) == 0
        assert breakdown.total_xp == 0
        assert breakdown.level == 1

    def test_unknown_pools_ignored(self):
        breakdown = aggregate_xp([], 0, 0, {"legacy": 9999})
        assert breakdown.total_xp == 0

    def test_breakdown_get_default(self):
        assert XPBreakdown().get("anything") == 0
