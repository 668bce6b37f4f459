"""XP calculation engine for habit-rank.

Pure functions that turn daily records and pool balances into XP totals.
All calculations use integers (math.floor for rounding).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from habit_rank.levels import level_from_xp, xp_progress_in_level
from habit_rank.records import DailyRecord

# Base XP values
XP_PER_HABIT = 50
XP_PER_FOCUS_SESSION = 25
XP_PER_NEGATIVE_ACTION = -10

# Streak bonus per day of each running streak
XP_PER_STREAK_DAY = 100
XP_PER_CLEAN_STREAK_DAY = 150

# Periodic bonuses
DAILY_BONUS_BASE = 100
MAX_STREAK_MULTIPLIER = 3.0
WEEKLY_BONUS_XP = 1000
WEEKLY_BONUS_THRESHOLD = 1000
MONTHLY_BONUS_XP = 2000
MONTHLY_BONUS_MIN_LEVEL = 5

# Pool names. Derived pools are recomputed every pass, the rest only grow.
POOL_DAILY_ACTIVITY = "daily_activity"
POOL_STREAK_BONUS = "streak_bonus"
POOL_MISSION = "mission"
POOL_ACHIEVEMENT = "achievement"
POOL_DAILY_BONUS = "daily_bonus"
POOL_WEEKLY_BONUS = "weekly_bonus"
POOL_MONTHLY_BONUS = "monthly_bonus"

DERIVED_POOLS: tuple[str, ...] = (POOL_DAILY_ACTIVITY, POOL_STREAK_BONUS)
ACCUMULATOR_POOLS: tuple[str, ...] = (
    POOL_MISSION,
    POOL_ACHIEVEMENT,
    POOL_DAILY_BONUS,
    POOL_WEEKLY_BONUS,
    POOL_MONTHLY_BONUS,
)
ALL_POOLS: tuple[str, ...] = DERIVED_POOLS + ACCUMULATOR_POOLS


@dataclass
class DailyXP:
    """XP breakdown for a single day."""

    date: str
    raw_xp: int
    final_xp: int
    breakdown: dict[str, int]


@dataclass
class XPBreakdown:
    """Every pool's contribution to the total."""

    pools: dict[str, int] = field(default_factory=dict)

    @property
    def total_xp(self) -> int:
        return sum(self.pools.values())

    @property
    def level(self) -> int:
        return level_from_xp(self.total_xp)

    @property
    def current_level_xp(self) -> int:
        return xp_progress_in_level(self.total_xp)[0]

    def get(self, pool: str) -> int:
        return self.pools.get(pool, 0)


def calculate_daily_xp(record: DailyRecord) -> DailyXP:
    """XP for one day: 50/habit + 25/focus session - 10/negative action, floored at 0.

    The floor is per day, so a bad day never cancels another day's XP.
    """
    breakdown: dict[str, int] = {
        "habits": record.habits_completed * XP_PER_HABIT,
        "focus": record.focus_sessions * XP_PER_FOCUS_SESSION,
        "negative": record.negative_actions * XP_PER_NEGATIVE_ACTION,
    }
    raw_xp = sum(breakdown.values())
    return DailyXP(
        date=record.date,
        raw_xp=raw_xp,
        final_xp=max(0, raw_xp),
        breakdown=breakdown,
    )


def calculate_historical_xp(records: list[DailyRecord]) -> list[DailyXP]:
    """Per-day XP for every record, oldest first."""
    return [calculate_daily_xp(r) for r in sorted(records, key=lambda r: r.date)]


def calculate_daily_activity_xp(records: list[DailyRecord]) -> int:
    """Sum of per-day XP across the whole log."""
    return sum(day.final_xp for day in calculate_historical_xp(records))


def calculate_streak_bonus_xp(current_streak: int, clean_streak: int) -> int:
    return max(0, current_streak) * XP_PER_STREAK_DAY + max(0, clean_streak) * XP_PER_CLEAN_STREAK_DAY


def weekly_progress_xp(week_records: list[DailyRecord]) -> int:
    """XP earned from habits and focus this week, used to gate the weekly bonus."""
    return sum(
        r.habits_completed * XP_PER_HABIT + r.focus_sessions * XP_PER_FOCUS_SESSION
        for r in week_records
    )


def streak_multiplier(current_streak: int) -> float:
    """1.0 + 0.1 per streak day, capped at 3.0."""
    return min(1.0 + 0.1 * max(0, current_streak), MAX_STREAK_MULTIPLIER)


def daily_bonus_amount(current_streak: int) -> int:
    """floor(100 * streak_multiplier), computed in tenths to stay exact."""
    tenths = min(10 + max(0, current_streak), 30)
    return math.floor(DAILY_BONUS_BASE * tenths / 10)


def aggregate_xp(
    records: list[DailyRecord],
    current_streak: int,
    clean_streak: int,
    accumulators: dict[str, int],
) -> XPBreakdown:
    """Combine derived pools with the stored accumulator balances."""
    pools = {
        POOL_DAILY_ACTIVITY: calculate_daily_activity_xp(records),
        POOL_STREAK_BONUS: calculate_streak_bonus_xp(current_streak, clean_streak),
    }
    for name in ACCUMULATOR_POOLS:
        pools[name] = max(0, int(accumulators.get(name, 0)))
    return XPBreakdown(pools=pools)
