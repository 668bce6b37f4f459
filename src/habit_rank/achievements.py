"""Achievement definitions and checking for habit-rank."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from habit_rank.records import DailyRecord, raw_score
from habit_rank.streaks import longest_clean_run


class Difficulty(str, Enum):
    STARTER = "starter"
    MOMENTUM = "momentum"
    SERIOUS = "serious"
    ADVANCED = "advanced"
    LEGENDARY = "legendary"


class Category(str, Enum):
    HABIT = "habit"
    FOCUS = "focus"
    CLEAN = "clean"
    STREAK = "streak"
    WILDCARD = "wildcard"


@dataclass
class AchievementDef:
    id: str
    name: str
    description: str
    category: Category
    difficulty: Difficulty
    xp_reward: int
    target: int
    check_field: str


@dataclass
class AchievementStatus:
    definition: AchievementDef
    current: int
    progress: float  # 0.0 to 1.0
    unlocked: bool


def _ach(
    id: str,
    name: str,
    description: str,
    category: Category,
    difficulty: Difficulty,
    xp_reward: int,
    target: int,
    check_field: str,
) -> AchievementDef:
    return AchievementDef(id, name, description, category, difficulty, xp_reward, target, check_field)


_C = Category
_D = Difficulty

# Six per difficulty tier, in display order.
ACHIEVEMENTS: list[AchievementDef] = [
    _ach("starter-spark", "Starter Spark", "Complete 5 habits total",
         _C.HABIT, _D.STARTER, 100, 5, "total_habits"),
    _ach("flow-initiate", "Flow Initiate", "Log 5 deep work sessions",
         _C.FOCUS, _D.STARTER, 100, 5, "total_focus"),
    _ach("clean-day", "Clean {habit} Day", "Take 0 {habit_lower} in a day",
         _C.CLEAN, _D.STARTER, 200, 1, "clean_days"),
    _ach("first-score", "First Score", "Achieve a daily score of 3+",
         _C.WILDCARD, _D.STARTER, 150, 3, "best_score"),
    _ach("habit-duo", "Habit Duo", "Complete 2 habits in one day",
         _C.HABIT, _D.STARTER, 75, 2, "max_daily_habits"),
    _ach("focus-rookie", "Focus Rookie", "Complete your first focus session",
         _C.FOCUS, _D.STARTER, 50, 1, "total_focus"),

    _ach("habit-trio", "Habit Trio", "Complete 3 habits in one day",
         _C.HABIT, _D.MOMENTUM, 200, 3, "max_daily_habits"),
    _ach("focus-flow", "Focus Flow", "Complete 3 focus sessions in one day",
         _C.FOCUS, _D.MOMENTUM, 250, 3, "max_daily_focus"),
    _ach("clean-streak-3", "Clean Trio", "3 clean days in a row",
         _C.CLEAN, _D.MOMENTUM, 300, 3, "longest_clean_run"),
    _ach("week-warrior", "Week Warrior", "7-day habit streak",
         _C.STREAK, _D.MOMENTUM, 400, 7, "current_streak"),
    _ach("focus-champion", "Focus Champion", "Complete 10 focus sessions total",
         _C.FOCUS, _D.MOMENTUM, 300, 10, "total_focus"),
    _ach("habit-machine", "Habit Machine", "Complete 20 habits total",
         _C.HABIT, _D.MOMENTUM, 250, 20, "total_habits"),

    _ach("mission-master", "Mission Master", "Complete 3 missions",
         _C.WILDCARD, _D.SERIOUS, 400, 3, "completed_missions"),
    _ach("habit-fifty", "Half Century", "Complete 50 habits total",
         _C.HABIT, _D.SERIOUS, 500, 50, "total_habits"),
    _ach("focus-marathon", "Focus Marathon", "Complete 25 focus sessions total",
         _C.FOCUS, _D.SERIOUS, 450, 25, "total_focus"),
    _ach("clean-week", "Clean Week", "7 clean days",
         _C.CLEAN, _D.SERIOUS, 600, 7, "clean_days"),
    _ach("perfectionist", "Perfectionist", "Score 10+ on a single day",
         _C.WILDCARD, _D.SERIOUS, 400, 10, "best_score"),
    _ach("two-week-king", "Two Week King", "14-day habit streak",
         _C.STREAK, _D.SERIOUS, 700, 14, "current_streak"),

    _ach("habit-century", "Centurion", "Complete 100 habits total",
         _C.HABIT, _D.ADVANCED, 750, 100, "total_habits"),
    _ach("focus-master", "Focus Master", "Complete 50 focus sessions total",
         _C.FOCUS, _D.ADVANCED, 600, 50, "total_focus"),
    _ach("clean-month", "Clean Month", "30 clean days total",
         _C.CLEAN, _D.ADVANCED, 1000, 30, "clean_days"),
    _ach("streak-lord", "Streak Lord", "30-day habit streak",
         _C.STREAK, _D.ADVANCED, 1000, 30, "current_streak"),
    _ach("power-user", "Power User", "Score 15+ on a single day",
         _C.WILDCARD, _D.ADVANCED, 600, 15, "best_score"),
    _ach("mission-legend", "Mission Legend", "Complete 10 missions",
         _C.WILDCARD, _D.ADVANCED, 800, 10, "completed_missions"),

    _ach("habit-legend", "Habit Legend", "Complete 200 habits total",
         _C.HABIT, _D.LEGENDARY, 1200, 200, "total_habits"),
    _ach("focus-god", "Focus God", "Complete 100 focus sessions total",
         _C.FOCUS, _D.LEGENDARY, 1000, 100, "total_focus"),
    _ach("snus-slayer", "{habit} Slayer", "90 clean days total",
         _C.CLEAN, _D.LEGENDARY, 1500, 90, "clean_days"),
    _ach("immortal-streak", "Immortal", "100-day habit streak",
         _C.STREAK, _D.LEGENDARY, 2000, 100, "current_streak"),
    _ach("daily-dominator", "Daily Dominator", "Score 20+ on a single day",
         _C.WILDCARD, _D.LEGENDARY, 1000, 20, "best_score"),
    _ach("ultimate-master", "Ultimate Master", "Complete 25 missions",
         _C.WILDCARD, _D.LEGENDARY, 1500, 25, "completed_missions"),
]


def build_achievement_stats(
    records: list[DailyRecord],
    current_streak: int,
    completed_missions: int,
) -> dict:
    """Cumulative stats the unlock predicates read.

    Keys match AchievementDef.check_field values.
    """
    return {
        "total_habits": sum(r.habits_completed for r in records),
        "total_focus": sum(r.focus_sessions for r in records),
        "clean_days": sum(1 for r in records if r.is_clean),
        "longest_clean_run": longest_clean_run(records),
        "best_score": max((raw_score(r) for r in records), default=0),
        "max_daily_habits": max((r.habits_completed for r in records), default=0),
        "max_daily_focus": max((r.focus_sessions for r in records), default=0),
        "current_streak": current_streak,
        "completed_missions": completed_missions,
    }


def display_name(definition: AchievementDef, habit_name: str = "Habit") -> str:
    return definition.name.format(habit=habit_name, habit_lower=habit_name.lower())


def display_description(definition: AchievementDef, habit_name: str = "Habit") -> str:
    return definition.description.format(habit=habit_name, habit_lower=habit_name.lower())


def check_achievements(stats: dict) -> list[AchievementStatus]:
    """Check all achievements against current stats.

    Progress is min(current/target, 1.0); unlocked once current >= target.
    Missing stats count as 0.
    """
    results: list[AchievementStatus] = []
    for achievement in ACHIEVEMENTS:
        current_value = stats.get(achievement.check_field, 0)
        progress = min(max(current_value, 0) / achievement.target, 1.0) if achievement.target > 0 else 0.0
        results.append(
            AchievementStatus(
                definition=achievement,
                current=current_value,
                progress=progress,
                unlocked=current_value >= achievement.target,
            )
        )
    return results


def achievements_by_difficulty(difficulty: Difficulty) -> list[AchievementDef]:
    return [a for a in ACHIEVEMENTS if a.difficulty == difficulty]


def get_closest_achievements(statuses: list[AchievementStatus], n: int = 3) -> list[AchievementStatus]:
    """Return the N achievements closest to being unlocked (highest progress < 1.0)."""
    in_progress = [s for s in statuses if not s.unlocked]
    in_progress.sort(key=lambda s: s.progress, reverse=True)
    return in_progress[:n]
