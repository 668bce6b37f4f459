"""Weekly and milestone missions for habit-rank.

Weekly missions rotate deterministically: the week index picks one of the
templates that can still be finished in the days left this week. Milestone
missions are a priority table; the first one not yet reached is active.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta

from habit_rank.records import STREAK_THRESHOLD, DailyRecord, raw_score
from habit_rank.streaks import calculate_current_streak

DEFAULT_HABIT_NAME = "Habit"


@dataclass
class Mission:
    id: str
    title: str
    description: str
    progress: int
    target: int
    xp_reward: int
    type: str  # "weekly" or "milestone"
    category: str
    identity: str

    @property
    def is_complete(self) -> bool:
        return self.progress >= self.target

    @property
    def remaining(self) -> int:
        return max(0, self.target - self.progress)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "progress": self.progress,
            "target": self.target,
            "xp_reward": self.xp_reward,
            "type": self.type,
            "category": self.category,
            "identity": self.identity,
            "complete": self.is_complete,
        }


@dataclass
class WeeklyMissionTemplate:
    id: str
    title: str
    description: str
    target: int
    xp_reward: int
    category: str
    calculate_progress: Callable[[list[DailyRecord]], int]
    min_days_left: int = 1


# ── Week arithmetic ───────────────────────────────────────────────────────────


def week_index(today: date) -> int:
    """Weeks since 0001-01-01 (a Monday), so the index rolls over on Mondays.

    Not days-since-Unix-epoch // 7: that count starts on a Thursday and
    would swap the template mid-week while the ISO week key stays put.
    """
    return (today.toordinal() - 1) // 7


def week_key(today: date) -> str:
    """ISO week key, e.g. '2026-W43'."""
    year, week, _ = today.isocalendar()
    return f"{year}-W{week:02d}"


def start_of_week(today: date) -> date:
    return today - timedelta(days=today.weekday())


def days_left_in_week(today: date) -> int:
    """Days remaining including today: Monday -> 7, Sunday -> 1."""
    return 7 - today.weekday()


def get_week_records(records: list[DailyRecord], today: date) -> list[DailyRecord]:
    """Records from Monday of this week through today, oldest first."""
    start = start_of_week(today).isoformat()
    end = today.isoformat()
    return sorted((r for r in records if start <= r.date <= end), key=lambda r: r.date)


# ── Weekly templates ──────────────────────────────────────────────────────────


def _total_habits(records: list[DailyRecord]) -> int:
    return sum(r.habits_completed for r in records)


def _total_focus(records: list[DailyRecord]) -> int:
    return sum(r.focus_sessions for r in records)


def _clean_days(records: list[DailyRecord]) -> int:
    return sum(1 for r in records if r.is_clean)


def _quality_days(records: list[DailyRecord]) -> int:
    return sum(1 for r in records if raw_score(r) >= STREAK_THRESHOLD)


def _balance_progress(records: list[DailyRecord]) -> int:
    return min(_total_habits(records), 25) + min(_total_focus(records), 15)


def _in_week_streak(records: list[DailyRecord]) -> int:
    """Quality run ending at the latest record of the week, capped at 7."""
    streak = 0
    for record in sorted(records, key=lambda r: r.date):
        if raw_score(record) >= STREAK_THRESHOLD:
            streak += 1
        else:
            streak = 0
    return min(streak, 7)


def weekly_templates(habit_name: str = DEFAULT_HABIT_NAME) -> list[WeeklyMissionTemplate]:
    """The weekly rotation, in selection order."""
    return [
        WeeklyMissionTemplate(
            id="habit-domination",
            title="Weekly Domination",
            description="Complete 35 habits this week",
            target=35,
            xp_reward=500,
            category="habit",
            calculate_progress=_total_habits,
        ),
        WeeklyMissionTemplate(
            id="focus-mastery",
            title="Focus Mastery",
            description="Complete 20 focus sessions this week",
            target=20,
            xp_reward=450,
            category="focus",
            calculate_progress=_total_focus,
        ),
        WeeklyMissionTemplate(
            id="clean-week",
            title="Clean Week Challenge",
            description=f"Have 0 {habit_name.lower()} for 5 days this week",
            target=5,
            xp_reward=600,
            category="clean",
            calculate_progress=_clean_days,
        ),
        WeeklyMissionTemplate(
            id="consistency-king",
            title="Consistency King",
            description=f"Have 6 days with score >= {STREAK_THRESHOLD} this week",
            target=6,
            xp_reward=550,
            category="streak",
            calculate_progress=_quality_days,
        ),
        WeeklyMissionTemplate(
            id="habit-focus-combo",
            title="Perfect Balance",
            description="Complete 25 habits + 15 focus sessions",
            target=40,
            xp_reward=525,
            category="wildcard",
            calculate_progress=_balance_progress,
        ),
        WeeklyMissionTemplate(
            id="streak-builder",
            title="Streak Builder",
            description="Build a 7-day quality streak",
            target=7,
            xp_reward=650,
            category="streak",
            calculate_progress=_in_week_streak,
            min_days_left=7,
        ),
    ]


def fallback_template(days_left: int) -> WeeklyMissionTemplate:
    """Always-achievable mission scaled to the days left."""
    target = min(10, days_left * 2)
    return WeeklyMissionTemplate(
        id="daily-boost",
        title="Daily Boost",
        description=f"Complete {target} habits this week",
        target=target,
        xp_reward=300,
        category="habit",
        calculate_progress=_total_habits,
    )


def achievable_templates(
    templates: list[WeeklyMissionTemplate], days_left: int
) -> list[WeeklyMissionTemplate]:
    return [t for t in templates if days_left >= t.min_days_left]


def select_weekly_template(
    index: int, days_left: int, habit_name: str = DEFAULT_HABIT_NAME
) -> WeeklyMissionTemplate:
    """Pick this week's template. Pure function of (index, days_left)."""
    candidates = achievable_templates(weekly_templates(habit_name), days_left)
    if not candidates:
        return fallback_template(days_left)
    return candidates[index % len(candidates)]


def weekly_identity(template_id: str, today: date) -> str:
    return f"weekly-{template_id}-{week_key(today)}"


def milestone_identity(mission_id: str, target: int) -> str:
    return f"milestone-{mission_id}-target-{target}"


def is_mission_identity(identity: str) -> bool:
    return identity.startswith(("weekly-", "milestone-"))


def get_weekly_mission(
    records: list[DailyRecord],
    today: date | None = None,
    habit_name: str = DEFAULT_HABIT_NAME,
) -> Mission:
    """Build this week's mission with progress from this week's records."""
    today = today or date.today()
    template = select_weekly_template(week_index(today), days_left_in_week(today), habit_name)
    progress = template.calculate_progress(get_week_records(records, today))
    return Mission(
        id=template.id,
        title=template.title,
        description=template.description,
        progress=progress,
        target=template.target,
        xp_reward=template.xp_reward,
        type="weekly",
        category=template.category,
        identity=weekly_identity(template.id, today),
    )


# ── Milestones ────────────────────────────────────────────────────────────────


@dataclass
class MilestoneDef:
    id: str
    title: str
    target: int
    xp_reward: int
    category: str
    stat: str
    description: str  # formatted with remaining=


MILESTONES: list[MilestoneDef] = [
    MilestoneDef(
        id="first-week-warrior",
        title="First Week Warrior",
        target=7,
        xp_reward=300,
        category="streak",
        stat="current_streak",
        description="{remaining} days until 7-day habit streak",
    ),
    MilestoneDef(
        id="monthly-master",
        title="Monthly Master",
        target=30,
        xp_reward=1000,
        category="streak",
        stat="current_streak",
        description="{remaining} days until 30-day streak",
    ),
    MilestoneDef(
        id="habit-century",
        title="Habit Century",
        target=100,
        xp_reward=500,
        category="habit",
        stat="total_habits",
        description="{remaining} habits until Centurion badge",
    ),
    MilestoneDef(
        id="focus-apprentice",
        title="Focus Apprentice",
        target=50,
        xp_reward=400,
        category="focus",
        stat="total_focus",
        description="{remaining} sessions until Focus Master",
    ),
    MilestoneDef(
        id="clean-days",
        title="Clean {habit} Days",
        target=10,
        xp_reward=350,
        category="clean",
        stat="clean_days",
        description="{remaining} clean {habit_lower} days until badge",
    ),
]


def milestone_stats(records: list[DailyRecord], today: date | None = None) -> dict[str, int]:
    return {
        "current_streak": calculate_current_streak(records, today),
        "total_habits": _total_habits(records),
        "total_focus": _total_focus(records),
        "clean_days": _clean_days(records),
    }


def _build_milestone(milestone: MilestoneDef, progress: int, habit_name: str) -> Mission:
    fmt = {
        "remaining": max(0, milestone.target - progress),
        "habit": habit_name,
        "habit_lower": habit_name.lower(),
    }
    return Mission(
        id=milestone.id,
        title=milestone.title.format(**fmt),
        description=milestone.description.format(**fmt),
        progress=progress,
        target=milestone.target,
        xp_reward=milestone.xp_reward,
        type="milestone",
        category=milestone.category,
        identity=milestone_identity(milestone.id, milestone.target),
    )


def get_milestone_mission(
    records: list[DailyRecord],
    today: date | None = None,
    habit_name: str = DEFAULT_HABIT_NAME,
) -> Mission | None:
    """First milestone in priority order whose progress is below target.

    Returns None once every milestone has been reached.
    """
    stats = milestone_stats(records, today)
    for milestone in MILESTONES:
        progress = stats[milestone.stat]
        if progress < milestone.target:
            return _build_milestone(milestone, progress, habit_name)
    return None


def get_reached_milestones(
    records: list[DailyRecord],
    today: date | None = None,
    habit_name: str = DEFAULT_HABIT_NAME,
) -> list[Mission]:
    """Every milestone whose progress currently meets its target.

    The active milestone is by definition unmet, so these are the ones the
    engine has to credit.
    """
    stats = milestone_stats(records, today)
    return [
        _build_milestone(m, stats[m.stat], habit_name)
        for m in MILESTONES
        if stats[m.stat] >= m.target
    ]


def get_active_missions(
    records: list[DailyRecord],
    today: date | None = None,
    habit_name: str = DEFAULT_HABIT_NAME,
) -> list[Mission]:
    """This week's mission, followed by the active milestone if any."""
    missions = [get_weekly_mission(records, today, habit_name)]
    milestone = get_milestone_mission(records, today, habit_name)
    if milestone is not None:
        missions.append(milestone)
    return missions
