"""Progression engine: recomputes the whole profile from the activity log.

Every pass re-derives scores, streaks, missions and achievements from the
full record list, credits anything complete through the award ledger, and
sums the XP pools. The ledger is the only memory of past grants, so a pass
can run any number of times without double-counting.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from habit_rank.achievements import (
    ACHIEVEMENTS,
    AchievementStatus,
    build_achievement_stats,
    check_achievements,
    display_description,
    display_name,
)
from habit_rank.bonuses import BonusStatus, claim_bonus, get_bonus_statuses
from habit_rank.db import Database, Ledger, StorageReadError, StorageWriteError
from habit_rank.events import ACTIVITY_CHANGED, PROFILE_CHANGED, EventBus
from habit_rank.ledger import KIND_ACHIEVEMENT, KIND_MISSION, AwardLedger
from habit_rank.levels import tier_from_level
from habit_rank.missions import (
    DEFAULT_HABIT_NAME,
    Mission,
    get_milestone_mission,
    get_reached_milestones,
    get_week_records,
    get_weekly_mission,
    is_mission_identity,
)
from habit_rank.records import DailyRecord, normalize_record
from habit_rank.streaks import StreakInfo, calculate_streak
from habit_rank.xp import XPBreakdown, aggregate_xp, weekly_progress_xp

logger = logging.getLogger(__name__)


@dataclass
class ProfileSnapshot:
    level: int
    current_level_xp: int
    total_xp: int
    tier: str
    title: str
    rank: str
    tier_color: str
    current_streak: int
    longest_streak: int
    clean_streak: int
    active_weekly_mission: Mission | None
    active_milestone_mission: Mission | None
    unlocked_achievement_ids: list[str]
    completed_count: int
    days_active: int
    xp_breakdown: dict[str, int] = field(default_factory=dict)
    achievements: list[AchievementStatus] = field(default_factory=list)
    newly_completed_missions: list[str] = field(default_factory=list)
    newly_unlocked_achievements: list[str] = field(default_factory=list)
    degraded: bool = False  # a read failed; totals may be short

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "current_level_xp": self.current_level_xp,
            "total_xp": self.total_xp,
            "tier": self.tier,
            "title": self.title,
            "rank": self.rank,
            "tier_color": self.tier_color,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "clean_streak": self.clean_streak,
            "active_weekly_mission": self.active_weekly_mission.to_dict() if self.active_weekly_mission else None,
            "active_milestone_mission": (
                self.active_milestone_mission.to_dict() if self.active_milestone_mission else None
            ),
            "unlocked_achievement_ids": list(self.unlocked_achievement_ids),
            "completed_count": self.completed_count,
            "days_active": self.days_active,
            "xp_breakdown": dict(self.xp_breakdown),
            "newly_completed_missions": list(self.newly_completed_missions),
            "newly_unlocked_achievements": list(self.newly_unlocked_achievements),
            "degraded": self.degraded,
        }


def achievement_rows(snapshot: ProfileSnapshot, habit_name: str) -> list[dict]:
    """Flatten achievement statuses for display and JSON consumers.

    Credited achievements stay unlocked even if their live condition lapsed.
    """
    unlocked_ids = set(snapshot.unlocked_achievement_ids)
    rows = []
    for status in snapshot.achievements:
        definition = status.definition
        unlocked = definition.id in unlocked_ids
        rows.append({
            "id": definition.id,
            "name": display_name(definition, habit_name),
            "description": display_description(definition, habit_name),
            "category": definition.category.value,
            "difficulty": definition.difficulty.value,
            "xp_reward": definition.xp_reward,
            "progress": 1.0 if unlocked else status.progress,
            "current": status.current,
            "target": definition.target,
            "unlocked": unlocked,
        })
    return rows


class ProgressionEngine:
    """Owns recomputation and reacts to activity change notifications."""

    def __init__(
        self,
        db: Database,
        bus: EventBus | None = None,
        habit_name: str = DEFAULT_HABIT_NAME,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.db = db
        self.bus = bus or EventBus()
        self.habit_name = habit_name
        self.clock = clock
        self.ledger = AwardLedger(db)
        self.snapshot: ProfileSnapshot | None = None
        self._unsubscribe = self.bus.subscribe(ACTIVITY_CHANGED, self._on_activity_changed)

    def close(self) -> None:
        """Stop listening for activity changes."""
        self._unsubscribe()

    def _on_activity_changed(self) -> None:
        self.recompute()

    # ── loading ───────────────────────────────────────────────────────────────

    def _load_records(self) -> tuple[list[DailyRecord], bool]:
        try:
            records = list(self.db.load_all_daily_records().values())
        except StorageReadError as exc:
            logger.warning("Activity log unavailable, treating as empty: %s", exc)
            return [], False
        return records, True

    def _load_ledger(self) -> tuple[Ledger, bool]:
        try:
            return self.db.load_ledger(), True
        except StorageReadError as exc:
            logger.warning("Award ledger unavailable, skipping grants: %s", exc)
            return Ledger(), False

    def _load_pools(self) -> tuple[dict[str, int], bool]:
        try:
            return self.db.load_pools(), True
        except StorageReadError as exc:
            logger.warning("XP pools unavailable, treating as 0: %s", exc)
            return {}, False

    # ── recomputation ─────────────────────────────────────────────────────────

    def recompute(self, today: date | None = None, publish: bool = True) -> ProfileSnapshot:
        """Re-derive the profile from the full log and credit anything new.

        Nothing is credited when the log or ledger can't be read, and a pass
        with any failed read is flagged degraded and not cached. Write
        failures during crediting propagate after the store's retries.
        """
        today = today or self.clock()
        records, records_ok = self._load_records()
        ledger, ledger_ok = self._load_ledger()
        can_award = records_ok and ledger_ok

        streak = calculate_streak(records, today)
        weekly = get_weekly_mission(records, today, self.habit_name)
        milestone = get_milestone_mission(records, today, self.habit_name)

        new_missions: list[Mission] = []
        if can_award:
            reached = get_reached_milestones(records, today, self.habit_name)
            new_missions = self.ledger.grant_missions([weekly, *reached])

        credited = ledger.credited | {m.identity for m in new_missions}
        completed_missions = sum(1 for i in credited if is_mission_identity(i))

        stats = build_achievement_stats(records, streak.current_streak, completed_missions)
        statuses = check_achievements(stats)

        new_achievements: list[AchievementStatus] = []
        if can_award:
            new_achievements = self.ledger.grant_achievements(statuses, self.habit_name)
            credited = credited | {s.definition.id for s in new_achievements}

        pools, pools_ok = self._load_pools()
        breakdown = aggregate_xp(records, streak.current_streak, streak.clean_streak, pools)
        degraded = not (can_award and pools_ok)

        unlocked_ids = [
            a.id for a, s in zip(ACHIEVEMENTS, statuses) if a.id in credited or s.unlocked
        ]

        snapshot = self._build_snapshot(
            breakdown=breakdown,
            streak=streak,
            weekly=weekly,
            milestone=milestone,
            unlocked_ids=unlocked_ids,
            completed_missions=completed_missions,
            days_active=len({r.date for r in records}),
            statuses=statuses,
            new_missions=[m.identity for m in new_missions],
            new_achievements=[s.definition.id for s in new_achievements],
            degraded=degraded,
        )
        self.snapshot = snapshot
        if not degraded:
            self._cache_snapshot(snapshot)
        if publish:
            self.bus.publish(PROFILE_CHANGED)
        return snapshot

    def _build_snapshot(
        self,
        breakdown: XPBreakdown,
        streak: StreakInfo,
        weekly: Mission,
        milestone: Mission | None,
        unlocked_ids: list[str],
        completed_missions: int,
        days_active: int,
        statuses: list[AchievementStatus],
        new_missions: list[str],
        new_achievements: list[str],
        degraded: bool,
    ) -> ProfileSnapshot:
        level = breakdown.level
        tier = tier_from_level(level)
        return ProfileSnapshot(
            level=level,
            current_level_xp=breakdown.current_level_xp,
            total_xp=breakdown.total_xp,
            tier=tier["name"],
            title=tier["title"],
            rank=tier["rank"],
            tier_color=tier["color"],
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            clean_streak=streak.clean_streak,
            active_weekly_mission=weekly,
            active_milestone_mission=milestone,
            unlocked_achievement_ids=unlocked_ids,
            completed_count=completed_missions + len(unlocked_ids),
            days_active=days_active,
            xp_breakdown=dict(breakdown.pools),
            achievements=statuses,
            newly_completed_missions=new_missions,
            newly_unlocked_achievements=new_achievements,
            degraded=degraded,
        )

    def _cache_snapshot(self, snapshot: ProfileSnapshot) -> None:
        """Store headline numbers for readers that don't want a full pass."""
        try:
            self.db.set_profile_many({
                "total_xp": snapshot.total_xp,
                "level": snapshot.level,
                "tier_name": snapshot.tier,
                "tier_color": snapshot.tier_color,
                "title": snapshot.title,
                "current_streak": snapshot.current_streak,
                "longest_streak": snapshot.longest_streak,
                "clean_streak": snapshot.clean_streak,
                "days_active": snapshot.days_active,
                "completed_count": snapshot.completed_count,
            })
        except StorageWriteError as exc:
            logger.warning("Could not cache profile snapshot: %s", exc)

    # ── producer-side helpers ─────────────────────────────────────────────────

    def log_activity(
        self,
        day: str,
        habits_completed: int = 0,
        focus_sessions: int = 0,
        negative_actions: int = 0,
        habit_names: list[str] | None = None,
    ) -> ProfileSnapshot:
        """Write a day's counts and recompute.

        Recomputes directly rather than through the bus so that a
        StorageWriteError while crediting reaches the caller.
        """
        record = normalize_record(day, habits_completed, focus_sessions, negative_actions, habit_names)
        self.db.upsert_daily_record(record)
        return self.recompute()

    def import_records(self, records: list[DailyRecord]) -> ProfileSnapshot:
        """Bulk upsert, then a single recompute."""
        for record in records:
            self.db.upsert_daily_record(record)
        return self.recompute()

    def reset(self) -> ProfileSnapshot:
        """Full data reset: log, pools, ledger and claims."""
        self.db.delete_all()
        return self.recompute()

    # ── periodic bonuses ──────────────────────────────────────────────────────

    def bonus_statuses(self, today: date | None = None) -> dict[str, BonusStatus]:
        today = today or self.clock()
        snapshot = self.recompute(today, publish=False)
        records, _ = self._load_records()
        ledger, _ = self._load_ledger()
        weekly_xp = weekly_progress_xp(get_week_records(records, today))
        return get_bonus_statuses(ledger, snapshot.current_streak, weekly_xp, snapshot.level, today)

    def claim(self, period: str, today: date | None = None) -> int:
        """Claim a periodic bonus. Returns XP added; 0 if already claimed or gated."""
        today = today or self.clock()
        statuses = self.bonus_statuses(today)
        if period not in statuses:
            raise ValueError(f"unknown bonus period: {period}")
        awarded = claim_bonus(self.db, statuses[period])
        if awarded:
            self.recompute(today)
        return awarded

    def credited(self, kind: str) -> list[str]:
        """Identities already credited, for 'mission' or 'achievement'."""
        if kind not in (KIND_MISSION, KIND_ACHIEVEMENT):
            raise ValueError(f"unknown ledger kind: {kind}")
        return self.ledger.credited_ids(kind)
