"""Award ledger: credits mission and achievement XP exactly once.

Unlock status is recomputed from the log on every pass, so grant_once is
called for every completed identity every time. The ledger lookup makes the
repeat calls no-ops.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from habit_rank.achievements import AchievementStatus, display_name
from habit_rank.db import Database
from habit_rank.missions import Mission
from habit_rank.xp import POOL_ACHIEVEMENT, POOL_MISSION

logger = logging.getLogger(__name__)

KIND_MISSION = "mission"
KIND_ACHIEVEMENT = "achievement"


class AwardLedger:
    def __init__(self, db: Database) -> None:
        self.db = db

    def grant_once(self, identity: str, kind: str, pool: str, amount: int) -> bool:
        """Credit amount to pool unless identity was credited before.

        Returns True when XP was actually added. StorageWriteError propagates:
        a grant that didn't persist must not be reported as done.
        """
        if self.db.has_credit(identity):
            return False
        granted = self.db.credit(identity, kind, pool, amount)
        if granted:
            logger.info("Credited %s %s: +%d XP to %s", kind, identity, amount, pool)
        return granted

    def grant_missions(self, missions: Iterable[Mission]) -> list[Mission]:
        """Credit every complete mission. Returns the ones newly credited."""
        newly: list[Mission] = []
        for mission in missions:
            if not mission.is_complete:
                continue
            if self.grant_once(mission.identity, KIND_MISSION, POOL_MISSION, mission.xp_reward):
                newly.append(mission)
        return newly

    def grant_achievements(
        self, statuses: Iterable[AchievementStatus], habit_name: str = "Habit"
    ) -> list[AchievementStatus]:
        """Credit every unlocked achievement. Returns the ones newly credited."""
        newly: list[AchievementStatus] = []
        for status in statuses:
            if not status.unlocked:
                continue
            definition = status.definition
            if self.grant_once(definition.id, KIND_ACHIEVEMENT, POOL_ACHIEVEMENT, definition.xp_reward):
                logger.info("Achievement unlocked: %s", display_name(definition, habit_name))
                newly.append(status)
        return newly

    def credited_ids(self, kind: str) -> list[str]:
        return [entry["identity"] for entry in self.db.get_credits(kind)]

    def completed_mission_count(self) -> int:
        return len(self.db.get_credits(KIND_MISSION))
