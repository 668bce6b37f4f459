"""Daily, weekly and monthly claimable bonuses.

Each period is a two-state machine: claimable, or claimed for the current
period key. The period key itself is the idempotency guard, so these
rewards bypass the award ledger and go straight to their pool.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from habit_rank.db import Database, Ledger
from habit_rank.missions import week_key
from habit_rank.xp import (
    MONTHLY_BONUS_MIN_LEVEL,
    MONTHLY_BONUS_XP,
    POOL_DAILY_BONUS,
    POOL_MONTHLY_BONUS,
    POOL_WEEKLY_BONUS,
    WEEKLY_BONUS_THRESHOLD,
    WEEKLY_BONUS_XP,
    daily_bonus_amount,
)

logger = logging.getLogger(__name__)

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
PERIODS: tuple[str, ...] = (DAILY, WEEKLY, MONTHLY)

POOL_FOR_PERIOD: dict[str, str] = {
    DAILY: POOL_DAILY_BONUS,
    WEEKLY: POOL_WEEKLY_BONUS,
    MONTHLY: POOL_MONTHLY_BONUS,
}


@dataclass
class BonusStatus:
    period: str
    period_key: str
    reward: int
    claimed: bool
    unlocked: bool  # gate condition met
    progress: int
    target: int
    resets_at: datetime

    @property
    def claimable(self) -> bool:
        return self.unlocked and not self.claimed

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "period_key": self.period_key,
            "reward": self.reward,
            "claimed": self.claimed,
            "claimable": self.claimable,
            "progress": self.progress,
            "target": self.target,
            "resets_at": self.resets_at.isoformat(),
        }


class UnknownPeriodError(ValueError):
    pass


def period_key(period: str, today: date) -> str:
    """Key identifying the current claim window: 2026-10-19, 2026-W43, 2026-10."""
    if period == DAILY:
        return today.isoformat()
    if period == WEEKLY:
        return week_key(today)
    if period == MONTHLY:
        return today.strftime("%Y-%m")
    raise UnknownPeriodError(period)


def next_reset(period: str, today: date) -> datetime:
    """Local midnight at which the period's claim window reopens."""
    if period == DAILY:
        start = today + timedelta(days=1)
    elif period == WEEKLY:
        start = today + timedelta(days=7 - today.weekday())
    elif period == MONTHLY:
        if today.month == 12:
            start = date(today.year + 1, 1, 1)
        else:
            start = date(today.year, today.month + 1, 1)
    else:
        raise UnknownPeriodError(period)
    return datetime.combine(start, time.min)


def get_bonus_statuses(
    ledger: Ledger,
    current_streak: int,
    weekly_xp: int,
    level: int,
    today: date | None = None,
) -> dict[str, BonusStatus]:
    """Current state of all three claim windows."""
    today = today or date.today()
    statuses: dict[str, BonusStatus] = {}

    key = period_key(DAILY, today)
    statuses[DAILY] = BonusStatus(
        period=DAILY,
        period_key=key,
        reward=daily_bonus_amount(current_streak),
        claimed=ledger.last_daily_claim == key,
        unlocked=True,
        progress=current_streak,
        target=0,
        resets_at=next_reset(DAILY, today),
    )

    key = period_key(WEEKLY, today)
    statuses[WEEKLY] = BonusStatus(
        period=WEEKLY,
        period_key=key,
        reward=WEEKLY_BONUS_XP,
        claimed=ledger.last_weekly_claim == key,
        unlocked=weekly_xp >= WEEKLY_BONUS_THRESHOLD,
        progress=weekly_xp,
        target=WEEKLY_BONUS_THRESHOLD,
        resets_at=next_reset(WEEKLY, today),
    )

    key = period_key(MONTHLY, today)
    statuses[MONTHLY] = BonusStatus(
        period=MONTHLY,
        period_key=key,
        reward=MONTHLY_BONUS_XP,
        claimed=ledger.last_monthly_claim == key,
        unlocked=level >= MONTHLY_BONUS_MIN_LEVEL,
        progress=level,
        target=MONTHLY_BONUS_MIN_LEVEL,
        resets_at=next_reset(MONTHLY, today),
    )
    return statuses


def claim_bonus(db: Database, status: BonusStatus) -> int:
    """Claim a bonus if its window is open. Returns XP added (0 if not claimable)."""
    if status.period not in PERIODS:
        raise UnknownPeriodError(status.period)
    if not status.claimable:
        logger.info("%s bonus not claimable (claimed=%s)", status.period, status.claimed)
        return 0
    pool = POOL_FOR_PERIOD[status.period]
    if not db.record_claim(status.period, status.period_key, pool, status.reward):
        return 0
    logger.info("Claimed %s bonus %s: +%d XP", status.period, status.period_key, status.reward)
    return status.reward

