"""Streak tracking for habit-rank.

Streaks are never stored. They are re-derived from the full record list on
every pass, walking records rather than calendar days: a day with no record
neither extends nor breaks a run.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date

from habit_rank.records import STREAK_THRESHOLD, DailyRecord, raw_score


@dataclass
class StreakInfo:
    current_streak: int
    longest_streak: int
    clean_streak: int  # consecutive days with zero negative actions
    last_active_date: str | None  # YYYY-MM-DD
    is_active_today: bool


def _today_str(today: date | None) -> str:
    return (today or date.today()).isoformat()


def is_streak_day(record: DailyRecord) -> bool:
    return raw_score(record) >= STREAK_THRESHOLD


def _count_back(
    records: Iterable[DailyRecord],
    qualifies: Callable[[DailyRecord], bool],
    today: date | None,
) -> int:
    """Walk records newest first and count qualifying ones.

    If the newest record is today and doesn't qualify yet, it is skipped:
    the day isn't over. Any other non-qualifying record ends the run.
    """
    ordered = sorted(records, key=lambda r: r.date, reverse=True)
    if not ordered:
        return 0

    today_str = _today_str(today)
    if ordered[0].date == today_str and not qualifies(ordered[0]):
        ordered = ordered[1:]

    streak = 0
    for record in ordered:
        if not qualifies(record):
            break
        streak += 1
    return streak


def calculate_current_streak(records: Iterable[DailyRecord], today: date | None = None) -> int:
    """Consecutive most-recent records with raw score >= 3."""
    return _count_back(records, is_streak_day, today)


def calculate_clean_streak(records: Iterable[DailyRecord], today: date | None = None) -> int:
    """Consecutive most-recent records with no negative actions."""
    return _count_back(records, lambda r: r.is_clean, today)


def calculate_longest_streak(records: Iterable[DailyRecord]) -> int:
    """Longest run of records with raw score >= 3, oldest to newest."""
    longest = 0
    running = 0
    for record in sorted(records, key=lambda r: r.date):
        if is_streak_day(record):
            running += 1
            longest = max(longest, running)
        else:
            running = 0
    return longest


def longest_clean_run(records: Iterable[DailyRecord]) -> int:
    """Longest run of consecutive clean records anywhere in history."""
    longest = 0
    running = 0
    for record in sorted(records, key=lambda r: r.date):
        if record.is_clean:
            running += 1
            longest = max(longest, running)
        else:
            running = 0
    return longest


def calculate_streak(records: list[DailyRecord], today: date | None = None) -> StreakInfo:
    """Bundle current, longest and clean streaks for a record list."""
    if not records:
        return StreakInfo(
            current_streak=0,
            longest_streak=0,
            clean_streak=0,
            last_active_date=None,
            is_active_today=False,
        )

    today_str = _today_str(today)
    dates = sorted(r.date for r in records)
    current = calculate_current_streak(records, today)

    return StreakInfo(
        current_streak=current,
        longest_streak=max(calculate_longest_streak(records), current),
        clean_streak=calculate_clean_streak(records, today),
        last_active_date=dates[-1],
        is_active_today=today_str in dates,
    )
