"""Daily activity records and their scores.

A DailyRecord is one calendar day of activity. Producers (habit tracker,
focus timer, negative-habit tracker, manual edits) write them; the
progression engine only reads them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

logger = logging.getLogger(__name__)

# Score weights
SCORE_PER_HABIT = 2
SCORE_PER_FOCUS_SESSION = 1
SCORE_PER_NEGATIVE_ACTION = -1

# A day at or above this raw score counts towards the streak
STREAK_THRESHOLD = 3


@dataclass
class DailyRecord:
    date: str  # YYYY-MM-DD
    habits_completed: int = 0
    focus_sessions: int = 0
    negative_actions: int = 0
    habit_names: list[str] = field(default_factory=list)

    @property
    def raw_score(self) -> int:
        return raw_score(self)

    @property
    def display_score(self) -> int:
        return display_score(self)

    @property
    def is_clean(self) -> bool:
        return self.negative_actions == 0

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "habits_completed": self.habits_completed,
            "focus_sessions": self.focus_sessions,
            "negative_actions": self.negative_actions,
            "habit_names": list(self.habit_names),
        }


def raw_score(record: DailyRecord) -> int:
    """2 per habit, 1 per focus session, -1 per negative action. Unclamped."""
    return (
        record.habits_completed * SCORE_PER_HABIT
        + record.focus_sessions * SCORE_PER_FOCUS_SESSION
        + record.negative_actions * SCORE_PER_NEGATIVE_ACTION
    )


def display_score(record: DailyRecord) -> int:
    """Raw score floored at 0, for heatmap intensity only."""
    return max(0, raw_score(record))


def _clamp_count(value: object, field_name: str, day: str) -> int:
    """Coerce a count to a non-negative int, logging anything that needed fixing."""
    try:
        count = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning("Record %s has non-numeric %s=%r, treating as 0", day, field_name, value)
        return 0
    if count < 0:
        logger.warning("Record %s has negative %s=%d, clamping to 0", day, field_name, count)
        return 0
    return count


def is_valid_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


def normalize_record(
    day: str,
    habits_completed: object = 0,
    focus_sessions: object = 0,
    negative_actions: object = 0,
    habit_names: list[str] | None = None,
) -> DailyRecord:
    """Build a DailyRecord with every count clamped to a non-negative int."""
    names = [str(n) for n in habit_names] if isinstance(habit_names, list) else []
    return DailyRecord(
        date=day,
        habits_completed=_clamp_count(habits_completed, "habits_completed", day),
        focus_sessions=_clamp_count(focus_sessions, "focus_sessions", day),
        negative_actions=_clamp_count(negative_actions, "negative_actions", day),
        habit_names=names,
    )


def record_from_export(day: str, entry: dict) -> DailyRecord:
    """Convert one entry of the dashboard's ``daily-logs`` export.

    The export uses camelCase keys and calls negative actions ``snusCount``;
    ``negativeActionCount`` is accepted as well.
    """
    negative = entry.get("negativeActionCount", entry.get("snusCount", 0))
    return normalize_record(
        day,
        habits_completed=entry.get("habitsCompleted", 0),
        focus_sessions=entry.get("focusSessions", 0),
        negative_actions=negative,
        habit_names=entry.get("completedHabits"),
    )


def load_records_file(path: Path) -> list[DailyRecord] | None:
    """Parse a ``daily-logs`` JSON export into DailyRecords.

    Returns None if the file doesn't exist or isn't a JSON object.
    Entries whose key is not an ISO date are skipped.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        return None
    if not isinstance(raw, dict):
        return None

    records: list[DailyRecord] = []
    for day, entry in raw.items():
        if not is_valid_date(day) or not isinstance(entry, dict):
            logger.warning("Skipping malformed export entry %r", day)
            continue
        records.append(record_from_export(day, entry))
    records.sort(key=lambda r: r.date)
    return records
