"""SQLite database layer for habit-rank."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TypeVar

from habit_rank.records import DailyRecord, normalize_record

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".habit-rank" / "data.db"
DEFAULT_WRITE_RETRIES = 3

T = TypeVar("T")


class StorageError(Exception):
    """Base class for store failures."""


class StorageReadError(StorageError):
    """Records, pools or the ledger could not be loaded."""


class StorageWriteError(StorageError):
    """A pool increment or ledger write did not persist."""


@dataclass
class Ledger:
    credited: set[str] = field(default_factory=set)
    last_daily_claim: str | None = None
    last_weekly_claim: str | None = None
    last_monthly_claim: str | None = None

    def last_claim(self, period: str) -> str | None:
        return getattr(self, f"last_{period}_claim", None)


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


class Database:
    """SQLite database manager with WAL mode."""

    def __init__(self, db_path: Path | None = None, write_retries: int = DEFAULT_WRITE_RETRIES) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.write_retries = max(1, write_retries)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS daily_records (
                date TEXT PRIMARY KEY,
                habits_completed INTEGER DEFAULT 0,
                focus_sessions INTEGER DEFAULT 0,
                negative_actions INTEGER DEFAULT 0,
                habit_names TEXT DEFAULT '[]'
            );

            CREATE TABLE IF NOT EXISTS xp_pools (
                name TEXT PRIMARY KEY,
                value INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS award_ledger (
                identity TEXT PRIMARY KEY,
                kind TEXT NOT NULL,
                pool TEXT NOT NULL,
                amount INTEGER NOT NULL,
                credited_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS bonus_claims (
                period TEXT PRIMARY KEY,
                period_key TEXT NOT NULL,
                claimed_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS profile (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)
        self.conn.commit()

    # ── helpers ───────────────────────────────────────────────────────────────

    def _read(self, what: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except sqlite3.Error as exc:
            raise StorageReadError(f"could not load {what}: {exc}") from exc

    def _write(self, what: str, fn: Callable[[], T]) -> T:
        """Run fn in a transaction, retrying on sqlite errors."""
        last_error: sqlite3.Error | None = None
        for attempt in range(1, self.write_retries + 1):
            try:
                with self.conn:
                    return fn()
            except sqlite3.Error as exc:
                last_error = exc
                logger.warning("Write of %s failed (attempt %d/%d): %s", what, attempt, self.write_retries, exc)
        raise StorageWriteError(f"could not write {what}: {last_error}") from last_error

    # ── daily records ─────────────────────────────────────────────────────────

    def upsert_daily_record(self, record: DailyRecord) -> None:
        """Insert or replace the record for its date."""
        def run() -> None:
            self.conn.execute(
                "INSERT INTO daily_records "
                "(date, habits_completed, focus_sessions, negative_actions, habit_names) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(date) DO UPDATE SET "
                "habits_completed = excluded.habits_completed, "
                "focus_sessions = excluded.focus_sessions, "
                "negative_actions = excluded.negative_actions, "
                "habit_names = excluded.habit_names",
                (
                    record.date,
                    record.habits_completed,
                    record.focus_sessions,
                    record.negative_actions,
                    json.dumps(record.habit_names),
                ),
            )

        self._write(f"daily record {record.date}", run)

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> DailyRecord:
        try:
            names = json.loads(row["habit_names"] or "[]")
        except json.JSONDecodeError:
            names = []
        return normalize_record(
            row["date"],
            habits_completed=row["habits_completed"],
            focus_sessions=row["focus_sessions"],
            negative_actions=row["negative_actions"],
            habit_names=names,
        )

    def get_daily_record(self, date: str) -> DailyRecord | None:
        row = self._read(
            f"daily record {date}",
            lambda: self.conn.execute("SELECT * FROM daily_records WHERE date = ?", (date,)).fetchone(),
        )
        return self._row_to_record(row) if row else None

    def load_all_daily_records(self) -> dict[str, DailyRecord]:
        """Every record keyed by date. Counts are clamped on the way out."""
        rows = self._read(
            "daily records",
            lambda: self.conn.execute("SELECT * FROM daily_records ORDER BY date").fetchall(),
        )
        return {row["date"]: self._row_to_record(row) for row in rows}

    # ── XP pools ──────────────────────────────────────────────────────────────

    def load_pool(self, name: str) -> int:
        row = self._read(
            f"pool {name}",
            lambda: self.conn.execute("SELECT value FROM xp_pools WHERE name = ?", (name,)).fetchone(),
        )
        return int(row["value"]) if row else 0

    def load_pools(self) -> dict[str, int]:
        rows = self._read("pools", lambda: self.conn.execute("SELECT name, value FROM xp_pools").fetchall())
        return {row["name"]: int(row["value"]) for row in rows}

    def _increment_pool(self, name: str, amount: int) -> None:
        self.conn.execute(
            "INSERT INTO xp_pools (name, value) VALUES (?, ?) "
            "ON CONFLICT(name) DO UPDATE SET value = value + excluded.value",
            (name, amount),
        )

    def add_to_pool(self, name: str, amount: int) -> int:
        """Increment a pool. Pools never shrink, so negative amounts are rejected."""
        if amount < 0:
            raise ValueError(f"pool {name} can only grow, got {amount}")
        self._write(f"pool {name}", lambda: self._increment_pool(name, amount))
        return self.load_pool(name)

    # ── award ledger ──────────────────────────────────────────────────────────

    def has_credit(self, identity: str) -> bool:
        row = self._read(
            f"ledger entry {identity}",
            lambda: self.conn.execute(
                "SELECT 1 FROM award_ledger WHERE identity = ?", (identity,)
            ).fetchone(),
        )
        return row is not None

    def credit(self, identity: str, kind: str, pool: str, amount: int) -> bool:
        """Add amount to pool and record identity, in one transaction.

        The pool increment is issued before the ledger insert. Returns False
        without touching the pool if identity is already in the ledger.
        """
        if amount < 0:
            raise ValueError(f"pool {pool} can only grow, got {amount}")

        def run() -> bool:
            exists = self.conn.execute(
                "SELECT 1 FROM award_ledger WHERE identity = ?", (identity,)
            ).fetchone()
            if exists:
                return False
            self._increment_pool(pool, amount)
            self.conn.execute(
                "INSERT INTO award_ledger (identity, kind, pool, amount, credited_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (identity, kind, pool, amount, _now()),
            )
            return True

        return self._write(f"credit {identity}", run)

    def get_credits(self, kind: str | None = None) -> list[dict]:
        """Ledger entries, oldest first, optionally filtered by kind."""
        if kind is None:
            query, params = "SELECT * FROM award_ledger ORDER BY credited_at, identity", ()
        else:
            query, params = (
                "SELECT * FROM award_ledger WHERE kind = ? ORDER BY credited_at, identity",
                (kind,),
            )
        rows = self._read("ledger", lambda: self.conn.execute(query, params).fetchall())
        return [dict(row) for row in rows]

    def record_claim(self, period: str, period_key: str, pool: str, amount: int) -> bool:
        """Claim a periodic bonus once per period key.

        Returns False if period_key is already the last claim for period.
        """
        if amount < 0:
            raise ValueError(f"pool {pool} can only grow, got {amount}")

        def run() -> bool:
            row = self.conn.execute(
                "SELECT period_key FROM bonus_claims WHERE period = ?", (period,)
            ).fetchone()
            if row and row["period_key"] == period_key:
                return False
            self._increment_pool(pool, amount)
            self.conn.execute(
                "INSERT INTO bonus_claims (period, period_key, claimed_at) VALUES (?, ?, ?) "
                "ON CONFLICT(period) DO UPDATE SET "
                "period_key = excluded.period_key, claimed_at = excluded.claimed_at",
                (period, period_key, _now()),
            )
            return True

        return self._write(f"{period} claim {period_key}", run)

    def load_ledger(self) -> Ledger:
        """Credited identities plus the last claim key of each period."""
        def run() -> Ledger:
            credited = {
                row["identity"]
                for row in self.conn.execute("SELECT identity FROM award_ledger").fetchall()
            }
            claims = {
                row["period"]: row["period_key"]
                for row in self.conn.execute("SELECT period, period_key FROM bonus_claims").fetchall()
            }
            return Ledger(
                credited=credited,
                last_daily_claim=claims.get("daily"),
                last_weekly_claim=claims.get("weekly"),
                last_monthly_claim=claims.get("monthly"),
            )

        return self._read("ledger", run)

    # ── cached profile ────────────────────────────────────────────────────────

    def get_profile(self, key: str) -> str | None:
        """Get a profile value by key."""
        row = self.conn.execute(
            "SELECT value FROM profile WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_profile(self, key: str, value: str) -> None:
        """Set a profile value (upsert)."""
        self.conn.execute(
            "INSERT INTO profile (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, str(value)),
        )
        self.conn.commit()

    def set_profile_many(self, values: dict[str, object]) -> None:
        def run() -> None:
            self.conn.executemany(
                "INSERT INTO profile (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                [(k, str(v)) for k, v in values.items()],
            )

        self._write("profile", run)

    def get_all_profile(self) -> dict[str, str]:
        """Return all profile key-value pairs as a dict."""
        rows = self.conn.execute("SELECT key, value FROM profile").fetchall()
        return {row["key"]: row["value"] for row in rows}

    def delete_all(self) -> None:
        """Full data reset: records, pools, ledger, claims and profile."""
        def run() -> None:
            for table in ("daily_records", "xp_pools", "award_ledger", "bonus_claims", "profile"):
                self.conn.execute(f"DELETE FROM {table}")

        self._write("reset", run)

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
