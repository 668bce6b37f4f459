"""Tests for CLI commands and display helpers."""

from __future__ import annotations

import json
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from habit_rank.cli import (
    build_parser,
    do_achievements,
    do_claim,
    do_config,
    do_dashboard,
    do_import,
    do_log,
    do_missions,
    do_reset,
    do_rewards,
    do_xp,
)
from habit_rank.db import Database, StorageWriteError
from habit_rank.display import _xp_bar, format_number
from habit_rank.engine import ProgressionEngine, achievement_rows

MONDAY = date(2026, 1, 5)
SUNDAY = date(2026, 1, 11)


@pytest.fixture
def db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test.db"
    database = Database(db_path=db_path)
    yield database
    database.close()


@pytest.fixture
def engine(db):
    eng = ProgressionEngine(db, clock=lambda: SUNDAY)
    yield eng
    eng.close()


def _log_week(engine):
    for i in range(7):
        do_log(engine, day=(MONDAY + timedelta(days=i)).isoformat(), habits=2, focus=1)


# ── Argument Parsing ──────────────────────────────────────────────────────────


class TestArgumentParsing:
    def test_no_args_defaults_to_none_command(self):
        args = build_parser().parse_args([])
        assert args.command is None

    def test_dashboard_command(self):
        args = build_parser().parse_args(["dashboard"])
        assert args.command == "dashboard"

    def test_log_command(self):
        args = build_parser().parse_args(
            ["log", "--date", "2026-01-05", "--habits", "3", "--focus", "2", "--negative", "1",
             "--habit", "Read", "--habit", "Run"]
        )
        assert args.command == "log"
        assert args.date == "2026-01-05"
        assert (args.habits, args.focus, args.negative) == (3, 2, 1)
        assert args.habit == ["Read", "Run"]

    def test_log_defaults(self):
        args = build_parser().parse_args(["log"])
        assert args.date is None
        assert args.habits == 0
        assert args.habit == []

    def test_claim_command(self):
        args = build_parser().parse_args(["claim", "weekly"])
        assert args.period == "weekly"

    def test_claim_rejects_unknown_period(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["claim", "yearly"])

    def test_import_command(self):
        args = build_parser().parse_args(["import", "logs.json"])
        assert args.path == "logs.json"

    def test_reset_requires_flag(self):
        assert build_parser().parse_args(["reset"]).yes is False
        assert build_parser().parse_args(["reset", "--yes"]).yes is True

    def test_global_options(self):
        args = build_parser().parse_args(["--db", "/tmp/x.db", "-v", "xp"])
        assert args.db == "/tmp/x.db"
        assert args.verbose is True
        assert args.command == "xp"

    def test_config_habit_name(self):
        args = build_parser().parse_args(["config", "--habit-name", "Snus"])
        assert args.habit_name == "Snus"


# ── Commands ──────────────────────────────────────────────────────────────────


class TestDoLog:
    def test_logs_day(self, engine, db):
        result = do_log(engine, day="2026-01-11", habits=2, focus=1, habit_names=["Read"])
        assert result["ok"] is True
        assert result["days_active"] == 1
        assert db.get_daily_record("2026-01-11").habit_names == ["Read"]

    def test_invalid_date(self, engine, db):
        result = do_log(engine, day="11/01/2026", habits=2)
        assert result == {"ok": False}
        assert db.load_all_daily_records() == {}

    def test_week_grants_milestone(self, engine):
        _log_week(engine)
        assert "milestone-first-week-warrior-target-7" in engine.credited("mission")

    def test_write_failure_reported(self, engine, db):
        with patch.object(db, "credit", side_effect=StorageWriteError("disk full")):
            result = do_log(engine, day="2026-01-11", habits=5, focus=5)
        assert result["ok"] is False
        assert "disk full" in result["error"]
        assert db.load_pools() == {}


class TestDoImport:
    def test_imports_export(self, engine, tmp_path):
        path = tmp_path / "daily-logs.json"
        path.write_text(json.dumps({
            (MONDAY + timedelta(days=i)).isoformat(): {
                "habitsCompleted": 2, "focusSessions": 1, "snusCount": 0,
            }
            for i in range(7)
        }), encoding="utf-8")
        result = do_import(engine, path)
        assert result["ok"] is True
        assert result["imported"] == 7
        assert result["current_streak"] == 7

    def test_missing_file(self, engine, tmp_path):
        result = do_import(engine, tmp_path / "missing.json")
        assert result == {"ok": False, "imported": 0}

    def test_write_failure_reported(self, engine, db, tmp_path):
        path = tmp_path / "daily-logs.json"
        path.write_text(json.dumps({
            "2026-01-11": {"habitsCompleted": 5, "focusSessions": 5, "snusCount": 0},
        }), encoding="utf-8")
        with patch.object(db, "credit", side_effect=StorageWriteError("disk full")):
            result = do_import(engine, path)
        assert result["ok"] is False
        assert "disk full" in result["error"]


class TestViews:
    def test_dashboard_no_data(self, engine):
        with patch("habit_rank.cli.print_no_data_message") as mock_msg:
            data = do_dashboard(engine)
        mock_msg.assert_called_once()
        assert data["total_xp"] == 0

    def test_dashboard_with_data(self, engine):
        _log_week(engine)
        with patch("habit_rank.cli.print_dashboard") as mock_print:
            data = do_dashboard(engine)
        mock_print.assert_called_once_with(data)
        assert data["current_streak"] == 7

    def test_dashboard_renders(self, engine):
        _log_week(engine)
        do_dashboard(engine)

    def test_xp(self, engine):
        _log_week(engine)
        breakdown = do_xp(engine)
        assert breakdown["daily_activity"] == 875

    def test_missions(self, engine):
        _log_week(engine)
        result = do_missions(engine)
        assert [m["type"] for m in result["missions"]] == ["weekly", "milestone"]
        assert "milestone-first-week-warrior-target-7" in result["completed"]

    def test_achievements(self, engine):
        _log_week(engine)
        rows = do_achievements(engine)
        assert len(rows) == 30
        by_id = {r["id"]: r for r in rows}
        assert by_id["week-warrior"]["unlocked"] is True
        assert by_id["habit-trio"]["unlocked"] is False

    def test_achievement_rows_keep_credited(self, engine):
        _log_week(engine)
        # a bad today drops the live streak below 7; the credit stays
        snapshot = engine.log_activity(SUNDAY.isoformat(), 0, 0, 9)
        by_id = {r["id"]: r for r in achievement_rows(snapshot, "Snus")}
        assert by_id["week-warrior"]["unlocked"] is True
        assert by_id["week-warrior"]["progress"] == 1.0
        assert by_id["snus-slayer"]["name"] == "Snus Slayer"

    def test_rewards(self, engine):
        statuses = do_rewards(engine)
        assert [s["period"] for s in statuses] == ["daily", "weekly", "monthly"]
        assert statuses[0]["claimable"] is True


class TestDoClaim:
    def test_claim_daily(self, engine):
        _log_week(engine)
        assert do_claim(engine, "daily") == 170
        assert do_claim(engine, "daily") == 0


class TestDoReset:
    def test_requires_confirmation(self, engine, db):
        do_log(engine, day="2026-01-11", habits=1)
        assert do_reset(engine) is False
        assert len(db.load_all_daily_records()) == 1

    def test_confirmed(self, engine, db):
        do_log(engine, day="2026-01-11", habits=1)
        assert do_reset(engine, confirmed=True) is True
        assert db.load_all_daily_records() == {}


class TestDoConfig:
    def test_sets_habit_name(self, tmp_path):
        path = tmp_path / "config.json"
        assert do_config(habit_name="Snus", config_path=path) == {"negative_habit_name": "Snus"}

    def test_shows_default(self, tmp_path):
        assert do_config(config_path=tmp_path / "config.json") == {"negative_habit_name": "Habit"}


# ── Display helpers ───────────────────────────────────────────────────────────


class TestFormatNumber:
    def test_small(self):
        assert format_number(999) == "999"

    def test_thousands(self):
        assert format_number(1200) == "1,200"

    def test_ten_thousands(self):
        assert format_number(421543) == "421.5K"

    def test_millions(self):
        assert format_number(1234567) == "1.2M"


class TestXPBar:
    def test_half(self):
        assert _xp_bar(500, 1000, width=10) == "[█████░░░░░]"

    def test_zero_total(self):
        assert _xp_bar(0, 0, width=4) == "[████]"
