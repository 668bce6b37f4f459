"""CLI commands for habit-rank."""

from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path

from habit_rank.bonuses import PERIODS
from habit_rank.config import (
    get_db_path,
    get_negative_habit_name,
    get_write_retries,
    set_negative_habit_name,
)
from habit_rank.db import Database, StorageWriteError
from habit_rank.display import (
    console,
    print_achievements,
    print_claim_result,
    print_dashboard,
    print_missions,
    print_no_data_message,
    print_rewards,
    print_sync_result,
    print_xp_breakdown,
)
from habit_rank.engine import ProgressionEngine, achievement_rows
from habit_rank.ledger import KIND_MISSION
from habit_rank.records import is_valid_date, load_records_file


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="habit-rank",
        description="XP, levels, streaks and missions from your daily habits",
    )
    parser.add_argument("--db", default=None, help="Path to the SQLite database")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show log output")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("dashboard", help="Show profile, streaks and active missions")
    subparsers.add_parser("xp", help="Show where your XP comes from")
    subparsers.add_parser("missions", help="Show this week's mission and the next milestone")
    subparsers.add_parser("achievements", help="List all achievements")
    subparsers.add_parser("rewards", help="Show daily/weekly/monthly bonus status")

    log_parser = subparsers.add_parser("log", help="Set a day's activity counts")
    log_parser.add_argument("--date", "-d", default=None, help="YYYY-MM-DD (default: today)")
    log_parser.add_argument("--habits", type=int, default=0, help="Habits completed")
    log_parser.add_argument("--focus", type=int, default=0, help="Focus sessions completed")
    log_parser.add_argument("--negative", type=int, default=0, help="Negative habit count")
    log_parser.add_argument("--habit", action="append", default=[], help="Name of a completed habit")

    import_parser = subparsers.add_parser("import", help="Import a daily-logs JSON export")
    import_parser.add_argument("path", help="Path to the export file")

    claim_parser = subparsers.add_parser("claim", help="Claim a periodic bonus")
    claim_parser.add_argument("period", choices=list(PERIODS))

    reset_parser = subparsers.add_parser("reset", help="Delete all activity and rewards")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the reset")

    config_parser = subparsers.add_parser("config", help="Change settings")
    config_parser.add_argument("--habit-name", default=None, help="Name of the negative habit you track")
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()
    command = args.command or "dashboard"
    _configure_logging(args.verbose)

    if command == "config":
        do_config(habit_name=args.habit_name)
        return

    db_path = Path(args.db).expanduser() if args.db else get_db_path()
    db = Database(db_path=db_path, write_retries=get_write_retries())
    engine = ProgressionEngine(db, habit_name=get_negative_habit_name())

    try:
        if command == "dashboard":
            do_dashboard(engine)
        elif command == "xp":
            do_xp(engine)
        elif command == "missions":
            do_missions(engine)
        elif command == "achievements":
            do_achievements(engine)
        elif command == "rewards":
            do_rewards(engine)
        elif command == "log":
            do_log(
                engine,
                day=args.date,
                habits=args.habits,
                focus=args.focus,
                negative=args.negative,
                habit_names=args.habit,
            )
        elif command == "import":
            do_import(engine, Path(args.path))
        elif command == "claim":
            do_claim(engine, args.period)
        elif command == "reset":
            do_reset(engine, confirmed=args.yes)
    finally:
        engine.close()
        db.close()


def do_dashboard(engine: ProgressionEngine) -> dict:
    snapshot = engine.recompute()
    data = snapshot.to_dict()
    if snapshot.days_active == 0 and snapshot.total_xp == 0:
        print_no_data_message()
        return data
    print_dashboard(data)
    return data


def do_xp(engine: ProgressionEngine) -> dict[str, int]:
    snapshot = engine.recompute()
    print_xp_breakdown(snapshot.xp_breakdown)
    return snapshot.xp_breakdown


def do_missions(engine: ProgressionEngine) -> dict:
    snapshot = engine.recompute()
    missions = [
        m.to_dict()
        for m in (snapshot.active_weekly_mission, snapshot.active_milestone_mission)
        if m is not None
    ]
    completed = engine.credited(KIND_MISSION)
    print_missions(missions, completed)
    return {"missions": missions, "completed": completed}


def do_achievements(engine: ProgressionEngine) -> list[dict]:
    snapshot = engine.recompute()
    rows = achievement_rows(snapshot, engine.habit_name)
    print_achievements(rows)
    return rows


def do_rewards(engine: ProgressionEngine) -> list[dict]:
    statuses = [s.to_dict() for s in engine.bonus_statuses().values()]
    print_rewards(statuses)
    return statuses


def do_log(
    engine: ProgressionEngine,
    day: str | None = None,
    habits: int = 0,
    focus: int = 0,
    negative: int = 0,
    habit_names: list[str] | None = None,
) -> dict:
    """Set one day's counts and recompute."""
    day = day or date.today().isoformat()
    if not is_valid_date(day):
        console.print(f"[red]Invalid date: {day} (expected YYYY-MM-DD)[/]")
        return {"ok": False}
    try:
        snapshot = engine.log_activity(day, habits, focus, negative, habit_names)
    except StorageWriteError as exc:
        console.print(f"[red]Could not save progress: {exc}[/]")
        return {"ok": False, "error": str(exc)}
    result = snapshot.to_dict()
    print_sync_result(result)
    return {"ok": True, **result}


def do_import(engine: ProgressionEngine, path: Path) -> dict:
    records = load_records_file(path)
    if records is None:
        console.print(f"[red]Could not read a daily-logs export from {path}[/]")
        return {"ok": False, "imported": 0}
    try:
        snapshot = engine.import_records(records)
    except StorageWriteError as exc:
        console.print(f"[red]Could not save progress: {exc}[/]")
        return {"ok": False, "error": str(exc)}
    result = snapshot.to_dict()
    print_sync_result(result)
    return {"ok": True, "imported": len(records), **result}


def do_claim(engine: ProgressionEngine, period: str) -> int:
    awarded = engine.claim(period)
    print_claim_result(period, awarded)
    return awarded


def do_reset(engine: ProgressionEngine, confirmed: bool = False) -> bool:
    if not confirmed:
        console.print("[yellow]This deletes all activity and rewards. Re-run with --yes to confirm.[/]")
        return False
    engine.reset()
    console.print("[green]All data reset.[/]")
    return True


def do_config(habit_name: str | None = None, config_path: Path | None = None) -> dict:
    if habit_name:
        set_negative_habit_name(habit_name, config_path)
    current = {"negative_habit_name": get_negative_habit_name(config_path)}
    console.print(f"Negative habit name: [bold]{current['negative_habit_name']}[/]")
    return current


if __name__ == "__main__":
    main()
