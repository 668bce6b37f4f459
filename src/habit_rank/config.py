"""Configuration file management for habit-rank.

Reads and writes ~/.habit-rank/config.json for settings that don't belong in
the DB (database location, the tracked negative habit's name, write retries).
"""
from __future__ import annotations

import json
from pathlib import Path

DEFAULT_CONFIG_PATH: Path = Path.home() / ".habit-rank" / "config.json"
DEFAULT_HABIT_NAME = "Habit"
DEFAULT_WRITE_RETRIES = 3


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} unless the file holds a JSON object."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_db_path(config_path: Path | None = None) -> Path | None:
    """Return the configured database path, or None to use the default."""
    raw = load_config(config_path).get("db_path")
    if raw:
        return Path(raw).expanduser()
    return None


def get_negative_habit_name(config_path: Path | None = None) -> str:
    """Display name of the tracked negative habit (e.g. 'Snus'), used in titles."""
    raw = load_config(config_path).get("negative_habit_name")
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return DEFAULT_HABIT_NAME


def set_negative_habit_name(name: str, config_path: Path | None = None) -> None:
    config = load_config(config_path)
    config["negative_habit_name"] = name.strip()
    save_config(config, config_path)


def get_write_retries(config_path: Path | None = None) -> int:
    raw = load_config(config_path).get("write_retries", DEFAULT_WRITE_RETRIES)
    try:
        return max(1, int(raw))
    except (TypeError, ValueError):
        return DEFAULT_WRITE_RETRIES
