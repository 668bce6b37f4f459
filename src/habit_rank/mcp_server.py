"""MCP server for habit-rank.

Exposes the progression profile as MCP tools so an assistant can query it
mid-conversation.
Run via: python3 -m habit_rank.mcp_server
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from habit_rank.bonuses import PERIODS

mcp = FastMCP(name="habit-rank")


def _get_engine():
    from habit_rank.config import get_db_path, get_negative_habit_name, get_write_retries
    from habit_rank.db import Database
    from habit_rank.engine import ProgressionEngine

    db = Database(db_path=get_db_path(), write_retries=get_write_retries())
    return ProgressionEngine(db, habit_name=get_negative_habit_name())


def _close(engine) -> None:
    engine.close()
    engine.db.close()


@mcp.tool()
def get_profile() -> dict[str, Any]:
    """Get current level, tier, XP breakdown, streaks and active missions."""
    engine = _get_engine()
    try:
        snapshot = engine.recompute()
        if snapshot.days_active == 0 and snapshot.total_xp == 0:
            return {"error": "No activity logged yet."}
        return snapshot.to_dict()
    finally:
        _close(engine)


@mcp.tool()
def get_missions() -> dict[str, Any]:
    """Get this week's mission, the next milestone, and completed mission ids."""
    engine = _get_engine()
    try:
        snapshot = engine.recompute()
        missions = [
            m.to_dict()
            for m in (snapshot.active_weekly_mission, snapshot.active_milestone_mission)
            if m is not None
        ]
        return {"missions": missions, "completed": engine.credited("mission")}
    finally:
        _close(engine)


@mcp.tool()
def get_achievements() -> dict[str, Any]:
    """Get all achievements with unlock status and progress."""
    engine = _get_engine()
    try:
        from habit_rank.engine import achievement_rows

        snapshot = engine.recompute()
        rows = achievement_rows(snapshot, engine.habit_name)
        return {
            "achievements": rows,
            "unlocked_count": sum(1 for a in rows if a["unlocked"]),
            "total_count": len(rows),
        }
    finally:
        _close(engine)


@mcp.tool()
def get_rewards() -> dict[str, Any]:
    """Get daily, weekly and monthly bonus status."""
    engine = _get_engine()
    try:
        return {period: status.to_dict() for period, status in engine.bonus_statuses().items()}
    finally:
        _close(engine)


@mcp.tool()
def claim_bonus(period: str = "daily") -> dict[str, Any]:
    """Claim the daily, weekly or monthly bonus if it is available."""
    if period not in PERIODS:
        return {"error": f"Invalid period. Must be one of: {', '.join(PERIODS)}"}
    engine = _get_engine()
    try:
        awarded = engine.claim(period)
        return {"period": period, "awarded": awarded, "claimed": awarded > 0}
    finally:
        _close(engine)


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
