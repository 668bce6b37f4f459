"""Rich terminal display for habit-rank."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

# Map tier colors from levels.py to valid Rich color names
_COLOR_MAP: dict[str, str] = {
    "grey": "grey70",
    "blue": "deep_sky_blue1",
    "green": "green3",
    "yellow": "gold1",
    "orange": "dark_orange3",
    "red": "red1",
    "purple": "purple",
    "pink": "hot_pink",
    "white": "bright_white",
}

_DIFFICULTY_COLORS: dict[str, str] = {
    "starter": "white",
    "momentum": "green",
    "serious": "blue",
    "advanced": "magenta",
    "legendary": "yellow",
}

_POOL_LABELS: dict[str, str] = {
    "daily_activity": "Daily Activity",
    "streak_bonus": "Streak Bonus",
    "mission": "Missions",
    "achievement": "Achievements",
    "daily_bonus": "Daily Bonus",
    "weekly_bonus": "Weekly Bonus",
    "monthly_bonus": "Monthly Bonus",
}


def _safe_color(color: str) -> str:
    """Map a tier color to a valid Rich color name."""
    return _COLOR_MAP.get(color, color)


def format_number(n: int) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'."""
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 10_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:,}"


def _xp_bar(current: int, total: int, width: int = 20) -> str:
    """Render a progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = max(0.0, min(current / total, 1.0))
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def _mission_lines(mission: dict) -> list[str]:
    done = mission.get("complete", False)
    icon = "✅" if done else "\U0001f3af"
    progress = min(mission["progress"], mission["target"])
    bar = _xp_bar(progress, mission["target"], width=12)
    return [
        f"  {icon} [bold]{mission['title']}[/] (+{mission['xp_reward']} XP)",
        f"     {mission['description']}",
        f"     {bar} {progress}/{mission['target']}",
    ]


def print_dashboard(data: dict) -> None:
    """Print the profile: level, XP, streaks and active missions."""
    level = data.get("level", 1)
    total_xp = data.get("total_xp", 0)
    current_level_xp = data.get("current_level_xp", 0)
    tier_color = _safe_color(data.get("tier_color", "grey"))

    lines: list[str] = [""]
    lines.append(f"  [bold {tier_color}]Level {level} - {data.get('tier', 'Novice')}[/]")
    lines.append(f"  {data.get('title', '')} · {data.get('rank', 'Bronze')}")
    lines.append(f"  {_xp_bar(current_level_xp, 1000)} {format_number(current_level_xp)}/1,000 XP")
    lines.append(f"  Total: [bold]{format_number(total_xp)}[/] XP")

    lines.append("")
    lines.append(
        f"  \U0001f525 Streak: {data.get('current_streak', 0)} days  |  "
        f"Best: {data.get('longest_streak', 0)}  |  "
        f"Clean: {data.get('clean_streak', 0)}"
    )
    lines.append(
        f"  \U0001f4c5 Days active: {data.get('days_active', 0)}  |  "
        f"\U0001f3c6 Completed: {data.get('completed_count', 0)}"
    )

    missions = [m for m in (data.get("active_weekly_mission"), data.get("active_milestone_mission")) if m]
    if missions:
        lines.append("")
        lines.append("  [bold]Active Missions:[/]")
        for mission in missions:
            lines.extend(_mission_lines(mission))

    if data.get("degraded"):
        lines.append("")
        lines.append("  [yellow]Some data could not be read; rewards were not updated.[/]")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]HABIT RANK[/]",
        box=box.ROUNDED,
        border_style=tier_color,
        width=60,
    )
    console.print(panel)


def print_xp_breakdown(breakdown: dict[str, int]) -> None:
    table = Table(title="XP Breakdown", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Source", style="bold")
    table.add_column("XP", justify="right")
    for pool, label in _POOL_LABELS.items():
        table.add_row(label, format_number(breakdown.get(pool, 0)))
    table.add_section()
    table.add_row("[bold]Total[/]", format_number(sum(breakdown.values())))
    console.print(table)


def print_missions(missions: list[dict], completed: list[str]) -> None:
    """Print active missions and the count of completed ones."""
    lines: list[str] = [""]
    for mission in missions:
        lines.extend(_mission_lines(mission))
        lines.append("")
    lines.append(f"  Missions completed so far: {len(completed)}")
    lines.append("")
    console.print(Panel("\n".join(lines), title="[bold]Missions[/]", box=box.ROUNDED, width=60))


def print_achievements(achievements: list[dict]) -> None:
    """Print all achievements with progress bars.

    Each dict has: id, name, description, difficulty, xp_reward, progress
    (0.0-1.0), unlocked (bool), current (int), target (int).
    """
    table = Table(
        title="Achievements",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("", width=2)
    table.add_column("Achievement", min_width=20)
    table.add_column("Tier", width=10)
    table.add_column("Progress", min_width=18)
    table.add_column("XP", justify="right", width=6)

    for ach in achievements:
        icon = "✅" if ach.get("unlocked") else "\U0001f512"
        difficulty = ach.get("difficulty", "starter")
        color = _DIFFICULTY_COLORS.get(difficulty, "white")
        name_text = f"[bold]{ach['name']}[/]\n{ach.get('description', '')}"
        tier_text = f"[{color}]{difficulty.upper()}[/{color}]"
        pct = int(ach.get("progress", 0.0) * 100)
        bar = _xp_bar(ach.get("current", 0), ach.get("target", 0), width=10)
        table.add_row(icon, name_text, tier_text, f"{bar} {pct}%", str(ach.get("xp_reward", 0)))

    console.print(table)


def print_rewards(statuses: list[dict]) -> None:
    """Print the three periodic bonus windows."""
    table = Table(title="Rewards", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Bonus", style="bold")
    table.add_column("Reward", justify="right")
    table.add_column("Status")
    table.add_column("Resets")
    for status in statuses:
        if status["claimed"]:
            state = "[grey50]Claimed[/]"
        elif status["claimable"]:
            state = "[green]Ready to claim[/]"
        else:
            state = f"[yellow]Locked {status['progress']}/{status['target']}[/]"
        table.add_row(
            status["period"].title(),
            f"+{format_number(status['reward'])} XP",
            state,
            status["resets_at"].replace("T", " ")[:16],
        )
    console.print(table)


def print_claim_result(period: str, awarded: int) -> None:
    if awarded:
        console.print(f"[bold green]\U0001f389 {period.title()} bonus claimed: +{format_number(awarded)} XP[/]")
    else:
        console.print(f"[yellow]{period.title()} bonus is not claimable right now.[/]")


def print_sync_result(stats: dict) -> None:
    """Print the outcome of a log/import/recompute."""
    lines: list[str] = [""]
    lines.append(f"  Days logged:     {stats.get('days_active', 0)}")
    lines.append(f"  Total XP:        {format_number(stats.get('total_xp', 0))}")
    lines.append(f"  Level:           {stats.get('level', 1)}")
    lines.append(f"  Tier:            {stats.get('tier', 'Novice')}")

    new_missions = stats.get("newly_completed_missions", [])
    new_achievements = stats.get("newly_unlocked_achievements", [])
    if new_missions or new_achievements:
        lines.append("")
        lines.append("  [bold]New Rewards:[/]")
        for identity in new_missions:
            lines.append(f"  \U0001f3af {identity}")
        for ach_id in new_achievements:
            lines.append(f"  \U0001f3c6 {ach_id}")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]Progress Updated[/]",
        box=box.ROUNDED,
        border_style="green",
        width=50,
    )
    console.print(panel)


def print_no_data_message() -> None:
    """Print message when no data is available."""
    panel = Panel(
        "\n  No activity yet. Log a day with [bold]habit-rank log[/] or import an export.\n",
        title="[bold]HABIT RANK[/]",
        box=box.ROUNDED,
        border_style="grey50",
        width=60,
    )
    console.print(panel)
