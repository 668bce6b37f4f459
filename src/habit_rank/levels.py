"""Level and tier progression calculation. Pure functions, no side effects."""

XP_PER_LEVEL = 1000

TIERS: list[dict] = [
    {"tier": 1, "levels": (1, 4), "name": "Novice", "color": "grey"},
    {"tier": 2, "levels": (5, 9), "name": "Apprentice", "color": "blue"},
    {"tier": 3, "levels": (10, 14), "name": "Warrior", "color": "green"},
    {"tier": 4, "levels": (15, 19), "name": "Champion", "color": "yellow"},
    {"tier": 5, "levels": (20, 29), "name": "Master", "color": "orange"},
    {"tier": 6, "levels": (30, 39), "name": "Legend", "color": "red"},
    {"tier": 7, "levels": (40, 49), "name": "Mythic", "color": "purple"},
    {"tier": 8, "levels": (50, 99), "name": "Godlike", "color": "pink"},
    {"tier": 9, "levels": (100, None), "name": "Transcendent", "color": "white"},
]

# (minimum level, title), highest first
TITLES: list[tuple[int, str]] = [
    (20, "Productivity Legend"),
    (15, "Habit Virtuoso"),
    (10, "Focus Master"),
    (5, "Rising Champion"),
    (1, "Novice Achiever"),
]

RANKS: list[tuple[int, str]] = [
    (20, "Platinum"),
    (10, "Gold"),
    (5, "Silver"),
    (1, "Bronze"),
]


def level_from_xp(total_xp: int) -> int:
    """Given total XP, return current level. 1000 XP per level, no cap."""
    if total_xp <= 0:
        return 1
    return total_xp // XP_PER_LEVEL + 1


def xp_progress_in_level(total_xp: int) -> tuple[int, int]:
    """Return (current_xp_in_level, xp_needed_for_next_level)."""
    if total_xp <= 0:
        return (0, XP_PER_LEVEL)
    return (total_xp % XP_PER_LEVEL, XP_PER_LEVEL)


def xp_for_level(level: int) -> int:
    """Total XP at which a level is reached."""
    if level <= 1:
        return 0
    return (level - 1) * XP_PER_LEVEL


def title_for_level(level: int) -> str:
    for minimum, title in TITLES:
        if level >= minimum:
            return title
    return TITLES[-1][1]


def rank_for_level(level: int) -> str:
    for minimum, rank in RANKS:
        if level >= minimum:
            return rank
    return RANKS[-1][1]


def tier_from_level(level: int) -> dict:
    """Return tier info dict (tier, name, color, title, rank) for given level."""
    level = max(1, level)
    found = TIERS[-1]
    for tier in TIERS:
        low, high = tier["levels"]
        if level >= low and (high is None or level <= high):
            found = tier
            break
    return {
        "tier": found["tier"],
        "name": found["name"],
        "color": found["color"],
        "title": title_for_level(level),
        "rank": rank_for_level(level),
    }


def upcoming_tiers(level: int) -> list[dict]:
    """Tiers not yet reached, each with the total XP needed to enter it."""
    result = []
    for tier in TIERS:
        low, _ = tier["levels"]
        if low > level:
            result.append({**tier_from_level(low), "level": low, "xp_required": xp_for_level(low)})
    return result
