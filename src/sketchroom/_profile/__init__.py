# Area: Profile
"""Local player progress: XP, levels, badges, stats and their SQLite store."""

from .progress import (
    LEVEL_BADGES,
    XP_PER_LEVEL,
    PlayerStats,
    ProgressState,
    badges_for_level,
    level_for_xp,
    level_progress,
)
from .repo_progress import ProgressRepository

__all__ = [
    "LEVEL_BADGES",
    "XP_PER_LEVEL",
    "PlayerStats",
    "ProgressState",
    "ProgressRepository",
    "badges_for_level",
    "level_for_xp",
    "level_progress",
]
