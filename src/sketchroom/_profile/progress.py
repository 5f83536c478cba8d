# Area: Profile
"""
sketchroom._profile.progress — Player progress state
====================================================

XP, level, currency, badges and lifetime stats for the local player.
Level is derived from XP (100 XP per level); badges unlock at fixed
level milestones.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

XP_PER_LEVEL = 100

# level required -> badge id
LEVEL_BADGES: Dict[int, str] = {
    5: "level_5",
    10: "level_10",
    25: "level_25",
    50: "level_50",
    100: "level_100",
}


def level_for_xp(xp: int) -> int:
    return max(0, xp) // XP_PER_LEVEL


def level_progress(xp: int) -> int:
    """XP earned inside the current level (0-99)."""
    return max(0, xp) % XP_PER_LEVEL


def badges_for_level(level: int) -> List[str]:
    return [badge for required, badge in sorted(LEVEL_BADGES.items()) if level >= required]


@dataclass
class PlayerStats:
    games_played: int = 0
    games_won: int = 0
    rounds_won: int = 0
    rounds_lost: int = 0
    times_sabotaged: int = 0
    times_saboteur: int = 0
    total_currency_earned: int = 0
    total_xp_earned: int = 0
    highest_level: int = 0


@dataclass
class ProgressState:
    player_id: str
    xp: int = 0
    level: int = 0
    currency: int = 0
    badges: List[str] = field(default_factory=list)
    stats: PlayerStats = field(default_factory=PlayerStats)

    def add_xp(self, amount: int) -> bool:
        """Add XP and apply any pending level-up. Returns True on level-up."""
        old_level = self.level
        self.xp += amount
        self.stats.total_xp_earned += amount
        self.level = level_for_xp(self.xp)
        self.stats.highest_level = max(self.stats.highest_level, self.level)
        return self.level > old_level

    def add_currency(self, amount: int) -> None:
        self.currency += amount
        self.stats.total_currency_earned += amount

    def unlock_level_badges(self) -> List[str]:
        """Award every level-gated badge not owned yet. Returns the new ones."""
        new = [b for b in badges_for_level(self.level) if b not in self.badges]
        self.badges.extend(new)
        return new

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressState":
        stats = PlayerStats(**(data.get("stats") or {}))
        return cls(
            player_id=data["player_id"],
            xp=data.get("xp", 0),
            level=data.get("level", 0),
            currency=data.get("currency", 0),
            badges=list(data.get("badges") or []),
            stats=stats,
        )
