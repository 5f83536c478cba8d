# Area: Sync
"""
sketchroom._sync.rewards — Round-end and game-end rewards
=========================================================

Grants XP and currency when the room moves into ``results`` (round
end) or ``final`` (game end). Granting is edge-triggered: it needs the
previous status, and staying in ``results`` for many polls grants
nothing more.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from .enums import RoomStatus
from .models import Room
from .._profile import ProgressRepository, ProgressState

logger = logging.getLogger("sketchroom.rewards")

PARTICIPATION_XP = 5
ROUND_WIN_XP = 25
GAME_COMPLETE_XP = 50
GAME_WIN_XP = 100

ROUND_WIN_CURRENCY = 10
GAME_COMPLETE_CURRENCY = 20
GAME_WIN_CURRENCY = 50


@dataclass(frozen=True)
class RewardGrant:
    kind: str                  # "round" or "game"
    round_number: int
    xp: int
    currency: int
    won: bool
    leveled_up: bool
    new_level: int
    unlocked_badges: List[str] = field(default_factory=list)


class RewardCalculator:
    """
    Applies rewards for the local player to their ProgressState.

    Level-up and badge notices are queued on ``pending_notices`` for the
    UI to drain; showing them is not this class's job.
    """

    def __init__(
        self,
        player_id: str,
        progress: Optional[ProgressState] = None,
        repository: Optional[ProgressRepository] = None,
    ) -> None:
        self.player_id = player_id
        self.repository = repository
        if progress is None:
            progress = repository.load(player_id) if repository else ProgressState(player_id=player_id)
        self.progress = progress
        self.pending_notices: List[str] = []
        # (kind, room, game, round) already rewarded
        self._rewarded: Set[Tuple[str, str, int, int]] = (
            repository.rewarded_keys(player_id) if repository else set()
        )

    def on_transition(
        self, previous: Optional[RoomStatus], room: Optional[Room]
    ) -> Optional[RewardGrant]:
        """
        Grant once per edge into results or final. First snapshots are not edges.

        A round or game that was already rewarded is never rewarded again,
        even if an out-of-order snapshot produces a second edge into it.
        """
        if room is None or previous is None or previous == room.status:
            return None
        if room.status == RoomStatus.RESULTS:
            kind, grant = "round", self.grant_round
        elif room.status == RoomStatus.FINAL:
            kind, grant = "game", self.grant_game
        else:
            return None

        key = (kind, room.room_code, room.game_number, room.round_number)
        if key in self._rewarded:
            logger.debug(f"[{room.room_code}] {kind} {room.round_number} already rewarded")
            return None
        result = grant(room)
        if result is not None:
            self._rewarded.add(key)
            if self.repository is not None:
                self.repository.log_grant(self.player_id, key, result.xp, result.currency)
        return result

    def grant_round(self, room: Room) -> Optional[RewardGrant]:
        result = room.result_for_round(room.round_number)
        if result is None:
            logger.debug("No ranking stored for round %d yet", room.round_number)
            return None
        ranked_ids = [r.player_id for r in result.rankings]
        if self.player_id not in ranked_ids:
            return None

        won = ranked_ids[0] == self.player_id
        xp = PARTICIPATION_XP + (ROUND_WIN_XP if won else 0)
        if room.is_double_points:
            xp *= 2
        currency = ROUND_WIN_CURRENCY if won else 0

        stats = self.progress.stats
        if won:
            stats.rounds_won += 1
        else:
            stats.rounds_lost += 1
        return self._apply("round", room.round_number, xp, currency, won)

    def grant_game(self, room: Room) -> Optional[RewardGrant]:
        if not room.is_active(self.player_id):
            return None
        my_score = room.scores.get(self.player_id, 0)
        top_score = max(room.scores.values(), default=0)
        won = my_score == top_score

        xp = GAME_COMPLETE_XP + (GAME_WIN_XP if won else 0)
        currency = GAME_COMPLETE_CURRENCY + (GAME_WIN_CURRENCY if won else 0)

        stats = self.progress.stats
        stats.games_played += 1
        if won:
            stats.games_won += 1
        return self._apply("game", room.round_number, xp, currency, won)

    def record_sabotaged(self) -> None:
        self.progress.stats.times_sabotaged += 1
        self._save()

    def record_saboteur(self) -> None:
        self.progress.stats.times_saboteur += 1
        self._save()

    def apply_to_room(self, room: Room) -> Room:
        """Room transform: copy XP and level onto the local player's entry."""
        player = room.get_player(self.player_id)
        if player is not None:
            player.xp = self.progress.xp
            player.level = self.progress.level
        return room

    def drain_notices(self) -> List[str]:
        notices, self.pending_notices = self.pending_notices, []
        return notices

    def _apply(self, kind: str, round_number: int, xp: int, currency: int, won: bool) -> RewardGrant:
        leveled_up = self.progress.add_xp(xp)
        if currency:
            self.progress.add_currency(currency)
        unlocked = self.progress.unlock_level_badges()

        if leveled_up:
            self.pending_notices.append(f"Level up! Level {self.progress.level}")
        for badge in unlocked:
            self.pending_notices.append(f"Badge unlocked: {badge}")

        logger.info(
            "Reward (%s, round %d) for %s: +%d XP, +%d currency%s",
            kind, round_number, self.player_id, xp, currency, " [win]" if won else "",
        )
        self._save()
        return RewardGrant(
            kind=kind,
            round_number=round_number,
            xp=xp,
            currency=currency,
            won=won,
            leveled_up=leveled_up,
            new_level=self.progress.level,
            unlocked_badges=unlocked,
        )

    def _save(self) -> None:
        if self.repository is not None:
            self.repository.save(self.progress)
