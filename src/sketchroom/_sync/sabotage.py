# Area: Sync
"""
sketchroom._sync.sabotage — Sabotage effects
============================================

During ``sabotage-selection`` the saboteur picks one target and one
effect. The effect stays inert until the target's own client enters
``drawing`` and triggers it; ``sabotage_triggered`` keeps repeated
polls from triggering twice. Every consequence applies to the target
only.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from fractions import Fraction
from typing import List, Optional, Sequence

from .enums import RoomStatus, SabotageType
from .models import Room, SabotageEffect
from .state_machine import ensure_transition
from ..errors import NotAllowedError

logger = logging.getLogger("sketchroom.sabotage")

DEFAULT_INTENSITY = 5
MIN_INTENSITY = 1
MAX_INTENSITY = 10

# Flat cut applied to the target's drawing time.
SABOTAGE_TIME_CUT = Fraction(1, 5)

# Minimum number of active players for a sabotage round.
MIN_PLAYERS_FOR_SABOTAGE = 3

REDUCED_PALETTE: List[str] = ["#000000", "#FFFFFF", "#FF0000", "#555555"]


def time_penalty_seconds(base_duration: int) -> int:
    """Seconds removed from a time-sabotaged player: ceil(base * 20%)."""
    return math.ceil(Fraction(base_duration) * SABOTAGE_TIME_CUT)


@dataclass(frozen=True)
class SabotageView:
    """What rendering and the timer need to know for one player."""
    is_target: bool = False
    active: bool = False
    effect_type: Optional[SabotageType] = None
    intensity: int = 0

    @property
    def subtracts_time(self) -> bool:
        return self.active and self.effect_type == SabotageType.SUBTRACT_TIME

    @property
    def reduces_colors(self) -> bool:
        return self.active and self.effect_type == SabotageType.REDUCE_COLORS

    @property
    def distorted(self) -> bool:
        return self.active and self.effect_type == SabotageType.VISUAL_DISTORTION

    @property
    def distortion_strength(self) -> float:
        """0.0 - 1.0, scaled from intensity, for the rendering layer."""
        if not self.distorted:
            return 0.0
        return self.intensity / MAX_INTENSITY


def view_for(room: Optional[Room], player_id: str) -> SabotageView:
    """Derive the sabotage parameters visible to ``player_id``."""
    if room is None or room.sabotage_target_id != player_id or room.sabotage_effect is None:
        return SabotageView()
    return SabotageView(
        is_target=True,
        active=room.sabotage_triggered,
        effect_type=room.sabotage_effect.type,
        intensity=room.sabotage_effect.intensity,
    )


def palette_for(room: Optional[Room], player_id: str, available: Sequence[str]) -> List[str]:
    """Colors offered to ``player_id``; reduced only for an active color sabotage."""
    if view_for(room, player_id).reduces_colors:
        return list(REDUCED_PALETTE)
    return list(available)


def needs_trigger(room: Optional[Room], player_id: str) -> bool:
    """True when this client is the target and must activate the effect."""
    return (
        room is not None
        and room.status == RoomStatus.DRAWING
        and room.sabotage_target_id == player_id
        and room.sabotage_effect is not None
        and not room.sabotage_triggered
    )


def is_sabotage_round(room: Room) -> bool:
    return (
        room.settings.enable_sabotage
        and room.sabotage_round is not None
        and room.sabotage_round == room.round_number
        and len(room.players) >= MIN_PLAYERS_FOR_SABOTAGE
    )


def pick_saboteur(room: Room, rng: random.Random) -> Optional[str]:
    """Pick the saboteur among active players, never the current uploader."""
    candidates = [pid for pid in room.player_ids() if pid != room.current_uploader_id]
    if not candidates:
        candidates = room.player_ids()
    return rng.choice(candidates) if candidates else None


# ── Room transforms ──────────────────────────────────────────


def assign_sabotage(
    room: Room, saboteur_id: str, target_id: str, effect: SabotageEffect
) -> Room:
    """
    Store the saboteur's choice and open the drawing phase.

    Raises:
        NotAllowedError: Wrong phase, wrong actor, or invalid target
    """
    if room.status != RoomStatus.SABOTAGE_SELECTION:
        if room.status == RoomStatus.DRAWING and room.saboteur_id == saboteur_id \
                and room.sabotage_target_id == target_id:
            return room
        raise NotAllowedError(
            "assign_sabotage", "Sabotage can only be chosen before drawing starts",
            room_code=room.room_code, player_id=saboteur_id,
        )
    if room.saboteur_id != saboteur_id:
        raise NotAllowedError(
            "assign_sabotage", "Only the saboteur can pick a target",
            room_code=room.room_code, player_id=saboteur_id,
        )
    if target_id == saboteur_id or not room.is_active(target_id):
        raise NotAllowedError(
            "assign_sabotage", "Pick another player to sabotage",
            room_code=room.room_code, player_id=saboteur_id,
            details={"target_id": target_id},
        )

    intensity = min(MAX_INTENSITY, max(MIN_INTENSITY, effect.intensity))
    room.sabotage_target_id = target_id
    room.sabotage_effect = SabotageEffect(type=effect.type, intensity=intensity)
    room.sabotage_triggered = False
    ensure_transition(room.status, RoomStatus.DRAWING)
    room.status = RoomStatus.DRAWING
    logger.info(
        f"[{room.room_code}] Sabotage {effect.type.value} assigned by {saboteur_id} to {target_id}"
    )
    return room


def trigger_sabotage(room: Room, player_id: str) -> Room:
    """Activate the stored effect. Only the target's client calls this; repeats are no-ops."""
    if needs_trigger(room, player_id):
        room.sabotage_triggered = True
        logger.info(f"[{room.room_code}] Sabotage triggered on {player_id}")
    return room


def clear_sabotage(room: Room) -> Room:
    room.saboteur_id = None
    room.sabotage_target_id = None
    room.sabotage_effect = None
    room.sabotage_triggered = False
    return room
