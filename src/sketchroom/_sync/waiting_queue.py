# Area: Sync
"""
sketchroom._sync.waiting_queue — Waiting queue resolution
=========================================================

Decides whether the local player is active, queued or spectating,
and provides the room transforms that move players between the
``players`` and ``waiting_players`` lists.

Members only move from the queue to ``players`` at a round boundary
(``promote_waiting``) or through an explicit force-join.
"""

import logging
from typing import Optional

from .enums import Participation, PlayerRole, PlayerStatus, RoomStatus
from .models import Player, PlayerState, Room

logger = logging.getLogger("sketchroom.waiting_queue")

# Statuses before the round's drawing has started
PRE_ROUND_STATUSES = frozenset({
    RoomStatus.LOBBY,
    RoomStatus.UPLOADING,
    RoomStatus.SABOTAGE_SELECTION,
})

# Statuses in which a queued player may join the current round early
FORCE_JOINABLE_STATUSES = frozenset({
    RoomStatus.UPLOADING,
    RoomStatus.SABOTAGE_SELECTION,
    RoomStatus.DRAWING,
    RoomStatus.VOTING,
})


def resolve_participation(room: Optional[Room], player_id: str) -> Participation:
    """Classify the local player against the current snapshot."""
    if room is None:
        return Participation.ABSENT
    if room.is_active(player_id):
        return Participation.ACTIVE
    if room.is_waiting(player_id):
        if room.status in PRE_ROUND_STATUSES:
            return Participation.QUEUED
        return Participation.SPECTATING
    return Participation.ABSENT


def role_for(participation: Participation) -> Optional[PlayerRole]:
    """Map participation to the screen-table role. ``None`` for absent players."""
    if participation == Participation.ACTIVE:
        return PlayerRole.ACTIVE
    if participation in (Participation.QUEUED, Participation.SPECTATING):
        return PlayerRole.WAITING
    return None


def can_force_join(room: Room, player_id: str) -> bool:
    return room.is_waiting(player_id) and room.status in FORCE_JOINABLE_STATUSES


# ── Room transforms ──────────────────────────────────────────


def enqueue_join(room: Room, player: Player) -> Room:
    """
    Add a joining player.

    In the lobby the player goes straight into ``players``; during any
    other status they are queued. Re-joining refreshes ``last_seen``.
    """
    existing = room.get_player(player.id)
    if existing is not None:
        existing.last_seen = max(existing.last_seen, player.last_seen)
        return room

    if room.status == RoomStatus.LOBBY:
        room.players.append(player)
        logger.info(f"[{room.room_code}] {player.id} joined the lobby")
    else:
        room.waiting_players.append(player)
        logger.info(
            f"[{room.room_code}] {player.id} queued during {room.status.value}"
        )
    return room


def promote_waiting(room: Room) -> Room:
    """
    Move every queued player into ``players``.

    Also gives every active player a fresh ``PlayerState`` for the new
    round. Called only at a round boundary or on a lobby reset.
    """
    if room.waiting_players:
        promoted = [p.id for p in room.waiting_players]
        known = set(room.player_ids())
        room.players.extend(p for p in room.waiting_players if p.id not in known)
        room.waiting_players = []
        logger.info(f"[{room.room_code}] Promoted waiting players: {promoted}")
    room.player_states = {pid: PlayerState() for pid in room.player_ids()}
    return room


def force_join(room: Room, player_id: str) -> Room:
    """
    Move one queued player into the current round.

    The entry state matches the phase: during voting the player has no
    drawing to make, so they enter as submitted and only vote.
    """
    if not can_force_join(room, player_id):
        return room

    player = next(p for p in room.waiting_players if p.id == player_id)
    room.waiting_players = [p for p in room.waiting_players if p.id != player_id]
    room.players.append(player)

    if room.status == RoomStatus.VOTING:
        room.player_states[player_id] = PlayerState(status=PlayerStatus.SUBMITTED)
    else:
        room.player_states[player_id] = PlayerState()
    room.scores.setdefault(player_id, 0)
    logger.info(
        f"[{room.room_code}] {player_id} force-joined during {room.status.value}"
    )
    return room
