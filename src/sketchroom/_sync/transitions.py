# Area: Sync
"""
sketchroom._sync.transitions — Room transforms
==============================================

Read-modify-write transforms passed to ``RoomStore.update``. Each one
takes the freshest snapshot, re-checks its own preconditions, and
returns the room to write. Re-applying a transform to a room it has
already changed leaves the room as it is, so retries and duplicate
clicks converge instead of double-applying.

Validation failures raise ``NotAllowedError``; the store then writes
nothing and the action boundary turns the error into a message.
"""

from __future__ import annotations
import logging
import random
from typing import Dict, List, Optional

from .enums import PlayerStatus, RoomStatus
from .models import (
    TIMER_DURATION_RANGE, TOTAL_ROUNDS_RANGE,
    CurrentImage, GameSettings, Player, PlayerDrawing, PlayerState, Ranking, Room, RoundResult,
)
from .sabotage import clear_sabotage, is_sabotage_round, pick_saboteur
from .state_machine import ensure_transition
from .waiting_queue import enqueue_join, promote_waiting
from ..errors import NotAllowedError

logger = logging.getLogger("sketchroom.transitions")

POINTS_PER_VOTE = 100
DOUBLE_POINTS_CHANCE = 0.2
TIME_BONUS_CHANCE = 0.3
MIN_PLAYERS_TO_START = 2


# ── Helpers ──────────────────────────────────────────────────


def _set_status(room: Room, target: RoomStatus) -> None:
    ensure_transition(room.status, target)
    logger.info(f"[{room.room_code}] Status: {room.status.value} → {target.value}")
    room.status = target


def _require_host(room: Room, actor_id: str, action: str) -> None:
    if room.host_id != actor_id:
        raise NotAllowedError(
            action, "Only the host can do that",
            room_code=room.room_code, player_id=actor_id,
        )


def _require_status(room: Room, status: RoomStatus, action: str, actor_id: str, message: str) -> None:
    if room.status != status:
        raise NotAllowedError(
            action, message, room_code=room.room_code, player_id=actor_id,
            details={"status": room.status.value},
        )


def _require_active(room: Room, player_id: str, action: str) -> None:
    if not room.is_active(player_id):
        raise NotAllowedError(
            action, "You are not playing this round",
            room_code=room.room_code, player_id=player_id,
        )


def _prune_presence(room: Room) -> None:
    # Heartbeats from players who already left
    room.presence = {
        pid: seen for pid, seen in room.presence.items() if room.get_player(pid) is not None
    }


def _roll_round_modifiers(room: Room, rng: random.Random) -> None:
    room.is_double_points = rng.random() < DOUBLE_POINTS_CHANCE
    ids = room.player_ids()
    if ids and rng.random() < TIME_BONUS_CHANCE:
        room.time_bonus_player_id = rng.choice(ids)
    else:
        room.time_bonus_player_id = None


def next_uploader(room: Room) -> Optional[str]:
    """Rotate the upload turn through ``players`` in join order."""
    ids = room.player_ids()
    if not ids:
        return None
    if room.current_uploader_id in ids:
        return ids[(ids.index(room.current_uploader_id) + 1) % len(ids)]
    return ids[0]


def all_submitted(room: Room) -> bool:
    ids = room.player_ids()
    return bool(ids) and all(
        room.player_states.get(pid, PlayerState()).status == PlayerStatus.SUBMITTED
        for pid in ids
    )


def all_voted(room: Room) -> bool:
    ids = room.player_ids()
    if len(ids) < 2:
        return True
    return all(pid in room.votes for pid in ids)


def tally_votes(room: Room) -> List[Ranking]:
    """Rank active players by votes received; ties keep join order."""
    multiplier = 2 if room.is_double_points else 1
    counts: Dict[str, int] = {pid: 0 for pid in room.player_ids()}
    for voter, voted_for in room.votes.items():
        if voter in counts and voted_for in counts:
            counts[voted_for] += 1
    rankings = [
        Ranking(
            player_id=p.id,
            player_name=p.name,
            votes=counts[p.id],
            points=counts[p.id] * POINTS_PER_VOTE * multiplier,
        )
        for p in room.players
    ]
    return sorted(rankings, key=lambda r: r.votes, reverse=True)


# ── Membership ───────────────────────────────────────────────


def new_room(host: Player, settings: Optional[GameSettings] = None, now: int = 0) -> Room:
    """Build the initial lobby document. The store assigns the room code."""
    host = host.model_copy(update={"is_host": True, "joined_at": host.joined_at or now,
                                   "last_seen": now})
    return Room(
        host_id=host.id,
        settings=settings or GameSettings(),
        players=[host],
        created_at=now,
    )


def join_room(room: Room, player: Player) -> Room:
    return enqueue_join(room, player)


def leave_room(room: Room, player_id: str) -> Room:
    """Remove a player from every per-player field; hand the host role on."""
    if room.get_player(player_id) is None:
        return room
    room.players = [p for p in room.players if p.id != player_id]
    room.waiting_players = [p for p in room.waiting_players if p.id != player_id]
    room.player_states.pop(player_id, None)
    room.presence.pop(player_id, None)
    room.votes = {
        voter: target for voter, target in room.votes.items()
        if voter != player_id and target != player_id
    }
    if room.current_uploader_id == player_id and room.status == RoomStatus.UPLOADING:
        room.current_uploader_id = next_uploader(room)

    if room.host_id == player_id:
        successors = room.players or room.waiting_players
        if successors:
            room.host_id = successors[0].id
            for p in room.players + room.waiting_players:
                p.is_host = p.id == room.host_id
            logger.info(f"[{room.room_code}] Host handed to {room.host_id}")

    logger.info(f"[{room.room_code}] {player_id} left")
    return settle_phase(room)


def kick_player(room: Room, actor_id: str, player_id: str) -> Room:
    _require_host(room, actor_id, "kick_player")
    if player_id == actor_id:
        raise NotAllowedError(
            "kick_player", "You cannot kick yourself",
            room_code=room.room_code, player_id=actor_id,
        )
    return leave_room(room, player_id)


def update_settings(
    room: Room,
    actor_id: str,
    timer_duration: Optional[int] = None,
    total_rounds: Optional[int] = None,
    enable_sabotage: Optional[bool] = None,
) -> Room:
    """Host-only change of the game settings while still in the lobby."""
    _require_host(room, actor_id, "update_settings")
    _require_status(room, RoomStatus.LOBBY, "update_settings", actor_id,
                    "Settings are locked once the game starts")
    if timer_duration is not None:
        low, high = TIMER_DURATION_RANGE
        if not low <= timer_duration <= high:
            raise NotAllowedError(
                "update_settings", f"Timer must be between {low} and {high} seconds",
                room_code=room.room_code, player_id=actor_id,
            )
        room.settings.timer_duration = timer_duration
    if total_rounds is not None:
        low, high = TOTAL_ROUNDS_RANGE
        if not low <= total_rounds <= high:
            raise NotAllowedError(
                "update_settings", f"Rounds must be between {low} and {high}",
                room_code=room.room_code, player_id=actor_id,
            )
        room.settings.total_rounds = total_rounds
    if enable_sabotage is not None:
        room.settings.enable_sabotage = enable_sabotage
    return room


# ── Round flow ───────────────────────────────────────────────


def start_game(room: Room, actor_id: str, rng: random.Random) -> Room:
    """Lobby -> uploading; round 1 begins."""
    _require_host(room, actor_id, "start_game")
    if room.status != RoomStatus.LOBBY:
        return room
    if len(room.players) < MIN_PLAYERS_TO_START:
        raise NotAllowedError(
            "start_game", f"Need at least {MIN_PLAYERS_TO_START} players to start",
            room_code=room.room_code, player_id=actor_id,
        )

    promote_waiting(room)
    _prune_presence(room)
    room.round_number = 1
    room.scores = {pid: 0 for pid in room.player_ids()}
    room.round_results = []
    room.votes = {}
    room.current_image = None
    room.current_uploader_id = None
    room.current_uploader_id = next_uploader(room)
    clear_sabotage(room)
    if room.settings.enable_sabotage and len(room.players) >= 3:
        room.sabotage_round = rng.randint(1, room.settings.total_rounds)
    else:
        room.sabotage_round = None
    _roll_round_modifiers(room, rng)
    _set_status(room, RoomStatus.UPLOADING)
    return room


def submit_image(room: Room, uploader_id: str, url: str, now: int, rng: random.Random) -> Room:
    """Store the round's image and open sabotage selection or drawing."""
    if room.status != RoomStatus.UPLOADING:
        if room.current_image is not None and room.current_image.url == url:
            return room
        raise NotAllowedError(
            "submit_image", "It is not time to upload an image",
            room_code=room.room_code, player_id=uploader_id,
        )
    if room.current_uploader_id != uploader_id:
        raise NotAllowedError(
            "submit_image", "It is not your turn to upload",
            room_code=room.room_code, player_id=uploader_id,
        )

    room.current_image = CurrentImage(url=url, uploaded_by=uploader_id, uploaded_at=now)
    for pid in room.player_ids():
        room.player_states.setdefault(pid, PlayerState())

    if is_sabotage_round(room):
        room.saboteur_id = pick_saboteur(room, rng)
        _set_status(room, RoomStatus.SABOTAGE_SELECTION)
    else:
        _set_status(room, RoomStatus.DRAWING)
    return room


def mark_ready(room: Room, player_id: str, started_at: int) -> Room:
    """Start the player's countdown. The first confirmed start wins."""
    _require_status(room, RoomStatus.DRAWING, "mark_ready", player_id,
                    "Drawing has not started")
    _require_active(room, player_id, "mark_ready")
    state = room.player_states.setdefault(player_id, PlayerState())
    if state.status == PlayerStatus.WAITING:
        state.status = PlayerStatus.DRAWING
    if state.timer_started_at is None:
        state.timer_started_at = started_at
    return room


def submit_drawing(room: Room, player_id: str, drawing: PlayerDrawing) -> Room:
    """Store the player's drawing; the last submission opens voting."""
    state = room.player_states.get(player_id)
    if state is not None and state.status == PlayerStatus.SUBMITTED:
        return room
    _require_status(room, RoomStatus.DRAWING, "submit_drawing", player_id,
                    "Drawing time is over")
    _require_active(room, player_id, "submit_drawing")

    state = room.player_states.setdefault(player_id, PlayerState())
    state.status = PlayerStatus.SUBMITTED
    state.drawing = drawing
    return settle_phase(room)


def cast_vote(room: Room, voter_id: str, voted_for_id: str) -> Room:
    """Record the voter's own vote; the last vote closes the round."""
    if room.votes.get(voter_id) == voted_for_id and room.status != RoomStatus.VOTING:
        return room
    _require_status(room, RoomStatus.VOTING, "cast_vote", voter_id, "Voting is closed")
    _require_active(room, voter_id, "cast_vote")
    if voted_for_id == voter_id:
        raise NotAllowedError(
            "cast_vote", "You cannot vote for yourself",
            room_code=room.room_code, player_id=voter_id,
        )
    if not room.is_active(voted_for_id):
        raise NotAllowedError(
            "cast_vote", "That player is not in this round",
            room_code=room.room_code, player_id=voter_id,
        )
    room.votes[voter_id] = voted_for_id
    return settle_phase(room)


def finalize_round(room: Room) -> Room:
    """Voting -> results; append this round's ranking once."""
    if room.result_for_round(room.round_number) is None:
        rankings = tally_votes(room)
        room.round_results.append(RoundResult(
            round_number=room.round_number,
            image_url=room.current_image.url if room.current_image else None,
            rankings=rankings,
        ))
        for ranking in rankings:
            room.scores[ranking.player_id] = room.scores.get(ranking.player_id, 0) + ranking.points
    _set_status(room, RoomStatus.RESULTS)
    return room


def settle_phase(room: Room) -> Room:
    """
    Advance a phase whose completion condition already holds.

    Any client may apply this; it only moves the room forward when the
    snapshot proves every active player is done.
    """
    if room.status == RoomStatus.DRAWING and all_submitted(room):
        _set_status(room, RoomStatus.VOTING)
    if room.status == RoomStatus.VOTING and all_voted(room):
        finalize_round(room)
    return room


def needs_settle(room: Optional[Room]) -> bool:
    if room is None:
        return False
    if room.status == RoomStatus.DRAWING:
        return all_submitted(room)
    if room.status == RoomStatus.VOTING:
        return all_voted(room)
    return False


def advance_round(room: Room, actor_id: str, rng: random.Random) -> Room:
    """
    Results -> next round, or final after the last round.

    The next round promotes the waiting queue and resets every per-round
    field: player states, votes, image, sabotage, bonus.
    """
    _require_host(room, actor_id, "advance_round")
    if room.status != RoomStatus.RESULTS:
        return room

    if room.round_number >= room.settings.total_rounds:
        _set_status(room, RoomStatus.FINAL)
        return room

    ensure_transition(room.status, RoomStatus.UPLOADING)
    room.round_number += 1
    promote_waiting(room)
    _prune_presence(room)
    for pid in room.player_ids():
        room.scores.setdefault(pid, 0)
    room.votes = {}
    room.current_image = None
    room.current_uploader_id = next_uploader(room)
    clear_sabotage(room)
    _roll_round_modifiers(room, rng)
    _set_status(room, RoomStatus.UPLOADING)
    return room


def show_rewards(room: Room) -> Room:
    if room.status == RoomStatus.FINAL:
        _set_status(room, RoomStatus.REWARDS)
    return room


def reset_to_lobby(room: Room, actor_id: str) -> Room:
    """Final/rewards -> lobby for a replay; everyone waiting is let in."""
    _require_host(room, actor_id, "reset_to_lobby")
    if room.status == RoomStatus.LOBBY:
        return room
    if room.status not in (RoomStatus.FINAL, RoomStatus.REWARDS):
        raise NotAllowedError(
            "reset_to_lobby", "You can play again once the game is over",
            room_code=room.room_code, player_id=actor_id,
            details={"status": room.status.value},
        )
    _set_status(room, RoomStatus.LOBBY)
    room.game_number += 1
    promote_waiting(room)
    _prune_presence(room)
    room.player_states = {}
    room.round_number = 0
    room.scores = {}
    room.round_results = []
    room.votes = {}
    room.current_image = None
    room.current_uploader_id = None
    room.sabotage_round = None
    clear_sabotage(room)
    room.is_double_points = False
    room.time_bonus_player_id = None
    return room


def end_game(room: Room, actor_id: str) -> None:
    """Host closes the room; returning ``None`` deletes the document."""
    _require_host(room, actor_id, "end_game")
    logger.info(f"[{room.room_code}] Closed by host {actor_id}")
    return None
