# Area: Sync
"""
sketchroom._sync.state_machine — Room phase state machine
=========================================================

Enumerates the valid room status transitions and the screen each
status implies for a given player role. Both tables are checked for
completeness at import time so a new status cannot silently fall
through to "no screen".
"""

import logging
from typing import Dict, FrozenSet, Optional, Tuple

from .enums import PlayerRole, RoomStatus, Screen
from ..errors import InvalidTransitionError

logger = logging.getLogger("sketchroom.state_machine")


# Valid status transitions: {current_status: {allowed next statuses}}
TRANSITIONS: Dict[RoomStatus, FrozenSet[RoomStatus]] = {
    RoomStatus.LOBBY: frozenset({RoomStatus.UPLOADING}),
    RoomStatus.UPLOADING: frozenset({
        RoomStatus.SABOTAGE_SELECTION,
        RoomStatus.DRAWING,
    }),
    RoomStatus.SABOTAGE_SELECTION: frozenset({RoomStatus.DRAWING}),
    RoomStatus.DRAWING: frozenset({RoomStatus.VOTING}),
    RoomStatus.VOTING: frozenset({RoomStatus.RESULTS}),
    RoomStatus.RESULTS: frozenset({
        RoomStatus.UPLOADING,
        RoomStatus.DRAWING,
        RoomStatus.FINAL,
    }),
    RoomStatus.FINAL: frozenset({RoomStatus.REWARDS, RoomStatus.LOBBY}),
    RoomStatus.REWARDS: frozenset({RoomStatus.LOBBY}),
}

# Transitions that open a new round; the waiting queue is promoted here.
ROUND_BOUNDARY: FrozenSet[Tuple[RoomStatus, RoomStatus]] = frozenset({
    (RoomStatus.RESULTS, RoomStatus.UPLOADING),
    (RoomStatus.RESULTS, RoomStatus.DRAWING),
})

# Position of each status within one round. A snapshot whose
# (game, round, position) is lower than the last one seen is stale.
PHASE_ORDER: Dict[RoomStatus, int] = {
    RoomStatus.LOBBY: 0,
    RoomStatus.UPLOADING: 1,
    RoomStatus.SABOTAGE_SELECTION: 2,
    RoomStatus.DRAWING: 3,
    RoomStatus.VOTING: 4,
    RoomStatus.RESULTS: 5,
    RoomStatus.FINAL: 6,
    RoomStatus.REWARDS: 7,
}

# (status, role) -> screen
SCREEN_TABLE: Dict[Tuple[RoomStatus, PlayerRole], Screen] = {
    (RoomStatus.LOBBY, PlayerRole.ACTIVE): Screen.LOBBY,
    (RoomStatus.UPLOADING, PlayerRole.ACTIVE): Screen.UPLOADING,
    (RoomStatus.SABOTAGE_SELECTION, PlayerRole.ACTIVE): Screen.SABOTAGE_SELECTION,
    (RoomStatus.DRAWING, PlayerRole.ACTIVE): Screen.DRAWING,
    (RoomStatus.VOTING, PlayerRole.ACTIVE): Screen.VOTING,
    (RoomStatus.RESULTS, PlayerRole.ACTIVE): Screen.RESULTS,
    (RoomStatus.FINAL, PlayerRole.ACTIVE): Screen.FINAL,
    (RoomStatus.REWARDS, PlayerRole.ACTIVE): Screen.REWARDS,
    # Waiting players see a neutral screen, except round and game outcomes.
    (RoomStatus.LOBBY, PlayerRole.WAITING): Screen.WAITING,
    (RoomStatus.UPLOADING, PlayerRole.WAITING): Screen.WAITING,
    (RoomStatus.SABOTAGE_SELECTION, PlayerRole.WAITING): Screen.WAITING,
    (RoomStatus.DRAWING, PlayerRole.WAITING): Screen.WAITING,
    (RoomStatus.VOTING, PlayerRole.WAITING): Screen.WAITING,
    (RoomStatus.RESULTS, PlayerRole.WAITING): Screen.RESULTS,
    (RoomStatus.FINAL, PlayerRole.WAITING): Screen.FINAL,
    (RoomStatus.REWARDS, PlayerRole.WAITING): Screen.WAITING,
}


def _validate_tables() -> None:
    missing_transitions = [s.value for s in RoomStatus if s not in TRANSITIONS]
    if missing_transitions:
        raise RuntimeError(f"Statuses without transitions: {missing_transitions}")
    missing_screens = [
        f"{status.value}/{role.value}"
        for status in RoomStatus
        for role in PlayerRole
        if (status, role) not in SCREEN_TABLE
    ]
    if missing_screens:
        raise RuntimeError(f"Screen table incomplete: {missing_screens}")
    if set(PHASE_ORDER) != set(RoomStatus):
        raise RuntimeError("Phase order must rank every status")
    # Within a round every transition moves forward; the round boundary
    # bumps the round and the replay reset bumps the game.
    backwards = [
        f"{current.value}->{target.value}"
        for current, targets in TRANSITIONS.items()
        for target in targets
        if PHASE_ORDER[target] <= PHASE_ORDER[current]
        and (current, target) not in ROUND_BOUNDARY
        and target != RoomStatus.LOBBY
    ]
    if backwards:
        raise RuntimeError(f"Transitions move backwards within a round: {backwards}")


_validate_tables()


def screen_for(status: RoomStatus, role: PlayerRole) -> Screen:
    """Return the screen a player with ``role`` sees while the room is in ``status``."""
    return SCREEN_TABLE[(RoomStatus(status), PlayerRole(role))]


def can_transition(current: RoomStatus, target: RoomStatus) -> bool:
    """Check whether ``current -> target`` is a valid status change."""
    return RoomStatus(target) in TRANSITIONS.get(RoomStatus(current), frozenset())


def ensure_transition(current: RoomStatus, target: RoomStatus) -> None:
    """
    Validate a status change.

    Raises:
        InvalidTransitionError: If the change is not in the table
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(RoomStatus(current).value, RoomStatus(target).value)


def progress_key(game_number: int, round_number: int, status: RoomStatus) -> Tuple[int, int, int]:
    """Total order over room snapshots of one room."""
    return (game_number, round_number, PHASE_ORDER[RoomStatus(status)])


def is_behind(
    previous: Optional[Tuple[int, int, int]], current: Tuple[int, int, int],
) -> bool:
    """True when ``current`` is older than ``previous``."""
    return previous is not None and current < previous


def is_round_boundary(previous: Optional[RoomStatus], current: RoomStatus) -> bool:
    if previous is None:
        return False
    return (RoomStatus(previous), RoomStatus(current)) in ROUND_BOUNDARY
