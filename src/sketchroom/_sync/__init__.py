# Area: Sync
"""
Room synchronization core.

This package contains:
- The room document models and enums
- The phase state machine and screen table
- Waiting queue resolution
- Timer, submission guard, sabotage and reward logic
- RoomSync, the polling loop that feeds all of the above
"""

from .enums import (
    NotificationEvent,
    Participation,
    PlayerRole,
    PlayerStatus,
    RoomStatus,
    SabotageType,
    Screen,
    SubmissionOutcome,
    SubmissionPhase,
)
from .models import (
    CurrentImage,
    GameSettings,
    Player,
    PlayerDrawing,
    PlayerState,
    Ranking,
    Room,
    RoundResult,
    SabotageEffect,
)
from .notifications import LoggingNotifier, NotificationDispatcher, Notifier
from .optimistic import Reconciled, stabilize
from .rewards import RewardCalculator, RewardGrant
from .room_sync import NOT_FOUND, RoomSync, RoomSyncListener, SnapshotChanges
from .sabotage import SabotageView, palette_for, view_for
from .session import SessionState
from .state_machine import can_transition, is_round_boundary, screen_for
from .submission_guard import SubmissionGuard, SubmissionResult
from .timer import CountdownTimer, TimerCoordinator, compute_deadline, effective_duration
from .waiting_queue import resolve_participation, role_for

__all__ = [
    # Enums
    "NotificationEvent",
    "Participation",
    "PlayerRole",
    "PlayerStatus",
    "RoomStatus",
    "SabotageType",
    "Screen",
    "SubmissionOutcome",
    "SubmissionPhase",
    # Models
    "CurrentImage",
    "GameSettings",
    "Player",
    "PlayerDrawing",
    "PlayerState",
    "Ranking",
    "Room",
    "RoundResult",
    "SabotageEffect",
    # Components
    "CountdownTimer",
    "LoggingNotifier",
    "NotificationDispatcher",
    "Notifier",
    "Reconciled",
    "RewardCalculator",
    "RewardGrant",
    "RoomSync",
    "RoomSyncListener",
    "SabotageView",
    "SessionState",
    "SnapshotChanges",
    "SubmissionGuard",
    "SubmissionResult",
    "TimerCoordinator",
    "NOT_FOUND",
    # Functions
    "can_transition",
    "compute_deadline",
    "effective_duration",
    "is_round_boundary",
    "palette_for",
    "resolve_participation",
    "role_for",
    "screen_for",
    "stabilize",
    "view_for",
]
