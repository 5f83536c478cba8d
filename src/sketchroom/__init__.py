"""
sketchroom — Room synchronization for a multiplayer drawing party game
======================================================================

Client-side room synchronization and phase state machine. Every client
polls one shared room document, derives the phase and its own screen
from the latest snapshot, and writes back through idempotent
read-modify-write transforms. There is no game server.

Quick Start (demo, no backend needed):
    python -m sketchroom --demo

Embedding:
    from sketchroom import InMemoryRoomStore, Player, RoomClient

    client = RoomClient(store, Player(id="p1", name="Ada"))
    result = await client.actions.join_room("ABC234")
    await client.run()

Lower-level pieces (screen table, timer, guard) are exported too;
room transforms live in ``sketchroom._sync.transitions``.
"""

from .actions import ActionResult, GameActions, ImageUploader
from .client import RoomClient
from ._profile import ProgressRepository, ProgressState
from ._store import FirestoreRoomStore, InMemoryRoomStore, RoomStore
from ._sync import (
    GameSettings,
    LoggingNotifier,
    Participation,
    Player,
    PlayerRole,
    PlayerStatus,
    Room,
    RoomStatus,
    RoomSync,
    RewardCalculator,
    SabotageEffect,
    SabotageType,
    Screen,
    SubmissionGuard,
    TimerCoordinator,
    effective_duration,
    resolve_participation,
    screen_for,
)
from .errors import (
    ActionError,
    ConfigError,
    InvalidTransitionError,
    NotAllowedError,
    RoomNotFoundError,
    SketchroomError,
    StoreUnavailableError,
)

__version__ = "1.0.0"

__all__ = [
    # Main classes
    "RoomClient",
    "GameActions",
    "ActionResult",
    "ImageUploader",
    "RoomSync",
    # Stores
    "RoomStore",
    "InMemoryRoomStore",
    "FirestoreRoomStore",
    # Components
    "RewardCalculator",
    "SubmissionGuard",
    "TimerCoordinator",
    "LoggingNotifier",
    "ProgressRepository",
    "ProgressState",
    # Models and enums
    "GameSettings",
    "Player",
    "Room",
    "SabotageEffect",
    "Participation",
    "PlayerRole",
    "PlayerStatus",
    "RoomStatus",
    "SabotageType",
    "Screen",
    # Functions
    "effective_duration",
    "resolve_participation",
    "screen_for",
    # Errors
    "SketchroomError",
    "ActionError",
    "NotAllowedError",
    "ConfigError",
    "InvalidTransitionError",
    "RoomNotFoundError",
    "StoreUnavailableError",
    "__version__",
]
