# Area: Sync
"""
sketchroom._sync.enums — Room and screen enums
==============================================

Defines the room statuses, per-player statuses, participation roles
and the screens a client can show.
"""

from enum import Enum


class RoomStatus(str, Enum):
    """
    Status of the shared room document.

    Status transitions:
    LOBBY -> UPLOADING (host starts the game)
    UPLOADING -> SABOTAGE_SELECTION (sabotage round) or DRAWING
    SABOTAGE_SELECTION -> DRAWING (saboteur picked a target)
    DRAWING -> VOTING (every active player submitted)
    VOTING -> RESULTS (every active player voted)
    RESULTS -> UPLOADING or DRAWING (next round) or FINAL (last round)
    FINAL -> REWARDS (optional) or LOBBY (replay)
    REWARDS -> LOBBY
    """
    LOBBY = "lobby"
    UPLOADING = "uploading"
    SABOTAGE_SELECTION = "sabotage-selection"
    DRAWING = "drawing"
    VOTING = "voting"
    RESULTS = "results"
    FINAL = "final"
    REWARDS = "rewards"


class PlayerStatus(str, Enum):
    """Per-round status of one active player."""
    WAITING = "waiting"        # In the round, timer not started yet
    DRAWING = "drawing"        # Pressed ready, timer running
    SUBMITTED = "submitted"    # Drawing stored on the room


class PlayerRole(str, Enum):
    """Role used by the screen table."""
    ACTIVE = "active"
    WAITING = "waiting"


class Participation(str, Enum):
    """Where the local player sits relative to the current phase."""
    ACTIVE = "active"            # In players
    QUEUED = "queued"            # In waitingPlayers, round not underway yet
    SPECTATING = "spectating"    # In waitingPlayers while a round is underway
    ABSENT = "absent"            # In neither list (kicked or write in flight)


class Screen(str, Enum):
    """Screens the client can show."""
    HOME = "home"
    LOBBY = "lobby"
    WAITING = "waiting"
    UPLOADING = "uploading"
    SABOTAGE_SELECTION = "sabotage-selection"
    DRAWING = "drawing"
    VOTING = "voting"
    RESULTS = "results"
    FINAL = "final"
    REWARDS = "rewards"
    GAME_ENDED = "game-ended"


class SabotageType(str, Enum):
    SUBTRACT_TIME = "subtract_time"
    REDUCE_COLORS = "reduce_colors"
    VISUAL_DISTORTION = "visual_distortion"


class NotificationEvent(str, Enum):
    """Edge-triggered events forwarded to the notification collaborator."""
    UPLOAD_TURN = "upload_turn"
    DRAWING_STARTED = "drawing_started"
    VOTING_STARTED = "voting_started"
    ROUND_RESULTS = "round_results"
    GAME_FINISHED = "game_finished"


class SubmissionPhase(str, Enum):
    """Local shadow of the player's own submission for the current round."""
    NONE = "none"
    SUBMITTING = "submitting"    # Attempt started; kept after a failure
    SUBMITTED = "submitted"      # Store accepted the write


class SubmissionOutcome(str, Enum):
    SENT = "sent"
    DROPPED_IN_FLIGHT = "dropped_in_flight"
    ALREADY_CONFIRMED = "already_confirmed"
    ALREADY_SUBMITTED = "already_submitted"
    FAILED = "failed"
