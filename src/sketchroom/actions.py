# Area: Client
"""
sketchroom.actions — Player action boundary
===========================================

Every action the local player initiates goes through ``GameActions``.
Each one is a room transform written with ``store.update``; whatever
goes wrong comes back as an ``ActionResult`` with a user-facing
message, never as a raised exception.

Optimistic local state on failure:
    mark_ready      -> optimistic timer start rolled back
    submit_drawing  -> "submitting" kept; the guard allows a retry
"""

from __future__ import annotations
import inspect
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol

from ._shared import Clock, log_action_error, now_ms
from ._store.base import RoomStore
from ._sync import transitions
from ._sync.enums import RoomStatus, SabotageType, SubmissionOutcome
from ._sync.models import GameSettings, Player, PlayerDrawing, Room, SabotageEffect
from ._sync.rewards import RewardCalculator
from ._sync.room_sync import RoomSync
from ._sync.sabotage import DEFAULT_INTENSITY, assign_sabotage
from ._sync.submission_guard import SubmissionGuard
from ._sync.timer import TimerCoordinator
from ._sync.waiting_queue import can_force_join, force_join
from .errors import ActionError, InvalidTransitionError, RoomNotFoundError, StoreUnavailableError

logger = logging.getLogger("sketchroom.actions")

NETWORK_MESSAGE = "Could not reach the game server. Please try again."
ROOM_GONE_MESSAGE = "This room no longer exists."
PHASE_MESSAGE = "That is not possible in the current phase."
NO_ROOM_MESSAGE = "You are not in a room."


class ImageUploader(Protocol):
    """Upload collaborator: compresses and stores an image, returns its URL."""

    def process_and_store_image(self, file: Any) -> Any: ...


@dataclass
class ActionResult:
    ok: bool
    message: Optional[str] = None
    room: Optional[Room] = None
    value: Any = None


class GameActions:
    """Action facade for one local player."""

    def __init__(
        self,
        store: RoomStore,
        sync: RoomSync,
        player: Player,
        guard: Optional[SubmissionGuard] = None,
        timer: Optional[TimerCoordinator] = None,
        rewards: Optional[RewardCalculator] = None,
        uploader: Optional[ImageUploader] = None,
        rng: Optional[random.Random] = None,
        clock: Clock = now_ms,
    ) -> None:
        self.store = store
        self.sync = sync
        self.player = player
        self.guard = guard or SubmissionGuard(sync.session)
        self.timer = timer or TimerCoordinator(player.id, clock=clock)
        self.rewards = rewards
        self.uploader = uploader
        self.rng = rng or random.Random()
        self.clock = clock

    @property
    def player_id(self) -> str:
        return self.player.id

    # ── Boundary ─────────────────────────────────────────────

    async def _write(
        self, action: str, transform: Callable[[Room], Optional[Room]],
        room_code: Optional[str] = None,
    ) -> ActionResult:
        """Run one transform against the store and translate failures."""
        code = room_code or self.sync.room_code
        if code is None:
            return ActionResult(ok=False, message=NO_ROOM_MESSAGE)
        try:
            room = await self.store.update(code, transform)
        except ActionError as e:
            log_action_error(e)
            return ActionResult(ok=False, message=e.user_message)
        except InvalidTransitionError as e:
            logger.warning(f"[{code}] {action}: {e}")
            return ActionResult(ok=False, message=PHASE_MESSAGE)
        except RoomNotFoundError:
            logger.warning(f"[{code}] {action}: room not found")
            return ActionResult(ok=False, message=ROOM_GONE_MESSAGE)
        except StoreUnavailableError as e:
            logger.warning(f"[{code}] {action}: store unavailable: {e}")
            return ActionResult(ok=False, message=NETWORK_MESSAGE)
        except Exception as e:
            logger.error(f"[{code}] {action} failed: {e}", exc_info=True)
            return ActionResult(ok=False, message=NETWORK_MESSAGE)

        if room is not None and code == self.sync.room_code:
            await self.sync.ingest(room)
        return ActionResult(ok=True, room=room)

    def _fresh_player(self) -> Player:
        now = self.clock()
        return self.player.model_copy(update={"joined_at": now, "last_seen": now, "is_host": False})

    # ── Membership ───────────────────────────────────────────

    async def create_room(self, settings: Optional[GameSettings] = None) -> ActionResult:
        room = transitions.new_room(self.player, settings, now=self.clock())
        try:
            code = await self.store.create(room)
        except Exception as e:
            logger.warning(f"create_room failed: {e}")
            return ActionResult(ok=False, message=NETWORK_MESSAGE)
        self.sync.follow(code)
        await self.sync.poll_once()
        logger.info(f"[{code}] Created by {self.player_id}")
        return ActionResult(ok=True, room=self.sync.room, value=code)

    async def join_room(self, room_code: str) -> ActionResult:
        room_code = room_code.strip().upper()
        player = self._fresh_player()
        self.sync.follow(room_code)
        result = await self._write(
            "join_room", lambda r: transitions.join_room(r, player), room_code=room_code,
        )
        if not result.ok:
            self.sync.follow(None)
            if result.message == ROOM_GONE_MESSAGE:
                result.message = f"Room {room_code} not found."
        return result

    async def force_join(self) -> ActionResult:
        room = self.sync.room
        if room is not None and not can_force_join(room, self.player_id):
            return ActionResult(ok=False, message="You can join at the next round.")
        return await self._write("force_join", lambda r: force_join(r, self.player_id))

    async def leave_room(self) -> ActionResult:
        result = await self._write("leave_room", lambda r: transitions.leave_room(r, self.player_id))
        self.sync.follow(None)
        return result

    async def kick_player(self, player_id: str) -> ActionResult:
        return await self._write(
            "kick_player", lambda r: transitions.kick_player(r, self.player_id, player_id),
        )

    async def update_settings(
        self,
        timer_duration: Optional[int] = None,
        total_rounds: Optional[int] = None,
        enable_sabotage: Optional[bool] = None,
    ) -> ActionResult:
        return await self._write(
            "update_settings",
            lambda r: transitions.update_settings(
                r, self.player_id, timer_duration, total_rounds, enable_sabotage,
            ),
        )

    # ── Round flow ───────────────────────────────────────────

    async def start_game(self) -> ActionResult:
        return await self._write(
            "start_game", lambda r: transitions.start_game(r, self.player_id, self.rng),
        )

    async def upload_image(self, file: Any) -> ActionResult:
        """Hand the file to the uploader, then store the URL on the room."""
        room = self.sync.room
        if room is None or room.status != RoomStatus.UPLOADING:
            return ActionResult(ok=False, message="It is not time to upload an image.")
        if room.current_uploader_id != self.player_id:
            return ActionResult(ok=False, message="It is not your turn to upload.")
        if self.uploader is None:
            return ActionResult(ok=False, message="Image upload is not available.")

        try:
            url = self.uploader.process_and_store_image(file)
            if inspect.isawaitable(url):
                url = await url
        except Exception as e:
            logger.warning(f"Image upload failed: {e}", exc_info=True)
            return ActionResult(ok=False, message="Could not upload the image. Please try again.")

        now = self.clock()
        result = await self._write(
            "submit_image",
            lambda r: transitions.submit_image(r, self.player_id, url, now, self.rng),
        )
        result.value = url
        return result

    async def choose_sabotage(
        self, target_id: str, effect_type: SabotageType, intensity: int = DEFAULT_INTENSITY,
    ) -> ActionResult:
        effect = SabotageEffect(type=SabotageType(effect_type), intensity=intensity)
        result = await self._write(
            "choose_sabotage", lambda r: assign_sabotage(r, self.player_id, target_id, effect),
        )
        if result.ok and self.rewards is not None:
            self.rewards.record_saboteur()
        return result

    async def mark_ready(self) -> ActionResult:
        """Start the local countdown now; roll it back if the write fails."""
        started_at = self.timer.begin_optimistic()
        result = await self._write(
            "mark_ready", lambda r: transitions.mark_ready(r, self.player_id, started_at),
        )
        if not result.ok:
            self.timer.rollback_optimistic()
        else:
            self.timer.reconcile(self.sync.room)
        return result

    async def submit_drawing(
        self, strokes: Optional[List[dict]] = None, trigger: str = "manual",
    ) -> ActionResult:
        """Submit through the guard: at most one transmit per round."""
        code = self.sync.room_code
        if code is None:
            return ActionResult(ok=False, message=NO_ROOM_MESSAGE)
        drawing = PlayerDrawing(strokes=list(strokes or []), submitted_at=self.clock())
        written: List[Room] = []

        async def transmit() -> None:
            room = await self.store.update(
                code, lambda r: transitions.submit_drawing(r, self.player_id, drawing),
            )
            if room is not None:
                written.append(room)

        outcome = await self.guard.submit(self.sync.room, transmit, trigger=trigger)
        if outcome.outcome == SubmissionOutcome.FAILED:
            error = outcome.error
            if isinstance(error, ActionError):
                log_action_error(error)
                return ActionResult(ok=False, message=error.user_message, value=outcome)
            if isinstance(error, RoomNotFoundError):
                return ActionResult(ok=False, message=ROOM_GONE_MESSAGE, value=outcome)
            return ActionResult(ok=False, message=NETWORK_MESSAGE, value=outcome)

        if written:
            await self.sync.ingest(written[-1])
        return ActionResult(ok=True, room=self.sync.room, value=outcome)

    async def cast_vote(self, voted_for_id: str) -> ActionResult:
        return await self._write(
            "cast_vote", lambda r: transitions.cast_vote(r, self.player_id, voted_for_id),
        )

    async def advance_round(self) -> ActionResult:
        return await self._write(
            "advance_round", lambda r: transitions.advance_round(r, self.player_id, self.rng),
        )

    async def show_rewards(self) -> ActionResult:
        return await self._write("show_rewards", transitions.show_rewards)

    async def play_again(self) -> ActionResult:
        return await self._write(
            "play_again", lambda r: transitions.reset_to_lobby(r, self.player_id),
        )

    async def end_game(self) -> ActionResult:
        result = await self._write(
            "end_game", lambda r: transitions.end_game(r, self.player_id),
        )
        if result.ok:
            self.sync.follow(None)
        return result

    async def sync_progress(self) -> ActionResult:
        """Copy the local XP and level onto the shared room."""
        if self.rewards is None:
            return ActionResult(ok=True)
        return await self._write("sync_progress", self.rewards.apply_to_room)
