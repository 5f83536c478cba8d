# Area: Client
"""
sketchroom.client — Room client
===============================

``RoomClient`` wires one local player's components together:

    RoomSync ──► screen table ──► current screen
             ├─► TimerCoordinator (deadline, auto-submit on expiry)
             ├─► SabotageEngine (trigger when targeted)
             ├─► RewardCalculator (grant on results/final edges)
             └─► notifications (fire-and-forget)

Snapshot handling only derives state. Writes that follow from a
snapshot (sabotage trigger, progress push, auto-ready) run on the
next ``tick`` so a write never re-enters snapshot handling.
"""

from __future__ import annotations
import logging
import random
from typing import Any, Dict, List, Optional

from ._profile import ProgressRepository
from ._shared import Clock, now_ms
from ._store.base import RoomStore
from ._sync.enums import Participation, PlayerStatus, RoomStatus, Screen
from ._sync.models import Player
from ._sync.notifications import NotificationDispatcher, Notifier
from ._sync.rewards import RewardCalculator, RewardGrant
from ._sync.room_sync import (
    DEFAULT_KICK_DEBOUNCE, DEFAULT_POLL_INTERVAL, DEFAULT_STUCK_TIMEOUT,
    RoomSync, SnapshotChanges,
)
from ._sync.sabotage import SabotageView, needs_trigger, palette_for, trigger_sabotage, view_for
from ._sync.state_machine import screen_for
from ._sync.submission_guard import SubmissionGuard
from ._sync.timer import TimerCoordinator
from ._sync.waiting_queue import role_for
from .actions import GameActions, ImageUploader

logger = logging.getLogger("sketchroom.client")

DEFAULT_ENDED_COUNTDOWN = 5.0

# Screens that need room data to render
GAME_SCREENS = frozenset({
    Screen.LOBBY,
    Screen.WAITING,
    Screen.UPLOADING,
    Screen.SABOTAGE_SELECTION,
    Screen.DRAWING,
    Screen.VOTING,
    Screen.RESULTS,
    Screen.FINAL,
    Screen.REWARDS,
})


class RoomClient:
    """
    One local player's view of one room.

    Implements the RoomSync listener interface.
    """

    def __init__(
        self,
        store: RoomStore,
        player: Player,
        notifier: Optional[Notifier] = None,
        uploader: Optional[ImageUploader] = None,
        progress_repository: Optional[ProgressRepository] = None,
        clock: Clock = now_ms,
        rng: Optional[random.Random] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        kick_debounce: float = DEFAULT_KICK_DEBOUNCE,
        stuck_timeout: float = DEFAULT_STUCK_TIMEOUT,
        ended_countdown: float = DEFAULT_ENDED_COUNTDOWN,
        auto_ready: bool = False,
    ) -> None:
        self.store = store
        self.player = player
        self.clock = clock
        self.ended_countdown_ms = int(ended_countdown * 1000)
        self.auto_ready = auto_ready

        self.sync = RoomSync(
            store, player.id, listener=self, clock=clock,
            poll_interval=poll_interval, kick_debounce=kick_debounce,
            stuck_timeout=stuck_timeout,
        )
        self.guard = SubmissionGuard(self.sync.session)
        self.timer = TimerCoordinator(player.id, on_expire=self._on_timer_expired, clock=clock)
        self.rewards = RewardCalculator(player.id, repository=progress_repository)
        self.notifications = NotificationDispatcher(notifier)
        self.actions = GameActions(
            store, self.sync, player,
            guard=self.guard, timer=self.timer, rewards=self.rewards,
            uploader=uploader, rng=rng, clock=clock,
        )

        self.screen = Screen.HOME
        self.canvas: List[Dict[str, Any]] = []
        self.messages: List[str] = []
        self.grants: List[RewardGrant] = []
        self.ended_at: Optional[int] = None

        self._pending_trigger = False
        self._pending_progress_push = False
        self._pending_ready = False

    # ── Derived state ────────────────────────────────────────

    @property
    def room(self):
        return self.sync.room

    @property
    def participation(self) -> Participation:
        return self.sync.session.last_participation or Participation.ABSENT

    @property
    def has_submitted(self) -> bool:
        return self.guard.has_submitted(self.room)

    @property
    def sabotage(self) -> SabotageView:
        return view_for(self.room, self.player.id)

    def palette(self, available: List[str]) -> List[str]:
        return palette_for(self.room, self.player.id, available)

    def remaining_seconds(self) -> float:
        return self.timer.remaining_seconds()

    def add_stroke(self, stroke: Dict[str, Any]) -> None:
        if self.screen == Screen.DRAWING and not self.has_submitted:
            self.canvas.append(stroke)

    # ── RoomSync listener ────────────────────────────────────

    def on_snapshot(self, changes: SnapshotChanges) -> None:
        room = changes.room
        pid = self.player.id

        if changes.round_changed:
            self.timer.reset()

        role = role_for(changes.participation)
        if role is not None:
            self._show(screen_for(room.status, role))

        if room.status == RoomStatus.DRAWING and room.is_active(pid):
            self.timer.reconcile(room)
            state = room.state_of(pid)
            if self.auto_ready and state is not None and state.status == PlayerStatus.WAITING \
                    and self.timer.start.resolve() is None:
                self._pending_ready = True
        elif self.timer.displayed_deadline is not None:
            self.timer.reset()

        if needs_trigger(room, pid):
            self._pending_trigger = True

        grant = self.rewards.on_transition(changes.previous_status, room)
        if grant is not None:
            self.grants.append(grant)
            self.messages.extend(self.rewards.drain_notices())
            self._pending_progress_push = True

        self.notifications.dispatch(changes.previous_status, room, pid)

    def on_room_missing(self, room_code: str) -> None:
        if self.screen == Screen.HOME:
            return
        self._show(Screen.GAME_ENDED)
        self.messages.append("The host ended the game.")
        self.ended_at = self.clock() + self.ended_countdown_ms

    def on_kicked(self, room_code: str) -> None:
        self.messages.append("You were removed from the room.")
        self.go_home()

    def on_stuck(self, room_code: str) -> None:
        logger.warning(f"[{room_code}] Room data never arrived, returning home")
        self.go_home()

    # ── Ticking ──────────────────────────────────────────────

    async def tick(self) -> None:
        """Follow-up writes and the countdown. Runs after every poll."""
        now = self.clock()
        if self.ended_at is not None and now >= self.ended_at:
            self.go_home()
            return

        if self._pending_trigger:
            self._pending_trigger = False
            await self._trigger_sabotage()
        if self._pending_progress_push:
            self._pending_progress_push = False
            await self._push_progress()
        if self._pending_ready:
            self._pending_ready = False
            await self.actions.mark_ready()

        if self.screen == Screen.DRAWING:
            self.timer.tick(now)

    async def run(self) -> None:
        """Poll and tick until ``stop``."""
        await self.sync.run(on_tick=self.tick)
        await self.notifications.drain()

    def stop(self) -> None:
        self.sync.stop()

    # ── Submission ───────────────────────────────────────────

    def done(self) -> bool:
        """Manual "done": fires the countdown, which submits once."""
        return self.timer.finish()

    async def submit(self, trigger: str = "manual"):
        return await self.actions.submit_drawing(self.canvas, trigger=trigger)

    async def _on_timer_expired(self) -> None:
        result = await self.submit(trigger="timer")
        if not result.ok:
            self.messages.append(result.message)

    async def leave(self):
        result = await self.actions.leave_room()
        self.go_home()
        return result

    async def end_game(self):
        """Host closes the room; other clients see "game ended" on their next poll."""
        result = await self.actions.end_game()
        if result.ok:
            self.go_home()
        return result

    # ── Internals ────────────────────────────────────────────

    def go_home(self) -> None:
        self.sync.follow(None)
        self.timer.reset()
        self.canvas = []
        self.ended_at = None
        self._pending_trigger = False
        self._pending_progress_push = False
        self._pending_ready = False
        self._show(Screen.HOME)

    def _show(self, screen: Screen) -> None:
        if screen == self.screen:
            return
        logger.info(f"{self.player.id}: Screen {self.screen.value} → {screen.value}")
        if screen == Screen.DRAWING:
            self.canvas = []
        self.screen = screen

    async def _trigger_sabotage(self) -> None:
        code = self.sync.room_code
        if code is None or not needs_trigger(self.room, self.player.id):
            return
        try:
            room = await self.store.update(code, lambda r: trigger_sabotage(r, self.player.id))
        except Exception as e:
            logger.debug(f"[{code}] Sabotage trigger failed, retrying next poll: {e}")
            return
        self.rewards.record_sabotaged()
        if room is not None:
            await self.sync.ingest(room)

    async def _push_progress(self) -> None:
        result = await self.actions.sync_progress()
        if not result.ok:
            logger.debug(f"Progress push failed: {result.message}")
