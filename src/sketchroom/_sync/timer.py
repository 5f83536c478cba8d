# Area: Sync
"""
sketchroom._sync.timer — Drawing countdown coordination
=======================================================

Computes the wall-clock deadline of a player's drawing countdown.

    duration = base + bonus - penalty
    deadline = start + duration * 1000

``start`` prefers the confirmed ``player_states[id].timer_started_at``
and falls back to the optimistic timestamp captured when the player
pressed ready. Bonus and penalty only ever apply to the affected
player's own countdown.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

from .models import Room
from .optimistic import JITTER_THRESHOLD_MS, Reconciled, stabilize
from .sabotage import time_penalty_seconds, view_for
from .._shared.clock import Clock, now_ms

logger = logging.getLogger("sketchroom.timer")

TIME_BONUS_SECONDS = 5


def bonus_seconds(room: Room, player_id: str) -> int:
    return TIME_BONUS_SECONDS if room.time_bonus_player_id == player_id else 0


def penalty_seconds(room: Room, player_id: str) -> int:
    if view_for(room, player_id).subtracts_time:
        return time_penalty_seconds(room.settings.timer_duration)
    return 0


def effective_duration(room: Room, player_id: str) -> int:
    """Seconds on ``player_id``'s countdown for the current round."""
    base = room.settings.timer_duration
    return base + bonus_seconds(room, player_id) - penalty_seconds(room, player_id)


def confirmed_start(room: Optional[Room], player_id: str) -> Optional[int]:
    if room is None:
        return None
    state = room.state_of(player_id)
    return state.timer_started_at if state else None


def compute_deadline(
    room: Room, player_id: str, optimistic_start: Optional[int] = None
) -> Optional[int]:
    """Epoch-ms deadline, or ``None`` when no start is known yet."""
    start = Reconciled(confirmed_start(room, player_id), optimistic_start).resolve()
    if start is None:
        return None
    return start + effective_duration(room, player_id) * 1000


class CountdownTimer:
    """
    Fire-once countdown against a wall-clock deadline.

    ``tick`` may keep being called after expiry (and while an async
    expiry callback is still running); the callback runs at most once
    until ``reset``.
    """

    def __init__(
        self,
        on_expire: Optional[Callable[[], Any]] = None,
        clock: Clock = now_ms,
    ) -> None:
        self.on_expire = on_expire
        self.clock = clock
        self.deadline: Optional[int] = None
        self.fired = False
        self._tasks: Set[asyncio.Task] = set()

    def set_deadline(self, deadline: Optional[int]) -> None:
        self.deadline = deadline

    def remaining_seconds(self, now: Optional[int] = None) -> float:
        if self.deadline is None:
            return 0.0
        now = self.clock() if now is None else now
        return max(0.0, (self.deadline - now) / 1000)

    def tick(self, now: Optional[int] = None) -> bool:
        """Fire if the deadline passed. Returns True only on the firing tick."""
        if self.fired or self.deadline is None:
            return False
        now = self.clock() if now is None else now
        if now < self.deadline:
            return False
        return self._fire("expired")

    def finish(self) -> bool:
        """Manual "done". Returns True if this call fired the timer."""
        if self.fired:
            return False
        return self._fire("done")

    def reset(self) -> None:
        self.deadline = None
        self.fired = False

    def _fire(self, reason: str) -> bool:
        self.fired = True
        logger.debug("Countdown fired (%s)", reason)
        if self.on_expire is None:
            return True
        result = self.on_expire()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return True


class TimerCoordinator:
    """
    Owns the local player's countdown for the current round.

    Keeps the optimistic start captured on "ready", reconciles it with
    the confirmed start from each snapshot, and only moves the displayed
    deadline for changes larger than the jitter threshold.
    """

    def __init__(
        self,
        player_id: str,
        on_expire: Optional[Callable[[], Any]] = None,
        clock: Clock = now_ms,
        jitter_threshold_ms: int = JITTER_THRESHOLD_MS,
    ) -> None:
        self.player_id = player_id
        self.clock = clock
        self.jitter_threshold_ms = jitter_threshold_ms
        self.start: Reconciled[int] = Reconciled()
        self.displayed_deadline: Optional[int] = None
        self.countdown = CountdownTimer(on_expire=on_expire, clock=clock)

    def begin_optimistic(self, started_at: Optional[int] = None) -> int:
        """Record the local "ready" instant before the store confirms it."""
        started_at = self.clock() if started_at is None else started_at
        self.start = self.start.with_optimistic(started_at)
        logger.debug("Optimistic timer start for %s at %d", self.player_id, started_at)
        return started_at

    def rollback_optimistic(self) -> None:
        """Undo a failed "ready" so the player can retry cleanly."""
        self.start = self.start.with_optimistic(None)
        if not self.start.is_confirmed:
            self.displayed_deadline = None
            self.countdown.set_deadline(None)

    def reconcile(self, room: Optional[Room]) -> Optional[int]:
        """Fold the latest snapshot in and return the deadline to display."""
        if room is None:
            return self.displayed_deadline
        self.start = self.start.with_confirmed(confirmed_start(room, self.player_id))
        candidate = compute_deadline(room, self.player_id, self.start.optimistic)
        stable = stabilize(self.displayed_deadline, candidate, self.jitter_threshold_ms)
        if stable != self.displayed_deadline:
            logger.debug(
                "Deadline for %s: %s -> %s", self.player_id, self.displayed_deadline, stable
            )
        self.displayed_deadline = stable
        self.countdown.set_deadline(stable)
        return stable

    def tick(self, now: Optional[int] = None) -> bool:
        return self.countdown.tick(now)

    def finish(self) -> bool:
        return self.countdown.finish()

    def remaining_seconds(self, now: Optional[int] = None) -> float:
        return self.countdown.remaining_seconds(now)

    def reset(self) -> None:
        """New round: forget every start, deadline and the fired flag."""
        self.start = Reconciled()
        self.displayed_deadline = None
        self.countdown.reset()
