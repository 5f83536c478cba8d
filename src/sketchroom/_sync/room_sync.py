# Area: Sync
"""
sketchroom._sync.room_sync — Room polling and change detection
==============================================================

Polls the shared room on a fixed interval and turns each full read
into a snapshot plus the three change classes downstream code reacts
to: status changed, round changed, local participation changed.

Failure policy:
    transient store failure  -> logged, retried on the next tick
    room reported missing    -> ``error = "not found"``, listener told once
    local player absent      -> rechecked after the kick debounce
    no snapshot for too long -> listener told the session is stuck
    stale snapshot           -> ignored (older game, round or phase)

Every decision is re-derived from the latest snapshot, so swapping
polling for a streaming store only changes how ``ingest`` is fed.
"""

from __future__ import annotations
import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

from .enums import Participation, RoomStatus
from .models import Room
from .session import SessionState
from .state_machine import is_behind, progress_key
from .transitions import needs_settle, settle_phase
from .waiting_queue import resolve_participation
from .._shared.clock import Clock, now_ms

if TYPE_CHECKING:
    from .._store.base import RoomStore

logger = logging.getLogger("sketchroom.sync")

NOT_FOUND = "not found"

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_KICK_DEBOUNCE = 2.0
DEFAULT_STUCK_TIMEOUT = 10.0


@dataclass(frozen=True)
class SnapshotChanges:
    """What differs between this snapshot and the previous one."""
    room: Room
    previous_status: Optional[RoomStatus]
    previous_round: Optional[int]
    previous_participation: Optional[Participation]
    participation: Participation

    @property
    def first(self) -> bool:
        return self.previous_status is None

    @property
    def status_changed(self) -> bool:
        return self.previous_status is not None and self.previous_status != self.room.status

    @property
    def round_changed(self) -> bool:
        return self.previous_round is not None and self.previous_round != self.room.round_number

    @property
    def participation_changed(self) -> bool:
        return (
            self.previous_participation is not None
            and self.previous_participation != self.participation
        )

    @property
    def any(self) -> bool:
        return self.first or self.status_changed or self.round_changed or self.participation_changed


class RoomSyncListener(Protocol):
    """Receives the consequences of polling. Methods may be sync or async."""

    def on_snapshot(self, changes: SnapshotChanges) -> Any: ...

    def on_room_missing(self, room_code: str) -> Any: ...

    def on_kicked(self, room_code: str) -> Any: ...

    def on_stuck(self, room_code: str) -> Any: ...


async def _call(fn: Callable[..., Any], *args: Any) -> None:
    result = fn(*args)
    if inspect.isawaitable(result):
        await result


class RoomSync:
    """
    Keeps one client's view of one room current.

    Owns the ``SessionState``; every per-session field lives there
    with its reset rule.
    """

    def __init__(
        self,
        store: "RoomStore",
        player_id: str,
        listener: Optional[RoomSyncListener] = None,
        clock: Clock = now_ms,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        kick_debounce: float = DEFAULT_KICK_DEBOUNCE,
        stuck_timeout: float = DEFAULT_STUCK_TIMEOUT,
    ) -> None:
        self.store = store
        self.listener = listener
        self.clock = clock
        self.poll_interval = poll_interval
        self.kick_debounce_ms = int(kick_debounce * 1000)
        self.stuck_timeout_ms = int(stuck_timeout * 1000)

        self.session = SessionState()
        self.session.on_player_changed(player_id)
        self.room: Optional[Room] = None
        self.error: Optional[str] = None
        self._following_since: Optional[int] = None
        self._stuck_reported = False
        self._running = False

    @property
    def player_id(self) -> str:
        return self.session.player_id

    @property
    def room_code(self) -> Optional[str]:
        return self.session.room_code

    # ── Session control ──────────────────────────────────────

    def follow(self, room_code: Optional[str]) -> None:
        """Start following ``room_code``; ``None`` stops following."""
        if room_code != self.session.room_code:
            logger.info(f"Following room {room_code or '-'} as {self.player_id}")
        self.session.on_room_changed(room_code)
        self.room = None
        self.error = None
        self._following_since = self.clock() if room_code else None
        self._stuck_reported = False

    def set_player(self, player_id: str) -> None:
        self.session.on_player_changed(player_id)

    # ── Polling ──────────────────────────────────────────────

    async def poll_once(self) -> Optional[Room]:
        """One tick: full read, heartbeat, then ingest."""
        code = self.session.room_code
        if code is None:
            return None

        try:
            room = await self.store.get(code)
        except Exception as e:
            logger.debug(f"[{code}] Poll failed, retrying next tick: {e}")
            await self._check_stuck(code)
            return self.room

        if room is None:
            await self._on_missing(code)
            return None

        await self._heartbeat(code)
        return await self.ingest(room)

    async def ingest(self, room: Room) -> Room:
        """Apply a fresh snapshot; used by polls and by confirmed action writes."""
        session = self.session
        code = session.room_code
        if code is None or room.room_code != code:
            return room
        now = self.clock()

        # A read issued before our own write can land after it
        if self._is_stale(room):
            logger.debug(
                f"[{code}] Ignoring stale snapshot "
                f"({room.status.value}, round {room.round_number})"
            )
            return self.room

        if needs_settle(room):
            room = await self._settle(code, room)

        participation = resolve_participation(room, session.player_id)
        changes = SnapshotChanges(
            room=room,
            previous_status=session.last_status,
            previous_round=session.last_round,
            previous_participation=session.last_participation,
            participation=participation,
        )

        if changes.round_changed:
            session.on_round_changed()
        if changes.status_changed:
            logger.debug(
                f"[{code}] Status {changes.previous_status.value} → {room.status.value}"
            )
        if changes.participation_changed:
            logger.info(
                f"[{code}] {session.player_id}: "
                f"{changes.previous_participation.value} → {participation.value}"
            )

        if session.first_snapshot_at is None:
            session.first_snapshot_at = now
        session.last_status = room.status
        session.last_round = room.round_number
        session.last_game = room.game_number
        session.last_participation = participation
        self.room = room
        self.error = None

        if self.listener is not None:
            await _call(self.listener.on_snapshot, changes)

        if participation == Participation.ABSENT:
            await self._check_kicked(code, now)
        else:
            session.absent_since = None
        return room

    async def run(self, on_tick: Optional[Callable[[], Any]] = None) -> None:
        """Poll until ``stop``. ``on_tick`` runs after every poll."""
        self._running = True
        self._log_startup()

        while self._running:
            try:
                await self.poll_once()
                if on_tick is not None:
                    await _call(on_tick)
            except Exception as e:
                logger.error(f"Loop error: {e}", exc_info=True)
            await asyncio.sleep(self.poll_interval)

        logger.info("RoomSync stopped.")

    def stop(self) -> None:
        self._running = False

    # ── Internals ────────────────────────────────────────────

    def _log_startup(self) -> None:
        logger.info("=" * 60)
        logger.info("  Sketchroom RoomSync — Starting")
        logger.info(f"  Player: {self.player_id}")
        logger.info(f"  Room:   {self.room_code or '-'}")
        logger.info(f"  Poll:   every {self.poll_interval}s")
        logger.info("=" * 60)

    def _is_stale(self, room: Room) -> bool:
        session = self.session
        if session.last_status is None:
            return False
        previous = progress_key(session.last_game or 0, session.last_round or 0, session.last_status)
        return is_behind(previous, progress_key(room.game_number, room.round_number, room.status))

    async def _heartbeat(self, code: str) -> None:
        try:
            await self.store.heartbeat(code, self.session.player_id)
        except Exception as e:
            logger.debug(f"[{code}] Heartbeat failed: {e}")

    async def _settle(self, code: str, room: Room) -> Room:
        """Push a phase whose completion condition already holds."""
        try:
            settled = await self.store.update(code, settle_phase)
        except Exception as e:
            logger.debug(f"[{code}] Settle write failed: {e}")
            return room
        return settled if settled is not None else room

    async def _on_missing(self, code: str) -> None:
        logger.warning(f"[{code}] Room not found")
        self.follow(None)
        self.error = NOT_FOUND
        if self.listener is not None:
            await _call(self.listener.on_room_missing, code)

    async def _check_kicked(self, code: str, now: int) -> None:
        session = self.session
        if session.kicked:
            return
        if session.absent_since is None:
            session.absent_since = now
            logger.debug(f"[{code}] {session.player_id} absent, rechecking later")
            return
        if now - session.absent_since < self.kick_debounce_ms:
            return

        # Recheck against a fresh read before acting
        try:
            fresh = await self.store.get(code)
        except Exception as e:
            logger.debug(f"[{code}] Kick recheck failed: {e}")
            return
        if fresh is None:
            await self._on_missing(code)
            return
        if resolve_participation(fresh, session.player_id) != Participation.ABSENT:
            session.absent_since = None
            return

        session.kicked = True
        logger.warning(f"[{code}] {session.player_id} was removed from the room")
        if self.listener is not None:
            await _call(self.listener.on_kicked, code)

    async def _check_stuck(self, code: str) -> None:
        if self.session.has_snapshot or self._stuck_reported:
            return
        if self._following_since is None:
            return
        if self.clock() - self._following_since < self.stuck_timeout_ms:
            return
        self._stuck_reported = True
        logger.warning(f"[{code}] No room data after {self.stuck_timeout_ms // 1000}s")
        if self.listener is not None:
            await _call(self.listener.on_stuck, code)
