# Area: Store
"""
sketchroom._store.memory — In-process room store
================================================

Keeps rooms as camelCase JSON documents in a dict. Every read returns
a freshly validated copy, so clients sharing one store never share
mutable objects. Used by the demo and the test suite; supports
latency and fault injection.

There is no ``await`` between the read and the write of ``update``,
so a read-modify-write is atomic within one event loop.
"""

from __future__ import annotations
import asyncio
import logging
import random
from collections import defaultdict
from typing import Any, Dict, List, Optional, Type

from .base import RoomStore, Transform, generate_room_code
from .._shared.clock import Clock, now_ms
from .._sync.models import Room
from ..errors import RoomNotFoundError, StoreUnavailableError

logger = logging.getLogger("sketchroom.store.memory")


class InMemoryRoomStore(RoomStore):
    """Dict-backed RoomStore."""

    def __init__(
        self,
        latency: float = 0.0,
        clock: Clock = now_ms,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.latency = latency
        self.clock = clock
        self.rng = rng or random.Random()
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._faults: Dict[str, List[Type[Exception]]] = defaultdict(list)
        self.op_counts: Dict[str, int] = defaultdict(int)

    # ── Fault injection ──────────────────────────────────────

    def fail_next(
        self, op: str, times: int = 1, error: Type[Exception] = StoreUnavailableError
    ) -> None:
        """Make the next ``times`` calls of ``op`` raise ``error``."""
        self._faults[op].extend([error] * times)

    async def _enter(self, op: str) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        self.op_counts[op] += 1
        if self._faults[op]:
            error = self._faults[op].pop(0)
            raise error(f"Injected failure on {op}")

    # ── RoomStore ────────────────────────────────────────────

    async def get(self, room_code: str) -> Optional[Room]:
        await self._enter("get")
        doc = self._docs.get(room_code)
        return Room.from_document(doc) if doc is not None else None

    async def update(self, room_code: str, transform: Transform) -> Optional[Room]:
        await self._enter("update")
        doc = self._docs.get(room_code)
        if doc is None:
            raise RoomNotFoundError(room_code)
        updated = transform(Room.from_document(doc))
        if updated is None:
            del self._docs[room_code]
            logger.info(f"[{room_code}] Room deleted")
            return None
        self._docs[room_code] = updated.to_document()
        return Room.from_document(self._docs[room_code])

    async def heartbeat(self, room_code: str, player_id: str) -> None:
        await self._enter("heartbeat")
        doc = self._docs.get(room_code)
        if doc is None:
            raise RoomNotFoundError(room_code)
        doc.setdefault("presence", {})[player_id] = self.clock()

    async def create(self, room: Room) -> str:
        await self._enter("create")
        code = room.room_code or generate_room_code(self.rng)
        while code in self._docs:
            code = generate_room_code(self.rng)
        stored = room.model_copy(update={"room_code": code})
        self._docs[code] = stored.to_document()
        logger.info(f"[{code}] Room created by {room.host_id}")
        return code

    # ── Test helpers ─────────────────────────────────────────

    def delete(self, room_code: str) -> None:
        self._docs.pop(room_code, None)

    def peek(self, room_code: str) -> Optional[Room]:
        doc = self._docs.get(room_code)
        return Room.from_document(doc) if doc is not None else None
