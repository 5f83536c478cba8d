# Area: Store
"""
sketchroom._store.firestore — Cloud Firestore room store
========================================================

Rooms live as documents in one collection, keyed by room code. The
synchronous google-cloud-firestore client runs in the default thread
pool so the event loop never blocks. ``update`` runs inside a
Firestore transaction, which retries the transform on contention; the
transforms are idempotent, so a retry is safe.

Requires the ``firestore`` extra: ``pip install sketchroom-sync[firestore]``.
"""

from __future__ import annotations
import asyncio
import logging
import os
import random
from typing import Optional

from .base import RoomStore, Transform, generate_room_code
from .._shared.clock import Clock, now_ms
from .._sync.models import Room
from ..errors import RoomNotFoundError, StoreUnavailableError

logger = logging.getLogger("sketchroom.store.firestore")

MAX_CREATE_ATTEMPTS = 5


class FirestoreRoomStore(RoomStore):
    """RoomStore backed by a Firestore collection."""

    def __init__(
        self,
        project: Optional[str] = None,
        collection: str = "rooms",
        emulator_host: Optional[str] = None,
        client=None,
        clock: Clock = now_ms,
        rng: Optional[random.Random] = None,
    ) -> None:
        if emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = emulator_host
        if client is None:
            # Lazy import so the package works without the firestore extra
            from google.cloud import firestore
            client = firestore.Client(project=project or None)
        self.db = client
        self.collection = collection
        self.clock = clock
        self.rng = rng or random.Random()

    def _run(self, fn):
        """Run a sync Firestore call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(None, fn)

    def _room_ref(self, room_code: str):
        return self.db.collection(self.collection).document(room_code)

    async def _call(self, fn):
        from google.api_core import exceptions as gexc
        try:
            return await self._run(fn)
        except gexc.GoogleAPICallError as e:
            raise StoreUnavailableError(str(e)) from e

    # ── RoomStore ────────────────────────────────────────────

    async def get(self, room_code: str) -> Optional[Room]:
        snapshot = await self._call(lambda: self._room_ref(room_code).get())
        if snapshot.exists:
            return Room.from_document(snapshot.to_dict())
        return None

    async def update(self, room_code: str, transform: Transform) -> Optional[Room]:
        from google.cloud import firestore

        ref = self._room_ref(room_code)

        @firestore.transactional
        def apply(transaction):
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise RoomNotFoundError(room_code)
            updated = transform(Room.from_document(snapshot.to_dict()))
            if updated is None:
                transaction.delete(ref)
                return None
            transaction.set(ref, updated.to_document())
            return updated

        result = await self._call(lambda: apply(self.db.transaction()))
        if result is None:
            logger.info(f"[{room_code}] Room deleted")
        return result

    async def heartbeat(self, room_code: str, player_id: str) -> None:
        from google.cloud.firestore_v1.field_path import FieldPath

        # Single-field write, outside any transaction
        field = FieldPath("presence", player_id).to_api_repr()
        now = self.clock()
        await self._call(lambda: self._room_ref(room_code).update({field: now}))

    async def create(self, room: Room) -> str:
        from google.api_core import exceptions as gexc

        for _ in range(MAX_CREATE_ATTEMPTS):
            code = generate_room_code(self.rng)
            doc = room.model_copy(update={"room_code": code}).to_document()
            try:
                await self._run(lambda: self._room_ref(code).create(doc))
            except gexc.AlreadyExists:
                logger.debug(f"Room code {code} taken, retrying")
                continue
            except gexc.GoogleAPICallError as e:
                raise StoreUnavailableError(str(e)) from e
            logger.info(f"[{code}] Room created by {room.host_id}")
            return code
        raise StoreUnavailableError("Could not allocate a free room code")
