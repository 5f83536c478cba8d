# Area: Store
"""
sketchroom._store.base — Room store contract
============================================

The sync core talks to persistence through four operations only:
``get``, ``update`` (read-modify-write), ``heartbeat`` and ``create``.
Transport, authentication and storage format stay behind this line,
so a polling adapter and a streaming adapter are interchangeable.
"""

from __future__ import annotations
import random
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .._sync.models import Room

# A transform receives the freshest room and returns the room to write.
# Returning None deletes (closes) the room.
Transform = Callable[[Room], Optional[Room]]

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # No I, O, 0, 1
ROOM_CODE_LENGTH = 6


def generate_room_code(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    return "".join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


class RoomStore(ABC):
    """
    Abstract keyed document store for rooms.

    Implementations raise ``StoreUnavailableError`` for transient
    failures and ``RoomNotFoundError`` when writing to a missing room.
    ``get`` reports a missing room by returning ``None``.
    """

    @abstractmethod
    async def get(self, room_code: str) -> Optional[Room]:
        """Full read of the room, or None when the room does not exist."""

    @abstractmethod
    async def update(self, room_code: str, transform: Transform) -> Optional[Room]:
        """
        Apply ``transform`` to the current room and write the result.

        Returns:
            The written room, or None if the transform closed it

        Raises:
            RoomNotFoundError: If the room does not exist
        """

    @abstractmethod
    async def heartbeat(self, room_code: str, player_id: str) -> None:
        """
        Best-effort liveness write: set ``presence[player_id]`` to now.

        Touches only that entry, never the rest of the room.
        """

    @abstractmethod
    async def create(self, room: Room) -> str:
        """Store a new room under a fresh code and return the code."""
