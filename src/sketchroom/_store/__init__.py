# Area: Store
"""Room persistence behind the RoomStore contract."""

from .base import ROOM_CODE_ALPHABET, RoomStore, Transform, generate_room_code
from .firestore import FirestoreRoomStore
from .memory import InMemoryRoomStore

__all__ = [
    "ROOM_CODE_ALPHABET",
    "RoomStore",
    "Transform",
    "generate_room_code",
    "InMemoryRoomStore",
    "FirestoreRoomStore",
]
