# Area: Sync
"""
sketchroom._sync.notifications — Edge-triggered notifications
=============================================================

Maps status edges to notification events for the local player and
hands them to a notifier without waiting for delivery. Delivery is
the notifier's business; a failing notifier is logged and otherwise
ignored.
"""

from __future__ import annotations
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Set, Union

from .enums import NotificationEvent, RoomStatus
from .models import Room

logger = logging.getLogger("sketchroom.notifications")


class Notifier(Protocol):
    """Notification collaborator. May be sync or async."""

    def notify(
        self, event: NotificationEvent, room: Room, player_id: str
    ) -> Union[None, Awaitable[None]]:
        ...


class LoggingNotifier:
    """Default notifier: writes each event to the log."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []

    def notify(self, event: NotificationEvent, room: Room, player_id: str) -> None:
        self.sent.append({
            "event": event,
            "room_code": room.room_code,
            "round_number": room.round_number,
            "player_id": player_id,
        })
        logger.info(f"[{room.room_code}] Notify {player_id}: {event.value}")


def events_for_transition(
    previous: Optional[RoomStatus], room: Optional[Room], player_id: str
) -> List[NotificationEvent]:
    """
    Events the local player should receive for the ``previous -> room.status`` edge.

    No edge, no events: the first snapshot and repeated polls of the
    same status return an empty list.
    """
    if room is None or previous is None or previous == room.status:
        return []

    status = room.status
    active = room.is_active(player_id)
    if status == RoomStatus.UPLOADING:
        if room.current_uploader_id == player_id:
            return [NotificationEvent.UPLOAD_TURN]
        return []
    if status == RoomStatus.DRAWING:
        return [NotificationEvent.DRAWING_STARTED] if active else []
    if status == RoomStatus.VOTING:
        return [NotificationEvent.VOTING_STARTED] if active else []
    if status == RoomStatus.RESULTS:
        return [NotificationEvent.ROUND_RESULTS]
    if status == RoomStatus.FINAL:
        return [NotificationEvent.GAME_FINISHED]
    return []


class NotificationDispatcher:
    """Fire-and-forget delivery to a notifier."""

    def __init__(self, notifier: Optional[Notifier] = None) -> None:
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(
        self, previous: Optional[RoomStatus], room: Optional[Room], player_id: str
    ) -> List[NotificationEvent]:
        events = events_for_transition(previous, room, player_id)
        for event in events:
            self._send(event, room, player_id)
        return events

    def _send(self, event: NotificationEvent, room: Room, player_id: str) -> None:
        try:
            result = self.notifier.notify(event, room, player_id)
        except Exception as e:
            logger.warning(f"Notifier failed for {event.value}: {e}")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Notification delivery failed: {error}")

    async def drain(self) -> None:
        """Wait for pending deliveries. Used on shutdown and in tests."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
