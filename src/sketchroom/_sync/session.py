# Area: Sync
"""
sketchroom._sync.session — Per-session synchronization state
============================================================

Everything the sync component remembers between polls lives on one
``SessionState`` owned by ``RoomSync``. Each field has a reset rule
tied to one transition:

    new room code  -> on_room_changed()
    new round      -> on_round_changed()
    new player id  -> on_player_changed()
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .enums import Participation, RoomStatus, SubmissionPhase


@dataclass
class SessionState:
    """
    Mutable per-client session fields.

    Attributes:
        room_code: Room this session follows
        player_id: Local player
        last_status: Status seen on the previous snapshot (reset: new room)
        last_round: Round number seen on the previous snapshot (reset: new room)
        last_game: Game number seen on the previous snapshot (reset: new room)
        last_participation: Local participation on the previous snapshot
            (reset: new room, new player)
        submission_in_flight: Submission lock (reset: new round, new player)
        submission_phase: Optimistic submission shadow (reset: new round, new player)
        absent_since: When the local player was first seen missing from both
            lists; the pending kick check (reset: new room, new player)
        kicked: Kick confirmed after the debounce (reset: new room, new player)
        first_snapshot_at: When the first snapshot arrived (reset: new room)
    """
    room_code: Optional[str] = None
    player_id: Optional[str] = None
    last_status: Optional[RoomStatus] = None
    last_round: Optional[int] = None
    last_game: Optional[int] = None
    last_participation: Optional[Participation] = None
    submission_in_flight: bool = False
    submission_phase: SubmissionPhase = SubmissionPhase.NONE
    absent_since: Optional[int] = None
    kicked: bool = False
    first_snapshot_at: Optional[int] = None

    @property
    def has_snapshot(self) -> bool:
        return self.last_status is not None

    def on_room_changed(self, room_code: Optional[str]) -> None:
        self.room_code = room_code
        self.last_status = None
        self.last_round = None
        self.last_game = None
        self.last_participation = None
        self.absent_since = None
        self.kicked = False
        self.first_snapshot_at = None
        self.on_round_changed()

    def on_round_changed(self) -> None:
        self.submission_in_flight = False
        self.submission_phase = SubmissionPhase.NONE

    def on_player_changed(self, player_id: Optional[str]) -> None:
        self.player_id = player_id
        self.last_participation = None
        self.absent_since = None
        self.kicked = False
        self.on_round_changed()
