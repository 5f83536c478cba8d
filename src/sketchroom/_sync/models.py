# Area: Sync
"""
sketchroom._sync.models — Shared room document models
=====================================================

Pydantic models for the room record every client reads and writes.
Field names are snake_case in Python and camelCase on the wire, so a
snapshot written by any client validates on every other client.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import PlayerStatus, RoomStatus, SabotageType


class _RoomModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Player(_RoomModel):
    """A participant as stored on the room."""
    id: str
    name: str
    color: str = "#000000"
    is_host: bool = False
    joined_at: int = 0
    last_seen: int = 0
    xp: int = 0
    level: int = 0


TIMER_DURATION_RANGE = (5, 60)
TOTAL_ROUNDS_RANGE = (1, 20)


class GameSettings(_RoomModel):
    timer_duration: int = Field(
        20, ge=TIMER_DURATION_RANGE[0], le=TIMER_DURATION_RANGE[1],
    )  # seconds
    total_rounds: int = Field(3, ge=TOTAL_ROUNDS_RANGE[0], le=TOTAL_ROUNDS_RANGE[1])
    enable_sabotage: bool = True


class PlayerDrawing(_RoomModel):
    """Submitted drawing. Strokes are opaque to the sync core."""
    strokes: List[Dict[str, Any]] = Field(default_factory=list)
    submitted_at: int = 0


class PlayerState(_RoomModel):
    status: PlayerStatus = PlayerStatus.WAITING
    timer_started_at: Optional[int] = None
    drawing: Optional[PlayerDrawing] = None


class CurrentImage(_RoomModel):
    url: str
    uploaded_by: str
    uploaded_at: int


class SabotageEffect(_RoomModel):
    type: SabotageType
    intensity: int = 5


class Ranking(_RoomModel):
    player_id: str
    player_name: str
    votes: int = 0
    points: int = 0


class RoundResult(_RoomModel):
    round_number: int
    image_url: Optional[str] = None
    rankings: List[Ranking] = Field(default_factory=list)


class Room(_RoomModel):
    """
    The shared room record.

    A player id appears in exactly one of ``players`` or
    ``waiting_players``. ``player_states`` only holds ids from ``players``.
    """
    room_code: str = ""
    host_id: str
    status: RoomStatus = RoomStatus.LOBBY
    settings: GameSettings = Field(default_factory=GameSettings)

    game_number: int = 0              # bumped on every replay reset
    round_number: int = 0
    current_uploader_id: Optional[str] = None
    current_image: Optional[CurrentImage] = None

    players: List[Player] = Field(default_factory=list)
    waiting_players: List[Player] = Field(default_factory=list)
    player_states: Dict[str, PlayerState] = Field(default_factory=dict)
    presence: Dict[str, int] = Field(default_factory=dict)   # player id -> last heartbeat

    votes: Dict[str, str] = Field(default_factory=dict)
    scores: Dict[str, int] = Field(default_factory=dict)
    round_results: List[RoundResult] = Field(default_factory=list)

    sabotage_round: Optional[int] = None
    saboteur_id: Optional[str] = None
    sabotage_target_id: Optional[str] = None
    sabotage_effect: Optional[SabotageEffect] = None
    sabotage_triggered: bool = False

    is_double_points: bool = False
    time_bonus_player_id: Optional[str] = None

    created_at: int = 0

    # ── Lookup helpers ───────────────────────────────────────

    def player_ids(self) -> List[str]:
        return [p.id for p in self.players]

    def waiting_ids(self) -> List[str]:
        return [p.id for p in self.waiting_players]

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        for player in self.waiting_players:
            if player.id == player_id:
                return player
        return None

    def is_active(self, player_id: str) -> bool:
        return player_id in self.player_ids()

    def is_waiting(self, player_id: str) -> bool:
        return player_id in self.waiting_ids()

    def last_seen_of(self, player_id: str) -> int:
        """Latest of the join stamp and the last heartbeat."""
        player = self.get_player(player_id)
        joined = player.last_seen if player is not None else 0
        return max(joined, self.presence.get(player_id, 0))

    def state_of(self, player_id: str) -> Optional[PlayerState]:
        return self.player_states.get(player_id)

    def result_for_round(self, round_number: int) -> Optional[RoundResult]:
        for result in self.round_results:
            if result.round_number == round_number:
                return result
        return None

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the camelCase JSON document stored remotely."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Room":
        return cls.model_validate(data)
