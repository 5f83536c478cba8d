# Area: Test Fixtures
"""Shared fixtures: room factory and a controllable clock."""

import pytest

from sketchroom._sync.enums import RoomStatus
from sketchroom._sync.models import GameSettings, Player, Room


class FakeClock:
    """Epoch-ms clock the test moves by hand."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_player(player_id: str, joined_at: int = 0) -> Player:
    return Player(id=player_id, name=player_id.upper(), joined_at=joined_at, last_seen=joined_at)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def player():
    return make_player


@pytest.fixture
def make_room():
    """Factory for rooms with the given active and waiting players."""

    def factory(
        status=RoomStatus.LOBBY,
        players=("p1", "p2", "p3"),
        waiting=(),
        round_number=0,
        timer_duration=20,
        total_rounds=3,
        enable_sabotage=True,
        room_code="ROOM42",
        **fields,
    ) -> Room:
        return Room(
            room_code=room_code,
            host_id=players[0] if players else "p1",
            status=status,
            round_number=round_number,
            settings=GameSettings(
                timer_duration=timer_duration,
                total_rounds=total_rounds,
                enable_sabotage=enable_sabotage,
            ),
            players=[make_player(pid, i) for i, pid in enumerate(players)],
            waiting_players=[make_player(pid, 100 + i) for i, pid in enumerate(waiting)],
            **fields,
        )

    return factory
