# Area: Client Tests
"""Tests for RoomClient screens, countdown, sabotage and rewards."""

import asyncio
import random

from sketchroom._store import InMemoryRoomStore
from sketchroom._sync.enums import PlayerStatus, RoomStatus, SabotageType, Screen
from sketchroom._sync.models import PlayerState, SabotageEffect
from sketchroom._sync.transitions import cast_vote, leave_room, start_game
from sketchroom.client import RoomClient


def make_client(store, clock, player, player_id="p2", **kwargs):
    return RoomClient(store, player(player_id), clock=clock, rng=random.Random(0), **kwargs)


def follow(client, room):
    code = asyncio.run(client.store.create(room))
    client.sync.follow(code)
    asyncio.run(client.sync.poll_once())
    return code


def set_status(status):
    def transform(room):
        room.status = status
        return room
    return transform


class TestScreens:
    """Tests for screen derivation from snapshots."""

    def test_active_player_follows_status(self, make_room, clock, player):
        """Test each status maps to the active player's screen."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)
        code = follow(client, make_room())
        assert client.screen == Screen.LOBBY

        asyncio.run(store.update(code, lambda r: start_game(r, "p1", random.Random(0))))
        asyncio.run(client.sync.poll_once())

        assert client.screen == Screen.UPLOADING

    def test_waiting_player_sees_waiting_then_results(self, make_room, clock, player):
        """Test a spectator waits during play but sees round results."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player, "w1")
        code = follow(client, make_room(status=RoomStatus.VOTING, round_number=1, waiting=("w1",)))
        assert client.screen == Screen.WAITING

        asyncio.run(store.update(code, set_status(RoomStatus.RESULTS)))
        asyncio.run(client.sync.poll_once())

        assert client.screen == Screen.RESULTS

    def test_canvas_cleared_entering_drawing(self, make_room, clock, player):
        """Test the canvas starts empty for each drawing phase."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)
        code = follow(client, make_room(status=RoomStatus.UPLOADING, round_number=1))
        client.canvas = [{"stale": True}]

        asyncio.run(store.update(code, set_status(RoomStatus.DRAWING)))
        asyncio.run(client.sync.poll_once())

        assert client.screen == Screen.DRAWING
        assert client.canvas == []
        client.add_stroke({"x": 1})
        assert client.canvas == [{"x": 1}]

    def test_host_ended_counts_down_to_home(self, make_room, clock, player):
        """Test a vanished room shows game-ended, then home after the countdown."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)
        code = follow(client, make_room())
        store.delete(code)

        asyncio.run(client.sync.poll_once())
        assert client.screen == Screen.GAME_ENDED
        assert "The host ended the game." in client.messages

        clock.advance(4_000)
        asyncio.run(client.tick())
        assert client.screen == Screen.GAME_ENDED
        clock.advance(1_500)
        asyncio.run(client.tick())
        assert client.screen == Screen.HOME

    def test_kicked_player_goes_home(self, make_room, clock, player):
        """Test a confirmed kick sends the player home with a message."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)
        code = follow(client, make_room())
        asyncio.run(store.update(code, lambda r: leave_room(r, "p2")))

        asyncio.run(client.sync.poll_once())
        clock.advance(2_500)
        asyncio.run(client.sync.poll_once())

        assert client.screen == Screen.HOME
        assert "You were removed from the room." in client.messages


class TestDrawingPhase:
    """Tests for the countdown, submission and sabotage while drawing."""

    def drawing_room(self, make_room, clock, **fields):
        states = {"p2": PlayerState(status=PlayerStatus.DRAWING, timer_started_at=clock.now)}
        return make_room(status=RoomStatus.DRAWING, round_number=1, player_states=states, **fields)

    def test_timer_expiry_submits_once(self, make_room, clock, player):
        """Test the deadline triggers exactly one submission of the canvas."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)

        async def scenario():
            code = await store.create(self.drawing_room(make_room, clock))
            client.sync.follow(code)
            await client.sync.poll_once()
            client.add_stroke({"x": 1})
            assert client.timer.displayed_deadline == clock.now + 20_000

            clock.advance(20_001)
            await client.tick()
            for _ in range(5):
                await asyncio.sleep(0)
            updates = store.op_counts["update"]
            await client.tick()
            return code, updates

        code, updates = asyncio.run(scenario())
        state = store.peek(code).player_states["p2"]
        assert state.status == PlayerStatus.SUBMITTED
        assert state.drawing.strokes == [{"x": 1}]
        assert store.op_counts["update"] == updates
        assert client.has_submitted

    def test_done_fires_once(self, make_room, clock, player):
        """Test manual done submits and a second press does nothing."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)

        async def scenario():
            code = await store.create(self.drawing_room(make_room, clock))
            client.sync.follow(code)
            await client.sync.poll_once()
            first = client.done()
            second = client.done()
            for _ in range(5):
                await asyncio.sleep(0)
            return code, first, second

        code, first, second = asyncio.run(scenario())
        assert first is True
        assert second is False
        assert store.peek(code).player_states["p2"].status == PlayerStatus.SUBMITTED

    def test_auto_ready_confirms_start(self, make_room, clock, player):
        """Test auto-ready writes the start time on the next tick."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player, auto_ready=True)
        code = follow(client, make_room(
            status=RoomStatus.DRAWING, round_number=1,
            player_states={"p2": PlayerState()},
        ))

        asyncio.run(client.tick())

        assert store.peek(code).player_states["p2"].timer_started_at == clock.now
        assert client.timer.displayed_deadline == clock.now + 20_000

    def test_sabotage_triggered_by_target(self, make_room, clock, player):
        """Test the target's client activates the effect and shortens its timer."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)
        code = follow(client, self.drawing_room(
            make_room, clock,
            saboteur_id="p1", sabotage_target_id="p2",
            sabotage_effect=SabotageEffect(type=SabotageType.SUBTRACT_TIME),
        ))
        assert not client.sabotage.active

        asyncio.run(client.tick())

        assert store.peek(code).sabotage_triggered
        assert client.sabotage.subtracts_time
        assert client.rewards.progress.stats.times_sabotaged == 1
        assert client.timer.displayed_deadline == clock.now + 16_000

        asyncio.run(client.sync.poll_once())
        asyncio.run(client.tick())
        assert client.rewards.progress.stats.times_sabotaged == 1


class TestRewards:
    """Tests for edge-triggered rewards on the client."""

    def test_results_rewarded_once_and_pushed(self, make_room, clock, player):
        """Test many results polls grant once and the level is pushed to the room."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)
        code = follow(client, make_room(
            status=RoomStatus.VOTING, round_number=1, votes={"p1": "p2", "p3": "p2"},
        ))

        asyncio.run(store.update(code, lambda r: cast_vote(r, "p2", "p1")))
        for _ in range(5):
            asyncio.run(client.sync.poll_once())
            asyncio.run(client.tick())

        assert client.screen == Screen.RESULTS
        assert len(client.grants) == 1
        assert client.grants[0].won
        assert store.peek(code).get_player("p2").xp == client.rewards.progress.xp

    def test_stale_voting_snapshot_does_not_regrant(self, make_room, clock, player):
        """Test a late read of voting between two results reads grants once."""
        store = InMemoryRoomStore(clock=clock)
        client = make_client(store, clock, player)
        code = follow(client, make_room(
            status=RoomStatus.VOTING, round_number=1, votes={"p1": "p2", "p3": "p2"},
        ))
        stale_voting = client.sync.room.model_copy(deep=True)

        asyncio.run(store.update(code, lambda r: cast_vote(r, "p2", "p1")))
        asyncio.run(client.sync.poll_once())
        asyncio.run(client.sync.ingest(stale_voting))
        asyncio.run(client.sync.poll_once())

        assert client.screen == Screen.RESULTS
        assert len(client.grants) == 1
        assert client.rewards.progress.stats.rounds_won == 1
