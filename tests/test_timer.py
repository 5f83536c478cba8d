# Area: Sync Tests
"""Tests for countdown deadlines, reconciliation and fire-once expiry."""

import asyncio
import math
from unittest.mock import Mock

import pytest

from sketchroom._sync.enums import PlayerStatus, RoomStatus, SabotageType
from sketchroom._sync.models import PlayerState, SabotageEffect
from sketchroom._sync.sabotage import time_penalty_seconds
from sketchroom._sync.timer import (
    CountdownTimer,
    TimerCoordinator,
    compute_deadline,
    effective_duration,
)


def sabotaged_room(make_room, base, target="p2", triggered=True, bonus=None):
    return make_room(
        status=RoomStatus.DRAWING,
        round_number=1,
        timer_duration=base,
        sabotage_target_id=target,
        sabotage_effect=SabotageEffect(type=SabotageType.SUBTRACT_TIME, intensity=5),
        sabotage_triggered=triggered,
        time_bonus_player_id=bonus,
    )


class TestEffectiveDuration:
    """Tests for base + bonus - penalty."""

    @pytest.mark.parametrize("base", range(5, 61))
    def test_penalty_is_ceil_of_twenty_percent(self, base):
        """Test the time penalty for every allowed base duration."""
        assert time_penalty_seconds(base) == math.ceil(base * 20 / 100)

    @pytest.mark.parametrize("base", range(5, 61))
    def test_durations_by_role(self, make_room, base):
        """Test sabotaged, bonused and plain players for every base duration."""
        room = sabotaged_room(make_room, base, target="p2", bonus="p3")
        assert effective_duration(room, "p2") == base - time_penalty_seconds(base)
        assert effective_duration(room, "p3") == base + 5
        assert effective_duration(room, "p1") == base

    def test_fifteen_second_scenario(self, make_room):
        """Test subtract_time on a 15s round leaves the target 12s, others 15s."""
        room = sabotaged_room(make_room, 15, target="p2")
        assert effective_duration(room, "p2") == 12
        assert effective_duration(room, "p1") == 15
        assert effective_duration(room, "p3") == 15

    def test_untriggered_sabotage_has_no_effect(self, make_room):
        """Test the penalty waits for the target's trigger."""
        room = sabotaged_room(make_room, 15, target="p2", triggered=False)
        assert effective_duration(room, "p2") == 15

    def test_bonus_and_penalty_stack(self, make_room):
        """Test a bonused target gets both adjustments."""
        room = sabotaged_room(make_room, 20, target="p2", bonus="p2")
        assert effective_duration(room, "p2") == 20 + 5 - 4


class TestComputeDeadline:
    """Tests for compute_deadline."""

    def test_confirmed_start_preferred(self, make_room):
        """Test the confirmed start supersedes the optimistic one."""
        room = make_room(status=RoomStatus.DRAWING, timer_duration=20)
        room.player_states["p1"] = PlayerState(status=PlayerStatus.DRAWING, timer_started_at=5_000)
        assert compute_deadline(room, "p1", optimistic_start=4_000) == 25_000

    def test_optimistic_fallback(self, make_room):
        """Test the optimistic start is used while the write is in flight."""
        room = make_room(status=RoomStatus.DRAWING, timer_duration=20)
        assert compute_deadline(room, "p1", optimistic_start=4_000) == 24_000

    def test_no_start(self, make_room):
        """Test no deadline without any start."""
        room = make_room(status=RoomStatus.DRAWING)
        assert compute_deadline(room, "p1") is None


class TestCountdownTimer:
    """Tests for fire-once expiry."""

    def test_fires_once_at_deadline(self):
        """Test expiry fires exactly once however often it ticks."""
        on_expire = Mock()
        timer = CountdownTimer(on_expire=on_expire, clock=lambda: 0)
        timer.set_deadline(1_000)

        assert timer.tick(999) is False
        assert timer.tick(1_000) is True
        assert timer.tick(1_500) is False
        assert timer.finish() is False
        on_expire.assert_called_once()

    def test_manual_done_suppresses_expiry(self):
        """Test "done" before the deadline prevents a second firing."""
        on_expire = Mock()
        timer = CountdownTimer(on_expire=on_expire, clock=lambda: 0)
        timer.set_deadline(1_000)

        assert timer.finish() is True
        assert timer.tick(5_000) is False
        on_expire.assert_called_once()

    def test_async_callback_not_refired_while_running(self):
        """Test ticks during an async callback do not fire again."""
        calls = []

        async def on_expire():
            calls.append("start")
            await asyncio.sleep(0.01)
            calls.append("end")

        async def scenario():
            timer = CountdownTimer(on_expire=on_expire, clock=lambda: 0)
            timer.set_deadline(10)
            timer.tick(10)
            for now in range(11, 20):
                timer.tick(now)
                await asyncio.sleep(0)
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert calls == ["start", "end"]

    def test_reset_rearms(self):
        """Test reset allows the next round's timer to fire."""
        on_expire = Mock()
        timer = CountdownTimer(on_expire=on_expire, clock=lambda: 0)
        timer.set_deadline(10)
        timer.tick(10)
        timer.reset()
        timer.set_deadline(20)
        timer.tick(20)
        assert on_expire.call_count == 2

    def test_remaining_seconds(self):
        """Test remaining time is computed from the wall-clock deadline."""
        timer = CountdownTimer(clock=lambda: 0)
        assert timer.remaining_seconds(0) == 0.0
        timer.set_deadline(12_000)
        assert timer.remaining_seconds(2_000) == 10.0
        assert timer.remaining_seconds(20_000) == 0.0


class TestTimerCoordinator:
    """Tests for optimistic start reconciliation."""

    def test_small_confirmation_delta_does_not_jump(self, make_room, clock):
        """Test a confirmed start within 500ms keeps the displayed deadline."""
        coordinator = TimerCoordinator("p1", clock=clock)
        room = make_room(status=RoomStatus.DRAWING, timer_duration=20)
        start = coordinator.begin_optimistic()
        shown = coordinator.reconcile(room)
        assert shown == start + 20_000

        room.player_states["p1"] = PlayerState(
            status=PlayerStatus.DRAWING, timer_started_at=start + 400,
        )
        assert coordinator.reconcile(room) == shown

    def test_large_confirmation_delta_updates(self, make_room, clock):
        """Test a confirmed start more than 500ms away moves the deadline."""
        coordinator = TimerCoordinator("p1", clock=clock)
        room = make_room(status=RoomStatus.DRAWING, timer_duration=20)
        start = coordinator.begin_optimistic()
        coordinator.reconcile(room)

        room.player_states["p1"] = PlayerState(
            status=PlayerStatus.DRAWING, timer_started_at=start + 900,
        )
        assert coordinator.reconcile(room) == start + 900 + 20_000

    def test_rollback_clears_unconfirmed_deadline(self, make_room, clock):
        """Test a failed "ready" removes the optimistic countdown."""
        coordinator = TimerCoordinator("p1", clock=clock)
        room = make_room(status=RoomStatus.DRAWING)
        coordinator.begin_optimistic()
        coordinator.reconcile(room)

        coordinator.rollback_optimistic()

        assert coordinator.displayed_deadline is None
        assert coordinator.start.resolve() is None
        assert coordinator.reconcile(room) is None

    def test_expiry_through_coordinator(self, make_room, clock):
        """Test the coordinator fires its callback at the displayed deadline."""
        on_expire = Mock()
        coordinator = TimerCoordinator("p1", on_expire=on_expire, clock=clock)
        room = make_room(status=RoomStatus.DRAWING, timer_duration=5)
        coordinator.begin_optimistic()
        coordinator.reconcile(room)

        clock.advance(4_999)
        assert coordinator.tick() is False
        clock.advance(1)
        assert coordinator.tick() is True
        assert coordinator.tick() is False
        on_expire.assert_called_once()

    def test_reset_forgets_round(self, make_room, clock):
        """Test reset clears start, deadline and the fired flag."""
        coordinator = TimerCoordinator("p1", clock=clock)
        coordinator.begin_optimistic()
        coordinator.reconcile(make_room(status=RoomStatus.DRAWING))
        coordinator.finish()

        coordinator.reset()

        assert coordinator.displayed_deadline is None
        assert coordinator.countdown.fired is False
        assert coordinator.start.resolve() is None
