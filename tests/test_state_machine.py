# Area: Sync Tests
"""Tests for the room phase state machine and screen table."""

import pytest

from sketchroom._sync.enums import PlayerRole, RoomStatus, Screen
from sketchroom._sync.state_machine import (
    PHASE_ORDER,
    SCREEN_TABLE,
    TRANSITIONS,
    can_transition,
    ensure_transition,
    is_behind,
    is_round_boundary,
    progress_key,
    screen_for,
)
from sketchroom.errors import InvalidTransitionError


class TestTransitionTable:
    """Tests for the enumerated status transitions."""

    def test_every_status_has_an_entry(self):
        """Test that no status is missing from the transition table."""
        assert set(TRANSITIONS) == set(RoomStatus)

    def test_happy_path_is_valid(self):
        """Test the full lobby-to-lobby path through one sabotage round."""
        path = [
            RoomStatus.LOBBY,
            RoomStatus.UPLOADING,
            RoomStatus.SABOTAGE_SELECTION,
            RoomStatus.DRAWING,
            RoomStatus.VOTING,
            RoomStatus.RESULTS,
            RoomStatus.FINAL,
            RoomStatus.REWARDS,
            RoomStatus.LOBBY,
        ]
        for current, target in zip(path, path[1:]):
            assert can_transition(current, target), f"{current} -> {target}"

    def test_next_round_edges(self):
        """Test results may open a new round via uploading or drawing."""
        assert can_transition(RoomStatus.RESULTS, RoomStatus.UPLOADING)
        assert can_transition(RoomStatus.RESULTS, RoomStatus.DRAWING)
        assert can_transition(RoomStatus.FINAL, RoomStatus.LOBBY)

    def test_backwards_edges_rejected(self):
        """Test that skipping or reversing phases is invalid."""
        assert not can_transition(RoomStatus.VOTING, RoomStatus.DRAWING)
        assert not can_transition(RoomStatus.LOBBY, RoomStatus.DRAWING)
        assert not can_transition(RoomStatus.DRAWING, RoomStatus.RESULTS)

    def test_ensure_transition_raises(self):
        """Test ensure_transition raises InvalidTransitionError with both statuses."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(RoomStatus.VOTING, RoomStatus.LOBBY)
        assert exc_info.value.from_status == "voting"
        assert exc_info.value.to_status == "lobby"

    def test_accepts_raw_strings(self):
        """Test that wire values are accepted as statuses."""
        assert can_transition("drawing", "voting")

    def test_round_boundary(self):
        """Test round boundary detection."""
        assert is_round_boundary(RoomStatus.RESULTS, RoomStatus.UPLOADING)
        assert is_round_boundary(RoomStatus.RESULTS, RoomStatus.DRAWING)
        assert not is_round_boundary(RoomStatus.RESULTS, RoomStatus.FINAL)
        assert not is_round_boundary(None, RoomStatus.DRAWING)


class TestSnapshotOrder:
    """Tests for ordering snapshots by game, round and phase."""

    def test_every_status_is_ranked(self):
        assert set(PHASE_ORDER) == set(RoomStatus)

    def test_forward_transitions_move_ahead(self):
        """Test every in-round transition produces a later key."""
        for current, targets in TRANSITIONS.items():
            for target in targets:
                if is_round_boundary(current, target) or target == RoomStatus.LOBBY:
                    continue
                assert progress_key(0, 1, target) > progress_key(0, 1, current)

    def test_earlier_phase_same_round_is_behind(self):
        """Test voting read after results of the same round is stale."""
        results = progress_key(0, 1, RoomStatus.RESULTS)
        assert is_behind(results, progress_key(0, 1, RoomStatus.VOTING))
        assert not is_behind(results, progress_key(0, 1, RoomStatus.RESULTS))
        assert not is_behind(None, progress_key(0, 1, RoomStatus.VOTING))

    def test_next_round_is_ahead(self):
        results = progress_key(0, 1, RoomStatus.RESULTS)
        assert not is_behind(results, progress_key(0, 2, RoomStatus.UPLOADING))
        assert not is_behind(results, progress_key(0, 2, RoomStatus.DRAWING))

    def test_replay_lobby_is_ahead(self):
        """Test the lobby after a replay reset outranks the finished game."""
        final = progress_key(0, 3, RoomStatus.FINAL)
        assert not is_behind(final, progress_key(1, 0, RoomStatus.LOBBY))
        assert not is_behind(final, progress_key(1, 1, RoomStatus.UPLOADING))
        assert is_behind(progress_key(1, 1, RoomStatus.UPLOADING), progress_key(1, 0, RoomStatus.LOBBY))


class TestScreenTable:
    """Tests for the (status, role) -> screen table."""

    def test_table_is_complete(self):
        """Test every status/role pair has a screen."""
        for status in RoomStatus:
            for role in PlayerRole:
                assert (status, role) in SCREEN_TABLE

    def test_active_player_sees_phase_screen(self):
        """Test active players see the screen named after the phase."""
        assert screen_for(RoomStatus.DRAWING, PlayerRole.ACTIVE) == Screen.DRAWING
        assert screen_for(RoomStatus.SABOTAGE_SELECTION, PlayerRole.ACTIVE) == Screen.SABOTAGE_SELECTION
        assert screen_for(RoomStatus.LOBBY, PlayerRole.ACTIVE) == Screen.LOBBY

    @pytest.mark.parametrize("status", [
        RoomStatus.LOBBY,
        RoomStatus.UPLOADING,
        RoomStatus.SABOTAGE_SELECTION,
        RoomStatus.DRAWING,
        RoomStatus.VOTING,
        RoomStatus.REWARDS,
    ])
    def test_waiting_player_sees_waiting_screen(self, status):
        """Test waiting players get the neutral screen during play."""
        assert screen_for(status, PlayerRole.WAITING) == Screen.WAITING

    def test_waiting_player_sees_outcomes(self):
        """Test waiting players still see round and game outcomes."""
        assert screen_for(RoomStatus.RESULTS, PlayerRole.WAITING) == Screen.RESULTS
        assert screen_for(RoomStatus.FINAL, PlayerRole.WAITING) == Screen.FINAL
