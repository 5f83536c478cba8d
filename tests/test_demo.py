# Area: Client Tests
"""End-to-end test: three clients play a whole game on one store."""

import asyncio
from unittest.mock import patch

from sketchroom import cli, demo
from sketchroom._sync.enums import Screen


class TestRunDemo:
    """Tests for run_demo()."""

    def test_full_game_ends_at_home(self, monkeypatch):
        """Test every client plays through and ends on the home screen."""
        monkeypatch.setattr(demo, "TICK_SECONDS", 0.001)

        screens = asyncio.run(demo.run_demo(rounds=2, timer_duration=10, seed=11))

        assert set(screens) == {"p1", "p2", "p3"}
        for pid, visited in screens.items():
            assert visited[-1] == Screen.HOME
            for screen in (Screen.LOBBY, Screen.DRAWING, Screen.VOTING, Screen.RESULTS):
                assert screen in visited, f"{pid} never saw {screen.value}"

        assert Screen.REWARDS in screens["p1"]
        assert Screen.GAME_ENDED in screens["p2"]
        assert Screen.GAME_ENDED in screens["p3"]


class TestCli:
    """Tests for the command-line entry point."""

    def test_parse_args(self):
        args = cli.parse_args(["--demo", "--rounds", "3", "--seed", "5", "-v"])
        assert args.demo
        assert args.rounds == 3
        assert args.seed == 5
        assert args.verbose

    @patch("sketchroom.cli.setup_logging")
    def test_missing_player_id_fails(self, mock_logging, monkeypatch, tmp_path, capsys):
        """Test the client refuses to start without a player id."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SKETCHROOM_PLAYER_ID", raising=False)

        assert cli.main(["--room", "ABC234"]) == 1
        assert "player_id" in capsys.readouterr().err

    @patch("sketchroom.cli.setup_logging")
    def test_needs_room_or_create(self, mock_logging, monkeypatch, tmp_path, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SKETCHROOM_ROOM_CODE", raising=False)
        monkeypatch.setenv("SKETCHROOM_PLAYER_ID", "me")

        assert cli.main([]) == 1
        assert "--room" in capsys.readouterr().err

    @patch("sketchroom.cli.setup_logging")
    def test_demo_flag_runs_demo(self, mock_logging, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        async def fake_demo(rounds, seed):
            fake_demo.called = (rounds, seed)

        with patch("sketchroom.demo.run_demo", fake_demo):
            assert cli.main(["--demo", "--rounds", "1", "--seed", "2"]) == 0
        assert fake_demo.called == (1, 2)
