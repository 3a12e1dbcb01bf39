"""
Unit tests for the KataGo GTP wrapper.

Tests:
- Ownership and vertex-list parsers
- Position loading commands
- GTP response handling with a fake process
- Ownership perspective and startup errors
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from go_tutor.board import Coordinate, StoneColor, create_empty_grid, grid_from_rows
from go_tutor.config import KataGoConfig
from go_tutor.katago_gtp import (
    KataGoCommandError,
    KataGoGTP,
    KataGoProcessError,
    KataGoStartupError,
    parse_ownership,
    parse_vertex_list,
)


# --- Fixtures ---


@pytest.fixture
def katago_config():
    return KataGoConfig(
        katago_path="/nonexistent/katago",
        model_path="/nonexistent/model.bin.gz",
        config_path="/nonexistent/gtp.cfg",
        visits=50,
        timeout=1.0,
    )


@pytest.fixture
def fake_engine(katago_config):
    """KataGoGTP wired to a mocked, already running process."""
    engine = KataGoGTP(katago_config)
    engine.process = MagicMock()
    engine.process.poll.return_value = None
    engine._started = True
    return engine


INFO_LINE = (
    "info move D4 visits 60 utility 0.1 winrate 0.52 scoreMean 1.3 "
    "order 0 pv D4 Q16 ownership 0.5 -0.5 1 0"
)


# --- Parsers ---


class TestParseOwnership:
    """Tests for parse_ownership."""

    def test_rows(self):
        assert parse_ownership(INFO_LINE, 2) == [[0.5, -0.5], [1.0, 0.0]]

    def test_trailing_fields_ignored(self):
        line = INFO_LINE + " ownershipStdev 0.1 0.1 0.1 0.1"
        assert parse_ownership(line, 2) == [[0.5, -0.5], [1.0, 0.0]]

    def test_missing_keyword(self):
        with pytest.raises(KataGoCommandError):
            parse_ownership("info move D4 visits 60 winrate 0.52", 2)

    def test_too_few_values(self):
        with pytest.raises(KataGoCommandError):
            parse_ownership("info move D4 ownership 0.5 0.5", 2)


class TestParseVertexList:
    """Tests for parse_vertex_list."""

    def test_multi_line(self):
        assert parse_vertex_list("D4 E4\nQ16", 19) == [(3, 15), (4, 15), (15, 3)]

    def test_empty(self):
        assert parse_vertex_list("", 19) == []

    def test_bad_vertex(self):
        with pytest.raises(KataGoCommandError):
            parse_vertex_list("D4 Z9", 19)


# --- Position Loading ---


class TestPositionCommands:
    """Tests for the commands that load a grid."""

    def test_stones(self):
        grid = grid_from_rows(["X.", ".O"])
        assert KataGoGTP.position_commands(grid) == [
            "boardsize 2",
            "clear_board",
            "set_position B A2 W B1",
        ]

    def test_empty_board(self):
        assert KataGoGTP.position_commands(create_empty_grid(9)) == ["boardsize 9", "clear_board"]


# --- GTP Responses ---


class TestSendCommand:
    """Tests for send_command against a fake process."""

    def test_success(self, fake_engine):
        fake_engine.process.stdout.readline.side_effect = ["= KataGo\n", "\n"]
        assert fake_engine.send_command("name") == "KataGo"
        fake_engine.process.stdin.write.assert_called_once_with("name\n")

    def test_multi_line_response(self, fake_engine):
        fake_engine.process.stdout.readline.side_effect = ["= D4 E4\n", "Q16\n", "\n"]
        assert fake_engine.send_command("final_status_list dead") == "D4 E4\nQ16"

    def test_error_response(self, fake_engine):
        fake_engine.process.stdout.readline.side_effect = ["? unknown command\n", "\n"]
        with pytest.raises(KataGoCommandError):
            fake_engine.send_command("bogus")

    def test_process_died(self, fake_engine):
        fake_engine.process.stdout.readline.side_effect = [""]
        with pytest.raises(KataGoProcessError):
            fake_engine.send_command("name")

    def test_set_position(self, fake_engine):
        fake_engine.process.stdout.readline.side_effect = ["=\n", "\n"] * 3
        fake_engine.set_position(grid_from_rows(["X.", ".."]))
        sent = [c.args[0] for c in fake_engine.process.stdin.write.call_args_list]
        assert sent == ["boardsize 2\n", "clear_board\n", "set_position B A2\n"]

    def test_dead_stones(self, fake_engine):
        with patch.object(fake_engine, "send_command", return_value="A1 B2") as send:
            assert fake_engine.dead_stones(2) == [Coordinate(0, 1), Coordinate(1, 0)]
        send.assert_called_once_with("final_status_list dead")


# --- Ownership ---


class TestOwnership:
    """Tests for the ownership query."""

    def _run(self, engine, to_play, lines):
        with patch.object(engine, "_ensure_running"), \
                patch.object(engine, "_write") as write, \
                patch.object(engine, "_read_info_lines", return_value=lines), \
                patch.object(engine, "_stop_analysis") as stop:
            result = engine.ownership(to_play, 2)
        return result, write, stop

    def test_black_to_move(self, fake_engine):
        result, write, stop = self._run(fake_engine, StoneColor.BLACK, [INFO_LINE])
        assert result == [[0.5, -0.5], [1.0, 0.0]]
        write.assert_called_once_with("kata-analyze B interval 10 ownership true")
        stop.assert_called_once()

    def test_white_to_move_is_flipped(self, fake_engine):
        """Positive values always mean Black."""
        result, _, _ = self._run(fake_engine, StoneColor.WHITE, [INFO_LINE])
        assert result == [[-0.5, 0.5], [-1.0, 0.0]]

    def test_uses_last_line(self, fake_engine):
        first = INFO_LINE.replace("ownership 0.5 -0.5 1 0", "ownership 0 0 0 0")
        result, _, _ = self._run(fake_engine, StoneColor.BLACK, [first, INFO_LINE])
        assert result == [[0.5, -0.5], [1.0, 0.0]]

    def test_no_output(self, fake_engine):
        with pytest.raises(KataGoCommandError):
            self._run(fake_engine, StoneColor.BLACK, [])


# --- Lifecycle ---


class TestLifecycle:
    """Tests for process startup and shutdown."""

    def test_startup_error(self, katago_config):
        engine = KataGoGTP(katago_config)
        with pytest.raises(KataGoStartupError):
            engine.start()
        assert engine.is_running() is False

    def test_not_running_initially(self, katago_config):
        engine = KataGoGTP(katago_config)
        assert engine.is_running() is False
        assert "stopped" in repr(engine)

    def test_shutdown(self, fake_engine):
        process = fake_engine.process
        fake_engine.shutdown()
        process.stdin.write.assert_called_once_with("quit\n")
        process.wait.assert_called_once()
        assert fake_engine.process is None
        assert fake_engine.is_running() is False

    def test_shutdown_twice(self, fake_engine):
        fake_engine.shutdown()
        fake_engine.shutdown()
        assert fake_engine.process is None
