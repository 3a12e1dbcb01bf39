"""
KataGo GTP (Go Text Protocol) communication module.

Provides a persistent subprocess wrapper for the KataGo engine, used as
the external source of territory (ownership) and dead-stone estimates:
- Long-running process (starts once, reused for many positions)
- Thread-safe command execution
- Graceful shutdown with atexit registration
- Parsers for kata-analyze ownership output and GTP vertex lists
"""

import atexit
import logging
import re
import select
import subprocess
import threading
import time
from typing import List, Optional

from .board import Coordinate, Grid, StoneColor, coords_to_gtp, gtp_to_coords
from .config import KataGoConfig

logger = logging.getLogger(__name__)


# ============================================================================
# Exceptions
# ============================================================================

class KataGoError(Exception):
    """Base exception for KataGo errors."""
    pass


class KataGoStartupError(KataGoError):
    """Raised when KataGo fails to start."""
    pass


class KataGoCommandError(KataGoError):
    """Raised when a GTP command fails or returns unusable output."""
    pass


class KataGoProcessError(KataGoError):
    """Raised when the KataGo process dies unexpectedly."""
    pass


# ============================================================================
# Output Parsers
# ============================================================================

def parse_ownership(line: str, board_size: int) -> List[List[float]]:
    """
    Extract the ownership map from a kata-analyze info line.

    KataGo lists one value per point after the "ownership" keyword,
    starting at the top-left point and going row by row.

    Returns:
        map[y][x] of values in [-1, 1] from the analysed player's view

    Raises:
        KataGoCommandError: If the line has no complete ownership map
    """
    parts = line.split(" ownership ", 1)
    if len(parts) != 2:
        raise KataGoCommandError("kata-analyze output has no ownership data")

    values = []
    for token in parts[1].split():
        try:
            values.append(float(token))
        except ValueError:
            break
        if len(values) == board_size * board_size:
            break

    if len(values) != board_size * board_size:
        raise KataGoCommandError(
            f"Expected {board_size * board_size} ownership values, got {len(values)}"
        )
    return [values[y * board_size:(y + 1) * board_size] for y in range(board_size)]


def parse_vertex_list(response: str, board_size: int) -> List[Coordinate]:
    """
    Parse a whitespace separated GTP vertex list (e.g., "D4 E4\\nQ16").

    Raises:
        KataGoCommandError: If a vertex cannot be parsed
    """
    points = []
    for token in response.split():
        try:
            point = gtp_to_coords(token, board_size)
        except ValueError as e:
            raise KataGoCommandError(f"Bad vertex {token!r} in engine response: {e}")
        if point is not None:
            points.append(point)
    return points


# ============================================================================
# KataGo GTP Wrapper
# ============================================================================

class KataGoGTP:
    """
    Persistent KataGo GTP subprocess wrapper.

    Usage:
        with KataGoGTP(config) as katago:
            katago.set_position(state.grid)
            ownership = katago.ownership(StoneColor.BLACK, state.size)
            dead = katago.dead_stones(state.size)
    """

    def __init__(self, config: KataGoConfig):
        """
        Args:
            config: KataGo configuration with paths to executable, model, and config
        """
        self.config = config
        self.process: Optional[subprocess.Popen] = None
        self.model_name: str = ""
        self._lock = threading.Lock()
        self._started = False
        self._shutdown_registered = False

    def start(self) -> None:
        """
        Start the KataGo subprocess.

        Idempotent: does nothing while the process is alive.

        Raises:
            KataGoStartupError: If KataGo fails to start
        """
        with self._lock:
            if self._started and self.process is not None and self.process.poll() is None:
                return
            self._started = False
            self._do_start()

    def _do_start(self) -> None:
        """Start the process (must hold lock)."""
        cmd = [
            self.config.katago_path,
            "gtp",
            "-model", self.config.model_path,
            "-config", self.config.config_path,
        ]
        logger.info("Starting KataGo: %s", " ".join(cmd))

        try:
            self.process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,  # Ignore stderr to prevent buffer deadlock
                text=True,
                bufsize=1,  # Line buffered
            )
        except FileNotFoundError:
            raise KataGoStartupError(f"KataGo executable not found: {self.config.katago_path}")
        except PermissionError:
            raise KataGoStartupError(f"Permission denied executing: {self.config.katago_path}")
        except OSError as e:
            raise KataGoStartupError(f"Failed to start KataGo: {e}")

        if not self._shutdown_registered:
            atexit.register(self.shutdown)
            self._shutdown_registered = True

        self._started = True

        try:
            self.model_name = self._send_command_internal("name").strip()
        except KataGoError as e:
            logger.warning("Could not read KataGo name: %s", e)
            self.model_name = "unknown"

    def _ensure_running(self) -> None:
        """Start or restart the process if needed (must hold lock)."""
        if not self._started or self.process is None or self.process.poll() is not None:
            self._started = False
            self._do_start()

    def _write(self, cmd: str) -> None:
        if self.process is None or self.process.stdin is None:
            raise KataGoProcessError("KataGo process is not running")
        try:
            self.process.stdin.write(cmd + "\n")
            self.process.stdin.flush()
        except (BrokenPipeError, OSError):
            raise KataGoProcessError("KataGo process died unexpectedly")

    def _send_command_internal(self, cmd: str) -> str:
        """
        Send a GTP command and read its response (lock must be held).

        Returns:
            Response content (without the "= " prefix)

        Raises:
            KataGoCommandError: If the engine answers with an error
            KataGoProcessError: If the process is not running
        """
        if self.process is None or self.process.stdout is None:
            raise KataGoProcessError("KataGo process is not running")

        self._write(cmd)

        # A GTP response ends with an empty line
        response_lines = []
        while True:
            line = self.process.stdout.readline()
            if not line:
                raise KataGoProcessError("KataGo process terminated unexpectedly")
            line = line.rstrip('\n')
            if line == "":
                break
            response_lines.append(line)

        response = "\n".join(response_lines)

        if response.startswith("?"):
            error_msg = response[2:] if len(response) > 2 else "Unknown error"
            raise KataGoCommandError(f"GTP command '{cmd}' failed: {error_msg}")

        if response.startswith("="):
            return response[1:].lstrip()
        return response

    def send_command(self, cmd: str) -> str:
        """
        Send a GTP command to KataGo.

        Thread-safe and auto-starts the process if needed.
        """
        with self._lock:
            self._ensure_running()
            return self._send_command_internal(cmd)

    @staticmethod
    def position_commands(grid: Grid) -> List[str]:
        """GTP commands that load `grid` into the engine."""
        size = len(grid)
        commands = [f"boardsize {size}", "clear_board"]
        stones = [
            f"{color.value} {coords_to_gtp(x, y, size)}"
            for y, row in enumerate(grid)
            for x, color in enumerate(row)
            if color is not StoneColor.EMPTY
        ]
        if stones:
            commands.append("set_position " + " ".join(stones))
        return commands

    def set_position(self, grid: Grid) -> None:
        """Load a position into the engine."""
        with self._lock:
            self._ensure_running()
            for cmd in self.position_commands(grid):
                self._send_command_internal(cmd)

    def _read_info_lines(self, visits: int) -> List[str]:
        """Collect kata-analyze info lines until enough visits or timeout (lock held)."""
        lines: List[str] = []
        deadline = time.time() + self.config.timeout

        while time.time() < deadline:
            readable, _, _ = select.select([self.process.stdout], [], [], 0.2)
            if not readable:
                continue
            line = self.process.stdout.readline()
            if not line:
                raise KataGoProcessError("KataGo process terminated unexpectedly")
            line = line.rstrip('\n')
            if not line.startswith("info "):
                continue
            lines.append(line)
            match = re.search(r'visits\s+(\d+)', line)
            if match and int(match.group(1)) >= visits:
                break

        return lines

    def _stop_analysis(self) -> None:
        """End a running kata-analyze and drain its output (lock held)."""
        self._write("stop")
        while True:
            readable, _, _ = select.select([self.process.stdout], [], [], 0.3)
            if not readable:
                break
            line = self.process.stdout.readline()
            if not line or line.strip() == "":
                break

    def ownership(self, to_play: StoneColor, board_size: int, visits: Optional[int] = None) -> List[List[float]]:
        """
        Ownership estimate for the loaded position, map[y][x].

        KataGo reports ownership from the side to move; values are
        flipped here so that positive always means Black.

        Raises:
            KataGoError: On process failures or missing ownership data
        """
        player = StoneColor(to_play).value
        visits = visits or self.config.visits

        with self._lock:
            self._ensure_running()
            self._write(f"kata-analyze {player} interval 10 ownership true")
            try:
                lines = self._read_info_lines(visits)
            finally:
                self._stop_analysis()

        if not lines:
            raise KataGoCommandError("kata-analyze produced no output before timeout")

        ownership = parse_ownership(lines[-1], board_size)
        if to_play is StoneColor.WHITE:
            ownership = [[-value for value in row] for row in ownership]
        return ownership

    def dead_stones(self, board_size: int) -> List[Coordinate]:
        """Stones the engine considers dead in the loaded position."""
        response = self.send_command("final_status_list dead")
        return parse_vertex_list(response, board_size)

    def is_running(self) -> bool:
        """Check if the KataGo process is running."""
        return (
            self._started
            and self.process is not None
            and self.process.poll() is None
        )

    def shutdown(self) -> None:
        """
        Gracefully shutdown the KataGo process.

        Safe to call multiple times.
        """
        with self._lock:
            if self.process is None:
                return

            try:
                if self.process.poll() is None:
                    try:
                        self._write("quit")
                    except KataGoProcessError:
                        pass  # Process already dead

                    try:
                        self.process.wait(timeout=5)
                    except subprocess.TimeoutExpired:
                        self.process.kill()
                        self.process.wait(timeout=2)
            finally:
                self.process = None
                self._started = False

    def __enter__(self) -> 'KataGoGTP':
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        status = "running" if self.is_running() else "stopped"
        return f"KataGoGTP(status={status}, model={self.model_name})"
