"""
Board geometry and position data model for the Go tutor engine.

Provides:
- StoneColor / Coordinate / Grid: the value types every analysis consumes
- Captures and BoardState: immutable snapshots of one position in a game
- Text coordinates (columns skip "I", rows numbered from the top down to 1)
- Standard handicap stone placements for 9x9, 13x13, 19x19
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

# Column letters (I is skipped in Go)
GTP_COLUMNS = "ABCDEFGHJKLMNOPQRST"

MIN_BOARD_SIZE = 2
MAX_BOARD_SIZE = len(GTP_COLUMNS)
DEFAULT_BOARD_SIZE = 19


class InvalidCoordinateError(ValueError):
    """Raised when a coordinate lies outside the board."""
    pass


# ============================================================================
# Value Types
# ============================================================================

class StoneColor(str, Enum):
    """Contents of a board point."""
    EMPTY = "E"
    BLACK = "B"
    WHITE = "W"

    @property
    def sign(self) -> int:
        """+1 for Black, -1 for White, 0 for empty."""
        if self is StoneColor.BLACK:
            return 1
        if self is StoneColor.WHITE:
            return -1
        return 0

    @property
    def opponent(self) -> 'StoneColor':
        if self is StoneColor.BLACK:
            return StoneColor.WHITE
        if self is StoneColor.WHITE:
            return StoneColor.BLACK
        raise ValueError("EMPTY has no opponent")

    @property
    def label(self) -> str:
        """Human-readable name ("Black" / "White")."""
        return {"B": "Black", "W": "White", "E": "Empty"}[self.value]

    @property
    def symbol(self) -> str:
        """Character used in text board dumps."""
        return {"B": "X", "W": "O", "E": "."}[self.value]

    @classmethod
    def parse(cls, value: str) -> 'StoneColor':
        """
        Parse a stone color from user input.

        Accepts 'B'/'W' (any case) and 'black'/'white'.

        Raises:
            ValueError: If the value does not name a stone color
        """
        if isinstance(value, cls):
            text = value.value
        else:
            text = str(value).strip().upper()
        if text in ("B", "BLACK"):
            return cls.BLACK
        if text in ("W", "WHITE"):
            return cls.WHITE
        raise ValueError(f"Color must be 'B' or 'W', got {value!r}")


class Coordinate(NamedTuple):
    """A board point: x is the column, y is the row (0 = top row)."""
    x: int
    y: int


# grid[y][x]
Grid = Tuple[Tuple[StoneColor, ...], ...]

_SYMBOL_TO_COLOR = {
    "X": StoneColor.BLACK,
    "O": StoneColor.WHITE,
    ".": StoneColor.EMPTY,
}


# ============================================================================
# Geometry
# ============================================================================

def validate_board_size(size: int) -> None:
    """
    Raises:
        ValueError: If the size is outside the supported range
    """
    if not isinstance(size, int) or not (MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE):
        raise ValueError(
            f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}, got {size}"
        )


def is_on_board(x: int, y: int, size: int) -> bool:
    return 0 <= x < size and 0 <= y < size


def check_on_board(x: int, y: int, size: int) -> None:
    """
    Raises:
        InvalidCoordinateError: If (x, y) is not on a board of this size
    """
    if not is_on_board(x, y, size):
        raise InvalidCoordinateError(
            f"Coordinate ({x}, {y}) out of bounds for {size}x{size}"
        )


def get_neighbors(x: int, y: int, size: int) -> List[Coordinate]:
    """
    Get the orthogonal neighbors of a point that lie on the board.

    Order is left, right, up, down.
    """
    neighbors = []
    if x > 0:
        neighbors.append(Coordinate(x - 1, y))
    if x < size - 1:
        neighbors.append(Coordinate(x + 1, y))
    if y > 0:
        neighbors.append(Coordinate(x, y - 1))
    if y < size - 1:
        neighbors.append(Coordinate(x, y + 1))
    return neighbors


def create_empty_grid(size: int = DEFAULT_BOARD_SIZE) -> Grid:
    """Create a grid of the given size with every point empty."""
    validate_board_size(size)
    row = tuple(StoneColor.EMPTY for _ in range(size))
    return tuple(row for _ in range(size))


def set_stones(grid: Grid, stones: Mapping[Tuple[int, int], StoneColor]) -> Grid:
    """
    Return a new grid with the given points overwritten.

    The input grid is left untouched. No rules are applied (no captures).

    Raises:
        InvalidCoordinateError: If a point lies outside the grid
    """
    size = len(grid)
    rows = [list(row) for row in grid]
    for (x, y), color in stones.items():
        check_on_board(x, y, size)
        rows[y][x] = StoneColor(color)
    return tuple(tuple(row) for row in rows)


def grid_from_rows(rows: Sequence[str]) -> Grid:
    """
    Build a grid from text rows, top row first.

    Uses 'X' for Black, 'O' for White and '.' for empty. Whitespace
    inside a row is ignored, so rows copied from an ASCII dump work.

    Raises:
        ValueError: If the rows do not form a square board or contain
            unknown characters
    """
    cleaned = ["".join(row.split()) for row in rows]
    size = len(cleaned)
    validate_board_size(size)
    grid = []
    for y, row in enumerate(cleaned):
        if len(row) != size:
            raise ValueError(f"Row {y} has {len(row)} points, expected {size}")
        try:
            grid.append(tuple(_SYMBOL_TO_COLOR[ch.upper()] for ch in row))
        except KeyError as e:
            raise ValueError(f"Unknown board symbol {e.args[0]!r} in row {y}")
    return tuple(grid)


def grid_to_rows(grid: Grid) -> List[str]:
    """Inverse of grid_from_rows."""
    return ["".join(color.symbol for color in row) for row in grid]


# ============================================================================
# Coordinate Conversion
# ============================================================================

def coords_to_gtp(x: int, y: int, board_size: int = DEFAULT_BOARD_SIZE) -> str:
    """
    Convert (x, y) coordinates to a text coordinate.

    Columns are A-T without I, left to right. Rows are numbered from
    board_size at the top down to 1 at the bottom.

    Args:
        x: Column index (0-based)
        y: Row index (0-based, 0 = top)
        board_size: Size of the board

    Returns:
        Coordinate string (e.g., "D4")

    Raises:
        InvalidCoordinateError: If the point is off the board
    """
    check_on_board(x, y, board_size)
    return f"{GTP_COLUMNS[x]}{board_size - y}"


def gtp_to_coords(gtp_coord: str, board_size: int = DEFAULT_BOARD_SIZE) -> Optional[Coordinate]:
    """
    Convert a text coordinate (e.g., "Q16") to a Coordinate.

    Args:
        gtp_coord: Coordinate string; "pass" (any case) is accepted
        board_size: Size of the board

    Returns:
        Coordinate, or None for a pass

    Raises:
        ValueError: If the coordinate cannot be parsed
        InvalidCoordinateError: If it is off the board
    """
    if not gtp_coord or len(gtp_coord.strip()) < 2:
        raise ValueError(f"Invalid GTP coordinate: {gtp_coord!r}")

    text = gtp_coord.strip().upper()
    if text == "PASS":
        return None

    col = text[0]
    try:
        row = int(text[1:])
    except ValueError:
        raise ValueError(f"Invalid GTP coordinate: {gtp_coord!r}")

    if col not in GTP_COLUMNS:
        raise ValueError(f"Invalid column letter: {col}")

    x = GTP_COLUMNS.index(col)
    y = board_size - row
    if not is_on_board(x, y, board_size):
        raise InvalidCoordinateError(
            f"Coordinate {gtp_coord} out of bounds for {board_size}x{board_size}"
        )
    return Coordinate(x, y)


def board_to_ascii(grid: Grid) -> str:
    """
    Render a grid as text with coordinate labels on all four sides.

    Example (3x3, Black at A3):
           A B C
         3 X . . 3
         ...
    """
    size = len(grid)
    letters = GTP_COLUMNS[:size]
    header = "   " + "".join(f"{letter} " for letter in letters)

    lines = [header]
    for y, row in enumerate(grid):
        row_num = size - y
        cells = "".join(f"{color.symbol} " for color in row)
        lines.append(f"{row_num:>2} {cells}{row_num}")
    lines.append(header)
    return "\n".join(lines)


# ============================================================================
# Standard Handicap Positions
# ============================================================================

# 19x19 standard handicap positions (star points)
HANDICAP_19x19 = {
    2: ["D4", "Q16"],
    3: ["D4", "Q16", "D16"],
    4: ["D4", "Q16", "D16", "Q4"],
    5: ["D4", "Q16", "D16", "Q4", "K10"],
    6: ["D4", "Q16", "D16", "Q4", "D10", "Q10"],
    7: ["D4", "Q16", "D16", "Q4", "D10", "Q10", "K10"],
    8: ["D4", "Q16", "D16", "Q4", "D10", "Q10", "K4", "K16"],
    9: ["D4", "Q16", "D16", "Q4", "D10", "Q10", "K4", "K16", "K10"],
}

# 13x13 standard handicap positions
HANDICAP_13x13 = {
    2: ["D4", "K10"],
    3: ["D4", "K10", "D10"],
    4: ["D4", "K10", "D10", "K4"],
    5: ["D4", "K10", "D10", "K4", "G7"],
    6: ["D4", "K10", "D10", "K4", "D7", "K7"],
    7: ["D4", "K10", "D10", "K4", "D7", "K7", "G7"],
    8: ["D4", "K10", "D10", "K4", "D7", "K7", "G4", "G10"],
    9: ["D4", "K10", "D10", "K4", "D7", "K7", "G4", "G10", "G7"],
}

# 9x9 standard handicap positions
HANDICAP_9x9 = {
    2: ["C3", "G7"],
    3: ["C3", "G7", "C7"],
    4: ["C3", "G7", "C7", "G3"],
    5: ["C3", "G7", "C7", "G3", "E5"],
    6: ["C3", "G7", "C7", "G3", "C5", "G5"],
    7: ["C3", "G7", "C7", "G3", "C5", "G5", "E5"],
    8: ["C3", "G7", "C7", "G3", "C5", "G5", "E3", "E7"],
    9: ["C3", "G7", "C7", "G3", "C5", "G5", "E3", "E7", "E5"],
}

_HANDICAP_TABLES = {19: HANDICAP_19x19, 13: HANDICAP_13x13, 9: HANDICAP_9x9}


def get_handicap_positions(board_size: int, handicap: int) -> List[str]:
    """
    Get standard handicap stone positions for a given board size.

    Args:
        board_size: Size of the board (9, 13, or 19)
        handicap: Number of handicap stones (2-9)

    Returns:
        List of text coordinates for handicap stones (e.g., ["D4", "Q16"])

    Raises:
        ValueError: If board_size or handicap is invalid
    """
    if handicap < 2:
        return []

    if handicap > 9:
        raise ValueError(f"Handicap must be 2-9, got {handicap}")

    table = _HANDICAP_TABLES.get(board_size)
    if table is None:
        raise ValueError(f"Handicap needs board size 9, 13, or 19, got {board_size}")

    return list(table[handicap])


# ============================================================================
# Board State
# ============================================================================

@dataclass(frozen=True)
class Captures:
    """Cumulative number of stones each side has captured."""
    black: int = 0
    white: int = 0

    def __getitem__(self, color: StoneColor) -> int:
        if color is StoneColor.BLACK:
            return self.black
        if color is StoneColor.WHITE:
            return self.white
        raise KeyError(color)

    def add(self, color: StoneColor, count: int) -> 'Captures':
        """Return new counts with `count` stones credited to `color`."""
        if count < 0:
            raise ValueError(f"Capture count must be non-negative, got {count}")
        if color is StoneColor.BLACK:
            return Captures(self.black + count, self.white)
        if color is StoneColor.WHITE:
            return Captures(self.black, self.white + count)
        raise ValueError("Only Black or White can capture")

    def to_dict(self) -> Dict[str, int]:
        return {"B": self.black, "W": self.white}


@dataclass(frozen=True)
class BoardState:
    """
    One position in a game's history.

    Instances are never mutated: applying a move produces a new
    BoardState and the caller keeps whichever states it needs
    (history and undo are the caller's business).

    Attributes:
        grid: Immutable grid, grid[y][x]
        captures: Stones captured so far by each side
        last_move: Point of the most recent move, if any
        ko_point: Point where immediate recapture is forbidden for the
            next move, if any
        to_play: Side to move next
    """
    grid: Grid
    captures: Captures = field(default_factory=Captures)
    last_move: Optional[Coordinate] = None
    ko_point: Optional[Coordinate] = None
    to_play: StoneColor = StoneColor.BLACK

    def __post_init__(self):
        """Validate board state after initialization."""
        validate_board_size(len(self.grid))
        if any(len(row) != len(self.grid) for row in self.grid):
            raise ValueError("Grid must be square")
        if StoneColor(self.to_play) is StoneColor.EMPTY:
            raise ValueError("to_play must be BLACK or WHITE")
        if self.last_move is not None:
            check_on_board(self.last_move[0], self.last_move[1], len(self.grid))
        if self.ko_point is not None:
            x, y = self.ko_point
            check_on_board(x, y, len(self.grid))
            if self.grid[y][x] is not StoneColor.EMPTY:
                raise ValueError(f"Ko point {tuple(self.ko_point)} is not empty")

    @classmethod
    def empty(cls, size: int = DEFAULT_BOARD_SIZE) -> 'BoardState':
        """The initial state: an empty board with no captures."""
        return cls(grid=create_empty_grid(size))

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> 'BoardState':
        """Build a state from text rows (see grid_from_rows)."""
        return cls(grid=grid_from_rows(rows))

    @property
    def size(self) -> int:
        return len(self.grid)

    def stone_at(self, x: int, y: int) -> StoneColor:
        check_on_board(x, y, self.size)
        return self.grid[y][x]

    def stones(self) -> Dict[Coordinate, StoneColor]:
        """All occupied points as {Coordinate: color}."""
        return {
            Coordinate(x, y): color
            for y, row in enumerate(self.grid)
            for x, color in enumerate(row)
            if color is not StoneColor.EMPTY
        }

    def with_setup(
        self,
        stones: Mapping[Tuple[int, int], StoneColor],
        to_play: Optional[StoneColor] = None,
    ) -> 'BoardState':
        """
        Place setup stones (handicap, SGF AB/AW) without applying rules.

        Clears the ko point, since the position is no longer the direct
        result of a capture. The side to move is kept unless given.
        """
        return replace(
            self,
            grid=set_stones(self.grid, stones),
            ko_point=None,
            to_play=to_play or self.to_play,
        )

    def to_ascii(self) -> str:
        return board_to_ascii(self.grid)

    def __repr__(self) -> str:
        return (
            f"BoardState(size={self.size}, "
            f"stones={len(self.stones())}, "
            f"captures={self.captures.to_dict()}, "
            f"last_move={tuple(self.last_move) if self.last_move else None}, "
            f"ko={tuple(self.ko_point) if self.ko_point else None}, "
            f"to_play={self.to_play.value})"
        )


def create_board(
    size: int = DEFAULT_BOARD_SIZE,
    handicap: int = 0,
    moves: Optional[Iterable[str]] = None,
) -> BoardState:
    """
    Factory function to create a BoardState with optional setup.

    Args:
        size: Board size
        handicap: Number of handicap stones (0-9, needs size 9, 13 or 19)
        moves: Moves in "COLOR COORD" format, e.g., ["B Q16", "W D4"]

    Returns:
        The position after handicap placement and all moves

    Raises:
        ValueError: For invalid sizes, handicaps or move strings
        IllegalMoveError: If a move breaks the rules
    """
    state = BoardState.empty(size)

    if handicap >= 2:
        positions = get_handicap_positions(size, handicap)
        # White moves first after handicap stones
        state = state.with_setup(
            {gtp_to_coords(coord, size): StoneColor.BLACK for coord in positions},
            to_play=StoneColor.WHITE,
        )

    if moves:
        # rules imports this module; import lazily to avoid the cycle
        from .rules import play_moves
        history = play_moves(state, list(moves))
        state = history[-1]

    return state
