"""
Move engine: legality, captures and single-stone ko.

apply_move is a pure transition from one BoardState to the next. Rule
violations come back as an invalid MoveResult carrying the untouched
input state; malformed input (off-board point, EMPTY as the mover)
raises.
"""

import logging
from dataclasses import replace
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .board import (
    BoardState,
    Coordinate,
    StoneColor,
    check_on_board,
    get_neighbors,
    gtp_to_coords,
)
from .groups import resolve_group

logger = logging.getLogger(__name__)

# Rejection reasons
OCCUPIED = "occupied"
KO_VIOLATION = "ko violation"
SUICIDE = "suicide"


class IllegalMoveError(ValueError):
    """Raised when a scripted move sequence contains an illegal move."""

    def __init__(self, move: str, reason: str, move_number: int):
        super().__init__(f"Move {move_number} ({move}) is illegal: {reason}")
        self.move = move
        self.reason = reason
        self.move_number = move_number


class MoveResult(NamedTuple):
    """Result of attempting a move."""
    valid: bool
    state: BoardState
    reason: Optional[str] = None
    captured: Tuple[Coordinate, ...] = ()


def _require_stone_color(color: StoneColor) -> StoneColor:
    color = StoneColor(color)
    if color is StoneColor.EMPTY:
        raise ValueError("A move needs a stone color (BLACK or WHITE), got EMPTY")
    return color


def apply_move(state: BoardState, x: int, y: int, color: StoneColor) -> MoveResult:
    """
    Play a stone and return the resulting position.

    Args:
        state: Position before the move (never modified)
        x: Column of the move
        y: Row of the move (0 = top)
        color: BLACK or WHITE

    Returns:
        MoveResult. On a rule violation `valid` is False, `reason` is one
        of OCCUPIED, KO_VIOLATION, SUICIDE and `state` is the input state.

    Raises:
        InvalidCoordinateError: If (x, y) is off the board
        ValueError: If color is not BLACK or WHITE
    """
    color = _require_stone_color(color)
    size = state.size
    check_on_board(x, y, size)
    point = Coordinate(x, y)

    if state.grid[y][x] is not StoneColor.EMPTY:
        logger.debug("Rejected %s at %s: %s", color.label, point, OCCUPIED)
        return MoveResult(False, state, OCCUPIED)

    if state.ko_point == point:
        logger.debug("Rejected %s at %s: %s", color.label, point, KO_VIOLATION)
        return MoveResult(False, state, KO_VIOLATION)

    # Work on a private copy; published grids stay immutable
    rows = [list(row) for row in state.grid]
    rows[y][x] = color

    opponent = color.opponent
    captured: List[Coordinate] = []
    for n in get_neighbors(x, y, size):
        # An earlier neighbor may already have removed this group
        if rows[n.y][n.x] is not opponent:
            continue
        has_liberties, group = resolve_group(rows, n.x, n.y, opponent)
        if not has_liberties:
            for stone in group:
                rows[stone.y][stone.x] = StoneColor.EMPTY
            captured.extend(group)

    own_has_liberties, own_group = resolve_group(rows, x, y, color)
    if not captured and not own_has_liberties:
        logger.debug("Rejected %s at %s: %s", color.label, point, SUICIDE)
        return MoveResult(False, state, SUICIDE)

    ko_point = None
    if len(captured) == 1 and len(own_group) == 1 and own_has_liberties:
        ko_point = captured[0]

    new_state = BoardState(
        grid=tuple(tuple(row) for row in rows),
        captures=state.captures.add(color, len(captured)),
        last_move=point,
        ko_point=ko_point,
        to_play=color.opponent,
    )
    if captured:
        logger.debug("%s at %s captured %d stone(s)", color.label, point, len(captured))
    return MoveResult(True, new_state, None, tuple(captured))


def pass_move(state: BoardState, color: Optional[StoneColor] = None) -> BoardState:
    """
    Pass the turn.

    A pass is always legal; it lifts the ko restriction and leaves no
    last move on the board.

    Args:
        state: Position before the pass
        color: Side passing (default: the side to move)

    Returns:
        The same grid with the opponent of the passer to move
    """
    passer = _require_stone_color(color) if color is not None else state.to_play
    return replace(state, last_move=None, ko_point=None, to_play=passer.opponent)


def parse_move(move: str, board_size: int) -> Tuple[StoneColor, Optional[Coordinate]]:
    """
    Parse a move string such as "B Q16" or "W pass".

    Returns:
        (color, coordinate) where coordinate is None for a pass

    Raises:
        ValueError: If the string is malformed
    """
    parts = move.strip().split()
    if len(parts) != 2:
        raise ValueError(f"Invalid move format: {move!r}. Expected 'COLOR COORD'")
    color, coord = parts
    return StoneColor.parse(color), gtp_to_coords(coord, board_size)


def play_moves(state: BoardState, moves: Sequence[str]) -> List[BoardState]:
    """
    Play a scripted sequence of moves.

    Args:
        state: Starting position
        moves: Moves in "COLOR COORD" format, e.g., ["B Q16", "W D4", "B pass"]

    Returns:
        List of states, starting with `state` and one entry per move

    Raises:
        IllegalMoveError: If a move breaks the rules
        ValueError: If a move string is malformed
    """
    history = [state]
    for number, move in enumerate(moves, 1):
        color, point = parse_move(move, state.size)
        if point is None:
            state = pass_move(state, color)
        else:
            result = apply_move(state, point.x, point.y, color)
            if not result.valid:
                raise IllegalMoveError(move.strip(), result.reason, number)
            state = result.state
        history.append(state)
    return history
