"""
SGF (Smart Game Format) main-line reader and writer.

Reads game records with the sgfmill library and replays the main line
through the move engine. Only the main line is followed; variations are
ignored. create_sgf writes a setup position and a main line back out.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sgfmill import sgf

from .board import (
    BoardState,
    Coordinate,
    StoneColor,
    check_on_board,
    coords_to_gtp,
    create_empty_grid,
    validate_board_size,
)
from .rules import IllegalMoveError, apply_move, pass_move

logger = logging.getLogger(__name__)

SgfMove = Tuple[StoneColor, Optional[Coordinate]]

_SGF_COLORS = {"b": StoneColor.BLACK, "w": StoneColor.WHITE}


def _sgf_point_to_coords(point: Tuple[int, int], board_size: int) -> Coordinate:
    """
    Convert an sgfmill point (row, col) to a Coordinate.

    sgfmill counts rows from the bottom; Coordinate counts from the top.
    """
    row, col = point
    return Coordinate(col, board_size - 1 - row)


def _coords_to_sgf_point(point: Tuple[int, int], board_size: int) -> Tuple[int, int]:
    """Inverse of _sgf_point_to_coords."""
    x, y = point
    check_on_board(x, y, board_size)
    return board_size - 1 - y, x


def _first_to_play(root, root_setup: Mapping[Coordinate, StoneColor]) -> StoneColor:
    """
    Side to move before the first main-line move.

    PL wins; otherwise White moves first after handicap stones (HA, or
    a root that only sets up Black stones).
    """
    player = _get_property(root, "PL")
    if player in _SGF_COLORS:
        return _SGF_COLORS[player]
    if _get_property(root, "HA", 0) >= 2:
        return StoneColor.WHITE
    colors = set(root_setup.values())
    if colors == {StoneColor.BLACK}:
        return StoneColor.WHITE
    return StoneColor.BLACK


def _setup_stones(node, board_size: int) -> Dict[Coordinate, StoneColor]:
    """AB / AW / AE properties of a node as a placement mapping."""
    black, white, empty = node.get_setup_stones()
    stones = {}
    for points, color in ((black, StoneColor.BLACK), (white, StoneColor.WHITE), (empty, StoneColor.EMPTY)):
        for point in points:
            stones[_sgf_point_to_coords(point, board_size)] = color
    return stones


def _get_property(node, prop: str, default: Any = None) -> Any:
    try:
        value = node.get(prop)
    except KeyError:
        return default
    return default if value is None else value


def parse_sgf(sgf_content: str) -> Dict[str, Any]:
    """
    Parse an SGF string and extract the main line.

    Args:
        sgf_content: Raw SGF content

    Returns:
        Dictionary containing:
        - board_size: int
        - komi: float
        - setup: List of {Coordinate: StoneColor} per main-line node
          (root first); most records only set up stones in the root
        - moves: List of (color, Coordinate or None for a pass), one
          entry per main-line node, None for nodes without a move
        - to_play: StoneColor to move before the first move
        - metadata: Dict with player names, date, result, etc.

    Raises:
        ValueError: If the SGF cannot be parsed or the size is unsupported
    """
    game = sgf.Sgf_game.from_string(sgf_content)
    root = game.get_root()
    board_size = game.get_size()
    validate_board_size(board_size)

    metadata = {}
    for prop, key in [("PB", "black_player"), ("PW", "white_player"),
                      ("DT", "date"), ("RE", "result"),
                      ("EV", "event"), ("GN", "game_name")]:
        value = _get_property(root, prop)
        if value:
            metadata[key] = value

    setup: List[Dict[Coordinate, StoneColor]] = []
    moves: List[Optional[SgfMove]] = []
    for node in game.get_main_sequence():
        setup.append(_setup_stones(node, board_size) if node.has_setup_stones() else {})

        colour, point = node.get_move()
        if colour is None:
            moves.append(None)
        elif point is None:
            moves.append((_SGF_COLORS[colour], None))
        else:
            moves.append((_SGF_COLORS[colour], _sgf_point_to_coords(point, board_size)))

    return {
        "board_size": board_size,
        "komi": float(_get_property(root, "KM", 0.0)),
        "setup": setup,
        "moves": moves,
        "to_play": _first_to_play(root, setup[0]),
        "metadata": metadata,
    }


def replay_sgf(sgf_content: str) -> List[BoardState]:
    """
    Replay the main line of a game record.

    Returns:
        One BoardState per main-line node, starting with the root
        (empty board plus any setup stones)

    Raises:
        IllegalMoveError: If the record contains an illegal move
        ValueError: If the SGF cannot be parsed
    """
    game = parse_sgf(sgf_content)
    state = BoardState(grid=create_empty_grid(game["board_size"]), to_play=game["to_play"])
    history = []

    move_number = 0
    for setup, move in zip(game["setup"], game["moves"]):
        if setup:
            state = state.with_setup(setup)
        if move is not None:
            move_number += 1
            color, point = move
            if point is None:
                state = pass_move(state, color)
            else:
                result = apply_move(state, point.x, point.y, color)
                if not result.valid:
                    raise IllegalMoveError(
                        f"{color.value} {coords_to_gtp(point.x, point.y, state.size)}", result.reason, move_number
                    )
                state = result.state
        history.append(state)

    logger.debug("Replayed %d moves on %dx%d", move_number, state.size, state.size)
    return history


def load_sgf_file(file_path: str) -> List[BoardState]:
    """
    Load an SGF file from disk and replay its main line.

    Args:
        file_path: Path to the SGF file

    Returns:
        Replayed positions (same as replay_sgf)
    """
    with open(file_path, "rb") as f:
        content = f.read().decode("utf-8", errors="replace")
    return replay_sgf(content)


def create_sgf(
    board_size: int,
    moves: Sequence[SgfMove],
    setup: Optional[Mapping[Tuple[int, int], StoneColor]] = None,
    komi: float = 7.5,
    handicap: int = 0,
    to_play: Optional[StoneColor] = None,
    black_player: str = "Black",
    white_player: str = "White",
    game_name: Optional[str] = None,
) -> str:
    """
    Create an SGF string from a setup position and a main line.

    Args:
        board_size: Board size
        moves: Main-line moves as (color, Coordinate or None for a pass)
        setup: Stones placed in the root node (AB / AW)
        komi: Komi value
        handicap: Number of handicap stones (HA, written when 2 or more)
        to_play: Side to move first (PL), written when given
        black_player: Black player name
        white_player: White player name
        game_name: Name of the game

    Returns:
        SGF formatted string

    Raises:
        ValueError: If the size, a color or a point is invalid
    """
    validate_board_size(board_size)
    game = sgf.Sgf_game(size=board_size)
    root = game.get_root()

    root.set("KM", komi)
    root.set("PB", black_player)
    root.set("PW", white_player)
    if game_name:
        root.set("GN", game_name)
    if handicap >= 2:
        root.set("HA", handicap)
    if to_play is not None:
        root.set("PL", StoneColor.parse(to_play).value.lower())

    if setup:
        black = set()
        white = set()
        for point, color in setup.items():
            target = black if StoneColor.parse(color) is StoneColor.BLACK else white
            target.add(_coords_to_sgf_point(point, board_size))
        root.set_setup_stones(black, white)

    node = root
    for color, point in moves:
        node = node.new_child()
        colour = StoneColor.parse(color).value.lower()
        node.set_move(colour, None if point is None else _coords_to_sgf_point(point, board_size))

    return game.serialise().decode("utf-8")
