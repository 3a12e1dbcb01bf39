"""
Group and liberty resolution.

Flood fill over 4-connected stones of one color, done with an explicit
stack so board size never turns into call depth.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, NamedTuple, Set, Tuple

from .board import Coordinate, Grid, StoneColor, get_neighbors


class GroupResult(NamedTuple):
    """Outcome of resolve_group."""
    has_liberties: bool
    group: List[Coordinate]     # seed first, then in discovery order


@dataclass(frozen=True)
class Group:
    """A maximal group together with its distinct liberties."""
    color: StoneColor
    stones: Tuple[Coordinate, ...]
    liberties: FrozenSet[Coordinate]

    @property
    def anchor(self) -> Coordinate:
        return self.stones[0]

    @property
    def liberty_count(self) -> int:
        return len(self.liberties)


def resolve_group(grid: Grid, x: int, y: int, color: StoneColor) -> GroupResult:
    """
    Find the maximal group of `color` stones containing (x, y).

    The caller must make sure (x, y) holds a stone of `color`; the
    point is not checked.

    Args:
        grid: Board grid (read only)
        x: Column of the seed stone
        y: Row of the seed stone
        color: Color of the seed stone

    Returns:
        GroupResult(has_liberties, group)
    """
    size = len(grid)
    visited: Set[Coordinate] = set()
    stack = [Coordinate(x, y)]
    group: List[Coordinate] = []
    has_liberties = False

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        group.append(current)

        for n in get_neighbors(current.x, current.y, size):
            stone = grid[n.y][n.x]
            if stone is StoneColor.EMPTY:
                has_liberties = True
            elif stone is color and n not in visited:
                stack.append(n)

    return GroupResult(has_liberties, group)


def get_liberties(grid: Grid, group: Iterable[Coordinate]) -> FrozenSet[Coordinate]:
    """Distinct empty points adjacent to any stone of the group."""
    size = len(grid)
    liberties = set()
    for stone in group:
        for n in get_neighbors(stone.x, stone.y, size):
            if grid[n.y][n.x] is StoneColor.EMPTY:
                liberties.add(n)
    return frozenset(liberties)


def iter_groups(grid: Grid) -> Iterator[Group]:
    """
    Yield every maximal group on the board exactly once.

    Seeds are visited row by row, left to right, so the first group
    yielded is the one containing the top-left-most stone.
    """
    seen: Set[Coordinate] = set()
    for y, row in enumerate(grid):
        for x, color in enumerate(row):
            if color is StoneColor.EMPTY or (x, y) in seen:
                continue
            _, stones = resolve_group(grid, x, y, color)
            seen.update(stones)
            yield Group(
                color=color,
                stones=tuple(stones),
                liberties=get_liberties(grid, stones),
            )
