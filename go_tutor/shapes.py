"""
Rotation-invariant shape detection.

Patterns are small square templates written as text rows:

    X  stone of interest (the color the match is reported for)
    O  stone of the other color
    .  empty point
    ?  anything

Each pattern is tried for both colors and all four rotations at every
offset where it fits. Brute force is fine at this scale (templates up
to 3x3, boards up to 19x19).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .board import Coordinate, Grid, StoneColor, coords_to_gtp

STONE = "X"
OTHER = "O"
EMPTY = "."
WILDCARD = "?"

_ALPHABET = {STONE, OTHER, EMPTY, WILDCARD}

Template = Tuple[str, ...]


class PatternType(str, Enum):
    GOOD = "GOOD"
    BAD = "BAD"


@dataclass(frozen=True)
class ShapePattern:
    """A named square template tagged as good or bad shape."""
    name: str
    template: Template
    pattern_type: PatternType

    def __post_init__(self):
        size = len(self.template)
        if size == 0:
            raise ValueError(f"Pattern {self.name!r} is empty")
        for row in self.template:
            if len(row) != size:
                raise ValueError(f"Pattern {self.name!r} is not square")
            unknown = set(row) - _ALPHABET
            if unknown:
                raise ValueError(f"Pattern {self.name!r} uses unknown symbols {sorted(unknown)}")
        if not any(ch in (STONE, OTHER) for row in self.template for ch in row):
            raise ValueError(f"Pattern {self.name!r} has no stones")

    @property
    def size(self) -> int:
        return len(self.template)


@dataclass(frozen=True)
class ShapeMatch:
    """A pattern found on the board."""
    pattern_name: str
    color: StoneColor
    anchor: Coordinate
    pattern_type: PatternType

    def describe(self, board_size: int) -> str:
        """e.g. "BAD: Black Empty Triangle at C3"."""
        point = coords_to_gtp(self.anchor.x, self.anchor.y, board_size)
        return f"{self.pattern_type.value}: {self.color.label} {self.pattern_name} at {point}"

    def to_dict(self, board_size: int) -> Dict[str, object]:
        return {
            "pattern": self.pattern_name,
            "type": self.pattern_type.value,
            "color": self.color.value,
            "anchor": coords_to_gtp(self.anchor.x, self.anchor.y, board_size),
        }


DEFAULT_PATTERNS: Tuple[ShapePattern, ...] = (
    ShapePattern(
        name="Empty Triangle",
        template=("XX",
                  "X."),
        pattern_type=PatternType.BAD,
    ),
    ShapePattern(
        name="Ponnuki",
        template=(".X.",
                  "X.X",
                  ".X."),
        pattern_type=PatternType.GOOD,
    ),
    ShapePattern(
        name="Hane at Head of Two",
        template=(".X.",
                  "XO.",
                  "XO."),
        pattern_type=PatternType.GOOD,
    ),
)


def rotate_template(template: Sequence[str]) -> Template:
    """Rotate a square template 90 degrees clockwise."""
    n = len(template)
    return tuple(
        "".join(template[n - 1 - r][c] for r in range(n))
        for c in range(n)
    )


def _rotations(template: Template) -> List[Template]:
    rotations = [template]
    for _ in range(3):
        rotations.append(rotate_template(rotations[-1]))
    return rotations


def _assign_color(template: Template, color: StoneColor) -> List[List[Optional[int]]]:
    """Turn a template into expected signs; None marks a wildcard."""
    values = {STONE: color.sign, OTHER: -color.sign, EMPTY: 0, WILDCARD: None}
    return [[values[ch] for ch in row] for row in template]


def _anchor_offset(template: Template) -> Tuple[int, int]:
    """First stone cell of the template, row by row."""
    for py, row in enumerate(template):
        for px, ch in enumerate(row):
            if ch in (STONE, OTHER):
                return px, py
    raise ValueError("Template has no stones")


def _matches_at(signs: List[List[int]], expected: List[List[Optional[int]]], x: int, y: int) -> bool:
    for py, row in enumerate(expected):
        board_row = signs[y + py]
        for px, value in enumerate(row):
            if value is not None and board_row[x + px] != value:
                return False
    return True


def match_shapes(
    grid: Grid,
    patterns: Sequence[ShapePattern] = DEFAULT_PATTERNS,
) -> List[ShapeMatch]:
    """
    Find every occurrence of the given patterns.

    Args:
        grid: Board grid (read only)
        patterns: Patterns to look for

    Returns:
        Matches in scan order (pattern, Black before White, rotation,
        row, column), without duplicates of the same
        (pattern, color, anchor)
    """
    size = len(grid)
    signs = [[color.sign for color in row] for row in grid]
    found: List[ShapeMatch] = []
    seen = set()

    for pattern in patterns:
        n = pattern.size
        if n > size:
            continue
        for color in (StoneColor.BLACK, StoneColor.WHITE):
            for template in _rotations(pattern.template):
                expected = _assign_color(template, color)
                ax, ay = _anchor_offset(template)
                for y in range(size - n + 1):
                    for x in range(size - n + 1):
                        if not _matches_at(signs, expected, x, y):
                            continue
                        anchor = Coordinate(x + ax, y + ay)
                        key = (pattern.name, color, anchor)
                        if key in seen:
                            continue
                        seen.add(key)
                        found.append(ShapeMatch(pattern.name, color, anchor, pattern.pattern_type))
    return found
