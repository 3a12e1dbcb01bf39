"""
Unit tests for shapes.py module.

Tests:
- Pattern validation and rotation
- Detection of each built-in pattern, for both colors and rotations
- Deduplication and purity
"""

import pytest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from go_tutor.board import Coordinate, StoneColor, create_empty_grid, grid_from_rows
from go_tutor.shapes import (
    DEFAULT_PATTERNS,
    PatternType,
    ShapeMatch,
    ShapePattern,
    match_shapes,
    rotate_template,
)

EMPTY_TRIANGLE = [p for p in DEFAULT_PATTERNS if p.name == "Empty Triangle"]


class TestShapePattern:
    """Tests for pattern definitions."""

    def test_not_square(self):
        with pytest.raises(ValueError):
            ShapePattern("bad", ("XX", "X"), PatternType.BAD)

    def test_unknown_symbol(self):
        with pytest.raises(ValueError):
            ShapePattern("bad", ("X#", ".."), PatternType.BAD)

    def test_needs_a_stone(self):
        with pytest.raises(ValueError):
            ShapePattern("bad", ("..", "?."), PatternType.BAD)


class TestRotation:
    """Tests for rotate_template."""

    def test_clockwise(self):
        assert rotate_template(("XX", "X.")) == ("XX", ".X")
        assert rotate_template(("ab", "cd")) == ("ca", "db")

    def test_four_rotations_identity(self):
        template = (".X.", "XO.", "XO.")
        rotated = template
        for _ in range(4):
            rotated = rotate_template(rotated)
        assert rotated == template


class TestMatchShapes:
    """Tests for match_shapes."""

    def test_empty_triangle(self):
        """A lone 2x2 black empty triangle gives exactly one finding."""
        grid = grid_from_rows([
            "XX...",
            "X....",
            ".....",
            ".....",
            ".....",
        ])
        matches = match_shapes(grid, EMPTY_TRIANGLE)
        assert matches == [
            ShapeMatch("Empty Triangle", StoneColor.BLACK, Coordinate(0, 0), PatternType.BAD)
        ]

    def test_empty_triangle_with_default_patterns(self):
        grid = grid_from_rows([
            "XX...",
            "X....",
            ".....",
            ".....",
            ".....",
        ])
        matches = match_shapes(grid)
        assert len(matches) == 1
        assert matches[0].pattern_name == "Empty Triangle"
        assert matches[0].color is StoneColor.BLACK

    def test_rotated_white_empty_triangle(self):
        grid = grid_from_rows([
            ".....",
            "...O.",
            "..OO.",
            ".....",
            ".....",
        ])
        matches = match_shapes(grid, EMPTY_TRIANGLE)
        assert len(matches) == 1
        match = matches[0]
        assert match.color is StoneColor.WHITE
        assert match.anchor == Coordinate(3, 1)
        assert match.describe(5) == "BAD: White Empty Triangle at D4"

    def test_filled_square_is_not_empty_triangle(self):
        grid = grid_from_rows([
            "XX...",
            "XX...",
            ".....",
            ".....",
            ".....",
        ])
        assert match_shapes(grid, EMPTY_TRIANGLE) == []

    def test_ponnuki_deduplicated(self):
        """Ponnuki looks the same in every rotation; report it once."""
        grid = grid_from_rows([
            ".X...",
            "X.X..",
            ".X...",
            ".....",
            ".....",
        ])
        matches = match_shapes(grid)
        assert matches == [
            ShapeMatch("Ponnuki", StoneColor.BLACK, Coordinate(1, 0), PatternType.GOOD)
        ]

    def test_ponnuki_needs_empty_corners(self):
        """Stones on the diagonal corners block the match."""
        grid = grid_from_rows([
            "OXO..",
            "X.X..",
            "OXO..",
            ".....",
            ".....",
        ])
        names = [m.pattern_name for m in match_shapes(grid)]
        assert "Ponnuki" not in names

    def test_ponnuki_single_corner_stone(self):
        grid = grid_from_rows([
            ".X...",
            "X.X..",
            ".XX..",
            ".....",
            ".....",
        ])
        names = [m.pattern_name for m in match_shapes(grid)]
        assert "Ponnuki" not in names

    def test_hane_at_head_of_two(self):
        grid = grid_from_rows([
            ".X...",
            "XO...",
            "XO...",
            ".....",
            ".....",
        ])
        matches = match_shapes(grid)
        assert [m.pattern_name for m in matches] == ["Hane at Head of Two"]
        assert matches[0].color is StoneColor.BLACK
        assert matches[0].pattern_type is PatternType.GOOD

    def test_empty_board(self):
        assert match_shapes(create_empty_grid(19)) == []

    def test_pattern_larger_than_board(self):
        grid = grid_from_rows(["X.", ".X"])
        ponnuki = [p for p in DEFAULT_PATTERNS if p.name == "Ponnuki"]
        assert match_shapes(grid, ponnuki) == []

    def test_idempotent(self):
        grid = grid_from_rows([
            "XX.O.",
            "X.OO.",
            ".X...",
            "X.X..",
            ".X...",
        ])
        assert match_shapes(grid) == match_shapes(grid)

    def test_to_dict(self):
        match = ShapeMatch("Ponnuki", StoneColor.WHITE, Coordinate(1, 0), PatternType.GOOD)
        assert match.to_dict(5) == {
            "pattern": "Ponnuki",
            "type": "GOOD",
            "color": "W",
            "anchor": "B5",
        }
