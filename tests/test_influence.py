"""
Unit tests for influence.py module.
"""

import math
import pytest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from go_tutor.board import create_empty_grid, grid_from_rows
from go_tutor.influence import InfluenceSummary, estimate_influence, influence_map


class TestEstimateInfluence:
    """Tests for estimate_influence."""

    def test_empty_board(self):
        assert estimate_influence(create_empty_grid(19)) == InfluenceSummary(0, 0)

    def test_single_black_stone(self):
        """Only the stone and its four neighbors clear the 0.5 threshold."""
        grid = grid_from_rows([
            ".....",
            ".....",
            "..X..",
            ".....",
            ".....",
        ])
        assert estimate_influence(grid) == InfluenceSummary(black_area=5, white_area=0)

    def test_single_white_stone(self):
        grid = grid_from_rows([
            ".....",
            ".....",
            "..O..",
            ".....",
            ".....",
        ])
        assert estimate_influence(grid) == InfluenceSummary(black_area=0, white_area=5)

    def test_mirrored_position_is_balanced(self):
        grid = grid_from_rows([
            ".....",
            ".....",
            "X...O",
            ".....",
            ".....",
        ])
        summary = estimate_influence(grid)
        assert summary.black_area == summary.white_area
        assert summary.black_area > 0

    def test_lower_threshold_counts_more(self):
        grid = grid_from_rows([
            ".....",
            ".....",
            "..X..",
            ".....",
            ".....",
        ])
        assert estimate_influence(grid, threshold=0.1).black_area > 5

    def test_invalid_decay(self):
        with pytest.raises(ValueError):
            estimate_influence(create_empty_grid(5), decay=0)

    def test_to_dict(self):
        assert InfluenceSummary(3, 4).to_dict() == {"black_area": 3, "white_area": 4}


class TestInfluenceMap:
    """Tests for the raw score map."""

    def test_values(self):
        grid = grid_from_rows(["X..", "...", "..O"])
        scores = influence_map(grid)
        # Center is equidistant from both stones
        assert scores[1][1] == pytest.approx(0.0)
        assert scores[0][0] == pytest.approx(1.0 - math.exp(-math.hypot(2, 2) / 2.0))
        assert scores[2][2] == pytest.approx(-scores[0][0])

    def test_input_not_modified(self):
        grid = grid_from_rows(["X..", "...", "..O"])
        influence_map(grid)
        assert grid == grid_from_rows(["X..", "...", "..O"])
