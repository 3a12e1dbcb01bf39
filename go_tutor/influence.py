"""
Distance-weighted influence (territory) estimate.

Every stone radiates sign * exp(-distance / decay) onto every point;
points whose summed score clears the threshold count as that side's
potential area.
"""

import math
from dataclasses import asdict, dataclass
from typing import Dict, List

from .board import Grid, StoneColor

DEFAULT_DECAY = 2.0
DEFAULT_THRESHOLD = 0.5


@dataclass(frozen=True)
class InfluenceSummary:
    """Number of points leaning towards each side."""
    black_area: int
    white_area: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def influence_map(grid: Grid, decay: float = DEFAULT_DECAY) -> List[List[float]]:
    """
    Compute the raw influence score of every point, map[y][x].

    Positive values favor Black, negative values favor White.
    """
    if decay <= 0:
        raise ValueError(f"Decay must be positive, got {decay}")

    size = len(grid)
    stones = [
        (x, y, color.sign)
        for y, row in enumerate(grid)
        for x, color in enumerate(row)
        if color is not StoneColor.EMPTY
    ]

    scores = [[0.0] * size for _ in range(size)]
    for y in range(size):
        for x in range(size):
            value = 0.0
            for sx, sy, sign in stones:
                value += sign * math.exp(-math.hypot(x - sx, y - sy) / decay)
            scores[y][x] = value
    return scores


def estimate_influence(
    grid: Grid,
    decay: float = DEFAULT_DECAY,
    threshold: float = DEFAULT_THRESHOLD,
) -> InfluenceSummary:
    """
    Count the points each side is estimated to influence.

    Args:
        grid: Board grid (read only)
        decay: Distance decay constant
        threshold: A point belongs to Black above +threshold and to
            White below -threshold

    Returns:
        InfluenceSummary(black_area, white_area)
    """
    black_area = 0
    white_area = 0
    for row in influence_map(grid, decay):
        for value in row:
            if value > threshold:
                black_area += 1
            elif value < -threshold:
                white_area += 1
    return InfluenceSummary(black_area, white_area)
