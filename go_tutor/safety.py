"""
Group safety heuristic: flag groups that are short of liberties.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .board import Coordinate, Grid, StoneColor, coords_to_gtp
from .groups import iter_groups

DEFAULT_LIBERTY_THRESHOLD = 2


@dataclass(frozen=True)
class SafetyFinding:
    """A group in danger."""
    color: StoneColor
    anchor: Coordinate
    liberty_count: int
    stones: Tuple[Coordinate, ...] = ()
    likely_dead: bool = False   # reported dead by an external engine

    def describe(self, board_size: int) -> str:
        point = coords_to_gtp(self.anchor.x, self.anchor.y, board_size)
        if self.likely_dead:
            return f"DANGER: Weak group near {point}."
        return (
            f"DANGER: {self.color.label} group at {point} "
            f"has only {self.liberty_count} liberties."
        )

    def to_dict(self, board_size: int) -> Dict[str, object]:
        return {
            "color": self.color.value,
            "anchor": coords_to_gtp(self.anchor.x, self.anchor.y, board_size),
            "liberty_count": self.liberty_count,
            "stones": len(self.stones),
            "likely_dead": self.likely_dead,
        }


def assess_safety(grid: Grid, threshold: Optional[int] = None) -> List[SafetyFinding]:
    """
    Report every group with at most `threshold` liberties.

    Args:
        grid: Board grid (read only)
        threshold: Liberty count at or below which a group is flagged
            (default DEFAULT_LIBERTY_THRESHOLD)

    Returns:
        One finding per flagged group, in row-major order of each
        group's first stone
    """
    if threshold is None:
        threshold = DEFAULT_LIBERTY_THRESHOLD

    return [
        SafetyFinding(
            color=group.color,
            anchor=group.anchor,
            liberty_count=group.liberty_count,
            stones=group.stones,
        )
        for group in iter_groups(grid)
        if group.liberty_count <= threshold
    ]
