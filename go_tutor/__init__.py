"""
Go Tutor Engine - rules and positional analysis for Go tutoring.

Owns the board grid, decides move legality (captures, suicide, ko) and
produces influence, shape and group-safety signals for commentary.
"""

__version__ = "0.1.0"

from .board import BoardState, Captures, Coordinate, StoneColor, create_board
from .groups import resolve_group
from .influence import InfluenceSummary, estimate_influence
from .report import PositionReport, build_report, format_report
from .rules import MoveResult, apply_move
from .safety import SafetyFinding, assess_safety
from .shapes import DEFAULT_PATTERNS, ShapeMatch, ShapePattern, match_shapes

__all__ = [
    "BoardState",
    "Captures",
    "Coordinate",
    "StoneColor",
    "create_board",
    "resolve_group",
    "apply_move",
    "MoveResult",
    "estimate_influence",
    "InfluenceSummary",
    "match_shapes",
    "ShapePattern",
    "ShapeMatch",
    "DEFAULT_PATTERNS",
    "assess_safety",
    "SafetyFinding",
    "build_report",
    "format_report",
    "PositionReport",
]
