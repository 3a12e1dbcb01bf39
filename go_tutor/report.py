"""
Position report assembly.

Combines influence, shape and safety findings for one position into a
report used as grounding context for tutoring commentary. An external
provider is tried first when one is given; any failure there is logged
and replaced by the local heuristic, never raised to the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from .board import BoardState, StoneColor
from .config import AppConfig
from .influence import InfluenceSummary
from .providers import AnalysisProvider, LocalHeuristicProvider
from .safety import SafetyFinding
from .shapes import DEFAULT_PATTERNS, ShapeMatch, ShapePattern, match_shapes

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PositionReport:
    """Analysis of a single position."""
    board_size: int
    influence: InfluenceSummary
    shapes: List[ShapeMatch] = field(default_factory=list)
    safety: List[SafetyFinding] = field(default_factory=list)
    influence_source: str = LocalHeuristicProvider.name
    safety_source: str = LocalHeuristicProvider.name
    safety_threshold: int = 2

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "board_size": self.board_size,
            "influence": self.influence.to_dict(),
            "influence_source": self.influence_source,
            "shapes": [m.to_dict(self.board_size) for m in self.shapes],
            "safety": [f.to_dict(self.board_size) for f in self.safety],
            "safety_source": self.safety_source,
        }


def next_to_play(state: BoardState) -> StoneColor:
    """Side to move, as recorded by the move engine and setup."""
    return StoneColor(state.to_play)


def _with_fallback(
    what: str,
    primary: AnalysisProvider,
    fallback: AnalysisProvider,
    call: Callable[[AnalysisProvider], T],
    accept: Callable[[T], bool] = lambda result: True,
) -> Tuple[T, str]:
    if primary is not fallback:
        try:
            result = call(primary)
        except Exception as e:
            logger.warning("%s from %s failed, using %s: %s", what, primary.name, fallback.name, e)
        else:
            if accept(result):
                return result, primary.name
            logger.info("%s from %s was empty, using %s", what, primary.name, fallback.name)
    return call(fallback), fallback.name


def build_report(
    state: BoardState,
    provider: Optional[AnalysisProvider] = None,
    config: Optional[AppConfig] = None,
    patterns: Sequence[ShapePattern] = DEFAULT_PATTERNS,
) -> PositionReport:
    """
    Analyse a position.

    Args:
        state: Position to analyse
        provider: Preferred source for influence and safety; the local
            heuristic is used when omitted or when it fails
        config: Application config (defaults when omitted)
        patterns: Shape patterns to scan for

    Returns:
        PositionReport
    """
    config = config or AppConfig()
    local = LocalHeuristicProvider(config.analysis)
    provider = provider or local
    grid = state.grid
    to_play = next_to_play(state)

    influence, influence_source = _with_fallback(
        "Influence", provider, local,
        lambda p: p.estimate_influence(grid, to_play),
    )
    safety, safety_source = _with_fallback(
        "Safety", provider, local,
        lambda p: p.assess_safety(grid, to_play),
        accept=lambda findings: len(findings) > 0,
    )

    return PositionReport(
        board_size=state.size,
        influence=influence,
        shapes=match_shapes(grid, patterns),
        safety=safety,
        influence_source=influence_source,
        safety_source=safety_source,
        safety_threshold=config.analysis.safety_threshold,
    )


def format_report(report: PositionReport, limit: int = 6) -> str:
    """
    Render a report as text.

    Args:
        report: Report to render
        limit: Maximum number of lines in the shape and safety sections

    Returns:
        Text with [INFLUENCE & TERRITORY], [SHAPE ANALYSIS] and
        [GROUP SAFETY] sections
    """
    shape_lines = [m.describe(report.board_size) for m in report.shapes[:limit]]
    safety_lines = [f.describe(report.board_size) for f in report.safety[:limit]]

    lines = [
        "[INFLUENCE & TERRITORY]",
        f"- Black Potential Area: {report.influence.black_area} points",
        f"- White Potential Area: {report.influence.white_area} points",
        "",
        "[SHAPE ANALYSIS]",
    ]
    lines.extend(shape_lines or ["- No critical shapes detected."])
    lines.extend(["", "[GROUP SAFETY]"])
    lines.extend(
        safety_lines or [f"- All groups appear stable (>{report.safety_threshold} libs)."]
    )
    return "\n".join(lines)
