"""
Analysis providers: where influence and safety estimates come from.

Two implementations share one interface:
- LocalHeuristicProvider: the built-in heuristics, always available
- KataGoProvider: asks an external KataGo process

select_provider picks one by availability (is an engine configured and
present on disk), never by inspecting what a caller passed in.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Set

from .board import Coordinate, Grid, StoneColor
from .config import AnalysisConfig, AppConfig, KataGoConfig
from .groups import get_liberties, resolve_group
from .influence import InfluenceSummary, estimate_influence
from .katago_gtp import KataGoGTP
from .safety import SafetyFinding, assess_safety

logger = logging.getLogger(__name__)


class AnalysisProvider(ABC):
    """Source of territory and group-safety estimates for a grid."""

    name = "abstract"

    @abstractmethod
    def estimate_influence(self, grid: Grid, to_play: StoneColor = StoneColor.BLACK) -> InfluenceSummary:
        """Count the points leaning towards each side."""

    @abstractmethod
    def assess_safety(self, grid: Grid, to_play: StoneColor = StoneColor.BLACK) -> List[SafetyFinding]:
        """List groups in danger."""

    def close(self) -> None:
        """Release any external resources."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name})"


class LocalHeuristicProvider(AnalysisProvider):
    """Pure in-process heuristics."""

    name = "heuristic"

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    def estimate_influence(self, grid: Grid, to_play: StoneColor = StoneColor.BLACK) -> InfluenceSummary:
        return estimate_influence(
            grid,
            decay=self.config.influence_decay,
            threshold=self.config.influence_threshold,
        )

    def assess_safety(self, grid: Grid, to_play: StoneColor = StoneColor.BLACK) -> List[SafetyFinding]:
        return assess_safety(grid, threshold=self.config.safety_threshold)


class KataGoProvider(AnalysisProvider):
    """
    Estimates backed by a KataGo process.

    Influence counts points whose ownership magnitude reaches the
    configured threshold; safety reports each group KataGo lists as dead.
    Errors propagate as KataGoError so the caller can fall back.
    """

    name = "katago"

    def __init__(
        self,
        katago_config: KataGoConfig,
        analysis_config: Optional[AnalysisConfig] = None,
        engine: Optional[KataGoGTP] = None,
    ):
        self.analysis_config = analysis_config or AnalysisConfig()
        self.engine = engine or KataGoGTP(katago_config)

    def estimate_influence(self, grid: Grid, to_play: StoneColor = StoneColor.BLACK) -> InfluenceSummary:
        self.engine.set_position(grid)
        ownership = self.engine.ownership(to_play, len(grid))

        threshold = self.analysis_config.ownership_threshold
        black_area = 0
        white_area = 0
        for row in ownership:
            for value in row:
                if value >= threshold:
                    black_area += 1
                elif value <= -threshold:
                    white_area += 1
        return InfluenceSummary(black_area, white_area)

    def assess_safety(self, grid: Grid, to_play: StoneColor = StoneColor.BLACK) -> List[SafetyFinding]:
        self.engine.set_position(grid)
        dead = self.engine.dead_stones(len(grid))

        findings = []
        seen: Set[Coordinate] = set()
        for point in dead:
            color = grid[point.y][point.x]
            if color is StoneColor.EMPTY or point in seen:
                continue
            _, stones = resolve_group(grid, point.x, point.y, color)
            seen.update(stones)
            findings.append(SafetyFinding(
                color=color,
                anchor=point,
                liberty_count=len(get_liberties(grid, stones)),
                stones=tuple(stones),
                likely_dead=True,
            ))
        return findings

    def close(self) -> None:
        self.engine.shutdown()


def select_provider(config: Optional[AppConfig] = None) -> AnalysisProvider:
    """
    Choose the analysis provider for this configuration.

    Returns a KataGoProvider when a KataGo executable is configured and
    exists, otherwise a LocalHeuristicProvider.
    """
    config = config or AppConfig()
    if config.katago is not None and config.katago.is_available():
        logger.info("Using KataGo at %s for analysis", config.katago.katago_path)
        return KataGoProvider(config.katago, config.analysis)

    if config.katago is not None:
        logger.warning(
            "KataGo configured but not found at %r; using heuristics",
            config.katago.katago_path,
        )
    return LocalHeuristicProvider(config.analysis)
