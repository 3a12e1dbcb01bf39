"""
FastAPI REST API for the Go tutor engine.

Exposes move application and position analysis over HTTP for the board
UI and the commentary builder.

Usage:
    # Start the server
    uvicorn go_tutor.api:app --host 0.0.0.0 --port 8000 --reload

    # Or run directly
    python -m go_tutor.api
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .board import BoardState, Captures, Coordinate, StoneColor, grid_from_rows, grid_to_rows
from .config import AppConfig, load_config
from .providers import AnalysisProvider, select_provider
from .report import build_report, format_report
from .rules import apply_move

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models (OpenAPI Schema)
# ============================================================================

class PointModel(BaseModel):
    """A board point, x = column, y = row (0 = top)."""
    x: int = Field(..., ge=0, description="Column index (0-based)")
    y: int = Field(..., ge=0, description="Row index (0-based, 0 = top row)")


class CapturesModel(BaseModel):
    black: int = Field(default=0, ge=0, description="Stones captured by Black")
    white: int = Field(default=0, ge=0, description="Stones captured by White")


class BoardStateModel(BaseModel):
    """A position. Rows use 'X' for Black, 'O' for White, '.' for empty."""
    rows: List[str] = Field(..., min_length=2, description="Board rows, top row first")
    captures: CapturesModel = Field(default_factory=CapturesModel)
    last_move: Optional[PointModel] = None
    ko_point: Optional[PointModel] = None
    to_play: str = Field(default="B", description="Side to move, 'B' or 'W'")

    model_config = {
        "json_schema_extra": {
            "example": {
                "rows": [".....", ".XO..", "..X..", ".....", "....."],
                "captures": {"black": 0, "white": 0},
                "last_move": {"x": 2, "y": 2},
                "ko_point": None,
                "to_play": "W",
            }
        }
    }

    def to_state(self) -> BoardState:
        """
        Raises:
            ValueError: If the rows, points or side to move do not
                describe a valid position
        """
        return BoardState(
            grid=grid_from_rows(self.rows),
            captures=Captures(self.captures.black, self.captures.white),
            last_move=Coordinate(self.last_move.x, self.last_move.y) if self.last_move else None,
            ko_point=Coordinate(self.ko_point.x, self.ko_point.y) if self.ko_point else None,
            to_play=StoneColor.parse(self.to_play),
        )

    @classmethod
    def from_state(cls, state: BoardState) -> 'BoardStateModel':
        return cls(
            rows=grid_to_rows(state.grid),
            captures=CapturesModel(black=state.captures.black, white=state.captures.white),
            last_move=PointModel(x=state.last_move.x, y=state.last_move.y) if state.last_move else None,
            ko_point=PointModel(x=state.ko_point.x, y=state.ko_point.y) if state.ko_point else None,
            to_play=state.to_play.value,
        )


class MoveRequest(BaseModel):
    """Request body for /move."""
    state: BoardStateModel
    x: int = Field(..., description="Column of the move")
    y: int = Field(..., description="Row of the move (0 = top)")
    color: str = Field(..., description="'B' or 'W'")


class MoveResponse(BaseModel):
    valid: bool = Field(..., description="Whether the move was legal")
    reason: Optional[str] = Field(None, description="'occupied', 'ko violation' or 'suicide'")
    state: BoardStateModel = Field(..., description="Resulting (or unchanged) position")
    captured: List[PointModel] = Field(default_factory=list, description="Stones removed")


class AnalyzeRequest(BaseModel):
    """Request body for /analyze."""
    state: BoardStateModel


class InfluenceModel(BaseModel):
    black_area: int
    white_area: int


class ShapeModel(BaseModel):
    pattern: str
    type: str
    color: str
    anchor: str = Field(..., description="Text coordinate, e.g. 'C3'")


class SafetyModel(BaseModel):
    color: str
    anchor: str
    liberty_count: int
    stones: int
    likely_dead: bool


class AnalyzeResponse(BaseModel):
    influence: InfluenceModel
    influence_source: str
    shapes: List[ShapeModel]
    safety: List[SafetyModel]
    safety_source: str
    text: str = Field(..., description="Report formatted for prompt context")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service status")
    provider: str = Field(..., description="Analysis provider in use")


# ============================================================================
# Application State
# ============================================================================

class AppState:
    """Application state container."""
    config: Optional[AppConfig] = None
    provider: Optional[AnalysisProvider] = None


state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup/shutdown)."""
    state.config = load_config()
    state.provider = select_provider(state.config)
    logger.info("Go tutor API started with %s provider", state.provider.name)

    yield

    if state.provider is not None:
        state.provider.close()
    logger.info("Go tutor API stopped")


app = FastAPI(
    title="Go Tutor Engine API",
    description="""
Rules and positional analysis for Go (Weiqi/Baduk) tutoring.

## Usage
1. Use `/move` to apply a move to a position (legality, captures, ko)
2. Use `/analyze` to get influence, shape and group-safety findings
3. Use `/health` to check service status
    """,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"], summary="Health check")
async def health_check():
    """Return service health status."""
    return HealthResponse(
        status="ok",
        provider=state.provider.name if state.provider else "heuristic",
    )


@app.post(
    "/move",
    response_model=MoveResponse,
    tags=["Rules"],
    summary="Apply a move",
    description="""
Play a stone on the given position.

Rule violations (occupied point, ko, suicide) are not errors: the
response has `valid=false`, a `reason`, and the unchanged position.
Off-board points and unknown colors are rejected with HTTP 400.
    """,
)
async def play(request: MoveRequest):
    """Apply a move to a position."""
    try:
        board = request.state.to_state()
        color = StoneColor.parse(request.color)
        result = apply_move(board, request.x, request.y, color)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return MoveResponse(
        valid=result.valid,
        reason=result.reason,
        state=BoardStateModel.from_state(result.state),
        captured=[PointModel(x=p.x, y=p.y) for p in result.captured],
    )


@app.post("/analyze", response_model=AnalyzeResponse, tags=["Analysis"], summary="Analyse a position")
async def analyze(request: AnalyzeRequest):
    """Influence, shapes and group safety for a position."""
    try:
        board = request.state.to_state()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    config = state.config or AppConfig()
    report = build_report(board, provider=state.provider, config=config)
    data = report.to_dict()
    return AnalyzeResponse(
        influence=InfluenceModel(**data["influence"]),
        influence_source=data["influence_source"],
        shapes=[ShapeModel(**s) for s in data["shapes"]],
        safety=[SafetyModel(**f) for f in data["safety"]],
        safety_source=data["safety_source"],
        text=format_report(report, limit=config.analysis.report_limit),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "go_tutor.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
