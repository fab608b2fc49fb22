"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the presentation layer and the
engine. Hidden card faces never leave the server: a card's pair_id is only
present while that card is face-up.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- INVALID_REQUEST: Request is well-formed but cannot be honoured
- STAGE_LOCKED: Requested stage has not been unlocked yet
- VALIDATION_ERROR: Request body failed validation
- INTERNAL_ERROR: Anything else
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    STAGE_LOCKED = "STAGE_LOCKED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ModeName(str, Enum):
    AI = "ai"
    MULTIPLAYER = "multiplayer"
    TIME_ATTACK = "time-attack"
    LIMITED_MOVES = "limited-moves"
    STAGE = "stage"
    ENDLESS = "endless"


class DifficultyName(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class PowerUpName(str, Enum):
    HINT = "hint"
    SHUFFLE = "shuffle"
    EXTRA_TIME = "extra_time"


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Start a new game."""
    mode: ModeName = ModeName.AI
    difficulty: DifficultyName = DifficultyName.MEDIUM
    player_names: list[str] = Field(default_factory=list, max_length=4)
    player_count: int = Field(2, ge=2, le=4, description="Seats in multiplayer mode")
    stage: int = Field(1, ge=1, le=10, description="Starting stage in stage mode")
    theme: Optional[str] = None


class FlipRequest(BaseModel):
    index: int = Field(ge=0, description="Deck position to turn over")


class PreferencesRequest(BaseModel):
    sound_enabled: Optional[bool] = None
    haptics_enabled: Optional[bool] = None


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    index: int
    face_up: bool
    matched: bool
    theme: str
    pair_id: Optional[int] = None
    face: Optional[str] = None

    model_config = {"from_attributes": True}


class PlayerInfo(BaseModel):
    player_id: str
    name: str
    score: int = 0
    matches: int = 0
    combo: int = 0
    is_ai: bool = False
    difficulty: Optional[str] = None
    is_current_turn: bool = False


class AchievementInfo(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    unlocked: bool = False
    times_unlocked: int = 0


class SummaryInfo(BaseModel):
    """Results screen payload."""
    players: list[PlayerInfo]
    total_score: int
    game_time: float
    game_time_display: str
    stars: int = Field(ge=1, le=3)
    won: bool
    perfect_game: bool
    total_moves: int
    best_streak: int
    winner_ids: list[str] = Field(default_factory=list)
    new_achievements: list[AchievementInfo] = Field(default_factory=list)


# =============================================================================
# Responses
# =============================================================================

class BoardResponse(BaseModel):
    """Full board for rendering, plus events since the last call."""
    session_id: str
    status: str
    mode: str
    phase: str
    loop_state: str
    level: int
    rows: int
    cols: int
    cards: list[CardInfo]
    players: list[PlayerInfo]
    current_player_idx: int
    power_ups: dict[str, int]
    countdown: int
    can_flip: bool
    streak: int
    total_moves: int
    events: list[dict[str, Any]] = Field(default_factory=list)
    summary: Optional[SummaryInfo] = None


class PowerUpResponse(BaseModel):
    success: bool
    kind: PowerUpName
    remaining: int
    reason: Optional[str] = None
    revealed: list[int] = Field(default_factory=list)
    board: BoardResponse


class SessionListResponse(BaseModel):
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    success: bool
    session_id: str


class StageInfo(BaseModel):
    stage: int
    rows: int
    cols: int
    pairs: int
    preview_time: int
    difficulty: str
    unlocked: bool


class StageListResponse(BaseModel):
    stages: list[StageInfo]
    unlocked_stages: int


class AchievementListResponse(BaseModel):
    achievements: list[AchievementInfo]
    unlocked: int
    total: int
    percentage: int


class StatsResponse(BaseModel):
    games_played: int
    total_score: int
    best_time: Optional[float] = None
    unlocked_stages: int
    achievements: list[str]
    sound_enabled: bool
    haptics_enabled: bool


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    active_sessions: int


class ErrorResponse(BaseModel):
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None
