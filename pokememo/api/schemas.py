"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a game client and the engine.

Error Codes:
- VALIDATION_ERROR: malformed request or game configuration
- STATE_ERROR: operation not allowed in the game's current phase
- RESOURCE_ERROR: asset provider or storage failure
- SESSION_NOT_FOUND: session does not exist or has ended
- PLAYER_NOT_FOUND: no profile for that player id
- SNAPSHOT_NOT_FOUND: nothing saved under that key
"""

from enum import Enum
from typing import Optional, Any
from pydantic import AliasChoices, BaseModel, Field

from ..engine.state import Difficulty


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    CREATED = "created"
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class FlipResult(str, Enum):
    """Immediate acknowledgment of a flip."""
    FIRST_CARD = "first_card"
    INVALID = "invalid"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    STATE_ERROR = "STATE_ERROR"
    RESOURCE_ERROR = "RESOURCE_ERROR"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    SNAPSHOT_NOT_FOUND = "SNAPSHOT_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A card as the client sees it. Face-down cards hide their identity."""
    card_id: int
    is_flipped: bool = False
    is_matched: bool = False
    asset_key: Optional[int] = None
    name: Optional[str] = None
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}


class PlayerInfo(BaseModel):
    """Player counters for display."""
    player_id: str
    name: str
    total_flips: int = 0
    matches: int = 0
    score: int = 0
    is_active: bool = False

    model_config = {"from_attributes": True}


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    game_id: str
    phase: str = Field(description="initialized, running, paused, game_over")
    difficulty: Difficulty
    theme_id: str
    columns: int
    rows: int
    cards: list[CardInfo] = Field(default_factory=list)
    players: list[PlayerInfo] = Field(default_factory=list)
    current_player_id: Optional[str] = None
    revealed_card_ids: list[int] = Field(default_factory=list)
    time_remaining: int = 0
    is_paused: bool = True
    is_game_over: bool = False
    is_comparing: bool = Field(False, description="A revealed pair is waiting for its comparison")
    winner_ids: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class EventInfo(BaseModel):
    """One logged game event."""
    seq: int
    type: str
    timestamp: float
    payload: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Request Models
# =============================================================================

class PlayerSetupRequest(BaseModel):
    name: str = Field(..., description="Display name, 1-50 characters")
    player_id: Optional[str] = Field(None, description="Profile UUID, generated when omitted")


class CreateSessionRequest(BaseModel):
    """Request to deal a new game."""
    difficulty: Difficulty = Difficulty.EASY
    players: list[PlayerSetupRequest] = Field(..., description="1-4 players in seating order")
    theme_id: str = Field("1", description="Pokemon generation: 1, 2 or 3")
    seed: Optional[int] = Field(None, description="Seed for a reproducible shuffle")


class FlipRequest(BaseModel):
    card_id: int


class RestoreRequest(BaseModel):
    """Resume a saved game in a new session."""
    key: str = Field(..., description="Key the snapshot was saved under")
    seed: Optional[int] = None


class SubmitScoreRequest(BaseModel):
    player_id: str
    player_name: str
    score: int
    difficulty: Difficulty
    total_flips: int
    matches: int


class TopScoreInfo(BaseModel):
    score: int
    difficulty: str
    timestamp: int

    model_config = {"from_attributes": True}


class UpdatePlayerRequest(BaseModel):
    """Partial profile update. At least one field is required."""
    name: Optional[str] = None
    total_games_played: Optional[int] = None
    top_scores: Optional[list[TopScoreInfo]] = None
    preferences: Optional[dict[str, Any]] = Field(
        None, description="Any of dark_mode, favorite_generation, sound_enabled"
    )


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    created_at: float = 0.0
    game: Optional[GameStateResponse] = None
    api_version: str = "v1"


class FlipResponse(BaseModel):
    session_id: str
    result: FlipResult
    game: GameStateResponse


class EventsResponse(BaseModel):
    session_id: str
    events: list[EventInfo] = Field(default_factory=list)
    last_seq: int = 0


class SaveResponse(BaseModel):
    success: bool = True
    session_id: str
    key: str


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class LeaderboardEntryInfo(BaseModel):
    id: str = Field(validation_alias=AliasChoices("id", "entry_id"))
    player_id: str
    player_name: str
    score: int
    difficulty: Difficulty
    timestamp: int
    total_flips: int
    matches: int

    model_config = {"from_attributes": True}


class LeaderboardResponse(BaseModel):
    success: bool = True
    data: list[LeaderboardEntryInfo] = Field(default_factory=list)


class SubmitScoreResponse(BaseModel):
    success: bool = True
    id: str


class PreferencesInfo(BaseModel):
    dark_mode: bool = False
    favorite_generation: int = 1
    sound_enabled: bool = True

    model_config = {"from_attributes": True}


class PlayerProfileInfo(BaseModel):
    id: str = Field(validation_alias=AliasChoices("id", "player_id"))
    name: str
    total_games_played: int = 0
    top_scores: list[TopScoreInfo] = Field(default_factory=list)
    preferences: PreferencesInfo = Field(default_factory=PreferencesInfo)
    created_at: int = 0
    last_played_at: int = 0

    model_config = {"from_attributes": True}


class PlayerProfileResponse(BaseModel):
    success: bool = True
    data: PlayerProfileInfo


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
