"""
API Module - HTTP interface for game clients.

Exposes the engine via REST API. A client:
1. Creates a session (deals a game)
2. Starts it and flips cards
3. Polls the event log for matches, turn switches and timer ticks
4. Saves, restores or ends the session
5. Reads the leaderboard and player profiles

Sessions are in-memory; saved games go to the snapshot store.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    FlipRequest,
    RestoreRequest,
    SubmitScoreRequest,
    UpdatePlayerRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    FlipResponse,
    EventsResponse,
    LeaderboardResponse,
    PlayerProfileResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    PlayerInfo,
    ErrorCode,
)
from .service import APIService, NotFoundError
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "FlipRequest",
    "RestoreRequest",
    "SubmitScoreRequest",
    "UpdatePlayerRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "FlipResponse",
    "EventsResponse",
    "LeaderboardResponse",
    "PlayerProfileResponse",
    "ErrorResponse",
    # Shared
    "CardInfo",
    "PlayerInfo",
    "ErrorCode",
    # Service
    "APIService",
    "NotFoundError",
    "create_app",
]
