"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /api/health                        Health check
    GET    /api/v1/leaderboard                Top scores (?limit=&difficulty=)
    POST   /api/v1/scores                     Submit a score
    GET    /api/v1/players/{id}               Get a player profile
    PUT    /api/v1/players/{id}               Create or update a player profile
    POST   /api/v1/sessions                   Deal a new game
    GET    /api/v1/sessions                   List active sessions
    GET    /api/v1/sessions/{id}              Get session and game state
    DELETE /api/v1/sessions/{id}              End session
    POST   /api/v1/sessions/{id}/start        Start the game
    POST   /api/v1/sessions/{id}/pause        Pause the countdown
    POST   /api/v1/sessions/{id}/resume       Resume (also after a turn hand-off)
    POST   /api/v1/sessions/{id}/flip         Flip a card
    GET    /api/v1/sessions/{id}/events       Event log (?since=N)
    POST   /api/v1/sessions/{id}/save         Save a snapshot
    POST   /api/v1/sessions/restore           Resume a saved game

Game play is event-driven: a flip returns immediately, and the match or
mismatch arrives about a second later in the event log. Clients poll
/events with the last sequence number they have seen.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional
import logging

from ..config import get_settings

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query, Request
        from fastapi.concurrency import run_in_threadpool
        from fastapi.exceptions import RequestValidationError
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from ..engine.errors import GameError, ResourceError, StateError, ValidationError
    from .service import APIService, NotFoundError
    from .schemas import (
        # Request models
        CreateSessionRequest,
        FlipRequest,
        RestoreRequest,
        SubmitScoreRequest,
        UpdatePlayerRequest,
        # Response models
        EndSessionResponse,
        ErrorResponse,
        EventsResponse,
        FlipResponse,
        GameStateResponse,
        HealthResponse,
        LeaderboardResponse,
        PlayerProfileResponse,
        SaveResponse,
        SessionListResponse,
        SessionResponse,
        SubmitScoreResponse,
        # Enums
        ErrorCode,
    )

    settings = get_settings()

    app = FastAPI(
        title="PokeMemo API",
        description="""
Turn-based Pokemon memory matching game.

## Turn Flow

1. `POST /sessions` deals a paused game; `POST /start` begins the countdown
2. `POST /flip` twice; the pair is compared after the reveal delay
3. A match keeps the turn; a mismatch or an expired timer hands the turn
   over and pauses until `POST /resume`

## Error Codes

| Code | Description |
|------|-------------|
| `VALIDATION_ERROR` | Malformed request or configuration |
| `STATE_ERROR` | Not allowed in the game's current phase |
| `RESOURCE_ERROR` | Asset provider or storage failure |
| `SESSION_NOT_FOUND` | Session does not exist |
| `PLAYER_NOT_FOUND` | No profile for that player |
| `SNAPSHOT_NOT_FOUND` | Nothing saved under that key |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    api_service = service or APIService.from_settings(settings)
    app.state.service = api_service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details or None,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(GameError)
    async def handle_game_error(request: Request, exc: GameError) -> JSONResponse:
        if isinstance(exc, NotFoundError):
            return make_error_response(exc.error_code, exc.message, 404, exc.details)
        if isinstance(exc, ValidationError):
            return make_error_response(ErrorCode.VALIDATION_ERROR, exc.message, 400, exc.details)
        if isinstance(exc, StateError):
            return make_error_response(ErrorCode.STATE_ERROR, exc.message, 409, exc.details)
        if isinstance(exc, ResourceError):
            logger.warning("Resource failure on %s: %s", request.url.path, exc.message)
            return make_error_response(ErrorCode.RESOURCE_ERROR, exc.message, 502, exc.details)
        logger.error("Unhandled game error on %s: %s", request.url.path, exc.message)
        return make_error_response(ErrorCode.INTERNAL_ERROR, exc.message, 500, exc.details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request body. Check required fields and values.",
            400,
            {"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]},
        )

    # =========================================================================
    # Leaderboard Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/leaderboard",
        response_model=LeaderboardResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Leaderboard"],
        summary="Top scores, best first",
    )
    async def get_leaderboard(
        limit: Annotated[Optional[int], Query(ge=1, le=100, description="Number of entries")] = None,
        difficulty: Annotated[Optional[str], Query(description="easy, medium or hard")] = None,
    ) -> LeaderboardResponse:
        """Sorted by score, then by submission time (earliest first)."""
        return LeaderboardResponse(data=api_service.get_leaderboard(limit, difficulty))

    @app.post(
        "/api/v1/scores",
        response_model=SubmitScoreResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}},
        tags=["Leaderboard"],
        summary="Submit a completed game's score",
    )
    async def submit_score(request: SubmitScoreRequest) -> SubmitScoreResponse:
        return SubmitScoreResponse(id=api_service.submit_score(request))

    # =========================================================================
    # Player Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/players/{player_id}",
        response_model=PlayerProfileResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Players"],
        summary="Get a player profile",
    )
    async def get_player(player_id: str) -> PlayerProfileResponse:
        return PlayerProfileResponse(data=api_service.get_player(player_id))

    @app.put(
        "/api/v1/players/{player_id}",
        response_model=PlayerProfileResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Players"],
        summary="Create or update a player profile",
    )
    async def update_player(player_id: str, request: UpdatePlayerRequest) -> PlayerProfileResponse:
        """Preferences are merged; omitted fields keep their values."""
        return PlayerProfileResponse(data=api_service.update_player(player_id, request))

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        status_code=201,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid players, difficulty or theme"},
            502: {"model": ErrorResponse, "description": "Asset provider unavailable"},
        },
        tags=["Sessions"],
        summary="Deal a new game",
    )
    async def create_session(request: CreateSessionRequest) -> SessionResponse:
        """
        Deal a new game. The game starts paused; call `/start` to begin.
        """
        # Asset fetching blocks; keep it off the event loop
        await run_in_threadpool(api_service.preload, request.theme_id)
        return api_service.create_session(request)

    @app.post(
        "/api/v1/sessions/restore",
        response_model=SessionResponse,
        status_code=201,
        responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Resume a saved game in a new session",
    )
    async def restore_session(request: RestoreRequest) -> SessionResponse:
        """Restored games are paused; any pair mid-comparison is turned face down."""
        return api_service.restore_session(request)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        return api_service.list_sessions()

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> SessionResponse:
        return api_service.get_session(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a game session and cancel its timers."""
        return api_service.end_session(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/save",
        response_model=SaveResponse,
        responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Save the game for later",
    )
    async def save_session(session_id: str) -> SaveResponse:
        return api_service.save_session(session_id)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/start",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Start the game",
    )
    async def start_game(session_id: str) -> GameStateResponse:
        return api_service.start(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/pause",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Pause the countdown",
    )
    async def pause_game(session_id: str) -> GameStateResponse:
        return api_service.pause(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/resume",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Resume play",
    )
    async def resume_game(session_id: str) -> GameStateResponse:
        return api_service.resume(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/flip",
        response_model=FlipResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Flip a card",
    )
    async def flip_card(session_id: str, request: FlipRequest) -> FlipResponse:
        """
        Returns `first_card` for any accepted flip. The comparison
        outcome is delivered later on the event log.
        """
        return api_service.flip(session_id, request.card_id)

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Get game state",
    )
    async def get_game_state(session_id: str) -> GameStateResponse:
        return api_service.get_game_state(session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/events",
        response_model=EventsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Events emitted since a sequence number",
    )
    async def get_events(
        session_id: str,
        since: Annotated[int, Query(ge=0, description="Last sequence number seen")] = 0,
    ) -> EventsResponse:
        return api_service.get_events(session_id, since)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="pokememo",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "PokeMemo API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/api/health",
        }

    return app


# For running directly: uvicorn pokememo.api.app:app
app = create_app()
