"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions and their controllers
3. Serializes game state and events for clients
4. Fronts the leaderboard, profile and snapshot stores

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
and raises GameError subclasses for the HTTP layer to map.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Callable

from ..assets.base import AssetProvider
from ..assets.pokeapi import PokeApiAssetProvider
from ..config import Settings
from ..engine.controller import GameController
from ..engine.errors import GameError
from ..engine.events import GameEvent
from ..engine.scheduler import AsyncioScheduler, Scheduler
from ..engine.settings import GameSettings
from ..engine.state import DIFFICULTY_CONFIG, Difficulty, GameConfig, GameState, PlayerSetup, TurnResult
from ..services.leaderboard import LeaderboardStore, SubmitScoreRequest as LeaderboardSubmission
from ..services.profiles import ProfileStore, TopScore
from ..services.reporting import ScoreReporter
from ..services.snapshots import (
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    SnapshotStore,
    snapshot_from_dict,
    snapshot_to_dict,
)
from ..session import Session, SessionManager, SessionState
from .schemas import (
    # Requests
    CreateSessionRequest,
    RestoreRequest,
    SubmitScoreRequest,
    UpdatePlayerRequest,
    # Responses
    EndSessionResponse,
    EventInfo,
    EventsResponse,
    FlipResponse,
    GameStateResponse,
    LeaderboardEntryInfo,
    PlayerProfileInfo,
    SaveResponse,
    SessionListResponse,
    SessionResponse,
    # Shared
    CardInfo,
    PlayerInfo,
    # Enums
    ErrorCode,
    FlipResult,
    SessionStatus,
)

logger = logging.getLogger(__name__)


class NotFoundError(GameError):
    """Raised when a session, profile or snapshot does not exist."""

    code = "NOT_FOUND"

    def __init__(self, message: str, error_code: ErrorCode, details: dict | None = None):
        super().__init__(message, details)
        self.error_code = error_code


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService(provider=StaticAssetProvider())

        session = service.create_session(CreateSessionRequest(players=[...]))
        service.start(session.session_id)
        service.flip(session.session_id, 3)
    """
    provider: AssetProvider = field(default_factory=PokeApiAssetProvider)
    settings: GameSettings = field(default_factory=GameSettings)
    scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler
    session_manager: SessionManager = field(default_factory=SessionManager)
    leaderboard: LeaderboardStore = field(default_factory=LeaderboardStore)
    profiles: ProfileStore = field(default_factory=ProfileStore)
    snapshots: SnapshotStore = field(default_factory=InMemorySnapshotStore)
    session_max_age: float | None = 3600.0

    @classmethod
    def from_settings(cls, settings: Settings) -> APIService:
        """Wire a service from process configuration."""
        snapshots: SnapshotStore
        if settings.snapshot_dir:
            snapshots = JsonFileSnapshotStore(settings.snapshot_dir)
        else:
            snapshots = InMemorySnapshotStore()
        return cls(
            provider=PokeApiAssetProvider(
                base_url=settings.pokeapi_url,
                timeout=settings.http_timeout,
                cache_ttl=settings.asset_cache_ttl,
            ),
            settings=settings.game_settings(),
            leaderboard=LeaderboardStore(size=settings.leaderboard_size),
            profiles=ProfileStore(top_scores=settings.profile_top_scores),
            snapshots=snapshots,
            session_max_age=settings.session_max_age,
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def preload(self, theme_id: str) -> None:
        """Warm the asset cache. Blocking; run off the event loop."""
        self.provider.preload(theme_id)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Deal a new game in a new session.

        Finished sessions older than `session_max_age` are dropped
        first. The new session is discarded if dealing fails.
        """
        if self.session_max_age is not None:
            self.session_manager.cleanup_stale_sessions(self.session_max_age)
        session = self._new_session(request.seed)
        config = GameConfig(
            difficulty=request.difficulty,
            players=[PlayerSetup(name=p.name, player_id=p.player_id) for p in request.players],
            theme_id=request.theme_id,
        )
        try:
            session.controller.init_game(config)
        except GameError:
            self.session_manager.end_session(session.session_id, reason="failed")
            raise
        return self._session_to_response(session)

    def restore_session(self, request: RestoreRequest) -> SessionResponse:
        """Resume a saved game in a new session, paused."""
        blob = self.snapshots.load_snapshot(request.key)
        if blob is None:
            raise NotFoundError(f"No saved game under {request.key!r}", ErrorCode.SNAPSHOT_NOT_FOUND)
        state = snapshot_from_dict(blob)

        session = self._new_session(request.seed, snapshot_key=request.key)
        session.controller.restore(state)
        if state.is_game_over:
            session.state = SessionState.GAME_OVER
        elif state.started:
            session.state = SessionState.ACTIVE
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse:
        return self._session_to_response(self._require_session(session_id))

    def list_sessions(self) -> SessionListResponse:
        sessions = self.session_manager.list_active_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    def end_session(self, session_id: str) -> EndSessionResponse:
        success = self.session_manager.end_session(session_id, reason="user_ended")
        return EndSessionResponse(success=success, session_id=session_id)

    def save_session(self, session_id: str) -> SaveResponse:
        """Save the session's game under its session id."""
        session = self._require_session(session_id)
        state = session.controller.get_game_state()
        if state is None:
            raise NotFoundError("Session has no game to save", ErrorCode.SESSION_NOT_FOUND)
        key = session.metadata.get("snapshot_key", session_id)
        self.snapshots.save_snapshot(key, snapshot_to_dict(state))
        logger.info("Session %s saved as %s", session_id, key)
        return SaveResponse(session_id=session_id, key=key)

    # =========================================================================
    # Play
    # =========================================================================

    def start(self, session_id: str) -> GameStateResponse:
        session = self._require_session(session_id)
        session.controller.start_game()
        return self._build_game_state(session)

    def pause(self, session_id: str) -> GameStateResponse:
        session = self._require_session(session_id)
        session.controller.pause_game()
        return self._build_game_state(session)

    def resume(self, session_id: str) -> GameStateResponse:
        session = self._require_session(session_id)
        session.controller.resume_game()
        return self._build_game_state(session)

    def flip(self, session_id: str, card_id: int) -> FlipResponse:
        session = self._require_session(session_id)
        result = session.controller.flip_card(card_id)
        return FlipResponse(
            session_id=session_id,
            result=self._turn_result_to_flip(result),
            game=self._build_game_state(session),
        )

    def get_game_state(self, session_id: str) -> GameStateResponse:
        return self._build_game_state(self._require_session(session_id))

    def get_events(self, session_id: str, since: int = 0) -> EventsResponse:
        session = self._require_session(session_id)
        events = [
            EventInfo(
                seq=recorded.seq,
                type=recorded.event.type.value,
                timestamp=recorded.timestamp,
                payload=event_payload(recorded.event),
            )
            for recorded in session.events_since(since)
        ]
        return EventsResponse(session_id=session_id, events=events, last_seq=session.last_seq)

    # =========================================================================
    # Leaderboard and profiles
    # =========================================================================

    def submit_score(self, request: SubmitScoreRequest) -> str:
        return self.leaderboard.submit(LeaderboardSubmission(
            player_id=request.player_id,
            player_name=request.player_name,
            score=request.score,
            difficulty=request.difficulty,
            total_flips=request.total_flips,
            matches=request.matches,
        ))

    def get_leaderboard(self, limit: int | None = None, difficulty: str | None = None) -> list[LeaderboardEntryInfo]:
        entries = self.leaderboard.top(limit=limit, difficulty=difficulty)
        return [LeaderboardEntryInfo.model_validate(e) for e in entries]

    def get_player(self, player_id: str) -> PlayerProfileInfo:
        profile = self.profiles.get(player_id)
        if profile is None:
            raise NotFoundError("Player profile not found", ErrorCode.PLAYER_NOT_FOUND)
        return PlayerProfileInfo.model_validate(profile)

    def update_player(self, player_id: str, request: UpdatePlayerRequest) -> PlayerProfileInfo:
        top_scores = None
        if request.top_scores is not None:
            top_scores = [
                TopScore(score=s.score, difficulty=s.difficulty, timestamp=s.timestamp)
                for s in request.top_scores
            ]
        profile = self.profiles.update(
            player_id,
            name=request.name,
            total_games_played=request.total_games_played,
            top_scores=top_scores,
            preferences=request.preferences,
        )
        return PlayerProfileInfo.model_validate(profile)

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _new_session(self, seed: int | None, snapshot_key: str | None = None) -> Session:
        controller = GameController(
            self.provider,
            self.scheduler_factory(),
            settings=self.settings,
            rng=random.Random(seed),
        )
        reporter = ScoreReporter(self.leaderboard, profiles=self.profiles, snapshots=self.snapshots)
        session = self.session_manager.create_session(controller, reporter=reporter)
        key = snapshot_key or session.session_id
        session.metadata["snapshot_key"] = key
        reporter.snapshot_key = key
        return session

    def _require_session(self, session_id: str) -> Session:
        session = self.session_manager.get_session(session_id)
        if session is None:
            raise NotFoundError("Session not found", ErrorCode.SESSION_NOT_FOUND, {"session_id": session_id})
        return session

    def _session_to_response(self, session: Session) -> SessionResponse:
        """Convert Session to SessionResponse."""
        state = session.controller.get_game_state()
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus(session.state.value),
            created_at=session.created_at,
            game=self._state_to_response(state, session.controller.is_comparing) if state else None,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        state = session.controller.get_game_state()
        if state is None:
            raise NotFoundError("Session has no game", ErrorCode.SESSION_NOT_FOUND)
        return self._state_to_response(state, session.controller.is_comparing)

    def _state_to_response(self, state: GameState, is_comparing: bool) -> GameStateResponse:
        """Convert GameState to GameStateResponse."""
        layout = DIFFICULTY_CONFIG[Difficulty(state.config.difficulty)]
        return GameStateResponse(
            game_id=state.game_id,
            phase=state.phase.value,
            difficulty=state.config.difficulty,
            theme_id=state.config.theme_id,
            columns=layout.columns,
            rows=layout.rows,
            cards=[card_info(c) for c in state.cards],
            players=[PlayerInfo.model_validate(p) for p in state.players],
            current_player_id=state.current_player.player_id,
            revealed_card_ids=[c.card_id for c in state.revealed_cards],
            time_remaining=state.time_remaining,
            is_paused=state.is_paused,
            is_game_over=state.is_game_over,
            is_comparing=is_comparing,
            winner_ids=[p.player_id for p in state.winners],
        )

    def _turn_result_to_flip(self, result: TurnResult) -> FlipResult:
        return FlipResult(result.value)


def card_info(card) -> CardInfo:
    """Face-down cards keep their identity hidden."""
    if card.is_flipped or card.is_matched:
        return CardInfo.model_validate(card)
    return CardInfo(card_id=card.card_id)


def event_payload(event: GameEvent) -> dict[str, Any]:
    """JSON-safe view of an event payload."""
    return _to_json(event.payload)


def _to_json(value: Any) -> Any:
    if isinstance(value, GameState):
        return {"game_id": value.game_id, "phase": value.phase.value, "time_remaining": value.time_remaining}
    if isinstance(value, BaseException):
        return {"type": type(value).__name__, "message": str(value)}
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_json(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    return value
