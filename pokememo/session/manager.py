"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Client creates a session -> a GameController is dealt a game
2. During play:
   - Client flips cards, pauses, resumes
   - Scheduled effects (comparison, timer) fire on the session's scheduler
   - Every emitted event is appended to the session's event log
3. Game ends -> scores are reported, session stays readable
4. Client deletes the session -> controller destroyed, log dropped

Sessions live in memory only. A game can outlive its session through
an explicit snapshot save.
"""

from __future__ import annotations
import itertools
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from ..engine.controller import GameController
from ..engine.events import GameEvent, GameEventType
from ..services.reporting import ScoreReporter

logger = logging.getLogger(__name__)

DEFAULT_EVENT_LOG_SIZE = 500


class SessionState(Enum):
    """State of a game session."""
    CREATED = "created"  # Dealt, waiting for start
    ACTIVE = "active"  # Game in progress (running or paused)
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # Ended before completion


@dataclass
class RecordedEvent:
    """An event as kept in a session's log."""
    seq: int
    event: GameEvent
    timestamp: float


@dataclass
class Session:
    """
    One game being played.

    Contains:
    - The controller that owns the game state
    - An optional score reporter bound to it
    - A bounded log of emitted events, numbered from 1
    """
    session_id: str
    controller: GameController
    created_at: float

    state: SessionState = SessionState.CREATED
    reporter: ScoreReporter | None = None
    events: deque[RecordedEvent] = field(default_factory=lambda: deque(maxlen=DEFAULT_EVENT_LOG_SIZE))
    metadata: dict[str, Any] = field(default_factory=dict)

    _seq: Any = field(default_factory=lambda: itertools.count(1), repr=False)
    _unsubscribe: Callable[[], None] | None = field(default=None, repr=False)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {SessionState.CREATED, SessionState.ACTIVE}

    @property
    def last_seq(self) -> int:
        return self.events[-1].seq if self.events else 0

    def record(self, event: GameEvent) -> None:
        self.events.append(RecordedEvent(seq=next(self._seq), event=event, timestamp=time.time()))
        if event.type is GameEventType.GAME_RESUMED and self.state is SessionState.CREATED:
            self.state = SessionState.ACTIVE
        elif event.type is GameEventType.GAME_OVER:
            self.state = SessionState.GAME_OVER

    def events_since(self, seq: int = 0) -> list[RecordedEvent]:
        """Logged events with a sequence number greater than `seq`."""
        return [e for e in self.events if e.seq > seq]


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Register sessions around their controllers
    - Track active sessions
    - Tear down ended and stale sessions
    """

    def __init__(self, event_log_size: int = DEFAULT_EVENT_LOG_SIZE):
        self.event_log_size = event_log_size
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        controller: GameController,
        reporter: ScoreReporter | None = None,
        session_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Session:
        """
        Register a new session and start logging its controller's events.

        Attach before calling init_game() so the first stateChange is
        captured.
        """
        session = Session(
            session_id=session_id or str(uuid.uuid4()),
            controller=controller,
            created_at=time.time(),
            reporter=reporter,
            events=deque(maxlen=self.event_log_size),
            metadata=metadata or {},
        )
        session._unsubscribe = controller.events.on_any(session.record)
        if reporter is not None:
            reporter.attach(controller)

        self._sessions[session.session_id] = session
        logger.info("Session %s created", session.session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and clean up.

        Cancels the controller's scheduled effects. Returns False if
        the session did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        if session.state is not SessionState.GAME_OVER:
            session.state = SessionState.ABANDONED
        if session._unsubscribe is not None:
            session._unsubscribe()
        if session.reporter is not None:
            session.reporter.detach()
        session.controller.destroy()
        session.events.clear()

        logger.info("Session %s ended (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[str]:
        return list(self._sessions)

    def cleanup_stale_sessions(self, max_age_seconds: float = 3600) -> int:
        """
        End finished sessions older than max_age.

        Returns the number of sessions removed.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
