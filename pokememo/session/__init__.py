"""
Session Module - Manages in-memory game sessions.

A session represents one play-through:
- Created when a client deals a game
- Holds the game controller and its event log
- Destroyed when the client ends it

Sessions are EPHEMERAL. Saving a game is an explicit snapshot.
"""

from .manager import SessionManager, Session, SessionState, RecordedEvent

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "RecordedEvent",
]
