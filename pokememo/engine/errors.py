"""
Engine Errors - The error taxonomy surfaced by the game controller.

- ValidationError: bad configuration or malformed request
- StateError: operation invalid in the current lifecycle state
- ResourceError: an asset, persistence, or leaderboard collaborator failed

Validation and state errors are raised synchronously to the caller and are
never retried.
"""

from __future__ import annotations


class GameError(Exception):
    """Base class for all engine errors."""

    code = "GAME_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(GameError):
    """Raised when a game configuration or request is malformed."""

    code = "VALIDATION_ERROR"


class StateError(GameError):
    """Raised when an operation is not allowed in the current game state."""

    code = "STATE_ERROR"


class ResourceError(GameError):
    """Raised when an external collaborator cannot serve a request."""

    code = "RESOURCE_ERROR"
