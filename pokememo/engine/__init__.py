"""
Engine - Deterministic memory-game state management.

The engine is the runtime that:
1. Deals a shuffled deck of pairs
2. Manages GameState and whose turn it is
3. Resolves flipped pairs after a reveal delay
4. Runs the per-turn countdown
5. Scores accuracy and declares the winner
"""

from .state import (
    Card,
    Difficulty,
    DifficultyConfig,
    DIFFICULTY_CONFIG,
    GameConfig,
    GamePhase,
    GameState,
    Player,
    PlayerSetup,
    TurnResult,
)
from .errors import GameError, ValidationError, StateError, ResourceError
from .events import EventBus, GameEvent, GameEventType, PauseReason
from .scheduler import Scheduler, VirtualScheduler, AsyncioScheduler
from .settings import GameSettings
from .scoring import score
from .deck import build_deck, shuffle
from .timer import TurnTimer
from .controller import GameController

__all__ = [
    # State
    "Card",
    "Difficulty",
    "DifficultyConfig",
    "DIFFICULTY_CONFIG",
    "GameConfig",
    "GamePhase",
    "GameState",
    "Player",
    "PlayerSetup",
    "TurnResult",
    # Errors
    "GameError",
    "ValidationError",
    "StateError",
    "ResourceError",
    # Events
    "EventBus",
    "GameEvent",
    "GameEventType",
    "PauseReason",
    # Time
    "Scheduler",
    "VirtualScheduler",
    "AsyncioScheduler",
    "TurnTimer",
    # Rules
    "GameSettings",
    "score",
    "build_deck",
    "shuffle",
    "GameController",
]
