"""
Events - Typed notifications emitted by the game controller.

Every payload carries snapshots (copies), so listeners can keep them
without seeing later mutations and cannot change the game through them.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from .state import Card, GameState, Player

logger = logging.getLogger(__name__)


class GameEventType(str, Enum):
    """Event names on the controller's stream."""
    STATE_CHANGE = "stateChange"
    CARD_FLIPPED = "cardFlipped"
    MATCH = "match"
    MISMATCH = "mismatch"
    TURN_SWITCH = "turnSwitch"
    GAME_OVER = "gameOver"
    TIMER_TICK = "timerTick"
    TIMER_EXPIRED = "timerExpired"
    GAME_PAUSED = "gamePaused"
    GAME_RESUMED = "gameResumed"
    ERROR = "error"


class PauseReason(str, Enum):
    MANUAL = "manual"
    TURN_SWITCH = "turn_switch"


# =============================================================================
# Payloads
# =============================================================================

@dataclass(frozen=True)
class StateChangeEvent:
    state: GameState


@dataclass(frozen=True)
class CardFlippedEvent:
    card: Card
    player: Player


@dataclass(frozen=True)
class MatchEvent:
    """Payload for both match and mismatch."""
    cards: tuple[Card, Card]
    player: Player


@dataclass(frozen=True)
class TurnSwitchEvent:
    from_player: Player
    to_player: Player


@dataclass(frozen=True)
class TimerTickEvent:
    time_remaining: int


@dataclass(frozen=True)
class TimerExpiredEvent:
    player: Player


@dataclass(frozen=True)
class GamePausedEvent:
    reason: PauseReason


@dataclass(frozen=True)
class GameResumedEvent:
    player: Player


@dataclass(frozen=True)
class GameOverEvent:
    """
    Completion notification.

    `winners` has one entry for an outright win and several on a tie.
    `final_scores` is every player, highest score first.
    """
    winners: list[Player] = field(default_factory=list)
    final_scores: list[Player] = field(default_factory=list)

    @property
    def is_tie(self) -> bool:
        return len(self.winners) > 1

    @property
    def winner(self) -> Player | None:
        return self.winners[0] if len(self.winners) == 1 else None


@dataclass(frozen=True)
class ErrorEvent:
    """
    Something failed without stopping the game.

    `stage` is "comparison" or "timer" when a scheduled effect was halted,
    or "listener" when a handler raised; `event_type` then names the event
    it was handling.
    """
    stage: str
    error: Exception
    event_type: GameEventType | None = None


@dataclass(frozen=True)
class GameEvent:
    """An emitted event: its type plus its payload."""
    type: GameEventType
    payload: Any


Handler = Callable[[Any], None]
AnyHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Observable callbacks. Multiple handlers per event.

    Handlers run synchronously, in registration order. A handler that
    raises is logged and reported as an `error` event; the remaining
    handlers still run and the emitter never sees the exception. Failures
    inside `error` handlers are only logged.
    """

    __slots__ = ("_handlers", "_any_handlers")

    def __init__(self):
        self._handlers: dict[GameEventType, list[Handler]] = defaultdict(list)
        self._any_handlers: list[AnyHandler] = []

    def on(self, event_type: GameEventType | str, handler: Handler) -> Callable[[], None]:
        """Subscribe to one event type. Returns an unsubscribe callable."""
        event_type = GameEventType(event_type)
        self._handlers[event_type].append(handler)
        return lambda: self.off(event_type, handler)

    def off(self, event_type: GameEventType | str, handler: Handler) -> None:
        handlers = self._handlers.get(GameEventType(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    def on_any(self, handler: AnyHandler) -> Callable[[], None]:
        """Subscribe to every event, receiving the GameEvent envelope."""
        self._any_handlers.append(handler)

        def unsubscribe():
            if handler in self._any_handlers:
                self._any_handlers.remove(handler)

        return unsubscribe

    def emit(self, event_type: GameEventType, payload: Any) -> None:
        logger.debug("emit %s", event_type.value)
        failures: list[Exception] = []
        for handler in list(self._handlers.get(event_type, [])):
            self._dispatch(event_type, handler, payload, failures)
        if self._any_handlers:
            event = GameEvent(type=event_type, payload=payload)
            for handler in list(self._any_handlers):
                self._dispatch(event_type, handler, event, failures)

        if event_type is not GameEventType.ERROR:
            for error in failures:
                self.emit(GameEventType.ERROR, ErrorEvent(stage="listener", error=error, event_type=event_type))

    def _dispatch(self, event_type: GameEventType, handler: Callable[[Any], None], arg: Any, failures: list[Exception]) -> None:
        try:
            handler(arg)
        except Exception as e:
            logger.exception("Listener for %s failed", event_type.value)
            failures.append(e)

    def clear(self) -> None:
        self._handlers.clear()
        self._any_handlers.clear()
