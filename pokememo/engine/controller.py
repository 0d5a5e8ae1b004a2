"""
GameController - The central orchestrator of a memory game.

Coordinates: deck builder, turn timer, match resolver, turn sequencer,
scoring. Emits events on an EventBus so presentation, persistence and
leaderboard code can subscribe.

Lifecycle:
    UNINITIALIZED -> INITIALIZED (paused) -> RUNNING <-> PAUSED -> GAME_OVER

All public methods are synchronous and must be called from one thread.
The only deferred work is the comparison delay and the timer tick, both
scheduled on the injected Scheduler.
"""

from __future__ import annotations
import logging
import random
import time
import uuid
from dataclasses import replace
from typing import Any, Callable

from ..assets.base import AssetProvider
from . import turns
from .deck import build_deck, difficulty_config
from .errors import StateError, ValidationError
from .events import (
    CardFlippedEvent,
    ErrorEvent,
    EventBus,
    GameEventType,
    GameOverEvent,
    GamePausedEvent,
    GameResumedEvent,
    MatchEvent,
    PauseReason,
    StateChangeEvent,
    TimerExpiredEvent,
    TimerTickEvent,
    TurnSwitchEvent,
)
from .resolver import MatchOutcome, MatchResolver, PendingComparison, resolve_pair
from .scheduler import Scheduler
from .scoring import rank_players, recalculate_scores, winners_of
from .settings import GameSettings
from .state import (
    GameConfig,
    GamePhase,
    GameState,
    Player,
    PlayerSetup,
    TurnResult,
)
from .timer import TurnTimer

logger = logging.getLogger(__name__)


class GameController:
    """
    Owns one GameState at a time and exposes the game operations.

    Usage:
        controller = GameController(provider, scheduler)
        controller.events.on(GameEventType.GAME_OVER, show_results)
        controller.init_game(GameConfig(Difficulty.EASY, [PlayerSetup("Ash")]))
        controller.start_game()
        controller.flip_card(3)
    """

    def __init__(
        self,
        asset_provider: AssetProvider,
        scheduler: Scheduler,
        settings: GameSettings | None = None,
        rng: random.Random | None = None,
    ):
        self._provider = asset_provider
        self._scheduler = scheduler
        self._settings = settings or GameSettings()
        self._rng = rng or random.Random()
        self._state: GameState | None = None
        self.events = EventBus()

        self._timer = TurnTimer(
            scheduler,
            duration=self._settings.turn_duration,
            interval=self._settings.tick_interval,
            on_tick=lambda remaining: self._guarded("timer", self._on_tick, remaining),
            on_expire=lambda: self._guarded("timer", self._on_timer_expired),
        )
        self._resolver = MatchResolver(
            scheduler,
            delay=self._settings.reveal_delay,
            on_due=lambda comparison: self._guarded("comparison", self._on_comparison_due, comparison),
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def settings(self) -> GameSettings:
        return self._settings

    @property
    def phase(self) -> GamePhase:
        if self._state is None:
            return GamePhase.UNINITIALIZED
        return self._state.phase

    @property
    def is_comparing(self) -> bool:
        """True while a revealed pair is waiting for its comparison."""
        return self._resolver.pending

    def on(self, event_type: GameEventType | str, handler: Callable[[Any], None]) -> Callable[[], None]:
        """Shortcut for events.on()."""
        return self.events.on(event_type, handler)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init_game(self, config: GameConfig) -> None:
        """
        Deal a new game, replacing any current one.

        The new game starts paused; call start_game() to begin the
        countdown.

        Raises:
            ValidationError: player count outside the allowed range,
                or a malformed player name / difficulty
            ResourceError: the asset provider could not supply the deck.
                The previous game, if any, is left untouched.
        """
        players = self._validate_players(config.players)
        difficulty_config(config.difficulty)

        cards = build_deck(config.difficulty, config.theme_id, self._provider, self._rng)
        config = replace(config, players=[PlayerSetup(name=p.name, player_id=p.player_id) for p in players])

        # Deck is ready: only now tear down the previous game
        self._cancel_effects()

        state = GameState(
            game_id=str(uuid.uuid4()),
            config=config,
            cards=cards,
            players=players,
            time_remaining=self._settings.turn_duration,
            is_paused=True,
            created_at=time.time(),
        )
        turns.activate(state, 0)
        self._state = state
        self._timer.reset()

        logger.info(
            "Game %s dealt: %d cards, %d player(s), theme %s",
            state.game_id, len(cards), len(players), config.theme_id,
        )
        self._emit(GameEventType.STATE_CHANGE, StateChangeEvent(state=state.clone()))

    def start_game(self) -> None:
        """
        Begin play (starts the turn timer).

        Raises:
            StateError: before init_game() or after the game is over
        """
        state = self._require_live_state("start")
        if not state.is_paused:
            return
        state.started = True
        state.is_paused = False
        self._sync_timer()
        self._emit(GameEventType.GAME_RESUMED, GameResumedEvent(player=state.current_player.copy()))

    def pause_game(self) -> None:
        """
        Stop the countdown, keeping the remaining time.

        No-op once the game is over.

        Raises:
            StateError: before init_game()
        """
        state = self._require_state("pause")
        if state.is_game_over or state.is_paused:
            return
        state.is_paused = True
        self._sync_timer()
        self._emit(GameEventType.GAME_PAUSED, GamePausedEvent(reason=PauseReason.MANUAL))

    def resume_game(self) -> None:
        """
        Continue after a manual pause or a turn hand-off.

        Raises:
            StateError: before init_game() or after the game is over
        """
        state = self._require_live_state("resume")
        if not state.is_paused:
            return
        state.started = True
        state.is_paused = False
        self._sync_timer()
        self._emit(GameEventType.GAME_RESUMED, GameResumedEvent(player=state.current_player.copy()))

    def restore(self, snapshot: GameState) -> None:
        """
        Install a previously saved snapshot, paused.

        Scheduled effects are never saved, so any pair that was waiting
        for its comparison is turned back face down.
        """
        self._cancel_effects()
        state = snapshot.clone()

        revealed_ids = {c.card_id for c in state.revealed_cards}
        if len(revealed_ids) >= 2:
            revealed_ids = set()
        for card in state.cards:
            if card.is_flipped and not card.is_matched and card.card_id not in revealed_ids:
                card.is_flipped = False
        state.revealed_cards = [c for c in state.cards if c.card_id in revealed_ids]

        if not state.is_game_over:
            state.is_paused = True
        self._state = state
        self._timer.reset()
        self._timer.remaining = state.time_remaining
        state.time_remaining = self._timer.remaining

        logger.info("Game %s restored at %s", state.game_id, state.phase.value)
        self._emit(GameEventType.STATE_CHANGE, StateChangeEvent(state=state.clone()))

    def destroy(self) -> None:
        """Tear down: no scheduled callback fires after this returns."""
        self._cancel_effects()
        if self._state is not None:
            logger.info("Game %s destroyed", self._state.game_id)
        self._state = None

    # =========================================================================
    # Play
    # =========================================================================

    def flip_card(self, card_id: int) -> TurnResult:
        """
        Turn a card face up for the active player.

        Returns FIRST_CARD for any accepted flip, including the second
        card of a pair: the comparison outcome arrives later as a
        match or mismatch event.
        """
        state = self._state
        if state is None:
            return TurnResult.INVALID
        if state.is_game_over:
            return TurnResult.GAME_OVER
        if state.is_paused:
            return TurnResult.INVALID

        card = state.get_card(card_id)
        if card is None or card.is_matched or card.is_flipped:
            return TurnResult.INVALID
        if len(state.revealed_cards) >= 2:
            return TurnResult.INVALID

        player = state.current_player
        card.is_flipped = True
        state.revealed_cards.append(card)
        player.total_flips += 1

        self._emit(GameEventType.CARD_FLIPPED, CardFlippedEvent(card=card.copy(), player=player.copy()))

        if len(state.revealed_cards) == 2 and self._state is state:
            first, second = state.revealed_cards
            if self._settings.release_revealed_before_compare:
                state.revealed_cards = []
            self._resolver.submit(first, second, player)
            self._sync_timer()

        return TurnResult.FIRST_CARD

    # =========================================================================
    # Queries
    # =========================================================================

    def get_current_player(self) -> Player:
        """
        Snapshot of the active player.

        Raises:
            StateError: before init_game()
        """
        return self._require_state("get the current player").current_player.copy()

    def get_game_state(self) -> GameState | None:
        """Read-only snapshot of the whole game, or None."""
        if self._state is None:
            return None
        return self._state.clone()

    # =========================================================================
    # Scheduled effects
    # =========================================================================

    def _on_comparison_due(self, comparison: PendingComparison) -> None:
        state = self._state
        if state is None or not any(p is comparison.player for p in state.players):
            return

        first, second = comparison.first, comparison.second
        state.revealed_cards = [
            c for c in state.revealed_cards if c is not first and c is not second
        ]

        holds_turn = comparison.player is state.current_player
        outcome = resolve_pair(first, second, comparison.player)
        event = MatchEvent(cards=(first.copy(), second.copy()), player=comparison.player.copy())

        if outcome is MatchOutcome.MATCH:
            logger.debug("Match for %s: %s", comparison.player.name, first.name)
            self._emit(GameEventType.MATCH, event)
            if self._state is not state:
                return
            if state.all_matched():
                self._end_game()
                return
            if holds_turn:
                # Same player continues with a fresh countdown
                self._reset_timer()
            self._sync_timer()
        else:
            self._emit(GameEventType.MISMATCH, event)
            if self._state is not state:
                return
            if holds_turn:
                self._switch_player()
            else:
                self._sync_timer()

    def _on_tick(self, remaining: int) -> None:
        if self._state is None:
            return
        self._state.time_remaining = remaining
        self._emit(GameEventType.TIMER_TICK, TimerTickEvent(time_remaining=remaining))

    def _on_timer_expired(self) -> None:
        state = self._state
        if state is None or state.is_game_over:
            return
        logger.info("Time expired for %s", state.current_player.name)
        self._emit(GameEventType.TIMER_EXPIRED, TimerExpiredEvent(player=state.current_player.copy()))
        if self._state is not state:
            return

        for card in state.revealed_cards:
            if not card.is_matched:
                card.is_flipped = False
        state.revealed_cards = []

        self._switch_player()

    def _switch_player(self) -> None:
        """Hand the turn over and auto-pause for the next player."""
        state = self._state
        outgoing, incoming = turns.advance(state)

        self._reset_timer()
        state.is_paused = True
        self._sync_timer()

        self._emit(GameEventType.TURN_SWITCH, TurnSwitchEvent(
            from_player=outgoing.copy(),
            to_player=incoming.copy(),
        ))
        self._emit(GameEventType.GAME_PAUSED, GamePausedEvent(reason=PauseReason.TURN_SWITCH))

    def _end_game(self) -> None:
        state = self._state
        self._timer.stop()
        self._resolver.cancel_all()
        state.is_game_over = True
        state.is_paused = True

        recalculate_scores(state.players)
        final_scores = rank_players(state.players)
        winners = winners_of(final_scores)
        state.winners = winners
        state.winner = winners[0] if len(winners) == 1 else None

        if len(winners) > 1:
            logger.info("Game %s over: tie between %s", state.game_id, ", ".join(w.name for w in winners))
        else:
            logger.info("Game %s over: %s wins with %d", state.game_id, winners[0].name, winners[0].score)
        self._emit(GameEventType.GAME_OVER, GameOverEvent(
            winners=[p.copy() for p in winners],
            final_scores=[p.copy() for p in final_scores],
        ))

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _sync_timer(self) -> None:
        """Tick only while running and no comparison is pending."""
        state = self._state
        if state is not None and not state.is_paused and not state.is_game_over and not self._resolver.pending:
            self._timer.start()
        else:
            self._timer.stop()

    def _reset_timer(self) -> None:
        self._timer.reset()
        if self._state is not None:
            self._state.time_remaining = self._timer.remaining

    def _cancel_effects(self) -> None:
        self._timer.stop()
        self._resolver.cancel_all()

    def _guarded(self, stage: str, effect: Callable[..., None], *args: Any) -> None:
        """
        Run a scheduled effect. A failure halts the effect, stops the
        timer and is reported on the event stream.
        """
        try:
            effect(*args)
        except Exception as e:
            logger.exception("Scheduled %s effect failed", stage)
            self._timer.stop()
            self._emit(GameEventType.ERROR, ErrorEvent(stage=stage, error=e))

    def _emit(self, event_type: GameEventType, payload: Any) -> None:
        self.events.emit(event_type, payload)

    def _require_state(self, action: str) -> GameState:
        if self._state is None:
            raise StateError(f"Cannot {action}: game not initialized. Call init_game() first.")
        return self._state

    def _require_live_state(self, action: str) -> GameState:
        state = self._require_state(action)
        if state.is_game_over:
            raise StateError(f"Cannot {action}: game is already over")
        return state

    def _validate_players(self, setups: list[PlayerSetup | str]) -> list[Player]:
        count = len(setups) if setups is not None else 0
        lo, hi = self._settings.min_players, self._settings.max_players
        if not lo <= count <= hi:
            raise ValidationError(
                f"Game requires {lo}-{hi} players, got {count}",
                details={"player_count": count},
            )

        players: list[Player] = []
        for setup in setups:
            if isinstance(setup, str):
                setup = PlayerSetup(name=setup)
            name = (setup.name or "").strip()
            if not name or len(name) > self._settings.max_name_length:
                raise ValidationError(
                    f"Player name must be 1-{self._settings.max_name_length} characters",
                    details={"name": setup.name},
                )
            players.append(Player(
                player_id=setup.player_id or str(uuid.uuid4()),
                name=name,
            ))
        return players
