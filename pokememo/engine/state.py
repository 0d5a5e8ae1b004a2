"""
Game State - The aggregate owned by the game controller.

Design principles:
- Mutable inside the controller, copied at the public boundary
- Serializable: snapshots can be saved and restored
- Presentation-agnostic: holds data, never pixels
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from copy import deepcopy
from enum import Enum


class Difficulty(str, Enum):
    """Deck sizes offered to players."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class DifficultyConfig:
    """How many unique assets and cards a difficulty deals."""
    unique_count: int
    total_cards: int
    columns: int
    rows: int


DIFFICULTY_CONFIG: dict[Difficulty, DifficultyConfig] = {
    Difficulty.EASY: DifficultyConfig(unique_count=4, total_cards=8, columns=4, rows=2),
    Difficulty.MEDIUM: DifficultyConfig(unique_count=8, total_cards=16, columns=4, rows=4),
    Difficulty.HARD: DifficultyConfig(unique_count=12, total_cards=24, columns=6, rows=4),
}


class GamePhase(Enum):
    """Lifecycle phases of a game."""
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"  # Dealt, paused until start_game()
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"


class TurnResult(Enum):
    """Immediate acknowledgment returned by flip_card()."""
    FIRST_CARD = "first_card"
    INVALID = "invalid"
    GAME_OVER = "game_over"


@dataclass
class PlayerSetup:
    """A player as supplied by the caller before the game starts."""
    name: str
    player_id: str | None = None


@dataclass
class GameConfig:
    """Configuration passed to init_game()."""
    difficulty: Difficulty
    players: list[PlayerSetup]
    theme_id: str = "1"


@dataclass
class Card:
    """
    A card on the table.

    Exactly two cards in a deck share an asset_key.
    A matched card stays face up for the rest of the game.
    """
    card_id: int  # Stable per deck
    asset_key: int  # Visual identity shared by the pair
    name: str = ""
    image_url: str = ""
    is_flipped: bool = False
    is_matched: bool = False

    def copy(self) -> Card:
        return replace(self)


@dataclass
class Player:
    """A participant and their accuracy counters."""
    player_id: str
    name: str
    total_flips: int = 0
    matches: int = 0
    score: int = 0
    is_active: bool = False

    def copy(self) -> Player:
        return replace(self)


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    Only the controller mutates this. Everything handed out
    is a clone.
    """
    game_id: str
    config: GameConfig
    cards: list[Card] = field(default_factory=list)
    players: list[Player] = field(default_factory=list)

    # Turn tracking
    current_player_index: int = 0
    revealed_cards: list[Card] = field(default_factory=list)  # 0-2 face-up, unmatched
    time_remaining: int = 0

    # Lifecycle flags
    started: bool = False
    is_paused: bool = True
    is_game_over: bool = False

    # Outcome
    winner: Player | None = None  # None before completion and on a tie
    winners: list[Player] = field(default_factory=list)

    created_at: float = 0.0

    @property
    def current_player(self) -> Player:
        """Get the active player."""
        return self.players[self.current_player_index]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def phase(self) -> GamePhase:
        if self.is_game_over:
            return GamePhase.GAME_OVER
        if not self.is_paused:
            return GamePhase.RUNNING
        if not self.started:
            return GamePhase.INITIALIZED
        return GamePhase.PAUSED

    def get_card(self, card_id: int) -> Card | None:
        """Get card by ID."""
        for card in self.cards:
            if card.card_id == card_id:
                return card
        return None

    def all_matched(self) -> bool:
        return all(card.is_matched for card in self.cards)

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
