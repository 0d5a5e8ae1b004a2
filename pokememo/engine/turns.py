"""
Turn Sequencer - Who may flip next.

Exactly one player is active at any non-terminal moment. These helpers
only move the index and the is_active flags; the controller decides when
a hand-off happens and what it does to the timer.
"""

from __future__ import annotations

from .state import GameState, Player


def next_index(current: int, player_count: int) -> int:
    """Seat after `current`, wrapping around."""
    return (current + 1) % player_count


def activate(state: GameState, index: int) -> Player:
    """Make `index` the only active player."""
    state.current_player_index = index
    for i, player in enumerate(state.players):
        player.is_active = i == index
    return state.players[index]


def advance(state: GameState) -> tuple[Player, Player]:
    """
    Hand the turn to the next seat.

    Returns (outgoing, incoming). With a single player both are the
    same player.
    """
    outgoing = state.current_player
    incoming = activate(state, next_index(state.current_player_index, state.num_players))
    return outgoing, incoming
