"""
Scoring - Accuracy score from a player's counters.

score = round(1000 * matches / total_flips), 0 before the first flip.
Depends only on the two counters, so recomputation is idempotent.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from .state import Player

SCORE_SCALE = 1000


def score(matches: int, total_flips: int) -> int:
    """Accuracy score for a pair of counters."""
    if total_flips == 0:
        return 0
    # Half-up: 666.5 -> 667, never banker's rounding
    value = Decimal(SCORE_SCALE * matches) / Decimal(total_flips)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def update_score(player: Player) -> int:
    """Recompute and store a player's score."""
    player.score = score(player.matches, player.total_flips)
    return player.score


def recalculate_scores(players: Iterable[Player]) -> None:
    for player in players:
        update_score(player)


def rank_players(players: Iterable[Player]) -> list[Player]:
    """Players sorted by score, highest first. Ties keep seating order."""
    return sorted(players, key=lambda p: p.score, reverse=True)


def winners_of(ranked: list[Player]) -> list[Player]:
    """Every player sharing the top score."""
    if not ranked:
        return []
    best = ranked[0].score
    return [p for p in ranked if p.score == best]
