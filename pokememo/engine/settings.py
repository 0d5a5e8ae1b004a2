"""Timing and rule constants for a single game controller."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class GameSettings:
    """
    Controller configuration.

    release_revealed_before_compare:
        True: the revealed set is emptied the moment the second card is
        flipped, so further flips are accepted while the comparison delay
        runs. False: both cards stay revealed until the comparison
        resolves, blocking any further flip.
    """
    turn_duration: int = 30  # seconds per turn
    tick_interval: float = 1.0  # seconds between timer ticks
    reveal_delay: float = 1.0  # seconds both cards stay visible before comparing
    release_revealed_before_compare: bool = True
    min_players: int = 1
    max_players: int = 4
    max_name_length: int = 50
