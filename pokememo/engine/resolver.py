"""
Match Resolver - Delayed comparison of two revealed cards.

The comparison runs a fixed delay after the second card is turned, so
players get to see both faces. Pending comparisons fire in the order they
were submitted and can all be cancelled at once when the game is torn
down or replaced.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .scheduler import Handle, Scheduler
from .scoring import update_score
from .state import Card, Player

logger = logging.getLogger(__name__)


class MatchOutcome(Enum):
    MATCH = "match"
    MISMATCH = "mismatch"


@dataclass(eq=False)
class PendingComparison:
    """A pair waiting for its comparison delay to elapse."""
    first: Card
    second: Card
    player: Player  # Who turned the pair
    handle: Handle | None = None


def resolve_pair(first: Card, second: Card, player: Player) -> MatchOutcome:
    """
    Compare two cards and apply the result.

    A match locks both cards face up and credits `player`; a mismatch
    turns both cards back over. Flip counters were already charged when
    the cards were turned.
    """
    if first.asset_key == second.asset_key:
        first.is_matched = second.is_matched = True
        first.is_flipped = second.is_flipped = True
        player.matches += 1
        update_score(player)
        return MatchOutcome.MATCH

    first.is_flipped = second.is_flipped = False
    return MatchOutcome.MISMATCH


class MatchResolver:
    """
    Schedules comparisons on the controller's scheduler.

    `on_due` is called with the PendingComparison once its delay has
    elapsed; the controller applies resolve_pair() and the turn effects.
    """

    __slots__ = ("_scheduler", "_delay", "_pending", "on_due")

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float,
        on_due: Callable[[PendingComparison], None],
    ):
        self._scheduler = scheduler
        self._delay = delay
        self._pending: list[PendingComparison] = []
        self.on_due = on_due

    @property
    def pending(self) -> bool:
        return bool(self._pending)

    def submit(self, first: Card, second: Card, player: Player) -> PendingComparison:
        comparison = PendingComparison(first=first, second=second, player=player)
        comparison.handle = self._scheduler.call_later(
            self._delay, lambda: self._fire(comparison)
        )
        self._pending.append(comparison)
        return comparison

    def cancel_all(self) -> int:
        """Cancel every pending comparison. Returns how many were dropped."""
        dropped = len(self._pending)
        for comparison in self._pending:
            if comparison.handle is not None:
                comparison.handle.cancel()
        self._pending.clear()
        if dropped:
            logger.debug("Cancelled %d pending comparison(s)", dropped)
        return dropped

    def _fire(self, comparison: PendingComparison) -> None:
        if comparison not in self._pending:
            return
        self._pending.remove(comparison)
        self.on_due(comparison)
