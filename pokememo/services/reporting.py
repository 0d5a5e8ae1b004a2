"""
Score Reporting - Publishes final scores when a game ends.

Reporting is best-effort: a failing leaderboard or profile store is
logged and skipped, and never changes the finished game.
"""

from __future__ import annotations
import logging
from typing import Callable

from ..engine.controller import GameController
from ..engine.events import GameEventType, GameOverEvent
from ..engine.state import Difficulty
from .leaderboard import LeaderboardStore, SubmitScoreRequest
from .profiles import ProfileStore, TopScore, is_valid_player_id
from .snapshots import SnapshotStore

logger = logging.getLogger(__name__)


class ScoreReporter:
    """
    Subscribes to a controller's gameOver event.

    On game over it:
    1. Submits one leaderboard record per player
    2. Records the game on each player's profile (UUID ids only)
    3. Clears the saved snapshot, if a store and key were given
    """

    def __init__(
        self,
        leaderboard: LeaderboardStore,
        profiles: ProfileStore | None = None,
        snapshots: SnapshotStore | None = None,
        snapshot_key: str | None = None,
    ):
        self.leaderboard = leaderboard
        self.profiles = profiles
        self.snapshots = snapshots
        self.snapshot_key = snapshot_key
        self.submitted: list[str] = []
        self._controller: GameController | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, controller: GameController) -> ScoreReporter:
        self.detach()
        self._controller = controller
        self._unsubscribe = controller.on(GameEventType.GAME_OVER, self._on_game_over)
        return self

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._controller = None

    def _on_game_over(self, event: GameOverEvent) -> None:
        state = self._controller.get_game_state() if self._controller else None
        if state is None:
            return
        difficulty = Difficulty(state.config.difficulty)

        for player in event.final_scores:
            try:
                entry_id = self.leaderboard.submit(SubmitScoreRequest(
                    player_id=player.player_id,
                    player_name=player.name,
                    score=player.score,
                    difficulty=difficulty,
                    total_flips=player.total_flips,
                    matches=player.matches,
                ))
                self.submitted.append(entry_id)
            except Exception:
                logger.exception("Leaderboard submission failed for %s", player.name)

            if self.profiles is not None and is_valid_player_id(player.player_id):
                try:
                    self.profiles.record_game(
                        player.player_id,
                        player.name,
                        TopScore(score=player.score, difficulty=difficulty.value, timestamp=int(state.created_at * 1000)),
                    )
                except Exception:
                    logger.exception("Profile update failed for %s", player.name)

        if self.snapshots is not None and self.snapshot_key is not None:
            try:
                self.snapshots.clear(self.snapshot_key)
            except Exception:
                logger.exception("Could not clear snapshot %s", self.snapshot_key)
