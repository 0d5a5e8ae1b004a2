"""
Leaderboard - Completed-game scores, best first.

Entries are ordered by score (highest first), then by submission time
(earliest first), so an older score keeps its place over a later tie.
"""

from __future__ import annotations
import logging
import time
import uuid
from dataclasses import dataclass, replace
from typing import Callable

from ..engine.errors import ValidationError
from ..engine.state import Difficulty

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50


@dataclass
class SubmitScoreRequest:
    """One player's result, as submitted after a game."""
    player_id: str
    player_name: str
    score: int
    difficulty: Difficulty | str
    total_flips: int
    matches: int


@dataclass
class LeaderboardEntry:
    entry_id: str
    player_id: str
    player_name: str
    score: int
    difficulty: Difficulty
    timestamp: int  # Unix time in milliseconds
    total_flips: int
    matches: int


def validate_submission(request: SubmitScoreRequest) -> None:
    """
    Reject a submission that could not come from a real game.

    Raises:
        ValidationError: describing the first offending field
    """
    if not isinstance(request.player_id, str) or not request.player_id.strip():
        raise ValidationError("player_id is required")
    if not isinstance(request.player_name, str) or not request.player_name.strip():
        raise ValidationError("player_name is required")
    if len(request.player_name) > MAX_NAME_LENGTH:
        raise ValidationError(f"player_name must be at most {MAX_NAME_LENGTH} characters")
    if request.score < 0:
        raise ValidationError("score must be non-negative")
    try:
        Difficulty(request.difficulty)
    except ValueError:
        raise ValidationError(f"Unknown difficulty: {request.difficulty}")
    if request.total_flips < 0 or request.matches < 0:
        raise ValidationError("total_flips and matches must be non-negative")
    # Every match takes two flips
    if request.matches > request.total_flips / 2:
        raise ValidationError(
            "matches cannot exceed half of total_flips",
            details={"matches": request.matches, "total_flips": request.total_flips},
        )


class LeaderboardStore:
    """
    In-memory leaderboard.

    Usage:
        board = LeaderboardStore()
        entry_id = board.submit(SubmitScoreRequest(...))
        for entry in board.top():
            ...
    """

    def __init__(self, size: int = 10, clock: Callable[[], float] = time.time):
        self.size = size
        self._clock = clock
        self._entries: list[LeaderboardEntry] = []

    def submit(self, request: SubmitScoreRequest) -> str:
        """Validate and store a score. Returns the new entry id."""
        validate_submission(request)
        entry = LeaderboardEntry(
            entry_id=str(uuid.uuid4()),
            player_id=request.player_id.strip(),
            player_name=request.player_name.strip(),
            score=int(round(request.score)),
            difficulty=Difficulty(request.difficulty),
            timestamp=int(self._clock() * 1000),
            total_flips=request.total_flips,
            matches=request.matches,
        )
        self._entries.append(entry)
        logger.info("Score %d submitted for %s (%s)", entry.score, entry.player_name, entry.difficulty.value)
        return entry.entry_id

    def top(self, limit: int | None = None, difficulty: Difficulty | str | None = None) -> list[LeaderboardEntry]:
        """Best entries first, optionally for one difficulty only."""
        limit = self.size if limit is None else limit
        if limit < 1:
            raise ValidationError("limit must be at least 1")

        entries = self._entries
        if difficulty is not None:
            try:
                wanted = Difficulty(difficulty)
            except ValueError:
                raise ValidationError(f"Unknown difficulty: {difficulty}")
            entries = [e for e in entries if e.difficulty is wanted]

        ranked = sorted(entries, key=lambda e: (-e.score, e.timestamp))
        return [replace(e) for e in ranked[:limit]]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
