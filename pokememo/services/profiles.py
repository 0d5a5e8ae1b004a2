"""
Player Profiles - Games played, best scores and preferences per player.

Profiles are keyed by a UUID v4 player id. An update for an unknown
id creates a default profile first, so a client can register a player
and save preferences in one call.
"""

from __future__ import annotations
import logging
import re
import time
from copy import deepcopy
from dataclasses import dataclass, field, fields
from typing import Any, Callable

from ..assets.pokeapi import GENERATION_RANGES
from ..engine.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50

_UUID4 = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_player_id(player_id: str) -> bool:
    return isinstance(player_id, str) and bool(_UUID4.match(player_id))


@dataclass
class Preferences:
    dark_mode: bool = False
    favorite_generation: int = 1
    sound_enabled: bool = True


@dataclass
class TopScore:
    """One of a player's best results."""
    score: int
    difficulty: str
    timestamp: int  # Unix time in milliseconds


@dataclass
class PlayerProfile:
    player_id: str
    name: str
    total_games_played: int = 0
    top_scores: list[TopScore] = field(default_factory=list)
    preferences: Preferences = field(default_factory=Preferences)
    created_at: int = 0
    last_played_at: int = 0


class ProfileStore:
    """
    In-memory profile storage.

    Every read returns a copy; mutate through update() and record_game().
    """

    def __init__(self, top_scores: int = 5, clock: Callable[[], float] = time.time):
        self.max_top_scores = top_scores
        self._clock = clock
        self._profiles: dict[str, PlayerProfile] = {}

    def get(self, player_id: str) -> PlayerProfile | None:
        """
        Raises:
            ValidationError: player_id is not a UUID
        """
        self._require_valid_id(player_id)
        profile = self._profiles.get(player_id)
        return deepcopy(profile) if profile else None

    def update(
        self,
        player_id: str,
        name: str | None = None,
        total_games_played: int | None = None,
        top_scores: list[TopScore] | None = None,
        preferences: dict[str, Any] | None = None,
    ) -> PlayerProfile:
        """
        Create or update a profile.

        Preferences are merged key by key; omitted keys keep their value.

        Raises:
            ValidationError: bad id, no fields given, or a field out of range
        """
        self._require_valid_id(player_id)
        if name is None and total_games_played is None and top_scores is None and preferences is None:
            raise ValidationError("At least one profile field is required")
        if name is not None and (not name.strip() or len(name) > MAX_NAME_LENGTH):
            raise ValidationError(f"name must be 1-{MAX_NAME_LENGTH} characters")
        if total_games_played is not None and total_games_played < 0:
            raise ValidationError("total_games_played must be non-negative")
        if top_scores is not None and len(top_scores) > self.max_top_scores:
            raise ValidationError(f"At most {self.max_top_scores} top scores are kept")
        if preferences is not None:
            self._validate_preferences(preferences)

        profile = self._profiles.get(player_id)
        if profile is None:
            profile = self._default_profile(player_id, (name or "Player").strip())
            self._profiles[player_id] = profile
            logger.info("Created profile %s", player_id)

        if name is not None:
            profile.name = name.strip()
        if total_games_played is not None:
            profile.total_games_played = total_games_played
        if top_scores is not None:
            profile.top_scores = self._best(top_scores)
        if preferences is not None:
            for key, value in preferences.items():
                setattr(profile.preferences, key, value)

        profile.last_played_at = self._now()
        return deepcopy(profile)

    def record_game(self, player_id: str, name: str, result: TopScore) -> PlayerProfile:
        """Count a finished game and keep the best scores."""
        self._require_valid_id(player_id)
        profile = self._profiles.get(player_id)
        if profile is None:
            profile = self._default_profile(player_id, name)
            self._profiles[player_id] = profile

        profile.total_games_played += 1
        profile.top_scores = self._best(profile.top_scores + [result])
        profile.last_played_at = self._now()
        return deepcopy(profile)

    def _best(self, scores: list[TopScore]) -> list[TopScore]:
        return sorted(scores, key=lambda s: s.score, reverse=True)[:self.max_top_scores]

    def _default_profile(self, player_id: str, name: str) -> PlayerProfile:
        now = self._now()
        return PlayerProfile(player_id=player_id, name=name, created_at=now, last_played_at=now)

    def _validate_preferences(self, preferences: dict[str, Any]) -> None:
        known = {f.name for f in fields(Preferences)}
        unknown = set(preferences) - known
        if unknown:
            raise ValidationError(f"Unknown preferences: {', '.join(sorted(unknown))}")
        generation = preferences.get("favorite_generation")
        if generation is not None and generation not in GENERATION_RANGES:
            raise ValidationError(f"Unsupported generation: {generation}")

    def _require_valid_id(self, player_id: str) -> None:
        if not is_valid_player_id(player_id):
            raise ValidationError("Invalid player ID format", details={"player_id": player_id})

    def _now(self) -> int:
        return int(self._clock() * 1000)
