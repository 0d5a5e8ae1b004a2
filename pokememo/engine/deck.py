"""
Deck Builder - Turns a difficulty and a theme into a shuffled deck of pairs.

Guarantees:
- Every asset appears on exactly two cards
- Card ids are unique and sequential before the shuffle
- The shuffle is a uniform Fisher-Yates pass
"""

from __future__ import annotations
import logging
import random
from typing import Sequence, TypeVar

from ..assets.base import AssetProvider, AssetRef
from .errors import GameError, ResourceError, ValidationError
from .state import Card, Difficulty, DifficultyConfig, DIFFICULTY_CONFIG

logger = logging.getLogger(__name__)

T = TypeVar("T")


def difficulty_config(difficulty: Difficulty | str) -> DifficultyConfig:
    """Look up the deck size for a difficulty."""
    try:
        return DIFFICULTY_CONFIG[Difficulty(difficulty)]
    except ValueError:
        raise ValidationError(f"Unknown difficulty: {difficulty}")


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """
    Return a shuffled copy of `items`.

    Walks i from the last index down to 1 and swaps with a
    uniformly random index in [0, i].
    """
    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def make_pairs(assets: Sequence[AssetRef]) -> list[Card]:
    """Create two cards per asset with sequential ids."""
    cards: list[Card] = []
    card_id = 0
    for asset in assets:
        for _ in range(2):
            cards.append(Card(
                card_id=card_id,
                asset_key=asset.key,
                name=asset.name,
                image_url=asset.image_url,
            ))
            card_id += 1
    return cards


def build_deck(
    difficulty: Difficulty | str,
    theme_id: str,
    provider: AssetProvider,
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Build a shuffled deck for a game.

    Raises:
        ValidationError: unknown difficulty
        ResourceError: the provider could not supply enough unique assets
    """
    config = difficulty_config(difficulty)

    try:
        assets = provider.get_unique_assets(theme_id, config.unique_count)
    except GameError:
        raise
    except Exception as e:
        raise ResourceError(f"Asset provider failed for theme {theme_id}: {e}") from e

    unique_keys = {asset.key for asset in assets}
    if len(assets) != config.unique_count or len(unique_keys) != config.unique_count:
        raise ResourceError(
            f"Theme {theme_id} supplied {len(unique_keys)} unique assets, "
            f"{config.unique_count} required",
            details={"theme_id": theme_id, "required": config.unique_count},
        )

    cards = shuffle(make_pairs(assets), rng)
    logger.debug("Built %s deck of %d cards for theme %s", Difficulty(difficulty).value, len(cards), theme_id)
    return cards
