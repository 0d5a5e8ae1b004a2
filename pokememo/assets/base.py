"""
Asset Provider interface.

The deck builder depends on this ABC, not on a concrete source of
card images. A provider turns a theme id and a count into that many
distinct visual identities, or raises ResourceError.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AssetRef:
    """A visual identity a pair of cards is drawn from."""
    key: int
    name: str
    image_url: str


class AssetProvider(ABC):
    """Source of unique card faces for a theme."""

    @abstractmethod
    def get_unique_assets(self, theme_id: str, count: int) -> list[AssetRef]:
        """
        Return exactly `count` distinct assets for `theme_id`.

        Raises:
            ResourceError: if the theme cannot supply that many assets
                or the backing source is unreachable.
        """

    def preload(self, theme_id: str) -> None:
        """Warm any cache for `theme_id`. No-op by default."""
