"""Offline asset provider backed by a fixed catalogue."""

from __future__ import annotations
import random
from typing import Iterable

from ..engine.errors import ResourceError
from .base import AssetProvider, AssetRef
from .pokeapi import parse_generation, sprite_url

KANTO_STARTERS = (
    "bulbasaur", "ivysaur", "venusaur", "charmander", "charmeleon", "charizard",
    "squirtle", "wartortle", "blastoise", "caterpie", "metapod", "butterfree",
    "weedle", "kakuna", "beedrill", "pidgey", "pidgeotto", "pidgeot",
    "rattata", "raticate", "spearow", "fearow", "ekans", "arbok",
    "pikachu", "raichu", "sandshrew", "sandslash",
)


def kanto_catalogue() -> list[AssetRef]:
    """The first Kanto Pokemon, enough for a hard deck."""
    return [
        AssetRef(key=i, name=name, image_url=sprite_url(i))
        for i, name in enumerate(KANTO_STARTERS, start=1)
    ]


class StaticAssetProvider(AssetProvider):
    """
    Serves assets from memory. Used offline and in tests.

    `catalogues` maps a generation number to its assets. Themes are parsed
    the same way PokeApiAssetProvider parses them.
    """

    def __init__(
        self,
        catalogues: dict[int, Iterable[AssetRef]] | None = None,
        rng: random.Random | None = None,
        shuffle: bool = True,
    ):
        if catalogues is None:
            catalogues = {1: kanto_catalogue()}
        self._catalogues = {gen: list(assets) for gen, assets in catalogues.items()}
        self._rng = rng or random.Random()
        self._shuffle = shuffle

    def get_unique_assets(self, theme_id: str, count: int) -> list[AssetRef]:
        generation = parse_generation(theme_id)
        catalogue = self._catalogues.get(generation, [])
        if count > len(catalogue):
            raise ResourceError(
                f"Theme {theme_id} has {len(catalogue)} assets, {count} requested",
                details={"theme_id": theme_id, "available": len(catalogue)},
            )
        if not self._shuffle:
            return catalogue[:count]
        return self._rng.sample(catalogue, count)
