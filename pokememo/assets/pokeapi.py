"""
PokeAPI Provider - Card faces drawn from a Pokemon generation.

Supports Gen 1-3 only (Kanto, Johto, Hoenn). One request fetches a
generation's species list; the list is cached with a TTL and sampled
for each deck.
"""

from __future__ import annotations
import logging
import random
import re

import httpx

from ..engine.errors import ResourceError, ValidationError
from .base import AssetProvider, AssetRef
from .cache import AssetCache

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"
SPRITE_URL = "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/{id}.png"

GENERATION_RANGES: dict[int, tuple[int, int]] = {
    1: (1, 151),  # Kanto
    2: (152, 251),  # Johto
    3: (252, 386),  # Hoenn
}

_SPECIES_ID = re.compile(r"/pokemon-species/(\d+)/?$")


def parse_generation(theme_id: str | int) -> int:
    """
    Accept "1", "gen1", "gen-1" or 1.

    Raises:
        ValidationError: not a supported generation
    """
    text = str(theme_id).strip().lower()
    match = re.fullmatch(r"(?:gen-?)?(\d+)", text)
    if not match or int(match.group(1)) not in GENERATION_RANGES:
        raise ValidationError(
            f"Unknown theme {theme_id!r}; supported generations: "
            + ", ".join(str(g) for g in GENERATION_RANGES)
        )
    return int(match.group(1))


def sprite_url(pokemon_id: int) -> str:
    return SPRITE_URL.format(id=pokemon_id)


class PokeApiAssetProvider(AssetProvider):
    """
    Fetches Pokemon from PokeAPI with caching.

    Usage:
        provider = PokeApiAssetProvider()
        provider.preload("1")
        assets = provider.get_unique_assets("1", 8)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        cache_ttl: float = 3600.0,
        client: httpx.Client | None = None,
        rng: random.Random | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None
        self._cache: AssetCache[list[AssetRef]] = AssetCache(ttl_seconds=cache_ttl)
        self._rng = rng or random.Random()

    def get_unique_assets(self, theme_id: str, count: int) -> list[AssetRef]:
        catalogue = self.get_generation(parse_generation(theme_id))
        if count > len(catalogue):
            raise ResourceError(
                f"Generation {theme_id} has {len(catalogue)} Pokemon, {count} requested",
                details={"theme_id": theme_id, "available": len(catalogue)},
            )
        return self._rng.sample(catalogue, count)

    def preload(self, theme_id: str) -> None:
        self.get_generation(parse_generation(theme_id))

    def get_generation(self, generation: int) -> list[AssetRef]:
        """
        All Pokemon of a generation, from cache when fresh.

        Raises:
            ResourceError: PokeAPI unreachable or returned an unexpected body
        """
        cache_key = f"gen{generation}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit for %s", cache_key)
            return cached

        logger.info("Cache miss for %s, fetching from PokeAPI", cache_key)
        url = f"{self.base_url}/generation/{generation}"
        try:
            response = self._client.get(url)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch generation %d: %s", generation, e)
            raise ResourceError(f"Failed to fetch Pokemon for generation {generation}") from e

        catalogue = self._parse_species(generation, body)
        self._cache.put(cache_key, catalogue, metadata={"url": url})
        return catalogue

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Pokemon cache cleared")

    def cache_stats(self) -> dict:
        return self._cache.stats()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _parse_species(self, generation: int, body: object) -> list[AssetRef]:
        if not isinstance(body, dict) or not isinstance(body.get("pokemon_species"), list):
            raise ResourceError(f"Unexpected PokeAPI response for generation {generation}")

        start, end = GENERATION_RANGES[generation]
        assets: dict[int, AssetRef] = {}
        for entry in body["pokemon_species"]:
            match = _SPECIES_ID.search(str(entry.get("url", "")))
            if not match:
                continue
            pokemon_id = int(match.group(1))
            if start <= pokemon_id <= end:
                assets[pokemon_id] = AssetRef(
                    key=pokemon_id,
                    name=str(entry.get("name", "")),
                    image_url=sprite_url(pokemon_id),
                )
        return [assets[k] for k in sorted(assets)]
