"""
Assets Module - Card faces for the deck builder.

Providers turn a theme (a Pokemon generation) into distinct visual
identities. The live provider talks to PokeAPI over HTTP and caches
each generation's species list; the static provider serves a fixed
catalogue for offline play and tests.
"""

from .base import AssetProvider, AssetRef
from .cache import AssetCache, CacheEntry
from .pokeapi import PokeApiAssetProvider, GENERATION_RANGES, parse_generation
from .static import StaticAssetProvider, kanto_catalogue

__all__ = [
    "AssetProvider",
    "AssetRef",
    "AssetCache",
    "CacheEntry",
    "PokeApiAssetProvider",
    "GENERATION_RANGES",
    "parse_generation",
    "StaticAssetProvider",
    "kanto_catalogue",
]
