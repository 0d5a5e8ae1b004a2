"""
PokeMemo - Turn-based Memory Matching Engine

A deterministic engine for hot-seat Pokemon memory games.
The engine deals a shuffled deck of card pairs and provides:
- Turn sequencing between 1-4 players
- Delayed match resolution
- A per-turn countdown timer
- Accuracy scoring and winner resolution
- An event stream for any presentation layer
"""

__version__ = "0.1.0"
