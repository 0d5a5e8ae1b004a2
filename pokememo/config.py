"""
Configuration - Environment-driven settings.

Every key is read from an environment variable with the POKEMEMO_ prefix,
e.g. POKEMEMO_TURN_DURATION=45. Settings are read once and cached;
call get_settings.cache_clear() to re-read.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

from .engine.settings import GameSettings

ENV_PREFIX = "POKEMEMO_"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _env(name: str, default: str | None = None) -> str | None:
    return os.environ.get(ENV_PREFIX + name, default)


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration."""
    env: str = "development"
    log_level: str = "INFO"

    # Game timing
    turn_duration: int = 30
    tick_interval: float = 1.0
    reveal_delay_ms: int = 1000
    release_revealed_before_compare: bool = True

    # Assets
    pokeapi_url: str = "https://pokeapi.co/api/v2"
    asset_cache_ttl: float = 3600.0
    http_timeout: float = 10.0

    # Persistence
    snapshot_dir: str | None = None  # None = in-memory snapshots
    leaderboard_size: int = 10
    profile_top_scores: int = 5
    session_max_age: float = 3600.0  # finished sessions older than this are dropped

    # HTTP
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            env=_env("ENV", "development"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            turn_duration=int(_env("TURN_DURATION", "30")),
            tick_interval=float(_env("TICK_INTERVAL", "1.0")),
            reveal_delay_ms=int(_env("REVEAL_DELAY_MS", "1000")),
            release_revealed_before_compare=_env_bool("RELEASE_REVEALED_BEFORE_COMPARE", True),
            pokeapi_url=_env("POKEAPI_URL", "https://pokeapi.co/api/v2"),
            asset_cache_ttl=float(_env("ASSET_CACHE_TTL", "3600")),
            http_timeout=float(_env("HTTP_TIMEOUT", "10")),
            snapshot_dir=_env("SNAPSHOT_DIR") or None,
            leaderboard_size=int(_env("LEADERBOARD_SIZE", "10")),
            profile_top_scores=int(_env("PROFILE_TOP_SCORES", "5")),
            session_max_age=float(_env("SESSION_MAX_AGE", "3600")),
            allowed_origins=[o.strip() for o in _env("ALLOWED_ORIGINS", "*").split(",") if o.strip()],
        )

    def game_settings(self) -> GameSettings:
        """Controller settings derived from this configuration."""
        return GameSettings(
            turn_duration=self.turn_duration,
            tick_interval=self.tick_interval,
            reveal_delay=self.reveal_delay_ms / 1000.0,
            release_revealed_before_compare=self.release_revealed_before_compare,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the server and CLI."""
    logging.basicConfig(
        level=getattr(logging, (level or get_settings().log_level).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
