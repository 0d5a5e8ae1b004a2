"""
Snapshots - Save and restore an in-progress game.

The store:
- Keys snapshots by a caller-chosen string (a session id, a player id)
- Stores JSON-safe dicts, never live objects
- Comes in an in-memory and a file-per-key flavour

Scheduled effects are not part of a snapshot. GameController.restore()
hides any pair that was still waiting for its comparison.
"""

from __future__ import annotations
import json
import logging
import re
import time
from abc import ABC, abstractmethod
from copy import deepcopy
from dataclasses import asdict
from pathlib import Path
from typing import Any

from ..engine.errors import ResourceError, ValidationError
from ..engine.state import Card, Difficulty, GameConfig, GameState, Player, PlayerSetup

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


# =============================================================================
# Serialization
# =============================================================================

def snapshot_to_dict(state: GameState) -> dict[str, Any]:
    """Convert a GameState into a JSON-safe dict."""
    return {
        "version": SNAPSHOT_VERSION,
        "game_id": state.game_id,
        "config": {
            "difficulty": Difficulty(state.config.difficulty).value,
            "theme_id": state.config.theme_id,
            "players": [
                {"name": p.name, "player_id": p.player_id}
                for p in state.config.players
            ],
        },
        "cards": [asdict(c) for c in state.cards],
        "players": [asdict(p) for p in state.players],
        "current_player_index": state.current_player_index,
        "revealed_card_ids": [c.card_id for c in state.revealed_cards],
        "time_remaining": state.time_remaining,
        "started": state.started,
        "is_paused": state.is_paused,
        "is_game_over": state.is_game_over,
        "winner_ids": [p.player_id for p in state.winners],
        "created_at": state.created_at,
        "saved_at": time.time(),
    }


def snapshot_from_dict(data: dict[str, Any]) -> GameState:
    """
    Rebuild a GameState from snapshot_to_dict() output.

    Revealed cards and winners are relinked to the rebuilt cards and
    players, so identity checks inside the controller keep working.

    Raises:
        ValidationError: the dict is not a snapshot this version can read
    """
    try:
        if data.get("version") != SNAPSHOT_VERSION:
            raise ValidationError(f"Unsupported snapshot version: {data.get('version')}")

        config_data = data["config"]
        config = GameConfig(
            difficulty=Difficulty(config_data["difficulty"]),
            players=[
                PlayerSetup(name=p["name"], player_id=p.get("player_id"))
                for p in config_data["players"]
            ],
            theme_id=str(config_data.get("theme_id", "1")),
        )
        cards = [Card(**c) for c in data["cards"]]
        players = [Player(**p) for p in data["players"]]

        cards_by_id = {c.card_id: c for c in cards}
        players_by_id = {p.player_id: p for p in players}
        revealed = [cards_by_id[i] for i in data.get("revealed_card_ids", [])]
        winners = [players_by_id[i] for i in data.get("winner_ids", [])]

        current = int(data.get("current_player_index", 0))
        if not players or not 0 <= current < len(players):
            raise ValidationError("Snapshot has no valid current player")

        return GameState(
            game_id=data["game_id"],
            config=config,
            cards=cards,
            players=players,
            current_player_index=current,
            revealed_cards=revealed,
            time_remaining=int(data.get("time_remaining", 0)),
            started=bool(data.get("started", False)),
            is_paused=bool(data.get("is_paused", True)),
            is_game_over=bool(data.get("is_game_over", False)),
            winner=winners[0] if len(winners) == 1 else None,
            winners=winners,
            created_at=float(data.get("created_at", 0.0)),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Malformed snapshot: {e}") from e


# =============================================================================
# Stores
# =============================================================================

class SnapshotStore(ABC):
    """Persistence collaborator for saved games."""

    @abstractmethod
    def save_snapshot(self, key: str, blob: dict[str, Any]) -> None: ...

    @abstractmethod
    def load_snapshot(self, key: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def clear(self, key: str) -> None: ...


class InMemorySnapshotStore(SnapshotStore):

    def __init__(self):
        self._blobs: dict[str, dict[str, Any]] = {}

    def save_snapshot(self, key: str, blob: dict[str, Any]) -> None:
        self._blobs[key] = deepcopy(blob)

    def load_snapshot(self, key: str) -> dict[str, Any] | None:
        blob = self._blobs.get(key)
        return deepcopy(blob) if blob is not None else None

    def clear(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._blobs)


class JsonFileSnapshotStore(SnapshotStore):
    """
    One JSON file per key.

    Usage:
        store = JsonFileSnapshotStore("~/.pokememo/saves")
        store.save_snapshot(session_id, snapshot_to_dict(state))
    """

    def __init__(self, directory: str | Path | None = None):
        if directory is None:
            directory = Path.home() / ".pokememo" / "saves"
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def save_snapshot(self, key: str, blob: dict[str, Any]) -> None:
        path = self._get_path(key)
        # A failed dump leaves the previous save in place
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(blob, f, indent=2)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise ResourceError(f"Could not save snapshot {key}") from e

    def load_snapshot(self, key: str) -> dict[str, Any] | None:
        path = self._get_path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except ValueError:
            # Corrupt file: drop it
            logger.warning("Discarding unreadable snapshot %s", path)
            path.unlink(missing_ok=True)
            return None
        except OSError as e:
            raise ResourceError(f"Could not read snapshot {key}") from e

    def clear(self, key: str) -> None:
        self._get_path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        return [f.stem for f in self.directory.glob("*.json")]

    def _get_path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValidationError(f"Invalid snapshot key: {key!r}")
        return self.directory / f"{key}.json"
