"""
Services Module - Collaborators around the game engine.

- Snapshots: save a game in progress and restore it later
- Profiles: per-player history and preferences
- Leaderboard: best completed games
- Reporting: pushes final scores to the above when a game ends

All stores here are in-memory (snapshots may also go to JSON files).
"""

from .leaderboard import LeaderboardEntry, LeaderboardStore, SubmitScoreRequest, validate_submission
from .profiles import PlayerProfile, Preferences, ProfileStore, TopScore, is_valid_player_id
from .snapshots import (
    SnapshotStore,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    snapshot_to_dict,
    snapshot_from_dict,
)
from .reporting import ScoreReporter

__all__ = [
    # Leaderboard
    "LeaderboardEntry",
    "LeaderboardStore",
    "SubmitScoreRequest",
    "validate_submission",
    # Profiles
    "PlayerProfile",
    "Preferences",
    "ProfileStore",
    "TopScore",
    "is_valid_player_id",
    # Snapshots
    "SnapshotStore",
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    "snapshot_to_dict",
    "snapshot_from_dict",
    # Reporting
    "ScoreReporter",
]
