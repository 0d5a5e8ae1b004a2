"""
Whole games played through the controller.
"""

import uuid

from ..engine.events import GameEventType
from ..engine.state import Difficulty, GameConfig, GamePhase, PlayerSetup
from ..services import InMemorySnapshotStore, LeaderboardStore, ProfileStore, ScoreReporter
from .helpers import EventRecorder, mismatch_of, pairs_of, play_pair


class TestTwoPlayerGame:
    """Scripted two-player games on the easy board (four pairs A-D)."""

    def test_outright_winner(self, running_game, scheduler):
        recorder = EventRecorder(running_game.events)
        pair_a, pair_b, pair_c, pair_d = pairs_of(running_game.get_game_state())

        # Ash: A, B, then a miss
        play_pair(running_game, scheduler, *pair_a)
        play_pair(running_game, scheduler, *pair_b)
        play_pair(running_game, scheduler, pair_c[0], pair_d[0])
        assert running_game.get_current_player().name == "Misty"

        # Misty: C, then runs out of time
        running_game.resume_game()
        play_pair(running_game, scheduler, *pair_c)
        scheduler.advance(30)
        assert running_game.get_current_player().name == "Ash"

        # Ash: D ends the game
        running_game.resume_game()
        play_pair(running_game, scheduler, *pair_d)

        state = running_game.get_game_state()
        ash, misty = state.players
        assert (ash.matches, ash.total_flips, ash.score) == (3, 8, 375)
        assert (misty.matches, misty.total_flips, misty.score) == (1, 2, 500)
        assert state.phase == GamePhase.GAME_OVER
        assert state.winner.name == "Misty"

        over = recorder.of(GameEventType.GAME_OVER)
        assert len(over) == 1
        assert [p.name for p in over[0].final_scores] == ["Misty", "Ash"]
        assert [p.name for p in over[0].winners] == ["Misty"]
        assert scheduler.pending == 0

    def test_tie(self, running_game, scheduler):
        recorder = EventRecorder(running_game.events)
        pair_a, pair_b, pair_c, pair_d = pairs_of(running_game.get_game_state())

        play_pair(running_game, scheduler, *pair_a)
        play_pair(running_game, scheduler, pair_b[0], pair_c[0])

        running_game.resume_game()
        play_pair(running_game, scheduler, *pair_b)
        play_pair(running_game, scheduler, pair_c[0], pair_d[0])

        running_game.resume_game()
        play_pair(running_game, scheduler, *pair_c)
        scheduler.advance(30)

        running_game.resume_game()
        play_pair(running_game, scheduler, *pair_d)

        state = running_game.get_game_state()
        assert [p.score for p in state.players] == [333, 333]
        assert state.winner is None
        assert [p.name for p in state.winners] == ["Ash", "Misty"]

        over = recorder.of(GameEventType.GAME_OVER)[0]
        assert over.is_tie
        assert over.winner is None

    def test_turn_order_in_event_stream(self, running_game, scheduler):
        recorder = EventRecorder(running_game.events)
        a, b = mismatch_of(running_game.get_game_state())
        play_pair(running_game, scheduler, a, b)
        running_game.resume_game()

        assert recorder.types() == [
            GameEventType.CARD_FLIPPED,
            GameEventType.CARD_FLIPPED,
            GameEventType.MISMATCH,
            GameEventType.TURN_SWITCH,
            GameEventType.GAME_PAUSED,
            GameEventType.GAME_RESUMED,
        ]
        assert recorder.of(GameEventType.GAME_RESUMED)[0].player.name == "Misty"

    def test_nothing_fires_after_game_over(self, running_game, scheduler):
        for pair in pairs_of(running_game.get_game_state()):
            play_pair(running_game, scheduler, *pair)

        recorder = EventRecorder(running_game.events)
        scheduler.advance(120)
        assert recorder.events == []


class TestReportedGame:
    """A finished game feeding the leaderboard and profiles."""

    def test_scores_and_profiles_recorded(self, controller, scheduler):
        ash_id = str(uuid.uuid4())
        leaderboard = LeaderboardStore()
        profiles = ProfileStore()
        snapshots = InMemorySnapshotStore()
        snapshots.save_snapshot("slot-1", {"version": 1})
        ScoreReporter(leaderboard, profiles, snapshots, snapshot_key="slot-1").attach(controller)

        controller.init_game(GameConfig(
            difficulty=Difficulty.EASY,
            players=[PlayerSetup(name="Ash", player_id=ash_id), PlayerSetup(name="Guest")],
        ))
        controller.start_game()
        for pair in pairs_of(controller.get_game_state()):
            play_pair(controller, scheduler, *pair)

        top = leaderboard.top()
        assert [e.player_name for e in top] == ["Ash", "Guest"]
        assert top[0].score == 500
        assert top[0].difficulty is Difficulty.EASY
        assert top[1].score == 0

        profile = profiles.get(ash_id)
        assert profile.total_games_played == 1
        assert [s.score for s in profile.top_scores] == [500]
        assert snapshots.load_snapshot("slot-1") is None
