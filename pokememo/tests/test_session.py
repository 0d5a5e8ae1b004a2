"""
Tests for the session manager and process configuration.
"""

import pytest

from ..config import Settings, get_settings
from ..engine.events import GameEventType
from ..engine.state import Difficulty, GameConfig
from ..services import LeaderboardStore, ScoreReporter
from ..session import SessionManager, SessionState
from .helpers import pairs_of, play_pair


@pytest.fixture
def manager():
    return SessionManager(event_log_size=5)


class TestSessionManager:

    def test_create_records_events(self, manager, controller, two_player_config):
        session = manager.create_session(controller)
        controller.init_game(two_player_config)

        assert manager.get_session(session.session_id) is session
        assert session.state is SessionState.CREATED
        assert [e.seq for e in session.events] == [1]
        assert session.events[0].event.type is GameEventType.STATE_CHANGE

    def test_start_activates(self, manager, controller, two_player_config):
        session = manager.create_session(controller)
        controller.init_game(two_player_config)
        controller.start_game()

        assert session.state is SessionState.ACTIVE
        assert manager.list_active_sessions() == [session.session_id]

    def test_events_since(self, manager, controller, two_player_config, scheduler):
        session = manager.create_session(controller)
        controller.init_game(two_player_config)
        controller.start_game()
        scheduler.advance(2)

        assert [e.seq for e in session.events_since(2)] == [3, 4]
        assert session.last_seq == 4

    def test_event_log_is_bounded(self, manager, controller, two_player_config, scheduler):
        session = manager.create_session(controller)
        controller.init_game(two_player_config)
        controller.start_game()
        scheduler.advance(10)

        assert len(session.events) == 5
        assert session.last_seq == 12
        assert session.events[0].seq == 8

    def test_game_over_state(self, manager, controller, scheduler):
        session = manager.create_session(controller)
        controller.init_game(GameConfig(difficulty=Difficulty.EASY, players=["Solo"]))
        controller.start_game()
        for pair in pairs_of(controller.get_game_state()):
            play_pair(controller, scheduler, *pair)

        assert session.state is SessionState.GAME_OVER
        assert manager.list_active_sessions() == []
        assert manager.list_sessions() == [session.session_id]

    def test_end_session_tears_down(self, manager, controller, two_player_config, scheduler):
        board = LeaderboardStore()
        session = manager.create_session(controller, reporter=ScoreReporter(board))
        controller.init_game(two_player_config)
        controller.start_game()

        assert manager.end_session(session.session_id)
        assert session.state is SessionState.ABANDONED
        assert manager.get_session(session.session_id) is None
        assert controller.get_game_state() is None
        assert scheduler.pending == 0
        assert not manager.end_session(session.session_id)

    def test_cleanup_only_finished(self, manager, controller):
        live = manager.create_session(controller, session_id="live")
        finished = manager.create_session(controller, session_id="finished")
        finished.state = SessionState.GAME_OVER
        live.created_at = finished.created_at = 0.0

        assert manager.cleanup_stale_sessions(max_age_seconds=60) == 1
        assert manager.list_sessions() == ["live"]


class TestSettings:

    def test_defaults(self, monkeypatch):
        for key in ("POKEMEMO_TURN_DURATION", "POKEMEMO_ALLOWED_ORIGINS", "POKEMEMO_SNAPSHOT_DIR", "POKEMEMO_REVEAL_DELAY_MS", "POKEMEMO_SESSION_MAX_AGE"):
            monkeypatch.delenv(key, raising=False)
        settings = Settings.from_env()

        assert settings.turn_duration == 30
        assert settings.allowed_origins == ["*"]
        assert settings.snapshot_dir is None
        assert settings.game_settings().reveal_delay == 1.0
        assert settings.session_max_age == 3600.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("POKEMEMO_TURN_DURATION", "45")
        monkeypatch.setenv("POKEMEMO_REVEAL_DELAY_MS", "1500")
        monkeypatch.setenv("POKEMEMO_RELEASE_REVEALED_BEFORE_COMPARE", "false")
        monkeypatch.setenv("POKEMEMO_ALLOWED_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("POKEMEMO_LOG_LEVEL", "debug")

        settings = Settings.from_env()
        game = settings.game_settings()

        assert settings.log_level == "DEBUG"
        assert settings.allowed_origins == ["http://a.test", "http://b.test"]
        assert (game.turn_duration, game.reveal_delay) == (45, 1.5)
        assert game.release_revealed_before_compare is False

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
