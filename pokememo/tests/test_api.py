"""
Tests for the HTTP API.

Uses FastAPI's TestClient against a service wired to the offline
catalogue and virtual schedulers, so comparisons and the turn timer
only move when a test advances them.
"""

import random
import uuid

import pytest
from fastapi.testclient import TestClient

from ..api import APIService, create_app
from ..assets import StaticAssetProvider
from ..engine.scheduler import VirtualScheduler
from .helpers import mismatch_of, pairs_of


class SchedulerFactory:
    """Hands out VirtualSchedulers and remembers the latest one."""

    def __init__(self):
        self.schedulers = []

    def __call__(self):
        scheduler = VirtualScheduler()
        self.schedulers.append(scheduler)
        return scheduler

    @property
    def latest(self) -> VirtualScheduler:
        return self.schedulers[-1]


@pytest.fixture
def schedulers():
    return SchedulerFactory()


@pytest.fixture
def service(schedulers):
    return APIService(
        provider=StaticAssetProvider(rng=random.Random(1)),
        scheduler_factory=schedulers,
    )


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


def new_session(client, players=("Ash", "Misty"), **extra):
    body = {"players": [{"name": n} for n in players], "seed": 11, **extra}
    response = client.post("/api/v1/sessions", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def server_state(service, session_id):
    """Full state including face-down identities, for picking pairs."""
    return service.session_manager.get_session(session_id).controller.get_game_state()


def flip(client, session_id, card_id):
    return client.post(f"/api/v1/sessions/{session_id}/flip", json={"card_id": card_id})


class TestSystem:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["health"] == "/api/health"


class TestSessions:
    """Tests for session lifecycle endpoints."""

    def test_create_deals_hidden_board(self, client):
        data = new_session(client)
        game = data["game"]

        assert data["status"] == "created"
        assert game["phase"] == "initialized"
        assert (game["columns"], game["rows"]) == (4, 2)
        assert len(game["cards"]) == 8
        assert all(c["asset_key"] is None and c["name"] is None for c in game["cards"])
        assert [p["name"] for p in game["players"]] == ["Ash", "Misty"]
        assert game["current_player_id"] == game["players"][0]["player_id"]

    def test_medium_board(self, client):
        game = new_session(client, players=("Solo",), difficulty="medium")["game"]
        assert len(game["cards"]) == 16
        assert game["difficulty"] == "medium"

    def test_get_and_list(self, client):
        session_id = new_session(client)["session_id"]

        assert client.get(f"/api/v1/sessions/{session_id}").json()["session_id"] == session_id
        listing = client.get("/api/v1/sessions").json()
        assert listing == {"sessions": [session_id], "count": 1}

    def test_end_session(self, client, service, schedulers):
        session_id = new_session(client)["session_id"]
        client.post(f"/api/v1/sessions/{session_id}/start")

        response = client.delete(f"/api/v1/sessions/{session_id}")
        assert response.json() == {"success": True, "session_id": session_id}
        assert schedulers.latest.pending == 0
        assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404
        assert client.delete(f"/api/v1/sessions/{session_id}").json()["success"] is False

    def test_old_finished_sessions_dropped_on_create(self, client, service, schedulers):
        finished_id = new_session(client, players=("Solo",))["session_id"]
        client.post(f"/api/v1/sessions/{finished_id}/start")
        for a, b in pairs_of(server_state(service, finished_id)):
            flip(client, finished_id, a)
            flip(client, finished_id, b)
            schedulers.latest.advance(1.0)
        live_id = new_session(client)["session_id"]

        for session_id in (finished_id, live_id):
            service.session_manager.get_session(session_id).created_at = 0.0
        new_id = new_session(client)["session_id"]

        assert client.get(f"/api/v1/sessions/{finished_id}").status_code == 404
        assert sorted(service.session_manager.list_sessions()) == sorted([live_id, new_id])

    def test_unknown_session(self, client):
        response = client.get("/api/v1/sessions/missing/state")
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    @pytest.mark.parametrize("players", [(), ("A", "B", "C", "D", "E")])
    def test_bad_player_count(self, client, service, players):
        response = client.post("/api/v1/sessions", json={"players": [{"name": n} for n in players]})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert service.session_manager.list_sessions() == []

    def test_unknown_theme(self, client):
        response = client.post("/api/v1/sessions", json={"players": [{"name": "Ash"}], "theme_id": "gen9"})
        assert response.status_code == 400

    def test_malformed_body(self, client):
        response = client.post("/api/v1/sessions", json={"difficulty": "extreme"})
        body = response.json()
        assert response.status_code == 400
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["success"] is False
        assert body["details"]["errors"]

    def test_missing_theme_assets(self, client):
        response = client.post("/api/v1/sessions", json={"players": [{"name": "Ash"}], "theme_id": "2"})
        assert response.status_code == 502
        assert response.json()["error_code"] == "RESOURCE_ERROR"


class TestGameLoop:
    """Tests for play through the API."""

    def test_start_and_tick(self, client, schedulers):
        session_id = new_session(client)["session_id"]
        game = client.post(f"/api/v1/sessions/{session_id}/start").json()
        assert game["phase"] == "running"

        schedulers.latest.advance(4)
        state = client.get(f"/api/v1/sessions/{session_id}/state").json()
        assert state["time_remaining"] == 26

        paused = client.post(f"/api/v1/sessions/{session_id}/pause").json()
        assert paused["phase"] == "paused"
        assert client.get(f"/api/v1/sessions/{session_id}").json()["status"] == "active"

    def test_flip_reveals_card(self, client, service):
        session_id = new_session(client)["session_id"]
        client.post(f"/api/v1/sessions/{session_id}/start")
        a, _ = pairs_of(server_state(service, session_id))[0]

        body = flip(client, session_id, a).json()
        card = next(c for c in body["game"]["cards"] if c["card_id"] == a)
        assert body["result"] == "first_card"
        assert card["is_flipped"] and card["name"]
        assert body["game"]["revealed_card_ids"] == [a]

    def test_flip_while_paused_is_invalid(self, client):
        session_id = new_session(client)["session_id"]
        assert flip(client, session_id, 0).json()["result"] == "invalid"

    def test_comparison_arrives_on_event_log(self, client, service, schedulers):
        session_id = new_session(client)["session_id"]
        client.post(f"/api/v1/sessions/{session_id}/start")
        seen = client.get(f"/api/v1/sessions/{session_id}/events").json()["last_seq"]

        a, b = pairs_of(server_state(service, session_id))[0]
        flip(client, session_id, a)
        second = flip(client, session_id, b).json()
        assert second["result"] == "first_card"
        assert second["game"]["is_comparing"] is True

        schedulers.latest.advance(1.0)
        events = client.get(f"/api/v1/sessions/{session_id}/events", params={"since": seen}).json()
        types = [e["type"] for e in events["events"]]
        assert types == ["cardFlipped", "cardFlipped", "match"]

        match = events["events"][-1]["payload"]
        assert {c["card_id"] for c in match["cards"]} == {a, b}
        assert match["player"]["score"] == 500

    def test_mismatch_hands_turn_over(self, client, service, schedulers):
        data = new_session(client)
        session_id = data["session_id"]
        misty_id = data["game"]["players"][1]["player_id"]
        client.post(f"/api/v1/sessions/{session_id}/start")

        a, b = mismatch_of(server_state(service, session_id))
        flip(client, session_id, a)
        flip(client, session_id, b)
        schedulers.latest.advance(1.0)

        state = client.get(f"/api/v1/sessions/{session_id}/state").json()
        assert state["current_player_id"] == misty_id
        assert state["phase"] == "paused"
        assert client.post(f"/api/v1/sessions/{session_id}/resume").json()["phase"] == "running"

    def test_finished_game(self, client, service, schedulers):
        session_id = new_session(client, players=("Solo",))["session_id"]
        client.post(f"/api/v1/sessions/{session_id}/start")

        for a, b in pairs_of(server_state(service, session_id)):
            flip(client, session_id, a)
            flip(client, session_id, b)
            schedulers.latest.advance(1.0)

        state = client.get(f"/api/v1/sessions/{session_id}/state").json()
        assert state["is_game_over"]
        assert state["winner_ids"] == [state["players"][0]["player_id"]]
        assert client.get(f"/api/v1/sessions/{session_id}").json()["status"] == "game_over"

        assert flip(client, session_id, 0).json()["result"] == "game_over"
        response = client.post(f"/api/v1/sessions/{session_id}/start")
        assert response.status_code == 409
        assert response.json()["error_code"] == "STATE_ERROR"

        board = client.get("/api/v1/leaderboard").json()["data"]
        assert [(e["player_name"], e["score"]) for e in board] == [("Solo", 500)]


class TestSaveRestore:

    def test_save_and_restore(self, client, service, schedulers):
        session_id = new_session(client)["session_id"]
        client.post(f"/api/v1/sessions/{session_id}/start")
        schedulers.latest.advance(7)
        a, _ = pairs_of(server_state(service, session_id))[0]
        flip(client, session_id, a)

        saved = client.post(f"/api/v1/sessions/{session_id}/save").json()
        assert saved["key"] == session_id
        client.delete(f"/api/v1/sessions/{session_id}")

        response = client.post("/api/v1/sessions/restore", json={"key": session_id})
        assert response.status_code == 201
        restored = response.json()
        assert restored["session_id"] != session_id
        assert restored["status"] == "active"
        assert restored["game"]["phase"] == "paused"
        assert restored["game"]["time_remaining"] == 23
        assert restored["game"]["revealed_card_ids"] == [a]

    def test_restore_unknown_key(self, client):
        response = client.post("/api/v1/sessions/restore", json={"key": "nothing-here"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "SNAPSHOT_NOT_FOUND"

    def test_finishing_restored_game_clears_save(self, client, service, schedulers):
        session_id = new_session(client, players=("Solo",))["session_id"]
        client.post(f"/api/v1/sessions/{session_id}/save")
        restored_id = client.post("/api/v1/sessions/restore", json={"key": session_id}).json()["session_id"]
        client.post(f"/api/v1/sessions/{restored_id}/resume")

        for a, b in pairs_of(server_state(service, restored_id)):
            flip(client, restored_id, a)
            flip(client, restored_id, b)
            schedulers.latest.advance(1.0)

        assert service.snapshots.load_snapshot(session_id) is None


class TestLeaderboardAndPlayers:

    def score_body(self, **overrides):
        body = {
            "player_id": "p1",
            "player_name": "Ash",
            "score": 500,
            "difficulty": "easy",
            "total_flips": 8,
            "matches": 4,
        }
        body.update(overrides)
        return body

    def test_submit_and_list(self, client):
        first = client.post("/api/v1/scores", json=self.score_body())
        client.post("/api/v1/scores", json=self.score_body(player_name="Misty", score=700))

        assert first.status_code == 201
        data = client.get("/api/v1/leaderboard").json()["data"]
        assert [e["player_name"] for e in data] == ["Misty", "Ash"]
        assert data[1]["id"] == first.json()["id"]

        hard = client.get("/api/v1/leaderboard", params={"difficulty": "hard"}).json()["data"]
        assert hard == []
        assert len(client.get("/api/v1/leaderboard", params={"limit": 1}).json()["data"]) == 1

    def test_impossible_score_rejected(self, client):
        response = client.post("/api/v1/scores", json=self.score_body(total_flips=4, matches=3))
        assert response.status_code == 400

    def test_limit_bounds(self, client):
        assert client.get("/api/v1/leaderboard", params={"limit": 0}).status_code == 400

    def test_player_profile(self, client):
        player_id = str(uuid.uuid4())
        assert client.get(f"/api/v1/players/{player_id}").status_code == 404

        response = client.put(
            f"/api/v1/players/{player_id}",
            json={"name": "Ash", "preferences": {"dark_mode": True}},
        )
        assert response.status_code == 200
        profile = client.get(f"/api/v1/players/{player_id}").json()["data"]
        assert profile["id"] == player_id
        assert profile["preferences"] == {"dark_mode": True, "favorite_generation": 1, "sound_enabled": True}

    def test_player_bad_id(self, client):
        assert client.get("/api/v1/players/not-a-uuid").status_code == 400
        assert client.put("/api/v1/players/not-a-uuid", json={"name": "Ash"}).status_code == 400

    def test_game_updates_profile(self, client, service, schedulers):
        player_id = str(uuid.uuid4())
        body = {"players": [{"name": "Ash", "player_id": player_id}]}
        session_id = client.post("/api/v1/sessions", json=body).json()["session_id"]
        client.post(f"/api/v1/sessions/{session_id}/start")
        for a, b in pairs_of(server_state(service, session_id)):
            flip(client, session_id, a)
            flip(client, session_id, b)
            schedulers.latest.advance(1.0)

        profile = client.get(f"/api/v1/players/{player_id}").json()["data"]
        assert profile["total_games_played"] == 1
        assert profile["top_scores"][0]["score"] == 500
