"""
Integration tests for the card delivery HTTP API.
"""

import os
import random
from unittest.mock import patch

import pytest

from app.main import create_app
from card_service import RelevanceScorer, SessionCodec
from card_service.recommendations import build_default_signals
from config_manager import ConfigManager
from conftest import NOW, FakeStore

COOKIE = "card_session"


def _config(tmp_path, **rate_limit):
    with patch.dict(os.environ, {"SESSION_SECRET": "route-test-secret"}, clear=True):
        manager = ConfigManager(str(tmp_path / "missing.json"))
    manager._config["rate_limit"]["enabled"] = False
    manager._config["rate_limit"].update(rate_limit)
    return manager


@pytest.fixture
def app_factory(tmp_path):
    def _create(store, **rate_limit):
        scorer = RelevanceScorer(build_default_signals(), rng=random.Random(0), now=lambda: NOW, jitter=0)
        app = create_app(
            config_manager=_config(tmp_path, **rate_limit),
            content_store=store,
            user_data_dir=tmp_path / "user_data",
            scorer=scorer,
        )
        app.config["TESTING"] = True
        return app
    return _create


@pytest.fixture
def app(app_factory, fake_store):
    return app_factory(fake_store)


@pytest.fixture
def client(app):
    return app.test_client()


def _session_state(client):
    cookie = client.get_cookie(COOKIE)
    assert cookie is not None
    return SessionCodec("route-test-secret").decode(cookie.value)


class TestGetCard:
    def test_first_visit_gets_card_and_cookie(self, client):
        response = client.get("/api/card")
        assert response.status_code == 200

        data = response.get_json()
        assert data["success"] is True
        assert data["card"]["_id"] == "a1"
        assert data["meta"] == {"totalAvailable": 3, "totalSeen": 1, "percentageComplete": 33.3}

        set_cookie = response.headers["Set-Cookie"]
        assert "HttpOnly" in set_cookie
        assert "SameSite=Strict" in set_cookie
        assert _session_state(client).delivered_items == ["a1"]

    def test_session_round_trip_avoids_repeats(self, client):
        ids = [client.get("/api/card").get_json()["card"]["_id"] for _ in range(3)]
        assert sorted(ids) == ["a1", "a2", "a3"]

        data = client.get("/api/card").get_json()
        assert data["meta"]["allSeen"] is True
        assert data["meta"]["message"]
        assert data["meta"]["percentageComplete"] == 100.0

    def test_language_query(self, client):
        data = client.get("/api/card?language=fr").get_json()
        assert data["card"]["_id"] == "a3"

    def test_no_cards_for_language(self, client):
        response = client.get("/api/card?language=de")
        assert response.status_code == 404
        assert response.get_json() == {"success": False, "error": "No cards available"}
        assert client.get_cookie(COOKIE) is None

    def test_tampered_cookie_starts_fresh(self, client):
        client.set_cookie(COOKIE, "deadbeef:00ff")
        response = client.get("/api/card")
        assert response.status_code == 200
        assert _session_state(client).interaction_count == 1

    def test_store_unavailable(self, app_factory):
        store = FakeStore([])
        store.fail = True
        client = app_factory(store).test_client()

        response = client.get("/api/card")
        assert response.status_code == 503
        assert response.get_json()["success"] is False

    def test_card_view_is_tracked(self, app, client):
        client.get("/api/card")
        tracker = app.extensions["event_tracking"]["service"]
        assert tracker.get_event_counts() == {"card_view": 1}


class TestFeedback:
    def test_like(self, app, client):
        client.get("/api/card")
        response = client.post("/api/card/a1/feedback", json={"action": "like"})
        assert response.status_code == 200
        assert response.get_json()["success"] is True
        assert _session_state(client).liked_items == ["a1"]

        tracker = app.extensions["event_tracking"]["service"]
        assert tracker.get_events()[-1].action == "like"

    def test_invalid_action(self, client):
        response = client.post("/api/card/a1/feedback", json={"action": "love"})
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_missing_action(self, client):
        assert client.post("/api/card/a1/feedback", json={}).status_code == 400

    @pytest.mark.parametrize("body", [["like"], "like", 3, None])
    def test_non_object_body(self, client, body):
        response = client.post("/api/card/a1/feedback", json=body)
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_form_encoded_action(self, client):
        response = client.post("/api/card/a1/feedback", data={"action": "skip"})
        assert response.status_code == 200

    def test_unknown_card(self, client):
        response = client.post("/api/card/nope/feedback", json={"action": "like"})
        assert response.status_code == 404
        assert response.get_json()["error"] == "Card not found"


class TestShowLaterShareReset:
    def test_show_later(self, client):
        client.get("/api/card")
        response = client.post("/api/card/a1/later")
        assert response.status_code == 200
        assert _session_state(client).delivered_items == []

    def test_show_later_unknown_card(self, client):
        assert client.post("/api/card/nope/later").status_code == 404

    def test_share(self, app, client):
        response = client.post("/api/card/a2/share")
        assert response.status_code == 200
        assert app.extensions["event_tracking"]["service"].get_event_counts() == {"share": 1}

    def test_reset_clears_history(self, client):
        client.get("/api/card")
        client.get("/api/card")
        response = client.post("/api/reset")
        assert response.status_code == 200
        assert client.get_cookie(COOKIE) is None

        data = client.get("/api/card").get_json()
        assert data["card"]["_id"] == "a1"
        assert data["meta"]["totalSeen"] == 1


class TestStatsAndMeta:
    def test_stats_for_new_visitor(self, client):
        data = client.get("/api/stats").get_json()
        assert data["success"] is True
        assert data["stats"]["totalSeen"] == 0
        assert data["stats"]["totalLikes"] == 0
        assert data["stats"]["languages"] == ["en"]

    def test_stats_after_activity(self, client):
        client.get("/api/card")
        client.post("/api/card/a1/feedback", json={"action": "like"})
        stats = client.get("/api/stats").get_json()["stats"]
        assert stats["totalSeen"] == 1
        assert stats["totalLikes"] == 1
        assert stats["totalClicks"] == 1
        assert stats["preferredTypes"] == {"article": 1}

    def test_health(self, client):
        data = client.get("/api/health").get_json()
        assert data["status"] == "healthy"
        assert data["timestamp"]

    def test_config(self, client):
        config = client.get("/api/config").get_json()["config"]
        assert config["showCardStats"] is False
        assert config["showOnlyCardsWithImages"] is False
        assert config["contentUrl"]

    def test_root(self, client):
        data = client.get("/").get_json()
        assert data["success"] is True
        assert "getCard" in data["endpoints"]

    def test_unknown_endpoint(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.get_json()["success"] is False


def test_rate_limit_applies_to_api(app_factory, fake_store):
    client = app_factory(fake_store, enabled=True, max_requests=2).test_client()
    assert client.get("/api/health").status_code == 200
    assert client.get("/api/health").status_code == 200
    assert client.get("/api/health").status_code == 429
