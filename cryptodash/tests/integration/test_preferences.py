"""
tests/integration/test_preferences.py — Guarded dashboard endpoints.

Endpoints covered:
  GET  /preferences      → 404 before onboarding, 200 afterwards
  GET  /preferences/me   → alias of GET /preferences
  POST /preferences      → upsert
  POST /vote             → upsert, one vote per (user, content)
  GET  /health           → public liveness probe
"""

from __future__ import annotations

from sqlalchemy import func, select

from cryptodash.app.extensions import db
from cryptodash.app.models.vote import Vote
from cryptodash.tests.integration.helpers import register

VALID_PREFERENCES = {
    "experienceLevel": "beginner",
    "riskTolerance": "moderate",
    "investmentGoals": ["long-term holding"],
    "favoriteCryptos": ["bitcoin", "ethereum"],
    "contentTypes": ["news", "prices"],
}


def _vote_count(app) -> int:
    with app.app_context():
        return db.session.execute(select(func.count()).select_from(Vote)).scalar_one()


class TestPreferences:

    def test_get_before_onboarding_returns_404(self, client):
        register(client)
        resp = client.get("/preferences")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "PREFERENCES_NOT_FOUND"

    def test_save_then_read_back(self, client):
        register(client)
        resp = client.post("/preferences", json=VALID_PREFERENCES)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["preferences"] == VALID_PREFERENCES

        resp = client.get("/preferences")
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "data": {"preferences": VALID_PREFERENCES}}

    def test_me_alias_matches(self, client):
        register(client)
        client.post("/preferences", json=VALID_PREFERENCES)
        assert client.get("/preferences/me").get_json() == client.get("/preferences").get_json()

    def test_second_save_updates_in_place(self, client):
        register(client)
        client.post("/preferences", json=VALID_PREFERENCES)
        updated = {**VALID_PREFERENCES, "experienceLevel": "advanced", "favoriteCryptos": ["solana"]}

        resp = client.post("/preferences", json=updated)
        assert resp.status_code == 200
        assert client.get("/preferences").get_json()["data"]["preferences"] == updated

    def test_content_types_default_to_empty_list(self, client):
        register(client)
        payload = {k: v for k, v in VALID_PREFERENCES.items() if k != "contentTypes"}
        resp = client.post("/preferences", json=payload)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["preferences"]["contentTypes"] == []

    def test_preferences_are_per_user(self, client, other_client):
        register(client)
        register(other_client, email="b@x.com", name="B")
        client.post("/preferences", json=VALID_PREFERENCES)
        assert other_client.get("/preferences").status_code == 404

    def test_invalid_enum_returns_400(self, client):
        register(client)
        resp = client.post("/preferences", json={**VALID_PREFERENCES, "riskTolerance": "yolo"})
        assert resp.status_code == 400
        details = resp.get_json()["error"]["details"]
        assert [d["field"] for d in details] == ["riskTolerance"]

    def test_empty_favorites_returns_400(self, client):
        register(client)
        resp = client.post("/preferences", json={**VALID_PREFERENCES, "favoriteCryptos": []})
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "VALIDATION_ERROR"

    def test_blank_list_item_reports_indexed_field(self, client):
        register(client)
        resp = client.post("/preferences", json={**VALID_PREFERENCES, "investmentGoals": ["ok", ""]})
        assert resp.status_code == 400
        fields = [d["field"] for d in resp.get_json()["error"]["details"]]
        assert fields == ["investmentGoals.1"]

    def test_requires_access_cookie(self, client):
        assert client.get("/preferences").status_code == 401
        resp = client.post("/preferences", json=VALID_PREFERENCES)
        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "TOKEN_MISSING"


class TestVote:

    def test_vote_returns_saved_value(self, client):
        register(client)
        resp = client.post("/vote", json={"contentId": "news-42", "vote": "up"})
        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"vote": {"contentId": "news-42", "vote": "up"}}

    def test_revote_replaces_previous_vote(self, app, client):
        register(client)
        client.post("/vote", json={"contentId": "news-42", "vote": "up"})
        resp = client.post("/vote", json={"contentId": "news-42", "vote": "down"})
        assert resp.get_json()["data"]["vote"]["vote"] == "down"
        assert _vote_count(app) == 1

    def test_votes_are_per_user(self, app, client, other_client):
        register(client)
        register(other_client, email="b@x.com", name="B")
        client.post("/vote", json={"contentId": "news-42", "vote": "up"})
        other_client.post("/vote", json={"contentId": "news-42", "vote": "down"})
        assert _vote_count(app) == 2

    def test_invalid_vote_value_returns_400(self, client):
        register(client)
        resp = client.post("/vote", json={"contentId": "news-42", "vote": "sideways"})
        assert resp.status_code == 400

    def test_missing_content_id_returns_400(self, client):
        register(client)
        resp = client.post("/vote", json={"vote": "up"})
        assert resp.status_code == 400
        assert resp.get_json()["error"]["details"][0]["field"] == "contentId"

    def test_requires_access_cookie(self, client):
        resp = client.post("/vote", json={"contentId": "news-42", "vote": "up"})
        assert resp.status_code == 401


class TestHealth:

    def test_health_is_public(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "ok"
        assert body["message"] == "Server is running"
        assert "timestamp" in body
