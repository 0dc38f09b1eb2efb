"""
Unit tests for token_service: access JWT issue/verify and refresh token helpers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from flask import Flask

from cryptodash.app.services import token_service
from cryptodash.config import TestingConfig


@pytest.fixture
def app():
    app = Flask(__name__)
    app.config.from_object(TestingConfig)
    with app.app_context():
        yield app


def _decode(app, token: str) -> dict:
    return jwt.decode(token, app.config["JWT_SECRET_KEY"], algorithms=["HS256"])


# ── Access tokens ──────────────────────────────────────────────────────────

def test_access_token_round_trip(app):
    token = token_service.issue_access_token("user-123")
    assert token_service.verify_access_token(token) == {"user_id": "user-123"}


def test_access_token_claims_and_ttl(app):
    claims = _decode(app, token_service.issue_access_token("user-123"))
    assert claims["sub"] == "user-123"
    assert claims["exp"] - claims["iat"] == 900
    assert claims["jti"]


def test_two_tokens_for_same_user_differ(app):
    assert token_service.issue_access_token("u") != token_service.issue_access_token("u")


def test_expired_token_is_rejected(app):
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    token = jwt.encode({"sub": "u", "exp": past}, app.config["JWT_SECRET_KEY"], algorithm="HS256")
    with pytest.raises(token_service.InvalidToken):
        token_service.verify_access_token(token)


def test_wrong_secret_is_rejected(app):
    future = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"sub": "u", "exp": future}, "other-secret", algorithm="HS256")
    with pytest.raises(token_service.InvalidToken):
        token_service.verify_access_token(token)


@pytest.mark.parametrize("payload", [
    {"sub": "u"},                       # no exp
    {"exp": 4102444800},                # no sub
])
def test_missing_required_claim_is_rejected(app, payload):
    token = jwt.encode(payload, app.config["JWT_SECRET_KEY"], algorithm="HS256")
    with pytest.raises(token_service.InvalidToken):
        token_service.verify_access_token(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_rejected(app, token):
    with pytest.raises(token_service.InvalidToken):
        token_service.verify_access_token(token)


def test_ttl_follows_config(app):
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(seconds=30)
    claims = _decode(app, token_service.issue_access_token("u"))
    assert claims["exp"] - claims["iat"] == 30


# ── Refresh tokens ─────────────────────────────────────────────────────────

def test_refresh_token_is_128_hex_chars():
    token = token_service.issue_refresh_token()
    assert len(token) == 128
    int(token, 16)


def test_refresh_tokens_are_unique():
    assert len({token_service.issue_refresh_token() for _ in range(50)}) == 50


def test_hash_is_deterministic_sha256():
    digest = token_service.hash_refresh_token("abc")
    assert digest == token_service.hash_refresh_token("abc")
    assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_refresh_expiry_is_seven_days_out(app):
    expiry = token_service.compute_refresh_expiry()
    delta = expiry - datetime.now(timezone.utc)
    assert timedelta(days=7) - timedelta(seconds=5) < delta <= timedelta(days=7)


# ── is_expired ─────────────────────────────────────────────────────────────

def test_missing_expiry_counts_as_expired():
    assert token_service.is_expired(None) is True


def test_past_and_future_expiry():
    now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert token_service.is_expired(now - timedelta(seconds=1), now=now) is True
    assert token_service.is_expired(now + timedelta(seconds=1), now=now) is False


def test_naive_expiry_is_treated_as_utc():
    now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    naive_future = datetime(2026, 1, 1, 12, 5)
    assert token_service.is_expired(naive_future, now=now) is False
