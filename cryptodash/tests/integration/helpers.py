"""
tests/integration/helpers.py — Shared helpers for integration tests.

Plain functions rather than fixtures so they can be called with arbitrary
arguments from any test.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy import select

from cryptodash.app.extensions import db
from cryptodash.app.models.user import User

ACCESS_COOKIE = "token"
REFRESH_COOKIE = "refreshToken"


def register(
    client,
    email: str = "a@x.com",
    password: str = "secret1",
    name: str = "A",
) -> dict:
    """Registers a user and returns the public user dict."""
    resp = client.post(
        "/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()["data"]["user"]


def login(client, email: str = "a@x.com", password: str = "secret1") -> dict:
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    return resp.get_json()["data"]["user"]


def cookie_value(client, name: str) -> str | None:
    cookie = client.get_cookie(name)
    return cookie.value if cookie is not None else None


def set_cookie(client, name: str, value: str) -> None:
    client.set_cookie(name, value)


def set_cookie_headers(resp) -> dict[str, str]:
    """Maps cookie name → full Set-Cookie header for one response."""
    headers = {}
    for header in resp.headers.getlist("Set-Cookie"):
        name = header.split("=", 1)[0]
        headers[name] = header
    return headers


def fresh_client_with(app, **cookies):
    """A new test client carrying only the given cookies."""
    new_client = app.test_client()
    for name, value in cookies.items():
        new_client.set_cookie(name, value)
    return new_client


def expired_access_token(app, user_id: str) -> str:
    """A correctly signed access token whose exp is in the past."""
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {
            "sub": user_id,
            "iat": now - timedelta(minutes=30),
            "exp": now - timedelta(minutes=15),
        },
        app.config["JWT_SECRET_KEY"],
        algorithm=app.config["JWT_ALGORITHM"],
    )


def get_user(app, email: str) -> User:
    with app.app_context():
        user = db.session.execute(
            select(User).where(User.email == email)
        ).scalar_one()
        db.session.expunge(user)
        return user


def expire_refresh_token(app, email: str) -> None:
    """Moves the stored refresh-token expiry into the past."""
    with app.app_context():
        user = db.session.execute(
            select(User).where(User.email == email)
        ).scalar_one()
        user.refresh_token_expiry = datetime.now(timezone.utc) - timedelta(seconds=1)
        db.session.commit()


def delete_user(app, email: str) -> None:
    with app.app_context():
        user = db.session.execute(
            select(User).where(User.email == email)
        ).scalar_one()
        db.session.delete(user)
        db.session.commit()
