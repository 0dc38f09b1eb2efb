"""
services/token_service.py — Access and refresh token primitives.

Two token kinds with opposite trade-offs:
  - Access token: JWT (HS256), short TTL, verified by signature and expiry
    only. Stateless, so it cannot be revoked before it expires.
  - Refresh token: opaque random hex string with no embedded claims. Only its
    SHA-256 digest is stored (users.refresh_token_hash), so it is revoked by
    overwriting or clearing that column.

current_app.config supplies JWT_SECRET_KEY, JWT_ALGORITHM and both TTLs.
The app factory refuses to start without JWT_SECRET_KEY (config.validate_config).
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timezone

import jwt
from flask import current_app

# 64 random bytes → 128 hex characters (512 bits of entropy).
REFRESH_TOKEN_BYTES = 64


class InvalidToken(Exception):
    """The access token is malformed, tampered with, or expired."""


def issue_access_token(user_id: str) -> str:
    """
    Creates a signed JWT access token.
    Payload: sub (user_id), iat, exp, jti.
    """
    now = datetime.now(timezone.utc)
    expiry = now + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": expiry,
        # Guarantees each issued token is unique even if generated in the same second.
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def verify_access_token(token: str) -> dict:
    """
    Verifies signature and expiry and returns {"user_id": <sub>}.

    Raises InvalidToken for every failure. Expired and malformed tokens are
    deliberately indistinguishable to the caller.
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
            options={"require": ["exp", "sub"]},
        )
    except jwt.InvalidTokenError as exc:
        # ExpiredSignatureError is a subclass of InvalidTokenError.
        raise InvalidToken(str(exc)) from exc

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise InvalidToken("sub claim is not a user id")

    return {"user_id": sub}


def issue_refresh_token() -> str:
    """Returns a new plaintext refresh token. It is sent to the client once and never stored."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_refresh_token(plaintext: str) -> str:
    """SHA-256 hex digest, used for at-rest storage and equality lookups."""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def compute_refresh_expiry() -> datetime:
    return datetime.now(timezone.utc) + current_app.config["JWT_REFRESH_TOKEN_EXPIRES"]


def is_expired(expiry: datetime | None, now: datetime | None = None) -> bool:
    """
    True when `expiry` is missing or in the past.

    SQLite hands back naive datetimes for DateTime(timezone=True) columns;
    those values were written as UTC, so they are compared as UTC.
    """
    if expiry is None:
        return True
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return now > expiry
