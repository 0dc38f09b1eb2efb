"""
middleware/auth_middleware.py — Access-token cookie authentication decorator.

The @require_auth decorator:
  1. Reads the `token` cookie
  2. Verifies the JWT signature and expiry via token_service
  3. Loads the user the token names (secret columns are never projected)
  4. Attaches {id, email, name} to flask.g.user and the id to flask.g.user_id
  5. Raises the appropriate 401 error if any step fails

It never attempts a refresh. Refreshing is a separate, client-initiated call
to POST /auth/refresh.

Error codes:
  TOKEN_MISSING  (401) — no `token` cookie
  TOKEN_INVALID  (401) — bad signature, malformed, expired, or user deleted
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import g, request

from cryptodash.app.cookies import ACCESS_COOKIE
from cryptodash.app.errors import ErrorCode, unauthenticated
from cryptodash.app.extensions import db
from cryptodash.app.services import auth_service, token_service


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces access-token authentication.

    Raises AppError for all auth failures — the global error handler converts
    these to the JSON envelope. Routes never catch AppError.

    Usage:
        @bp.route("/preferences")
        @require_auth
        def get_preferences():
            user_id = g.user_id
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _authenticate_request() -> None:
    """
    Performs the full authentication sequence and sets flask.g.user.

    Separated from the decorator wrapper so tests can call it directly
    inside a request context.
    """
    raw_token = request.cookies.get(ACCESS_COOKIE)

    if not raw_token:
        raise unauthenticated(ErrorCode.TOKEN_MISSING, "Authentication required.")

    try:
        claims = token_service.verify_access_token(raw_token)
    except token_service.InvalidToken:
        raise unauthenticated(
            ErrorCode.TOKEN_INVALID,
            "Invalid or expired access token.",
        )

    user = auth_service.get_authenticated_user(claims["user_id"], db.session)
    if user is None:
        # Token is genuine but the account was deleted after it was issued.
        raise unauthenticated(
            ErrorCode.TOKEN_INVALID,
            "Invalid or expired access token.",
        )

    g.user = user
    g.user_id = user["id"]
