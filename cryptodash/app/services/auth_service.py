"""
services/auth_service.py — Session protocol business logic.

Responsibilities:
  - User registration and credential validation
  - Refresh token lifecycle against the credential store (users table):
    store on register/login, verify on refresh, clear on logout or expiry
  - Password hashing (bcrypt) and verification

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or cookies; the route owns the cookie
    lifecycle and receives raw tokens in the returned dict
  - current_app.config is read only for BCRYPT_LOG_ROUNDS and
    ROTATE_REFRESH_TOKENS (token settings are read by token_service)

Session model:
  - One live refresh token per user. Register, login (and refresh, when
    rotation is enabled) overwrite users.refresh_token_hash, which silently
    invalidates the previous token on any other device.
  - Expired refresh tokens are purged lazily, when they are presented.
  - Concurrent logins for the same user are not serialised: last write wins.

Password storage:
  - bcrypt, cost factor from BCRYPT_LOG_ROUNDS
  - Raw passwords and raw tokens are never stored and never logged
"""

from __future__ import annotations

import logging

import bcrypt
from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cryptodash.app.errors import AppError, ErrorCode
from cryptodash.app.models.user import User
from cryptodash.app.services import token_service

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input and recent releases
# reject anything longer.
BCRYPT_MAX_BYTES = 72

_INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
_INVALID_REFRESH_MESSAGE = "The refresh token is invalid or has expired."


# ── Private helpers ────────────────────────────────────────────────────────

def normalize_email(email: str) -> str:
    return email.strip().lower()


def _hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def _check_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))


def _store_new_refresh_token(user: User, session: Session) -> str:
    """
    Issues a refresh token, overwrites the user's stored hash and expiry,
    and returns the plaintext for the Set-Cookie header.
    """
    raw_token = token_service.issue_refresh_token()
    user.refresh_token_hash = token_service.hash_refresh_token(raw_token)
    user.refresh_token_expiry = token_service.compute_refresh_expiry()
    # flush so the row reflects the new hash; commit is the route's job
    session.flush()
    return raw_token


def _clear_refresh_token(user: User) -> None:
    user.refresh_token_hash = None
    user.refresh_token_expiry = None


def _find_user_by_refresh_token(raw_token: str, session: Session) -> User | None:
    token_hash = token_service.hash_refresh_token(raw_token)
    return session.execute(
        select(User).where(User.refresh_token_hash == token_hash)
    ).scalar_one_or_none()


def _find_user_by_email(email: str, session: Session) -> User | None:
    return session.execute(
        select(User).where(User.email == normalize_email(email))
    ).scalar_one_or_none()


def _duplicate_email_error() -> AppError:
    return AppError(
        ErrorCode.DUPLICATE_EMAIL,
        "User with this email already exists.",
        400,
        details=[{"field": "email", "message": "Email is already registered."}],
    )


def _session_result(user: User, refresh_token: str | None = None) -> dict:
    result = {
        "user": user.to_public_dict(),
        "access_token": token_service.issue_access_token(user.id),
    }
    if refresh_token is not None:
        result["refresh_token"] = refresh_token
    return result


# ── Public service functions ───────────────────────────────────────────────

def register_user(
        email: str,
        password: str,
        name: str,
        session: Session,
) -> dict:
    """
    Creates a new user account and opens a session for it.

    Raises:
      AppError(DUPLICATE_EMAIL, 400) — email already registered (case-insensitive)

    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    email = normalize_email(email)

    if _find_user_by_email(email, session) is not None:
        raise _duplicate_email_error()

    user = User(
        email=email,
        password_hash=_hash_password(password),
        name=name.strip(),
    )
    session.add(user)
    try:
        session.flush()  # populate user.id before issuing tokens
    except IntegrityError:
        # A concurrent registration inserted the same email after our lookup.
        session.rollback()
        logger.info("Registration lost a race on the email unique constraint")
        raise _duplicate_email_error()

    refresh_token = _store_new_refresh_token(user, session)
    logger.info("Registered user %s", user.id)

    return _session_result(user, refresh_token)


def login_user(
        email: str,
        password: str,
        session: Session,
) -> dict:
    """
    Validates credentials and opens a new session.

    The new refresh token replaces any previous one for this user.

    Raises:
      AppError(INVALID_CREDENTIALS, 401) — email not found or password wrong.
      Uses the same error for both to avoid account enumeration.

    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    user = _find_user_by_email(email, session)

    if user is None or not _check_password(password, user.password_hash):
        logger.info("Rejected login attempt")
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            _INVALID_CREDENTIALS_MESSAGE,
            401,
        )

    refresh_token = _store_new_refresh_token(user, session)
    logger.info("User %s logged in", user.id)

    return _session_result(user, refresh_token)


def refresh_session(
        raw_refresh_token: str | None,
        session: Session,
) -> dict:
    """
    Exchanges a refresh token for a new access token.

    By default the refresh token is NOT rotated: the same token stays valid
    until its original expiry or until a new login supersedes it. With
    ROTATE_REFRESH_TOKENS enabled a replacement is issued and returned.

    An expired token is cleared from the user's row before the request is
    rejected, so presenting it again finds no match at all. This function
    commits that cleanup itself because the error propagates past the
    route's commit.

    Raises:
      AppError(REFRESH_TOKEN_MISSING, 401) — no token presented.
      AppError(REFRESH_TOKEN_INVALID, 401) — unknown or expired token.

    Returns: {"user": {...}, "access_token": "..."} plus "refresh_token"
    when rotated.
    """
    if not raw_refresh_token:
        raise AppError(
            ErrorCode.REFRESH_TOKEN_MISSING,
            "Refresh token not provided.",
            401,
        )

    user = _find_user_by_refresh_token(raw_refresh_token, session)
    if user is None:
        logger.info("Refresh rejected: unknown token")
        raise AppError(
            ErrorCode.REFRESH_TOKEN_INVALID,
            _INVALID_REFRESH_MESSAGE,
            401,
        )

    if token_service.is_expired(user.refresh_token_expiry):
        _clear_refresh_token(user)
        session.commit()
        logger.info("Refresh rejected: expired token for user %s cleared", user.id)
        raise AppError(
            ErrorCode.REFRESH_TOKEN_INVALID,
            _INVALID_REFRESH_MESSAGE,
            401,
        )

    rotated = None
    if current_app.config.get("ROTATE_REFRESH_TOKENS", False):
        rotated = _store_new_refresh_token(user, session)

    logger.debug("Issued access token for user %s via refresh", user.id)
    return _session_result(user, rotated)


def logout_user(
        raw_refresh_token: str | None,
        session: Session,
) -> None:
    """
    Best-effort server-side revocation. Never raises for unknown tokens.

    Access tokens already issued stay valid until they expire; there is no
    server-side denylist.
    """
    if not raw_refresh_token:
        return

    user = _find_user_by_refresh_token(raw_refresh_token, session)
    if user is None:
        return

    _clear_refresh_token(user)
    session.flush()
    logger.info("User %s logged out", user.id)


def get_authenticated_user(user_id: str, session: Session) -> dict | None:
    """
    Returns the public projection of the user behind a verified access token,
    or None if that user no longer exists.
    """
    user = session.get(User, user_id)
    if user is None:
        return None
    return user.to_public_dict()
