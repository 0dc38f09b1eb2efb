"""
cookies.py — Auth cookie lifecycle.

Two cookies carry the credentials:
  token         — access token, max_age = JWT_ACCESS_TOKEN_EXPIRES
  refreshToken  — refresh token, max_age = JWT_REFRESH_TOKEN_EXPIRES

Both are always httpOnly so page scripts can never read them. `secure` and
`samesite` come from AUTH_COOKIE_SECURE / AUTH_COOKIE_SAMESITE. Clearing
reuses the same attributes, otherwise browsers keep the original cookie.
"""

from __future__ import annotations

from flask import Response, current_app

ACCESS_COOKIE = "token"
REFRESH_COOKIE = "refreshToken"
COOKIE_PATH = "/"


def _cookie_attributes() -> dict:
    return {
        "httponly": True,
        "secure": bool(current_app.config.get("AUTH_COOKIE_SECURE", False)),
        "samesite": current_app.config.get("AUTH_COOKIE_SAMESITE", "Strict"),
        "path": COOKIE_PATH,
    }


def set_access_cookie(response: Response, access_token: str) -> None:
    ttl = current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=int(ttl.total_seconds()),
        **_cookie_attributes(),
    )


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    ttl = current_app.config["JWT_REFRESH_TOKEN_EXPIRES"]
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=int(ttl.total_seconds()),
        **_cookie_attributes(),
    )


def set_session_cookies(response: Response, result: dict) -> None:
    """Writes whichever tokens an auth_service result carries."""
    set_access_cookie(response, result["access_token"])
    if result.get("refresh_token"):
        set_refresh_cookie(response, result["refresh_token"])


def clear_session_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, **_cookie_attributes())
