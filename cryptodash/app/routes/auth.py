"""
routes/auth.py — Session protocol route handlers.

Layer rules:
  - Parse request body and cookies
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Commit the DB session
  - Write or clear the auth cookies
  - Return the standard response envelope: {"success": true, "data": {...}}

Raw tokens only ever travel in Set-Cookie headers, never in a JSON body.
AppError propagates to the global error handler in app/__init__.py — routes
never catch it.

Endpoints (url_prefix=/auth):
  POST   /auth/register  → 201
  POST   /auth/login     → 200
  POST   /auth/refresh   → 200
  POST   /auth/logout    → 200 (never fails)
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from cryptodash.app.cookies import (
    REFRESH_COOKIE,
    clear_session_cookies,
    set_session_cookies,
)
from cryptodash.app.extensions import db
from cryptodash.app.schemas.auth_schema import LoginSchema, RegisterSchema
from cryptodash.app.services import auth_service

auth_bp = Blueprint("auth", __name__)


def _session_response(result: dict, status: int):
    response = jsonify({"success": True, "data": {"user": result["user"]}})
    set_session_cookies(response, result)
    return response, status


@auth_bp.route("/register", methods=["POST"])
def register():
    """POST /auth/register — Create account and open a session."""
    data = RegisterSchema().load(request.get_json(force=True) or {})
    result = auth_service.register_user(
        email=data["email"],
        password=data["password"],
        name=data["name"],
        session=db.session,
    )
    db.session.commit()
    return _session_response(result, 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login — Authenticate and open a new session."""
    data = LoginSchema().load(request.get_json(force=True) or {})
    result = auth_service.login_user(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    db.session.commit()
    return _session_response(result, 200)


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    """POST /auth/refresh — Exchange the refreshToken cookie for a new access token."""
    result = auth_service.refresh_session(
        raw_refresh_token=request.cookies.get(REFRESH_COOKIE),
        session=db.session,
    )
    db.session.commit()
    return _session_response(result, 200)


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """POST /auth/logout — Revoke the refresh token if recognised; always clear cookies."""
    auth_service.logout_user(
        raw_refresh_token=request.cookies.get(REFRESH_COOKIE),
        session=db.session,
    )
    db.session.commit()
    response = jsonify({"success": True, "data": {"message": "Logged out successfully."}})
    clear_session_cookies(response)
    return response, 200
