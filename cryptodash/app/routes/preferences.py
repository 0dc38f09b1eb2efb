"""
routes/preferences.py — Preferences and voting route handlers.

Endpoints (registered at the root):
  GET    /preferences      → 200 / 404 when not onboarded
  GET    /preferences/me   → alias kept for older web clients
  POST   /preferences      → 200 upsert
  POST   /vote             → 200 upsert
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from cryptodash.app.extensions import db
from cryptodash.app.middleware.auth_middleware import require_auth
from cryptodash.app.schemas.preferences_schema import PreferencesSchema, VoteSchema
from cryptodash.app.services import preferences_service, voting_service

preferences_bp = Blueprint("preferences", __name__)


@preferences_bp.route("/preferences", methods=["GET"])
@preferences_bp.route("/preferences/me", methods=["GET"])
@require_auth
def get_preferences():
    result = preferences_service.get_preferences(
        user_id=g.user_id,
        session=db.session,
    )
    return jsonify({"success": True, "data": result}), 200


@preferences_bp.route("/preferences", methods=["POST"])
@require_auth
def save_preferences():
    data = PreferencesSchema().load(request.get_json(force=True) or {})
    result = preferences_service.save_preferences(
        user_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"success": True, "data": result}), 200


@preferences_bp.route("/vote", methods=["POST"])
@require_auth
def vote():
    data = VoteSchema().load(request.get_json(force=True) or {})
    result = voting_service.save_vote(
        user_id=g.user_id,
        content_id=data["content_id"],
        vote=data["vote"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"success": True, "data": result}), 200
