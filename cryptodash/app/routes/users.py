# cryptodash/app/routes/users.py
from flask import Blueprint, g, jsonify

from cryptodash.app.middleware.auth_middleware import require_auth

users_bp = Blueprint("users", __name__)


@users_bp.route("/me", methods=["GET"])
@require_auth
def me():
    # g.user is the public projection loaded by require_auth; no extra query.
    return jsonify({"success": True, "data": {"user": g.user}}), 200
