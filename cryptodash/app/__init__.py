"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup
           - Alembic to import the models without starting the server

Responsibilities:
  1. Load configuration from config_by_name[config_name] and fail fast on
     an unusable one
  2. Configure logging
  3. Initialise extensions (SQLAlchemy, Marshmallow) via init_app()
  4. Register all route blueprints
  5. Register global error handlers (AppError → JSON, Exception → 500)

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic or db.create_all() inspects it.
"""

from __future__ import annotations

import traceback

from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from cryptodash.config import config_by_name, validate_config, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development", overrides: dict | None = None) -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
        overrides:   Optional config values applied after the config class,
                     e.g. {"ROTATE_REFRESH_TOKENS": True} in tests.

    Returns:
        A fully configured Flask app ready to serve requests.
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    validate_config(app)  # raises ValueError without a JWT secret
    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    from cryptodash.app.log import configure_logging
    configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from cryptodash.app.extensions import db, ma
    db.init_app(app)
    ma.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # The imports are intentionally unused by name — side effect is the point.
    with app.app_context():
        from cryptodash.app.models import preferences, user, vote  # noqa: F401

    _register_blueprints(app)
    _register_error_handlers(app)

    app.logger.debug("Application created with %s config", config_name)
    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints.

    Paths match the web client: /auth/* for the session protocol, /me,
    /preferences and /vote at the root.
    """
    from cryptodash.app.routes.auth import auth_bp
    from cryptodash.app.routes.health import health_bp
    from cryptodash.app.routes.preferences import preferences_bp
    from cryptodash.app.routes.users import users_bp

    app.register_blueprint(auth_bp,        url_prefix="/auth")
    app.register_blueprint(users_bp)
    app.register_blueprint(preferences_bp)
    app.register_blueprint(health_bp)


def flatten_validation_messages(messages, prefix: str = "") -> list[dict]:
    """
    Converts marshmallow's nested messages into [{"field", "message"}, ...].

    {"email": ["Invalid email address"], "favoriteCryptos": {0: ["Shorter..."]}}
    → [{"field": "email", ...}, {"field": "favoriteCryptos.0", ...}]
    """
    details: list[dict] = []
    if isinstance(messages, dict):
        for key, value in messages.items():
            name = "body" if key == "_schema" else str(key)
            path = f"{prefix}.{name}" if prefix else name
            details.extend(flatten_validation_messages(value, path))
    elif isinstance(messages, list):
        for item in messages:
            if isinstance(item, (dict, list)):
                details.extend(flatten_validation_messages(item, prefix))
            else:
                details.append({"field": prefix or "body", "message": str(item)})
    else:
        details.append({"field": prefix or "body", "message": str(messages)})
    return details


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors as VALIDATION_ERROR (400)
                        with one details entry per failing field
      HTTPException   → werkzeug errors (404 route, 405 method, 400 bad JSON)
                        wrapped in the same envelope
      Exception       → generic INTERNAL_ERROR (500); full traceback logged.
                        The stack is returned only when EXPOSE_ERROR_DETAILS.
    """
    from cryptodash.app.errors import AppError, ErrorCode, validation_error

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        app_error = validation_error(flatten_validation_messages(error.messages))
        return jsonify(app_error.to_dict()), app_error.http_status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        status = error.code or 500
        if status == 404:
            code, message = ErrorCode.NOT_FOUND, "Route not found"
        elif status == 405:
            code, message = ErrorCode.METHOD_NOT_ALLOWED, "Method not allowed"
        elif status == 400:
            code, message = ErrorCode.INVALID_JSON, "Request body must be valid JSON."
        else:
            code, message = ErrorCode.INTERNAL_ERROR, error.description or error.name
        return jsonify(AppError(code, message, status).to_dict()), status

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        payload = {
            "code": ErrorCode.INTERNAL_ERROR,
            "message": "Internal server error",
        }
        if app.config.get("EXPOSE_ERROR_DETAILS"):
            payload["message"] = str(error) or payload["message"]
            payload["stack"] = traceback.format_exc()
        return jsonify({"success": False, "error": payload}), 500
