"""
services/preferences_service.py — Per-user dashboard preferences.

One Preferences row per user, created on first save and updated in place
afterwards. The content aggregation service reads these rows; this module
only stores them.

Layer rules: no flask.request / flask.g; user_id arrives as a plain argument.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from cryptodash.app.errors import AppError, ErrorCode
from cryptodash.app.models.preferences import Preferences
from cryptodash.app.schemas.preferences_schema import PreferencesOutSchema

logger = logging.getLogger(__name__)

_out_schema = PreferencesOutSchema()


def _find(user_id: str, session: Session) -> Preferences | None:
    return session.execute(
        select(Preferences).where(Preferences.user_id == user_id)
    ).scalar_one_or_none()


def get_preferences(user_id: str, session: Session) -> dict:
    """
    Raises:
      AppError(PREFERENCES_NOT_FOUND, 404) — the user has not onboarded yet.
    """
    prefs = _find(user_id, session)
    if prefs is None:
        raise AppError(
            ErrorCode.PREFERENCES_NOT_FOUND,
            "Preferences not found.",
            404,
        )
    return {"preferences": _out_schema.dump(prefs)}


def save_preferences(user_id: str, data: dict, session: Session) -> dict:
    """
    Upserts the user's preferences. `data` is a PreferencesSchema load result.
    """
    prefs = _find(user_id, session)
    if prefs is None:
        prefs = Preferences(user_id=user_id)
        session.add(prefs)
        logger.info("Creating preferences for user %s", user_id)

    prefs.experience_level = data["experience_level"]
    prefs.risk_tolerance = data["risk_tolerance"]
    prefs.investment_goals = list(data["investment_goals"])
    prefs.favorite_cryptos = list(data["favorite_cryptos"])
    prefs.content_types = list(data.get("content_types") or [])
    session.flush()

    return {"preferences": _out_schema.dump(prefs)}
