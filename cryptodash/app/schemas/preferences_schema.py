"""
schemas/preferences_schema.py — Marshmallow schemas for preferences and votes.

Wire names are camelCase (the web client's contract); loaded dicts use
snake_case keys that match the model columns.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from cryptodash.app.models.preferences import EXPERIENCE_LEVELS, RISK_TOLERANCES
from cryptodash.app.models.vote import VOTE_VALUES


class PreferencesSchema(Schema):
    """
    POST /preferences

      experienceLevel : beginner | intermediate | advanced
      riskTolerance   : low | moderate | high
      investmentGoals : at least one string
      favoriteCryptos : at least one string
      contentTypes    : optional list of strings, defaults to []
    """

    class Meta:
        unknown = EXCLUDE

    experience_level = fields.Str(
        required=True,
        data_key="experienceLevel",
        validate=validate.OneOf(EXPERIENCE_LEVELS),
    )
    risk_tolerance = fields.Str(
        required=True,
        data_key="riskTolerance",
        validate=validate.OneOf(RISK_TOLERANCES),
    )
    investment_goals = fields.List(
        fields.Str(validate=validate.Length(min=1)),
        required=True,
        data_key="investmentGoals",
        validate=validate.Length(min=1, error="At least one investment goal is required"),
    )
    favorite_cryptos = fields.List(
        fields.Str(validate=validate.Length(min=1)),
        required=True,
        data_key="favoriteCryptos",
        validate=validate.Length(min=1, error="At least one favorite crypto is required"),
    )
    content_types = fields.List(
        fields.Str(validate=validate.Length(min=1)),
        data_key="contentTypes",
        load_default=list,
    )


class PreferencesOutSchema(Schema):
    """Serialises a Preferences row back into the camelCase wire format."""

    experience_level = fields.Str(data_key="experienceLevel")
    risk_tolerance = fields.Str(data_key="riskTolerance")
    investment_goals = fields.List(fields.Str(), data_key="investmentGoals")
    favorite_cryptos = fields.List(fields.Str(), data_key="favoriteCryptos")
    content_types = fields.List(fields.Str(), data_key="contentTypes")


class VoteSchema(Schema):
    """
    POST /vote

      contentId : non-empty string
      vote      : up | down
    """

    class Meta:
        unknown = EXCLUDE

    content_id = fields.Str(
        required=True,
        data_key="contentId",
        validate=validate.Length(min=1, max=255, error="Content ID is required"),
    )
    vote = fields.Str(
        required=True,
        validate=validate.OneOf(VOTE_VALUES),
    )
