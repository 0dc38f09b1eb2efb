"""
schemas/auth_schema.py — Marshmallow schemas for authentication endpoints.

Validation responsibility:
  - This file: field types, lengths, formats.
  - services/auth_service.py: DUPLICATE_EMAIL (requires a DB lookup) and
    credential checks.

IMPORTANT: All schemas inherit from marshmallow.Schema directly.
           Do NOT use ma.Schema — it requires an active Flask app context
           and breaks unit tests. See extensions.py.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate, validates

# bcrypt ignores (and newer releases reject) input beyond 72 bytes.
PASSWORD_MAX_BYTES = 72


class RegisterSchema(Schema):
    """
    POST /auth/register

    Field rules:
      email    : valid email format, stored lower-cased
      password : min 6 chars, at most 72 bytes UTF-8
      name     : non-empty after trimming, max 100 chars
    """

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
        error_messages={"invalid": "Invalid email address"},
    )

    password = fields.Str(required=True, load_only=True)

    name = fields.Str(
        required=True,
        validate=validate.Length(max=100, error="Name must be at most 100 characters"),
    )

    @validates("password")
    def validate_password(self, value: str, **kwargs) -> None:
        if len(value) < 6:
            raise ValidationError("Password must be at least 6 characters")
        if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValidationError("Password must be at most 72 bytes")

    @validates("name")
    def validate_name(self, value: str, **kwargs) -> None:
        if not value.strip():
            raise ValidationError("Name is required")

    @post_load
    def normalize(self, data: dict, **kwargs) -> dict:
        data["email"] = data["email"].strip().lower()
        data["name"] = data["name"].strip()
        return data


class LoginSchema(Schema):
    """
    POST /auth/login

    Credential correctness is checked in auth_service.py
    (INVALID_CREDENTIALS, 401).
    """

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(
        required=True,
        error_messages={"invalid": "Invalid email address"},
    )
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=1, error="Password is required"),
    )

    @post_load
    def normalize(self, data: dict, **kwargs) -> dict:
        data["email"] = data["email"].strip().lower()
        return data
