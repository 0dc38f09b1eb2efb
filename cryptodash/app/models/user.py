"""
models/user.py — User table definition (the credential store).

No business logic. No imports from services or routes.

Session columns:
  refresh_token_hash   — SHA-256 hex digest of the one live refresh token,
                         NULL when the user has no active session.
  refresh_token_expiry — expiry of that token, NULL when no active session.
Both are overwritten on register/login and cleared together on logout or
when an expired token is presented.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptodash.app.extensions import db


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        # Also enforced by the marshmallow Email field.
        CheckConstraint(
            "email LIKE '%@%'",
            name="ck_users_email_format",
        ),
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_users_name_nonempty",
        ),
    )

    # Opaque, server-assigned, never reused.
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_user_id,
    )

    # Stored lower-cased; auth_service normalises before every read and write,
    # so the UNIQUE constraint is effectively case-insensitive.
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    refresh_token_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        index=True,
    )

    refresh_token_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    preferences: Mapped["Preferences"] = relationship(  # noqa: F821
        "Preferences",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    votes: Mapped[list["Vote"]] = relationship(  # noqa: F821
        "Vote",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_public_dict(self) -> dict:
        """The only projection of a user that ever leaves the server."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} email={self.email!r}>"
