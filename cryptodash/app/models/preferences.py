"""
models/preferences.py — Preferences table definition.

One row per user; the dashboard's content aggregation reads it to decide
which coins and content types to show. No business logic here.

FK policy: user_id ON DELETE CASCADE — preferences are owned by the user.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptodash.app.extensions import db

EXPERIENCE_LEVELS = ("beginner", "intermediate", "advanced")
RISK_TOLERANCES = ("low", "moderate", "high")


class Preferences(db.Model):
    __tablename__ = "preferences"

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    experience_level: Mapped[str] = mapped_column(
        Enum(*EXPERIENCE_LEVELS, name="experience_level_enum", native_enum=False),
        nullable=False,
    )

    risk_tolerance: Mapped[str] = mapped_column(
        Enum(*RISK_TOLERANCES, name="risk_tolerance_enum", native_enum=False),
        nullable=False,
    )

    # Lists of free-form strings. JSON keeps the table portable between
    # PostgreSQL and the SQLite database used by the test suite.
    investment_goals: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    favorite_cryptos: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    content_types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

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

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="preferences",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Preferences user_id={self.user_id} level={self.experience_level!r}>"
