"""
models/vote.py — Vote table definition.

A thumbs up/down on a dashboard content item. content_id is opaque to the
backend (it is produced by the content aggregation service).

FK policy: user_id ON DELETE CASCADE.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptodash.app.extensions import db

VOTE_VALUES = ("up", "down")


class Vote(db.Model):
    __tablename__ = "votes"

    __table_args__ = (
        # One vote per user per content item; re-voting updates the row.
        UniqueConstraint("user_id", "content_id", name="uq_votes_user_content"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    content_id: Mapped[str] = mapped_column(String(255), nullable=False)

    vote: Mapped[str] = mapped_column(
        Enum(*VOTE_VALUES, name="vote_value_enum", native_enum=False),
        nullable=False,
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

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="votes",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Vote user_id={self.user_id} content_id={self.content_id!r} vote={self.vote!r}>"
