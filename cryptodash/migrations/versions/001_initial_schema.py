"""Initial schema — users (credential store), preferences, votes.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order:
  1. users
  2. preferences, votes (both reference users)
  3. Indexes

ON DELETE policies:
  preferences.user_id → CASCADE (owned by the user)
  votes.user_id       → CASCADE (owned by the user)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    """Apply the full initial schema."""

    # ── Step 1: users ──────────────────────────────────────────────────────
    # refresh_token_hash / refresh_token_expiry are NULL when the user has no
    # active session. At most one live refresh token per user.

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("refresh_token_hash", sa.String(64), nullable=True),
        sa.Column("refresh_token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint(
            "email LIKE '%@%'",
            name="ck_users_email_format",
        ),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_users_name_nonempty",
        ),
    )

    # ── Step 2: preferences ────────────────────────────────────────────────
    # One row per user (UNIQUE user_id). Enums are stored as VARCHAR with
    # CHECK constraints (native_enum=False in the models).

    op.create_table(
        "preferences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_preferences_user"),
            nullable=False,
        ),
        sa.Column("experience_level", sa.String(12), nullable=False),
        sa.Column("risk_tolerance", sa.String(8), nullable=False),
        sa.Column("investment_goals", sa.JSON(), nullable=False),
        sa.Column("favorite_cryptos", sa.JSON(), nullable=False),
        sa.Column("content_types", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_preferences"),
        sa.UniqueConstraint("user_id", name="uq_preferences_user"),
        sa.CheckConstraint(
            "experience_level IN ('beginner', 'intermediate', 'advanced')",
            name="ck_preferences_experience_level",
        ),
        sa.CheckConstraint(
            "risk_tolerance IN ('low', 'moderate', 'high')",
            name="ck_preferences_risk_tolerance",
        ),
    )

    # ── Step 3: votes ──────────────────────────────────────────────────────
    # UNIQUE(user_id, content_id): re-voting updates the existing row.

    op.create_table(
        "votes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_votes_user"),
            nullable=False,
        ),
        sa.Column("content_id", sa.String(255), nullable=False),
        sa.Column("vote", sa.String(4), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_votes"),
        sa.UniqueConstraint("user_id", "content_id", name="uq_votes_user_content"),
        sa.CheckConstraint("vote IN ('up', 'down')", name="ck_votes_vote_value"),
    )

    # ── Step 4: indexes ────────────────────────────────────────────────────

    # Refresh and logout look users up by token hash.
    op.create_index(
        "ix_users_refresh_token_hash",
        "users",
        ["refresh_token_hash"],
        unique=True,
    )
    op.create_index("ix_votes_user_id", "votes", ["user_id"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.

    Provided for local development reset. In production prefer a corrective
    migration over a rollback.
    """
    op.drop_index("ix_votes_user_id", table_name="votes")
    op.drop_index("ix_users_refresh_token_hash", table_name="users")

    op.drop_table("votes")
    op.drop_table("preferences")
    op.drop_table("users")
