"""
services/voting_service.py — Thumbs up / down on dashboard content.

A user has at most one vote per content item (UNIQUE(user_id, content_id));
voting again replaces the previous value.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from cryptodash.app.models.vote import Vote


def save_vote(user_id: str, content_id: str, vote: str, session: Session) -> dict:
    record = session.execute(
        select(Vote).where(Vote.user_id == user_id, Vote.content_id == content_id)
    ).scalar_one_or_none()

    if record is None:
        record = Vote(user_id=user_id, content_id=content_id, vote=vote)
        session.add(record)
    else:
        record.vote = vote
    session.flush()

    return {
        "vote": {
            "contentId": record.content_id,
            "vote": record.vote,
        }
    }
