"""Up/down vote toggling shared by technical queries and their responses.

A user holds at most one vote per target. Casting the same vote again
removes it, casting the opposite vote switches it. After every change the
tallies are recomputed from the vote rows and written back to the target so
list views can sort by them without a join.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# purpose: toggle votes and keep denormalised tallies in step with vote rows
# status: active
# depends_on: models.TechnicalQueryVote, models.TechnicalQueryResponseVote

logger = logging.getLogger(__name__)

VOTE_TYPES = ("UP", "DOWN")


@dataclass
class VoteResult:
    action: str
    vote_type: str
    upvotes: int
    downvotes: int
    previous_vote_type: Optional[str] = None

    @property
    def user_vote(self) -> Optional[str]:
        return None if self.action == "removed" else self.vote_type


def tally(db: Session, vote_model, parent_column, parent_id: UUID) -> tuple[int, int]:
    rows = (
        db.query(vote_model.vote_type, func.count(vote_model.id))
        .filter(parent_column == parent_id)
        .group_by(vote_model.vote_type)
        .all()
    )
    counts = dict(rows)
    return counts.get("UP", 0), counts.get("DOWN", 0)


def cast_vote(
    db: Session,
    target,
    vote_model,
    parent_field: str,
    user_id: UUID,
    vote_type: str,
) -> VoteResult:
    """Apply ``vote_type`` from ``user_id`` to ``target`` and commit."""
    if vote_type not in VOTE_TYPES:
        raise ValueError(f"Unsupported vote type {vote_type!r}")
    parent_column = getattr(vote_model, parent_field)

    existing = (
        db.query(vote_model)
        .filter(parent_column == target.id, vote_model.user_id == user_id)
        .first()
    )
    previous = None
    try:
        if existing is None:
            db.add(vote_model(vote_type=vote_type, user_id=user_id, **{parent_field: target.id}))
            action = "created"
        elif existing.vote_type == vote_type:
            db.delete(existing)
            action = "removed"
        else:
            previous = existing.vote_type
            existing.vote_type = vote_type
            action = "updated"
        db.flush()

        target.upvotes, target.downvotes = tally(db, vote_model, parent_column, target.id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Vote on %s by %s failed", target.id, user_id)
        raise

    return VoteResult(
        action=action,
        vote_type=vote_type,
        upvotes=target.upvotes,
        downvotes=target.downvotes,
        previous_vote_type=previous,
    )


def current_vote(db: Session, vote_model, parent_field: str, target_id: UUID, user_id: UUID) -> Optional[str]:
    vote = (
        db.query(vote_model.vote_type)
        .filter(getattr(vote_model, parent_field) == target_id, vote_model.user_id == user_id)
        .first()
    )
    return vote[0] if vote else None
