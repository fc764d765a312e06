from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from threaddate.models.profile import Profile
from threaddate.models.tag import Tag
from threaddate.models.vote import Vote


def refresh_tag_score(db: Session, tag_id: int) -> None:
    """
    Recompute the tag's verification_score and its submitter's reputation.

    Both are single UPDATE ... SET col = (subquery) statements, so concurrent
    vote writes never lose an increment. Caller commits.
    """
    vote_total = (
        select(func.coalesce(func.sum(Vote.vote_value), 0))
        .where(Vote.tag_id == tag_id)
        .scalar_subquery()
    )
    db.execute(update(Tag).where(Tag.id == tag_id).values(verification_score=vote_total))

    submitter = select(Tag.user_id).where(Tag.id == tag_id).scalar_subquery()
    reputation = (
        select(func.coalesce(func.sum(Tag.verification_score), 0))
        .where(Tag.user_id == Profile.id)
        .scalar_subquery()
    )
    db.execute(update(Profile).where(Profile.id == submitter).values(reputation_score=reputation))
