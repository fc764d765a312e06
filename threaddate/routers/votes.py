from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from threaddate.database import get_db
from threaddate.models.tag import Tag
from threaddate.models.vote import Vote
from threaddate.routers.tags import tag_path
from threaddate.schemas.tag import VoteIn
from threaddate.services import page_cache
from threaddate.services.authz import get_optional_user, require_user
from threaddate.services.scoring import refresh_tag_score

router = APIRouter(prefix="/tags", tags=["votes"])


def _upsert(db: Session):
    # both dialects expose INSERT ... ON CONFLICT with the same API
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


@router.get("/{tag_id}/vote")
def my_vote(tag_id: int, req: Request, db: Session = Depends(get_db)):
    user = get_optional_user(req, db)
    if not user:
        return {"vote_value": None}
    value = db.execute(
        select(Vote.vote_value).where(Vote.tag_id == tag_id, Vote.user_id == user.id)
    ).scalar_one_or_none()
    return {"vote_value": value}


@router.post("/{tag_id}/vote")
def cast_vote(tag_id: int, payload: VoteIn, req: Request, db: Session = Depends(get_db)):
    """
    One row per (user, tag). A repeat cast overwrites the earlier value through
    ON CONFLICT (user_id, tag_id) DO UPDATE; the unique constraint is the only
    guard against double counting.
    """
    user = require_user(req, db, "You must be logged in to vote")

    if not db.get(Tag, tag_id):
        raise HTTPException(status_code=404, detail="Tag not found")

    insert = _upsert(db)
    stmt = insert(Vote).values(user_id=user.id, tag_id=tag_id, vote_value=payload.vote_value)
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "tag_id"],
        set_={"vote_value": stmt.excluded.vote_value},
    )

    try:
        db.execute(stmt)
        refresh_tag_score(db, tag_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.bind(tag_id=tag_id).exception("vote_cast_failed")
        raise HTTPException(status_code=500, detail="Failed to cast vote")

    page_cache.revalidate_path(tag_path(tag_id))
    logger.bind(tag_id=tag_id, vote_value=payload.vote_value).info("vote_cast")
    return {"success": True}


@router.delete("/{tag_id}/vote")
def remove_vote(tag_id: int, req: Request, db: Session = Depends(get_db)):
    """Idempotent: removing a vote that was never cast still succeeds."""
    user = require_user(req, db, "You must be logged in to remove a vote")

    try:
        db.execute(delete(Vote).where(Vote.user_id == user.id, Vote.tag_id == tag_id))
        refresh_tag_score(db, tag_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.bind(tag_id=tag_id).exception("vote_remove_failed")
        raise HTTPException(status_code=500, detail="Failed to remove vote")

    page_cache.revalidate_path(tag_path(tag_id))
    logger.bind(tag_id=tag_id).info("vote_removed")
    return {"success": True}
