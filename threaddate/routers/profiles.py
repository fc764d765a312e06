from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from threaddate.database import get_db
from threaddate.models.profile import Profile
from threaddate.models.tag import Tag
from threaddate.models.vote import Vote
from threaddate.schemas.profile import ProfileOut, UserStats
from threaddate.services.authz import require_user

router = APIRouter(tags=["profiles"])


def user_stats(db: Session, user_id: uuid.UUID) -> UserStats:
    total = db.execute(select(func.count(Tag.id)).where(Tag.user_id == user_id)).scalar_one()
    verified = db.execute(
        select(func.count(Tag.id)).where(Tag.user_id == user_id, Tag.status == "verified")
    ).scalar_one()
    votes = db.execute(select(func.count(Vote.id)).where(Vote.user_id == user_id)).scalar_one()
    return UserStats(total_tags=total, verified_tags=verified, votes_cast=votes)


@router.get("/leaderboard", response_model=list[ProfileOut])
def leaderboard(limit: int = Query(default=50, ge=1, le=200), db: Session = Depends(get_db)):
    q = (
        select(Profile)
        .where(Profile.username.is_not(None))
        .order_by(Profile.reputation_score.desc(), Profile.created_at.asc())
        .limit(limit)
    )
    return db.execute(q).scalars().all()


@router.get("/profiles/{profile_id}/stats", response_model=UserStats)
def profile_stats(profile_id: uuid.UUID, db: Session = Depends(get_db)):
    if not db.get(Profile, profile_id):
        raise HTTPException(status_code=404, detail="Profile not found")
    return user_stats(db, profile_id)


@router.get("/profile")
def my_profile(req: Request, db: Session = Depends(get_db)):
    user = require_user(req, db)
    prof = db.get(Profile, user.id)
    if not prof:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {
        "email": user.email,
        "profile": ProfileOut.model_validate(prof),
        "stats": user_stats(db, user.id),
    }
