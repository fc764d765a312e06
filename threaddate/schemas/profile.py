from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel


class ProfileOut(BaseModel):
    id: uuid.UUID
    username: str | None = None
    avatar_url: str | None = None
    reputation_score: int = 0
    role: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class SubmitterOut(BaseModel):
    id: uuid.UUID
    username: str | None = None
    avatar_url: str | None = None
    reputation_score: int = 0

    class Config:
        from_attributes = True


class UserStats(BaseModel):
    total_tags: int = 0
    verified_tags: int = 0
    votes_cast: int = 0
