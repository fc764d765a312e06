from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threaddate.database import Base
from threaddate.utils.constants import ROLE_USER


class Profile(Base):
    """Public face of a user. `role` gates every moderation action."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1500), nullable=True)
    reputation_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=ROLE_USER, nullable=False)  # admin | user
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    user: Mapped["User"] = relationship(back_populates="profile")
