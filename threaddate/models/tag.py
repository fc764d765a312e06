from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threaddate.database import Base


class Tag(Base):
    """A photographed identifier (neck tag, care label, button...) used to date a garment."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id"), index=True, nullable=False)
    brand_id: Mapped[int] = mapped_column(Integer, ForeignKey("brands.id"), index=True, nullable=False)
    clothing_item_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("clothing_items.id", ondelete="SET NULL"),
        nullable=True,
    )

    category: Mapped[str] = mapped_column(String(30), default="Other", nullable=False)
    era: Mapped[str] = mapped_column(String(20), nullable=False)
    year_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    stitch_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    origin_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    submission_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(String(1500), nullable=False)

    # pending | verified | rejected
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    # sum of vote values, refreshed on every vote write
    verification_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # position on the clothing item photo (0.0 - 1.0)
    position_x: Mapped[float | None] = mapped_column(Float, nullable=True)
    position_y: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    brand: Mapped["Brand"] = relationship()
    submitter: Mapped["Profile"] = relationship()
    clothing_item: Mapped[Optional["ClothingItem"]] = relationship(back_populates="tags")
    evidence: Mapped[list["TagEvidence"]] = relationship(order_by="TagEvidence.id")


Index("ix_tags_era_status", Tag.era, Tag.status)
