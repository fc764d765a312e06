from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from threaddate.database import Base


class Brand(Base):
    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "Levi's"
    slug: Mapped[str] = mapped_column(String(120), unique=True, index=True, nullable=False)  # e.g. "levis"

    # moderation: pending | verified | rejected
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verification_status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verified_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=True)

    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    logo_url: Mapped[str | None] = mapped_column(String(1500), nullable=True)
    founded_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    country_code: Mapped[str | None] = mapped_column(String(2), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_brand_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("brands.id"), nullable=True)

    # marketplace / reference links
    website_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    wikipedia_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    ebay_url: Mapped[str | None] = mapped_column(String(1500), nullable=True)
    poshmark_url: Mapped[str | None] = mapped_column(String(1500), nullable=True)
    depop_url: Mapped[str | None] = mapped_column(String(1500), nullable=True)
