from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from threaddate.database import get_db
from threaddate.models.brand import Brand
from threaddate.models.tag import Tag
from threaddate.schemas.era import EraBrandCount, EraStats, LabelCount
from threaddate.services import page_cache
from threaddate.utils.constants import SLUG_TO_ERA

router = APIRouter(prefix="/eras", tags=["eras"])

TOP_BRANDS = 10


def _breakdown(db: Session, column, era: str) -> list[LabelCount]:
    rows = db.execute(
        select(column, func.count(Tag.id))
        .where(Tag.era == era, column.is_not(None))
        .group_by(column)
        .order_by(func.count(Tag.id).desc(), column.asc())
    ).all()
    return [LabelCount(label=label, count=n) for label, n in rows]


@router.get("/{era_slug}", response_model=EraStats)
def era_stats(era_slug: str, db: Session = Depends(get_db)):
    era = SLUG_TO_ERA.get(era_slug)
    if era is None:
        raise HTTPException(status_code=404, detail="Era not found")

    path = f"/eras/{era_slug}"
    cached = page_cache.get(path)
    if cached is not None:
        return cached

    tag_count = db.execute(select(func.count(Tag.id)).where(Tag.era == era)).scalar_one()
    brand_count = db.execute(select(func.count(func.distinct(Tag.brand_id))).where(Tag.era == era)).scalar_one()

    top = db.execute(
        select(Brand.id, Brand.name, Brand.slug, Brand.logo_url, func.count(Tag.id).label("n"))
        .join(Tag, Tag.brand_id == Brand.id)
        .where(Tag.era == era)
        .group_by(Brand.id, Brand.name, Brand.slug, Brand.logo_url)
        .order_by(func.count(Tag.id).desc(), Brand.name.asc())
        .limit(TOP_BRANDS)
    ).all()

    stats = EraStats(
        era=era,
        slug=era_slug,
        tag_count=tag_count,
        brand_count=brand_count,
        top_brands=[
            EraBrandCount(id=r.id, name=r.name, slug=r.slug, logo_url=r.logo_url, tag_count=r.n) for r in top
        ],
        categories=_breakdown(db, Tag.category, era),
        countries=_breakdown(db, Tag.origin_country, era),
    )
    page_cache.put(path, stats)
    return stats
