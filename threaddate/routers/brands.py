from __future__ import annotations

from collections import OrderedDict

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from threaddate.database import get_db
from threaddate.models.brand import Brand
from threaddate.models.tag import Tag
from threaddate.schemas.brand import (
    BrandCreate,
    BrandDetail,
    BrandEraInsights,
    BrandOut,
    EraCount,
    EraDistribution,
    EraScore,
    NewestIdentifier,
)
from threaddate.services import page_cache
from threaddate.services.authz import require_user
from threaddate.services.slugs import brand_slug
from threaddate.utils.affiliate import build_ebay_search_url
from threaddate.utils.constants import FEATURED_BRAND_SLUGS

router = APIRouter(prefix="/brands", tags=["brands"])

NAME_MIN = 2
NAME_MAX = 100


def _get_brand_or_404(db: Session, slug: str) -> Brand:
    brand = db.execute(select(Brand).where(Brand.slug == slug)).scalar_one_or_none()
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")
    return brand


@router.get("", response_model=list[BrandOut])
def list_brands(db: Session = Depends(get_db), limit: int | None = Query(default=None, ge=1)):
    cached = page_cache.get("/brands") if limit is None else None
    if cached is not None:
        return cached

    q = select(Brand).order_by(Brand.verified.desc(), Brand.name.asc())
    if limit:
        q = q.limit(limit)
    rows = [BrandOut.model_validate(b) for b in db.execute(q).scalars().all()]

    if limit is None:
        page_cache.put("/brands", rows)
    return rows


@router.get("/featured", response_model=list[BrandDetail])
def featured_brands(db: Session = Depends(get_db)):
    q = select(Brand).where(Brand.slug.in_(FEATURED_BRAND_SLUGS)).order_by(Brand.name.asc())
    return [_brand_detail(b) for b in db.execute(q).scalars().all()]


@router.post("")
def create_brand(payload: BrandCreate, req: Request, db: Session = Depends(get_db)):
    """
    New brands always start unverified. The unique index on slug is the
    duplicate check: a concurrent twin loses on insert and gets the same
    409 as a sequential one.
    """
    user = require_user(req, db, "Authentication required")

    name = (payload.name or "").strip()
    if len(name) < NAME_MIN:
        raise HTTPException(status_code=400, detail="Brand name must be at least 2 characters")
    if len(name) > NAME_MAX:
        raise HTTPException(status_code=400, detail="Brand name must be less than 100 characters")

    slug = brand_slug(name)
    if not slug:
        raise HTTPException(status_code=400, detail="Brand name must contain letters or numbers")

    brand = Brand(name=name, slug=slug, created_by=user.id)
    db.add(brand)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = db.execute(select(Brand).where(Brand.slug == slug)).scalar_one_or_none()
        if existing is None:
            logger.bind(slug=slug).exception("brand_insert_failed")
            raise HTTPException(status_code=500, detail="Failed to create brand")
        suffix = "" if existing.verified else " (pending verification)"
        raise HTTPException(status_code=409, detail=f'Brand "{existing.name}" already exists{suffix}')
    except SQLAlchemyError:
        db.rollback()
        logger.bind(slug=slug).exception("brand_insert_failed")
        raise HTTPException(status_code=500, detail="Failed to create brand")

    page_cache.revalidate_path("/brands")
    logger.bind(brand_id=brand.id, slug=slug).info("brand_created")
    return {"success": True, "brand_id": brand.id, "slug": slug}


def _brand_detail(brand: Brand) -> BrandDetail:
    out = BrandDetail.model_validate(brand)
    out.ebay_search_url = build_ebay_search_url(f"vintage {brand.name}")
    return out


@router.get("/{slug}", response_model=BrandDetail)
def get_brand(slug: str, db: Session = Depends(get_db)):
    return _brand_detail(_get_brand_or_404(db, slug))


@router.get("/{slug}/eras", response_model=list[EraDistribution])
def brand_era_distribution(slug: str, db: Session = Depends(get_db)):
    """Per-era tag counts for one brand, ordered by the earliest year seen."""
    brand = _get_brand_or_404(db, slug)
    rows = db.execute(
        select(Tag.era, Tag.year_start, Tag.year_end, Tag.verification_score).where(Tag.brand_id == brand.id)
    ).all()

    buckets: "OrderedDict[str, dict]" = OrderedDict()
    for era, year_start, year_end, score in rows:
        if not era:
            continue
        b = buckets.setdefault(era, {"era": era, "count": 0, "year_start": 0, "year_end": 0, "score": 0})
        b["count"] += 1
        b["score"] += score or 0
        if year_start and (not b["year_start"] or year_start < b["year_start"]):
            b["year_start"] = year_start
        if year_end and year_end > b["year_end"]:
            b["year_end"] = year_end

    out = [
        EraDistribution(
            era=b["era"],
            count=b["count"],
            year_start=b["year_start"],
            year_end=b["year_end"],
            avg_verification_score=round(b["score"] / b["count"]) if b["count"] else 0,
        )
        for b in buckets.values()
    ]
    return sorted(out, key=lambda d: d.year_start)


@router.get("/{slug}/insights", response_model=BrandEraInsights)
def brand_era_insights(slug: str, db: Session = Depends(get_db)):
    brand = _get_brand_or_404(db, slug)
    rows = db.execute(
        select(Tag.era, Tag.verification_score, Tag.created_at)
        .where(Tag.brand_id == brand.id)
        .order_by(Tag.created_at.desc())
    ).all()
    if not rows:
        return BrandEraInsights()

    counts: dict[str, int] = {}
    scores: dict[str, int] = {}
    for era, score, _ in rows:
        counts[era] = counts.get(era, 0) + 1
        scores[era] = scores.get(era, 0) + (score or 0)

    common = max(counts.items(), key=lambda kv: kv[1])
    averages = {era: scores[era] / counts[era] for era in counts}
    best = max(averages.items(), key=lambda kv: kv[1])
    newest_era, _, newest_at = rows[0]

    return BrandEraInsights(
        most_common_era=EraCount(era=common[0], count=common[1]),
        highest_verified_era=EraScore(era=best[0], avg_score=round(best[1], 2)),
        total_eras=len(counts),
        newest_identifier=NewestIdentifier(era=newest_era, created_at=newest_at),
    )
