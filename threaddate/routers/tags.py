# threaddate/routers/tags.py
from __future__ import annotations

import time
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from threaddate.database import get_db
from threaddate.models.brand import Brand
from threaddate.models.clothing_item import ClothingItem
from threaddate.models.tag import Tag
from threaddate.schemas.common import Era, IdentifierCategory, Status, StitchType, validation_message
from threaddate.schemas.tag import TagDetail, TagSubmission, TagWithBrand
from threaddate.services import page_cache, storage
from threaddate.services.authz import require_user
from threaddate.services.images import InvalidImage, decode_image
from threaddate.utils.constants import ERA_TO_SLUG

router = APIRouter(prefix="/tags", tags=["tags"])

ORDER_COLUMNS = {
    "verification_score": Tag.verification_score,
    "created_at": Tag.created_at,
    "year_start": Tag.year_start,
    "year_end": Tag.year_end,
}


def tag_path(tag_id: int) -> str:
    return f"/tags/{tag_id}"


@router.get("", response_model=list[TagWithBrand])
def list_tags(
    db: Session = Depends(get_db),
    brand_id: Optional[int] = None,
    category: Optional[IdentifierCategory] = None,
    era: Optional[Era] = None,
    stitch_type: Optional[StitchType] = None,
    origin_country: Optional[str] = None,
    status: Optional[Status] = None,
    order_by: Optional[Literal["verification_score", "created_at", "year_start", "year_end"]] = None,
    order_direction: Literal["asc", "desc"] = "desc",
    limit: int = Query(default=20, ge=1, le=100),
):
    q = select(Tag).options(selectinload(Tag.brand)).limit(limit)

    if order_by:
        col = ORDER_COLUMNS[order_by]
        q = q.order_by(col.asc() if order_direction == "asc" else col.desc())
    else:
        q = q.order_by(Tag.verification_score.desc(), Tag.created_at.desc())

    if brand_id:
        q = q.where(Tag.brand_id == brand_id)
    if category:
        q = q.where(Tag.category == category)
    if era:
        q = q.where(Tag.era == era)
    if stitch_type:
        q = q.where(Tag.stitch_type == stitch_type)
    if origin_country:
        q = q.where(Tag.origin_country.ilike(f"%{origin_country.strip()}%"))
    if status:
        q = q.where(Tag.status == status)

    return db.execute(q).scalars().all()


@router.get("/{tag_id}", response_model=TagDetail)
def get_tag(tag_id: int, db: Session = Depends(get_db)):
    path = tag_path(tag_id)
    cached = page_cache.get(path)
    if cached is not None:
        return cached

    tag = db.execute(
        select(Tag)
        .where(Tag.id == tag_id)
        .options(
            selectinload(Tag.brand),
            selectinload(Tag.submitter),
            selectinload(Tag.clothing_item),
            selectinload(Tag.evidence),
        )
    ).scalar_one_or_none()
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")

    detail = TagDetail.model_validate(tag)
    page_cache.put(path, detail)
    return detail


@router.post("")
def submit_tag(payload: dict, req: Request, db: Session = Depends(get_db)):
    """
    Flow:
      - caller must be signed in (nothing is uploaded otherwise)
      - validate fields and decode the image
      - upload image -> public URL
      - insert tag as pending with score 0

    A failed insert leaves the uploaded object behind.
    """
    user = require_user(req, db, "You must be logged in to submit tags")

    try:
        data = TagSubmission.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e))

    try:
        image = decode_image(data.image_base64)
    except InvalidImage as e:
        raise HTTPException(status_code=400, detail=str(e))

    brand = db.get(Brand, data.brand_id)
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")
    if data.clothing_item_id is not None and not db.get(ClothingItem, data.clothing_item_id):
        raise HTTPException(status_code=404, detail="Clothing item not found")

    key = f"{user.id}/{int(time.time() * 1000)}.{image.extension}"
    try:
        image_url = storage.upload_bytes(data=image.data, key=key, content_type=image.content_type)
    except storage.STORAGE_ERRORS:
        logger.bind(key=key).exception("storage_upload_failed")
        raise HTTPException(status_code=502, detail="Failed to upload image")

    tag = Tag(
        user_id=user.id,
        brand_id=brand.id,
        clothing_item_id=data.clothing_item_id,
        category=data.category,
        era=data.era,
        year_start=data.year_start,
        year_end=data.year_end,
        stitch_type=data.stitch_type,
        origin_country=(data.origin_country or "").strip() or None,
        submission_notes=(data.submission_notes or "").strip() or None,
        image_url=image_url,
        status="pending",
        verification_score=0,
    )
    db.add(tag)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.bind(key=key, brand_id=brand.id).exception("tag_insert_failed")
        raise HTTPException(status_code=500, detail="Failed to create tag submission")

    page_cache.revalidate_path("/", "/search", f"/brands/{brand.slug}", f"/eras/{ERA_TO_SLUG[tag.era]}")
    logger.bind(tag_id=tag.id, brand_id=brand.id).info("tag_submitted")
    return {"success": True, "tag_id": tag.id}
