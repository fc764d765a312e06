# threaddate/routers/clothing.py
from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from threaddate.database import get_db
from threaddate.models.brand import Brand
from threaddate.models.clothing_item import ClothingItem
from threaddate.models.tag import Tag
from threaddate.schemas.clothing_item import (
    ClothingItemCreate,
    ClothingItemDetail,
    ClothingItemOut,
    ClothingSubmission,
    IdentifierIn,
)
from threaddate.schemas.common import validation_message
from threaddate.services import page_cache, storage
from threaddate.services.authz import require_user
from threaddate.services.images import DecodedImage, InvalidImage, decode_image
from threaddate.services.slugs import clothing_slug, numbered_slug
from threaddate.utils.constants import ERA_TO_SLUG

router = APIRouter(prefix="/clothing", tags=["clothing"])


def _free_slug(db: Session, name: str) -> str:
    base = clothing_slug(name) or "item"
    taken = set(
        db.execute(
            select(ClothingItem.slug).where(or_(ClothingItem.slug == base, ClothingItem.slug.like(f"{base}-%")))
        ).scalars()
    )
    n = 1
    while numbered_slug(base, n) in taken:
        n += 1
    return numbered_slug(base, n)


def _millis() -> int:
    return int(time.time() * 1000)


def _insert_item(db: Session, item: ClothingItem) -> None:
    db.add(item)
    try:
        db.commit()
    except IntegrityError:
        # another request took the slug between our read and this insert
        db.rollback()
        raise HTTPException(status_code=409, detail="A clothing item with this name was just created, please retry")
    except SQLAlchemyError:
        db.rollback()
        logger.bind(slug=item.slug).exception("clothing_item_insert_failed")
        raise HTTPException(status_code=500, detail="Failed to create clothing item")


@router.get("", response_model=list[ClothingItemOut])
def list_clothing_items(db: Session = Depends(get_db), limit: int = Query(default=50, ge=1, le=200)):
    q = select(ClothingItem).order_by(ClothingItem.created_at.desc()).limit(limit)
    return db.execute(q).scalars().all()


@router.get("/search", response_model=list[ClothingItemOut])
def search_clothing_items(q: str = "", limit: int = Query(default=10, ge=1, le=50), db: Session = Depends(get_db)):
    term = q.strip()
    if not term:
        return []
    stmt = (
        select(ClothingItem)
        .where(ClothingItem.name.ilike(f"%{term}%"))
        .order_by(ClothingItem.name.asc())
        .limit(limit)
    )
    return db.execute(stmt).scalars().all()


@router.get("/{slug}", response_model=ClothingItemDetail)
def get_clothing_item(slug: str, db: Session = Depends(get_db)):
    item = db.execute(
        select(ClothingItem).where(ClothingItem.slug == slug).options(selectinload(ClothingItem.tags))
    ).scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=404, detail="Clothing item not found")
    return item


@router.post("")
def create_clothing_item(payload: dict, req: Request, db: Session = Depends(get_db)):
    user = require_user(req, db, "You must be logged in to create clothing items")

    try:
        data = ClothingItemCreate.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e))

    item = ClothingItem(
        name=data.name.strip(),
        slug=_free_slug(db, data.name),
        type=data.type,
        description=data.description,
        style_number=data.style_number,
        color=data.color,
        size=data.size,
        year_manufactured=data.year_manufactured,
        era=data.era,
        submission_notes=data.submission_notes,
        created_by=user.id,
        status="pending",
        verification_score=0,
    )
    _insert_item(db, item)

    page_cache.revalidate_path("/clothing")
    logger.bind(clothing_item_id=item.id, slug=item.slug).info("clothing_item_created")
    return {"success": True, "clothing_item": ClothingItemOut.model_validate(item)}


def _prepare_identifier(ident: IdentifierIn) -> DecodedImage | str:
    """Decoded bytes to upload, or the URL of an image already in our bucket."""
    if (ident.image_base64 or "").strip():
        return decode_image(ident.image_base64)

    url = (ident.image_url or "").strip()
    if storage.key_from_public_url(url) is None:
        raise InvalidImage("image_url must point to an uploaded image")
    return url


@router.post("/submissions")
def submit_clothing_with_identifiers(payload: dict, req: Request, db: Session = Depends(get_db)):
    """
    Creates one clothing item plus a tag per identifier.

    Flow:
      - validate everything up front (images included)
      - upload the optional garment photo (failure only drops the photo)
      - insert the clothing item
      - per identifier: upload image, insert tag; failures skip that identifier
      - if no identifier made it, delete the clothing item again
    """
    user = require_user(req, db, "You must be logged in to submit")

    try:
        data = ClothingSubmission.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e))

    if not data.identifiers:
        raise HTTPException(status_code=400, detail="At least one identifier is required")

    complete = [i for i in data.identifiers if i.has_image]
    if not complete:
        raise HTTPException(status_code=400, detail="At least one identifier with an image is required")

    try:
        prepared = [(ident, _prepare_identifier(ident)) for ident in complete]
        garment_image = decode_image(data.clothing_item.image_base64) if data.clothing_item.image_base64 else None
    except InvalidImage as e:
        raise HTTPException(status_code=400, detail=str(e))

    brand = db.get(Brand, data.clothing_item.brand_id)
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")

    # Step 1: garment photo
    clothing_image_url = None
    if garment_image is not None:
        key = f"clothing/{user.id}/{_millis()}.{garment_image.extension}"
        try:
            clothing_image_url = storage.upload_bytes(
                data=garment_image.data, key=key, content_type=garment_image.content_type
            )
        except storage.STORAGE_ERRORS:
            logger.bind(key=key).exception("storage_upload_failed")

    # Step 2: clothing item
    ci = data.clothing_item
    item = ClothingItem(
        name=ci.name.strip(),
        slug=_free_slug(db, ci.name),
        type=ci.type,
        era=ci.era,
        description=ci.description or None,
        color=ci.color or None,
        size=ci.size or None,
        origin_country=ci.origin_country or None,
        image_url=clothing_image_url,
        created_by=user.id,
        status="pending",
        verification_score=0,
    )
    _insert_item(db, item)

    # Step 3: identifiers
    tag_ids: list[int] = []
    skipped: list[dict[str, Any]] = []

    for ident, image in prepared:
        if isinstance(image, DecodedImage):
            key = f"{user.id}/{_millis()}-{ident.id[:8]}.{image.extension}"
            try:
                image_url = storage.upload_bytes(data=image.data, key=key, content_type=image.content_type)
            except storage.STORAGE_ERRORS:
                logger.bind(key=key).exception("storage_upload_failed")
                skipped.append({"id": ident.id, "reason": "upload failed"})
                continue
        else:
            image_url = image

        tag = Tag(
            user_id=user.id,
            brand_id=brand.id,
            clothing_item_id=item.id,
            category=ident.category,
            era=ident.era,
            year_start=ident.year_start,
            year_end=ident.year_end,
            stitch_type=ident.stitch_type,
            origin_country=ident.origin_country or None,
            submission_notes=ident.submission_notes or None,
            image_url=image_url,
            status="pending",
            verification_score=0,
            position_x=ident.position_x,
            position_y=ident.position_y,
        )
        db.add(tag)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.bind(identifier=ident.id).exception("tag_insert_failed")
            skipped.append({"id": ident.id, "reason": "insert failed"})
            continue
        tag_ids.append(tag.id)

    if not tag_ids:
        db.delete(item)
        db.commit()
        logger.bind(slug=item.slug).warning("clothing_submission_empty")
        raise HTTPException(status_code=502, detail="Failed to create any identifiers")

    eras = {f"/eras/{ERA_TO_SLUG[ident.era]}" for ident, _ in prepared}
    page_cache.revalidate_path("/", "/search", "/clothing", f"/clothing/{item.slug}", f"/brands/{brand.slug}", *eras)
    logger.bind(clothing_item_id=item.id, tag_count=len(tag_ids)).info("clothing_submitted")
    return {
        "success": True,
        "clothing_item_id": item.id,
        "clothing_item_slug": item.slug,
        "tag_ids": tag_ids,
        "tag_count": len(tag_ids),
        "skipped_items": skipped,
    }
