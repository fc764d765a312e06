from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from threaddate.database import get_db
from threaddate.models.brand import Brand
from threaddate.schemas.brand import PendingBrandOut
from threaddate.services import page_cache
from threaddate.services.authz import require_admin
from threaddate.services.moderation import apply_brand_decision

router = APIRouter(prefix="/admin/brands", tags=["admin"])


@router.get("/pending", response_model=list[PendingBrandOut])
def pending_brands(req: Request, db: Session = Depends(get_db)):
    require_admin(req, db)
    q = select(Brand).where(Brand.verified == False).order_by(Brand.created_at.desc())  # noqa
    return db.execute(q).scalars().all()


def _decide(brand_id: int, action: str, req: Request, db: Session) -> dict:
    # role is re-read on every call, before anything is touched
    admin = require_admin(req, db)

    brand = db.get(Brand, brand_id)
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")

    try:
        apply_brand_decision(brand, action, admin.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.bind(brand_id=brand_id, action=action).exception("brand_update_failed")
        raise HTTPException(status_code=500, detail="Failed to update brand")

    page_cache.revalidate_path("/brands", "/admin/brands")
    logger.bind(brand_id=brand_id, action=action).info("brand_moderated")
    return {"success": True, "brand_id": brand.id, "verification_status": brand.verification_status}


@router.post("/{brand_id}/verify")
def verify_brand(brand_id: int, req: Request, db: Session = Depends(get_db)):
    return _decide(brand_id, "verify", req, db)


@router.post("/{brand_id}/reject")
def reject_brand(brand_id: int, req: Request, db: Session = Depends(get_db)):
    return _decide(brand_id, "reject", req, db)
