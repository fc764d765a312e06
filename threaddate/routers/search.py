from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from threaddate.database import get_db
from threaddate.models.brand import Brand
from threaddate.schemas.brand import BrandSummary

router = APIRouter(prefix="/api/search", tags=["search"])

MIN_QUERY_LENGTH = 2
MAX_LIMIT = 50


@router.get("/brands", response_model=list[BrandSummary])
def search_brands(
    q: str = "",
    limit: int = Query(default=5, ge=1),
    db: Session = Depends(get_db),
):
    """Typeahead for the brand picker. Never fails: errors come back as an empty list."""
    term = q.strip()
    if len(term) < MIN_QUERY_LENGTH:
        return []

    stmt = (
        select(Brand)
        .where(Brand.name.ilike(f"%{term}%"))
        .order_by(Brand.verified.desc(), Brand.name.asc())
        .limit(min(limit, MAX_LIMIT))
    )
    try:
        return db.execute(stmt).scalars().all()
    except SQLAlchemyError:
        db.rollback()
        logger.bind(q=term).exception("brand_search_failed")
        return []
