from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from threaddate.schemas.common import ClothingType, Era, IdentifierCategory, StitchType
from threaddate.schemas.tag import TagOut
from threaddate.utils.constants import YEAR_MAX, YEAR_MIN


class ClothingItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: ClothingType
    description: Optional[str] = Field(default=None, max_length=2000)
    style_number: Optional[str] = Field(default=None, max_length=100)
    color: Optional[str] = Field(default=None, max_length=50)
    size: Optional[str] = Field(default=None, max_length=30)
    year_manufactured: Optional[int] = Field(default=None, ge=YEAR_MIN, le=YEAR_MAX)
    era: Optional[Era] = None
    submission_notes: Optional[str] = Field(default=None, max_length=1000)


class SubmissionClothingItem(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: ClothingType
    brand_id: int = Field(gt=0)
    era: Era
    description: Optional[str] = Field(default=None, max_length=2000)
    color: Optional[str] = Field(default=None, max_length=50)
    size: Optional[str] = Field(default=None, max_length=30)
    origin_country: Optional[str] = Field(default=None, max_length=100)
    image_base64: Optional[str] = None


class IdentifierIn(BaseModel):
    # client-side id, only used to name the uploaded file
    id: str = Field(min_length=1, max_length=64)
    image_base64: Optional[str] = None
    image_url: Optional[str] = None
    category: IdentifierCategory
    era: Era
    year_start: Optional[int] = Field(default=None, ge=YEAR_MIN, le=YEAR_MAX)
    year_end: Optional[int] = Field(default=None, ge=YEAR_MIN, le=YEAR_MAX)
    stitch_type: Optional[StitchType] = None
    origin_country: Optional[str] = Field(default=None, max_length=100)
    submission_notes: Optional[str] = Field(default=None, max_length=1000)
    position_x: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    position_y: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _year_range(self):
        if self.year_start and self.year_end and self.year_start > self.year_end:
            raise ValueError("year_start must not be after year_end")
        return self

    @property
    def has_image(self) -> bool:
        return bool((self.image_base64 or "").strip() or (self.image_url or "").strip())


class ClothingSubmission(BaseModel):
    clothing_item: SubmissionClothingItem
    identifiers: List[IdentifierIn] = Field(default_factory=list)


class ClothingItemOut(BaseModel):
    id: int
    name: str
    slug: str
    type: str
    description: Optional[str] = None
    style_number: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    year_manufactured: Optional[int] = None
    era: Optional[str] = None
    origin_country: Optional[str] = None
    image_url: Optional[str] = None
    status: str
    verification_score: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClothingItemDetail(ClothingItemOut):
    submission_notes: Optional[str] = None
    tags: List[TagOut] = Field(default_factory=list)
