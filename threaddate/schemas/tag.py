from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from threaddate.schemas.brand import BrandSummary
from threaddate.schemas.common import Era, IdentifierCategory, StitchType
from threaddate.schemas.profile import SubmitterOut
from threaddate.utils.constants import YEAR_MAX, YEAR_MIN


class TagSubmission(BaseModel):
    brand_id: int = Field(gt=0)
    clothing_item_id: Optional[int] = None
    category: IdentifierCategory
    era: Era
    year_start: Optional[int] = Field(default=None, ge=YEAR_MIN, le=YEAR_MAX)
    year_end: Optional[int] = Field(default=None, ge=YEAR_MIN, le=YEAR_MAX)
    stitch_type: Optional[StitchType] = None
    origin_country: Optional[str] = Field(default=None, max_length=100)
    submission_notes: Optional[str] = Field(default=None, max_length=1000)
    image_base64: str = Field(min_length=1)

    @model_validator(mode="after")
    def _year_range(self):
        if self.year_start and self.year_end and self.year_start > self.year_end:
            raise ValueError("year_start must not be after year_end")
        return self


class VoteIn(BaseModel):
    vote_value: Literal[1, -1]


class TagOut(BaseModel):
    id: int
    user_id: uuid.UUID
    brand_id: int
    clothing_item_id: Optional[int] = None
    category: str
    era: str
    year_start: Optional[int] = None
    year_end: Optional[int] = None
    stitch_type: Optional[str] = None
    origin_country: Optional[str] = None
    submission_notes: Optional[str] = None
    image_url: str
    status: str
    verification_score: int
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TagWithBrand(TagOut):
    brand: Optional[BrandSummary] = None


class ClothingItemRef(BaseModel):
    id: int
    name: str
    slug: str
    type: str
    era: Optional[str] = None
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class EvidenceOut(BaseModel):
    id: int
    image_url: str
    description: Optional[str] = None
    evidence_type: Optional[str] = None

    class Config:
        from_attributes = True


class TagDetail(TagWithBrand):
    submitter: Optional[SubmitterOut] = None
    clothing_item: Optional[ClothingItemRef] = None
    evidence: List[EvidenceOut] = Field(default_factory=list)
