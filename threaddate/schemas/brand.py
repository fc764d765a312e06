from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from threaddate.utils.affiliate import add_ebay_affiliate_tracking


class BrandCreate(BaseModel):
    name: str


class BrandSummary(BaseModel):
    id: int
    name: str
    slug: str
    logo_url: str | None = None
    verified: bool

    class Config:
        from_attributes = True


class BrandOut(BrandSummary):
    verification_status: str
    founded_year: int | None = None
    description: str | None = None


class PendingBrandOut(BaseModel):
    id: int
    name: str
    slug: str
    logo_url: str | None = None
    created_at: datetime | None = None
    verification_status: str

    class Config:
        from_attributes = True


class BrandDetail(BrandOut):
    country_code: str | None = None
    created_at: datetime | None = None
    verified_at: datetime | None = None
    parent_brand_id: int | None = None
    website_url: str | None = None
    wikipedia_url: str | None = None
    ebay_url: str | None = None
    poshmark_url: str | None = None
    depop_url: str | None = None
    ebay_search_url: str | None = None

    @field_validator("ebay_url")
    @classmethod
    def _track_ebay(cls, v: str | None) -> str | None:
        return add_ebay_affiliate_tracking(v)


class EraDistribution(BaseModel):
    era: str
    count: int
    year_start: int
    year_end: int
    avg_verification_score: int


class EraCount(BaseModel):
    era: str
    count: int


class EraScore(BaseModel):
    era: str
    avg_score: float


class NewestIdentifier(BaseModel):
    era: str
    created_at: datetime


class BrandEraInsights(BaseModel):
    most_common_era: EraCount | None = None
    highest_verified_era: EraScore | None = None
    total_eras: int = 0
    newest_identifier: NewestIdentifier | None = None
