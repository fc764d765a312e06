from __future__ import annotations

from pydantic import BaseModel, Field


class EraBrandCount(BaseModel):
    id: int
    name: str
    slug: str
    logo_url: str | None = None
    tag_count: int


class LabelCount(BaseModel):
    label: str
    count: int


class EraStats(BaseModel):
    era: str
    slug: str
    tag_count: int = 0
    brand_count: int = 0
    top_brands: list[EraBrandCount] = Field(default_factory=list)
    categories: list[LabelCount] = Field(default_factory=list)
    countries: list[LabelCount] = Field(default_factory=list)
