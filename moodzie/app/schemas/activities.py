from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .common import PaginationMeta


class ActivityCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    emoji: str = Field(..., min_length=1, max_length=16)
    description: str | None = Field(default=None, max_length=500)
    color: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$")
    dark_color: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$")
    is_active: bool = True


class ActivityCategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    emoji: str | None = Field(default=None, min_length=1, max_length=16)
    description: str | None = Field(default=None, max_length=500)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    dark_color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    is_active: bool | None = None


class ActivitySubCategoryCreate(ActivityCategoryCreate):
    category_id: int


class ActivitySubCategoryBulkCreate(BaseModel):
    sub_categories: list[ActivitySubCategoryCreate] = Field(..., min_length=1)


class ActivitySubCategoryUpdate(ActivityCategoryUpdate):
    category_id: int | None = None


class ActivityCategoryModel(BaseModel):
    id: int
    name: str
    emoji: str
    description: str | None
    color: str
    dark_color: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


class ActivitySubCategoryModel(ActivityCategoryModel):
    category_id: int


class ActivityCategoryTree(ActivityCategoryModel):
    sub_categories: list[ActivitySubCategoryModel]


class ActivityCategoryListResponse(BaseModel):
    items: list[ActivityCategoryModel]
    meta: PaginationMeta


class ActivitySubCategoryListResponse(BaseModel):
    items: list[ActivitySubCategoryModel]
    meta: PaginationMeta


class ActivitySeedResponse(BaseModel):
    ok: bool = True
    categories: int
    sub_categories: int
