from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .common import PaginationMeta


class BadgeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    icon: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=50)
    level: int = Field(default=1, ge=1)
    points: int = Field(default=0, ge=0)
    is_active: bool = True


class BadgeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1)
    icon: str | None = Field(default=None, min_length=1, max_length=255)
    category: str | None = Field(default=None, min_length=1, max_length=50)
    level: int | None = Field(default=None, ge=1)
    points: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class BadgeAward(BaseModel):
    user_id: int
    badge_id: int


class BadgeModel(BaseModel):
    id: int
    name: str
    description: str
    icon: str
    category: str
    level: int
    points: int
    is_active: bool
    created_at: datetime

    model_config = {
        "from_attributes": True,
    }


class BadgeListResponse(BaseModel):
    items: list[BadgeModel]
    meta: PaginationMeta


class UserBadgeModel(BaseModel):
    id: int
    user_id: int
    badge_id: int
    awarded_at: datetime
    badge: BadgeModel

    model_config = {
        "from_attributes": True,
    }


class UserBadgeListResponse(BaseModel):
    items: list[UserBadgeModel]
