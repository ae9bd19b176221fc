from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..services.moods import MoodType
from .common import PaginationMeta


class MoodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    emoji: str = Field(..., min_length=1, max_length=16)
    colour: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$")
    dark_colour: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$")
    type: MoodType = MoodType.DEFAULT.value
    is_active: bool = True

    model_config = {
        "use_enum_values": True,
    }


class MoodUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    emoji: str | None = Field(default=None, min_length=1, max_length=16)
    colour: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    dark_colour: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    type: MoodType | None = None
    is_active: bool | None = None

    model_config = {
        "use_enum_values": True,
    }


class MoodModel(BaseModel):
    id: int
    name: str
    emoji: str
    colour: str
    dark_colour: str
    type: MoodType
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


class MoodListResponse(BaseModel):
    items: list[MoodModel]
    meta: PaginationMeta


class MoodSeedResponse(BaseModel):
    ok: bool = True
    created: list[str]
    skipped: list[str]


class UserMoodCreate(BaseModel):
    user_id: int
    mood_id: int
    acquisition_type: MoodType = MoodType.DEFAULT.value
    is_active: bool = True
    is_selected: bool = False

    model_config = {
        "use_enum_values": True,
    }


class UserMoodUpdate(BaseModel):
    is_active: bool | None = None
    is_selected: bool | None = None


class UserMoodModel(BaseModel):
    id: int
    user_id: int
    mood_id: int
    acquisition_type: MoodType
    acquired_at: datetime
    is_active: bool
    is_selected: bool
    mood: MoodModel

    model_config = {
        "from_attributes": True,
    }


class UserMoodListResponse(BaseModel):
    items: list[UserMoodModel]
    meta: PaginationMeta
