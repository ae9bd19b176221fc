from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..insights.periods import PeriodKind
from .activities import ActivityCategoryModel, ActivitySubCategoryModel
from .common import PaginationMeta
from .moods import UserMoodModel


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"


class MoodLogCreate(BaseModel):
    mood_id: int
    notes: str | None = Field(default=None, max_length=2000)
    category_ids: list[int] | None = None
    sub_category_ids: list[int] | None = None
    mood_date: datetime | None = None
    is_public: bool = False


class MoodLogUpdate(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)
    user_mood_id: int | None = None
    category_ids: list[int] | None = None
    sub_category_ids: list[int] | None = None
    mood_date: datetime | None = None
    is_public: bool | None = None


class MoodLogQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    start_date: date | None = None
    end_date: date | None = None
    user_mood_id: int | None = None
    category_id: int | None = None
    sub_category_id: int | None = None
    is_public: bool | None = None
    sort_order: SortOrder = SortOrder.NEWEST


class MoodLogModel(BaseModel):
    id: int
    user_id: int
    user_mood_id: int
    notes: str | None
    mood_date: datetime
    is_public: bool
    created_at: datetime
    updated_at: datetime
    user_mood: UserMoodModel
    categories: list[ActivityCategoryModel]
    sub_categories: list[ActivitySubCategoryModel]

    model_config = {
        "from_attributes": True,
    }


class MoodLogListResponse(BaseModel):
    items: list[MoodLogModel]
    meta: PaginationMeta


class MoodInfoItem(BaseModel):
    id: int
    mood_id: int
    name: str
    emoji: str
    color: str
    dark_color: str
    is_selected: bool
    count: int
    percentage: int
    last_used: datetime | None


class MoodsInfoResponse(BaseModel):
    total_logs: int
    moods: list[MoodInfoItem]


class PeriodLogItem(BaseModel):
    id: int | None
    mood_date: datetime
    mood_name: str
    mood_emoji: str
    mood_color: str
    notes: str | None

    model_config = {
        "from_attributes": True,
    }


class PeriodBucketModel(BaseModel):
    key: int | str
    count: int
    logs: list[PeriodLogItem]

    model_config = {
        "from_attributes": True,
    }


class MoodStatsResponse(BaseModel):
    period: PeriodKind
    data: list[PeriodBucketModel]
    total: int


class TimeRange(BaseModel):
    start: date
    end: date


class MoodCountModel(BaseModel):
    count: int
    emoji: str
    color: str
    percentage: int

    model_config = {
        "from_attributes": True,
    }


class MoodSummaryResponse(BaseModel):
    period: PeriodKind
    time_range: TimeRange
    total_logs: int
    mood_counts: dict[str, MoodCountModel]
    categories: list[int | str]


class StreakModel(BaseModel):
    current_streak: int
    longest_streak: int
    last_log_date: date | None
    is_active: bool
    current_streak_start_date: date | None
    longest_streak_start_date: date | None
    longest_streak_end_date: date | None

    model_config = {
        "from_attributes": True,
    }
