from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class UserModel(BaseModel):
    id: int
    email: str
    full_name: str
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


class UserUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=100)
