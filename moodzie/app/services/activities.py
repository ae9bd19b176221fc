from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import selectinload, with_loader_criteria

from ..core.errors import ConflictError, InvalidRequestError, NotFoundError
from ..db.models import ActivityCategory, ActivitySubCategory
from .pagination import Page, paginate

logger = logging.getLogger(__name__)


def _sub(name: str, emoji: str, description: str, color: str, dark_color: str) -> dict[str, str]:
    return {
        "name": name,
        "emoji": emoji,
        "description": description,
        "color": color,
        "dark_color": dark_color,
    }


SEED_ACTIVITIES: tuple[dict[str, Any], ...] = (
    {
        **_sub("Emotions", "😊", "Track your emotional states", "#FF5733", "#CC4000"),
        "sub_categories": [
            _sub("Happy", "😊", "Feeling joyful and content", "#FFD700", "#B8860B"),
            _sub("Sad", "😢", "Feeling down or blue", "#4169E1", "#00008B"),
            _sub("Angry", "😠", "Feeling frustrated or upset", "#FF0000", "#8B0000"),
            _sub("Anxious", "😰", "Feeling worried or nervous", "#FF7F50", "#A0522D"),
            _sub("Calm", "😌", "Feeling peaceful and relaxed", "#90EE90", "#006400"),
            _sub("Tired", "😴", "Feeling exhausted or sleepy", "#8A2BE2", "#4B0082"),
        ],
    },
    {
        **_sub("Health", "❤️", "Track your health activities", "#32CD32", "#006400"),
        "sub_categories": [
            _sub("Exercise", "🏃", "Physical activities and workouts", "#FF4500", "#8B0000"),
            _sub("Medication", "💊", "Medication intake tracking", "#1E90FF", "#00008B"),
            _sub("Symptoms", "🤒", "Track physical symptoms", "#FF69B4", "#8B008B"),
            _sub("Doctor Visit", "👨‍⚕️", "Medical appointments", "#FFFFFF", "#A9A9A9"),
            _sub("Water", "💧", "Water intake tracking", "#00BFFF", "#0000CD"),
            _sub("Vitamins", "💉", "Vitamin and supplement intake", "#FF8C00", "#8B4513"),
        ],
    },
    {
        **_sub("Food", "🍔", "Track your food and nutrition", "#FFA500", "#8B4513"),
        "sub_categories": [
            _sub("Breakfast", "🍳", "Morning meals", "#FFFF00", "#BDB76B"),
            _sub("Lunch", "🥗", "Midday meals", "#7CFC00", "#006400"),
            _sub("Dinner", "🍝", "Evening meals", "#FF1493", "#8B0000"),
            _sub("Snack", "🍿", "Between-meal eating", "#D2691E", "#8B4513"),
            _sub("Dessert", "🍰", "Sweet treats", "#FF00FF", "#8B008B"),
            _sub("Drinks", "🥤", "Beverages consumed", "#00FFFF", "#008B8B"),
        ],
    },
    {
        **_sub("Sleep", "😴", "Track your sleep patterns", "#9370DB", "#483D8B"),
        "sub_categories": [
            _sub("Bedtime", "🛌", "When you go to bed", "#191970", "#000080"),
            _sub("Wake Up", "⏰", "When you wake up", "#FFD700", "#B8860B"),
            _sub("Nap", "💤", "Short sleep during the day", "#E6E6FA", "#6A5ACD"),
            _sub("Sleep Quality", "📊", "How well you slept", "#20B2AA", "#2F4F4F"),
            _sub("Dream", "🌙", "Dream journal entries", "#9932CC", "#4B0082"),
            _sub("Insomnia", "👁️", "Trouble sleeping", "#FF6347", "#8B0000"),
        ],
    },
    {
        **_sub("Productivity", "📝", "Track your work and productivity", "#4682B4", "#00008B"),
        "sub_categories": [
            _sub("Work", "💼", "Professional tasks", "#708090", "#2F4F4F"),
            _sub("Study", "📚", "Learning activities", "#FF7F50", "#A0522D"),
            _sub("Hobbies", "🎨", "Personal interest activities", "#7B68EE", "#483D8B"),
            _sub("Meeting", "👥", "Group discussions", "#F0E68C", "#BDB76B"),
            _sub("Project", "🏗️", "Personal or work projects", "#00FA9A", "#2E8B57"),
            _sub("Breaks", "☕", "Rest periods", "#CD853F", "#8B4513"),
        ],
    },
    {
        **_sub("Weather", "🌤️", "Track weather conditions", "#87CEEB", "#4682B4"),
        "sub_categories": [
            _sub("Sunny", "☀️", "Clear sunny day", "#FFFF00", "#B8860B"),
            _sub("Rainy", "🌧️", "Precipitation and rain", "#1E90FF", "#00008B"),
            _sub("Cloudy", "☁️", "Overcast conditions", "#C0C0C0", "#696969"),
            _sub("Stormy", "⛈️", "Thunderstorms", "#4B0082", "#191970"),
            _sub("Snowy", "❄️", "Snow and winter conditions", "#FFFFFF", "#A9A9A9"),
            _sub("Hot", "🔥", "High-temperature days", "#FF4500", "#8B0000"),
        ],
    },
)


class ActivityService:
    """Activity categories and sub-categories used to tag mood logs."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    # -- categories ------------------------------------------------------
    async def create_category(self, data: Mapping[str, Any]) -> ActivityCategory:
        async with self._session_factory() as session:
            category = ActivityCategory(**data)
            session.add(category)
            try:
                await session.commit()
            except IntegrityError as exc:
                raise ConflictError(f"activity category {data.get('name')!r} already exists") from exc
            await session.refresh(category)
            return category

    async def update_category(
        self, category_id: int, changes: Mapping[str, Any]
    ) -> ActivityCategory:
        async with self._session_factory() as session:
            category = await session.get(ActivityCategory, category_id)
            if category is None:
                raise NotFoundError(f"activity category {category_id} not found")
            for field, value in changes.items():
                setattr(category, field, value)
            try:
                await session.commit()
            except IntegrityError as exc:
                raise ConflictError("activity category name already in use") from exc
            await session.refresh(category)
            return category

    async def list_categories(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> Page[ActivityCategory]:
        query = select(ActivityCategory)
        if is_active is not None:
            query = query.where(ActivityCategory.is_active.is_(is_active))
        if search:
            query = query.where(ActivityCategory.name.ilike(f"%{search}%"))
        query = query.order_by(ActivityCategory.created_at.desc(), ActivityCategory.id.desc())
        async with self._session_factory() as session:
            return await paginate(session, query, page=page, limit=limit)

    async def get_category(self, category_id: int) -> ActivityCategory:
        async with self._session_factory() as session:
            category = await session.get(ActivityCategory, category_id)
            if category is None:
                raise NotFoundError(f"activity category {category_id} not found")
            return category

    async def categories_with_sub_categories(
        self, *, is_active: bool | None = None
    ) -> list[ActivityCategory]:
        query = select(ActivityCategory).options(selectinload(ActivityCategory.sub_categories))
        if is_active is not None:
            query = query.where(ActivityCategory.is_active.is_(is_active)).options(
                with_loader_criteria(
                    ActivitySubCategory,
                    ActivitySubCategory.is_active.is_(is_active),
                )
            )
        query = query.order_by(ActivityCategory.created_at.desc(), ActivityCategory.id.desc())
        async with self._session_factory() as session:
            result = await session.scalars(query)
            return list(result.all())

    # -- sub-categories --------------------------------------------------
    async def create_sub_category(self, data: Mapping[str, Any]) -> ActivitySubCategory:
        return (await self.create_sub_categories([data]))[0]

    async def create_sub_categories(
        self, items: Sequence[Mapping[str, Any]]
    ) -> list[ActivitySubCategory]:
        category_ids = {item["category_id"] for item in items}
        async with self._session_factory() as session:
            found = set(
                (
                    await session.scalars(
                        select(ActivityCategory.id).where(ActivityCategory.id.in_(category_ids))
                    )
                ).all()
            )
            missing = category_ids - found
            if missing:
                if len(items) == 1:
                    raise NotFoundError(f"activity category {missing.pop()} not found")
                raise InvalidRequestError("one or more category ids are invalid")
            created = [ActivitySubCategory(**item) for item in items]
            session.add_all(created)
            try:
                await session.commit()
            except IntegrityError as exc:
                raise ConflictError("sub-category already exists in this category") from exc
            for sub_category in created:
                await session.refresh(sub_category)
            return created

    async def update_sub_category(
        self, sub_category_id: int, changes: Mapping[str, Any]
    ) -> ActivitySubCategory:
        async with self._session_factory() as session:
            sub_category = await session.get(ActivitySubCategory, sub_category_id)
            if sub_category is None:
                raise NotFoundError(f"activity sub-category {sub_category_id} not found")
            category_id = changes.get("category_id")
            if category_id is not None and await session.get(ActivityCategory, category_id) is None:
                raise NotFoundError(f"activity category {category_id} not found")
            for field, value in changes.items():
                setattr(sub_category, field, value)
            try:
                await session.commit()
            except IntegrityError as exc:
                raise ConflictError("sub-category already exists in this category") from exc
            await session.refresh(sub_category)
            return sub_category

    async def list_sub_categories(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        category_id: int | None = None,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> Page[ActivitySubCategory]:
        query = select(ActivitySubCategory)
        if category_id is not None:
            query = query.where(ActivitySubCategory.category_id == category_id)
        if is_active is not None:
            query = query.where(ActivitySubCategory.is_active.is_(is_active))
        if search:
            query = query.where(ActivitySubCategory.name.ilike(f"%{search}%"))
        query = query.order_by(
            ActivitySubCategory.created_at.desc(), ActivitySubCategory.id.desc()
        )
        async with self._session_factory() as session:
            return await paginate(session, query, page=page, limit=limit)

    async def get_sub_category(self, sub_category_id: int) -> ActivitySubCategory:
        async with self._session_factory() as session:
            sub_category = await session.get(ActivitySubCategory, sub_category_id)
            if sub_category is None:
                raise NotFoundError(f"activity sub-category {sub_category_id} not found")
            return sub_category

    async def sub_categories_for(
        self, category_id: int, *, is_active: bool | None = None
    ) -> list[ActivitySubCategory]:
        await self.get_category(category_id)
        query = select(ActivitySubCategory).where(
            ActivitySubCategory.category_id == category_id
        )
        if is_active is not None:
            query = query.where(ActivitySubCategory.is_active.is_(is_active))
        async with self._session_factory() as session:
            result = await session.scalars(query.order_by(ActivitySubCategory.id))
            return list(result.all())

    async def seed_activities(self, *, overwrite: bool = False) -> dict[str, int]:
        """Insert the built-in categories; existing names are left alone."""

        created_categories = 0
        created_sub_categories = 0
        async with self._session_factory() as session:
            if overwrite:
                logger.info("deleting existing activity categories before seeding")
                await session.execute(delete(ActivitySubCategory))
                await session.execute(delete(ActivityCategory))
            existing = set((await session.scalars(select(ActivityCategory.name))).all())
            for data in SEED_ACTIVITIES:
                if data["name"] in existing:
                    continue
                fields = {key: value for key, value in data.items() if key != "sub_categories"}
                category = ActivityCategory(
                    **fields,
                    sub_categories=[ActivitySubCategory(**sub) for sub in data["sub_categories"]],
                )
                session.add(category)
                created_categories += 1
                created_sub_categories += len(data["sub_categories"])
            await session.commit()
        logger.info(
            "activities seeded",
            extra={
                "extra_fields": {
                    "categories": created_categories,
                    "sub_categories": created_sub_categories,
                }
            },
        )
        return {"categories": created_categories, "sub_categories": created_sub_categories}


__all__ = ["ActivityService", "SEED_ACTIVITIES"]
