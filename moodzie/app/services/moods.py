from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import ConflictError, NotFoundError, PermissionDeniedError
from ..db.models import Mood, User, UserMood
from .pagination import Page, paginate

logger = logging.getLogger(__name__)


class MoodType(str, Enum):
    DEFAULT = "default"
    REWARD = "reward"
    PURCHASE = "purchase"


SEED_MOODS: tuple[dict[str, str], ...] = (
    {"name": "Rad", "emoji": "🤩", "colour": "#FFD700", "dark_colour": "#B8860B", "type": "default"},
    {"name": "Good", "emoji": "😁", "colour": "#98FB98", "dark_colour": "#3CB371", "type": "default"},
    {"name": "Meh", "emoji": "😐", "colour": "#F5F5DC", "dark_colour": "#BDB76B", "type": "default"},
    {"name": "Bad", "emoji": "😔", "colour": "#ADD8E6", "dark_colour": "#4682B4", "type": "default"},
    {"name": "Awful", "emoji": "😩", "colour": "#FFA07A", "dark_colour": "#CD5C5C", "type": "default"},
    {"name": "Happy", "emoji": "😊", "colour": "#FFC0CB", "dark_colour": "#DB7093", "type": "reward"},
    {"name": "Excited", "emoji": "🤩", "colour": "#FF69B4", "dark_colour": "#C71585", "type": "reward"},
    {"name": "Proud", "emoji": "🥲", "colour": "#D8BFD8", "dark_colour": "#9370DB", "type": "reward"},
    {"name": "Relaxed", "emoji": "😌", "colour": "#E0FFFF", "dark_colour": "#5F9EA0", "type": "reward"},
    {"name": "Grateful", "emoji": "🙏", "colour": "#F0E68C", "dark_colour": "#DAA520", "type": "reward"},
    {"name": "Energetic", "emoji": "⚡", "colour": "#FFFF00", "dark_colour": "#FFD700", "type": "purchase"},
    {"name": "Confident", "emoji": "💪", "colour": "#FF7F50", "dark_colour": "#DC143C", "type": "purchase"},
    {"name": "Creative", "emoji": "🎨", "colour": "#FF00FF", "dark_colour": "#8B008B", "type": "purchase"},
    {"name": "Focused", "emoji": "🧠", "colour": "#00FFFF", "dark_colour": "#008B8B", "type": "purchase"},
    {"name": "Calm", "emoji": "🧘", "colour": "#00FF7F", "dark_colour": "#2E8B57", "type": "purchase"},
)


class MoodService:
    """Mood catalog and the moods each user owns."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    # -- catalog ---------------------------------------------------------
    async def create_mood(self, data: Mapping[str, Any]) -> Mood:
        async with self._session_factory() as session:
            existing = await session.scalar(select(Mood).where(Mood.name == data["name"]))
            if existing is not None:
                raise ConflictError(f"mood {data['name']!r} already exists")
            mood = Mood(**data)
            session.add(mood)
            await session.commit()
            await session.refresh(mood)
            return mood

    async def list_moods(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        mood_type: str | None = None,
        search: str | None = None,
    ) -> Page[Mood]:
        query = select(Mood)
        if mood_type:
            query = query.where(Mood.type == mood_type)
        if search:
            query = query.where(Mood.name.ilike(f"%{search}%"))
        query = query.order_by(Mood.created_at.desc(), Mood.id.desc())
        async with self._session_factory() as session:
            return await paginate(session, query, page=page, limit=limit)

    async def get_mood(self, mood_id: int) -> Mood:
        async with self._session_factory() as session:
            mood = await session.get(Mood, mood_id)
            if mood is None:
                raise NotFoundError(f"mood {mood_id} not found")
            return mood

    async def update_mood(self, mood_id: int, changes: Mapping[str, Any]) -> Mood:
        async with self._session_factory() as session:
            mood = await session.get(Mood, mood_id)
            if mood is None:
                raise NotFoundError(f"mood {mood_id} not found")
            name = changes.get("name")
            if name and name != mood.name:
                taken = await session.scalar(select(Mood.id).where(Mood.name == name))
                if taken is not None:
                    raise ConflictError(f"mood {name!r} already exists")
            for field, value in changes.items():
                setattr(mood, field, value)
            await session.commit()
            await session.refresh(mood)
            return mood

    async def seed_moods(self) -> dict[str, list[str]]:
        """Insert the built-in moods that are not in the catalog yet."""

        created: list[str] = []
        skipped: list[str] = []
        async with self._session_factory() as session:
            existing = set(
                (await session.scalars(select(Mood.name))).all()
            )
            for data in SEED_MOODS:
                if data["name"] in existing:
                    skipped.append(data["name"])
                    continue
                session.add(Mood(**data, is_active=True))
                created.append(data["name"])
            await session.commit()
        logger.info(
            "moods seeded",
            extra={"extra_fields": {"created": len(created), "skipped": len(skipped)}},
        )
        return {"created": created, "skipped": skipped}

    # -- user moods ------------------------------------------------------
    async def create_user_mood(
        self,
        *,
        user_id: int,
        mood_id: int,
        acquisition_type: str = MoodType.DEFAULT.value,
        is_active: bool = True,
        is_selected: bool = False,
    ) -> UserMood:
        async with self._session_factory() as session:
            if await session.get(User, user_id) is None:
                raise NotFoundError(f"user {user_id} not found")
            if await session.get(Mood, mood_id) is None:
                raise NotFoundError(f"mood {mood_id} not found")
            owned = await session.scalar(
                select(UserMood.id)
                .where(UserMood.user_id == user_id)
                .where(UserMood.mood_id == mood_id)
            )
            if owned is not None:
                raise ConflictError("user already has this mood")
            if is_selected:
                await self._clear_selection(session, user_id)
            user_mood = UserMood(
                user_id=user_id,
                mood_id=mood_id,
                acquisition_type=acquisition_type,
                is_active=is_active,
                is_selected=is_selected,
            )
            session.add(user_mood)
            await session.commit()
            user_mood_id = user_mood.id
        return await self._load_user_mood(user_mood_id)

    async def _load_user_mood(self, user_mood_id: int) -> UserMood:
        async with self._session_factory() as session:
            user_mood = await session.get(UserMood, user_mood_id)
            if user_mood is None:
                raise NotFoundError(f"user mood {user_mood_id} not found")
            return user_mood

    @staticmethod
    async def _clear_selection(session: AsyncSession, user_id: int) -> None:
        await session.execute(
            update(UserMood)
            .where(UserMood.user_id == user_id)
            .where(UserMood.is_selected.is_(True))
            .values(is_selected=False)
        )

    async def get_user_mood(self, user_mood_id: int, user_id: int) -> UserMood:
        user_mood = await self._load_user_mood(user_mood_id)
        if user_mood.user_id != user_id:
            raise PermissionDeniedError("you can only view your own moods")
        return user_mood

    async def update_user_mood(
        self,
        user_mood_id: int,
        user_id: int,
        changes: Mapping[str, Any],
    ) -> UserMood:
        async with self._session_factory() as session:
            user_mood = await session.get(UserMood, user_mood_id)
            if user_mood is None:
                raise NotFoundError(f"user mood {user_mood_id} not found")
            if user_mood.user_id != user_id:
                raise PermissionDeniedError("you can only update your own moods")
            if changes.get("is_selected") is True:
                await self._clear_selection(session, user_id)
            for field, value in changes.items():
                setattr(user_mood, field, value)
            await session.commit()
        return await self._load_user_mood(user_mood_id)

    async def list_user_moods(
        self,
        user_id: int,
        *,
        page: int = 1,
        limit: int = 10,
        acquisition_type: str | None = None,
        is_active: bool | None = None,
    ) -> Page[UserMood]:
        query = select(UserMood).where(UserMood.user_id == user_id)
        if acquisition_type:
            query = query.where(UserMood.acquisition_type == acquisition_type)
        if is_active is not None:
            query = query.where(UserMood.is_active.is_(is_active))
        query = query.order_by(UserMood.acquired_at.desc(), UserMood.id.desc())
        async with self._session_factory() as session:
            return await paginate(session, query, page=page, limit=limit)

    async def assign_default_moods(self, user_id: int) -> list[UserMood]:
        """Give a new user every active default mood, selecting the first."""

        async with self._session_factory() as session:
            owned = await session.scalar(
                select(UserMood.id).where(UserMood.user_id == user_id).limit(1)
            )
            if owned is not None:
                raise ConflictError("user already has moods assigned")
            defaults = (
                await session.scalars(
                    select(Mood)
                    .where(Mood.type == MoodType.DEFAULT.value)
                    .where(Mood.is_active.is_(True))
                    .order_by(Mood.id)
                )
            ).all()
            if not defaults:
                raise NotFoundError("no default moods found")
            assigned = [
                UserMood(
                    user_id=user_id,
                    mood_id=mood.id,
                    acquisition_type=MoodType.DEFAULT.value,
                    is_active=True,
                    is_selected=index == 0,
                )
                for index, mood in enumerate(defaults)
            ]
            session.add_all(assigned)
            await session.commit()
            ids = [user_mood.id for user_mood in assigned]

        async with self._session_factory() as session:
            result = await session.scalars(
                select(UserMood).where(UserMood.id.in_(ids)).order_by(UserMood.id)
            )
            user_moods = list(result.all())
        logger.info(
            "default moods assigned",
            extra={"user": user_id, "extra_fields": {"count": len(user_moods)}},
        )
        return user_moods


__all__ = ["MoodService", "MoodType", "SEED_MOODS"]
