from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..core.errors import ConflictError, NotFoundError
from ..db.models import Badge, User, UserBadge
from .pagination import Page, paginate

logger = logging.getLogger(__name__)


class BadgeService:
    """Badge catalog and awards."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def create_badge(self, data: Mapping[str, Any]) -> Badge:
        async with self._session_factory() as session:
            existing = await session.scalar(select(Badge.id).where(Badge.name == data["name"]))
            if existing is not None:
                raise ConflictError(f"badge {data['name']!r} already exists")
            badge = Badge(**data)
            session.add(badge)
            await session.commit()
            await session.refresh(badge)
            return badge

    async def get_badge(self, badge_id: int) -> Badge:
        async with self._session_factory() as session:
            badge = await session.get(Badge, badge_id)
            if badge is None:
                raise NotFoundError(f"badge {badge_id} not found")
            return badge

    async def update_badge(self, badge_id: int, changes: Mapping[str, Any]) -> Badge:
        async with self._session_factory() as session:
            badge = await session.get(Badge, badge_id)
            if badge is None:
                raise NotFoundError(f"badge {badge_id} not found")
            name = changes.get("name")
            if name and name != badge.name:
                taken = await session.scalar(select(Badge.id).where(Badge.name == name))
                if taken is not None:
                    raise ConflictError(f"badge {name!r} already exists")
            for field, value in changes.items():
                setattr(badge, field, value)
            await session.commit()
            await session.refresh(badge)
            return badge

    async def list_badges(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        category: str | None = None,
        level: int | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> Page[Badge]:
        query = select(Badge)
        if category:
            query = query.where(Badge.category == category)
        if level is not None:
            query = query.where(Badge.level == level)
        if is_active is not None:
            query = query.where(Badge.is_active.is_(is_active))
        if search:
            query = query.where(Badge.name.ilike(f"%{search}%"))
        query = query.order_by(Badge.created_at.desc(), Badge.id.desc())
        async with self._session_factory() as session:
            return await paginate(session, query, page=page, limit=limit)

    async def award_badge(self, *, user_id: int, badge_id: int) -> UserBadge:
        async with self._session_factory() as session:
            badge = await session.scalar(
                select(Badge).where(Badge.id == badge_id).where(Badge.is_active.is_(True))
            )
            if badge is None:
                raise NotFoundError(f"badge {badge_id} not found or inactive")
            if await session.get(User, user_id) is None:
                raise NotFoundError(f"user {user_id} not found")
            owned = await session.scalar(
                select(UserBadge.id)
                .where(UserBadge.user_id == user_id)
                .where(UserBadge.badge_id == badge_id)
            )
            if owned is not None:
                raise ConflictError("user already has this badge")
            user_badge = UserBadge(user_id=user_id, badge_id=badge_id, badge=badge)
            session.add(user_badge)
            await session.commit()
        logger.info(
            "badge awarded",
            extra={"user": user_id, "extra_fields": {"badge_id": badge_id}},
        )
        return user_badge

    async def user_badges(self, user_id: int) -> list[UserBadge]:
        async with self._session_factory() as session:
            result = await session.scalars(
                select(UserBadge)
                .where(UserBadge.user_id == user_id)
                .order_by(UserBadge.awarded_at.desc(), UserBadge.id.desc())
            )
            return list(result.all())


__all__ = ["BadgeService"]
