from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


async def paginate(
    session: AsyncSession,
    query: Select[Any],
    *,
    page: int,
    limit: int,
) -> Page[Any]:
    """Run ``query`` for one page and count the full result set."""

    total = await session.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await session.scalars(query.offset((page - 1) * limit).limit(limit))
    return Page(items=list(result.unique()), total=int(total or 0), page=page, limit=limit)


__all__ = ["Page", "paginate"]
