from __future__ import annotations

from pydantic import BaseModel

from ..services.pagination import Page


class PaginationMeta(BaseModel):
    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page) -> PaginationMeta:
        return cls(
            current_page=page.page,
            items_per_page=page.limit,
            total_items=page.total,
            total_pages=page.total_pages,
        )


class MessageResponse(BaseModel):
    ok: bool = True
    message: str
