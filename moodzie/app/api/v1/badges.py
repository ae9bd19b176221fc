from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ...core.security import (
    SESSION_COOKIE,
    is_admin_request,
    require_admin_token,
    resolve_authenticated_user,
)
from ...metrics import USER_API_COUNTER
from ...schemas.badges import (
    BadgeAward,
    BadgeCreate,
    BadgeListResponse,
    BadgeModel,
    BadgeUpdate,
    UserBadgeListResponse,
    UserBadgeModel,
)
from ...schemas.common import PaginationMeta
from ...services.badges import BadgeService
from .deps import get_badge_service

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=BadgeListResponse)
async def list_badges(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    category: str | None = Query(default=None, max_length=50),
    level: int | None = Query(default=None, ge=1),
    is_active: bool | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeListResponse:
    result = await badges.list_badges(
        page=page,
        limit=limit,
        category=category,
        level=level,
        is_active=is_active,
        search=search,
    )
    return BadgeListResponse(
        items=[BadgeModel.model_validate(b, from_attributes=True) for b in result.items],
        meta=PaginationMeta.from_page(result),
    )


@router.post(
    "",
    response_model=BadgeModel,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_token)],
)
async def create_badge(
    payload: BadgeCreate,
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeModel:
    badge = await badges.create_badge(payload.model_dump())
    return BadgeModel.model_validate(badge, from_attributes=True)


@router.post(
    "/award",
    response_model=UserBadgeModel,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_token)],
)
async def award_badge(
    payload: BadgeAward,
    badges: BadgeService = Depends(get_badge_service),
) -> UserBadgeModel:
    user_badge = await badges.award_badge(user_id=payload.user_id, badge_id=payload.badge_id)
    return UserBadgeModel.model_validate(user_badge, from_attributes=True)


@router.get("/me", response_model=UserBadgeListResponse)
async def my_badges(
    badges: BadgeService = Depends(get_badge_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserBadgeListResponse:
    items = await badges.user_badges(user_id)
    USER_API_COUNTER.labels(endpoint="badges_me").inc()
    return UserBadgeListResponse(
        items=[UserBadgeModel.model_validate(b, from_attributes=True) for b in items]
    )


@router.get("/user/{user_id}", response_model=UserBadgeListResponse)
async def user_badges(
    user_id: int,
    request: Request,
    badges: BadgeService = Depends(get_badge_service),
) -> UserBadgeListResponse:
    if not is_admin_request(request):
        caller_id = await resolve_authenticated_user(
            request,
            request.headers.get("Authorization"),
            request.cookies.get(SESSION_COOKIE),
        )
        if caller_id != user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")
    items = await badges.user_badges(user_id)
    return UserBadgeListResponse(
        items=[UserBadgeModel.model_validate(b, from_attributes=True) for b in items]
    )


@router.get("/{badge_id}", response_model=BadgeModel)
async def read_badge(
    badge_id: int,
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeModel:
    badge = await badges.get_badge(badge_id)
    return BadgeModel.model_validate(badge, from_attributes=True)


@router.patch(
    "/{badge_id}",
    response_model=BadgeModel,
    dependencies=[Depends(require_admin_token)],
)
async def update_badge(
    badge_id: int,
    payload: BadgeUpdate,
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeModel:
    badge = await badges.update_badge(
        badge_id,
        payload.model_dump(exclude_unset=True, exclude_none=True),
    )
    return BadgeModel.model_validate(badge, from_attributes=True)
