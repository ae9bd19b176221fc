from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ...core.security import require_admin_token
from ...schemas.activities import (
    ActivityCategoryCreate,
    ActivityCategoryListResponse,
    ActivityCategoryModel,
    ActivityCategoryTree,
    ActivityCategoryUpdate,
    ActivitySeedResponse,
    ActivitySubCategoryBulkCreate,
    ActivitySubCategoryCreate,
    ActivitySubCategoryListResponse,
    ActivitySubCategoryModel,
    ActivitySubCategoryUpdate,
)
from ...schemas.common import PaginationMeta
from ...services.activities import ActivityService
from .deps import get_activity_service

router = APIRouter(prefix="/activities", tags=["activities"])
admin_only = [Depends(require_admin_token)]


@router.get("/categories", response_model=ActivityCategoryListResponse)
async def list_categories(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = Query(default=None, max_length=50),
    is_active: bool | None = Query(default=None),
    activities: ActivityService = Depends(get_activity_service),
) -> ActivityCategoryListResponse:
    result = await activities.list_categories(
        page=page, limit=limit, search=search, is_active=is_active
    )
    return ActivityCategoryListResponse(
        items=[ActivityCategoryModel.model_validate(c, from_attributes=True) for c in result.items],
        meta=PaginationMeta.from_page(result),
    )


@router.get("/categories/with-sub-categories", response_model=list[ActivityCategoryTree])
async def list_category_tree(
    is_active: bool | None = Query(default=None),
    activities: ActivityService = Depends(get_activity_service),
) -> list[ActivityCategoryTree]:
    categories = await activities.categories_with_sub_categories(is_active=is_active)
    return [ActivityCategoryTree.model_validate(c, from_attributes=True) for c in categories]


@router.post(
    "/categories",
    response_model=ActivityCategoryModel,
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only,
)
async def create_category(
    payload: ActivityCategoryCreate,
    activities: ActivityService = Depends(get_activity_service),
) -> ActivityCategoryModel:
    category = await activities.create_category(payload.model_dump())
    return ActivityCategoryModel.model_validate(category, from_attributes=True)


@router.get("/categories/{category_id}", response_model=ActivityCategoryModel)
async def read_category(
    category_id: int,
    activities: ActivityService = Depends(get_activity_service),
) -> ActivityCategoryModel:
    category = await activities.get_category(category_id)
    return ActivityCategoryModel.model_validate(category, from_attributes=True)


@router.patch(
    "/categories/{category_id}",
    response_model=ActivityCategoryModel,
    dependencies=admin_only,
)
async def update_category(
    category_id: int,
    payload: ActivityCategoryUpdate,
    activities: ActivityService = Depends(get_activity_service),
) -> ActivityCategoryModel:
    category = await activities.update_category(
        category_id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    return ActivityCategoryModel.model_validate(category, from_attributes=True)


@router.get(
    "/categories/{category_id}/sub-categories",
    response_model=list[ActivitySubCategoryModel],
)
async def list_category_sub_categories(
    category_id: int,
    is_active: bool | None = Query(default=None),
    activities: ActivityService = Depends(get_activity_service),
) -> list[ActivitySubCategoryModel]:
    sub_categories = await activities.sub_categories_for(category_id, is_active=is_active)
    return [
        ActivitySubCategoryModel.model_validate(s, from_attributes=True) for s in sub_categories
    ]


@router.get("/sub-categories", response_model=ActivitySubCategoryListResponse)
async def list_sub_categories(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    category_id: int | None = Query(default=None),
    search: str | None = Query(default=None, max_length=50),
    is_active: bool | None = Query(default=None),
    activities: ActivityService = Depends(get_activity_service),
) -> ActivitySubCategoryListResponse:
    result = await activities.list_sub_categories(
        page=page,
        limit=limit,
        category_id=category_id,
        search=search,
        is_active=is_active,
    )
    return ActivitySubCategoryListResponse(
        items=[
            ActivitySubCategoryModel.model_validate(s, from_attributes=True) for s in result.items
        ],
        meta=PaginationMeta.from_page(result),
    )


@router.post(
    "/sub-categories",
    response_model=ActivitySubCategoryModel,
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only,
)
async def create_sub_category(
    payload: ActivitySubCategoryCreate,
    activities: ActivityService = Depends(get_activity_service),
) -> ActivitySubCategoryModel:
    sub_category = await activities.create_sub_category(payload.model_dump())
    return ActivitySubCategoryModel.model_validate(sub_category, from_attributes=True)


@router.post(
    "/sub-categories/bulk",
    response_model=list[ActivitySubCategoryModel],
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only,
)
async def create_sub_categories_bulk(
    payload: ActivitySubCategoryBulkCreate,
    activities: ActivityService = Depends(get_activity_service),
) -> list[ActivitySubCategoryModel]:
    created = await activities.create_sub_categories(
        [item.model_dump() for item in payload.sub_categories]
    )
    return [ActivitySubCategoryModel.model_validate(s, from_attributes=True) for s in created]


@router.get("/sub-categories/{sub_category_id}", response_model=ActivitySubCategoryModel)
async def read_sub_category(
    sub_category_id: int,
    activities: ActivityService = Depends(get_activity_service),
) -> ActivitySubCategoryModel:
    sub_category = await activities.get_sub_category(sub_category_id)
    return ActivitySubCategoryModel.model_validate(sub_category, from_attributes=True)


@router.patch(
    "/sub-categories/{sub_category_id}",
    response_model=ActivitySubCategoryModel,
    dependencies=admin_only,
)
async def update_sub_category(
    sub_category_id: int,
    payload: ActivitySubCategoryUpdate,
    activities: ActivityService = Depends(get_activity_service),
) -> ActivitySubCategoryModel:
    sub_category = await activities.update_sub_category(
        sub_category_id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    return ActivitySubCategoryModel.model_validate(sub_category, from_attributes=True)


@router.post("/seed", response_model=ActivitySeedResponse, dependencies=admin_only)
async def seed_activities(
    overwrite: bool = Query(default=False),
    activities: ActivityService = Depends(get_activity_service),
) -> ActivitySeedResponse:
    result = await activities.seed_activities(overwrite=overwrite)
    return ActivitySeedResponse(**result)
