from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ...core.security import require_admin_token, resolve_authenticated_user
from ...metrics import USER_API_COUNTER
from ...schemas.common import PaginationMeta
from ...schemas.moods import (
    MoodCreate,
    MoodListResponse,
    MoodModel,
    MoodSeedResponse,
    MoodUpdate,
    UserMoodCreate,
    UserMoodListResponse,
    UserMoodModel,
    UserMoodUpdate,
)
from ...services.moods import MoodService, MoodType
from .deps import get_mood_service

router = APIRouter(prefix="/moods", tags=["moods"])


# user-mood routes come first so "/user-moods" is not read as a mood id
@router.get("/user-moods", response_model=UserMoodListResponse)
async def list_user_moods(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    type: MoodType | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    moods: MoodService = Depends(get_mood_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserMoodListResponse:
    result = await moods.list_user_moods(
        user_id,
        page=page,
        limit=limit,
        acquisition_type=type.value if type else None,
        is_active=is_active,
    )
    USER_API_COUNTER.labels(endpoint="user_moods_get").inc()
    return UserMoodListResponse(
        items=[UserMoodModel.model_validate(item, from_attributes=True) for item in result.items],
        meta=PaginationMeta.from_page(result),
    )


@router.post(
    "/user-moods",
    response_model=UserMoodModel,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_token)],
)
async def create_user_mood(
    payload: UserMoodCreate,
    moods: MoodService = Depends(get_mood_service),
) -> UserMoodModel:
    user_mood = await moods.create_user_mood(**payload.model_dump())
    return UserMoodModel.model_validate(user_mood, from_attributes=True)


@router.post(
    "/user-moods/assign-defaults",
    response_model=list[UserMoodModel],
    status_code=status.HTTP_201_CREATED,
)
async def assign_default_moods(
    moods: MoodService = Depends(get_mood_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> list[UserMoodModel]:
    assigned = await moods.assign_default_moods(user_id)
    USER_API_COUNTER.labels(endpoint="user_moods_assign_defaults").inc()
    return [UserMoodModel.model_validate(item, from_attributes=True) for item in assigned]


@router.get("/user-moods/{user_mood_id}", response_model=UserMoodModel)
async def read_user_mood(
    user_mood_id: int,
    moods: MoodService = Depends(get_mood_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserMoodModel:
    user_mood = await moods.get_user_mood(user_mood_id, user_id)
    USER_API_COUNTER.labels(endpoint="user_moods_get_one").inc()
    return UserMoodModel.model_validate(user_mood, from_attributes=True)


@router.patch("/user-moods/{user_mood_id}", response_model=UserMoodModel)
async def update_user_mood(
    user_mood_id: int,
    payload: UserMoodUpdate,
    moods: MoodService = Depends(get_mood_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserMoodModel:
    user_mood = await moods.update_user_mood(
        user_mood_id,
        user_id,
        payload.model_dump(exclude_unset=True, exclude_none=True),
    )
    USER_API_COUNTER.labels(endpoint="user_moods_patch").inc()
    return UserMoodModel.model_validate(user_mood, from_attributes=True)


@router.get("", response_model=MoodListResponse)
async def list_moods(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    type: MoodType | None = Query(default=None),
    search: str | None = Query(default=None, max_length=50),
    moods: MoodService = Depends(get_mood_service),
) -> MoodListResponse:
    result = await moods.list_moods(
        page=page,
        limit=limit,
        mood_type=type.value if type else None,
        search=search,
    )
    return MoodListResponse(
        items=[MoodModel.model_validate(item, from_attributes=True) for item in result.items],
        meta=PaginationMeta.from_page(result),
    )


@router.post(
    "",
    response_model=MoodModel,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_token)],
)
async def create_mood(
    payload: MoodCreate,
    moods: MoodService = Depends(get_mood_service),
) -> MoodModel:
    mood = await moods.create_mood(payload.model_dump())
    return MoodModel.model_validate(mood, from_attributes=True)


@router.post(
    "/seed",
    response_model=MoodSeedResponse,
    dependencies=[Depends(require_admin_token)],
)
async def seed_moods(moods: MoodService = Depends(get_mood_service)) -> MoodSeedResponse:
    result = await moods.seed_moods()
    return MoodSeedResponse(created=result["created"], skipped=result["skipped"])


@router.get("/{mood_id}", response_model=MoodModel)
async def read_mood(
    mood_id: int,
    moods: MoodService = Depends(get_mood_service),
) -> MoodModel:
    mood = await moods.get_mood(mood_id)
    return MoodModel.model_validate(mood, from_attributes=True)


@router.patch(
    "/{mood_id}",
    response_model=MoodModel,
    dependencies=[Depends(require_admin_token)],
)
async def update_mood(
    mood_id: int,
    payload: MoodUpdate,
    moods: MoodService = Depends(get_mood_service),
) -> MoodModel:
    mood = await moods.update_mood(
        mood_id,
        payload.model_dump(exclude_unset=True, exclude_none=True),
    )
    return MoodModel.model_validate(mood, from_attributes=True)
