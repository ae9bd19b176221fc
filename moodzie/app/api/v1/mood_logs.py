from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...core.security import resolve_authenticated_user
from ...insights.periods import PeriodKind
from ...metrics import USER_API_COUNTER
from ...schemas.common import PaginationMeta
from ...schemas.mood_logs import (
    MoodCountModel,
    MoodLogCreate,
    MoodLogListResponse,
    MoodLogModel,
    MoodLogQuery,
    MoodLogUpdate,
    MoodsInfoResponse,
    MoodStatsResponse,
    MoodSummaryResponse,
    PeriodBucketModel,
    StreakModel,
    TimeRange,
)
from ...services.mood_logs import MoodLogService
from .deps import get_mood_log_service, throttle

router = APIRouter(prefix="/mood-logs", tags=["mood-logs"])


@router.post(
    "",
    response_model=MoodLogModel,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(throttle("mood_logs"))],
)
async def create_mood_log(
    payload: MoodLogCreate,
    mood_logs: MoodLogService = Depends(get_mood_log_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MoodLogModel:
    log = await mood_logs.create_log(
        user_id,
        mood_id=payload.mood_id,
        notes=payload.notes,
        category_ids=payload.category_ids,
        sub_category_ids=payload.sub_category_ids,
        mood_date=payload.mood_date,
        is_public=payload.is_public,
    )
    USER_API_COUNTER.labels(endpoint="mood_logs_post").inc()
    return MoodLogModel.model_validate(log, from_attributes=True)


@router.get("", response_model=MoodLogListResponse)
async def list_mood_logs(
    query: MoodLogQuery = Depends(),
    mood_logs: MoodLogService = Depends(get_mood_log_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MoodLogListResponse:
    result = await mood_logs.list_logs(
        user_id,
        page=query.page,
        limit=query.limit,
        start_date=query.start_date,
        end_date=query.end_date,
        user_mood_id=query.user_mood_id,
        category_id=query.category_id,
        sub_category_id=query.sub_category_id,
        is_public=query.is_public,
        sort_order=query.sort_order.value,
    )
    USER_API_COUNTER.labels(endpoint="mood_logs_get").inc()
    return MoodLogListResponse(
        items=[MoodLogModel.model_validate(log, from_attributes=True) for log in result.items],
        meta=PaginationMeta.from_page(result),
    )


@router.get("/moods-info", response_model=MoodsInfoResponse)
async def moods_info(
    mood_logs: MoodLogService = Depends(get_mood_log_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MoodsInfoResponse:
    info = await mood_logs.moods_info(user_id)
    USER_API_COUNTER.labels(endpoint="mood_logs_moods_info").inc()
    return MoodsInfoResponse.model_validate(info)


@router.get("/streak", response_model=StreakModel)
async def read_streak(
    mood_logs: MoodLogService = Depends(get_mood_log_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> StreakModel:
    state = await mood_logs.get_streak(user_id)
    USER_API_COUNTER.labels(endpoint="mood_logs_streak").inc()
    return StreakModel.model_validate(state, from_attributes=True)


@router.get("/stats/{period}", response_model=MoodStatsResponse)
async def mood_stats(
    period: PeriodKind,
    mood_logs: MoodLogService = Depends(get_mood_log_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MoodStatsResponse:
    _, buckets = await mood_logs.stats(user_id, period)
    USER_API_COUNTER.labels(endpoint="mood_logs_stats").inc()
    return MoodStatsResponse(
        period=period,
        data=[PeriodBucketModel.model_validate(b, from_attributes=True) for b in buckets],
        total=sum(bucket.count for bucket in buckets),
    )


@router.get("/summary/{period}", response_model=MoodSummaryResponse)
async def mood_summary(
    period: PeriodKind,
    mood_logs: MoodLogService = Depends(get_mood_log_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MoodSummaryResponse:
    window, summary = await mood_logs.summary(user_id, period)
    USER_API_COUNTER.labels(endpoint="mood_logs_summary").inc()
    return MoodSummaryResponse(
        period=period,
        time_range=TimeRange(start=window.start, end=window.end),
        total_logs=summary.total_logs,
        mood_counts={
            name: MoodCountModel.model_validate(stat, from_attributes=True)
            for name, stat in summary.mood_counts.items()
        },
        categories=summary.categories,
    )


@router.get("/{log_id}", response_model=MoodLogModel)
async def read_mood_log(
    log_id: int,
    mood_logs: MoodLogService = Depends(get_mood_log_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MoodLogModel:
    log = await mood_logs.get_log(log_id, user_id)
    USER_API_COUNTER.labels(endpoint="mood_logs_get_one").inc()
    return MoodLogModel.model_validate(log, from_attributes=True)


@router.patch("/{log_id}", response_model=MoodLogModel)
async def update_mood_log(
    log_id: int,
    payload: MoodLogUpdate,
    mood_logs: MoodLogService = Depends(get_mood_log_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MoodLogModel:
    log = await mood_logs.update_log(log_id, user_id, payload.model_dump(exclude_unset=True))
    USER_API_COUNTER.labels(endpoint="mood_logs_patch").inc()
    return MoodLogModel.model_validate(log, from_attributes=True)
