from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import HTTPException, Request, status

from ...core.security import request_session_token
from ...services.activities import ActivityService
from ...services.badges import BadgeService
from ...services.mood_logs import MoodLogService
from ...services.moods import MoodService
from ...services.ratelimit import RateLimiter
from ...services.users import UserService


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_mood_service(request: Request) -> MoodService:
    return request.app.state.mood_service


def get_activity_service(request: Request) -> ActivityService:
    return request.app.state.activity_service


def get_badge_service(request: Request) -> BadgeService:
    return request.app.state.badge_service


def get_mood_log_service(request: Request) -> MoodLogService:
    return request.app.state.mood_log_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def throttle(scope: str) -> Callable[[Request], Awaitable[None]]:
    """Dependency that answers 429 once a caller exceeds the configured rate."""

    async def _throttle(request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiter
        caller = request_session_token(request)
        if caller is None:
            caller = request.client.host if request.client else "anonymous"
        if not limiter.allow(f"{scope}:{caller}"):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="rate limited",
            )

    return _throttle
