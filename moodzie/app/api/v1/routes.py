from __future__ import annotations

from fastapi import APIRouter

from . import activities, auth, badges, mood_logs, moods

router = APIRouter(prefix="/api/v1")
router.include_router(auth.router)
router.include_router(auth.users_router)
router.include_router(moods.router)
router.include_router(activities.router)
router.include_router(badges.router)
router.include_router(mood_logs.router)

__all__ = ["router"]
