from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from moodzie.db import create_engine, create_session_factory, init_db

from .api.v1.routes import router as v1_router
from .core.config import Settings, get_settings
from .core.errors import ServiceError
from .core.logging import configure_logging
from .middleware import RequestLoggingMiddleware
from .services.activities import ActivityService
from .services.badges import BadgeService
from .services.mood_logs import MoodLogService
from .services.moods import MoodService
from .services.ratelimit import RateLimiter
from .services.users import UserService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure application services during startup and ensure graceful shutdown."""

    configure_logging()
    settings: Settings = get_settings()

    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, settings.version, settings.database_url)

    app.state.settings = settings
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    app.state.user_service = UserService(
        session_factory,
        access_ttl=timedelta(minutes=settings.access_token_ttl_minutes),
        refresh_ttl=timedelta(days=settings.refresh_token_ttl_days),
        reset_ttl=timedelta(minutes=settings.password_reset_ttl_minutes),
    )
    app.state.mood_service = MoodService(session_factory)
    app.state.activity_service = ActivityService(session_factory)
    app.state.badge_service = BadgeService(session_factory)
    app.state.mood_log_service = MoodLogService(session_factory, tz=settings.tzinfo)
    app.state.rate_limiter = RateLimiter(
        limit=settings.throttle_limit,
        window_seconds=settings.throttle_ttl_seconds,
    )

    logger.info(
        "Starting Moodzie %s",
        settings.version,
        extra={"extra_fields": {"timezone": settings.timezone}},
    )

    try:
        yield
    finally:
        await app.state.db_engine.dispose()


app = FastAPI(title="Moodzie", version=get_settings().version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(v1_router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info(
        "request rejected",
        extra={
            "path": request.url.path,
            "status": exc.status_code,
            "extra_fields": {"reason": exc.message},
        },
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/healthz")
async def healthz(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "version": settings.version}


@app.get("/readyz")
async def readyz(request: Request) -> dict[str, Any]:
    users: UserService = request.app.state.user_service

    db_ok = True
    db_detail = "ok"
    try:
        await users.healthcheck()
    except Exception as exc:  # pragma: no cover - defensive logging
        logger.exception("Database readiness check failed")
        db_ok = False
        db_detail = str(exc)

    return {
        "ready": db_ok,
        "db": {"ok": db_ok, "detail": db_detail},
    }


@app.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
