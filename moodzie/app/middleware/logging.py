from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..metrics import REQUEST_COUNT, REQUEST_ERRORS, REQUEST_LATENCY


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request as structured JSON and record Prometheus metrics."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._logger = logging.getLogger("moodzie.request")
        if self._logger.level == logging.NOTSET:
            self._logger.setLevel(logging.INFO)

    async def dispatch(  # type: ignore[override]
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            path_template = _resolve_path_template(request)
            _observe_metrics(request.method, path_template, 500, duration_ms)
            self._logger.error(
                "request error",
                extra=_log_fields(request, request_id, path_template, 500, duration_ms),
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        path_template = _resolve_path_template(request)
        status = response.status_code
        _observe_metrics(request.method, path_template, status, duration_ms)
        level = logging.WARNING if status >= 500 else logging.INFO
        self._logger.log(
            level,
            "request complete",
            extra=_log_fields(request, request_id, path_template, status, duration_ms),
        )
        response.headers["X-Request-ID"] = request_id
        return response


def _log_fields(
    request: Request,
    request_id: str,
    path: str,
    status: int,
    duration_ms: float,
) -> dict[str, object]:
    return {
        "request_id": request_id,
        "path": path,
        "method": request.method,
        "status": status,
        "duration_ms": round(duration_ms, 3),
        "user": getattr(request.state, "current_user_id", None),
    }


def _resolve_path_template(request: Request) -> str:
    route = request.scope.get("route")
    if route is not None and hasattr(route, "path"):
        return str(route.path)
    return request.url.path


def _observe_metrics(method: str, path: str, status: int, duration_ms: float) -> None:
    status_str = str(status)
    REQUEST_COUNT.labels(method=method, path=path, status=status_str).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
    if status >= 500:
        REQUEST_ERRORS.labels(method=method, path=path, status=status_str).inc()
