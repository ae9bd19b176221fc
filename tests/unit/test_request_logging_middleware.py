from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.testclient import TestClient

from moodzie.app.metrics import REQUEST_COUNT, REQUEST_ERRORS
from moodzie.app.middleware import RequestLoggingMiddleware


def _metric_value(counter, **labels) -> float:
    for family in counter.collect():
        for sample in family.samples:
            if not sample.name.endswith("_total"):
                continue
            if all(sample.labels.get(key) == value for key, value in labels.items()):
                return sample.value
    return 0.0


def _request_records(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [record for record in caplog.records if record.name == "moodzie.request"]


@pytest.fixture()
def app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/mood-logs/{log_id}")
    async def read_log(log_id: int, request: Request) -> dict[str, int]:
        request.state.current_user_id = 42
        return {"id": log_id}

    @app.get("/unavailable")
    async def unavailable() -> JSONResponse:
        return JSONResponse({"detail": "database unavailable"}, status_code=503)

    @app.get("/boom")
    async def boom() -> dict[str, str]:
        raise RuntimeError("boom")

    return app


def test_success_logs_template_user_and_generated_id(
    app: FastAPI, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="moodzie.request")
    labels = {"method": "GET", "path": "/mood-logs/{log_id}", "status": "200"}
    before = _metric_value(REQUEST_COUNT, **labels)

    with TestClient(app) as client:
        response = client.get("/mood-logs/7")

    assert response.status_code == 200
    request_id = response.headers.get("X-Request-ID")
    assert request_id
    assert _metric_value(REQUEST_COUNT, **labels) == pytest.approx(before + 1.0)

    [record] = _request_records(caplog)
    assert record.levelno == logging.INFO
    assert record.request_id == request_id
    assert record.path == "/mood-logs/{log_id}"
    assert record.status == 200
    assert record.user == 42


def test_incoming_request_id_is_passed_through(
    app: FastAPI, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="moodzie.request")

    with TestClient(app) as client:
        response = client.get("/mood-logs/1", headers={"X-Request-ID": "trace-abc"})

    assert response.headers["X-Request-ID"] == "trace-abc"
    [record] = _request_records(caplog)
    assert record.request_id == "trace-abc"


def test_anonymous_request_has_no_user(app: FastAPI, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="moodzie.request")

    with TestClient(app) as client:
        client.get("/unavailable")

    [record] = _request_records(caplog)
    assert record.user is None


def test_server_error_response_logs_warning_and_counts_error(
    app: FastAPI, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="moodzie.request")
    labels = {"method": "GET", "path": "/unavailable", "status": "503"}
    before_errors = _metric_value(REQUEST_ERRORS, **labels)

    with TestClient(app) as client:
        response = client.get("/unavailable")

    assert response.status_code == 503
    assert response.headers.get("X-Request-ID")
    assert _metric_value(REQUEST_ERRORS, **labels) == pytest.approx(before_errors + 1.0)

    [record] = _request_records(caplog)
    assert record.levelno == logging.WARNING
    assert record.status == 503


def test_unhandled_exception_logs_error_and_reraises(
    app: FastAPI, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="moodzie.request")
    labels = {"method": "GET", "path": "/boom", "status": "500"}
    before_count = _metric_value(REQUEST_COUNT, **labels)
    before_errors = _metric_value(REQUEST_ERRORS, **labels)

    with TestClient(app) as client:
        with pytest.raises(RuntimeError):
            client.get("/boom", headers={"X-Request-ID": "trace-boom"})

    assert _metric_value(REQUEST_COUNT, **labels) == pytest.approx(before_count + 1.0)
    assert _metric_value(REQUEST_ERRORS, **labels) == pytest.approx(before_errors + 1.0)

    [record] = _request_records(caplog)
    assert record.levelno == logging.ERROR
    assert record.request_id == "trace-boom"
    assert record.status == 500
    assert record.exc_info is not None
