from __future__ import annotations

import asyncio
from collections.abc import Callable, Generator
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from moodzie.app.core.config import get_settings
from moodzie.db import create_engine, create_session_factory, init_db


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def test_client(monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    monkeypatch.setenv("VERSION", "0.1.0-test")
    monkeypatch.setenv("ADMIN_TOKEN", "test-admin")
    monkeypatch.setenv("APP_TIMEZONE", "UTC")
    monkeypatch.delenv("THROTTLE_LIMIT", raising=False)

    db_path = Path("data") / f"test_{uuid4().hex}.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    get_settings.cache_clear()

    from moodzie.app.main import app

    try:
        with TestClient(app) as client:
            yield client
    finally:
        get_settings.cache_clear()
        db_path.unlink(missing_ok=True)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"X-Moodzie-Admin-Token": "test-admin"}


@pytest.fixture()
def make_user(test_client: TestClient) -> Callable[..., dict[str, str]]:
    """Sign up an account and return bearer headers for it."""

    def _make_user(email: str = "ada@example.com") -> dict[str, str]:
        response = test_client.post(
            "/api/v1/auth/signup",
            json={
                "email": email,
                "full_name": "Ada Lovelace",
                "password": "correct-horse",
                "password_confirm": "correct-horse",
            },
        )
        assert response.status_code == 201, response.text
        # drop the session cookie so only the returned headers authenticate
        test_client.cookies.clear()
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _make_user


@pytest.fixture()
def auth_headers(make_user: Callable[..., dict[str, str]]) -> dict[str, str]:
    return make_user()


@pytest.fixture()
def temp_session_factory(tmp_path: Path):
    db_path = tmp_path / f"unit_{uuid4().hex}.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_engine(database_url)
    session_factory = create_session_factory(engine)

    async def _prepare() -> None:
        await init_db(engine, session_factory, "test", database_url)
        await engine.dispose()

    asyncio.run(_prepare())
    try:
        yield session_factory
    finally:
        asyncio.run(engine.dispose())
