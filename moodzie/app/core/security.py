from __future__ import annotations

import hashlib
import hmac
from typing import TYPE_CHECKING

import bcrypt
from fastapi import Cookie, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from ..services.users import UserService

SESSION_COOKIE = "moodzie_session"
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except ValueError:
        return False


def token_matches(given: str | None, expected: str) -> bool:
    """Constant-time comparison of a presented secret with the configured one."""

    if not given:
        return False
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def hash_token(token: str) -> str:
    """Digest stored for one-time tokens so the raw value never hits the DB."""

    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


def request_session_token(request: Request) -> str | None:
    return _bearer_token(request.headers.get("Authorization")) or request.cookies.get(
        SESSION_COOKIE
    )


async def resolve_authenticated_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
) -> int:
    users: UserService = request.app.state.user_service
    token_value = _bearer_token(authorization) or session_token
    if not token_value:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="authentication required",
        )

    user = await users.get_user_by_session(token_value)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="authentication required",
        )

    request.state.current_user_id = user.id
    return user.id


def is_admin_request(request: Request) -> bool:
    expected = getattr(request.app.state.settings, "admin_api_token", None)
    if not expected:
        return False
    token_value = _bearer_token(request.headers.get("Authorization"))
    if token_value is None:
        token_value = (request.headers.get("X-Moodzie-Admin-Token") or "").strip()
    return token_matches(token_value, expected)


async def require_admin_token(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    admin_header: str | None = Header(default=None, alias="X-Moodzie-Admin-Token"),
) -> None:
    settings = request.app.state.settings
    expected = getattr(settings, "admin_api_token", None)
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="admin disabled",
        )
    token_value = _bearer_token(authorization)
    if token_value is None and admin_header:
        token_value = admin_header.strip()
    if not token_matches(token_value, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="admin token invalid")
