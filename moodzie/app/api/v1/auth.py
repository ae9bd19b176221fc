from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from ...core.security import SESSION_COOKIE, request_session_token, resolve_authenticated_user
from ...metrics import USER_API_COUNTER
from ...schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UpdatePasswordRequest,
)
from ...schemas.common import MessageResponse
from ...schemas.users import UserModel, UserUpdate
from ...services.users import TokenPair, UserService
from .deps import get_user_service, throttle

router = APIRouter(prefix="/auth", tags=["auth"])
users_router = APIRouter(prefix="/users", tags=["users"])


def _token_response(tokens: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_at=tokens.access_expires_at,
        refresh_expires_at=tokens.refresh_expires_at,
    )


def _set_session_cookie(response: Response, request: Request, tokens: TokenPair) -> None:
    settings = request.app.state.settings
    response.set_cookie(
        SESSION_COOKIE,
        tokens.access_token,
        max_age=settings.access_token_ttl_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(throttle("auth"))],
)
async def signup(
    payload: SignupRequest,
    request: Request,
    response: Response,
    users: UserService = Depends(get_user_service),
) -> AuthResponse:
    user, tokens = await users.signup(
        email=payload.email,
        full_name=payload.full_name,
        password=payload.password,
        password_confirm=payload.password_confirm,
    )
    _set_session_cookie(response, request, tokens)
    USER_API_COUNTER.labels(endpoint="auth_signup").inc()
    return AuthResponse(
        **_token_response(tokens).model_dump(),
        user=UserModel.model_validate(user, from_attributes=True),
    )


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(throttle("auth"))])
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    users: UserService = Depends(get_user_service),
) -> AuthResponse:
    user, tokens = await users.login(email=payload.email, password=payload.password)
    _set_session_cookie(response, request, tokens)
    USER_API_COUNTER.labels(endpoint="auth_login").inc()
    return AuthResponse(
        **_token_response(tokens).model_dump(),
        user=UserModel.model_validate(user, from_attributes=True),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    users: UserService = Depends(get_user_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MessageResponse:
    token = request_session_token(request)
    if token:
        await users.logout(token)
    response.delete_cookie(SESSION_COOKIE)
    USER_API_COUNTER.labels(endpoint="auth_logout").inc()
    return MessageResponse(message="logged out")


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    payload: RefreshRequest,
    request: Request,
    response: Response,
    users: UserService = Depends(get_user_service),
) -> TokenResponse:
    tokens = await users.refresh(payload.refresh_token)
    _set_session_cookie(response, request, tokens)
    USER_API_COUNTER.labels(endpoint="auth_refresh").inc()
    return _token_response(tokens)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(throttle("auth"))],
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    await users.forgot_password(payload.email)
    USER_API_COUNTER.labels(endpoint="auth_forgot_password").inc()
    return MessageResponse(message="password reset token issued")


@router.get("/verify/{token}", response_model=MessageResponse)
async def verify_reset_token(
    token: str,
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    await users.verify_reset_token(token)
    return MessageResponse(message="token is valid")


@router.patch("/reset-password/{token}", response_model=TokenResponse)
async def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    request: Request,
    response: Response,
    users: UserService = Depends(get_user_service),
) -> TokenResponse:
    tokens = await users.reset_password(
        token,
        password=payload.password,
        password_confirm=payload.password_confirm,
    )
    _set_session_cookie(response, request, tokens)
    USER_API_COUNTER.labels(endpoint="auth_reset_password").inc()
    return _token_response(tokens)


@router.patch("/update-my-password", response_model=TokenResponse)
async def update_my_password(
    payload: UpdatePasswordRequest,
    request: Request,
    response: Response,
    users: UserService = Depends(get_user_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> TokenResponse:
    tokens = await users.update_password(
        user_id,
        current_password=payload.current_password,
        password=payload.password,
        password_confirm=payload.password_confirm,
    )
    _set_session_cookie(response, request, tokens)
    USER_API_COUNTER.labels(endpoint="auth_update_password").inc()
    return _token_response(tokens)


@router.delete("/delete-me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    users: UserService = Depends(get_user_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> Response:
    await users.delete_user(user_id)
    USER_API_COUNTER.labels(endpoint="auth_delete_me").inc()
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(SESSION_COOKIE)
    return response


@users_router.get("/me", response_model=UserModel)
async def read_me(
    users: UserService = Depends(get_user_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserModel:
    user = await users.get_user(user_id)
    USER_API_COUNTER.labels(endpoint="users_me_get").inc()
    return UserModel.model_validate(user, from_attributes=True)


@users_router.patch("/me", response_model=UserModel)
async def update_me(
    payload: UserUpdate,
    users: UserService = Depends(get_user_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserModel:
    user = await users.update_user(user_id, full_name=payload.full_name)
    USER_API_COUNTER.labels(endpoint="users_me_patch").inc()
    return UserModel.model_validate(user, from_attributes=True)
