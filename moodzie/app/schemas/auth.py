from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field

from .users import UserModel

# bcrypt only looks at the first 72 bytes
Password = Annotated[str, Field(min_length=8, max_length=72)]


class SignupRequest(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=100)
    password: Password
    password_confirm: Password


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: Password
    password_confirm: Password


class UpdatePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=72)
    password: Password
    password_confirm: Password


class TokenResponse(BaseModel):
    ok: bool = True
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime
    refresh_expires_at: datetime


class AuthResponse(TokenResponse):
    user: UserModel
