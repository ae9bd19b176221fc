from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from secrets import token_urlsafe

from sqlalchemy import delete, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import (
    AuthenticationError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from ..core.security import hash_password, hash_token, verify_password
from ..db.models import SessionToken, User, utcnow

logger = logging.getLogger(__name__)

ACCESS_KIND = "access"
REFRESH_KIND = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


class UserService:
    """Accounts, credentials and session tokens."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        access_ttl: timedelta = timedelta(minutes=60),
        refresh_ttl: timedelta = timedelta(days=30),
        reset_ttl: timedelta = timedelta(minutes=10),
    ) -> None:
        self._session_factory = session_factory
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._reset_ttl = reset_ttl

    async def healthcheck(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    # -- sessions --------------------------------------------------------
    def _issue_tokens(self, session: AsyncSession, user_id: int) -> TokenPair:
        now = utcnow()
        access = SessionToken(
            user_id=user_id,
            token=token_urlsafe(32),
            kind=ACCESS_KIND,
            expires_at=now + self._access_ttl,
        )
        refresh = SessionToken(
            user_id=user_id,
            token=token_urlsafe(48),
            kind=REFRESH_KIND,
            expires_at=now + self._refresh_ttl,
        )
        session.add_all([access, refresh])
        return TokenPair(
            access_token=access.token,
            refresh_token=refresh.token,
            access_expires_at=access.expires_at,
            refresh_expires_at=refresh.expires_at,
        )

    async def get_user_by_session(self, token: str) -> User | None:
        async with self._session_factory() as session:
            query = (
                select(User)
                .join(SessionToken)
                .where(SessionToken.token == token)
                .where(SessionToken.kind == ACCESS_KIND)
                .where(SessionToken.expires_at > utcnow())
            )
            return await session.scalar(query)

    async def refresh(self, refresh_token: str) -> TokenPair:
        async with self._session_factory() as session:
            stored = await session.scalar(
                select(SessionToken)
                .where(SessionToken.token == refresh_token)
                .where(SessionToken.kind == REFRESH_KIND)
            )
            if stored is None or stored.expires_at <= utcnow():
                raise AuthenticationError("invalid refresh token")
            user_id = stored.user_id
            await session.delete(stored)
            tokens = self._issue_tokens(session, user_id)
            await session.commit()
        logger.info("session refreshed", extra={"user": user_id})
        return tokens

    async def logout(self, token: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(SessionToken).where(SessionToken.token == token))
            await session.commit()

    # -- accounts --------------------------------------------------------
    async def signup(
        self,
        *,
        email: str,
        full_name: str,
        password: str,
        password_confirm: str,
    ) -> tuple[User, TokenPair]:
        if password != password_confirm:
            raise InvalidRequestError("passwords do not match")
        email = email.strip().lower()
        async with self._session_factory() as session:
            existing = await session.scalar(select(User).where(User.email == email))
            if existing is not None:
                raise ConflictError("email already registered")
            user = User(
                email=email,
                full_name=full_name.strip(),
                password_hash=hash_password(password),
            )
            session.add(user)
            await session.flush()
            tokens = self._issue_tokens(session, user.id)
            await session.commit()
            await session.refresh(user)
        logger.info("user signed up", extra={"user": user.id})
        return user, tokens

    async def login(self, *, email: str, password: str) -> tuple[User, TokenPair]:
        async with self._session_factory() as session:
            user = await session.scalar(select(User).where(User.email == email.strip().lower()))
            if user is None or not verify_password(password, user.password_hash):
                raise AuthenticationError("invalid email or password")
            tokens = self._issue_tokens(session, user.id)
            await session.commit()
        logger.info("user logged in", extra={"user": user.id})
        return user, tokens

    async def get_user(self, user_id: int) -> User:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise NotFoundError(f"user {user_id} not found")
            return user

    async def update_user(self, user_id: int, *, full_name: str | None = None) -> User:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise NotFoundError(f"user {user_id} not found")
            if full_name is not None:
                user.full_name = full_name.strip()
            await session.commit()
            await session.refresh(user)
            return user

    async def delete_user(self, user_id: int) -> None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user:
                await session.delete(user)
                await session.commit()
                logger.info("user deleted", extra={"user": user_id})

    # -- passwords -------------------------------------------------------
    async def forgot_password(self, email: str) -> str:
        """Issue a one-time reset token; only its digest is stored."""

        raw_token = token_urlsafe(32)
        async with self._session_factory() as session:
            user = await session.scalar(select(User).where(User.email == email.strip().lower()))
            if user is None:
                raise NotFoundError("no user with that email")
            user.password_reset_token = hash_token(raw_token)
            user.password_reset_expires = utcnow() + self._reset_ttl
            await session.commit()
            user_id = user.id
        # Delivery is out of band; the token is only written to the log.
        logger.info(
            "password reset issued",
            extra={"user": user_id, "extra_fields": {"reset_token": raw_token}},
        )
        return raw_token

    async def _user_for_reset_token(self, session: AsyncSession, token: str) -> User:
        user = await session.scalar(
            select(User)
            .where(User.password_reset_token == hash_token(token))
            .where(User.password_reset_expires > utcnow())
        )
        if user is None:
            raise InvalidRequestError("token is invalid or has expired")
        return user

    async def verify_reset_token(self, token: str) -> None:
        async with self._session_factory() as session:
            await self._user_for_reset_token(session, token)

    async def reset_password(
        self,
        token: str,
        *,
        password: str,
        password_confirm: str,
    ) -> TokenPair:
        if password != password_confirm:
            raise InvalidRequestError("passwords do not match")
        async with self._session_factory() as session:
            user = await self._user_for_reset_token(session, token)
            user.password_hash = hash_password(password)
            user.password_reset_token = None
            user.password_reset_expires = None
            user.password_changed_at = utcnow()
            await session.execute(delete(SessionToken).where(SessionToken.user_id == user.id))
            tokens = self._issue_tokens(session, user.id)
            await session.commit()
            user_id = user.id
        logger.info("password reset", extra={"user": user_id})
        return tokens

    async def update_password(
        self,
        user_id: int,
        *,
        current_password: str,
        password: str,
        password_confirm: str,
    ) -> TokenPair:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise NotFoundError(f"user {user_id} not found")
            if not verify_password(current_password, user.password_hash):
                raise AuthenticationError("current password is wrong")
            if password == current_password:
                raise InvalidRequestError("new password must differ from the current one")
            if password != password_confirm:
                raise InvalidRequestError("passwords do not match")
            user.password_hash = hash_password(password)
            user.password_changed_at = utcnow()
            await session.execute(delete(SessionToken).where(SessionToken.user_id == user.id))
            tokens = self._issue_tokens(session, user.id)
            await session.commit()
        logger.info("password updated", extra={"user": user_id})
        return tokens


__all__ = ["ACCESS_KIND", "REFRESH_KIND", "TokenPair", "UserService"]
