from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import InvalidRequestError, NotFoundError, PermissionDeniedError
from ..db.models import (
    ActivityCategory,
    ActivitySubCategory,
    MoodLog,
    MoodStreak,
    UserMood,
    utcnow,
)
from ..insights.periods import (
    MoodLogEntry,
    MoodSummary,
    PeriodBucket,
    PeriodKind,
    PeriodWindow,
    bucket_logs,
    current_window,
    round_percentage,
    summarize,
    window_bounds,
)
from ..insights.streaks import StreakState, advance_streak, streak_outcome
from ..metrics import MOOD_LOGS_CREATED, STREAK_UPDATES
from .pagination import Page, paginate

logger = logging.getLogger(__name__)

_STREAK_FIELDS = (
    "current_streak",
    "longest_streak",
    "last_log_date",
    "is_active",
    "current_streak_start_date",
    "longest_streak_start_date",
    "longest_streak_end_date",
)


def as_storage_datetime(value: datetime) -> datetime:
    """Normalise ``value`` to the naive UTC form stored in the database."""

    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return as_storage_datetime(datetime.combine(day, time.min, tzinfo=tz))


def _state_from_row(row: MoodStreak) -> StreakState:
    return StreakState(**{name: getattr(row, name) for name in _STREAK_FIELDS})


def _entry_from_log(log: MoodLog) -> MoodLogEntry:
    mood = log.user_mood.mood
    return MoodLogEntry(
        id=log.id,
        mood_date=log.mood_date,
        mood_name=mood.name,
        mood_emoji=mood.emoji,
        mood_color=mood.colour,
        notes=log.notes,
    )


def _unique(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(ids))


class MoodLogService:
    """Mood check-ins, the streak they drive, and period statistics."""

    def __init__(self, session_factory: async_sessionmaker, *, tz: tzinfo = UTC) -> None:
        self._session_factory = session_factory
        self._tz = tz
        # per-user lock plus the number of tasks holding or awaiting it
        self._streak_locks: dict[int, tuple[asyncio.Lock, int]] = {}

    @property
    def tz(self) -> tzinfo:
        return self._tz

    @asynccontextmanager
    async def _streak_lock(self, user_id: int) -> AsyncIterator[None]:
        """Serialise streak updates for one user; the entry is dropped once idle."""

        lock, users = self._streak_locks.get(user_id, (asyncio.Lock(), 0))
        self._streak_locks[user_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._streak_locks[user_id]
            if users == 1:
                del self._streak_locks[user_id]
            else:
                self._streak_locks[user_id] = (lock, users - 1)

    # -- writes ----------------------------------------------------------
    async def create_log(
        self,
        user_id: int,
        *,
        mood_id: int,
        notes: str | None = None,
        category_ids: Sequence[int] | None = None,
        sub_category_ids: Sequence[int] | None = None,
        mood_date: datetime | None = None,
        is_public: bool = False,
    ) -> MoodLog:
        """Persist a log and advance the owner's streak in one transaction.

        Unknown category and sub-category ids are dropped silently.
        """

        async with self._streak_lock(user_id):
            async with self._session_factory() as session:
                user_mood = await session.scalar(
                    select(UserMood)
                    .where(UserMood.user_id == user_id)
                    .where(UserMood.mood_id == mood_id)
                )
                if user_mood is None:
                    raise InvalidRequestError(
                        f"mood {mood_id} not found or does not belong to you"
                    )

                log = MoodLog(
                    user_id=user_id,
                    user_mood_id=user_mood.id,
                    notes=notes,
                    mood_date=as_storage_datetime(mood_date) if mood_date else utcnow(),
                    is_public=is_public,
                )
                if category_ids:
                    log.categories = list(
                        (
                            await session.scalars(
                                select(ActivityCategory).where(
                                    ActivityCategory.id.in_(_unique(category_ids))
                                )
                            )
                        ).all()
                    )
                if sub_category_ids:
                    log.sub_categories = list(
                        (
                            await session.scalars(
                                select(ActivitySubCategory).where(
                                    ActivitySubCategory.id.in_(_unique(sub_category_ids))
                                )
                            )
                        ).all()
                    )
                session.add(log)
                await session.flush()

                outcome, state = await self._advance_streak(session, user_id, log.mood_date)
                await session.commit()
                log_id = log.id

        MOOD_LOGS_CREATED.inc()
        STREAK_UPDATES.labels(outcome=outcome).inc()
        logger.info(
            "mood logged",
            extra={
                "user": user_id,
                "extra_fields": {
                    "mood_log_id": log_id,
                    "streak_outcome": outcome,
                    "current_streak": state.current_streak,
                },
            },
        )
        return await self.get_log(log_id, user_id)

    async def _advance_streak(
        self,
        session: AsyncSession,
        user_id: int,
        log_date: datetime,
    ) -> tuple[str, StreakState]:
        row = await session.scalar(
            select(MoodStreak).where(MoodStreak.user_id == user_id).with_for_update()
        )
        existing = _state_from_row(row) if row is not None else None
        outcome = streak_outcome(existing, log_date, tz=self._tz)
        state = advance_streak(existing, log_date, tz=self._tz)
        if row is None:
            row = MoodStreak(user_id=user_id)
            session.add(row)
        if state is not existing:
            for name in _STREAK_FIELDS:
                setattr(row, name, getattr(state, name))
        return outcome, state

    async def update_log(
        self,
        log_id: int,
        user_id: int,
        changes: Mapping[str, Any],
    ) -> MoodLog:
        """Apply a partial update; the streak is not recomputed."""

        async with self._session_factory() as session:
            log = await session.get(MoodLog, log_id)
            if log is None:
                raise NotFoundError(f"mood log {log_id} not found")
            if log.user_id != user_id:
                raise PermissionDeniedError("you can only update your own mood logs")

            if "notes" in changes:
                log.notes = changes["notes"]
            if changes.get("is_public") is not None:
                log.is_public = changes["is_public"]
            if changes.get("user_mood_id") is not None:
                user_mood = await session.scalar(
                    select(UserMood)
                    .where(UserMood.id == changes["user_mood_id"])
                    .where(UserMood.user_id == user_id)
                )
                if user_mood is None:
                    raise InvalidRequestError(
                        f"user mood {changes['user_mood_id']} not found or does not belong to you"
                    )
                log.user_mood_id = user_mood.id
                log.user_mood = user_mood
            if changes.get("mood_date") is not None:
                log.mood_date = as_storage_datetime(changes["mood_date"])
            if changes.get("category_ids") is not None:
                ids = _unique(changes["category_ids"])
                categories = (
                    await session.scalars(
                        select(ActivityCategory)
                        .where(ActivityCategory.id.in_(ids))
                        .where(ActivityCategory.is_active.is_(True))
                    )
                ).all()
                if len(categories) != len(ids):
                    raise InvalidRequestError(
                        "one or more activity categories not found or inactive"
                    )
                log.categories = list(categories)
            if changes.get("sub_category_ids") is not None:
                ids = _unique(changes["sub_category_ids"])
                sub_categories = (
                    await session.scalars(
                        select(ActivitySubCategory)
                        .where(ActivitySubCategory.id.in_(ids))
                        .where(ActivitySubCategory.is_active.is_(True))
                    )
                ).all()
                if len(sub_categories) != len(ids):
                    raise InvalidRequestError(
                        "one or more activity sub-categories not found or inactive"
                    )
                log.sub_categories = list(sub_categories)
            await session.commit()
        return await self.get_log(log_id, user_id)

    # -- reads -----------------------------------------------------------
    async def get_log(self, log_id: int, user_id: int) -> MoodLog:
        async with self._session_factory() as session:
            log = await session.get(MoodLog, log_id)
            if log is None:
                raise NotFoundError(f"mood log {log_id} not found")
            if log.user_id != user_id:
                raise PermissionDeniedError("you can only access your own mood logs")
            return log

    async def list_logs(
        self,
        user_id: int,
        *,
        page: int = 1,
        limit: int = 10,
        start_date: date | None = None,
        end_date: date | None = None,
        user_mood_id: int | None = None,
        category_id: int | None = None,
        sub_category_id: int | None = None,
        is_public: bool | None = None,
        sort_order: str = "newest",
    ) -> Page[MoodLog]:
        """Page through a user's logs; date filters are inclusive local days."""

        if start_date and end_date and start_date > end_date:
            raise InvalidRequestError("start_date must not be after end_date")
        query = select(MoodLog).where(MoodLog.user_id == user_id)
        if start_date is not None:
            query = query.where(MoodLog.mood_date >= _local_midnight(start_date, self._tz))
        if end_date is not None:
            next_day = end_date + timedelta(days=1)
            query = query.where(MoodLog.mood_date < _local_midnight(next_day, self._tz))
        if user_mood_id is not None:
            query = query.where(MoodLog.user_mood_id == user_mood_id)
        if category_id is not None:
            query = query.where(MoodLog.categories.any(ActivityCategory.id == category_id))
        if sub_category_id is not None:
            query = query.where(
                MoodLog.sub_categories.any(ActivitySubCategory.id == sub_category_id)
            )
        if is_public is not None:
            query = query.where(MoodLog.is_public.is_(is_public))
        if sort_order == "oldest":
            query = query.order_by(MoodLog.mood_date.asc(), MoodLog.id.asc())
        else:
            query = query.order_by(MoodLog.mood_date.desc(), MoodLog.id.desc())

        try:
            async with self._session_factory() as session:
                return await paginate(session, query, page=page, limit=limit)
        except SQLAlchemyError:
            logger.exception("failed to fetch mood logs", extra={"user": user_id})
            raise

    async def get_streak(self, user_id: int) -> StreakState:
        async with self._session_factory() as session:
            row = await session.scalar(select(MoodStreak).where(MoodStreak.user_id == user_id))
            return _state_from_row(row) if row is not None else StreakState()

    async def moods_info(self, user_id: int) -> dict[str, Any]:
        """Usage count, share and last use of every active mood the user owns."""

        async with self._session_factory() as session:
            user_moods = (
                await session.scalars(
                    select(UserMood)
                    .where(UserMood.user_id == user_id)
                    .where(UserMood.is_active.is_(True))
                    .order_by(UserMood.id)
                )
            ).all()
            usage = {
                row.user_mood_id: (row.count, row.last_used)
                for row in await session.execute(
                    select(
                        MoodLog.user_mood_id,
                        func.count(MoodLog.id).label("count"),
                        func.max(MoodLog.mood_date).label("last_used"),
                    )
                    .where(MoodLog.user_id == user_id)
                    .group_by(MoodLog.user_mood_id)
                )
            }
        total = sum(count for count, _ in usage.values())

        moods = []
        for user_mood in user_moods:
            count, last_used = usage.get(user_mood.id, (0, None))
            moods.append(
                {
                    "id": user_mood.id,
                    "mood_id": user_mood.mood_id,
                    "name": user_mood.mood.name,
                    "emoji": user_mood.mood.emoji,
                    "color": user_mood.mood.colour,
                    "dark_color": user_mood.mood.dark_colour,
                    "is_selected": user_mood.is_selected,
                    "count": count,
                    "percentage": round_percentage(count, total),
                    "last_used": last_used,
                }
            )
        return {"total_logs": total, "moods": moods}

    async def _entries_in(self, user_id: int, window: PeriodWindow) -> list[MoodLogEntry]:
        start, end = window_bounds(window, self._tz)
        async with self._session_factory() as session:
            logs = (
                await session.scalars(
                    select(MoodLog)
                    .where(MoodLog.user_id == user_id)
                    .where(MoodLog.mood_date >= start)
                    .where(MoodLog.mood_date < end)
                    .order_by(MoodLog.mood_date.asc(), MoodLog.id.asc())
                )
            ).all()
        return [_entry_from_log(log) for log in logs]

    async def stats(
        self,
        user_id: int,
        period: PeriodKind | str,
        *,
        now: datetime | None = None,
    ) -> tuple[PeriodWindow, list[PeriodBucket]]:
        window = current_window(period, now=now, tz=self._tz)
        entries = await self._entries_in(user_id, window)
        return window, bucket_logs(entries, window, tz=self._tz)

    async def summary(
        self,
        user_id: int,
        period: PeriodKind | str,
        *,
        now: datetime | None = None,
    ) -> tuple[PeriodWindow, MoodSummary]:
        window = current_window(period, now=now, tz=self._tz)
        entries = await self._entries_in(user_id, window)
        return window, summarize(entries, window, tz=self._tz)


__all__ = ["MoodLogService", "as_storage_datetime"]
