from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, tzinfo
from typing import Literal

StreakOutcome = Literal["started", "same_day", "extended", "reset", "ignored"]


@dataclass(frozen=True)
class StreakState:
    """Snapshot of a user's daily logging streak."""

    current_streak: int = 0
    longest_streak: int = 0
    last_log_date: date | None = None
    is_active: bool = False
    current_streak_start_date: date | None = None
    longest_streak_start_date: date | None = None
    longest_streak_end_date: date | None = None


def calendar_day(value: datetime | date, tz: tzinfo = UTC) -> date:
    """Return the calendar day of ``value`` in ``tz``.

    Naive datetimes are treated as UTC, which is how timestamps are stored.
    """

    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(tz).date()


def streak_outcome(
    existing: StreakState | None,
    log_date: datetime | date,
    *,
    tz: tzinfo = UTC,
) -> StreakOutcome:
    if existing is None or existing.last_log_date is None:
        return "started"
    gap = (calendar_day(log_date, tz) - existing.last_log_date).days
    if gap < 0:
        return "ignored"
    if gap == 0:
        return "same_day"
    if gap == 1:
        return "extended"
    return "reset"


def advance_streak(
    existing: StreakState | None,
    log_date: datetime | date,
    *,
    tz: tzinfo = UTC,
) -> StreakState:
    """Apply a new log to ``existing`` and return the updated streak.

    Logs dated before the last counted day leave the state untouched.
    """

    today = calendar_day(log_date, tz)
    outcome = streak_outcome(existing, today, tz=tz)

    if existing is None or outcome == "started":
        if existing is not None and existing.longest_streak > 1:
            # record without a last log date: restart but keep the best streak
            return replace(
                existing,
                current_streak=1,
                last_log_date=today,
                is_active=True,
                current_streak_start_date=today,
            )
        return StreakState(
            current_streak=1,
            longest_streak=1,
            last_log_date=today,
            is_active=True,
            current_streak_start_date=today,
            longest_streak_start_date=today,
            longest_streak_end_date=today,
        )

    if outcome == "ignored":
        return existing
    if outcome == "same_day":
        return replace(existing, last_log_date=today)
    if outcome == "reset":
        return replace(
            existing,
            current_streak=1,
            last_log_date=today,
            current_streak_start_date=today,
            is_active=True,
        )

    current = existing.current_streak + 1
    updated = replace(
        existing,
        current_streak=current,
        last_log_date=today,
        is_active=True,
    )
    if current > existing.longest_streak:
        updated = replace(
            updated,
            longest_streak=current,
            longest_streak_start_date=existing.current_streak_start_date,
            longest_streak_end_date=today,
        )
    return updated


__all__ = ["StreakOutcome", "StreakState", "advance_streak", "calendar_day", "streak_outcome"]
