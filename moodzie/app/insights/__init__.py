"""Streak tracking and period aggregation over mood logs."""

from .periods import (
    MoodCount,
    MoodLogEntry,
    MoodSummary,
    PeriodBucket,
    PeriodKind,
    PeriodWindow,
    bucket_logs,
    current_window,
    summarize,
    window_bounds,
)
from .streaks import StreakState, advance_streak, calendar_day, streak_outcome

__all__ = [
    "MoodCount",
    "MoodLogEntry",
    "MoodSummary",
    "PeriodBucket",
    "PeriodKind",
    "PeriodWindow",
    "StreakState",
    "advance_streak",
    "bucket_logs",
    "calendar_day",
    "current_window",
    "streak_outcome",
    "summarize",
    "window_bounds",
]
