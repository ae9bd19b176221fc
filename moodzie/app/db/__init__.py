"""ORM models for Moodzie."""

from .models import (
    ActivityCategory,
    ActivitySubCategory,
    Badge,
    Base,
    Mood,
    MoodLog,
    MoodStreak,
    SessionToken,
    SettingEntry,
    User,
    UserBadge,
    UserMood,
    utcnow,
)

__all__ = [
    "ActivityCategory",
    "ActivitySubCategory",
    "Badge",
    "Base",
    "Mood",
    "MoodLog",
    "MoodStreak",
    "SessionToken",
    "SettingEntry",
    "User",
    "UserBadge",
    "UserMood",
    "utcnow",
]
