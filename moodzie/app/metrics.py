from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "moodzie_requests_total",
    "Total HTTP requests processed by Moodzie",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "moodzie_request_latency_seconds",
    "HTTP request latency in seconds",
    ("method", "path"),
)

REQUEST_ERRORS = Counter(
    "moodzie_request_errors_total",
    "HTTP requests resulting in server errors",
    ("method", "path", "status"),
)

USER_API_COUNTER = Counter(
    "moodzie_user_api_hits_total",
    "Authenticated API hits per endpoint",
    ("endpoint",),
)

MOOD_LOGS_CREATED = Counter(
    "moodzie_mood_logs_created_total",
    "Mood log entries persisted",
)

STREAK_UPDATES = Counter(
    "moodzie_streak_updates_total",
    "Streak transitions applied after a mood log",
    ("outcome",),
)

__all__ = [
    "MOOD_LOGS_CREATED",
    "REQUEST_COUNT",
    "REQUEST_ERRORS",
    "REQUEST_LATENCY",
    "STREAK_UPDATES",
    "USER_API_COUNTER",
]
