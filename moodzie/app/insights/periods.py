from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from enum import Enum

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
HOURS_PER_DAY = 24


class PeriodKind(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive range of calendar days covered by a stats request."""

    kind: PeriodKind
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class MoodLogEntry:
    """Read-only view of a mood log used by the aggregator."""

    id: int | None
    mood_date: datetime
    mood_name: str
    mood_emoji: str
    mood_color: str
    notes: str | None = None


@dataclass
class PeriodBucket:
    key: int | str
    logs: list[MoodLogEntry] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.logs)


@dataclass
class MoodCount:
    count: int
    emoji: str
    color: str
    percentage: int = 0


@dataclass
class MoodSummary:
    total_logs: int
    mood_counts: dict[str, MoodCount]
    categories: list[int | str]


def local_datetime(value: datetime, tz: tzinfo = UTC) -> datetime:
    """Convert a stored timestamp (naive means UTC) into ``tz``."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(tz)


def current_window(
    kind: PeriodKind | str,
    *,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> PeriodWindow:
    """Return the day, Monday-based week or month that contains ``now``."""

    kind = PeriodKind(kind)
    today = local_datetime(now, tz).date() if now is not None else datetime.now(tz).date()
    if kind is PeriodKind.DAY:
        return PeriodWindow(kind, today, today)
    if kind is PeriodKind.WEEK:
        start = today - timedelta(days=today.weekday())
        return PeriodWindow(kind, start, start + timedelta(days=6))
    last_day = calendar.monthrange(today.year, today.month)[1]
    return PeriodWindow(kind, today.replace(day=1), today.replace(day=last_day))


def window_bounds(window: PeriodWindow, tz: tzinfo = UTC) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` range of naive UTC timestamps for queries."""

    start = datetime.combine(window.start, time.min, tzinfo=tz)
    end = datetime.combine(window.end + timedelta(days=1), time.min, tzinfo=tz)
    return (
        start.astimezone(UTC).replace(tzinfo=None),
        end.astimezone(UTC).replace(tzinfo=None),
    )


def period_categories(window: PeriodWindow) -> list[int | str]:
    if window.kind is PeriodKind.DAY:
        return list(range(HOURS_PER_DAY))
    if window.kind is PeriodKind.WEEK:
        first = window.start.weekday()
        return [WEEKDAY_NAMES[(first + offset) % 7] for offset in range(7)]
    return [
        (window.start + timedelta(days=offset)).isoformat()
        for offset in range(window.days)
    ]


def _bucket_key(kind: PeriodKind, moment: datetime) -> int | str:
    if kind is PeriodKind.DAY:
        return moment.hour
    if kind is PeriodKind.WEEK:
        return WEEKDAY_NAMES[moment.weekday()]
    return moment.date().isoformat()


def _in_window(
    logs: Iterable[MoodLogEntry],
    window: PeriodWindow,
    tz: tzinfo,
) -> Iterable[tuple[MoodLogEntry, datetime]]:
    for entry in logs:
        moment = local_datetime(entry.mood_date, tz)
        if window.contains(moment.date()):
            yield entry, moment


def bucket_logs(
    logs: Sequence[MoodLogEntry],
    window: PeriodWindow,
    *,
    tz: tzinfo = UTC,
) -> list[PeriodBucket]:
    """Group ``logs`` into every hour, weekday or date of ``window``.

    Empty buckets are kept so callers can render a complete axis. Entries that
    fall outside the window are skipped.
    """

    buckets = {key: PeriodBucket(key) for key in period_categories(window)}
    for entry, moment in _in_window(logs, window, tz):
        bucket = buckets.get(_bucket_key(window.kind, moment))
        if bucket is not None:
            bucket.logs.append(entry)
    return list(buckets.values())


def round_percentage(count: int, total: int) -> int:
    """``count / total`` as a whole percentage, halves rounded up."""

    if total <= 0:
        return 0
    return (count * 200 + total) // (total * 2)


def summarize(
    logs: Sequence[MoodLogEntry],
    window: PeriodWindow,
    *,
    tz: tzinfo = UTC,
) -> MoodSummary:
    mood_counts: dict[str, MoodCount] = {}
    total = 0
    for entry, _ in _in_window(logs, window, tz):
        total += 1
        stat = mood_counts.get(entry.mood_name)
        if stat is None:
            stat = MoodCount(count=0, emoji=entry.mood_emoji, color=entry.mood_color)
            mood_counts[entry.mood_name] = stat
        stat.count += 1

    for stat in mood_counts.values():
        stat.percentage = round_percentage(stat.count, total)

    return MoodSummary(
        total_logs=total,
        mood_counts=mood_counts,
        categories=period_categories(window),
    )


__all__ = [
    "HOURS_PER_DAY",
    "WEEKDAY_NAMES",
    "MoodCount",
    "MoodLogEntry",
    "MoodSummary",
    "PeriodBucket",
    "PeriodKind",
    "PeriodWindow",
    "bucket_logs",
    "current_window",
    "local_datetime",
    "period_categories",
    "round_percentage",
    "summarize",
    "window_bounds",
]
