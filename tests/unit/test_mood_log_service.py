from __future__ import annotations

import asyncio
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from moodzie.app.core.errors import InvalidRequestError, NotFoundError, PermissionDeniedError
from moodzie.app.insights.streaks import StreakState
from moodzie.app.services.activities import ActivityService
from moodzie.app.services.mood_logs import MoodLogService, as_storage_datetime
from moodzie.app.services.moods import MoodService
from moodzie.app.services.users import UserService


async def _setup(session_factory, email: str = "ada@example.com") -> tuple[int, dict[str, int]]:
    """Create a user owning the default moods; returns the user id and mood ids by name."""

    user, _ = await UserService(session_factory).signup(
        email=email,
        full_name="Ada",
        password="correct-horse",
        password_confirm="correct-horse",
    )
    moods = MoodService(session_factory)
    await moods.seed_moods()
    assigned = await moods.assign_default_moods(user.id)
    return user.id, {item.mood.name: item.mood_id for item in assigned}


def test_as_storage_datetime() -> None:
    aware = datetime(2025, 3, 10, 9, 0, tzinfo=ZoneInfo("Europe/Berlin"))

    assert as_storage_datetime(aware) == datetime(2025, 3, 10, 8, 0)
    assert as_storage_datetime(datetime(2025, 3, 10, 9, 0)) == datetime(2025, 3, 10, 9, 0)


@pytest.mark.anyio
async def test_create_log_advances_streak(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory)
    user_id, mood_ids = await _setup(temp_session_factory)

    assert await service.get_streak(user_id) == StreakState()

    first = await service.create_log(
        user_id, mood_id=mood_ids["Good"], notes="walk", mood_date=datetime(2025, 3, 10, 9, 0)
    )
    await service.create_log(user_id, mood_id=mood_ids["Meh"], mood_date=datetime(2025, 3, 10, 20, 0))
    await service.create_log(user_id, mood_id=mood_ids["Rad"], mood_date=datetime(2025, 3, 11, 7, 0))

    assert first.user_mood.mood.name == "Good"
    assert first.notes == "walk"
    streak = await service.get_streak(user_id)
    assert streak.current_streak == 2
    assert streak.longest_streak == 2
    assert streak.last_log_date == date(2025, 3, 11)
    assert streak.current_streak_start_date == date(2025, 3, 10)
    assert streak.is_active is True

    await service.create_log(user_id, mood_id=mood_ids["Bad"], mood_date=datetime(2025, 3, 14, 7, 0))
    streak = await service.get_streak(user_id)
    assert streak.current_streak == 1
    assert streak.longest_streak == 2
    assert streak.longest_streak_end_date == date(2025, 3, 11)


@pytest.mark.anyio
async def test_backdated_log_does_not_touch_streak(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory)
    user_id, mood_ids = await _setup(temp_session_factory)
    await service.create_log(user_id, mood_id=mood_ids["Good"], mood_date=datetime(2025, 3, 10, 9, 0))
    before = await service.get_streak(user_id)

    await service.create_log(user_id, mood_id=mood_ids["Good"], mood_date=datetime(2025, 3, 1, 9, 0))

    assert await service.get_streak(user_id) == before


@pytest.mark.anyio
async def test_concurrent_logs_count_one_day(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory)
    user_id, mood_ids = await _setup(temp_session_factory)
    moment = datetime(2025, 3, 10, 9, 0)

    await asyncio.gather(
        *(
            service.create_log(user_id, mood_id=mood_ids["Good"], mood_date=moment)
            for _ in range(5)
        )
    )

    streak = await service.get_streak(user_id)
    assert streak.current_streak == 1
    assert (await service.list_logs(user_id)).total == 5
    assert service._streak_locks == {}


@pytest.mark.anyio
async def test_streak_uses_configured_zone(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory, tz=ZoneInfo("Europe/Berlin"))
    user_id, mood_ids = await _setup(temp_session_factory)

    await service.create_log(user_id, mood_id=mood_ids["Good"], mood_date=datetime(2025, 3, 10, 9, 0))
    await service.create_log(user_id, mood_id=mood_ids["Good"], mood_date=datetime(2025, 3, 10, 23, 30))

    streak = await service.get_streak(user_id)
    assert streak.current_streak == 2
    assert streak.last_log_date == date(2025, 3, 11)


@pytest.mark.anyio
async def test_create_log_validation(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory)
    user_id, mood_ids = await _setup(temp_session_factory)
    other_id, _ = await _setup(temp_session_factory, "grace@example.com")
    reward_id = (await MoodService(temp_session_factory).list_moods(mood_type="reward")).items[0].id

    with pytest.raises(InvalidRequestError):
        await service.create_log(user_id, mood_id=reward_id)
    assert service._streak_locks == {}

    log = await service.create_log(user_id, mood_id=mood_ids["Good"], category_ids=[9999])
    assert log.categories == []
    assert await service.get_streak(user_id) != StreakState()

    with pytest.raises(PermissionDeniedError):
        await service.get_log(log.id, other_id)
    with pytest.raises(NotFoundError):
        await service.get_log(9999, user_id)


@pytest.mark.anyio
async def test_logs_with_activities_and_filters(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory)
    user_id, mood_ids = await _setup(temp_session_factory)
    activities = ActivityService(temp_session_factory)
    await activities.seed_activities()
    categories = await activities.categories_with_sub_categories()
    work, social = categories[0], categories[1]
    sub = work.sub_categories[0]

    tagged = await service.create_log(
        user_id,
        mood_id=mood_ids["Good"],
        category_ids=[work.id, work.id],
        sub_category_ids=[sub.id],
        mood_date=datetime(2025, 3, 10, 9, 0),
        is_public=True,
    )
    await service.create_log(
        user_id,
        mood_id=mood_ids["Bad"],
        category_ids=[social.id],
        mood_date=datetime(2025, 3, 12, 9, 0),
    )
    await service.create_log(user_id, mood_id=mood_ids["Meh"], mood_date=datetime(2025, 3, 14, 9, 0))

    assert [category.id for category in tagged.categories] == [work.id]
    assert [item.id for item in tagged.sub_categories] == [sub.id]

    newest = await service.list_logs(user_id)
    assert [log.mood_date.day for log in newest.items] == [14, 12, 10]
    oldest = await service.list_logs(user_id, sort_order="oldest", limit=2)
    assert [log.mood_date.day for log in oldest.items] == [10, 12]
    assert oldest.total_pages == 2

    ranged = await service.list_logs(
        user_id, start_date=date(2025, 3, 10), end_date=date(2025, 3, 12)
    )
    assert ranged.total == 2
    assert (await service.list_logs(user_id, category_id=social.id)).total == 1
    assert (await service.list_logs(user_id, sub_category_id=sub.id)).items[0].id == tagged.id
    assert (await service.list_logs(user_id, is_public=True)).total == 1
    assert (await service.list_logs(user_id, user_mood_id=tagged.user_mood_id)).total == 1
    with pytest.raises(InvalidRequestError):
        await service.list_logs(user_id, start_date=date(2025, 3, 12), end_date=date(2025, 3, 10))


@pytest.mark.anyio
async def test_update_log(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory)
    user_id, mood_ids = await _setup(temp_session_factory)
    other_id, _ = await _setup(temp_session_factory, "grace@example.com")
    activities = ActivityService(temp_session_factory)
    await activities.seed_activities()
    category = (await activities.categories_with_sub_categories())[0]
    log = await service.create_log(user_id, mood_id=mood_ids["Good"], mood_date=datetime(2025, 3, 10, 9, 0))
    streak = await service.get_streak(user_id)
    rad = next(
        item for item in (await MoodService(temp_session_factory).list_user_moods(user_id)).items
        if item.mood.name == "Rad"
    )

    updated = await service.update_log(
        log.id,
        user_id,
        {
            "notes": "edited",
            "user_mood_id": rad.id,
            "category_ids": [category.id],
            "mood_date": datetime(2025, 3, 20, 9, 0, tzinfo=UTC),
        },
    )

    assert updated.notes == "edited"
    assert updated.user_mood.mood.name == "Rad"
    assert [item.id for item in updated.categories] == [category.id]
    assert updated.mood_date == datetime(2025, 3, 20, 9, 0)
    assert await service.get_streak(user_id) == streak

    with pytest.raises(InvalidRequestError):
        await service.update_log(log.id, user_id, {"category_ids": [category.id, 9999]})
    other_user_mood = (await MoodService(temp_session_factory).list_user_moods(other_id)).items[0]
    with pytest.raises(InvalidRequestError):
        await service.update_log(log.id, user_id, {"user_mood_id": other_user_mood.id})
    with pytest.raises(PermissionDeniedError):
        await service.update_log(log.id, other_id, {"notes": "mine now"})
    with pytest.raises(NotFoundError):
        await service.update_log(9999, user_id, {"notes": "ghost"})


@pytest.mark.anyio
async def test_moods_info(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory)
    user_id, mood_ids = await _setup(temp_session_factory)
    for name in ("Good", "Good", "Bad"):
        await service.create_log(user_id, mood_id=mood_ids[name], mood_date=datetime(2025, 3, 10, 9, 0))

    info = await service.moods_info(user_id)

    assert info["total_logs"] == 3
    by_name = {item["name"]: item for item in info["moods"]}
    assert set(by_name) == {"Rad", "Good", "Meh", "Bad", "Awful"}
    assert by_name["Good"]["count"] == 2
    assert by_name["Good"]["percentage"] == 67
    assert by_name["Bad"]["percentage"] == 33
    assert by_name["Rad"]["count"] == 0
    assert by_name["Rad"]["last_used"] is None
    assert by_name["Rad"]["is_selected"] is True
    assert by_name["Good"]["last_used"] == datetime(2025, 3, 10, 9, 0)


@pytest.mark.anyio
async def test_stats_and_summary(temp_session_factory) -> None:
    service = MoodLogService(temp_session_factory)
    user_id, mood_ids = await _setup(temp_session_factory)
    other_id, other_moods = await _setup(temp_session_factory, "grace@example.com")
    now = datetime(2025, 3, 12, 18, 0, tzinfo=UTC)
    for name, moment in (
        ("Good", datetime(2025, 3, 10, 9, 0)),
        ("Good", datetime(2025, 3, 12, 9, 0)),
        ("Bad", datetime(2025, 3, 12, 17, 0)),
        ("Rad", datetime(2025, 3, 3, 9, 0)),
    ):
        await service.create_log(user_id, mood_id=mood_ids[name], mood_date=moment)
    await service.create_log(other_id, mood_id=other_moods["Awful"], mood_date=now - timedelta(hours=1))

    window, buckets = await service.stats(user_id, "week", now=now)
    assert (window.start, window.end) == (date(2025, 3, 10), date(2025, 3, 16))
    counts = {bucket.key: bucket.count for bucket in buckets}
    assert counts["Monday"] == 1
    assert counts["Wednesday"] == 2
    assert sum(counts.values()) == 3

    _, day_buckets = await service.stats(user_id, "day", now=now)
    assert day_buckets[9].count == 1
    assert day_buckets[17].logs[0].mood_name == "Bad"

    _, month_buckets = await service.stats(user_id, "month", now=now)
    assert len(month_buckets) == 31
    assert sum(bucket.count for bucket in month_buckets) == 4

    window, summary = await service.summary(user_id, "week", now=now)
    assert summary.total_logs == 3
    assert summary.mood_counts["Good"].percentage == 67
    assert summary.mood_counts["Bad"].count == 1
    assert "Awful" not in summary.mood_counts
