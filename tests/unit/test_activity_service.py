from __future__ import annotations

import pytest

from moodzie.app.core.errors import ConflictError, InvalidRequestError, NotFoundError
from moodzie.app.services.activities import SEED_ACTIVITIES, ActivityService


def _sub(category_id: int, name: str, **extra) -> dict:
    return {
        "category_id": category_id,
        "name": name,
        "emoji": "✨",
        "color": "#FFAA00",
        "dark_color": "#AA5500",
        **extra,
    }


@pytest.mark.anyio
async def test_seed_activities(temp_session_factory) -> None:
    activities = ActivityService(temp_session_factory)

    result = await activities.seed_activities()
    again = await activities.seed_activities()
    overwritten = await activities.seed_activities(overwrite=True)

    expected_subs = sum(len(item["sub_categories"]) for item in SEED_ACTIVITIES)
    assert result == {"categories": len(SEED_ACTIVITIES), "sub_categories": expected_subs}
    assert again == {"categories": 0, "sub_categories": 0}
    assert overwritten == result

    tree = await activities.categories_with_sub_categories()
    assert len(tree) == len(SEED_ACTIVITIES)
    assert all(len(category.sub_categories) == 6 for category in tree)


@pytest.mark.anyio
async def test_category_crud(temp_session_factory) -> None:
    activities = ActivityService(temp_session_factory)

    category = await activities.create_category(
        {"name": "Hobbies", "emoji": "🎲", "color": "#FFAA00", "dark_color": "#AA5500"}
    )
    assert category.is_active is True
    with pytest.raises(ConflictError):
        await activities.create_category(
            {"name": "Hobbies", "emoji": "🎲", "color": "#FFAA00", "dark_color": "#AA5500"}
        )

    updated = await activities.update_category(category.id, {"description": "Free time"})
    assert updated.description == "Free time"
    with pytest.raises(NotFoundError):
        await activities.update_category(9999, {"description": "x"})

    listed = await activities.list_categories(search="hob")
    assert [item.name for item in listed.items] == ["Hobbies"]


@pytest.mark.anyio
async def test_sub_category_crud_and_filters(temp_session_factory) -> None:
    activities = ActivityService(temp_session_factory)
    category = await activities.create_category(
        {"name": "Hobbies", "emoji": "🎲", "color": "#FFAA00", "dark_color": "#AA5500"}
    )

    chess = await activities.create_sub_category(
        _sub(category.id, "Chess")
    )
    created = await activities.create_sub_categories(
        [
            _sub(category.id, "Painting"),
            _sub(category.id, "Knitting", is_active=False),
        ]
    )
    assert len(created) == 2

    with pytest.raises(ConflictError):
        await activities.create_sub_category(
            _sub(category.id, "Chess")
        )
    with pytest.raises(NotFoundError):
        await activities.create_sub_category(_sub(9999, "Go"))
    with pytest.raises(InvalidRequestError):
        await activities.create_sub_categories(
            [
                _sub(category.id, "Go"),
                _sub(9999, "Shogi"),
            ]
        )

    active = await activities.sub_categories_for(category.id, is_active=True)
    assert [item.name for item in active] == ["Chess", "Painting"]
    with pytest.raises(NotFoundError):
        await activities.sub_categories_for(9999)

    tree = await activities.categories_with_sub_categories(is_active=True)
    assert [item.name for item in tree[0].sub_categories] == ["Chess", "Painting"]

    renamed = await activities.update_sub_category(chess.id, {"name": "Speed chess"})
    assert renamed.name == "Speed chess"
    with pytest.raises(NotFoundError):
        await activities.update_sub_category(chess.id, {"category_id": 9999})

    page = await activities.list_sub_categories(category_id=category.id, is_active=False)
    assert [item.name for item in page.items] == ["Knitting"]
    assert (await activities.get_sub_category(chess.id)).category_id == category.id
