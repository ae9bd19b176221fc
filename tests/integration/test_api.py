from __future__ import annotations

import logging

from fastapi.testclient import TestClient


def _seed_and_assign(client: TestClient, admin_headers, auth_headers) -> dict[str, int]:
    seeded = client.post("/api/v1/moods/seed", headers=admin_headers)
    assert seeded.status_code == 200
    assigned = client.post("/api/v1/moods/user-moods/assign-defaults", headers=auth_headers)
    assert assigned.status_code == 201
    return {item["mood"]["name"]: item["mood_id"] for item in assigned.json()}


def test_health_endpoint(test_client: TestClient) -> None:
    response = test_client.get("/healthz")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["version"] == "0.1.0-test"


def test_readyz_reports_database(test_client: TestClient) -> None:
    response = test_client.get("/readyz")
    assert response.status_code == 200
    body = response.json()
    assert body["ready"] is True
    assert body["db"]["ok"] is True


def test_metrics_endpoint(test_client: TestClient) -> None:
    test_client.get("/healthz")
    response = test_client.get("/metrics")
    assert response.status_code == 200
    assert "moodzie_requests_total" in response.text


def test_auth_required_for_protected_routes(test_client: TestClient) -> None:
    assert test_client.get("/api/v1/mood-logs/streak").status_code == 401
    assert test_client.post("/api/v1/mood-logs", json={"mood_id": 1}).status_code == 401
    response = test_client.get(
        "/api/v1/users/me", headers={"Authorization": "Bearer not-a-session"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "authentication required"


def test_admin_routes_require_admin_token(test_client: TestClient, auth_headers) -> None:
    assert test_client.post("/api/v1/moods/seed").status_code == 401
    assert test_client.post("/api/v1/moods/seed", headers=auth_headers).status_code == 401
    response = test_client.post(
        "/api/v1/moods/seed", headers={"X-Moodzie-Admin-Token": "wrong"}
    )
    assert response.status_code == 401


def test_signup_login_and_profile(test_client: TestClient) -> None:
    payload = {
        "email": "Grace@Example.com",
        "full_name": "Grace Hopper",
        "password": "cobol-rules",
        "password_confirm": "cobol-rules",
    }
    created = test_client.post("/api/v1/auth/signup", json=payload)
    assert created.status_code == 201
    body = created.json()
    assert body["user"]["email"] == "grace@example.com"
    assert body["token_type"] == "bearer"
    assert "password_hash" not in body["user"]
    assert test_client.cookies.get("moodzie_session") == body["access_token"]

    # the session cookie alone authenticates
    me = test_client.get("/api/v1/users/me")
    assert me.status_code == 200
    assert me.json()["full_name"] == "Grace Hopper"
    test_client.cookies.clear()

    duplicate = test_client.post("/api/v1/auth/signup", json=payload)
    assert duplicate.status_code == 409

    mismatch = test_client.post(
        "/api/v1/auth/signup",
        json={**payload, "email": "other@example.com", "password_confirm": "different"},
    )
    assert mismatch.status_code == 400

    short = test_client.post(
        "/api/v1/auth/signup",
        json={**payload, "email": "short@example.com", "password": "short", "password_confirm": "short"},
    )
    assert short.status_code == 422

    wrong = test_client.post(
        "/api/v1/auth/login", json={"email": "grace@example.com", "password": "nope-nope"}
    )
    assert wrong.status_code == 401

    login = test_client.post(
        "/api/v1/auth/login", json={"email": "grace@example.com", "password": "cobol-rules"}
    )
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
    test_client.cookies.clear()

    renamed = test_client.patch("/api/v1/users/me", json={"full_name": "Rear Admiral"}, headers=headers)
    assert renamed.status_code == 200
    assert renamed.json()["full_name"] == "Rear Admiral"


def test_refresh_and_logout(test_client: TestClient) -> None:
    created = test_client.post(
        "/api/v1/auth/signup",
        json={
            "email": "ada@example.com",
            "full_name": "Ada",
            "password": "correct-horse",
            "password_confirm": "correct-horse",
        },
    ).json()
    test_client.cookies.clear()

    refreshed = test_client.post(
        "/api/v1/auth/refresh", json={"refresh_token": created["refresh_token"]}
    )
    assert refreshed.status_code == 200
    headers = {"Authorization": f"Bearer {refreshed.json()['access_token']}"}
    test_client.cookies.clear()

    reused = test_client.post("/api/v1/auth/refresh", json={"refresh_token": created["refresh_token"]})
    assert reused.status_code == 401

    logout = test_client.post("/api/v1/auth/logout", headers=headers)
    assert logout.status_code == 200
    assert test_client.get("/api/v1/users/me", headers=headers).status_code == 401


def test_password_reset_flow(test_client: TestClient, auth_headers, caplog) -> None:
    unknown = test_client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})
    assert unknown.status_code == 404

    with caplog.at_level(logging.INFO, logger="moodzie.app.services.users"):
        issued = test_client.post("/api/v1/auth/forgot-password", json={"email": "ada@example.com"})
    assert issued.status_code == 200
    token = next(
        record.extra_fields["reset_token"]
        for record in caplog.records
        if record.getMessage() == "password reset issued"
    )

    assert test_client.get(f"/api/v1/auth/verify/{token}").status_code == 200
    assert test_client.get("/api/v1/auth/verify/bogus").status_code == 400

    reset = test_client.patch(
        f"/api/v1/auth/reset-password/{token}",
        json={"password": "fresh-horse", "password_confirm": "fresh-horse"},
    )
    assert reset.status_code == 200
    test_client.cookies.clear()
    assert test_client.get("/api/v1/users/me", headers=auth_headers).status_code == 401

    login = test_client.post(
        "/api/v1/auth/login", json={"email": "ada@example.com", "password": "fresh-horse"}
    )
    assert login.status_code == 200


def test_update_password_and_delete_account(test_client: TestClient, auth_headers) -> None:
    wrong = test_client.patch(
        "/api/v1/auth/update-my-password",
        json={"current_password": "nope", "password": "brand-new-1", "password_confirm": "brand-new-1"},
        headers=auth_headers,
    )
    assert wrong.status_code == 401

    updated = test_client.patch(
        "/api/v1/auth/update-my-password",
        json={
            "current_password": "correct-horse",
            "password": "brand-new-1",
            "password_confirm": "brand-new-1",
        },
        headers=auth_headers,
    )
    assert updated.status_code == 200
    test_client.cookies.clear()
    headers = {"Authorization": f"Bearer {updated.json()['access_token']}"}

    deleted = test_client.delete("/api/v1/auth/delete-me", headers=headers)
    assert deleted.status_code == 204
    assert test_client.get("/api/v1/users/me", headers=headers).status_code == 401


def test_mood_catalog_and_user_moods(test_client: TestClient, admin_headers, make_user) -> None:
    ada = make_user("ada@example.com")
    grace = make_user("grace@example.com")

    assert test_client.post("/api/v1/moods/user-moods/assign-defaults", headers=ada).status_code == 404

    mood_ids = _seed_and_assign(test_client, admin_headers, ada)
    assert list(mood_ids) == ["Rad", "Good", "Meh", "Bad", "Awful"]
    again = test_client.post("/api/v1/moods/user-moods/assign-defaults", headers=ada)
    assert again.status_code == 409

    listing = test_client.get("/api/v1/moods", params={"type": "purchase", "limit": 3})
    assert listing.status_code == 200
    body = listing.json()
    assert body["meta"]["total_items"] == 5
    assert body["meta"]["total_pages"] == 2
    assert len(body["items"]) == 3

    created = test_client.post(
        "/api/v1/moods",
        json={"name": "Sleepy", "emoji": "😴", "colour": "#CCCCFF", "dark_colour": "#6666AA"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    assert created.json()["type"] == "default"
    bad_colour = test_client.post(
        "/api/v1/moods",
        json={"name": "Odd", "emoji": "🙃", "colour": "red", "dark_colour": "#6666AA"},
        headers=admin_headers,
    )
    assert bad_colour.status_code == 422
    assert test_client.get("/api/v1/moods/9999").status_code == 404

    owned = test_client.get("/api/v1/moods/user-moods", headers=ada).json()
    assert owned["meta"]["total_items"] == 5
    meh = next(item for item in owned["items"] if item["mood"]["name"] == "Meh")

    selected = test_client.patch(
        f"/api/v1/moods/user-moods/{meh['id']}", json={"is_selected": True}, headers=ada
    )
    assert selected.status_code == 200
    assert selected.json()["is_selected"] is True
    owned = test_client.get("/api/v1/moods/user-moods", headers=ada).json()
    assert [item["mood"]["name"] for item in owned["items"] if item["is_selected"]] == ["Meh"]

    assert test_client.get(f"/api/v1/moods/user-moods/{meh['id']}", headers=grace).status_code == 403

    grace_id = test_client.get("/api/v1/users/me", headers=grace).json()["id"]
    granted = test_client.post(
        "/api/v1/moods/user-moods",
        json={"user_id": grace_id, "mood_id": created.json()["id"], "acquisition_type": "reward"},
        headers=admin_headers,
    )
    assert granted.status_code == 201
    assert granted.json()["mood"]["name"] == "Sleepy"


def test_activities_catalog(test_client: TestClient, admin_headers) -> None:
    seeded = test_client.post("/api/v1/activities/seed", headers=admin_headers)
    assert seeded.status_code == 200
    assert seeded.json()["categories"] == 6

    tree = test_client.get("/api/v1/activities/categories/with-sub-categories").json()
    assert len(tree) == 6
    category_id = tree[0]["id"]
    assert len(tree[0]["sub_categories"]) == 6

    created = test_client.post(
        "/api/v1/activities/sub-categories",
        json={
            "category_id": category_id,
            "name": "Pottery",
            "emoji": "🏺",
            "color": "#AA7744",
            "dark_color": "#553311",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    children = test_client.get(f"/api/v1/activities/categories/{category_id}/sub-categories")
    assert len(children.json()) == 7

    bulk = test_client.post(
        "/api/v1/activities/sub-categories/bulk",
        json={
            "sub_categories": [
                {
                    "category_id": 9999,
                    "name": "Ghost",
                    "emoji": "👻",
                    "color": "#FFFFFF",
                    "dark_color": "#000000",
                },
                {
                    "category_id": category_id,
                    "name": "Origami",
                    "emoji": "🦢",
                    "color": "#FFFFFF",
                    "dark_color": "#000000",
                },
            ]
        },
        headers=admin_headers,
    )
    assert bulk.status_code == 400

    patched = test_client.patch(
        f"/api/v1/activities/categories/{category_id}",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert patched.json()["is_active"] is False
    active = test_client.get("/api/v1/activities/categories", params={"is_active": True}).json()
    assert active["meta"]["total_items"] == 5


def test_mood_log_flow(test_client: TestClient, admin_headers, make_user) -> None:
    ada = make_user("ada@example.com")
    grace = make_user("grace@example.com")
    mood_ids = _seed_and_assign(test_client, admin_headers, ada)
    test_client.post("/api/v1/activities/seed", headers=admin_headers)
    category_id = test_client.get("/api/v1/activities/categories/with-sub-categories").json()[0]["id"]

    empty = test_client.get("/api/v1/mood-logs/streak", headers=ada)
    assert empty.status_code == 200
    assert empty.json()["current_streak"] == 0
    assert empty.json()["is_active"] is False

    created = test_client.post(
        "/api/v1/mood-logs",
        json={"mood_id": mood_ids["Good"], "notes": "sunny walk", "category_ids": [category_id]},
        headers=ada,
    )
    assert created.status_code == 201
    log = created.json()
    assert log["user_mood"]["mood"]["name"] == "Good"
    assert [category["id"] for category in log["categories"]] == [category_id]
    test_client.post("/api/v1/mood-logs", json={"mood_id": mood_ids["Good"]}, headers=ada)
    test_client.post("/api/v1/mood-logs", json={"mood_id": mood_ids["Bad"]}, headers=ada)

    not_owned = test_client.post("/api/v1/mood-logs", json={"mood_id": 9999}, headers=ada)
    assert not_owned.status_code == 400
    invalid = test_client.post("/api/v1/mood-logs", json={"notes": "no mood"}, headers=ada)
    assert invalid.status_code == 422

    streak = test_client.get("/api/v1/mood-logs/streak", headers=ada).json()
    assert streak["current_streak"] == 1
    assert streak["longest_streak"] == 1
    assert streak["is_active"] is True

    listing = test_client.get(
        "/api/v1/mood-logs", params={"category_id": category_id}, headers=ada
    ).json()
    assert listing["meta"]["total_items"] == 1
    assert listing["items"][0]["notes"] == "sunny walk"
    bad_range = test_client.get(
        "/api/v1/mood-logs",
        params={"start_date": "2025-03-12", "end_date": "2025-03-10"},
        headers=ada,
    )
    assert bad_range.status_code == 400

    assert test_client.get(f"/api/v1/mood-logs/{log['id']}", headers=grace).status_code == 403
    assert test_client.get("/api/v1/mood-logs/9999", headers=ada).status_code == 404

    patched = test_client.patch(
        f"/api/v1/mood-logs/{log['id']}", json={"notes": "edited", "is_public": True}, headers=ada
    )
    assert patched.status_code == 200
    assert patched.json()["notes"] == "edited"
    assert patched.json()["is_public"] is True

    info = test_client.get("/api/v1/mood-logs/moods-info", headers=ada).json()
    assert info["total_logs"] == 3
    good = next(item for item in info["moods"] if item["name"] == "Good")
    assert good["count"] == 2
    assert good["percentage"] == 67

    stats = test_client.get("/api/v1/mood-logs/stats/day", headers=ada)
    assert stats.status_code == 200
    body = stats.json()
    assert body["period"] == "day"
    assert len(body["data"]) == 24
    assert body["total"] == 3

    week = test_client.get("/api/v1/mood-logs/stats/week", headers=ada).json()
    assert [bucket["key"] for bucket in week["data"]][0] == "Monday"
    assert week["total"] == 3

    summary = test_client.get("/api/v1/mood-logs/summary/month", headers=ada)
    assert summary.status_code == 200
    body = summary.json()
    assert body["total_logs"] == 3
    assert body["mood_counts"]["Good"]["percentage"] == 67
    assert body["mood_counts"]["Bad"]["count"] == 1
    assert body["time_range"]["start"].endswith("-01")
    assert len(body["categories"]) >= 28

    assert test_client.get("/api/v1/mood-logs/stats/year", headers=ada).status_code == 422
    other = test_client.get("/api/v1/mood-logs/summary/week", headers=grace).json()
    assert other["total_logs"] == 0


def test_badges(test_client: TestClient, admin_headers, make_user) -> None:
    ada = make_user("ada@example.com")
    grace = make_user("grace@example.com")
    ada_id = test_client.get("/api/v1/users/me", headers=ada).json()["id"]

    created = test_client.post(
        "/api/v1/badges",
        json={
            "name": "First log",
            "description": "Logged a first mood",
            "icon": "/icons/first.png",
            "category": "milestone",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    badge_id = created.json()["id"]

    awarded = test_client.post(
        "/api/v1/badges/award", json={"user_id": ada_id, "badge_id": badge_id}, headers=admin_headers
    )
    assert awarded.status_code == 201
    duplicate = test_client.post(
        "/api/v1/badges/award", json={"user_id": ada_id, "badge_id": badge_id}, headers=admin_headers
    )
    assert duplicate.status_code == 409

    mine = test_client.get("/api/v1/badges/me", headers=ada).json()
    assert [item["badge"]["name"] for item in mine["items"]] == ["First log"]
    assert test_client.get(f"/api/v1/badges/user/{ada_id}", headers=ada).status_code == 200
    assert test_client.get(f"/api/v1/badges/user/{ada_id}", headers=grace).status_code == 403
    assert test_client.get(f"/api/v1/badges/user/{ada_id}", headers=admin_headers).status_code == 200
    assert test_client.get(f"/api/v1/badges/user/{ada_id}").status_code == 401

    listing = test_client.get("/api/v1/badges", params={"category": "milestone"}).json()
    assert listing["meta"]["total_items"] == 1


def test_auth_endpoints_are_throttled(test_client: TestClient) -> None:
    test_client.app.state.rate_limiter.limit = 2
    for index in range(2):
        response = test_client.post("/api/v1/auth/forgot-password", json={"email": f"u{index}@example.com"})
        assert response.status_code == 404
    blocked = test_client.post("/api/v1/auth/forgot-password", json={"email": "u9@example.com"})
    assert blocked.status_code == 429
