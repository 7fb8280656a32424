import pytest


@pytest.fixture
async def admins(make_account):
    return {
        "super_admin": await make_account("super_admin"),
        "admin": await make_account("admin"),
    }


async def test_plan_listing_hides_inactive(client, create_plan, admins):
    active = await create_plan(name="Basic", price=5)
    await create_plan(name="Legacy", price=1, is_active=False)

    public = (await client.get("/plans")).json()
    assert [p["name"] for p in public] == ["Basic"]
    assert public[0]["id"] == str(active.id)

    # 일반 사용자는 includeInactive를 보내도 무시된다
    anon = (await client.get("/plans", params={"includeInactive": "true"})).json()
    assert len(anon) == 1

    full = (await client.get(
        "/plans", params={"includeInactive": "true"}, headers=admins["admin"].headers
    )).json()
    assert {p["name"] for p in full} == {"Basic", "Legacy"}


async def test_create_plan_super_admin_only(client, admins, register):
    body = {
        "name": "Gold",
        "price": 19.99,
        "currency": "USD",
        "durationDays": 30,
        "letterQuota": 20000,
        "maxDreams": 30,
        "features": ["30 dreams"],
    }
    dreamer = await register("dreamer")
    assert (await client.post("/plans", json=body, headers=dreamer.headers)).status_code == 403
    assert (await client.post("/plans", json=body, headers=admins["admin"].headers)).status_code == 403

    resp = await client.post("/plans", json=body, headers=admins["super_admin"].headers)
    assert resp.status_code == 201
    plan = resp.json()
    assert plan["name"] == "Gold"
    assert plan["letter_quota"] == 20000
    assert plan["duration_days"] == 30
    assert plan["is_active"] is True

    dup = await client.post("/plans", json=body, headers=admins["super_admin"].headers)
    assert dup.status_code == 409
    assert dup.json()["code"] == "PLAN_EXISTS"


async def test_trial_plan_requires_duration(client, admins):
    resp = await client.post(
        "/plans",
        json={"name": "Trial", "price": 0, "isTrial": True},
        headers=admins["super_admin"].headers,
    )
    assert resp.status_code == 400


async def test_update_plan_limits_but_not_name(client, create_plan, admins):
    plan = await create_plan(name="Basic", letter_quota=100)

    renamed = await client.patch(
        f"/plans/{plan.id}", json={"name": "Renamed"}, headers=admins["admin"].headers
    )
    assert renamed.status_code == 400

    resp = await client.patch(
        f"/plans/{plan.id}", json={"letterQuota": 500, "isActive": False}, headers=admins["admin"].headers
    )
    assert resp.status_code == 200
    assert resp.json()["letter_quota"] == 500
    assert resp.json()["is_active"] is False
    assert resp.json()["name"] == "Basic"


async def test_update_plan_forbidden_for_dreamer(client, create_plan, register):
    plan = await create_plan()
    dreamer = await register("dreamer")
    resp = await client.patch(f"/plans/{plan.id}", json={"letterQuota": 1}, headers=dreamer.headers)
    assert resp.status_code == 403


async def test_admin_stats(client, admins, register, create_plan, subscribe, create_dream):
    plan = await create_plan(price=10)
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)
    await create_dream(dreamer)
    await register("interpreter")

    dreamer_resp = await client.get("/admin/stats", headers=dreamer.headers)
    assert dreamer_resp.status_code == 403

    stats = (await client.get("/admin/stats", headers=admins["admin"].headers)).json()
    assert stats["users_by_role"]["dreamer"] == 1
    assert stats["users_by_role"]["super_admin"] == 1
    assert stats["users_by_role"]["admin"] == 1
    assert stats["users_by_role"]["interpreter"] == 1
    assert stats["total_users"] == 4
    assert stats["total_dreams"] == 1
    assert stats["dreams_by_status"]["new"] == 1
    assert stats["total_plans"] == 1
    assert stats["active_subscriptions"] == 1
    assert stats["succeeded_payments"] == 1
    assert stats["total_revenue"] == pytest.approx(10)


async def test_list_users_and_interpreters(client, admins, register):
    await register("dreamer")
    interpreter = await register("interpreter")

    users = (await client.get("/admin/users", params={"role": "dreamer"}, headers=admins["admin"].headers)).json()
    assert len(users) == 1
    assert users[0]["role"] == "dreamer"

    interpreters = (await client.get("/admin/interpreters", headers=admins["admin"].headers)).json()
    assert [p["id"] for p in interpreters] == [interpreter.id]


async def test_role_change_is_logged(client, admins, register):
    target = await register("dreamer")

    forbidden = await client.patch(
        f"/admin/users/{target.id}", json={"role": "interpreter"}, headers=admins["admin"].headers
    )
    assert forbidden.status_code == 403

    resp = await client.patch(
        f"/admin/users/{target.id}", json={"role": "interpreter"}, headers=admins["super_admin"].headers
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "interpreter"

    logs = (await client.get("/admin/logs", headers=admins["super_admin"].headers)).json()
    assert logs[0]["action"] == "role_change"
    assert logs[0]["target_id"] == target.id
    assert logs[0]["admin_id"] == admins["super_admin"].id
    assert logs[0]["details"]["previous_role"] == "dreamer"

    assert (await client.get("/admin/logs", headers=admins["admin"].headers)).status_code == 403


async def test_make_super_admin(client, admins, register):
    target = await register("interpreter")
    resp = await client.post(
        "/admin/make-super-admin", json={"userId": target.id}, headers=admins["super_admin"].headers
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "super_admin"


async def test_admin_user_update_unknown_user(client, admins):
    resp = await client.patch(
        "/admin/users/00000000-0000-0000-0000-000000000000",
        json={"role": "admin"},
        headers=admins["super_admin"].headers,
    )
    assert resp.status_code == 404


@pytest.mark.parametrize("field", ["isActive", "price", "currency", "scope", "durationDays", "isTrial"])
async def test_update_plan_rejects_null_for_required_fields(client, create_plan, admins, field):
    plan = await create_plan(name="Basic")
    resp = await client.patch(f"/plans/{plan.id}", json={field: None}, headers=admins["super_admin"].headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"

    listed = (await client.get("/plans")).json()
    assert [p["name"] for p in listed] == ["Basic"]
