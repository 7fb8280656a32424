async def test_seed_and_publish_pages(client, make_account):
    super_admin = await make_account("super_admin")

    assert (await client.get("/pages/about")).status_code == 404

    seeded = await client.post("/admin/pages/seed", headers=super_admin.headers)
    assert seeded.status_code == 200
    assert set(seeded.json()["created"]) == {"about", "terms", "guide", "support", "good-news"}

    again = await client.post("/admin/pages/seed", headers=super_admin.headers)
    assert again.json()["created"] == []

    page = await client.get("/pages/about")
    assert page.status_code == 200
    assert page.json()["page_key"] == "about"
    assert page.json()["metadata"]["seoDescription"]

    resp = await client.patch(
        "/admin/pages/about",
        json={"isPublished": False, "title": "About us"},
        headers=super_admin.headers,
    )
    assert resp.status_code == 200
    assert resp.json()["is_published"] is False

    assert (await client.get("/pages/about")).status_code == 404
    hidden = await client.get("/admin/pages/about", headers=super_admin.headers)
    assert hidden.status_code == 200
    assert hidden.json()["title"] == "About us"

    listed = (await client.get("/admin/pages", headers=super_admin.headers)).json()
    assert len(listed) == 5


async def test_page_admin_requires_super_admin(client, make_account):
    admin = await make_account("admin")
    assert (await client.get("/admin/pages", headers=admin.headers)).status_code == 403
    assert (await client.post("/admin/pages/seed", headers=admin.headers)).status_code == 403


async def test_profile_update(client, register):
    dreamer = await register("dreamer")
    resp = await client.patch(
        "/profile/update", json={"fullName": "New Name", "bio": "hello"}, headers=dreamer.headers
    )
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "New Name"
    assert resp.json()["bio"] == "hello"


async def test_availability_interpreter_only(client, register):
    dreamer = await register("dreamer")
    interpreter = await register("interpreter")

    resp = await client.patch("/profile/availability", json={"isAvailable": False}, headers=dreamer.headers)
    assert resp.status_code == 403

    resp = await client.patch("/profile/availability", json={"isAvailable": False}, headers=interpreter.headers)
    assert resp.status_code == 200
    assert resp.json()["is_available"] is False


async def test_avatar_upload(client, register):
    dreamer = await register("dreamer")
    resp = await client.post(
        "/profile/upload-avatar",
        json={"avatar": "data:image/png;base64,iVBORw0KGgoAAAANSUhEUg=="},
        headers=dreamer.headers,
    )
    assert resp.status_code == 200
    assert resp.json()["avatar_url"].startswith("/static/avatars/")
    assert resp.json()["avatar_url"].endswith(".png")


async def test_delete_account_cascades(client, register, create_plan, subscribe, create_dream):
    plan = await create_plan()
    dreamer = await register("dreamer", email="leaving@example.com")
    await subscribe(dreamer, plan.id)
    dream = (await create_dream(dreamer)).json()

    resp = await client.delete("/profile/account", headers=dreamer.headers)
    assert resp.status_code == 200

    login = await client.post("/auth/login", json={"email": "leaving@example.com", "password": "secret123"})
    assert login.status_code == 401

    comments = await client.get("/comments", params={"dream_id": dream["id"]})
    assert comments.json() == []


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["database"] == "connected"
