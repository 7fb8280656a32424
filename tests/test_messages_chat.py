import pytest


@pytest.fixture
async def thread(register, make_account, create_plan, subscribe, create_dream):
    plan = await create_plan()
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)
    interpreter = await register("interpreter")
    admin = await make_account("admin")
    dream = (await create_dream(dreamer)).json()
    return {"dreamer": dreamer, "interpreter": interpreter, "admin": admin, "dream": dream}


async def _assign(client, thread):
    resp = await client.patch(
        f"/dreams/{thread['dream']['id']}",
        json={"interpreterId": thread["interpreter"].id},
        headers=thread["admin"].headers,
    )
    assert resp.status_code == 200


async def test_message_requires_assigned_interpreter(client, thread):
    dream_id = thread["dream"]["id"]
    resp = await client.post(
        "/messages",
        json={"dreamId": dream_id, "content": "안녕하세요"},
        headers=thread["dreamer"].headers,
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "NO_INTERPRETER_ASSIGNED"

    resp = await client.get("/messages", params={"dream_id": dream_id}, headers=thread["dreamer"].headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "NO_INTERPRETER_ASSIGNED"


async def test_super_admin_may_message_unassigned_dream(client, thread, make_account):
    super_admin = await make_account("super_admin")
    resp = await client.post(
        "/messages",
        json={"dreamId": thread["dream"]["id"], "content": "관리자 안내"},
        headers=super_admin.headers,
    )
    assert resp.status_code == 201
    assert resp.json()["sender_id"] == super_admin.id


async def test_message_exchange_after_assignment(client, thread, register):
    await _assign(client, thread)
    dream_id = thread["dream"]["id"]

    first = await client.post(
        "/messages", json={"dreamId": dream_id, "content": "질문"}, headers=thread["dreamer"].headers
    )
    assert first.status_code == 201
    reply = await client.post(
        "/messages", json={"dreamId": dream_id, "content": "답변"}, headers=thread["interpreter"].headers
    )
    assert reply.status_code == 201

    listed = (await client.get("/messages", params={"dream_id": dream_id}, headers=thread["dreamer"].headers)).json()
    assert [m["content"] for m in listed] == ["질문", "답변"]

    outsider = await register("interpreter")
    resp = await client.get("/messages", params={"dream_id": dream_id}, headers=outsider.headers)
    assert resp.status_code == 403

    # 보낸 사람만 삭제
    message_id = first.json()["id"]
    assert (await client.delete(f"/messages/{message_id}", headers=thread["interpreter"].headers)).status_code == 403
    assert (await client.delete(f"/messages/{message_id}", headers=thread["dreamer"].headers)).status_code == 200


async def test_message_requires_content_or_audio(client, thread):
    await _assign(client, thread)
    resp = await client.post(
        "/messages", json={"dreamId": thread["dream"]["id"], "content": "  "}, headers=thread["dreamer"].headers
    )
    assert resp.status_code == 400


async def test_audio_message(client, thread):
    await _assign(client, thread)
    resp = await client.post(
        "/messages",
        json={"dreamId": thread["dream"]["id"], "audio": "data:audio/webm;base64,R0lGODlhAQABAAAAACw="},
        headers=thread["dreamer"].headers,
    )
    assert resp.status_code == 201
    assert resp.json()["message_type"] == "audio"
    assert resp.json()["audio_url"].startswith("/static/audio/")


async def test_request_flow_with_chat(client, thread, register):
    dreamer, interpreter, admin = thread["dreamer"], thread["interpreter"], thread["admin"]

    resp = await client.post(
        "/requests",
        json={"dreamId": thread["dream"]["id"], "title": "해몽 부탁드립니다", "budget": 50},
        headers=dreamer.headers,
    )
    assert resp.status_code == 201
    req = resp.json()
    assert req["status"] == "open"
    assert req["dream"]["id"] == thread["dream"]["id"]

    # 미배정 요청은 해몽가 알림에 공개 요청으로 노출
    notes = (await client.get("/notifications", headers=interpreter.headers)).json()
    assert [r["id"] for r in notes["open_requests"]] == [req["id"]]

    resp = await client.post(
        "/chat", json={"requestId": req["id"], "content": "안녕하세요"}, headers=dreamer.headers
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "NO_INTERPRETER_ASSIGNED"

    # 배정은 관리자만
    resp = await client.patch(
        f"/requests/{req['id']}", json={"interpreterId": interpreter.id}, headers=dreamer.headers
    )
    assert resp.status_code == 403
    resp = await client.patch(
        f"/requests/{req['id']}", json={"interpreterId": interpreter.id}, headers=admin.headers
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "in_progress"

    resp = await client.post(
        "/chat", json={"requestId": req["id"], "content": "안녕하세요"}, headers=dreamer.headers
    )
    assert resp.status_code == 201
    assert resp.json()["is_read"] is False

    notes = (await client.get("/notifications", headers=interpreter.headers)).json()
    assert notes["unread_count"] == 1
    assert notes["open_requests"] == []

    # 보낸 사람 본인 메시지는 안 읽음으로 세지 않는다
    assert (await client.get("/notifications", headers=dreamer.headers)).json()["unread_count"] == 0

    marked = await client.post(f"/chat/{req['id']}/read", headers=interpreter.headers)
    assert marked.status_code == 200
    assert marked.json()["updated"] == 1
    assert (await client.get("/notifications", headers=interpreter.headers)).json()["unread_count"] == 0

    messages = (await client.get("/chat", params={"request_id": req["id"]}, headers=interpreter.headers)).json()
    assert len(messages) == 1
    assert messages[0]["is_read"] is True

    outsider = await register("interpreter")
    resp = await client.get("/chat", params={"request_id": req["id"]}, headers=outsider.headers)
    assert resp.status_code == 403

    done = await client.patch(f"/requests/{req['id']}", json={"status": "completed"}, headers=interpreter.headers)
    assert done.status_code == 200
    assert done.json()["status"] == "completed"
    assert done.json()["completed_at"] is not None


async def test_request_created_on_assigned_dream_is_assigned(client, thread):
    await _assign(client, thread)
    resp = await client.post(
        "/requests",
        json={"dreamId": thread["dream"]["id"], "title": "요청"},
        headers=thread["dreamer"].headers,
    )
    assert resp.status_code == 201
    assert resp.json()["status"] == "assigned"
    assert resp.json()["interpreter_id"] == thread["interpreter"].id


async def test_only_owner_creates_request(client, thread, register):
    stranger = await register("dreamer")
    resp = await client.post(
        "/requests",
        json={"dreamId": thread["dream"]["id"], "title": "남의 꿈"},
        headers=stranger.headers,
    )
    assert resp.status_code == 403


async def test_comments_public_read_and_delete_rules(client, thread, register):
    dream_id = thread["dream"]["id"]
    commenter = await register("dreamer")

    resp = await client.post("/comments", json={"dreamId": dream_id, "content": "좋은 꿈이네요"}, headers=commenter.headers)
    assert resp.status_code == 201
    comment = resp.json()
    assert comment["user"]["id"] == commenter.id

    # 조회는 인증 없이 가능
    listed = await client.get("/comments", params={"dream_id": dream_id})
    assert listed.status_code == 200
    assert [c["id"] for c in listed.json()] == [comment["id"]]

    assert (await client.delete(f"/comments/{comment['id']}", headers=thread["dreamer"].headers)).status_code == 403
    assert (await client.delete(f"/comments/{comment['id']}", headers=commenter.headers)).status_code == 200


async def test_comment_on_missing_dream_is_404(client, register):
    user = await register("dreamer")
    resp = await client.post(
        "/comments",
        json={"dreamId": "00000000-0000-0000-0000-000000000000", "content": "?"},
        headers=user.headers,
    )
    assert resp.status_code == 404


async def test_request_status_cannot_be_null(client, thread):
    req = (await client.post(
        "/requests",
        json={"dreamId": thread["dream"]["id"], "title": "요청"},
        headers=thread["dreamer"].headers,
    )).json()
    resp = await client.patch(f"/requests/{req['id']}", json={"status": None}, headers=thread["dreamer"].headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"


async def test_message_delete_after_unassignment(client, thread):
    await _assign(client, thread)
    dream_id = thread["dream"]["id"]
    sent = await client.post(
        "/messages", json={"dreamId": dream_id, "content": "질문"}, headers=thread["dreamer"].headers
    )
    assert sent.status_code == 201

    resp = await client.patch(f"/dreams/{dream_id}", json={"interpreterId": None}, headers=thread["admin"].headers)
    assert resp.status_code == 200
    assert resp.json()["interpreter_id"] is None

    resp = await client.delete(f"/messages/{sent.json()['id']}", headers=thread["dreamer"].headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "NO_INTERPRETER_ASSIGNED"
