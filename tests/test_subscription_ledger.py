from datetime import timedelta
import logging
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utcnow
from app.core.security import AuthContext
from app.models import Dream, Payment, UserPlan
from app.schemas.dream import DreamCreate
from app.services import dream_service, subscription_service


def _ctx(account) -> AuthContext:
    return AuthContext(user_id=uuid.UUID(account.id), email=account.email, role=account.role)


def test_count_letters_uses_code_points():
    assert subscription_service.count_letters("abc") == 3
    assert subscription_service.count_letters("رأيت") == 4
    # e + 결합 악센트 → NFC 후 한 글자
    assert subscription_service.count_letters("e\u0301") == 1
    assert subscription_service.count_letters("") == 0
    assert subscription_service.count_letters(None) == 0


async def test_letter_quota_scenario(client, register, create_plan, subscribe, create_dream):
    plan = await create_plan(letter_quota=10)
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)

    first = await create_dream(dreamer, description="1234567")
    assert first.status_code == 201

    second = await create_dream(dreamer, description="12345")
    assert second.status_code == 403
    assert second.json()["code"] == "QUOTA_EXCEEDED"

    usage = (await client.get("/plans/me", headers=dreamer.headers)).json()["usage"]
    assert usage["letters_used"] == 7
    assert usage["letters_remaining"] == 3
    assert usage["dreams_used"] == 1

    third = await create_dream(dreamer, description="123")
    assert third.status_code == 201


async def test_no_subscription_is_402(register, create_dream):
    dreamer = await register("dreamer")
    resp = await create_dream(dreamer)
    assert resp.status_code == 402
    assert resp.json()["code"] == "NO_ACTIVE_SUBSCRIPTION"


async def test_admin_bypasses_quota(make_account, create_dream, caplog):
    caplog.set_level(logging.INFO, logger="app.services.subscription_service")
    admin = await make_account("admin")
    resp = await create_dream(admin, description="x" * 50000)
    assert resp.status_code == 201
    assert "관리자 한도 면제" in caplog.text


async def test_max_dreams_reached(register, create_plan, subscribe, create_dream):
    plan = await create_plan(max_dreams=1)
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)

    assert (await create_dream(dreamer)).status_code == 201
    resp = await create_dream(dreamer)
    assert resp.status_code == 403
    assert resp.json()["code"] == "MAX_DREAMS_REACHED"


async def test_audio_quota_exceeded(register, create_plan, subscribe, create_dream):
    plan = await create_plan(audio_minutes_quota=1)
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)

    resp = await create_dream(dreamer, audioMinutes=2)
    assert resp.status_code == 403
    assert resp.json()["code"] == "AUDIO_QUOTA_EXCEEDED"

    assert (await create_dream(dreamer, audioMinutes=1)).status_code == 201


async def test_denied_reservation_leaves_counters(db, register, create_plan, subscribe):
    plan = await create_plan(letter_quota=5)
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)

    decision = await subscription_service.check_and_reserve(db, _ctx(dreamer), 6)
    assert decision.allowed is False
    assert decision.reason == subscription_service.QUOTA_EXCEEDED

    sub = await subscription_service.get_effective_subscription(db, uuid.UUID(dreamer.id))
    assert sub.letters_used == 0


async def test_failed_dream_write_rolls_back_debit(db, session_factory, register, create_plan, subscribe, monkeypatch):
    plan = await create_plan(letter_quota=10)
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)
    user_id = uuid.UUID(dreamer.id)

    async def _failing_commit(self):
        # 차감 UPDATE 직후 꿈 INSERT가 커밋되지 못한 상황
        sub = await subscription_service.get_effective_subscription(self, user_id)
        assert sub.letters_used == 7
        raise RuntimeError("commit failed")

    monkeypatch.setattr(AsyncSession, "commit", _failing_commit)
    with pytest.raises(RuntimeError):
        await dream_service.create_dream(db, _ctx(dreamer), DreamCreate(title="꿈", description="1234567"))
    await db.rollback()
    monkeypatch.undo()

    async with session_factory() as session:
        sub = await subscription_service.get_effective_subscription(session, user_id)
        assert sub.letters_used == 0
        dreams = await session.scalar(select(func.count(Dream.id)).where(Dream.dreamer_id == user_id))
        assert dreams == 0


async def test_unlimited_plan_allows_large_content(register, create_plan, subscribe, create_dream):
    plan = await create_plan(letter_quota=None, max_dreams=None)
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)

    resp = await create_dream(dreamer, description="꿈" * 20000)
    assert resp.status_code == 201


async def test_trial_expires_after_seven_days(db, register, trial_plan):
    await trial_plan()
    dreamer = await register("dreamer")
    user_id = uuid.UUID(dreamer.id)

    now = utcnow()
    assert await subscription_service.get_effective_subscription(db, user_id, now=now) is not None
    later = now + timedelta(days=7, minutes=1)
    assert await subscription_service.get_effective_subscription(db, user_id, now=later) is None

    decision = await subscription_service.check_and_reserve(db, _ctx(dreamer), 1, now=later)
    assert decision.allowed is False
    assert decision.reason == subscription_service.NO_ACTIVE_SUBSCRIPTION


async def test_activation_is_idempotent_per_reference(db, register, create_plan):
    plan = await create_plan(price=19.99, duration_days=30)
    dreamer = await register("dreamer")
    user_id = uuid.UUID(dreamer.id)

    user_plan, created = await subscription_service.activate_subscription(
        db, user_id, plan, reference="cs_dup", provider="stripe",
    )
    await db.commit()
    assert created is True
    assert user_plan.expires_at - user_plan.started_at == timedelta(days=30)

    again, created_again = await subscription_service.activate_subscription(
        db, user_id, plan, reference="cs_dup", provider="stripe",
    )
    await db.commit()
    assert again is None
    assert created_again is False

    count = (await db.execute(select(func.count(Payment.id)).where(Payment.reference == "cs_dup"))).scalar()
    assert count == 1


async def test_single_active_subscription(db, client, register, trial_plan, create_plan, subscribe):
    await trial_plan()
    paid = await create_plan(letter_quota=100)
    dreamer = await register("dreamer")

    data = await subscribe(dreamer, paid.id)
    assert data["success"] is True
    assert data["payment_reference"].startswith("SUB-")
    assert data["subscription"]["plan_id"] == str(paid.id)

    active = (await db.execute(
        select(func.count(UserPlan.id)).where(UserPlan.user_id == uuid.UUID(dreamer.id), UserPlan.is_active == True)
    )).scalar()
    assert active == 1

    me = (await client.get("/auth/me", headers=dreamer.headers)).json()
    assert me["profile"]["current_plan_id"] == str(paid.id)


async def test_resubscribe_resets_counters(client, register, create_plan, subscribe, create_dream):
    plan = await create_plan(letter_quota=10)
    dreamer = await register("dreamer")
    await subscribe(dreamer, plan.id)
    assert (await create_dream(dreamer, description="123456789")).status_code == 201

    await subscribe(dreamer, plan.id)
    usage = (await client.get("/plans/me", headers=dreamer.headers)).json()["usage"]
    assert usage["letters_used"] == 0


async def test_subscribe_inactive_plan_rejected(client, register, create_plan):
    plan = await create_plan(is_active=False)
    dreamer = await register("dreamer")
    resp = await client.post("/plans/subscribe", json={"planId": str(plan.id)}, headers=dreamer.headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "PLAN_INACTIVE"
