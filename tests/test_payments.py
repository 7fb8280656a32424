from types import SimpleNamespace
import hashlib
import hmac
import json
import time

import pytest
import stripe

WEBHOOK_SECRET = "whsec_test_secret"


def _signature(payload: str, timestamp: int = None, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def _checkout_event(session_id: str, user_id: str, plan_id: str, amount_total: int = 1999) -> str:
    return json.dumps({
        "id": f"evt_{session_id}",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": "paid",
                "amount_total": amount_total,
                "currency": "usd",
                "customer_email": "buyer@example.com",
                "metadata": {"user_id": user_id, "plan_id": plan_id},
            }
        },
    })


async def _post_webhook(client, payload: str, signature: str = None):
    headers = {"content-type": "application/json"}
    if signature is not None:
        headers["stripe-signature"] = signature
    return await client.post("/payments/webhook", content=payload.encode("utf-8"), headers=headers)


@pytest.fixture
async def buyer(register, create_plan):
    plan = await create_plan(name="Pro", price=19.99, currency="USD", duration_days=30, letter_quota=20000)
    dreamer = await register("dreamer")
    return dreamer, plan


async def test_webhook_activates_subscription_once(client, buyer):
    dreamer, plan = buyer
    payload = _checkout_event("cs_123", dreamer.id, str(plan.id))

    first = await _post_webhook(client, payload, _signature(payload))
    assert first.status_code == 200
    assert first.json() == {"received": True}

    second = await _post_webhook(client, payload, _signature(payload))
    assert second.status_code == 200

    history = (await client.get("/payments/history", headers=dreamer.headers)).json()
    assert len(history) == 1
    payment = history[0]
    assert payment["reference"] == "cs_123"
    assert payment["status"] == "succeeded"
    assert payment["provider"] == "stripe"
    assert payment["plan_name"] == "Pro"
    assert payment["amount"] == pytest.approx(19.99)
    assert payment["currency"] == "USD"

    sub = (await client.get("/plans/me", headers=dreamer.headers)).json()
    assert sub["plan_id"] == str(plan.id)
    assert sub["is_active"] is True


async def test_webhook_bad_signature_has_no_effect(client, buyer):
    dreamer, plan = buyer
    payload = _checkout_event("cs_bad", dreamer.id, str(plan.id))

    resp = await _post_webhook(client, payload, _signature(payload, secret="whsec_wrong"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_SIGNATURE"

    assert (await client.get("/payments/history", headers=dreamer.headers)).json() == []
    assert (await client.get("/plans/me", headers=dreamer.headers)).json() is None


async def test_webhook_missing_signature(client, buyer):
    dreamer, plan = buyer
    payload = _checkout_event("cs_nosig", dreamer.id, str(plan.id))
    resp = await _post_webhook(client, payload)
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_SIGNATURE"


async def test_webhook_stale_timestamp_rejected(client, buyer):
    dreamer, plan = buyer
    payload = _checkout_event("cs_old", dreamer.id, str(plan.id))
    resp = await _post_webhook(client, payload, _signature(payload, timestamp=int(time.time()) - 3600))
    assert resp.status_code == 400


async def test_webhook_ignores_unknown_events(client):
    payload = json.dumps({"id": "evt_x", "type": "customer.created", "data": {"object": {"id": "cus_1"}}})
    resp = await _post_webhook(client, payload, _signature(payload))
    assert resp.status_code == 200


async def test_payment_failed_is_recorded(client, buyer):
    dreamer, plan = buyer
    payload = json.dumps({
        "id": "evt_fail",
        "type": "payment_intent.payment_failed",
        "data": {
            "object": {
                "id": "pi_failed_1",
                "amount": 1999,
                "currency": "usd",
                "metadata": {"user_id": dreamer.id, "plan_id": str(plan.id)},
                "last_payment_error": {"message": "card declined"},
            }
        },
    })
    resp = await _post_webhook(client, payload, _signature(payload))
    assert resp.status_code == 200

    history = (await client.get("/payments/history", headers=dreamer.headers)).json()
    assert [p["status"] for p in history] == ["failed"]
    assert (await client.get("/plans/me", headers=dreamer.headers)).json() is None


async def test_create_checkout_session(client, buyer, monkeypatch):
    dreamer, plan = buyer
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.test/cs_test_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    resp = await client.post(
        "/payments/create-checkout-session", json={"planId": str(plan.id)}, headers=dreamer.headers
    )
    assert resp.status_code == 200
    assert resp.json() == {"url": "https://checkout.stripe.test/cs_test_1", "sessionId": "cs_test_1"}

    line_item = captured["line_items"][0]
    assert line_item["price_data"]["unit_amount"] == 1999
    assert line_item["price_data"]["currency"] == "usd"
    assert captured["metadata"]["user_id"] == dreamer.id
    assert captured["metadata"]["plan_id"] == str(plan.id)
    assert captured["mode"] == "payment"


async def test_checkout_stripe_error_is_502(client, buyer, monkeypatch):
    dreamer, plan = buyer

    def failing_create(**params):
        raise stripe.StripeError("boom")

    monkeypatch.setattr(stripe.checkout.Session, "create", failing_create)

    resp = await client.post(
        "/payments/create-checkout-session", json={"planId": str(plan.id)}, headers=dreamer.headers
    )
    assert resp.status_code == 502
    assert resp.json()["code"] == "STRIPE_ERROR"


async def test_checkout_unknown_plan_is_404(client, register):
    dreamer = await register("dreamer")
    resp = await client.post(
        "/payments/create-checkout-session",
        json={"planId": "00000000-0000-0000-0000-000000000000"},
        headers=dreamer.headers,
    )
    assert resp.status_code == 404


async def test_checkout_requires_auth(client, buyer):
    _, plan = buyer
    resp = await client.post("/payments/create-checkout-session", json={"planId": str(plan.id)})
    assert resp.status_code == 401
