# test_subscriptions.py
import hashlib
import hmac
import json
from datetime import datetime

import pytest

from restopos.db import SUBSCRIPTIONS
from restopos.errors import BadRequest
from restopos.services import subscriptions as subs


def jprint(step, r):
    """Helper to assert on failure and return the JSON body."""
    assert 200 <= r.status_code < 300, f"{step} -> {r.status_code}: {r.text}"
    return r.json()


def _sign(secret, message):
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def _webhook(client, event, order_id, secret, payment_id="pay_1"):
    body = json.dumps({
        "event": event,
        "payload": {"payment": {"entity": {"id": payment_id, "order_id": order_id}}},
    })
    return client.post(
        "/subscription/payment-webhook",
        content=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": _sign(secret, body)},
    )


def test_status_inactive_then_active(client, auth_headers, gateway):
    assert jprint("status", client.get("/subscription/status", headers=auth_headers)) == {"status": "inactive"}

    order = jprint("create-order", client.post("/subscription/create-order", headers=auth_headers,
                                               json={"plan": "6-months"}))
    assert order == {"order_id": "order_1", "amount": 500, "currency": "INR"}
    assert gateway.orders["order_1"]["notes"] == {"tenant_id": "t-main", "plan": "6-months"}
    assert len(gateway.orders["order_1"]["receipt"]) <= 40

    r = client.post("/subscription/verify-payment", headers=auth_headers, json={
        "razorpay_order_id": "order_1",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": _sign(gateway.key_secret, "order_1|pay_1"),
        "plan": "6-months",
    })
    out = jprint("verify-payment", r)
    assert out["success"] is True
    assert out["message"] == "Subscription activated successfully"

    st = jprint("status", client.get("/subscription/status", headers=auth_headers))
    assert st["status"] == "active"
    assert st["plan"] == "6-months"


def test_create_order_errors(client, auth_headers, gateway):
    r = client.post("/subscription/create-order", headers=auth_headers, json={"plan": "2-years"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid plan selected"

    gateway.fail = True
    r = client.post("/subscription/create-order", headers=auth_headers, json={"plan": "1-month"})
    assert r.status_code == 500
    assert r.json()["message"] == "Error creating subscription order"


def test_bad_payment_signature(client, auth_headers, db):
    r = client.post("/subscription/verify-payment", headers=auth_headers, json={
        "razorpay_order_id": "order_1",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": "0" * 64,
        "plan": "1-month",
    })
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid payment signature"
    assert db[SUBSCRIPTIONS].count_documents({}) == 0


def test_verify_twice_is_idempotent(db, gateway):
    now = datetime(2024, 1, 15, 10, 0)
    sig = _sign(gateway.key_secret, "order_9|pay_9")
    kw = dict(order_id="order_9", payment_id="pay_9", signature=sig, plan="1-month", now=now)

    first = subs.verify_payment(db, gateway, "t1", **kw)
    second = subs.verify_payment(db, gateway, "t1", **kw)

    assert first["subscription"]["end_date"] == datetime(2024, 2, 15, 10, 0)
    assert second["subscription"]["end_date"] == first["subscription"]["end_date"]
    assert db[SUBSCRIPTIONS].count_documents({"tenant_id": "t1"}) == 1


def test_payment_never_shortens_window(db):
    now = datetime(2024, 1, 1)
    subs.apply_payment(db, "t1", "1-year", {}, now=now)
    sub = subs.apply_payment(db, "t1", "1-month", {}, now=now)
    assert sub["end_date"] == datetime(2025, 1, 1)
    assert sub["plan"] == "1-month"


def test_status_expires_lazily(db):
    subs.apply_payment(db, "t1", "1-month", {}, now=datetime(2024, 1, 1))
    assert subs.subscription_status(db, "t1", now=datetime(2024, 1, 20))["status"] == "active"

    assert subs.subscription_status(db, "t1", now=datetime(2024, 3, 1)) == {"status": "expired"}
    assert db[SUBSCRIPTIONS].find_one({"tenant_id": "t1"})["status"] == "expired"

    # a new payment starts a fresh window instead of extending the expired one
    sub = subs.apply_payment(db, "t1", "1-month", {}, now=datetime(2024, 3, 1))
    assert sub["end_date"] == datetime(2024, 4, 1)


def test_unknown_plan_rejected(db):
    with pytest.raises(BadRequest):
        subs.apply_payment(db, "t1", "forever", {})


def test_webhook_authorized_activates(client, db, gateway):
    gateway.create_order(100, "INR", "r1", {"tenant_id": "t-web", "plan": "1-month"})

    assert jprint("webhook", _webhook(client, "payment.authorized", "order_1", gateway.webhook_secret)) == {"status": "ok"}
    sub = db[SUBSCRIPTIONS].find_one({"tenant_id": "t-web"})
    assert sub["status"] == "active"
    assert sub["razorpay_payment_id"] == "pay_1"

    # redelivery of the same event changes nothing
    end_date = sub["end_date"]
    jprint("webhook again", _webhook(client, "payment.authorized", "order_1", gateway.webhook_secret))
    assert db[SUBSCRIPTIONS].count_documents({"tenant_id": "t-web"}) == 1
    assert db[SUBSCRIPTIONS].find_one({"tenant_id": "t-web"})["end_date"] >= end_date


def test_webhook_other_events_and_bad_signature(client, db, gateway):
    gateway.create_order(100, "INR", "r1", {"tenant_id": "t-web", "plan": "1-month"})

    assert jprint("failed", _webhook(client, "payment.failed", "order_1", gateway.webhook_secret)) == {"status": "ok"}
    assert jprint("other", _webhook(client, "order.paid", "order_1", gateway.webhook_secret)) == {"status": "ok"}
    assert db[SUBSCRIPTIONS].count_documents({}) == 0

    r = _webhook(client, "payment.authorized", "order_1", "wrong")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid webhook signature"
    assert db[SUBSCRIPTIONS].count_documents({}) == 0


def test_webhook_order_without_notes_is_ignored(client, db, gateway):
    gateway.create_order(100, "INR", "r1", {})
    assert jprint("webhook", _webhook(client, "payment.authorized", "order_1", gateway.webhook_secret)) == {"status": "ok"}
    assert db[SUBSCRIPTIONS].count_documents({}) == 0


def test_webhook_is_handled_off_the_event_loop(client, gateway, monkeypatch):
    import asyncio

    seen = {}

    def handle(db, gw, raw, signature, now=None):
        try:
            asyncio.get_running_loop()
            seen["on_loop"] = True
        except RuntimeError:
            seen["on_loop"] = False
        return {"status": "ok"}

    monkeypatch.setattr(subs, "handle_webhook", handle)
    assert jprint("webhook", _webhook(client, "payment.failed", "order_1", gateway.webhook_secret)) == {"status": "ok"}
    assert seen == {"on_loop": False}
