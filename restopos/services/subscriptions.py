"""
Subscription plans, payment confirmation and the subscription window.

A confirmed payment (client-side verify or gateway webhook) extends the
tenant's active subscription to max(current end, now + plan length), so the
same payment applied twice leaves end_date where it was. plan and the payment
reference fields are simply overwritten by whichever confirmation runs last.
"""
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime

from dateutil.relativedelta import relativedelta
from pymongo import DESCENDING
from pymongo.database import Database

from restopos.db import SUBSCRIPTIONS
from restopos.errors import BadRequest, Internal
from restopos.models import Subscription, SubscriptionStatus, as_naive_utc, utcnow
from restopos.services.gateway import GatewayError, RazorpayGateway

logger = logging.getLogger(__name__)

CURRENCY = "INR"


@dataclass(frozen=True)
class Plan:
    amount: int  # gateway minor units
    length: relativedelta


PLANS: dict[str, Plan] = {
    "1-month": Plan(100, relativedelta(months=1)),
    "6-months": Plan(500, relativedelta(months=6)),
    "1-year": Plan(1000, relativedelta(years=1)),
}


def get_plan(name: str | None) -> Plan:
    plan = PLANS.get(name or "")
    if plan is None:
        raise BadRequest("Invalid plan selected")
    return plan


def _now(now: datetime | None) -> datetime:
    return as_naive_utc(now) if now else utcnow()


def _latest(db: Database, q: dict) -> dict | None:
    return db[SUBSCRIPTIONS].find_one(q, sort=[("end_date", DESCENDING)])


def subscription_status(db: Database, tenant_id: str, now: datetime | None = None) -> dict:
    now = _now(now)
    sub = _latest(db, {"tenant_id": tenant_id})
    if not sub:
        return {"status": "inactive"}

    if sub["end_date"] < now:
        if sub.get("status") != SubscriptionStatus.EXPIRED.value:
            db[SUBSCRIPTIONS].update_one(
                {"_id": sub["_id"]},
                {"$set": {"status": SubscriptionStatus.EXPIRED.value, "updated_at": utcnow()}},
            )
        return {"status": SubscriptionStatus.EXPIRED.value}

    return {"status": sub["status"], "plan": sub["plan"], "end_date": sub["end_date"]}


def create_order(gateway: RazorpayGateway, tenant_id: str, plan_name: str) -> dict:
    plan = get_plan(plan_name)
    receipt = f"subscription_{tenant_id}_{int(time.time() * 1000)}"[:40]  # gateway limit
    try:
        order = gateway.create_order(
            plan.amount, CURRENCY, receipt, {"tenant_id": tenant_id, "plan": plan_name}
        )
    except GatewayError as exc:
        logger.error("tenant=%s could not create subscription order: %s", tenant_id, exc)
        raise Internal("Error creating subscription order", error=str(exc)) from exc

    return {"order_id": order["id"], "amount": order["amount"], "currency": order["currency"]}


def apply_payment(db: Database, tenant_id: str, plan_name: str, refs: dict,
                  now: datetime | None = None) -> dict:
    """Merge a confirmed payment into the tenant's subscription window."""
    plan = get_plan(plan_name)
    now = _now(now)
    end_date = now + plan.length

    current = _latest(db, {"tenant_id": tenant_id, "status": SubscriptionStatus.ACTIVE.value})
    if current:
        end_date = max(current["end_date"], end_date)
        db[SUBSCRIPTIONS].update_one(
            {"_id": current["_id"]},
            {"$set": {"end_date": end_date, "plan": plan_name, "updated_at": utcnow(), **refs}},
        )
        status = current["status"]
    else:
        doc = Subscription(
            tenant_id=tenant_id,
            plan=plan_name,
            start_date=now,
            end_date=end_date,
            **refs,
        ).to_document()
        db[SUBSCRIPTIONS].insert_one(doc)
        status = doc["status"]

    logger.info("tenant=%s subscription %s active until %s", tenant_id, plan_name, end_date.isoformat())
    return {"status": status, "plan": plan_name, "end_date": end_date}


def verify_payment(db: Database, gateway: RazorpayGateway, tenant_id: str, *,
                   order_id: str, payment_id: str, signature: str, plan: str,
                   now: datetime | None = None) -> dict:
    if not gateway.verify_payment_signature(order_id, payment_id, signature):
        logger.warning("tenant=%s invalid payment signature for order %s", tenant_id, order_id)
        raise BadRequest("Invalid payment signature")

    sub = apply_payment(
        db, tenant_id, plan,
        {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        },
        now=now,
    )
    return {
        "success": True,
        "message": "Subscription activated successfully",
        "subscription": sub,
    }


def handle_webhook(db: Database, gateway: RazorpayGateway, raw_body: bytes,
                   signature: str | None, now: datetime | None = None) -> dict:
    if not gateway.verify_webhook_signature(raw_body, signature or ""):
        logger.warning("Razorpay webhook signature verification failed")
        raise BadRequest("Invalid webhook signature")

    try:
        body = json.loads(raw_body)
    except ValueError:
        raise BadRequest("Webhook body is not valid JSON")

    event = body.get("event")
    payment = ((body.get("payload") or {}).get("payment") or {}).get("entity") or {}

    if event == "payment.authorized":
        _payment_authorized(db, gateway, payment, now)
    elif event == "payment.failed":
        # no state change: whether a failed payment should revoke anything is undecided
        logger.warning("Payment failed for order %s (payment %s)", payment.get("order_id"), payment.get("id"))
    else:
        logger.info("Ignoring webhook event %s", event)

    return {"status": "ok"}


def _payment_authorized(db: Database, gateway: RazorpayGateway, payment: dict,
                        now: datetime | None) -> None:
    order_id = payment.get("order_id")
    if not order_id:
        raise BadRequest("Payment entity has no order_id")
    try:
        order = gateway.fetch_order(order_id)
    except GatewayError as exc:
        logger.error("Could not fetch order %s: %s", order_id, exc)
        raise Internal("Error handling payment webhook", error=str(exc)) from exc

    notes = order.get("notes") or {}
    tenant_id, plan = notes.get("tenant_id"), notes.get("plan")
    if not tenant_id or plan not in PLANS:
        logger.warning("Order %s carries no usable tenant/plan notes: %s", order_id, notes)
        return

    apply_payment(
        db, tenant_id, plan,
        {
            "payment_id": payment.get("id"),
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment.get("id"),
        },
        now=now,
    )
