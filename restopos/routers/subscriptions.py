from fastapi import APIRouter, Depends, Header, Request
from pymongo.database import Database
from starlette.concurrency import run_in_threadpool
from typing import Optional

from restopos.db import get_db
from restopos.deps import Principal, require_auth
from restopos.errors import db_errors
from restopos.schemas.subscriptions import (
    CreateOrderIn,
    CreateOrderOut,
    SubscriptionStatusOut,
    VerifyPaymentIn,
)
from restopos.services import subscriptions as svc
from restopos.services.gateway import RazorpayGateway, get_gateway

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("/status", response_model=SubscriptionStatusOut, response_model_exclude_none=True)
def subscription_status(db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Error checking subscription status"):
        return svc.subscription_status(db, me.tenant_id)


@router.post("/create-order", response_model=CreateOrderOut)
def create_order(body: CreateOrderIn, gateway: RazorpayGateway = Depends(get_gateway), me: Principal = Depends(require_auth)):
    return svc.create_order(gateway, me.tenant_id, body.plan)


@router.post("/verify-payment")
def verify_payment(
    body: VerifyPaymentIn,
    db: Database = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
    me: Principal = Depends(require_auth),
):
    with db_errors("Error verifying payment"):
        return svc.verify_payment(
            db, gateway, me.tenant_id,
            order_id=body.razorpay_order_id,
            payment_id=body.razorpay_payment_id,
            signature=body.razorpay_signature,
            plan=body.plan,
        )


@router.post("/payment-webhook")
async def payment_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(default=None),
    db: Database = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
):
    """
    Called by Razorpay, not by the app. The signature covers the raw body,
    so it is read before any JSON parsing. The handling itself blocks on
    Mongo and the gateway and runs in the threadpool.
    """
    raw = await request.body()
    with db_errors("Error handling payment webhook"):
        return await run_in_threadpool(svc.handle_webhook, db, gateway, raw, x_razorpay_signature)
