from datetime import datetime
from pydantic import BaseModel
from typing import Optional

class CreateOrderIn(BaseModel):
    plan: str

class CreateOrderOut(BaseModel):
    order_id: str
    amount: int
    currency: str

class VerifyPaymentIn(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
    plan: str

class SubscriptionStatusOut(BaseModel):
    status: str
    plan: Optional[str] = None
    end_date: Optional[datetime] = None
