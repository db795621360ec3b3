from enum import Enum as PyEnum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from restopos.models.common import TenantDocument

# ── Enums ───────────────────────────────────────────────────────────────────
class BillStatus(str, PyEnum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"

class PaymentStatus(str, PyEnum):
    UNPAID = "UNPAID"
    PAID = "PAID"

class PaymentMethod(str, PyEnum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"
    OTHER = "OTHER"

class HoldStatus(str, PyEnum):
    HOLD = "HOLD"
    RESUMED = "RESUMED"

class TableStatus(str, PyEnum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"

class PricingType(str, PyEnum):
    BASE_PRICE = "basePrice"
    MRP_BASED = "mrpBased"

class SubscriptionStatus(str, PyEnum):
    ACTIVE = "active"
    EXPIRED = "expired"


# ── Embedded ────────────────────────────────────────────────────────────────
class LineItem(BaseModel):
    model_config = ConfigDict(extra="forbid")
    item: str
    quantity: float = Field(gt=0)
    price: float = Field(ge=0)

class Variant(BaseModel):
    model_config = ConfigDict(extra="forbid")
    label: str
    price: Optional[float] = Field(default=None, ge=0)


# ── Collections ─────────────────────────────────────────────────────────────
class _Doc(TenantDocument):
    model_config = ConfigDict(use_enum_values=True)


class Restaurant(_Doc):
    name: str
    outlet_name: str = ""

class DiningTable(_Doc):
    table_number: int
    status: TableStatus = TableStatus.AVAILABLE

class HeldOrder(_Doc):
    table_id: str
    items: List[LineItem]
    subtotal: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    discount_percentage: float = 0.0
    payment_mode: str = "CASH"
    status: HoldStatus = HoldStatus.HOLD
    names: Optional[str] = None

class Bill(_Doc):
    bill_number: int
    table_id: str
    table_number: Optional[int] = None
    items: List[LineItem]
    subtotal: float
    cgst: float
    sgst: float
    discount_percentage: float = 0.0
    discount_amount: float = 0.0
    total_amount: float
    status: BillStatus = BillStatus.ACTIVE
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_method: PaymentMethod = PaymentMethod.CASH
    names: str = ""

class Product(_Doc):
    category: str
    item_name: str
    pricing_type: PricingType
    base_price: Optional[float] = None
    mrp: Optional[float] = None
    selling_price: Optional[float] = None
    type: str
    unit_type: str
    variants: List[Variant]
    image_url: Optional[str] = None
    image_key: Optional[str] = None
    in_stock: bool = True
    out_of_stock_until: Optional[datetime] = None

class Subscription(_Doc):
    plan: str
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    start_date: datetime
    end_date: datetime
    payment_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
