from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from restopos.models import BillStatus, LineItem, PaymentMethod, PaymentStatus

class BillPatch(BaseModel):
    """Fields a client may change on a bill; anything else is rejected."""
    model_config = ConfigDict(extra="forbid")
    items: Optional[List[LineItem]] = None
    discount_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    payment_method: Optional[PaymentMethod] = None
    names: Optional[str] = None
    status: Optional[BillStatus] = None
    payment_status: Optional[PaymentStatus] = None

class PaymentMethodIn(BaseModel):
    payment_method: str

class BillPage(BaseModel):
    bills: List[dict]
    total: int
    page: int
    total_pages: int
