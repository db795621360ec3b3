from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from restopos.models import LineItem

class HoldIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    items: List[LineItem] = Field(min_length=1)
    discount_percentage: float = Field(default=0.0, ge=0, le=100)
    payment_mode: str = "CASH"
    names: Optional[str] = None
