from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from restopos.models import PricingType, Variant

class ProductIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    category: str = Field(min_length=1)
    item_name: str = Field(min_length=1)
    pricing_type: PricingType
    base_price: Optional[float] = Field(default=None, ge=0)
    mrp: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    type: str = Field(min_length=1)
    unit_type: str = Field(min_length=1)
    variants: List[Variant]

class ProductPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")
    category: Optional[str] = Field(default=None, min_length=1)
    item_name: Optional[str] = Field(default=None, min_length=1)
    pricing_type: Optional[PricingType] = None
    base_price: Optional[float] = Field(default=None, ge=0)
    mrp: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    type: Optional[str] = Field(default=None, min_length=1)
    unit_type: Optional[str] = Field(default=None, min_length=1)
    variants: Optional[List[Variant]] = None

class StockIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    in_stock: bool
    duration: Optional[str] = None

class AvailabilityOut(BaseModel):
    product_id: str
    is_available: bool

class ProductOut(BaseModel):
    id: str
    category: str
    item_name: str
    pricing_type: str
    base_price: Optional[float] = None
    mrp: Optional[float] = None
    selling_price: Optional[float] = None
    type: str
    unit_type: str
    variants: List[Variant]
    image_url: Optional[str] = None
    in_stock: bool
    out_of_stock_until: Optional[datetime] = None
