# Document shapes for each MongoDB collection (see restopos.db for names)
from .common import TenantDocument, utcnow, as_naive_utc  # noqa: F401
from .core import (  # noqa: F401
    # Enums
    BillStatus, PaymentStatus, PaymentMethod, HoldStatus, TableStatus,
    PricingType, SubscriptionStatus,

    # Embedded
    LineItem, Variant,

    # Collections
    Restaurant, DiningTable, HeldOrder, Bill, Product, Subscription,
)

__all__ = [
    "TenantDocument", "utcnow", "as_naive_utc",
    "BillStatus", "PaymentStatus", "PaymentMethod", "HoldStatus", "TableStatus",
    "PricingType", "SubscriptionStatus",
    "LineItem", "Variant",
    "Restaurant", "DiningTable", "HeldOrder", "Bill", "Product", "Subscription",
]
