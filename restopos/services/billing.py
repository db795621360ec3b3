from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

# fixed policy: CGST and SGST at 5% each of the subtotal
CGST_RATE = 0.05
SGST_RATE = 0.05

def _money(x) -> float:
    return float(Decimal(str(x or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))

def items_subtotal(items: Iterable[dict]) -> float:
    return _money(sum(float(i["price"]) * float(i["quantity"]) for i in items))

def taxes_for(subtotal: float) -> tuple[float, float]:
    return _money(subtotal * CGST_RATE), _money(subtotal * SGST_RATE)

def compute_totals(subtotal: float, cgst: float, sgst: float, discount_percentage: float) -> dict:
    """Discount applies to the taxed amount; total = gross - discount."""
    subtotal, cgst, sgst = _money(subtotal), _money(cgst), _money(sgst)
    gross = subtotal + cgst + sgst
    pct = float(discount_percentage or 0)
    # total comes from the rounded discount so the stored figures add up
    discount = _money(gross * pct / 100) if pct > 0 else 0.0

    return {
        "subtotal": subtotal,
        "cgst": cgst,
        "sgst": sgst,
        "discount_percentage": pct,
        "discount_amount": discount,
        "total_amount": _money(gross - discount),
    }
