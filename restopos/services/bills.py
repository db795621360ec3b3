"""
Bills: consolidation of held orders, queries, summary and partial updates.
"""
import logging
import math
from datetime import datetime

from dateutil import parser as dtparser
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from restopos.db import BILLS, HELD_ORDERS, TABLES, as_object_id, serialize_doc
from restopos.errors import BadRequest, Internal, NotFound
from restopos.models import (
    Bill, BillStatus, HoldStatus, PaymentMethod, PaymentStatus, TableStatus,
    as_naive_utc, utcnow,
)
from restopos.schemas.bills import BillPatch
from restopos.services.billing import _money, compute_totals, items_subtotal, taxes_for
from restopos.services.holds import find_holds
from restopos.services.sequence import next_sequence
from restopos.services.tables import get_table

logger = logging.getLogger(__name__)


# ---------- helpers ----------

def parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return as_naive_utc(dtparser.isoparse(value))
    except (ValueError, OverflowError):
        return None


def end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999000)


def parse_amount(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        amount = float(value)
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None


def normalize_payment_method(mode: str | None) -> str:
    wanted = (mode or "").strip().upper()
    try:
        return PaymentMethod(wanted).value
    except ValueError:
        return PaymentMethod.OTHER.value


# ---------- consolidation ----------

def consolidate(db: Database, tenant_id: str, table_id: str) -> dict:
    """
    Merge every HOLD order of a table into one numbered, paid bill.

    The bill insert and the two follow-up writes (holds -> RESUMED, table ->
    Available) are separate single-document operations. If a follow-up write
    fails, the holds are put back to HOLD and the bill is removed before the
    error is raised. The bill number drawn for it is not reused.
    """
    table = get_table(db, tenant_id, table_id)
    # holds store the canonical id, not whatever spelling the path used
    table_id = str(table["_id"])

    holds = find_holds(db, tenant_id, table_id)
    if not holds:
        raise NotFound("No hold bills found for this table")

    items: list[dict] = []
    for h in holds:
        items.extend(h.get("items") or [])
    subtotal = sum(float(h.get("subtotal") or 0) for h in holds)
    cgst = sum(float(h.get("cgst") or 0) for h in holds)
    sgst = sum(float(h.get("sgst") or 0) for h in holds)

    first = holds[0]
    totals = compute_totals(subtotal, cgst, sgst, first.get("discount_percentage") or 0)
    payment_method = normalize_payment_method(first.get("payment_mode"))

    bill_number = next_sequence(db, tenant_id)

    doc = Bill(
        tenant_id=tenant_id,
        bill_number=bill_number,
        table_id=table_id,
        table_number=table.get("table_number"),
        items=items,
        status=BillStatus.COMPLETED,
        payment_status=PaymentStatus.PAID,
        payment_method=payment_method,
        names=" | ".join(h["names"] for h in holds if h.get("names")),
        **totals,
    ).to_document()
    res = db[BILLS].insert_one(doc)
    doc["_id"] = res.inserted_id

    hold_ids = [h["_id"] for h in holds]
    now = utcnow()
    try:
        db[HELD_ORDERS].update_many(
            {"_id": {"$in": hold_ids}},
            {"$set": {"status": HoldStatus.RESUMED.value, "updated_at": now}},
        )
        db[TABLES].update_one(
            {"_id": table["_id"]},
            {"$set": {"status": TableStatus.AVAILABLE.value, "updated_at": now}},
        )
    except PyMongoError as exc:
        logger.error("tenant=%s bill %s: follow-up writes failed, compensating: %s",
                     tenant_id, bill_number, exc)
        _undo_consolidation(db, doc["_id"], hold_ids)
        raise Internal("Failed to save bill", error=str(exc)) from exc

    logger.info("tenant=%s table=%s bill %s from %d held orders total=%.2f",
                tenant_id, table_id, bill_number, len(holds), totals["total_amount"])
    return serialize_doc(doc)


def _undo_consolidation(db: Database, bill_id, hold_ids: list) -> None:
    try:
        db[HELD_ORDERS].update_many(
            {"_id": {"$in": hold_ids}, "status": HoldStatus.RESUMED.value},
            {"$set": {"status": HoldStatus.HOLD.value, "updated_at": utcnow()}},
        )
        db[BILLS].delete_one({"_id": bill_id})
    except PyMongoError:
        # nothing more can be done here; leave a trace for manual repair
        logger.exception("compensation failed for bill %s (holds %s)", bill_id, hold_ids)


# ---------- queries ----------

def list_bills(
    db: Database,
    tenant_id: str,
    *,
    status: str | None = None,
    payment_status: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    min_amount: str | None = None,
    max_amount: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    q: dict = {"tenant_id": tenant_id}
    if status:
        q["status"] = status
    if payment_status:
        q["payment_status"] = payment_status

    start, end = parse_date(start_date), parse_date(end_date)
    if start or end:
        q["created_at"] = {}
        if start:
            q["created_at"]["$gte"] = start
        if end:
            q["created_at"]["$lte"] = end_of_day(end)

    lo, hi = parse_amount(min_amount), parse_amount(max_amount)
    if lo is not None or hi is not None:
        q["total_amount"] = {}
        if lo is not None:
            q["total_amount"]["$gte"] = lo
        if hi is not None:
            q["total_amount"]["$lte"] = hi

    if page < 1:
        page = 1
    if limit < 1:
        limit = 10

    total = db[BILLS].count_documents(q)
    rows = (
        db[BILLS].find(q)
        .sort([("created_at", -1), ("_id", -1)])
        .skip((page - 1) * limit)
        .limit(limit)
    )
    return {
        "bills": [serialize_doc(b) for b in rows],
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit),
    }


def get_bill(db: Database, tenant_id: str, bill_id: str) -> dict:
    b = db[BILLS].find_one({"_id": as_object_id(bill_id, "Bill"), "tenant_id": tenant_id})
    if not b:
        raise NotFound("Bill not found")
    return serialize_doc(b)


def active_bill(db: Database, tenant_id: str, table_id: str) -> dict:
    b = db[BILLS].find_one(
        {"tenant_id": tenant_id, "table_id": table_id, "status": BillStatus.ACTIVE.value}
    )
    if not b:
        raise NotFound("No active bill found for this table")
    return serialize_doc(b)


def summary(db: Database, tenant_id: str, start_date: str | None, end_date: str | None,
            max_time_ms: int = 10000) -> dict:
    if not start_date or not end_date:
        raise BadRequest("Both start_date and end_date are required")

    start, end = parse_date(start_date), parse_date(end_date)
    if start is None or end is None:
        raise BadRequest("Invalid date format. Please use ISO format")
    end = end_of_day(end)

    match = {"tenant_id": tenant_id, "created_at": {"$gte": start, "$lte": end}}

    by_status = db[BILLS].aggregate(
        [
            {"$match": match},
            {"$group": {
                "_id": "$status",
                "count": {"$sum": 1},
                "total_amount": {"$sum": "$total_amount"},
                "average_amount": {"$avg": "$total_amount"},
            }},
        ],
        maxTimeMS=max_time_ms,
    )
    by_method = db[BILLS].aggregate(
        [
            {"$match": {**match, "status": BillStatus.COMPLETED.value}},
            {"$group": {
                "_id": "$payment_method",
                "count": {"$sum": 1},
                "total_amount": {"$sum": "$total_amount"},
            }},
        ],
        maxTimeMS=max_time_ms,
    )

    return {
        "bills_summary": [
            {
                "status": r["_id"],
                "count": r["count"],
                "total_amount": _money(r["total_amount"]),
                "average_amount": _money(r["average_amount"]),
            }
            for r in by_status
        ],
        "payment_summary": [
            {"payment_method": r["_id"], "count": r["count"], "total_amount": _money(r["total_amount"])}
            for r in by_method
        ],
        "date_range": {"start": start, "end": end},
    }


# ---------- updates ----------

def update_bill(db: Database, tenant_id: str, bill_id: str, patch: BillPatch) -> dict:
    oid = as_object_id(bill_id, "Bill")
    bill = db[BILLS].find_one({"_id": oid, "tenant_id": tenant_id})
    if not bill:
        raise NotFound("Bill not found")

    updates = patch.model_dump(mode="json", exclude_none=True)
    pct = updates.get("discount_percentage", bill.get("discount_percentage") or 0)

    if "items" in updates:
        subtotal = items_subtotal(updates["items"])
        cgst, sgst = taxes_for(subtotal)
        updates.update(compute_totals(subtotal, cgst, sgst, pct))
    elif "discount_percentage" in updates:
        updates.update(compute_totals(bill["subtotal"], bill["cgst"], bill["sgst"], pct))

    # assigning a payment method settles the bill
    if "payment_method" in updates:
        updates["payment_status"] = PaymentStatus.PAID.value
        updates["status"] = BillStatus.COMPLETED.value

    updates["updated_at"] = utcnow()
    updated = db[BILLS].find_one_and_update(
        {"_id": oid, "tenant_id": tenant_id},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFound("Bill not found")
    return serialize_doc(updated)


def set_payment_method(db: Database, tenant_id: str, bill_id: str, method: str) -> dict:
    try:
        wanted = PaymentMethod(method)
    except ValueError:
        raise BadRequest("Invalid payment method")

    updated = db[BILLS].find_one_and_update(
        {"_id": as_object_id(bill_id, "Bill"), "tenant_id": tenant_id},
        {"$set": {
            "payment_method": wanted.value,
            "payment_status": PaymentStatus.PAID.value,
            "status": BillStatus.COMPLETED.value,
            "updated_at": utcnow(),
        }},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFound("Bill not found")
    return serialize_doc(updated)
