import logging

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from restopos.db import TABLES, as_object_id, serialize_doc
from restopos.errors import BadRequest, Conflict, NotFound
from restopos.models import DiningTable, TableStatus, utcnow

logger = logging.getLogger(__name__)

MAX_BULK = 50


def list_tables(db: Database, tenant_id: str) -> list[dict]:
    rows = db[TABLES].find({"tenant_id": tenant_id}).sort("table_number", 1)
    return [serialize_doc(t) for t in rows]


def get_table(db: Database, tenant_id: str, table_id: str) -> dict:
    t = db[TABLES].find_one({"_id": as_object_id(table_id, "Table"), "tenant_id": tenant_id})
    if not t:
        raise NotFound("Table not found")
    return t


def create_table(db: Database, tenant_id: str, table_number: int) -> dict:
    if db[TABLES].find_one({"tenant_id": tenant_id, "table_number": table_number}):
        raise Conflict("Table number already exists")

    doc = DiningTable(tenant_id=tenant_id, table_number=table_number).to_document()
    try:
        res = db[TABLES].insert_one(doc)
    except DuplicateKeyError:
        # lost a race with another create for the same number
        raise Conflict("Table number already exists")
    doc["_id"] = res.inserted_id
    return serialize_doc(doc)


def create_bulk(db: Database, tenant_id: str, base_number: int, quantity: int) -> list[dict]:
    """
    Create tables base_number .. base_number+quantity-1, all or nothing.
    The whole range is checked before anything is written.
    """
    if quantity < 1 or quantity > MAX_BULK:
        raise BadRequest(f"Quantity must be between 1 and {MAX_BULK}")

    last = base_number + quantity - 1
    existing = db[TABLES].find(
        {"tenant_id": tenant_id, "table_number": {"$gte": base_number, "$lte": last}}
    ).sort("table_number", 1)
    conflicting = [t["table_number"] for t in existing]
    if conflicting:
        raise BadRequest(
            "Some table numbers in this range already exist",
            conflicting_numbers=conflicting,
        )

    docs = [
        DiningTable(tenant_id=tenant_id, table_number=n).to_document()
        for n in range(base_number, last + 1)
    ]
    db[TABLES].insert_many(docs)
    logger.info("tenant=%s created tables %s-%s", tenant_id, base_number, last)
    return [serialize_doc(d) for d in docs]


def set_status(db: Database, tenant_id: str, table_id: str, status: str) -> dict:
    try:
        wanted = TableStatus(status)
    except ValueError:
        raise BadRequest("Invalid status")

    t = db[TABLES].find_one_and_update(
        {"_id": as_object_id(table_id, "Table"), "tenant_id": tenant_id},
        {"$set": {"status": wanted.value, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not t:
        raise NotFound("Table not found")
    return serialize_doc(t)


def delete_table(db: Database, tenant_id: str, table_id: str) -> None:
    res = db[TABLES].delete_one({"_id": as_object_id(table_id, "Table"), "tenant_id": tenant_id})
    if res.deleted_count == 0:
        raise NotFound("Table not found")
