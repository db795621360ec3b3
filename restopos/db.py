"""
MongoDB access.

One collection per entity, every document scoped by `tenant_id`.
Route functions receive the database through the `get_db` dependency so
tests can swap it for an in-memory one.
"""
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from restopos.config import settings
from restopos.errors import NotFound

BILLS = "bill"
HELD_ORDERS = "held_order"
TABLES = "dining_table"
PRODUCTS = "product"
COUNTERS = "counter"
SUBSCRIPTIONS = "subscription"
RESTAURANTS = "restaurant"

_client: MongoClient | None = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        _client = MongoClient(settings.MONGO_URL)
    return _client


def get_db() -> Database:
    return get_client()[settings.MONGO_DB]


def ensure_indexes(db: Database) -> None:
    for name in (BILLS, HELD_ORDERS, TABLES, PRODUCTS, SUBSCRIPTIONS):
        db[name].create_index([("tenant_id", ASCENDING)])

    db[BILLS].create_index([("tenant_id", ASCENDING), ("created_at", DESCENDING)])
    db[HELD_ORDERS].create_index([("tenant_id", ASCENDING), ("table_id", ASCENDING), ("status", ASCENDING)])
    db[TABLES].create_index([("tenant_id", ASCENDING), ("table_number", ASCENDING)], unique=True)
    db[COUNTERS].create_index([("tenant_id", ASCENDING), ("name", ASCENDING)], unique=True)
    db[SUBSCRIPTIONS].create_index([("tenant_id", ASCENDING), ("end_date", DESCENDING)])
    db[RESTAURANTS].create_index([("tenant_id", ASCENDING)], unique=True)


# ---------- document helpers ----------

def as_object_id(value: str, what: str = "Document") -> ObjectId:
    """Parse a path id; a malformed id can never match, so it is a 404."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFound(f"{what} not found")


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))  # ObjectId is not JSON
    return d
