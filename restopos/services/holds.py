from pymongo.database import Database

from restopos.db import HELD_ORDERS, TABLES, serialize_doc
from restopos.models import HeldOrder, HoldStatus, TableStatus, utcnow
from restopos.schemas.orders import HoldIn
from restopos.services.billing import items_subtotal, taxes_for
from restopos.services.tables import get_table


def create_hold(db: Database, tenant_id: str, table_id: str, body: HoldIn) -> dict:
    """Stage an order against a table and mark the table Occupied."""
    table = get_table(db, tenant_id, table_id)

    items = [i.model_dump() for i in body.items]
    subtotal = items_subtotal(items)
    cgst, sgst = taxes_for(subtotal)

    doc = HeldOrder(
        tenant_id=tenant_id,
        table_id=str(table["_id"]),
        items=items,
        subtotal=subtotal,
        cgst=cgst,
        sgst=sgst,
        discount_percentage=body.discount_percentage,
        payment_mode=body.payment_mode,
        names=body.names,
    ).to_document()
    res = db[HELD_ORDERS].insert_one(doc)
    doc["_id"] = res.inserted_id

    db[TABLES].update_one(
        {"_id": table["_id"]},
        {"$set": {"status": TableStatus.OCCUPIED.value, "updated_at": utcnow()}},
    )
    return serialize_doc(doc)


def find_holds(db: Database, tenant_id: str, table_id: str | None = None,
               status: str = HoldStatus.HOLD.value) -> list[dict]:
    # (created_at, _id) gives a stable "first held order" across calls
    q = {"tenant_id": tenant_id, "status": status}
    if table_id is not None:
        q["table_id"] = table_id
    return list(db[HELD_ORDERS].find(q).sort([("created_at", 1), ("_id", 1)]))


def list_holds(db: Database, tenant_id: str, table_id: str | None = None,
               status: str = HoldStatus.HOLD.value) -> list[dict]:
    return [serialize_doc(h) for h in find_holds(db, tenant_id, table_id, status)]
