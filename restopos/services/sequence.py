from pymongo import ReturnDocument
from pymongo.database import Database

from restopos.db import COUNTERS

BILL_NUMBER = "billNumber"


def next_sequence(db: Database, tenant_id: str, name: str = BILL_NUMBER) -> int:
    """Atomically bump the (tenant, name) counter and return the new value.

    A single find-and-modify with upsert: the first call creates the counter
    and returns 1, concurrent callers never see the same value.
    """
    counter = db[COUNTERS].find_one_and_update(
        {"tenant_id": tenant_id, "name": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(counter["seq"])
