import os
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from pymongo import MongoClient

from restopos.db import ensure_indexes
from restopos.services.billing import compute_totals, items_subtotal, taxes_for
from restopos.services.sequence import next_sequence

# mongomock runs find-and-modify as separate find/update/find steps, so the
# atomicity check needs a real server
MONGO_TEST_URL = os.environ.get("RESTOPOS_TEST_MONGO_URL")


@pytest.fixture
def server_db():
    if not MONGO_TEST_URL:
        pytest.skip("set RESTOPOS_TEST_MONGO_URL to run against a MongoDB server")
    client = MongoClient(MONGO_TEST_URL, serverSelectionTimeoutMS=2000)
    name = f"restopos_test_{uuid.uuid4().hex[:8]}"
    database = client[name]
    ensure_indexes(database)
    yield database
    client.drop_database(name)
    client.close()


def test_sequence_is_consecutive_per_tenant(db):
    assert [next_sequence(db, "a") for _ in range(3)] == [1, 2, 3]
    assert next_sequence(db, "b") == 1
    assert next_sequence(db, "a") == 4
    assert next_sequence(db, "a", "other") == 1


def test_concurrent_sequence_has_no_gaps_or_repeats(server_db):
    # first call creates the counter; the rest race on $inc
    assert next_sequence(server_db, "t", "billNumber") == 1
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: next_sequence(server_db, "t", "billNumber"), range(49)))
    assert sorted(results) == list(range(2, 51))


def test_totals():
    subtotal = items_subtotal([{"item": "Dosa", "quantity": 2, "price": 40}, {"item": "Tea", "quantity": 1, "price": 20}])
    assert subtotal == 100
    assert taxes_for(subtotal) == (5.0, 5.0)

    t = compute_totals(100, 5, 5, 10)
    assert t["discount_amount"] == 11.0
    assert t["total_amount"] == 99.0

    t = compute_totals(100, 5, 5, 0)
    assert t["discount_amount"] == 0
    assert t["total_amount"] == 110.0


def test_totals_round_half_up():
    assert taxes_for(0.5) == (0.03, 0.03)
    assert compute_totals(33.33, 1.67, 1.67, 0)["total_amount"] == 36.67


def test_rounded_discount_drives_total():
    t = compute_totals(10, 0.5, 0.5, 12.5)
    assert (t["discount_amount"], t["total_amount"]) == (1.38, 9.62)
