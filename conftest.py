# conftest.py
import os

os.environ.setdefault("APP_SECRET", "test-secret")
os.environ.setdefault("APP_ENV", "dev")

import mongomock
import pytest
from fastapi.testclient import TestClient

from restopos.db import ensure_indexes, get_db
from restopos.main import app
from restopos.services.gateway import GatewayError, RazorpayGateway, get_gateway
from restopos.services.storage import ObjectStorage, StorageError, get_storage

KEY_SECRET = "rzp-test-secret"
WEBHOOK_SECRET = "rzp-webhook-secret"


class FakeStorage(ObjectStorage):
    """In-memory object store; set fail_delete to make deletes raise."""

    def __init__(self):
        self.objects = {}
        self.fail_delete = False
        self.fail_upload = False
        self._n = 0

    def upload(self, data, content_type):
        if self.fail_upload:
            raise StorageError("upload refused")
        self._n += 1
        key = f"restopos/products/img{self._n}"
        self.objects[key] = data
        return f"https://img.test/{key}", key

    def delete(self, key):
        if self.fail_delete:
            raise StorageError("delete refused")
        self.objects.pop(key, None)


class FakeGateway(RazorpayGateway):
    """Orders live in memory; signature checks are the real ones."""

    def __init__(self):
        super().__init__("rzp_test_key", KEY_SECRET, WEBHOOK_SECRET)
        self.orders = {}
        self.fail = False

    def create_order(self, amount, currency, receipt, notes):
        if self.fail:
            raise GatewayError("gateway down")
        order = {
            "id": f"order_{len(self.orders) + 1}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        self.orders[order["id"]] = order
        return order

    def fetch_order(self, order_id):
        if order_id not in self.orders:
            raise GatewayError("order not found")
        return self.orders[order_id]


@pytest.fixture
def db():
    database = mongomock.MongoClient()["restopos_test"]
    ensure_indexes(database)
    return database

@pytest.fixture
def storage():
    return FakeStorage()

@pytest.fixture
def gateway():
    return FakeGateway()

@pytest.fixture
def client(db, storage, gateway):
    # no context manager: the startup hook would dial a real MongoDB
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def auth_headers(client):
    r = client.post("/admin/dev-bootstrap", json={"tenant_id": "t-main", "name": "Spice Route", "outlet_name": "MG Road"})
    assert r.status_code == 200, f"/admin/dev-bootstrap failed: {r.text}"
    return {"Authorization": f"Bearer {r.json()['access_token']}"}

@pytest.fixture
def other_headers(client):
    r = client.post("/admin/dev-bootstrap", json={"tenant_id": "t-other", "name": "Other Place"})
    assert r.status_code == 200, f"/admin/dev-bootstrap failed: {r.text}"
    return {"Authorization": f"Bearer {r.json()['access_token']}"}

@pytest.fixture
def rng_suffix():
    import random, string
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
