"""
Menu products: CRUD, stock windows, public menu and availability.
"""
import logging
from datetime import datetime, timedelta

from pymongo.database import Database

from restopos.db import PRODUCTS, RESTAURANTS, as_object_id, serialize_doc
from restopos.errors import BadRequest, Internal, NotFound
from restopos.models import PricingType, Product, as_naive_utc, utcnow
from restopos.schemas.menu import ProductIn, ProductPatch
from restopos.services.storage import MAX_FILE_SIZE, ObjectStorage, StorageError

logger = logging.getLogger(__name__)

# out-of-stock windows; None = until switched back on
STOCK_DURATIONS: dict[str, timedelta | None] = {
    "2h": timedelta(hours=2),
    "6h": timedelta(hours=6),
    "1d": timedelta(days=1),
    "1w": timedelta(weeks=1),
    "indefinite": None,
}
DURATION_ALIASES = {"2hour": "2h", "6hour": "6h", "1day": "1d", "1week": "1w"}

PUBLIC_FIELDS = (
    "category", "item_name", "pricing_type", "type", "unit_type", "variants",
    "image_url", "base_price", "mrp", "selling_price",
)


def validate_pricing(data: dict) -> None:
    pricing = data.get("pricing_type")
    if pricing == PricingType.BASE_PRICE.value:
        if data.get("base_price") is None:
            raise BadRequest("Base price is required for base price pricing type")
    elif pricing == PricingType.MRP_BASED.value:
        mrp, selling = data.get("mrp"), data.get("selling_price")
        if mrp is None or selling is None:
            raise BadRequest("MRP and selling price are required for MRP pricing type")
        if float(selling) > float(mrp):
            raise BadRequest("Selling price cannot be greater than MRP")


def _get(db: Database, tenant_id: str, product_id: str) -> dict:
    p = db[PRODUCTS].find_one({"_id": as_object_id(product_id, "Product"), "tenant_id": tenant_id})
    if not p:
        raise NotFound("Product not found")
    return p


def _priced(data: dict) -> dict:
    # keep only the price fields that belong to the pricing type
    if data["pricing_type"] == PricingType.BASE_PRICE.value:
        data["mrp"] = data["selling_price"] = None
    else:
        data["base_price"] = None
    return data


def list_products(db: Database, tenant_id: str) -> list[dict]:
    rows = db[PRODUCTS].find({"tenant_id": tenant_id}).sort([("created_at", -1), ("_id", -1)])
    return [serialize_doc(p) for p in rows]


def get_product(db: Database, tenant_id: str, product_id: str) -> dict:
    return serialize_doc(_get(db, tenant_id, product_id))


def create_product(db: Database, tenant_id: str, body: ProductIn, storage: ObjectStorage | None = None,
                   image: bytes | None = None, content_type: str | None = None) -> dict:
    data = body.model_dump(mode="json")
    validate_pricing(data)

    doc = Product(tenant_id=tenant_id, **_priced(data)).to_document()
    if image is not None:
        check_image(image, content_type)
        doc["image_url"], doc["image_key"] = _upload(storage, image, content_type)
    res = db[PRODUCTS].insert_one(doc)
    doc["_id"] = res.inserted_id
    return serialize_doc(doc)


def update_product(db: Database, tenant_id: str, product_id: str, patch: ProductPatch) -> dict:
    current = _get(db, tenant_id, product_id)
    updates = patch.model_dump(mode="json", exclude_unset=True, exclude_none=True)

    # validate the product as it will be stored, not just the patch
    merged = {**current, **updates}
    validate_pricing(merged)
    merged = _priced(merged)
    for k in ("base_price", "mrp", "selling_price"):
        updates[k] = merged.get(k)

    updates["updated_at"] = utcnow()
    db[PRODUCTS].update_one({"_id": current["_id"]}, {"$set": updates})
    current.update(updates)
    return serialize_doc(current)


def _drop_image(storage: ObjectStorage, key: str | None) -> None:
    if not key:
        return
    try:
        storage.delete(key)
    except StorageError as exc:
        logger.warning("Failed to delete image %s: %s", key, exc)


def check_image(data: bytes, content_type: str | None) -> None:
    if not content_type or not content_type.startswith("image/"):
        raise BadRequest("Only image files are allowed")
    if not data:
        raise BadRequest("Image file is empty")
    if len(data) > MAX_FILE_SIZE:
        raise BadRequest(f"Image is too large (max {MAX_FILE_SIZE // (1024 * 1024)}MB)")


def _upload(storage: ObjectStorage, data: bytes, content_type: str) -> tuple[str, str]:
    try:
        return storage.upload(data, content_type)
    except StorageError as exc:
        raise Internal("Image upload failed", error=str(exc)) from exc


def replace_image(db: Database, storage: ObjectStorage, tenant_id: str, product_id: str,
                  data: bytes, content_type: str | None) -> dict:
    check_image(data, content_type)
    current = _get(db, tenant_id, product_id)
    url, key = _upload(storage, data, content_type)

    updates = {"image_url": url, "image_key": key, "updated_at": utcnow()}
    db[PRODUCTS].update_one({"_id": current["_id"]}, {"$set": updates})
    _drop_image(storage, current.get("image_key"))

    current.update(updates)
    return serialize_doc(current)


def delete_product(db: Database, storage: ObjectStorage, tenant_id: str, product_id: str) -> None:
    current = _get(db, tenant_id, product_id)
    _drop_image(storage, current.get("image_key"))
    db[PRODUCTS].delete_one({"_id": current["_id"]})


def set_stock(db: Database, tenant_id: str, product_id: str, in_stock: bool,
              duration: str | None = None, now: datetime | None = None) -> dict:
    current = _get(db, tenant_id, product_id)
    now = as_naive_utc(now) if now else utcnow()

    until = None
    if not in_stock and duration:
        key = DURATION_ALIASES.get(duration, duration)
        if key not in STOCK_DURATIONS:
            raise BadRequest("Invalid duration value")
        delta = STOCK_DURATIONS[key]
        until = now + delta if delta else None

    updates = {"in_stock": in_stock, "out_of_stock_until": until, "updated_at": utcnow()}
    db[PRODUCTS].update_one({"_id": current["_id"]}, {"$set": updates})
    current.update(updates)
    return serialize_doc(current)


def is_available(product: dict, now: datetime) -> bool:
    """
    A lapsed out-of-stock window means the item is back; a running window
    means it is not. Without a window the in_stock flag decides.
    """
    until = product.get("out_of_stock_until")
    if until is not None:
        return as_naive_utc(until) <= now
    return bool(product.get("in_stock"))


def check_availability(db: Database, product_id: str, now: datetime | None = None) -> dict:
    p = db[PRODUCTS].find_one(
        {"_id": as_object_id(product_id, "Product")},
        {"in_stock": 1, "out_of_stock_until": 1},
    )
    if not p:
        raise NotFound("Product not found")
    now = as_naive_utc(now) if now else utcnow()
    return {"product_id": product_id, "is_available": is_available(p, now)}


def public_menu(db: Database, tenant_id: str, now: datetime | None = None) -> dict:
    restaurant = db[RESTAURANTS].find_one({"tenant_id": tenant_id})
    if not restaurant:
        raise NotFound("Restaurant not found")

    now = as_naive_utc(now) if now else utcnow()
    rows = db[PRODUCTS].find({"tenant_id": tenant_id}).sort([("category", 1), ("item_name", 1)])

    menu: dict[str, list] = {}
    for p in rows:
        if not is_available(p, now):
            continue
        entry = {"id": str(p["_id"])}
        entry.update({k: p.get(k) for k in PUBLIC_FIELDS})
        menu.setdefault(p["category"], []).append(entry)

    return {
        "restaurant_info": {
            "name": restaurant.get("name"),
            "outlet": restaurant.get("outlet_name"),
        },
        "menu": menu,
    }
