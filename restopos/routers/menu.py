from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from pymongo.database import Database
from typing import List, Optional

from restopos.db import get_db
from restopos.deps import Principal, require_auth
from restopos.errors import db_errors
from restopos.schemas.common import Msg
from restopos.schemas.menu import AvailabilityOut, ProductIn, ProductOut, ProductPatch, StockIn
from restopos.services import catalog as svc
from restopos.services.storage import ObjectStorage, get_storage

router = APIRouter(tags=["menu"])


# ---------- PRODUCTS (owner side) ----------

@router.get("/my-products", response_model=List[ProductOut])
def my_products(db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to fetch products"):
        return svc.list_products(db, me.tenant_id)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to fetch product"):
        return svc.get_product(db, me.tenant_id, product_id)


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(body: ProductIn, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    """
    basePrice items keep base_price only; mrpBased items keep mrp and
    selling_price, and selling_price may not exceed mrp.
    """
    with db_errors("Failed to create product"):
        return svc.create_product(db, me.tenant_id, body)


@router.post("/products/with-image", response_model=ProductOut, status_code=201)
def create_product_with_image(
    data: str = Form(...),
    image: Optional[UploadFile] = File(None),
    db: Database = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    me: Principal = Depends(require_auth),
):
    """Multipart create: `data` is the product JSON, `image` is optional."""
    try:
        body = ProductIn.model_validate_json(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc
    raw = image.file.read() if image is not None else None
    content_type = image.content_type if image is not None else None
    with db_errors("Failed to create product"):
        return svc.create_product(db, me.tenant_id, body, storage, raw, content_type)


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: str, body: ProductPatch, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to update product"):
        return svc.update_product(db, me.tenant_id, product_id, body)


@router.put("/products/{product_id}/image", response_model=ProductOut)
def upload_product_image(
    product_id: str,
    image: UploadFile = File(...),
    db: Database = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    me: Principal = Depends(require_auth),
):
    # the previous asset is removed only after the new one is stored
    data = image.file.read()
    with db_errors("Failed to update product image"):
        return svc.replace_image(db, storage, me.tenant_id, product_id, data, image.content_type)


@router.delete("/products/{product_id}", response_model=Msg)
def delete_product(
    product_id: str,
    db: Database = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    me: Principal = Depends(require_auth),
):
    with db_errors("Failed to delete product"):
        svc.delete_product(db, storage, me.tenant_id, product_id)
    return {"message": "Product deleted successfully"}


@router.patch("/products/{product_id}/stock", response_model=ProductOut)
def update_stock(product_id: str, body: StockIn, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    """duration: 2h | 6h | 1d | 1w | indefinite (only used when in_stock is false)"""
    with db_errors("Failed to update stock status"):
        return svc.set_stock(db, me.tenant_id, product_id, body.in_stock, body.duration)


# ---------- PUBLIC (no auth) ----------

@router.get("/public/{tenant_id}/menu")
def public_menu(tenant_id: str, db: Database = Depends(get_db)):
    with db_errors("Failed to fetch menu"):
        return svc.public_menu(db, tenant_id)


@router.get("/public/product/{product_id}/availability", response_model=AvailabilityOut)
def product_availability(product_id: str, db: Database = Depends(get_db)):
    with db_errors("Failed to check availability"):
        return svc.check_availability(db, product_id)
