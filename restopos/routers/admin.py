from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from restopos.config import settings
from restopos.db import RESTAURANTS, get_db
from restopos.errors import db_errors
from restopos.models import Restaurant, utcnow
from restopos.schemas.common import BootstrapIn, Token
from restopos.util.security import create_token

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/dev-bootstrap", response_model=Token)
def dev_bootstrap(body: BootstrapIn | None = None, db: Database = Depends(get_db)):
    if settings.APP_ENV != "dev":
        raise HTTPException(403, detail="Not allowed")
    body = body or BootstrapIn()

    # Restaurant profile (public menu needs it)
    with db_errors("Failed to bootstrap restaurant"):
        doc = Restaurant(tenant_id=body.tenant_id, name=body.name, outlet_name=body.outlet_name).to_document()
        db[RESTAURANTS].update_one(
            {"tenant_id": body.tenant_id},
            {
                "$set": {"name": doc["name"], "outlet_name": doc["outlet_name"], "updated_at": utcnow()},
                "$setOnInsert": {"tenant_id": doc["tenant_id"], "created_at": doc["created_at"]},
            },
            upsert=True,
        )

    return Token(
        access_token=create_token(f"owner-{body.tenant_id}", body.tenant_id),
        tenant_id=body.tenant_id,
    )
