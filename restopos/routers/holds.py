from fastapi import APIRouter, Depends
from pymongo.database import Database
from typing import Optional

from restopos.db import get_db
from restopos.deps import Principal, require_auth
from restopos.errors import db_errors
from restopos.models import HoldStatus
from restopos.schemas.orders import HoldIn
from restopos.services import holds as svc

router = APIRouter(prefix="/holds", tags=["holds"])


@router.get("")
def list_holds(
    table_id: Optional[str] = None,
    status: HoldStatus = HoldStatus.HOLD,
    db: Database = Depends(get_db),
    me: Principal = Depends(require_auth),
):
    with db_errors("Failed to fetch held orders"):
        return svc.list_holds(db, me.tenant_id, table_id, status.value)


@router.post("/{table_id}", status_code=201)
def hold_order(table_id: str, body: HoldIn, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    """Park an order on a table; the table shows as Occupied until the bill is saved."""
    with db_errors("Failed to hold order"):
        return svc.create_hold(db, me.tenant_id, table_id, body)
