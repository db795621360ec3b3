# restopos/routers/dining.py
from fastapi import APIRouter, Depends
from pymongo.database import Database

from restopos.db import get_db
from restopos.deps import Principal, require_auth
from restopos.errors import db_errors
from restopos.schemas.common import Msg
from restopos.schemas.dining import BulkTablesIn, TableIn, TableStatusIn
from restopos.services import tables as svc

router = APIRouter(prefix="/tables", tags=["tables"])


# ------------------------------------------------------------------
# GET /tables  -> tables of the caller's restaurant, by number
# ------------------------------------------------------------------
@router.get("")
def list_tables(db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to fetch tables"):
        return svc.list_tables(db, me.tenant_id)


# ------------------------------------------------------------------
# POST /tables  -> create one table (409 if the number is taken)
# ------------------------------------------------------------------
@router.post("", status_code=201)
def create_table(body: TableIn, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to create table"):
        return svc.create_table(db, me.tenant_id, body.table_number)


# ------------------------------------------------------------------
# POST /tables/bulk  -> create a numbered range, all or nothing
# ------------------------------------------------------------------
@router.post("/bulk", status_code=201)
def create_bulk_tables(body: BulkTablesIn, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    """
    body: {base_number, quantity}  (quantity 1..50)

    If any number in [base_number, base_number+quantity-1] exists, nothing is
    created and the response lists `conflicting_numbers`.
    """
    with db_errors("Failed to create tables"):
        return svc.create_bulk(db, me.tenant_id, body.base_number, body.quantity)


# ------------------------------------------------------------------
# PATCH /tables/{table_id}/status  -> Available | Occupied
# ------------------------------------------------------------------
@router.patch("/{table_id}/status")
def update_table_status(table_id: str, body: TableStatusIn, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to update table"):
        return svc.set_status(db, me.tenant_id, table_id, body.status)


# ------------------------------------------------------------------
# DELETE /tables/{table_id}
# ------------------------------------------------------------------
@router.delete("/{table_id}", response_model=Msg)
def delete_table(table_id: str, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to delete table"):
        svc.delete_table(db, me.tenant_id, table_id)
    return {"message": "Table deleted"}
