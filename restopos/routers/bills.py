from fastapi import APIRouter, Depends
from pymongo.database import Database
from typing import Optional

from restopos.config import settings
from restopos.db import get_db
from restopos.deps import Principal, require_auth
from restopos.errors import db_errors
from restopos.schemas.bills import BillPage, BillPatch, PaymentMethodIn
from restopos.services import bills as svc

router = APIRouter(tags=["bills"])


@router.get("/bills", response_model=BillPage)
def list_bills(
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    min_amount: Optional[str] = None,
    max_amount: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    db: Database = Depends(get_db),
    me: Principal = Depends(require_auth),
):
    """
    Paged bill history, newest first.

    Query params (all optional, combined with AND):
      - status / payment_status: exact match
      - start_date / end_date:   ISO dates, end_date is inclusive to end of day
      - min_amount / max_amount: bounds on total_amount, ignored if not numeric
      - page (1-based), limit
    """
    with db_errors("Failed to fetch bills"):
        return svc.list_bills(
            db, me.tenant_id,
            status=status, payment_status=payment_status,
            start_date=start_date, end_date=end_date,
            min_amount=min_amount, max_amount=max_amount,
            page=page, limit=limit,
        )


@router.get("/bills/summary")
def bills_summary(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: Database = Depends(get_db),
    me: Principal = Depends(require_auth),
):
    with db_errors("Failed to fetch bills summary"):
        return svc.summary(db, me.tenant_id, start_date, end_date, settings.SUMMARY_MAX_TIME_MS)


@router.get("/bills/{bill_id}")
def get_bill(bill_id: str, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to fetch bill"):
        return svc.get_bill(db, me.tenant_id, bill_id)


@router.get("/tables/{table_id}/active-bill")
def table_active_bill(table_id: str, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to fetch active bill"):
        return svc.active_bill(db, me.tenant_id, table_id)


@router.post("/bills/{table_id}/save")
def save_bill(table_id: str, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    """Close the table: all held orders become one paid bill."""
    with db_errors("Failed to save bill"):
        return svc.consolidate(db, me.tenant_id, table_id)


@router.patch("/bills/{bill_id}")
def update_bill(bill_id: str, body: BillPatch, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to update bill"):
        return svc.update_bill(db, me.tenant_id, bill_id, body)


@router.patch("/bills/{bill_id}/payment-method")
def update_payment_method(bill_id: str, body: PaymentMethodIn, db: Database = Depends(get_db), me: Principal = Depends(require_auth)):
    with db_errors("Failed to update payment method"):
        return svc.set_payment_method(db, me.tenant_id, bill_id, body.payment_method)
