from datetime import date, datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.app.backend import get_backend
from api.app.config import settings
from api.app.security import get_token, require_identity
from common.clients.base import Backend
from common.clients.errors import BackendError
from common.clients.types import DisplayProfile, Identity
from common.metrics import DashboardMetrics, compute_metrics, filter_by_date_range, filter_orders_table, status_badge
from common.norm import Order
from common.norm.amounts import format_brl
from common.norm.records import orders_from_records
from common.services.profile import ProfileService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class OrderRow(BaseModel):
    id: Union[int, str]
    customer_name: str
    product_description: str
    amount: float
    amount_display: str
    payment_method: str
    created_at: Optional[datetime]
    status: str
    status_tone: str


class DashboardResponse(BaseModel):
    profile: DisplayProfile
    collection: str
    metrics: DashboardMetrics
    orders: list[OrderRow]


def _row(order: Order) -> OrderRow:
    label, tone = status_badge(order)
    return OrderRow(
        id=order.id,
        customer_name=order.customer_name or "Cliente",
        product_description=order.product_description or "-",
        amount=order.amount,
        amount_display=format_brl(order.amount),
        payment_method=order.payment_method or "-",
        created_at=order.created_at,
        status=label,
        status_tone=tone,
    )


@router.get("", response_model=DashboardResponse)
async def dashboard(
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: str = "all",
    search: str = "",
    identity: Identity = Depends(require_identity),
    token: Optional[str] = Depends(get_token),
    backend: Backend = Depends(get_backend),
):
    collection = identity.orders_collection or settings.orders_collection
    if not collection:
        raise HTTPException(
            status_code=404,
            detail="Your user has no linked orders collection. Contact support.",
        )

    fields = settings.order_fields
    sort = [f"-{fields.created_at[0]}"] if fields.created_at else None
    try:
        records = await backend.list_records(token, collection, sort=sort)
    except BackendError as exc:
        if exc.status_code == 403:
            raise HTTPException(status_code=403, detail=f"No permission to read collection: {collection}")
        raise

    orders = filter_by_date_range(orders_from_records(records, fields), start, end)
    return DashboardResponse(
        profile=ProfileService(backend).profile_of(identity),
        collection=collection,
        metrics=compute_metrics(orders),
        orders=[_row(o) for o in filter_orders_table(orders, status, search)],
    )
