from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel

from .amounts import normalize_amount
from .dates import resolve_timestamp
from . import Order


class OrderFieldMap(BaseModel):
    """Candidate backend field names per order attribute, tried in order."""

    id: list[str] = ["id"]
    customer_name: list[str] = ["nome", "customer_name"]
    product_description: list[str] = ["produto", "product_description"]
    amount: list[str] = ["valor_do_produto", "amount"]
    payment_method: list[str] = ["forma_de_pagamento", "payment_method"]
    created_at: list[str] = ["data_pedido", "date_created", "created_at"]
    delivered_at: list[str] = ["data_entrega", "delivered_at"]
    status: list[str] = ["status"]
    courier: list[str] = ["entregador", "courier"]


DEFAULT_FIELDS = OrderFieldMap()


def first_present(record: Mapping[str, Any], names: Iterable[str]) -> Any:
    for name in names:
        value = record.get(name)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def order_from_record(record: Mapping[str, Any], fields: OrderFieldMap = DEFAULT_FIELDS) -> Order:
    order_id = first_present(record, fields.id)
    if order_id is None:
        order_id = ""
    return Order(
        id=order_id if isinstance(order_id, (int, str)) else str(order_id),
        customer_name=_text(first_present(record, fields.customer_name)),
        product_description=_text(first_present(record, fields.product_description)),
        amount=normalize_amount(first_present(record, fields.amount)),
        payment_method=_text(first_present(record, fields.payment_method)),
        created_at=resolve_timestamp(record, fields.created_at),
        delivered_at=resolve_timestamp(record, fields.delivered_at),
        status=_text(first_present(record, fields.status)),
        courier=_text(first_present(record, fields.courier)),
    )


def orders_from_records(
    records: Iterable[Mapping[str, Any]], fields: OrderFieldMap = DEFAULT_FIELDS
) -> list[Order]:
    return [order_from_record(r, fields) for r in records]
