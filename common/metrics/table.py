from typing import Iterable, Optional

from common.norm import Order
from common.norm.status import STATUS_TONES, OrderStatus, fold, normalize_status

ALL_STATUSES = "all"
MISSING_STATUS_LABEL = "Pendente"


def _status_matches(current: Optional[str], requested: str) -> bool:
    if fold(current or "") == fold(requested):
        return True
    kind = normalize_status(current)
    return kind is not OrderStatus.OTHER and kind is normalize_status(requested)


def filter_orders_table(
    orders: Iterable[Order],
    status: Optional[str] = ALL_STATUSES,
    search: Optional[str] = "",
) -> list[Order]:
    wanted = None
    if status and fold(status) != ALL_STATUSES:
        wanted = fold(status)
    needle = (search or "").strip().casefold()

    rows = []
    for order in orders:
        if wanted is not None and not _status_matches(order.status, status):
            continue
        if needle:
            haystack = [(order.customer_name or "").casefold(), (order.product_description or "").casefold()]
            if not any(needle in h for h in haystack):
                continue
        rows.append(order)
    return rows


def status_badge(order: Order) -> tuple[str, str]:
    return order.status or MISSING_STATUS_LABEL, STATUS_TONES[normalize_status(order.status)]
