from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from common.norm import Order
from common.norm.status import is_completed

from .types import DashboardMetrics, SeriesPoint

PAYMENT_FALLBACK_LABEL = "not informed"
TOP_COURIERS_LIMIT = 5

# (label, upper bound in minutes); the last bucket is open-ended
DELIVERY_BUCKETS: tuple[tuple[str, Optional[float]], ...] = (
    ("0-30 min", 30),
    ("30-60 min", 60),
    ("60-90 min", 90),
    ("90+ min", None),
)


def _day_start(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time.min)


def filter_by_date_range(
    orders: Iterable[Order],
    start: date | datetime | None = None,
    end: date | datetime | None = None,
) -> list[Order]:
    """Keep orders placed between ``start`` and the whole of ``end``.

    Orders without a creation timestamp never pass.
    """
    lower = _day_start(start) if start is not None else None
    upper = _day_start(end) + timedelta(days=1) if end is not None else None

    kept = []
    for order in orders:
        ts = order.created_at
        if ts is None:
            continue
        if lower is not None and ts < lower:
            continue
        if upper is not None and ts > upper:
            continue
        kept.append(order)
    return kept


def delivery_minutes(order: Order) -> Optional[float]:
    if order.created_at is None or order.delivered_at is None:
        return None
    return (order.delivered_at - order.created_at).total_seconds() / 60


def completed_orders(orders: Iterable[Order]) -> list[Order]:
    return [
        o for o in orders
        if is_completed(o.status) and o.created_at is not None and o.delivered_at is not None
    ]


def bucket_label(minutes: float) -> str:
    for label, upper in DELIVERY_BUCKETS:
        if upper is None or minutes < upper:
            return label
    return DELIVERY_BUCKETS[-1][0]


def delivery_time_histogram(completed: Sequence[Order]) -> list[SeriesPoint]:
    counts: dict[str, int] = {}
    for order in completed:
        label = bucket_label(delivery_minutes(order) or 0.0)
        counts[label] = counts.get(label, 0) + 1
    return [
        SeriesPoint(name=label, value=counts[label])
        for label, _ in DELIVERY_BUCKETS
        if counts.get(label)
    ]


def average_delivery_minutes(completed: Sequence[Order]) -> float:
    if not completed:
        return 0.0
    return sum(delivery_minutes(o) or 0.0 for o in completed) / len(completed)


def payment_method_distribution(orders: Iterable[Order]) -> list[SeriesPoint]:
    counts: dict[str, int] = {}
    for order in orders:
        method = (order.payment_method or "").strip() or PAYMENT_FALLBACK_LABEL
        counts[method] = counts.get(method, 0) + 1
    return [SeriesPoint(name=name, value=value) for name, value in counts.items()]


def courier_counts(orders: Iterable[Order]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for order in orders:
        if order.courier:
            counts[order.courier] = counts.get(order.courier, 0) + 1
    return counts


def top_couriers(orders: Iterable[Order], limit: int = TOP_COURIERS_LIMIT) -> list[SeriesPoint]:
    # sorted() is stable, so ties keep first-encounter order
    ranked = sorted(courier_counts(orders).items(), key=lambda kv: kv[1], reverse=True)
    return [SeriesPoint(name=name, value=value) for name, value in ranked[:limit]]


def compute_metrics(orders: Sequence[Order]) -> DashboardMetrics:
    total_orders = len(orders)
    total_revenue = sum(o.amount for o in orders)
    done = completed_orders(orders)

    return DashboardMetrics(
        total_orders=total_orders,
        total_revenue=total_revenue,
        average_order_value=total_revenue / total_orders if total_orders else 0.0,
        completed_orders=len(done),
        average_delivery_minutes=average_delivery_minutes(done),
        active_couriers=len(courier_counts(orders)),
        delivery_time_histogram=delivery_time_histogram(done),
        payment_method_distribution=payment_method_distribution(orders),
        top_couriers=top_couriers(orders),
    )
