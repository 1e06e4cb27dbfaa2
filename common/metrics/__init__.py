from .aggregate import compute_metrics, filter_by_date_range
from .table import filter_orders_table, status_badge
from .types import DashboardMetrics, SeriesPoint

__all__ = [
    "compute_metrics",
    "filter_by_date_range",
    "filter_orders_table",
    "status_badge",
    "DashboardMetrics",
    "SeriesPoint",
]
