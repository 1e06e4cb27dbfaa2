from pydantic import BaseModel


class SeriesPoint(BaseModel):
    name: str
    value: int


class DashboardMetrics(BaseModel):
    total_orders: int
    total_revenue: float
    average_order_value: float
    completed_orders: int
    average_delivery_minutes: float
    active_couriers: int
    delivery_time_histogram: list[SeriesPoint]
    payment_method_distribution: list[SeriesPoint]
    top_couriers: list[SeriesPoint]
