from pydantic import BaseModel


class RevenueDay(BaseModel):
    date: str
    payments: int
    refunds: int
    revenue: int
    orders: int


class RevenueStats(BaseModel):
    gross_revenue: int
    net_revenue: int
    total_orders: int
    average_order_value: int
    change_percent: float | None = None


class RevenueResponse(BaseModel):
    days: list[RevenueDay]
    stats: RevenueStats
