# api/dashboard/models.py
from datetime import datetime

from pydantic import BaseModel

from core.money import MoneyOut


class RecentSale(BaseModel):
    id: int
    frame_number: str
    brand: str
    model: str
    year: int | None = None
    color: str | None = None
    size: str | None = None
    selling_price: MoneyOut | None = None
    sold_at: datetime | None = None


class DashboardStats(BaseModel):
    total_bikes: int
    bikes_in_stock: int
    bikes_in_service: int
    bikes_sold: int
    total_work_orders: int
    open_work_orders: int
    urgent_work_orders: int
    recent_sales: list[RecentSale]
