# api/work_orders/models.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from api.bikes.models import BikeRead
from core.money import MoneyIn, MoneyOut
from db_models.work_order import Priority, WorkOrderStatus


class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str


class WorkOrderCreate(BaseModel):
    bike_id: int
    description: str = Field(..., min_length=1)
    priority: Priority | None = None
    assigned_to_id: int | None = None
    estimated_cost: MoneyIn | None = None
    notes: str | None = None


class WorkOrderUpdate(BaseModel):
    """Partial update: only fields present in the request are applied."""
    description: str | None = Field(None, min_length=1)
    status: WorkOrderStatus | None = None
    priority: Priority | None = None
    assigned_to_id: int | None = None
    estimated_cost: MoneyIn | None = None
    actual_cost: MoneyIn | None = None
    notes: str | None = None


class WorkOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    bike_id: int
    bike: BikeRead
    description: str
    status: WorkOrderStatus
    priority: Priority
    created_by_id: int | None = None
    created_by: UserBrief | None = None
    assigned_to_id: int | None = None
    assigned_to: UserBrief | None = None
    estimated_cost: MoneyOut | None = None
    actual_cost: MoneyOut | None = None
    notes: str | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None


class WorkOrderListResponse(BaseModel):
    work_orders: list[WorkOrderRead]
    total: int
    page: int
    limit: int
