# api/bikes/models.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from core.money import MoneyIn, MoneyOut
from db_models.bike import BikeStatus
from db_models.work_order import Priority, WorkOrderStatus


class BrandRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    name: str


class BikeModelRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    name: str
    brand_id: int


class BikeModelWithBrand(BikeModelRead):
    brand: BrandRead


class BikeCreate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    frame_number: str = Field(..., min_length=1, max_length=100)
    brand_id: int
    model_id: int
    year: int | None = Field(None, ge=1900, le=2100)
    color: str | None = Field(None, max_length=50)
    size: str | None = Field(None, max_length=20)
    purchase_price: MoneyIn | None = None
    selling_price: MoneyIn | None = None
    notes: str | None = None


class BikeUpdate(BaseModel):
    """Partial update: only fields present in the request are applied."""
    color: str | None = Field(None, max_length=50)
    size: str | None = Field(None, max_length=20)
    purchase_price: MoneyIn | None = None
    selling_price: MoneyIn | None = None
    notes: str | None = None
    status: BikeStatus | None = None


class BikeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    frame_number: str
    brand_id: int
    model_id: int
    brand: BrandRead
    model: BikeModelRead
    year: int | None = None
    color: str | None = None
    size: str | None = None
    purchase_price: MoneyOut | None = None
    selling_price: MoneyOut | None = None
    status: BikeStatus
    notes: str | None = None
    sold_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None


class MovementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    bike_id: int
    from_status: BikeStatus | None = None
    to_status: BikeStatus
    reason: str | None = None
    performed_by_id: int | None = None
    created_at: datetime


class BikeWorkOrderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    description: str
    status: WorkOrderStatus
    priority: Priority
    created_at: datetime
    completed_at: datetime | None = None


class BikeDetail(BikeRead):
    """A bike with its audit trail and work orders, newest first."""
    inventory_movements: list[MovementRead]
    work_orders: list[BikeWorkOrderSummary]


class BikeListResponse(BaseModel):
    bikes: list[BikeRead]
    total: int
    page: int
    limit: int
