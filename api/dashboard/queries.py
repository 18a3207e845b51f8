# api/dashboard/queries.py
"""
SQLAlchemy query builders for dashboard statistics.
"""
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from db_models.bike import Bike, BikeStatus
from db_models.work_order import Priority, ServiceWorkOrder, WorkOrderStatus

OPEN_STATUSES = (
    WorkOrderStatus.OPEN.value,
    WorkOrderStatus.IN_PROGRESS.value,
    WorkOrderStatus.WAITING_PARTS.value,
)
CLOSED_STATUSES = (
    WorkOrderStatus.COMPLETED.value,
    WorkOrderStatus.CANCELLED.value,
)


def count_bikes(status: BikeStatus | None = None):
    """Count bikes, optionally only those in one status."""
    stmt = select(func.count(Bike.id))
    if status is not None:
        stmt = stmt.where(Bike.status == status.value)
    return stmt


def count_work_orders():
    return select(func.count(ServiceWorkOrder.id))


def count_open_work_orders():
    """Count work orders that are open, in progress or waiting for parts."""
    return select(func.count(ServiceWorkOrder.id)).where(
        ServiceWorkOrder.status.in_(OPEN_STATUSES)
    )


def count_urgent_work_orders():
    """Count urgent work orders that are neither completed nor cancelled."""
    return select(func.count(ServiceWorkOrder.id)).where(
        ServiceWorkOrder.priority == Priority.URGENT.value,
        ServiceWorkOrder.status.not_in(CLOSED_STATUSES),
    )


def select_recent_sales(limit: int = 5):
    """Select the most recently sold bikes."""
    return (
        select(Bike)
        .options(selectinload(Bike.brand), selectinload(Bike.model))
        .where(Bike.status == BikeStatus.SOLD.value)
        .order_by(Bike.sold_at.desc(), Bike.id.desc())
        .limit(limit)
    )
