# api/work_orders/queries.py
"""
SQLAlchemy query builders for service work orders.
"""
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from db_models.bike import Bike
from db_models.work_order import ServiceWorkOrder


def _with_relations(stmt):
    return stmt.options(
        selectinload(ServiceWorkOrder.bike).selectinload(Bike.brand),
        selectinload(ServiceWorkOrder.bike).selectinload(Bike.model),
        selectinload(ServiceWorkOrder.created_by),
        selectinload(ServiceWorkOrder.assigned_to),
    )


def _filters(status: str | None) -> list:
    if status is None:
        return []
    return [ServiceWorkOrder.status == status]


def select_work_orders(status: str | None, offset: int, limit: int):
    """Select a page of work orders, newest first, with bike and people."""
    stmt = (
        select(ServiceWorkOrder)
        .where(*_filters(status))
        .order_by(ServiceWorkOrder.created_at.desc(), ServiceWorkOrder.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return _with_relations(stmt)


def count_work_orders(status: str | None):
    return select(func.count(ServiceWorkOrder.id)).where(*_filters(status))


def select_work_order_by_id(work_order_id: int):
    stmt = (
        select(ServiceWorkOrder)
        .where(ServiceWorkOrder.id == work_order_id)
        .execution_options(populate_existing=True)
    )
    return _with_relations(stmt)


def select_work_order_for_update(work_order_id: int):
    """Select a work order row and lock it for the rest of the transaction."""
    return (
        select(ServiceWorkOrder)
        .where(ServiceWorkOrder.id == work_order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
