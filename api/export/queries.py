# api/export/queries.py
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from db_models.bike import Bike
from db_models.work_order import ServiceWorkOrder


def select_all_bikes():
    return (
        select(Bike)
        .options(selectinload(Bike.brand), selectinload(Bike.model))
        .order_by(Bike.created_at.desc(), Bike.id.desc())
    )


def select_all_work_orders():
    return (
        select(ServiceWorkOrder)
        .options(
            selectinload(ServiceWorkOrder.bike),
            selectinload(ServiceWorkOrder.created_by),
            selectinload(ServiceWorkOrder.assigned_to),
        )
        .order_by(ServiceWorkOrder.created_at.desc(), ServiceWorkOrder.id.desc())
    )
