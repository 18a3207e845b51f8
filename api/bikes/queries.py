# api/bikes/queries.py
"""
SQLAlchemy query builders for bikes, their audit trail and the catalog.
"""
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from db_models.bike import Bike
from db_models.catalog import Brand, BikeModel
from db_models.inventory_movement import InventoryMovement
from db_models.work_order import ServiceWorkOrder


def _bike_filters(status: str | None, search: str | None) -> list:
    filters = []
    if status is not None:
        filters.append(Bike.status == status)
    if search:
        filters.append(Bike.frame_number.contains(search, autoescape=True))
    return filters


def select_bikes(status: str | None, search: str | None, offset: int, limit: int):
    """Select a page of bikes, newest first, with brand and model."""
    return (
        select(Bike)
        .where(*_bike_filters(status, search))
        .options(selectinload(Bike.brand), selectinload(Bike.model))
        .order_by(Bike.created_at.desc(), Bike.id.desc())
        .offset(offset)
        .limit(limit)
    )


def count_bikes(status: str | None, search: str | None):
    return select(func.count(Bike.id)).where(*_bike_filters(status, search))


def select_bike_by_id(bike_id: int):
    """Select a bike with brand and model, refreshing any stale copy in the session."""
    return (
        select(Bike)
        .where(Bike.id == bike_id)
        .options(selectinload(Bike.brand), selectinload(Bike.model))
        .execution_options(populate_existing=True)
    )


def select_bike_for_update(bike_id: int):
    """Select a bike row and lock it for the rest of the transaction."""
    return (
        select(Bike)
        .where(Bike.id == bike_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


def select_bike_by_frame_number(frame_number: str):
    return select(Bike).where(Bike.frame_number == frame_number)


def select_movements_for_bike(bike_id: int):
    return (
        select(InventoryMovement)
        .where(InventoryMovement.bike_id == bike_id)
        .order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
    )


def select_work_orders_for_bike(bike_id: int):
    return (
        select(ServiceWorkOrder)
        .where(ServiceWorkOrder.bike_id == bike_id)
        .order_by(ServiceWorkOrder.created_at.desc(), ServiceWorkOrder.id.desc())
    )


def select_brand_by_id(brand_id: int):
    return select(Brand).where(Brand.id == brand_id)


def select_model_by_id(model_id: int):
    return select(BikeModel).where(BikeModel.id == model_id)


def select_brands():
    return select(Brand).order_by(Brand.name.asc())


def select_models(brand_id: int | None = None):
    stmt = select(BikeModel).options(selectinload(BikeModel.brand)).order_by(BikeModel.name.asc())
    if brand_id is not None:
        stmt = stmt.where(BikeModel.brand_id == brand_id)
    return stmt
