# api/signals/queries.py
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from db_models.bike import Bike, BikeStatus

# Statuses whose selling price is still a live asking price
PRICED_STATUSES = (BikeStatus.IN_STOCK.value, BikeStatus.RESERVED.value)


def select_frame_numbers():
    return select(Bike.id, Bike.frame_number).order_by(Bike.id)


def select_priced_bikes():
    """Bikes on offer with a selling price, cheapest first."""
    return (
        select(Bike.id, Bike.frame_number, Bike.selling_price)
        .where(
            Bike.selling_price.is_not(None),
            Bike.status.in_(PRICED_STATUSES),
        )
        .order_by(Bike.selling_price.asc(), Bike.id)
    )


def select_stock_with_both_prices():
    return (
        select(Bike)
        .options(selectinload(Bike.brand), selectinload(Bike.model))
        .where(
            Bike.status == BikeStatus.IN_STOCK.value,
            Bike.purchase_price.is_not(None),
            Bike.selling_price.is_not(None),
        )
        .order_by(Bike.id)
    )
