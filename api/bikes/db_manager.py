# api/bikes/db_manager.py
"""
Inventory state machine for bikes.

Every status change writes an InventoryMovement in the same unit of work as
the status update. Guards are checked against the row read with
SELECT ... FOR UPDATE so two concurrent transitions on one bike serialize.
Events are published only after the commit succeeded; delivery runs in the
background and never delays the response.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ErrorKind, ServiceError, not_found
from core.money import normalize_price
from core.notifier import EventType, Notifier
from db_models.bike import Bike, BikeStatus
from db_models.inventory_movement import InventoryMovement
from .models import BikeRead, BikeWorkOrderSummary, MovementRead
from . import queries

logger = logging.getLogger(__name__)

# Statuses a bike may be checked out (sold) from
CHECKOUT_ALLOWED = (BikeStatus.IN_STOCK.value, BikeStatus.RESERVED.value)

PRICE_FIELDS = ("purchase_price", "selling_price")
UPDATABLE_FIELDS = ("color", "size", "purchase_price", "selling_price", "notes")


def record_transition(
    db: AsyncSession,
    bike: Bike,
    to_status: BikeStatus | str,
    reason: str,
    actor_id: int | None,
) -> InventoryMovement:
    """
    Move a bike to ``to_status`` and queue the matching audit record.

    The caller owns the unit of work; nothing is committed here. Entering
    SOLD stamps ``sold_at``; leaving SOLD keeps the original stamp.
    """
    to_value = BikeStatus(to_status).value
    movement = InventoryMovement(
        bike_id=bike.id,
        from_status=bike.status,
        to_status=to_value,
        reason=reason,
        performed_by_id=actor_id,
    )
    db.add(movement)

    bike.status = to_value
    if to_value == BikeStatus.SOLD.value:
        bike.sold_at = datetime.now(timezone.utc)

    logger.info("Bike %s: %s -> %s (%s)", bike.id, movement.from_status, to_value, reason)
    return movement


def _publish(notifier: Notifier | None, event: EventType, bike: Bike) -> None:
    if notifier is None:
        return
    notifier.publish(event, BikeRead.model_validate(bike).model_dump(mode="json"))


async def get_bike(db: AsyncSession, bike_id: int) -> Bike:
    """Get a bike with brand and model. Raises ServiceError(NOT_FOUND)."""
    result = await db.execute(queries.select_bike_by_id(bike_id))
    bike = result.scalar_one_or_none()
    if bike is None:
        raise not_found("Bike")
    return bike


async def get_bike_detail(db: AsyncSession, bike_id: int) -> dict:
    """
    A bike plus its inventory movements and work orders, newest first.
    """
    bike = await get_bike(db, bike_id)

    result = await db.execute(queries.select_movements_for_bike(bike_id))
    movements = [MovementRead.model_validate(m) for m in result.scalars().all()]

    result = await db.execute(queries.select_work_orders_for_bike(bike_id))
    work_orders = [BikeWorkOrderSummary.model_validate(w) for w in result.scalars().all()]

    return {
        **BikeRead.model_validate(bike).model_dump(),
        "inventory_movements": movements,
        "work_orders": work_orders,
    }


async def list_bikes(
    db: AsyncSession,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Bike], int]:
    """
    Page through bikes, newest first.

    An unknown ``status`` value is ignored rather than matching nothing;
    ``search`` matches a frame-number substring.
    """
    if status is not None and status not in BikeStatus.__members__:
        status = None

    result = await db.execute(queries.count_bikes(status, search))
    total = result.scalar() or 0

    result = await db.execute(queries.select_bikes(status, search, (page - 1) * limit, limit))
    return list(result.scalars().all()), total


async def create_bike(
    db: AsyncSession,
    data: dict[str, Any],
    actor_id: int | None,
    notifier: Notifier | None = None,
) -> Bike:
    """
    Register a new bike in IN_STOCK together with its first movement.

    Raises:
        ServiceError(CONFLICT): If the frame number is already in use
        ServiceError(NOT_FOUND): If the brand or model doesn't exist
        ServiceError(VALIDATION_ERROR): If the model belongs to another brand
    """
    frame_number = data["frame_number"]

    result = await db.execute(queries.select_bike_by_frame_number(frame_number))
    if result.scalar_one_or_none() is not None:
        raise ServiceError(
            ErrorKind.CONFLICT,
            "A bike with this frame number already exists",
            code="DUPLICATE_FRAME_NUMBER",
        )

    result = await db.execute(queries.select_brand_by_id(data["brand_id"]))
    if result.scalar_one_or_none() is None:
        raise not_found("Brand")

    result = await db.execute(queries.select_model_by_id(data["model_id"]))
    model = result.scalar_one_or_none()
    if model is None:
        raise not_found("Model")
    if model.brand_id != data["brand_id"]:
        raise ServiceError(ErrorKind.VALIDATION_ERROR, "Model does not belong to the given brand")

    bike = Bike(
        frame_number=frame_number,
        brand_id=data["brand_id"],
        model_id=data["model_id"],
        year=data.get("year"),
        color=data.get("color"),
        size=data.get("size"),
        purchase_price=normalize_price(data.get("purchase_price")),
        selling_price=normalize_price(data.get("selling_price")),
        notes=data.get("notes"),
        status=BikeStatus.IN_STOCK.value,
    )
    db.add(bike)

    try:
        await db.flush()
        db.add(InventoryMovement(
            bike_id=bike.id,
            from_status=None,
            to_status=BikeStatus.IN_STOCK.value,
            reason="New bike added",
            performed_by_id=actor_id,
        ))
        await db.commit()
    except IntegrityError as exc:
        # Lost a race on the unique frame number; nothing was written
        await db.rollback()
        raise ServiceError(
            ErrorKind.CONFLICT,
            "A bike with this frame number already exists",
            code="DUPLICATE_FRAME_NUMBER",
        ) from exc

    logger.info("Bike %s created with frame number %s", bike.id, frame_number)
    bike = await get_bike(db, bike.id)
    _publish(notifier, EventType.BIKE_CREATED, bike)
    return bike


async def update_bike(
    db: AsyncSession,
    bike_id: int,
    changes: dict[str, Any],
    actor_id: int | None,
    notifier: Notifier | None = None,
) -> Bike:
    """
    Apply a partial update and, when the status changes, record the move.

    Only keys present in ``changes`` are applied. The single guarded rule:
    a bike IN_SERVICE cannot go straight to SOLD.

    Raises:
        ServiceError(NOT_FOUND): If the bike doesn't exist
        ServiceError(INVALID_TRANSITION): If selling a bike that is in service
    """
    result = await db.execute(queries.select_bike_for_update(bike_id))
    bike = result.scalar_one_or_none()
    if bike is None:
        raise not_found("Bike")

    new_status = changes.get("status")
    if new_status is not None:
        new_status = BikeStatus(new_status).value

    if new_status == BikeStatus.SOLD.value and bike.status == BikeStatus.IN_SERVICE.value:
        raise ServiceError(
            ErrorKind.INVALID_TRANSITION,
            f"Cannot change status from {bike.status} to {new_status}: "
            "a bike that is in service cannot be sold",
        )

    for field in UPDATABLE_FIELDS:
        if field in changes:
            value = changes[field]
            if field in PRICE_FIELDS:
                value = normalize_price(value)
            setattr(bike, field, value)

    if new_status is not None and new_status != bike.status:
        record_transition(
            db,
            bike,
            new_status,
            f"Status changed from {bike.status} to {new_status}",
            actor_id,
        )

    await db.commit()

    bike = await get_bike(db, bike_id)
    _publish(notifier, EventType.BIKE_UPDATED, bike)
    return bike


async def checkout_bike(
    db: AsyncSession,
    bike_id: int,
    actor_id: int | None,
    notifier: Notifier | None = None,
) -> Bike:
    """
    Sell a bike. Only IN_STOCK or RESERVED bikes can be checked out.

    Raises:
        ServiceError(NOT_FOUND): If the bike doesn't exist
        ServiceError(INVALID_TRANSITION): If the bike is in any other status
    """
    result = await db.execute(queries.select_bike_for_update(bike_id))
    bike = result.scalar_one_or_none()
    if bike is None:
        raise not_found("Bike")

    if bike.status not in CHECKOUT_ALLOWED:
        raise ServiceError(
            ErrorKind.INVALID_TRANSITION,
            f"Cannot checkout a bike with status {bike.status}. "
            "Only IN_STOCK or RESERVED bikes can be sold.",
        )

    record_transition(db, bike, BikeStatus.SOLD, "Bike sold", actor_id)
    await db.commit()

    bike = await get_bike(db, bike_id)
    _publish(notifier, EventType.BIKE_CHECKOUT, bike)
    return bike


async def list_brands(db: AsyncSession) -> list:
    result = await db.execute(queries.select_brands())
    return list(result.scalars().all())


async def list_models(db: AsyncSession, brand_id: int | None = None) -> list:
    result = await db.execute(queries.select_models(brand_id))
    return list(result.scalars().all())
