# api/work_orders/db_manager.py
"""
Work order state machine and its coupling to bike inventory.

Opening a work order on a bike IN_STOCK moves it to IN_SERVICE; completing
one moves a bike that is still IN_SERVICE back to IN_STOCK. Both bike moves
share the unit of work that writes the work order. No other transition is
guarded.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.queries import select_user_by_id
from api.bikes.db_manager import record_transition
from api.bikes.queries import select_bike_for_update
from core.errors import not_found
from core.money import normalize_price
from core.notifier import EventType, Notifier
from db_models.bike import BikeStatus
from db_models.work_order import Priority, ServiceWorkOrder, WorkOrderStatus
from .models import WorkOrderRead
from . import queries

logger = logging.getLogger(__name__)

COST_FIELDS = ("estimated_cost", "actual_cost")
# NOT NULL columns: an explicit null leaves them unchanged
REQUIRED_FIELDS = ("description", "priority")
UPDATABLE_FIELDS = (
    "description",
    "priority",
    "assigned_to_id",
    "estimated_cost",
    "actual_cost",
    "notes",
)


def _publish(notifier: Notifier | None, event: EventType, order: ServiceWorkOrder) -> None:
    if notifier is None:
        return
    notifier.publish(event, WorkOrderRead.model_validate(order).model_dump(mode="json"))


async def _ensure_user_exists(db: AsyncSession, user_id: int | None) -> None:
    if user_id is None:
        return
    result = await db.execute(select_user_by_id(user_id))
    if result.scalar_one_or_none() is None:
        raise not_found("User")


async def get_work_order(db: AsyncSession, work_order_id: int) -> ServiceWorkOrder:
    """Get a work order with its bike and people. Raises ServiceError(NOT_FOUND)."""
    result = await db.execute(queries.select_work_order_by_id(work_order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise not_found("Work order")
    return order


async def list_work_orders(
    db: AsyncSession,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[ServiceWorkOrder], int]:
    if status is not None and status not in WorkOrderStatus.__members__:
        status = None

    result = await db.execute(queries.count_work_orders(status))
    total = result.scalar() or 0

    result = await db.execute(queries.select_work_orders(status, (page - 1) * limit, limit))
    return list(result.scalars().all()), total


async def create_work_order(
    db: AsyncSession,
    data: dict[str, Any],
    actor_id: int | None,
    notifier: Notifier | None = None,
) -> ServiceWorkOrder:
    """
    Open a work order against an existing bike.

    A bike that is IN_STOCK goes to IN_SERVICE with one inventory movement;
    a bike in any other status is left alone.

    Raises:
        ServiceError(NOT_FOUND): If the bike or the assignee doesn't exist
    """
    result = await db.execute(select_bike_for_update(data["bike_id"]))
    bike = result.scalar_one_or_none()
    if bike is None:
        raise not_found("Bike")

    await _ensure_user_exists(db, data.get("assigned_to_id"))

    priority = data.get("priority") or Priority.MEDIUM
    order = ServiceWorkOrder(
        bike_id=bike.id,
        description=data["description"],
        status=WorkOrderStatus.OPEN.value,
        priority=Priority(priority).value,
        created_by_id=actor_id,
        assigned_to_id=data.get("assigned_to_id"),
        estimated_cost=normalize_price(data.get("estimated_cost")),
        notes=data.get("notes"),
    )
    db.add(order)

    if bike.status == BikeStatus.IN_STOCK.value:
        record_transition(db, bike, BikeStatus.IN_SERVICE, "Work order opened", actor_id)

    await db.flush()
    await db.commit()

    logger.info("Work order %s opened for bike %s", order.id, bike.id)
    order = await get_work_order(db, order.id)
    _publish(notifier, EventType.WORKORDER_CREATED, order)
    return order


async def update_work_order(
    db: AsyncSession,
    work_order_id: int,
    changes: dict[str, Any],
    actor_id: int | None,
    notifier: Notifier | None = None,
) -> ServiceWorkOrder:
    """
    Apply a partial update to a work order.

    Moving into COMPLETED stamps ``completed_at`` and returns a bike that is
    IN_SERVICE to IN_STOCK. Any other status change is accepted as is.

    Raises:
        ServiceError(NOT_FOUND): If the work order or the assignee doesn't exist
    """
    result = await db.execute(queries.select_work_order_for_update(work_order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise not_found("Work order")

    if "assigned_to_id" in changes:
        await _ensure_user_exists(db, changes["assigned_to_id"])

    for field in UPDATABLE_FIELDS:
        if field in changes:
            value = changes[field]
            if field in REQUIRED_FIELDS and value is None:
                continue
            if field in COST_FIELDS:
                value = normalize_price(value)
            elif field == "priority":
                value = Priority(value).value
            setattr(order, field, value)

    new_status = changes.get("status")
    if new_status is not None:
        new_status = WorkOrderStatus(new_status).value
        completing = (
            new_status == WorkOrderStatus.COMPLETED.value
            and order.status != WorkOrderStatus.COMPLETED.value
        )
        order.status = new_status

        if completing:
            order.completed_at = datetime.now(timezone.utc)

            result = await db.execute(select_bike_for_update(order.bike_id))
            bike = result.scalar_one()
            if bike.status == BikeStatus.IN_SERVICE.value:
                record_transition(db, bike, BikeStatus.IN_STOCK, "Work order completed", actor_id)

    await db.commit()

    logger.info("Work order %s updated (status=%s)", order.id, order.status)
    order = await get_work_order(db, work_order_id)
    _publish(notifier, EventType.WORKORDER_UPDATED, order)
    return order
