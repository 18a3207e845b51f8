# api/work_orders/views.py
"""
Service work order endpoints.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.deps import (
    CurrentUser,
    CanCreateWorkOrders,
    CanUpdateWorkOrders,
    NotifierDep,
)
from core.errors import ServiceError, as_http_exception
from .models import (
    WorkOrderCreate,
    WorkOrderUpdate,
    WorkOrderRead,
    WorkOrderListResponse,
)
from . import db_manager

router = APIRouter(prefix="/work-orders", tags=["work-orders"])


@router.get(
    "",
    response_model=WorkOrderListResponse,
    summary="List work orders",
)
async def list_work_orders_endpoint(
    current_user: CurrentUser,
    status_filter: str | None = Query(None, alias="status", description="Work order status"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_session),
) -> WorkOrderListResponse:
    orders, total = await db_manager.list_work_orders(
        db, status=status_filter, page=page, limit=limit,
    )
    return WorkOrderListResponse(
        work_orders=[WorkOrderRead.model_validate(o) for o in orders],
        total=total,
        page=page,
        limit=limit,
    )


@router.get(
    "/{work_order_id}",
    response_model=WorkOrderRead,
    summary="Get work order by ID",
)
async def get_work_order_endpoint(
    work_order_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> WorkOrderRead:
    try:
        order = await db_manager.get_work_order(db, work_order_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return WorkOrderRead.model_validate(order)


@router.post(
    "",
    response_model=WorkOrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Open a work order",
)
async def create_work_order_endpoint(
    payload: WorkOrderCreate,
    current_user: CanCreateWorkOrders,
    notifier: NotifierDep,
    db: AsyncSession = Depends(get_session),
) -> WorkOrderRead:
    """
    Open a work order. A bike that is in stock is moved into service.
    """
    try:
        order = await db_manager.create_work_order(
            db, payload.model_dump(), current_user.id, notifier=notifier,
        )
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return WorkOrderRead.model_validate(order)


@router.patch(
    "/{work_order_id}",
    response_model=WorkOrderRead,
    summary="Update a work order",
)
async def update_work_order_endpoint(
    work_order_id: int,
    payload: WorkOrderUpdate,
    current_user: CanUpdateWorkOrders,
    notifier: NotifierDep,
    db: AsyncSession = Depends(get_session),
) -> WorkOrderRead:
    """
    Partially update a work order. Completing it returns its bike to stock
    when the bike is still in service.
    """
    try:
        order = await db_manager.update_work_order(
            db, work_order_id, payload.model_dump(exclude_unset=True), current_user.id,
            notifier=notifier,
        )
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return WorkOrderRead.model_validate(order)
