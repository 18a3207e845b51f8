# api/bikes/views.py
"""
Bike inventory endpoints.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.deps import (
    CurrentUser,
    CanReadBikes,
    CanCreateBikes,
    CanUpdateBikes,
    NotifierDep,
)
from core.errors import ServiceError, as_http_exception
from .models import (
    BikeCreate,
    BikeUpdate,
    BikeRead,
    BikeDetail,
    BikeListResponse,
    BrandRead,
    BikeModelWithBrand,
)
from . import db_manager

router = APIRouter(prefix="/bikes", tags=["bikes"])


@router.get(
    "",
    response_model=BikeListResponse,
    summary="List bikes",
)
async def list_bikes_endpoint(
    current_user: CanReadBikes,
    status_filter: str | None = Query(None, alias="status", description="Bike status"),
    search: str | None = Query(None, description="Frame number substring"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> BikeListResponse:
    """
    Page through bikes, newest first. Unknown status values are ignored.
    """
    bikes, total = await db_manager.list_bikes(
        db, status=status_filter, search=search, page=page, limit=limit,
    )
    return BikeListResponse(
        bikes=[BikeRead.model_validate(b) for b in bikes],
        total=total,
        page=page,
        limit=limit,
    )


# Catalog routes are declared before /{bike_id} so they are not captured by it

@router.get(
    "/brands",
    response_model=list[BrandRead],
    summary="List brands",
)
async def list_brands_endpoint(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> list[BrandRead]:
    brands = await db_manager.list_brands(db)
    return [BrandRead.model_validate(b) for b in brands]


@router.get(
    "/models",
    response_model=list[BikeModelWithBrand],
    summary="List models",
)
async def list_models_endpoint(
    current_user: CurrentUser,
    brand_id: int | None = Query(None, description="Only models of this brand"),
    db: AsyncSession = Depends(get_session),
) -> list[BikeModelWithBrand]:
    models = await db_manager.list_models(db, brand_id)
    return [BikeModelWithBrand.model_validate(m) for m in models]


@router.get(
    "/{bike_id}",
    response_model=BikeDetail,
    summary="Get bike by ID",
)
async def get_bike_endpoint(
    bike_id: int,
    current_user: CanReadBikes,
    db: AsyncSession = Depends(get_session),
) -> BikeDetail:
    """
    Get a bike with its inventory movements and work orders.
    """
    try:
        detail = await db_manager.get_bike_detail(db, bike_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return BikeDetail(**detail)


@router.post(
    "",
    response_model=BikeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a bike",
)
async def create_bike_endpoint(
    payload: BikeCreate,
    current_user: CanCreateBikes,
    notifier: NotifierDep,
    db: AsyncSession = Depends(get_session),
) -> BikeRead:
    """
    Add a bike to stock. Frame numbers must be unique.
    """
    try:
        bike = await db_manager.create_bike(
            db, payload.model_dump(), current_user.id, notifier=notifier,
        )
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return BikeRead.model_validate(bike)


@router.patch(
    "/{bike_id}",
    response_model=BikeRead,
    summary="Update a bike",
)
async def update_bike_endpoint(
    bike_id: int,
    payload: BikeUpdate,
    current_user: CanUpdateBikes,
    notifier: NotifierDep,
    db: AsyncSession = Depends(get_session),
) -> BikeRead:
    """
    Partially update a bike. A status change is recorded as a movement.
    """
    try:
        bike = await db_manager.update_bike(
            db, bike_id, payload.model_dump(exclude_unset=True), current_user.id, notifier=notifier,
        )
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return BikeRead.model_validate(bike)


@router.post(
    "/{bike_id}/checkout",
    response_model=BikeRead,
    summary="Sell a bike",
)
async def checkout_bike_endpoint(
    bike_id: int,
    current_user: CanUpdateBikes,
    notifier: NotifierDep,
    db: AsyncSession = Depends(get_session),
) -> BikeRead:
    """
    Mark an IN_STOCK or RESERVED bike as SOLD.
    """
    try:
        bike = await db_manager.checkout_bike(db, bike_id, current_user.id, notifier=notifier)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return BikeRead.model_validate(bike)
