# api/export/views.py
"""
CSV download endpoints.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.deps import CurrentUser
from . import db_manager

router = APIRouter(prefix="/export", tags=["export"])


def _csv_response(content: str, stem: str) -> Response:
    filename = f"{stem}_{datetime.now(timezone.utc).strftime('%Y%m%d')}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/bikes.csv", summary="Export bikes as CSV")
async def export_bikes_endpoint(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> Response:
    content = await db_manager.export_bikes_csv(db)
    return _csv_response(content, "bikes")


@router.get("/work-orders.csv", summary="Export work orders as CSV")
async def export_work_orders_endpoint(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> Response:
    content = await db_manager.export_work_orders_csv(db)
    return _csv_response(content, "work_orders")
