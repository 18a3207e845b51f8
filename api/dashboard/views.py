# api/dashboard/views.py
"""
Dashboard statistics endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.deps import CurrentUser
from .models import DashboardStats
from . import db_manager

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Get shop statistics",
)
async def get_stats_endpoint(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> DashboardStats:
    """
    Bike counts per status, work order counts and the most recent sales.
    """
    stats = await db_manager.get_stats(db)
    return DashboardStats(**stats)
