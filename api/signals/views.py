# api/signals/views.py
"""
Data quality signal endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.deps import CurrentUser
from .models import SignalsResponse
from . import db_manager

router = APIRouter(prefix="/ai", tags=["signals"])


@router.get(
    "/signals",
    response_model=SignalsResponse,
    summary="Get data quality signals",
)
async def get_signals_endpoint(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> SignalsResponse:
    """
    Duplicate frame numbers, price outliers and stock priced below cost.
    """
    signals = await db_manager.get_signals(db)
    return SignalsResponse(signals=signals, count=len(signals))
