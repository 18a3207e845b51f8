# api/dashboard/db_manager.py
"""
Business logic for dashboard statistics.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from db_models.bike import BikeStatus
from . import queries


async def _scalar(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt)
    return result.scalar() or 0


async def get_stats(db: AsyncSession) -> dict:
    """
    Stock and workshop counters plus the five most recent sales.
    """
    result = await db.execute(queries.select_recent_sales(limit=5))
    recent_sales = [
        {
            "id": bike.id,
            "frame_number": bike.frame_number,
            "brand": bike.brand.name,
            "model": bike.model.name,
            "year": bike.year,
            "color": bike.color,
            "size": bike.size,
            "selling_price": bike.selling_price,
            "sold_at": bike.sold_at,
        }
        for bike in result.scalars().all()
    ]

    return {
        "total_bikes": await _scalar(db, queries.count_bikes()),
        "bikes_in_stock": await _scalar(db, queries.count_bikes(BikeStatus.IN_STOCK)),
        "bikes_in_service": await _scalar(db, queries.count_bikes(BikeStatus.IN_SERVICE)),
        "bikes_sold": await _scalar(db, queries.count_bikes(BikeStatus.SOLD)),
        "total_work_orders": await _scalar(db, queries.count_work_orders()),
        "open_work_orders": await _scalar(db, queries.count_open_work_orders()),
        "urgent_work_orders": await _scalar(db, queries.count_urgent_work_orders()),
        "recent_sales": recent_sales,
    }
