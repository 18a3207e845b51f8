# api/export/db_manager.py
"""
CSV exports of the bike inventory and the work order history.

Nulls become empty cells and timestamps are written as ISO 8601.
"""
import csv
import io
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from . import queries

BIKE_HEADERS = [
    "ID",
    "Frame Number",
    "Brand",
    "Model",
    "Year",
    "Color",
    "Size",
    "Purchase Price",
    "Selling Price",
    "Status",
    "Sold At",
    "Created At",
]

WORK_ORDER_HEADERS = [
    "ID",
    "Bike Frame Number",
    "Description",
    "Status",
    "Priority",
    "Assigned To",
    "Created By",
    "Estimated Cost",
    "Actual Cost",
    "Created At",
    "Completed At",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def render_csv(headers: list[str], rows: list[list[Any]]) -> str:
    """Render a header row and data rows with minimal quoting."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return output.getvalue()


async def export_bikes_csv(db: AsyncSession) -> str:
    result = await db.execute(queries.select_all_bikes())
    rows = [
        [
            bike.id,
            bike.frame_number,
            bike.brand.name,
            bike.model.name,
            bike.year,
            bike.color,
            bike.size,
            bike.purchase_price,
            bike.selling_price,
            bike.status,
            bike.sold_at,
            bike.created_at,
        ]
        for bike in result.scalars().all()
    ]
    return render_csv(BIKE_HEADERS, rows)


async def export_work_orders_csv(db: AsyncSession) -> str:
    result = await db.execute(queries.select_all_work_orders())
    rows = [
        [
            order.id,
            order.bike.frame_number,
            order.description,
            order.status,
            order.priority,
            order.assigned_to.full_name if order.assigned_to else None,
            order.created_by.full_name if order.created_by else None,
            order.estimated_cost,
            order.actual_cost,
            order.created_at,
            order.completed_at,
        ]
        for order in result.scalars().all()
    ]
    return render_csv(WORK_ORDER_HEADERS, rows)
