# api/signals/db_manager.py
"""
Rule-based data quality signals over the bike inventory.

Computed on demand from the current rows; nothing is cached or stored.
The detectors are plain functions over tuples so they can be exercised
without a database.
"""
from collections.abc import Iterable, Sequence
from decimal import Decimal
from statistics import median

from sqlalchemy.ext.asyncio import AsyncSession

from .models import Severity, Signal, SignalType
from . import queries

# A price further than this many MADs from the median is an outlier
MAD_MULTIPLIER = 3
MIN_PRICED_BIKES = 3


def find_duplicate_frames(rows: Iterable[tuple[int, str]]) -> list[Signal]:
    """Group ``(bike_id, frame_number)`` rows; every shared number is critical."""
    groups: dict[str, list[int]] = {}
    for bike_id, frame_number in rows:
        groups.setdefault(frame_number, []).append(bike_id)

    return [
        Signal(
            type=SignalType.DUPLICATE_FRAME,
            severity=Severity.CRITICAL,
            message=f"Duplicate frame number found: {frame_number}",
            details={"frame_number": frame_number, "bike_ids": ids},
        )
        for frame_number, ids in groups.items()
        if len(ids) > 1
    ]


def find_price_outliers(rows: Sequence[tuple[int, str, Decimal]]) -> list[Signal]:
    """
    Flag ``(bike_id, frame_number, price)`` rows far from the median price.

    Uses the median absolute deviation (MAD). Only positive prices take
    part, at least three are needed, and nothing is flagged when MAD is 0.
    """
    priced = [(bike_id, frame, Decimal(price)) for bike_id, frame, price in rows if price and price > 0]
    if len(priced) < MIN_PRICED_BIKES:
        return []

    mid = median(price for _, _, price in priced)
    mad = median(abs(price - mid) for _, _, price in priced)
    threshold = mad * MAD_MULTIPLIER
    if threshold <= 0:
        return []

    return [
        Signal(
            type=SignalType.PRICE_OUTLIER,
            severity=Severity.WARNING,
            message=(
                f"Price outlier: bike {frame} (EUR {price:.2f}) deviates strongly "
                f"from the median (EUR {mid:.2f})"
            ),
            details={
                "bike_id": bike_id,
                "frame_number": frame,
                "price": float(price),
                "median": float(mid),
            },
        )
        for bike_id, frame, price in priced
        if abs(price - mid) > threshold
    ]


def find_negative_margins(bikes: Iterable) -> list[Signal]:
    """Bikes in stock whose purchase price exceeds their selling price."""
    signals = []
    for bike in bikes:
        if bike.purchase_price is None or bike.selling_price is None:
            continue
        if bike.purchase_price <= bike.selling_price:
            continue
        loss = bike.purchase_price - bike.selling_price
        signals.append(Signal(
            type=SignalType.NEGATIVE_STOCK,
            severity=Severity.WARNING,
            message=(
                f"Possible loss: {bike.brand.name} {bike.model.name} "
                f"(frame {bike.frame_number}) bought for EUR {bike.purchase_price:.2f}, "
                f"selling for EUR {bike.selling_price:.2f}"
            ),
            details={
                "bike_id": bike.id,
                "frame_number": bike.frame_number,
                "purchase_price": float(bike.purchase_price),
                "selling_price": float(bike.selling_price),
                "loss": float(loss),
            },
        ))
    return signals


async def get_signals(db: AsyncSession) -> list[Signal]:
    result = await db.execute(queries.select_frame_numbers())
    signals = find_duplicate_frames(result.all())

    result = await db.execute(queries.select_priced_bikes())
    signals.extend(find_price_outliers(result.all()))

    result = await db.execute(queries.select_stock_with_both_prices())
    signals.extend(find_negative_margins(result.scalars().all()))

    return signals
