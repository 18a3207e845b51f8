# db_models/bike.py
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import String, Integer, Numeric, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db_base import Base
from db_models.catalog import Brand, BikeModel


class BikeStatus(str, Enum):
    """Inventory lifecycle of a bike."""
    IN_STOCK = "IN_STOCK"
    IN_SERVICE = "IN_SERVICE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    SCRAPPED = "SCRAPPED"


class Bike(Base):
    __tablename__ = "bikes"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Business key, never changed after creation
    frame_number: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )

    brand_id: Mapped[int] = mapped_column(
        ForeignKey("brands.id"),
        nullable=False,
        index=True,
    )
    model_id: Mapped[int] = mapped_column(
        ForeignKey("models.id"),
        nullable=False,
        index=True,
    )

    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    size: Mapped[str | None] = mapped_column(String(20), nullable=True)

    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    selling_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BikeStatus.IN_STOCK.value,
        server_default=BikeStatus.IN_STOCK.value,
        index=True,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Stamped on the transition into SOLD; left untouched afterwards
    sold_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=func.now(),
    )

    # Relationships
    brand: Mapped[Brand] = relationship("Brand")
    model: Mapped[BikeModel] = relationship("BikeModel")

    inventory_movements: Mapped[list["InventoryMovement"]] = relationship(
        "InventoryMovement",
        back_populates="bike",
    )
    work_orders: Mapped[list["ServiceWorkOrder"]] = relationship(
        "ServiceWorkOrder",
        back_populates="bike",
    )
