from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db_base import Base


class InventoryMovement(Base):
    """Append-only audit record of one bike status change."""
    __tablename__ = "inventory_movements"
    __table_args__ = (
        Index("ix_inventory_movements_bike_created", "bike_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    bike_id: Mapped[int] = mapped_column(
        ForeignKey("bikes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # NULL only for the creation event
    from_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    performed_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    bike: Mapped["Bike"] = relationship(
        "Bike",
        back_populates="inventory_movements",
    )
