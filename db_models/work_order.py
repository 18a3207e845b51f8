# db_models/work_order.py
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import String, Numeric, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db_base import Base
from db_models.bike import Bike
from db_models.user import User


class WorkOrderStatus(str, Enum):
    """Work order statuses. Any status may follow any other."""
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_PARTS = "WAITING_PARTS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ServiceWorkOrder(Base):
    __tablename__ = "service_work_orders"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    bike_id: Mapped[int] = mapped_column(
        ForeignKey("bikes.id"),
        nullable=False,
        index=True,
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WorkOrderStatus.OPEN.value,
        server_default=WorkOrderStatus.OPEN.value,
        index=True,
    )
    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Priority.MEDIUM.value,
        server_default=Priority.MEDIUM.value,
    )

    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_to_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    estimated_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    actual_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(
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
    bike: Mapped[Bike] = relationship(
        "Bike",
        back_populates="work_orders",
    )
    created_by: Mapped[User | None] = relationship("User", foreign_keys=[created_by_id])
    assigned_to: Mapped[User | None] = relationship("User", foreign_keys=[assigned_to_id])
