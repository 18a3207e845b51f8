from sqlalchemy import String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db_base import Base


class Brand(Base):
    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )

    models: Mapped[list["BikeModel"]] = relationship(
        "BikeModel",
        back_populates="brand",
        cascade="all, delete-orphan",
    )


class BikeModel(Base):
    __tablename__ = "models"
    # A model name is unique within its brand only
    __table_args__ = (
        UniqueConstraint("name", "brand_id", name="uq_models_name_brand"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    brand_id: Mapped[int] = mapped_column(
        ForeignKey("brands.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    brand: Mapped[Brand] = relationship(
        "Brand",
        back_populates="models",
    )
