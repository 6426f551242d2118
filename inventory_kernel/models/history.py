"""
ORM models for the append-only product audit trail.

Contract:
    InventoryAdjustmentModel records every applied stock delta;
    LocationHistoryModel records every applied location move.  Both are
    written in the same transaction as the product change they describe.

Invariants enforced:
    - Rows are never updated.  They disappear only with their product
      (``ON DELETE CASCADE``).
    - ``created_at`` / ``moved_at`` carry the time the action was recorded on
      the client, not the time it was replayed.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.domain.values import AdjustmentRecord, LocationMoveRecord


class InventoryAdjustmentModel(Base):
    """One applied stock adjustment."""

    __tablename__ = "inventory_adjustments"

    __table_args__ = (
        Index("ix_inventory_adjustments_product", "product_id", "created_at"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    quantity_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    product: Mapped["ProductModel"] = relationship(  # noqa: F821
        "ProductModel", back_populates="adjustments",
    )

    def to_dto(self) -> AdjustmentRecord:
        return AdjustmentRecord(
            record_id=self.id,
            product_id=self.product_id,
            actor_id=self.actor_id,
            quantity_delta=self.quantity_delta,
            memo=self.memo,
            created_at=self.created_at,
        )


class LocationHistoryModel(Base):
    """One applied location move."""

    __tablename__ = "location_history"

    __table_args__ = (
        Index("ix_location_history_product", "product_id", "moved_at"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    from_location: Mapped[str] = mapped_column(String(100), nullable=False)
    to_location: Mapped[str] = mapped_column(String(100), nullable=False)
    moved_at: Mapped[datetime] = mapped_column(nullable=False)

    product: Mapped["ProductModel"] = relationship(  # noqa: F821
        "ProductModel", back_populates="location_history",
    )

    def to_dto(self) -> LocationMoveRecord:
        return LocationMoveRecord(
            record_id=self.id,
            product_id=self.product_id,
            actor_id=self.actor_id,
            from_location=self.from_location,
            to_location=self.to_location,
            moved_at=self.moved_at,
        )
