"""
ORM model for products.

Contract:
    ProductModel persists the authoritative product state the reconciliation
    engine mutates: ``quantity`` and ``location``, plus descriptive fields.
    ``to_dto()`` returns a frozen ProductSnapshot.

Invariants enforced:
    - ``quantity >= 0`` and ``safety_stock >= 0`` (CHECK constraints back up
      the engine's InsufficientStock rule).
    - ``sku`` is UNIQUE.
    - Deleting a product cascades to its adjustment and location history.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase
from inventory_kernel.domain.values import ProductSnapshot


class ProductModel(TrackedBase):
    """Product row (quantity, shelf location, safety stock)."""

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint(
            "safety_stock >= 0", name="ck_products_safety_stock_non_negative",
        ),
        Index("ix_products_category", "category"),
        Index("ix_products_brand", "brand"),
        Index("ix_products_location", "location"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    brand: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    location: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    safety_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    adjustments: Mapped[list["InventoryAdjustmentModel"]] = relationship(  # noqa: F821
        "InventoryAdjustmentModel",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    location_history: Mapped[list["LocationHistoryModel"]] = relationship(  # noqa: F821
        "LocationHistoryModel",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dto(self) -> ProductSnapshot:
        return ProductSnapshot(
            product_id=self.id,
            name=self.name,
            sku=self.sku,
            category=self.category,
            brand=self.brand,
            location=self.location,
            quantity=self.quantity,
            safety_stock=self.safety_stock,
            price=Decimal(self.price) if self.price is not None else Decimal("0"),
            updated_at=self.updated_at,
        )
