"""
inventory_kernel.domain.values -- Frozen value objects for product state.

ZERO I/O.  These are the shapes stores hand back to the reconciliation
engine and the wire codec; ORM rows never leave the services layer.

Invariants enforced:
    - ProductSnapshot.quantity and safety_stock are non-negative.
    - Audit record DTOs are immutable copies of append-only rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class ProductSnapshot:
    """Immutable view of a product row at one point in time."""

    product_id: UUID
    name: str
    sku: str
    category: str
    brand: str
    location: str
    quantity: int
    safety_stock: int
    price: Decimal = Decimal("0")
    updated_at: datetime | None = None

    def __post_init__(self):
        if self.quantity < 0:
            raise ValueError(f"quantity must be >= 0, got {self.quantity}")
        if self.safety_stock < 0:
            raise ValueError(f"safety_stock must be >= 0, got {self.safety_stock}")

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.safety_stock


@dataclass(frozen=True)
class ProductDraft:
    """Fields for creating a product."""

    name: str
    sku: str
    category: str
    brand: str
    location: str
    quantity: int = 0
    safety_stock: int = 0
    price: Decimal = Decimal("0")

    def __post_init__(self):
        if not self.sku:
            raise ValueError("sku is required")
        if self.quantity < 0:
            raise ValueError(f"quantity must be >= 0, got {self.quantity}")
        if self.safety_stock < 0:
            raise ValueError(f"safety_stock must be >= 0, got {self.safety_stock}")


@dataclass(frozen=True)
class AdjustmentRecord:
    """Append-only record of one stock adjustment."""

    record_id: UUID
    product_id: UUID
    actor_id: UUID
    quantity_delta: int
    memo: str | None
    created_at: datetime


@dataclass(frozen=True)
class LocationMoveRecord:
    """Append-only record of one location move."""

    record_id: UUID
    product_id: UUID
    actor_id: UUID
    from_location: str
    to_location: str
    moved_at: datetime


@dataclass(frozen=True)
class ProductFilter:
    """Listing filter.  Empty filter lists everything."""

    search: str | None = None
    category: str | None = None
    brand: str | None = None
    location: str | None = None
    low_stock: bool = False
