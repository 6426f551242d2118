"""
ProductStore -- write-side access to product rows.

Contract:
    ``find_by_id()`` reads a product, optionally under a row lock.
    ``update()`` applies a patch of mutable fields.
    ``create()`` / ``delete()`` manage the product lifecycle.

Architecture: Kernel > Services.  Flush-only (see BaseService).

Invariants enforced:
    - ``find_by_id(lock=True)`` issues SELECT ... FOR UPDATE and re-reads the
      row, so the caller sees the value current at lock time.  The lock is
      per product row; there is no global lock.
    - ``update()`` rejects unknown fields and negative quantities.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.values import ProductDraft, ProductSnapshot
from inventory_kernel.exceptions import DuplicateSkuError, ProductNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.product import ProductModel
from inventory_kernel.services.base import BaseService

logger = get_logger("services.product_store")

_PATCHABLE_FIELDS = frozenset({
    "name",
    "category",
    "brand",
    "location",
    "quantity",
    "safety_stock",
    "price",
})


class ProductStore(BaseService[ProductModel]):
    """Product persistence used by the reconciliation engine."""

    def find_by_id(self, product_id: UUID, lock: bool = False) -> ProductSnapshot | None:
        """Return the product or None.

        Args:
            product_id: Product to read.
            lock: Take a row lock held until the enclosing transaction
                (or SAVEPOINT's parent transaction) ends.
        """
        model = self._load(product_id, lock=lock)
        return model.to_dto() if model is not None else None

    def get(self, product_id: UUID) -> ProductSnapshot:
        """Return the product.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """
        snapshot = self.find_by_id(product_id)
        if snapshot is None:
            raise ProductNotFoundError(str(product_id))
        return snapshot

    def get_by_sku(self, sku: str) -> ProductSnapshot | None:
        model = self.session.execute(
            select(ProductModel).where(ProductModel.sku == sku)
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def update(
        self,
        product_id: UUID,
        patch: Mapping[str, Any],
        actor_id: UUID | None = None,
    ) -> ProductSnapshot:
        """Apply ``patch`` to the product and flush.

        Raises:
            ProductNotFoundError: If the product does not exist.
            ValueError: On unknown fields or a negative quantity.
        """
        unknown = set(patch) - _PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update product fields: {sorted(unknown)}")
        if patch.get("quantity", 0) < 0:
            raise ValueError(f"quantity must be >= 0, got {patch['quantity']}")
        if patch.get("safety_stock", 0) < 0:
            raise ValueError(
                f"safety_stock must be >= 0, got {patch['safety_stock']}"
            )

        model = self._load(product_id)
        if model is None:
            raise ProductNotFoundError(str(product_id))

        for field_name, value in patch.items():
            setattr(model, field_name, value)
        if actor_id is not None:
            model.updated_by_id = actor_id
        self.session.flush()
        self.session.refresh(model)

        logger.debug(
            "product_updated",
            extra={"product_id": str(product_id), "fields": sorted(patch)},
        )
        return model.to_dto()

    def create(self, draft: ProductDraft, actor_id: UUID) -> ProductSnapshot:
        """Insert a new product.

        Raises:
            DuplicateSkuError: If the SKU is already taken.
        """
        if self.get_by_sku(draft.sku) is not None:
            raise DuplicateSkuError(draft.sku)

        model = ProductModel(
            name=draft.name,
            sku=draft.sku,
            category=draft.category,
            brand=draft.brand,
            location=draft.location,
            quantity=draft.quantity,
            safety_stock=draft.safety_stock,
            price=draft.price,
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()
        self.session.refresh(model)

        logger.info(
            "product_created",
            extra={"product_id": str(model.id), "sku": draft.sku},
        )
        return model.to_dto()

    def delete(self, product_id: UUID) -> None:
        """Delete the product and, by cascade, its history.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """
        model = self._load(product_id)
        if model is None:
            raise ProductNotFoundError(str(product_id))
        self.session.delete(model)
        self.session.flush()
        logger.info("product_deleted", extra={"product_id": str(product_id)})

    def _load(self, product_id: UUID, lock: bool = False) -> ProductModel | None:
        stmt = select(ProductModel).where(ProductModel.id == product_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()
