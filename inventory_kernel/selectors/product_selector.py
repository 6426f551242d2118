"""
ProductSelector -- read-only product listing.

Contract:
    ``list()`` applies a ProductFilter and returns snapshots, most recently
    updated first.  ``low_stock()`` is shorthand for the low-stock listing.

Low-stock semantics:
    A product is low on stock when its own ``quantity`` is at or below its
    own ``safety_stock``.  This is a column-to-column predicate evaluated
    in SQL, so it works on every backend and pages like any other filter.
"""

from __future__ import annotations

from sqlalchemy import func, or_, select

from inventory_kernel.domain.values import ProductFilter, ProductSnapshot
from inventory_kernel.models.product import ProductModel
from inventory_kernel.selectors.base import BaseSelector


class ProductSelector(BaseSelector[ProductModel]):
    """Filtered product queries."""

    def list(self, product_filter: ProductFilter | None = None) -> tuple[ProductSnapshot, ...]:
        f = product_filter or ProductFilter()
        stmt = select(ProductModel)

        if f.search:
            pattern = f"%{f.search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(ProductModel.name).like(pattern),
                    func.lower(ProductModel.sku).like(pattern),
                )
            )
        if f.category:
            stmt = stmt.where(ProductModel.category == f.category)
        if f.brand:
            stmt = stmt.where(ProductModel.brand == f.brand)
        if f.location:
            stmt = stmt.where(ProductModel.location == f.location)
        if f.low_stock:
            stmt = stmt.where(ProductModel.quantity <= ProductModel.safety_stock)

        stmt = stmt.order_by(ProductModel.updated_at.desc(), ProductModel.sku)
        models = self.session.execute(stmt).scalars().all()
        return tuple(m.to_dto() for m in models)

    def low_stock(self) -> tuple[ProductSnapshot, ...]:
        return self.list(ProductFilter(low_stock=True))
