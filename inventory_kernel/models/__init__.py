"""ORM models for the inventory kernel."""

from inventory_kernel.models.history import InventoryAdjustmentModel, LocationHistoryModel
from inventory_kernel.models.product import ProductModel

__all__ = [
    "InventoryAdjustmentModel",
    "LocationHistoryModel",
    "ProductModel",
]
