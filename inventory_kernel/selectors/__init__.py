"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.product_selector import ProductSelector

__all__ = ["ProductSelector"]
