"""
Pure domain layer.

Immutable value objects and the clock abstraction, with NO dependencies on
the ORM, the database or I/O.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.values import (
    AdjustmentRecord,
    LocationMoveRecord,
    ProductDraft,
    ProductFilter,
    ProductSnapshot,
)

__all__ = [
    "AdjustmentRecord",
    "Clock",
    "DeterministicClock",
    "LocationMoveRecord",
    "ProductDraft",
    "ProductFilter",
    "ProductSnapshot",
    "SystemClock",
]
