"""
BaseService -- shared constructor for write-side stores.

Stores receive the caller's ``Session`` and persist with ``flush()``.
They never commit or roll back: the reconciliation engine wraps a product
change and its audit row in one SAVEPOINT, and the endpoint or local
transport owns the outer transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """Flush-only access to one family of rows."""

    def __init__(self, session: Session):
        self.session = session
