"""
Module: inventory_kernel.selectors.base
Responsibility: Read-only query objects over the caller's session.

Selectors never add, delete, flush or commit, and hand back frozen
snapshots rather than ORM rows.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):

    def __init__(self, session: Session):
        self.session = session
