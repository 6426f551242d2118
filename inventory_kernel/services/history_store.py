"""
HistoryStore -- append-only adjustment and location history.

Contract:
    ``record_adjustment()`` / ``record_move()`` insert one audit row each
    and flush inside the caller's transaction.  ``adjustments_for()`` /
    ``moves_for()`` read a product's trail oldest first.

Invariants enforced:
    - Rows are only ever inserted.  There is no update or delete API.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.values import AdjustmentRecord, LocationMoveRecord
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.history import InventoryAdjustmentModel, LocationHistoryModel
from inventory_kernel.services.base import BaseService

logger = get_logger("services.history_store")


class HistoryStore(BaseService[InventoryAdjustmentModel]):
    """Audit trail persistence for product mutations."""

    def record_adjustment(
        self,
        product_id: UUID,
        actor_id: UUID,
        quantity_delta: int,
        memo: str | None,
        created_at: datetime,
    ) -> AdjustmentRecord:
        model = InventoryAdjustmentModel(
            product_id=product_id,
            actor_id=actor_id,
            quantity_delta=quantity_delta,
            memo=memo,
            created_at=created_at,
        )
        self.session.add(model)
        self.session.flush()
        return model.to_dto()

    def record_move(
        self,
        product_id: UUID,
        actor_id: UUID,
        from_location: str,
        to_location: str,
        moved_at: datetime,
    ) -> LocationMoveRecord:
        model = LocationHistoryModel(
            product_id=product_id,
            actor_id=actor_id,
            from_location=from_location,
            to_location=to_location,
            moved_at=moved_at,
        )
        self.session.add(model)
        self.session.flush()
        return model.to_dto()

    def adjustments_for(self, product_id: UUID) -> tuple[AdjustmentRecord, ...]:
        models = self.session.execute(
            select(InventoryAdjustmentModel)
            .where(InventoryAdjustmentModel.product_id == product_id)
            .order_by(InventoryAdjustmentModel.created_at)
        ).scalars().all()
        return tuple(m.to_dto() for m in models)

    def moves_for(self, product_id: UUID) -> tuple[LocationMoveRecord, ...]:
        models = self.session.execute(
            select(LocationHistoryModel)
            .where(LocationHistoryModel.product_id == product_id)
            .order_by(LocationHistoryModel.moved_at)
        ).scalars().all()
        return tuple(m.to_dto() for m in models)
