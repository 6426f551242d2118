"""
ORM model for the client-local action queue.

Contract:
    QueuedActionModel persists one pending mutation in the device's own
    database.  ``to_dto()`` / ``from_dto()`` round-trip with QueuedAction.

Architecture: inventory_sync/models.  Imports from inventory_kernel.db only
    (plus the pure wire codec for the payload column).  The queue table is
    registered here, never by the kernel.

Invariants enforced:
    - ``id`` is the client-generated action id (primary key, unique).
    - ``seq`` is UNIQUE and strictly increasing per device.
    - ``synced`` is indexed; pending reads and purges filter on it.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Index, Integer, String, Text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base
from inventory_kernel.db.engine import create_tables
from inventory_sync.domain.types import ActionKind, QueuedAction
from inventory_sync.domain.wire import payload_from_dict, payload_to_dict


class QueuedActionModel(Base):
    """One queued offline action."""

    __tablename__ = "queued_actions"

    __table_args__ = (
        Index("ix_queued_actions_synced", "synced"),
        Index("ix_queued_actions_order", "enqueued_at", "seq"),
    )

    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    enqueued_at: Mapped[datetime] = mapped_column(nullable=False)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    synced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self) -> QueuedAction:
        kind = ActionKind(self.kind)
        return QueuedAction(
            action_id=self.id,
            kind=kind,
            payload=payload_from_dict(kind, self.payload),
            enqueued_at=self.enqueued_at,
            synced=self.synced,
            seq=self.seq,
            attempts=self.attempts,
            last_error=self.last_error,
        )

    @classmethod
    def from_dto(cls, dto: QueuedAction) -> QueuedActionModel:
        return cls(
            id=dto.action_id,
            kind=dto.kind.value,
            payload=payload_to_dict(dto.kind, dto.payload),
            enqueued_at=dto.enqueued_at,
            seq=dto.seq,
            synced=dto.synced,
            attempts=dto.attempts,
            last_error=dto.last_error,
        )


def create_queue_table(engine: Engine) -> None:
    """Create ``queued_actions`` alone; a device database holds nothing else."""
    create_tables(engine, tables=[QueuedActionModel.__table__])
