"""
ActionQueue -- durable, ordered, per-device queue of offline actions.

Contract:
    - ``enqueue()`` validates and persists a new action (``synced=False``).
    - ``list_pending()`` returns unsynced actions in enqueue order.
    - ``mark_synced()`` is idempotent and a no-op for unknown ids.
    - ``purge_synced()`` deletes every synced action.
    - ``record_failure()`` / ``discard()`` support retry diagnostics and
      explicit user dismissal.

Architecture: inventory_sync/services.  Owns its own session factory bound
    to the device-local database; never touches the network.

Invariants enforced:
    - Durability: every call runs in its own committed transaction.
    - Order: (enqueued_at, seq) ascending; ``seq`` is allocated under a
      process-local lock so concurrent enqueues never collide.
    - Purge only ever deletes synced rows, so it is safe alongside
      ``enqueue`` (new rows are never synced).

Failure modes:
    - InvalidActionError for an unknown kind or bad payload, before any
      write.
    - QueueStorageError when the local database fails; raised to the
      caller of the operation.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Callable
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.db.engine import session_scope
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import QueueStorageError
from inventory_kernel.logging_config import get_logger
from inventory_sync.domain.types import (
    ActionKind,
    ActionPayload,
    AdjustInventoryPayload,
    MoveLocationPayload,
    QueuedAction,
    parse_kind,
    validate_payload,
)
from inventory_sync.domain.wire import payload_from_dict
from inventory_sync.models.queue import QueuedActionModel

logger = get_logger("sync.action_queue")


class ActionQueue:
    """Client-local durable queue of pending inventory mutations."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._enqueue_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Enqueue
    # -------------------------------------------------------------------------

    def enqueue(
        self,
        kind: ActionKind | str,
        payload: ActionPayload | Mapping[str, Any],
    ) -> UUID:
        """Persist a new pending action and return its id.

        ``payload`` may be the typed payload or its dict form.

        Raises:
            InvalidActionError: Unknown kind or invalid payload.
            QueueStorageError: Local write failed.
        """
        action_kind = parse_kind(kind)
        if isinstance(payload, Mapping):
            payload = payload_from_dict(action_kind, payload)
        validate_payload(action_kind, payload)

        with self._enqueue_lock:
            with self._scope("enqueue") as session:
                last_seq = session.execute(
                    select(func.coalesce(func.max(QueuedActionModel.seq), 0))
                ).scalar_one()
                action = QueuedAction(
                    action_id=uuid4(),
                    kind=action_kind,
                    payload=payload,
                    enqueued_at=self._clock.now(),
                    seq=last_seq + 1,
                )
                session.add(QueuedActionModel.from_dto(action))

        logger.info(
            "action_enqueued",
            extra={
                "action_id": str(action.action_id),
                "kind": action_kind.value,
                "product_id": str(action.product_id),
                "seq": action.seq,
            },
        )
        return action.action_id

    def enqueue_adjustment(
        self,
        product_id: UUID,
        quantity_delta: int,
        memo: str | None = None,
    ) -> UUID:
        return self.enqueue(
            ActionKind.ADJUST_INVENTORY,
            AdjustInventoryPayload(
                product_id=product_id, quantity_delta=quantity_delta, memo=memo,
            ),
        )

    def enqueue_move(self, product_id: UUID, to_location: str) -> UUID:
        return self.enqueue(
            ActionKind.MOVE_LOCATION,
            MoveLocationPayload(product_id=product_id, to_location=to_location),
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_pending(self) -> tuple[QueuedAction, ...]:
        """Unsynced actions, oldest first."""
        with self._scope("list_pending") as session:
            models = session.execute(
                select(QueuedActionModel)
                .where(QueuedActionModel.synced.is_(False))
                .order_by(QueuedActionModel.enqueued_at, QueuedActionModel.seq)
            ).scalars().all()
            return tuple(m.to_dto() for m in models)

    def get(self, action_id: UUID) -> QueuedAction | None:
        with self._scope("get") as session:
            model = session.get(QueuedActionModel, action_id)
            return model.to_dto() if model is not None else None

    def count(self) -> int:
        """Total entries, synced or not."""
        with self._scope("count") as session:
            return session.execute(
                select(func.count()).select_from(QueuedActionModel)
            ).scalar_one()

    def pending_count(self) -> int:
        with self._scope("pending_count") as session:
            return session.execute(
                select(func.count())
                .select_from(QueuedActionModel)
                .where(QueuedActionModel.synced.is_(False))
            ).scalar_one()

    # -------------------------------------------------------------------------
    # Mutations (sync coordinator only)
    # -------------------------------------------------------------------------

    def mark_synced(self, action_id: UUID) -> None:
        """Flag the action as confirmed by the server.  Idempotent."""
        with self._scope("mark_synced") as session:
            session.execute(
                update(QueuedActionModel)
                .where(QueuedActionModel.id == action_id)
                .values(synced=True)
            )

    def purge_synced(self) -> int:
        """Delete all synced actions.  Returns the number removed."""
        with self._scope("purge_synced") as session:
            result = session.execute(
                delete(QueuedActionModel).where(QueuedActionModel.synced.is_(True))
            )
            removed = result.rowcount or 0

        if removed:
            logger.info("synced_actions_purged", extra={"removed": removed})
        return removed

    def record_failure(self, action_id: UUID, reason: str) -> None:
        """Count a failed replay attempt and keep its reason."""
        with self._scope("record_failure") as session:
            session.execute(
                update(QueuedActionModel)
                .where(QueuedActionModel.id == action_id)
                .values(
                    attempts=QueuedActionModel.attempts + 1,
                    last_error=reason,
                )
            )

    def discard(self, action_id: UUID) -> bool:
        """Drop a pending action without replaying it.

        Returns True if an entry was removed.
        """
        with self._scope("discard") as session:
            result = session.execute(
                delete(QueuedActionModel).where(QueuedActionModel.id == action_id)
            )
            removed = bool(result.rowcount)

        if removed:
            logger.info("action_discarded", extra={"action_id": str(action_id)})
        return removed

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    @contextmanager
    def _scope(self, operation: str) -> Iterator[Session]:
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error(
                "action_queue_storage_failed",
                extra={"operation": operation},
                exc_info=True,
            )
            raise QueueStorageError(operation, str(exc)) from exc
