"""
ReconciliationEngine -- server-side replay of queued actions.

Contract:
    ``apply_batch()`` replays a batch of queued actions against current
    product state and returns one Outcome per action, in applied order.

Architecture: inventory_sync/services.  Runs inside the caller's
    transaction; uses ProductStore / HistoryStore from the kernel.

Invariants enforced:
    - Replay order: actions are stable-sorted by ``enqueued_at``; equal
      timestamps keep submission order.
    - Atomic per action: each action runs in its own SAVEPOINT.  A rejected
      action leaves no product change and no audit row; a later action in
      the batch still applies.
    - Audit timestamps are the action's ``enqueued_at``, not replay time.
    - Low-stock notices are collected, not sent.  The caller dispatches
      them with ``dispatch_notifications()`` once its transaction has
      committed, so a notification never announces a change that was
      rolled back.  A failed notification never turns Applied into Rejected.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
    - Does NOT deduplicate actions already applied by an earlier sync.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.exceptions import (
    InsufficientStockError,
    NoOpMoveError,
    ProductNotFoundError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.services.history_store import HistoryStore
from inventory_kernel.services.notifier import (
    LoggingNotifier,
    LowStockNotice,
    Notifier,
)
from inventory_kernel.services.product_store import ProductStore
from inventory_sync.domain.types import (
    Applied,
    Outcome,
    QueuedAction,
    Rejected,
    RejectionReason,
)
from inventory_sync.services.handlers import (
    HandlerRegistry,
    HandlerResult,
    default_handler_registry,
)

logger = get_logger("sync.reconciler")

_REJECTION_REASONS: dict[type[Exception], RejectionReason] = {
    ProductNotFoundError: RejectionReason.NOT_FOUND,
    InsufficientStockError: RejectionReason.INSUFFICIENT_STOCK,
    NoOpMoveError: RejectionReason.NO_OP_MOVE,
}


class ReconciliationEngine:
    """Replays queued actions with SAVEPOINT-per-action isolation."""

    def __init__(
        self,
        session: Session,
        registry: HandlerRegistry | None = None,
        notifier: Notifier | None = None,
    ):
        self._session = session
        self._registry = registry or default_handler_registry()
        self._notifier = notifier or LoggingNotifier()
        self._products = ProductStore(session)
        self._history = HistoryStore(session)
        self._pending_notices: list[LowStockNotice] = []

    def apply_batch(
        self,
        actions: Sequence[QueuedAction],
        actor_id: UUID,
    ) -> tuple[Outcome, ...]:
        """Replay ``actions`` oldest first.

        Never raises for a single bad action; the failure becomes that
        action's Rejected outcome.
        """
        start_time = time.monotonic()
        ordered = sorted(actions, key=lambda a: a.enqueued_at)

        outcomes = tuple(self.apply_action(action, actor_id) for action in ordered)

        applied = sum(1 for o in outcomes if o.succeeded)
        logger.info(
            "reconciliation_completed",
            extra={
                "actor_id": str(actor_id),
                "total": len(outcomes),
                "applied": applied,
                "rejected": len(outcomes) - applied,
                "duration_ms": round((time.monotonic() - start_time) * 1000),
            },
        )
        return outcomes

    def apply_action(self, action: QueuedAction, actor_id: UUID) -> Outcome:
        """Replay one action in its own SAVEPOINT."""
        with LogContext.bind(action_id=str(action.action_id)):
            if action.kind not in self._registry:
                return self._reject(
                    action,
                    RejectionReason.INVALID_ACTION,
                    f"No handler registered for '{action.kind.value}'",
                )

            handler = self._registry.get(action.kind)
            savepoint = self._session.begin_nested()
            try:
                result = handler.apply(
                    action, actor_id, self._products, self._history,
                )
                savepoint.commit()
            except (ProductNotFoundError, InsufficientStockError, NoOpMoveError) as exc:
                savepoint.rollback()
                return self._reject(action, _REJECTION_REASONS[type(exc)], str(exc))
            except SQLAlchemyError as exc:
                savepoint.rollback()
                logger.exception(
                    "action_storage_failed",
                    extra={"kind": action.kind.value},
                )
                return self._reject(action, RejectionReason.TRANSIENT_IO, str(exc))
            except Exception as exc:
                savepoint.rollback()
                logger.exception(
                    "action_unexpected_error",
                    extra={"kind": action.kind.value},
                )
                return self._reject(
                    action,
                    RejectionReason.TRANSIENT_IO,
                    f"{type(exc).__name__}: {exc}",
                )

            logger.info(
                "action_applied",
                extra={
                    "kind": action.kind.value,
                    "product_id": str(action.product_id),
                },
            )
            if result.low_stock:
                self._collect_low_stock(result)

            return Applied(
                action_id=action.action_id,
                kind=action.kind,
                product=result.product,
                record=result.record,
            )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _reject(
        self,
        action: QueuedAction,
        reason: RejectionReason,
        message: str,
    ) -> Rejected:
        logger.warning(
            "action_rejected",
            extra={
                "kind": action.kind.value,
                "product_id": str(action.product_id),
                "reason": reason.value,
            },
        )
        return Rejected(
            action_id=action.action_id,
            kind=action.kind,
            reason=reason,
            message=message,
        )

    def _collect_low_stock(self, result: HandlerResult) -> None:
        product = result.product
        self._pending_notices.append(
            LowStockNotice(
                product.name, product.sku, product.quantity, product.safety_stock,
            )
        )

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    @property
    def pending_notices(self) -> tuple[LowStockNotice, ...]:
        return tuple(self._pending_notices)

    def dispatch_notifications(self) -> int:
        """Send every collected low-stock notice, best effort.

        Call only after the surrounding transaction has committed.
        Returns the number of notices delivered without error.
        """
        notices, self._pending_notices = self._pending_notices, []
        delivered = 0
        for notice in notices:
            try:
                self._notifier.notify_low_stock(
                    notice.product_name,
                    notice.sku,
                    notice.quantity,
                    notice.safety_stock,
                )
            except Exception:
                logger.exception(
                    "low_stock_notification_failed",
                    extra={"sku": notice.sku},
                )
            else:
                delivered += 1
        return delivered
