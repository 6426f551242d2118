"""
SyncEndpoint -- server-side handler for one sync request document.

Contract:
    ``handle(body, actor_id)`` decodes the request, replays the valid
    actions in one transaction, commits, sends any low-stock notices the
    batch produced, and returns the response document.  Actions that could not be decoded are reported back as
    ``invalid_action`` errors without touching product state.

Failure modes:
    - WireFormatError if the request document itself is unusable; the
      HTTP layer maps it to 400.
    - Storage failures propagate; the HTTP layer maps them to 5xx and the
      client keeps every action pending.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.db.engine import session_scope
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.services.notifier import Notifier
from inventory_sync.domain.types import Outcome, QueuedAction, Rejected
from inventory_sync.domain.wire import decode_request, encode_response
from inventory_sync.services.handlers import HandlerRegistry
from inventory_sync.services.reconciler import ReconciliationEngine

logger = get_logger("sync.endpoint")


class SyncEndpoint:
    """Request/response adapter around the ReconciliationEngine."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier: Notifier | None = None,
        registry: HandlerRegistry | None = None,
    ):
        self._session_factory = session_factory
        self._notifier = notifier
        self._registry = registry

    def handle(self, body: Any, actor_id: UUID) -> dict[str, Any]:
        decoded = decode_request(body)
        submitted = _submitted_by_id(body)

        valid = [d for d in decoded if isinstance(d, QueuedAction)]
        invalid = [d for d in decoded if isinstance(d, Rejected)]

        with LogContext.bind(actor_id=str(actor_id)):
            logger.info(
                "sync_request_received",
                extra={"actions": len(decoded), "invalid": len(invalid)},
            )
            outcomes: tuple[Outcome, ...] = ()
            if valid:
                with session_scope(self._session_factory) as session:
                    engine = ReconciliationEngine(
                        session, registry=self._registry, notifier=self._notifier,
                    )
                    outcomes = engine.apply_batch(valid, actor_id)
                engine.dispatch_notifications()

        return encode_response((*outcomes, *invalid), submitted)


def _submitted_by_id(body: Mapping[str, Any]) -> dict[UUID, Mapping[str, Any]]:
    submitted: dict[UUID, Mapping[str, Any]] = {}
    for raw in body["actions"]:
        submitted[UUID(str(raw["id"]))] = raw
    return submitted
