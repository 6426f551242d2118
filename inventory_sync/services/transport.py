"""
Sync transports -- how a batch of queued actions reaches the server.

Contract:
    ``SyncTransport.submit(actions, actor_id)`` returns one Outcome per
    action the server processed, or raises TransientIOError when nothing
    was confirmed (connection refused, timeout, non-2xx status, unreadable
    body).

Implementations:
    - ``LocalTransport`` -- runs the ReconciliationEngine in-process
      against a server database (single-host deployments, tests).
    - ``HttpTransport``  -- POSTs the wire request to ``{base_url}/sync``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Callable, Protocol, runtime_checkable
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.db.engine import session_scope
from inventory_kernel.exceptions import TransientIOError, WireFormatError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.notifier import Notifier
from inventory_sync.domain.types import Outcome, QueuedAction
from inventory_sync.domain.wire import decode_response, encode_request
from inventory_sync.services.handlers import HandlerRegistry
from inventory_sync.services.reconciler import ReconciliationEngine

logger = get_logger("sync.transport")

DEFAULT_TIMEOUT_SECONDS = 30.0


@runtime_checkable
class SyncTransport(Protocol):
    """Delivers a batch to the server and returns its outcomes."""

    def submit(
        self,
        actions: Sequence[QueuedAction],
        actor_id: UUID,
    ) -> tuple[Outcome, ...]: ...


class LocalTransport:
    """In-process transport: one server transaction per batch."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        registry: HandlerRegistry | None = None,
        notifier: Notifier | None = None,
    ):
        self._session_factory = session_factory
        self._registry = registry
        self._notifier = notifier

    def submit(
        self,
        actions: Sequence[QueuedAction],
        actor_id: UUID,
    ) -> tuple[Outcome, ...]:
        try:
            with session_scope(self._session_factory) as session:
                engine = ReconciliationEngine(
                    session, registry=self._registry, notifier=self._notifier,
                )
                outcomes = engine.apply_batch(actions, actor_id)
        except SQLAlchemyError as exc:
            raise TransientIOError("Server database unavailable", cause=str(exc)) from exc

        engine.dispatch_notifications()
        return outcomes


class HttpTransport:
    """Transport that talks to a remote sync endpoint over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: Mapping[str, str] | None = None,
        client: httpx.Client | None = None,
    ):
        self._url = f"{base_url.rstrip('/')}/sync"
        self._headers = dict(headers or {})
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    def submit(
        self,
        actions: Sequence[QueuedAction],
        actor_id: UUID,
    ) -> tuple[Outcome, ...]:
        headers = {**self._headers, "X-Actor-Id": str(actor_id)}
        try:
            response = self._client.post(
                self._url, json=encode_request(actions), headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise TransientIOError("Sync request timed out", cause=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise TransientIOError("Sync request failed", cause=str(exc)) from exc

        if response.status_code >= 400:
            logger.warning(
                "sync_http_error",
                extra={"url": self._url, "status_code": response.status_code},
            )
            raise TransientIOError(
                f"Sync endpoint returned HTTP {response.status_code}",
                cause=response.text[:500],
            )

        try:
            return decode_response(response.json())
        except ValueError as exc:
            raise TransientIOError("Sync response is not JSON", cause=str(exc)) from exc
        except WireFormatError as exc:
            raise TransientIOError("Sync response is malformed", cause=str(exc)) from exc

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
