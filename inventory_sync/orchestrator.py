"""
SyncOrchestrator -- DI container for the offline sync system.

Contract:
    Composes settings, clock, notifier and handler registry into the
    client-side services (queue, transport, monitor, coordinator) and the
    server-side endpoint.  Single place where sync dependencies are wired.

Architecture: inventory_sync (top-level).  The only module that reads
    ``inventory_config`` settings.

Invariants enforced:
    - Clock injection: every service receives the orchestrator's Clock.
    - The client queue lives in its own database (``queue.url``); only the
      ``queued_actions`` table is created there.
"""

from __future__ import annotations

from typing import Callable
from uuid import UUID, uuid4

import httpx
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from inventory_config import InventorySettings, load_settings
from inventory_kernel.db.engine import (
    create_engine_for_url,
    create_tables,
    make_session_factory,
)
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import configure_logging, get_logger
from inventory_kernel.services.notifier import LoggingNotifier, Notifier, SmtpNotifier
from inventory_sync.domain.types import RejectionPolicy
from inventory_sync.models.queue import create_queue_table
from inventory_sync.services.action_queue import ActionQueue
from inventory_sync.services.connectivity import ConnectivityMonitor, Probe, tcp_probe
from inventory_sync.services.coordinator import SyncCoordinator
from inventory_sync.services.endpoint import SyncEndpoint
from inventory_sync.services.handlers import HandlerRegistry, default_handler_registry
from inventory_sync.services.transport import HttpTransport, LocalTransport, SyncTransport

logger = get_logger("sync.orchestrator")

_DEFAULT_PORTS = {"http": 80, "https": 443}


class SyncOrchestrator:
    """DI container for the offline sync system.

    Contract:
        - ``from_settings()`` factory creates a wired orchestrator.
        - ``create_queue()`` / ``create_transport()`` / ``create_monitor()``
          / ``create_coordinator()`` build the client side.
        - ``create_endpoint()`` builds the server side.

    Non-goals:
        - Does NOT start background threads -- caller decides.
    """

    def __init__(
        self,
        settings: InventorySettings,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        handler_registry: HandlerRegistry | None = None,
        actor_id: UUID | None = None,
    ) -> None:
        self._settings = settings
        self._clock = clock or SystemClock()
        self._notifier = notifier
        self._registry = handler_registry or default_handler_registry()
        if actor_id is None and settings.sync.actor_id:
            actor_id = UUID(settings.sync.actor_id)
        self._actor_id = actor_id or uuid4()
        self._server_session_factory: sessionmaker[Session] | None = None
        self._queue_engine: Engine | None = None

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_settings(
        cls,
        settings: InventorySettings | None = None,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
    ) -> SyncOrchestrator:
        """Create an orchestrator; loads settings from the environment if omitted."""
        return cls(
            settings=settings if settings is not None else load_settings(),
            clock=clock,
            notifier=notifier,
        )

    def configure_logging(self) -> None:
        configure_logging(level=self._settings.logging.level.upper())

    # -------------------------------------------------------------------------
    # Shared
    # -------------------------------------------------------------------------

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            self._notifier = self._build_notifier()
        return self._notifier

    def server_session_factory(self) -> Callable[[], Session]:
        """Session factory bound to the server product database."""
        if self._server_session_factory is None:
            db = self._settings.database
            engine = create_engine_for_url(
                db.url,
                echo=db.echo,
                pool_size=db.pool_size,
                max_overflow=db.max_overflow,
                pool_timeout=db.pool_timeout,
            )
            create_tables(engine)
            self._server_session_factory = make_session_factory(engine)
        return self._server_session_factory

    # -------------------------------------------------------------------------
    # Client side
    # -------------------------------------------------------------------------

    def create_queue(self) -> ActionQueue:
        if self._queue_engine is None:
            self._queue_engine = create_engine_for_url(self._settings.queue.url)
            create_queue_table(self._queue_engine)
        factory = make_session_factory(self._queue_engine)
        return ActionQueue(factory, clock=self._clock)

    def create_transport(self, client: httpx.Client | None = None) -> SyncTransport:
        """HTTP transport when ``sync.server_url`` is set, else in-process."""
        sync = self._settings.sync
        if sync.server_url:
            headers = {"X-Device-Id": sync.device_id} if sync.device_id else None
            return HttpTransport(
                sync.server_url,
                timeout=sync.timeout_seconds,
                headers=headers,
                client=client,
            )
        return LocalTransport(
            self.server_session_factory(),
            registry=self._registry,
            notifier=self.notifier,
        )

    def create_monitor(self, probe: Probe | None = None) -> ConnectivityMonitor:
        """Monitor probing the sync server.

        Without a server URL the server is in-process and always reachable.
        """
        conn = self._settings.connectivity
        server_url = self._settings.sync.server_url
        initial_online = conn.initial_online
        if probe is None and server_url:
            probe = _probe_for_url(server_url, conn.probe_timeout_seconds)
        elif probe is None:
            initial_online = True
        return ConnectivityMonitor(
            probe=probe,
            check_interval_seconds=conn.check_interval_seconds,
            debounce_seconds=conn.debounce_seconds,
            clock=self._clock,
            initial_online=initial_online,
        )

    def create_coordinator(
        self,
        queue: ActionQueue | None = None,
        transport: SyncTransport | None = None,
        monitor: ConnectivityMonitor | None = None,
    ) -> SyncCoordinator:
        return SyncCoordinator(
            queue=queue or self.create_queue(),
            transport=transport or self.create_transport(),
            monitor=monitor or self.create_monitor(),
            actor_id=self._actor_id,
            rejection_policy=RejectionPolicy(self._settings.sync.rejection_policy),
            clock=self._clock,
            device_id=self._settings.sync.device_id,
        )

    # -------------------------------------------------------------------------
    # Server side
    # -------------------------------------------------------------------------

    def create_endpoint(self) -> SyncEndpoint:
        return SyncEndpoint(
            self.server_session_factory(),
            notifier=self.notifier,
            registry=self._registry,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def settings(self) -> InventorySettings:
        return self._settings

    @property
    def actor_id(self) -> UUID:
        return self._actor_id

    @property
    def handler_registry(self) -> HandlerRegistry:
        return self._registry

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _build_notifier(self) -> Notifier:
        cfg = self._settings.notifier
        if cfg.backend == "smtp":
            return SmtpNotifier(
                host=cfg.smtp_host,
                port=cfg.smtp_port,
                username=cfg.username,
                password=cfg.password,
                sender=cfg.sender,
                recipient=cfg.recipient,
                use_ssl=cfg.use_ssl,
                store_name=cfg.store_name,
            )
        return LoggingNotifier()


def _probe_for_url(url: str, timeout: float) -> Probe:
    parsed = httpx.URL(url)
    port = parsed.port or _DEFAULT_PORTS.get(parsed.scheme, 80)
    return tcp_probe(parsed.host, port, timeout=timeout)
