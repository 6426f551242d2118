"""
Typed settings for the inventory tracker.

Every section is a frozen dataclass with a default for every field, so an
empty (or absent) configuration file yields a runnable single-host setup:
server and queue databases in SQLite files, logging notifier, no remote
sync server.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseSettings:
    """Server-side product database."""

    url: str = "sqlite:///inventory.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30


@dataclass(frozen=True)
class QueueSettings:
    """Client-local action queue database."""

    url: str = "sqlite:///inventory_queue.db"


@dataclass(frozen=True)
class SyncSettings:
    # None selects the in-process transport against ``database.url``.
    server_url: str | None = None
    timeout_seconds: float = 30.0
    rejection_policy: str = "keep"
    actor_id: str | None = None
    device_id: str | None = None


@dataclass(frozen=True)
class ConnectivitySettings:
    check_interval_seconds: float = 15.0
    debounce_seconds: float = 5.0
    probe_timeout_seconds: float = 3.0
    initial_online: bool = False


@dataclass(frozen=True)
class NotifierSettings:
    """Low-stock notification backend: ``logging`` or ``smtp``."""

    backend: str = "logging"
    smtp_host: str | None = None
    smtp_port: int = 587
    username: str | None = None
    password: str | None = None
    sender: str | None = None
    recipient: str | None = None
    use_ssl: bool = False
    store_name: str = "Inventory"


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class InventorySettings:
    """Root settings object returned by ``load_settings()``."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    queue: QueueSettings = field(default_factory=QueueSettings)
    sync: SyncSettings = field(default_factory=SyncSettings)
    connectivity: ConnectivitySettings = field(default_factory=ConnectivitySettings)
    notifier: NotifierSettings = field(default_factory=NotifierSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
