"""
inventory_config -- YAML configuration for the inventory tracker.

``load_settings()`` is the single entry point.  It sits beside
``inventory_kernel`` (which it imports for ``ConfigError`` only) and below
``inventory_sync.orchestrator``, which turns settings into wired services.
"""

from inventory_config.loader import load_settings, parse_settings, validate_settings
from inventory_config.settings import (
    ConnectivitySettings,
    DatabaseSettings,
    InventorySettings,
    LoggingSettings,
    NotifierSettings,
    QueueSettings,
    SyncSettings,
)

__all__ = [
    "ConnectivitySettings",
    "DatabaseSettings",
    "InventorySettings",
    "LoggingSettings",
    "NotifierSettings",
    "QueueSettings",
    "SyncSettings",
    "load_settings",
    "parse_settings",
    "validate_settings",
]
