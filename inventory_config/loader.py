"""
Configuration loader (``inventory_config.loader``).

Responsibility
--------------
Reads one YAML file and parses it into ``InventorySettings``.  Every
section and key is optional; missing keys keep their defaults.  A few
deployment values may be overridden from the environment:

==========================  ======================
Variable                    Setting
==========================  ======================
``INVENTORY_CONFIG``        path of the YAML file
``INVENTORY_DATABASE_URL``  ``database.url``
``INVENTORY_QUEUE_URL``     ``queue.url``
``INVENTORY_SERVER_URL``    ``sync.server_url``
==========================  ======================

Failure modes
-------------
* Missing or unreadable file, malformed YAML, unknown section or key,
  wrong value type, or an out-of-range value -> ``ConfigError`` naming the
  offending key.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import fields, replace
from pathlib import Path
from typing import Any
from uuid import UUID

import yaml

from inventory_kernel.exceptions import ConfigError
from inventory_config.settings import (
    ConnectivitySettings,
    DatabaseSettings,
    InventorySettings,
    LoggingSettings,
    NotifierSettings,
    QueueSettings,
    SyncSettings,
)

_SECTIONS: dict[str, type] = {
    "database": DatabaseSettings,
    "queue": QueueSettings,
    "sync": SyncSettings,
    "connectivity": ConnectivitySettings,
    "notifier": NotifierSettings,
    "logging": LoggingSettings,
}

_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "INVENTORY_DATABASE_URL": ("database", "url"),
    "INVENTORY_QUEUE_URL": ("queue", "url"),
    "INVENTORY_SERVER_URL": ("sync", "server_url"),
}

REJECTION_POLICIES = frozenset({"keep", "discard"})
NOTIFIER_BACKENDS = frozenset({"logging", "smtp"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict.

    Raises:
        ConfigError: If the file cannot be read or parsed, or its top
            level is not a mapping.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(str(path), f"cannot read file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(str(path), f"invalid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(str(path), "top level must be a mapping")
    return dict(data)


def load_settings(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> InventorySettings:
    """Build settings from ``path`` (or ``$INVENTORY_CONFIG``) plus env overrides.

    With neither a path nor ``INVENTORY_CONFIG``, only defaults and
    overrides apply.
    """
    env = os.environ if env is None else env
    if path is None and env.get("INVENTORY_CONFIG"):
        path = env["INVENTORY_CONFIG"]

    data = load_yaml_file(Path(path)) if path is not None else {}
    settings = parse_settings(data)

    for variable, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(variable)
        if value:
            settings = replace(
                settings,
                **{section: replace(getattr(settings, section), **{key: value})},
            )

    validate_settings(settings)
    return settings


def parse_settings(data: Mapping[str, Any]) -> InventorySettings:
    """Parse a configuration mapping into InventorySettings."""
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ConfigError(sorted(unknown)[0], "unknown configuration section")

    sections: dict[str, Any] = {}
    for name, cls in _SECTIONS.items():
        raw = data.get(name)
        if raw is None:
            sections[name] = cls()
            continue
        if not isinstance(raw, Mapping):
            raise ConfigError(name, "section must be a mapping")
        sections[name] = _parse_section(name, cls, raw)
    return InventorySettings(**sections)


def validate_settings(settings: InventorySettings) -> None:
    """Check cross-field and range constraints.

    Raises:
        ConfigError: On the first invalid value.
    """
    if settings.database.pool_size < 1:
        raise ConfigError("database.pool_size", "must be >= 1")
    if settings.database.max_overflow < 0:
        raise ConfigError("database.max_overflow", "must be >= 0")

    sync = settings.sync
    if sync.timeout_seconds <= 0:
        raise ConfigError("sync.timeout_seconds", "must be > 0")
    if sync.rejection_policy not in REJECTION_POLICIES:
        raise ConfigError(
            "sync.rejection_policy",
            f"must be one of {sorted(REJECTION_POLICIES)}",
        )
    if sync.server_url is not None and not sync.server_url.startswith(
        ("http://", "https://")
    ):
        raise ConfigError("sync.server_url", "must be an http(s) URL")
    if sync.actor_id is not None:
        try:
            UUID(sync.actor_id)
        except ValueError:
            raise ConfigError("sync.actor_id", "must be a UUID") from None

    connectivity = settings.connectivity
    if connectivity.check_interval_seconds <= 0:
        raise ConfigError("connectivity.check_interval_seconds", "must be > 0")
    if connectivity.debounce_seconds < 0:
        raise ConfigError("connectivity.debounce_seconds", "must be >= 0")
    if connectivity.probe_timeout_seconds <= 0:
        raise ConfigError("connectivity.probe_timeout_seconds", "must be > 0")

    notifier = settings.notifier
    if notifier.backend not in NOTIFIER_BACKENDS:
        raise ConfigError(
            "notifier.backend", f"must be one of {sorted(NOTIFIER_BACKENDS)}",
        )
    if notifier.backend == "smtp" and not notifier.smtp_host:
        raise ConfigError("notifier.smtp_host", "required for the smtp backend")

    if not isinstance(logging.getLevelName(settings.logging.level.upper()), int):
        raise ConfigError("logging.level", f"unknown level {settings.logging.level!r}")


def _parse_section(name: str, cls: type, raw: Mapping[str, Any]) -> Any:
    defaults = cls()
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"{name}.{sorted(unknown)[0]}", "unknown key")

    values = {
        key: _coerce(f"{name}.{key}", value, getattr(defaults, key))
        for key, value in raw.items()
    }
    return replace(defaults, **values)


def _coerce(key: str, value: Any, default: Any) -> Any:
    """Check ``value`` against the type of the field's default."""
    if default is None:
        if value is None or isinstance(value, str):
            return value
        raise ConfigError(key, "must be a string")
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        raise ConfigError(key, "must be true or false")
    if isinstance(default, int):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise ConfigError(key, "must be an integer")
    if isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise ConfigError(key, "must be a number")
    if isinstance(value, str):
        return value
    raise ConfigError(key, "must be a string")
