"""Database layer - engine, base classes and column types."""

from inventory_kernel.db.base import Base, TrackedBase, UTCDateTime, UUIDString
from inventory_kernel.db.engine import (
    create_engine_for_url,
    create_tables,
    drop_tables,
    make_session_factory,
    session_scope,
)

__all__ = [
    "create_engine_for_url",
    "create_tables",
    "drop_tables",
    "make_session_factory",
    "session_scope",
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
]
