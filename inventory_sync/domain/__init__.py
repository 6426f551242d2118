"""
inventory_sync.domain -- Pure types for the offline core.

ZERO I/O.  All types are frozen dataclasses.
"""

from inventory_sync.domain.types import (
    PAYLOAD_TYPES,
    ActionKind,
    ActionPayload,
    AdjustInventoryPayload,
    Applied,
    ConnectivityState,
    ConnectivityTransition,
    MoveLocationPayload,
    Outcome,
    QueuedAction,
    Rejected,
    RejectionPolicy,
    RejectionReason,
    SyncFailure,
    SyncReport,
    SyncStatus,
    parse_kind,
    validate_payload,
)

__all__ = [
    "PAYLOAD_TYPES",
    "ActionKind",
    "ActionPayload",
    "AdjustInventoryPayload",
    "Applied",
    "ConnectivityState",
    "ConnectivityTransition",
    "MoveLocationPayload",
    "Outcome",
    "QueuedAction",
    "Rejected",
    "RejectionPolicy",
    "RejectionReason",
    "SyncFailure",
    "SyncReport",
    "SyncStatus",
    "parse_kind",
    "validate_payload",
]
