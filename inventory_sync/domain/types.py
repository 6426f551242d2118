"""
inventory_sync.domain.types -- Pure frozen dataclasses for the offline core.

ZERO I/O.  Follows the batch DTO conventions: frozen dataclasses, ``str``
enums for status fields, tuples for immutable collections.

Invariants enforced:
    - The action kind set is closed.  Each kind has exactly one payload
      type; a mismatched or invalid payload raises InvalidActionError at
      construction, i.e. at enqueue time rather than at replay time.
    - ``RejectionReason.retryable`` is True only for TRANSIENT_IO.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union
from uuid import UUID

from inventory_kernel.domain.values import (
    AdjustmentRecord,
    LocationMoveRecord,
    ProductSnapshot,
)
from inventory_kernel.exceptions import InvalidActionError


# =============================================================================
# Action kinds and payloads
# =============================================================================


class ActionKind(str, Enum):
    """Mutations a client may queue while offline."""

    ADJUST_INVENTORY = "adjust_inventory"
    MOVE_LOCATION = "move_location"


@dataclass(frozen=True)
class AdjustInventoryPayload:
    """Add ``quantity_delta`` (positive: receive, negative: issue) to stock."""

    product_id: UUID
    quantity_delta: int
    memo: str | None = None

    def __post_init__(self):
        kind = ActionKind.ADJUST_INVENTORY.value
        if not isinstance(self.product_id, UUID):
            raise InvalidActionError(kind, "product_id must be a UUID")
        if isinstance(self.quantity_delta, bool) or not isinstance(self.quantity_delta, int):
            raise InvalidActionError(kind, "quantity_delta must be an integer")
        if self.quantity_delta == 0:
            raise InvalidActionError(kind, "quantity_delta must be non-zero")
        if self.memo is not None and not isinstance(self.memo, str):
            raise InvalidActionError(kind, "memo must be a string")


@dataclass(frozen=True)
class MoveLocationPayload:
    """Move the product to shelf location ``to_location``."""

    product_id: UUID
    to_location: str

    def __post_init__(self):
        kind = ActionKind.MOVE_LOCATION.value
        if not isinstance(self.product_id, UUID):
            raise InvalidActionError(kind, "product_id must be a UUID")
        if not isinstance(self.to_location, str) or not self.to_location.strip():
            raise InvalidActionError(kind, "to_location must be a non-empty string")


ActionPayload = Union[AdjustInventoryPayload, MoveLocationPayload]

PAYLOAD_TYPES: dict[ActionKind, type] = {
    ActionKind.ADJUST_INVENTORY: AdjustInventoryPayload,
    ActionKind.MOVE_LOCATION: MoveLocationPayload,
}


def parse_kind(value: ActionKind | str) -> ActionKind:
    """Coerce ``value`` to an ActionKind.

    Raises:
        InvalidActionError: If the kind is unknown.
    """
    try:
        return ActionKind(value)
    except ValueError:
        raise InvalidActionError(str(value), "unknown action kind") from None


def validate_payload(kind: ActionKind, payload: object) -> None:
    """Check that ``payload`` is the payload type registered for ``kind``.

    Raises:
        InvalidActionError: On a mismatch.
    """
    expected = PAYLOAD_TYPES[kind]
    if not isinstance(payload, expected):
        raise InvalidActionError(
            kind.value,
            f"payload must be {expected.__name__}, got {type(payload).__name__}",
        )


# =============================================================================
# Queued action
# =============================================================================


@dataclass(frozen=True)
class QueuedAction:
    """Immutable snapshot of one queued mutation.

    ``enqueued_at`` orders replay and backdates the resulting audit record.
    ``seq`` is the per-device insertion counter and breaks ties between
    equal timestamps.
    """

    action_id: UUID
    kind: ActionKind
    payload: ActionPayload
    enqueued_at: datetime
    synced: bool = False
    seq: int = 0
    attempts: int = 0
    last_error: str | None = None

    def __post_init__(self):
        validate_payload(self.kind, self.payload)

    @property
    def product_id(self) -> UUID:
        return self.payload.product_id


# =============================================================================
# Replay outcomes
# =============================================================================


class RejectionReason(str, Enum):
    """Why an action was not applied."""

    NOT_FOUND = "not_found"  # Product missing
    INSUFFICIENT_STOCK = "insufficient_stock"  # Delta would go negative
    NO_OP_MOVE = "no_op_move"  # Already at the target location
    TRANSIENT_IO = "transient_io"  # Network/storage failure, retry later
    INVALID_ACTION = "invalid_action"  # Malformed action reached the server

    @property
    def retryable(self) -> bool:
        return self is RejectionReason.TRANSIENT_IO


@dataclass(frozen=True)
class Applied:
    """The action was applied; carries the new product state and audit row."""

    action_id: UUID
    kind: ActionKind
    product: ProductSnapshot
    record: AdjustmentRecord | LocationMoveRecord

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """The action was not applied.  Product state is unchanged."""

    action_id: UUID
    kind: ActionKind | None
    reason: RejectionReason
    message: str

    @property
    def succeeded(self) -> bool:
        return False


Outcome = Union[Applied, Rejected]


# =============================================================================
# Sync reporting
# =============================================================================


class RejectionPolicy(str, Enum):
    """What to do with actions rejected for a non-retryable reason."""

    KEEP = "keep"  # Stay queued until the user discards them
    DISCARD = "discard"  # Dropped once reported


class SyncStatus(str, Enum):
    """Outcome of one ``sync()`` call."""

    COMPLETED = "completed"  # Every pending action applied
    PARTIALLY_COMPLETED = "partially_completed"  # Some actions rejected
    FAILED = "failed"  # Every action rejected
    TRANSPORT_FAILED = "transport_failed"  # Batch never confirmed
    NOTHING_TO_SYNC = "nothing_to_sync"
    OFFLINE = "offline"
    BUSY = "busy"  # Another sync was in flight


@dataclass(frozen=True)
class SyncFailure:
    """One action that did not apply, with a human-readable message."""

    action: QueuedAction
    reason: RejectionReason
    message: str


@dataclass(frozen=True)
class SyncReport:
    """Aggregate result of one ``sync()`` call."""

    status: SyncStatus
    succeeded: int = 0
    failed: int = 0
    failures: tuple[SyncFailure, ...] = ()
    discarded: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(f.message for f in self.failures)


# =============================================================================
# Connectivity
# =============================================================================


class ConnectivityState(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass(frozen=True)
class ConnectivityTransition:
    """A change of reachability observed by the monitor."""

    state: ConnectivityState
    observed_at: datetime
