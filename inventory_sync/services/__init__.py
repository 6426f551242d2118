"""Services for the offline queue and reconciliation."""

from inventory_sync.services.action_queue import ActionQueue
from inventory_sync.services.connectivity import ConnectivityMonitor, tcp_probe
from inventory_sync.services.coordinator import SyncCoordinator
from inventory_sync.services.endpoint import SyncEndpoint
from inventory_sync.services.handlers import (
    ActionHandler,
    AdjustInventoryHandler,
    HandlerRegistry,
    HandlerResult,
    MoveLocationHandler,
    default_handler_registry,
)
from inventory_sync.services.reconciler import ReconciliationEngine
from inventory_sync.services.transport import (
    HttpTransport,
    LocalTransport,
    SyncTransport,
)

__all__ = [
    "ActionHandler",
    "ActionQueue",
    "AdjustInventoryHandler",
    "ConnectivityMonitor",
    "HandlerRegistry",
    "HandlerResult",
    "HttpTransport",
    "LocalTransport",
    "MoveLocationHandler",
    "ReconciliationEngine",
    "SyncCoordinator",
    "SyncEndpoint",
    "SyncTransport",
    "default_handler_registry",
    "tcp_probe",
]
