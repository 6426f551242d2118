"""
Typed exception hierarchy for the inventory tracker.

Every error carries a machine-readable ``code`` class attribute and keeps
its context as attributes, so callers catch by type and read structured
data instead of parsing messages.

    InventoryError (base)
    |
    +-- ProductError
    |   +-- ProductNotFoundError        PRODUCT_NOT_FOUND
    |   +-- InsufficientStockError      INSUFFICIENT_STOCK
    |   +-- NoOpMoveError               NO_OP_MOVE
    |   +-- DuplicateSkuError           DUPLICATE_SKU
    |
    +-- SyncError
    |   +-- TransientIOError            TRANSIENT_IO
    |   +-- InvalidActionError          INVALID_ACTION
    |   +-- QueueStorageError           QUEUE_STORAGE_ERROR
    |   +-- WireFormatError             WIRE_FORMAT_ERROR
    |
    +-- ConfigError                     CONFIG_ERROR

Replay semantics:
    ProductNotFoundError, InsufficientStockError, NoOpMoveError and
    InvalidActionError are not retryable; the action needs an operator
    decision.  TransientIOError is retryable; the action stays pending.
"""


class InventoryError(Exception):
    """
    Base exception for all inventory errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "INVENTORY_ERROR"


# Product-related exceptions


class ProductError(InventoryError):
    """Base exception for product state errors."""

    code: str = "PRODUCT_ERROR"


class ProductNotFoundError(ProductError):
    """Referenced product does not exist (deleted or never created)."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InsufficientStockError(ProductError):
    """Applying the delta would take the quantity below zero."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, quantity: int, quantity_delta: int):
        self.product_id = product_id
        self.quantity = quantity
        self.quantity_delta = quantity_delta
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"on hand {quantity}, adjustment {quantity_delta}"
        )


class NoOpMoveError(ProductError):
    """Target location equals the product's current location."""

    code: str = "NO_OP_MOVE"

    def __init__(self, product_id: str, location: str):
        self.product_id = product_id
        self.location = location
        super().__init__(
            f"Product {product_id} is already at location {location!r}"
        )


class DuplicateSkuError(ProductError):
    """A product with the same SKU already exists."""

    code: str = "DUPLICATE_SKU"

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"SKU already exists: {sku}")


# Sync-related exceptions


class SyncError(InventoryError):
    """Base exception for offline queue and sync errors."""

    code: str = "SYNC_ERROR"


class TransientIOError(SyncError):
    """
    Network or storage failure while talking to the server.

    Retryable: nothing was confirmed, so every submitted action stays
    pending.
    """

    code: str = "TRANSIENT_IO"

    def __init__(self, message: str, cause: str | None = None):
        self.cause = cause
        super().__init__(message)


class InvalidActionError(SyncError):
    """Action kind or payload is not acceptable."""

    code: str = "INVALID_ACTION"

    def __init__(self, kind: str, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Invalid {kind} action: {reason}")


class QueueStorageError(SyncError):
    """Local queue write or read failed."""

    code: str = "QUEUE_STORAGE_ERROR"

    def __init__(self, operation: str, cause: str):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Action queue {operation} failed: {cause}")


class WireFormatError(SyncError):
    """Request or response document is malformed."""

    code: str = "WIRE_FORMAT_ERROR"

    def __init__(self, document: str, reason: str):
        self.document = document
        self.reason = reason
        super().__init__(f"Malformed sync {document}: {reason}")


# Configuration


class ConfigError(InventoryError):
    """Configuration file or value is invalid."""

    code: str = "CONFIG_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for {key}: {reason}")
