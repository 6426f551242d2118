"""
ActionHandler protocol, the built-in handlers, and HandlerRegistry.

Contract:
    ``ActionHandler`` applies ONE action of its kind against current product
    state.  ``HandlerRegistry`` maps each ActionKind to exactly one handler.
    Adding a kind means a new ActionKind member, a payload type, and a
    handler registered here.

Handlers run inside the engine's SAVEPOINT and must:
    - read the product with ``lock=True`` so the row is serialized per
      product for the rest of the transaction;
    - raise a typed ProductError to reject (the engine rolls the SAVEPOINT
      back and maps the error to a RejectionReason);
    - write the product change and its audit row through the stores, which
      only flush.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from uuid import UUID

from inventory_kernel.domain.values import (
    AdjustmentRecord,
    LocationMoveRecord,
    ProductSnapshot,
)
from inventory_kernel.exceptions import (
    InsufficientStockError,
    NoOpMoveError,
    ProductNotFoundError,
)
from inventory_kernel.services.history_store import HistoryStore
from inventory_kernel.services.product_store import ProductStore
from inventory_sync.domain.types import ActionKind, QueuedAction


@dataclass(frozen=True)
class HandlerResult:
    """What a handler produced for one applied action."""

    product: ProductSnapshot
    record: AdjustmentRecord | LocationMoveRecord
    low_stock: bool = False


@runtime_checkable
class ActionHandler(Protocol):
    """Applies queued actions of one kind."""

    @property
    def kind(self) -> ActionKind: ...

    def apply(
        self,
        action: QueuedAction,
        actor_id: UUID,
        products: ProductStore,
        history: HistoryStore,
    ) -> HandlerResult: ...


class AdjustInventoryHandler:
    """Adds the queued delta to the product's current quantity."""

    @property
    def kind(self) -> ActionKind:
        return ActionKind.ADJUST_INVENTORY

    def apply(
        self,
        action: QueuedAction,
        actor_id: UUID,
        products: ProductStore,
        history: HistoryStore,
    ) -> HandlerResult:
        payload = action.payload
        product = products.find_by_id(payload.product_id, lock=True)
        if product is None:
            raise ProductNotFoundError(str(payload.product_id))

        new_quantity = product.quantity + payload.quantity_delta
        if new_quantity < 0:
            raise InsufficientStockError(
                str(payload.product_id), product.quantity, payload.quantity_delta,
            )

        updated = products.update(
            payload.product_id, {"quantity": new_quantity}, actor_id=actor_id,
        )
        record = history.record_adjustment(
            product_id=payload.product_id,
            actor_id=actor_id,
            quantity_delta=payload.quantity_delta,
            memo=payload.memo,
            created_at=action.enqueued_at,
        )
        return HandlerResult(
            product=updated,
            record=record,
            low_stock=new_quantity <= updated.safety_stock,
        )


class MoveLocationHandler:
    """Moves the product from its current location to the queued target."""

    @property
    def kind(self) -> ActionKind:
        return ActionKind.MOVE_LOCATION

    def apply(
        self,
        action: QueuedAction,
        actor_id: UUID,
        products: ProductStore,
        history: HistoryStore,
    ) -> HandlerResult:
        payload = action.payload
        product = products.find_by_id(payload.product_id, lock=True)
        if product is None:
            raise ProductNotFoundError(str(payload.product_id))

        from_location = product.location
        if from_location == payload.to_location:
            raise NoOpMoveError(str(payload.product_id), from_location)

        updated = products.update(
            payload.product_id, {"location": payload.to_location}, actor_id=actor_id,
        )
        record = history.record_move(
            product_id=payload.product_id,
            actor_id=actor_id,
            from_location=from_location,
            to_location=payload.to_location,
            moved_at=action.enqueued_at,
        )
        return HandlerResult(product=updated, record=record)


class HandlerRegistry:
    """Registry mapping ActionKind to its handler.

    Contract:
        - ``register()`` adds a handler; raises ValueError on duplicate.
        - ``get()`` retrieves by kind; raises KeyError if missing.
    """

    def __init__(self) -> None:
        self._handlers: dict[ActionKind, ActionHandler] = {}

    def register(self, handler: ActionHandler) -> None:
        if handler.kind in self._handlers:
            raise ValueError(
                f"Handler for '{handler.kind.value}' is already registered"
            )
        self._handlers[handler.kind] = handler

    def get(self, kind: ActionKind) -> ActionHandler:
        try:
            return self._handlers[kind]
        except KeyError:
            raise KeyError(
                f"No handler registered for '{kind.value}'. "
                f"Available: {self.list_kinds()}"
            ) from None

    def list_kinds(self) -> tuple[str, ...]:
        return tuple(sorted(k.value for k in self._handlers))

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, kind: ActionKind) -> bool:
        return kind in self._handlers


def default_handler_registry() -> HandlerRegistry:
    """Registry with a handler for every built-in ActionKind."""
    registry = HandlerRegistry()
    registry.register(AdjustInventoryHandler())
    registry.register(MoveLocationHandler())
    return registry
