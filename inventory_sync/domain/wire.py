"""
inventory_sync.domain.wire -- JSON documents for the client/server boundary.

ZERO I/O.  Converts between frozen DTOs and plain ``dict`` documents that
``json`` (or httpx) can serialize.

Request::

    {"actions": [{"id": "...", "kind": "adjust_inventory",
                  "payload": {...}, "enqueued_at": "2024-01-01T12:00:00+00:00"}]}

Response::

    {"succeeded": 2, "failed": 1,
     "results": [{"id": "...", "kind": "...", "outcome": "applied",
                  "product": {...}, "record": {...}}],
     "errors":  [{"action": {...}, "reason": "not_found", "message": "..."}]}

Every action and every outcome carries the client-generated ``id`` so the
client maps outcomes back to queue entries exactly.

Failure modes:
    - A document that is structurally unusable (not an object, no action
      list, an action without a valid id) raises WireFormatError.
    - A single action with a bad kind or payload is decoded as a
      ``Rejected(INVALID_ACTION)`` so its siblings still replay.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from inventory_kernel.domain.values import (
    AdjustmentRecord,
    LocationMoveRecord,
    ProductSnapshot,
)
from inventory_kernel.exceptions import InvalidActionError, WireFormatError
from inventory_sync.domain.types import (
    ActionKind,
    ActionPayload,
    AdjustInventoryPayload,
    Applied,
    MoveLocationPayload,
    Outcome,
    QueuedAction,
    Rejected,
    RejectionReason,
    parse_kind,
)


# =============================================================================
# Scalars
# =============================================================================


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_datetime(value: Any, document: str, field_name: str) -> datetime:
    if not isinstance(value, str):
        raise WireFormatError(document, f"{field_name} must be an ISO-8601 string")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise WireFormatError(document, f"{field_name} is not ISO-8601: {value!r}") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_uuid(value: Any, document: str, field_name: str) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise WireFormatError(document, f"{field_name} is not a UUID: {value!r}") from None


# =============================================================================
# Payloads and actions
# =============================================================================


def payload_to_dict(kind: ActionKind, payload: ActionPayload) -> dict[str, Any]:
    if kind is ActionKind.ADJUST_INVENTORY:
        return {
            "product_id": str(payload.product_id),
            "quantity_delta": payload.quantity_delta,
            "memo": payload.memo,
        }
    return {
        "product_id": str(payload.product_id),
        "to_location": payload.to_location,
    }


def payload_from_dict(kind: ActionKind, data: Any) -> ActionPayload:
    """Build the typed payload for ``kind``.

    Raises:
        InvalidActionError: On missing or invalid fields.
    """
    if not isinstance(data, Mapping):
        raise InvalidActionError(kind.value, "payload must be an object")
    try:
        product_id = UUID(str(data["product_id"]))
    except KeyError:
        raise InvalidActionError(kind.value, "payload.product_id is required") from None
    except ValueError:
        raise InvalidActionError(kind.value, "payload.product_id is not a UUID") from None

    if kind is ActionKind.ADJUST_INVENTORY:
        if "quantity_delta" not in data:
            raise InvalidActionError(kind.value, "payload.quantity_delta is required")
        return AdjustInventoryPayload(
            product_id=product_id,
            quantity_delta=data["quantity_delta"],
            memo=data.get("memo"),
        )
    if "to_location" not in data:
        raise InvalidActionError(kind.value, "payload.to_location is required")
    return MoveLocationPayload(product_id=product_id, to_location=data["to_location"])


def action_to_dict(action: QueuedAction) -> dict[str, Any]:
    return {
        "id": str(action.action_id),
        "kind": action.kind.value,
        "payload": payload_to_dict(action.kind, action.payload),
        "enqueued_at": _format_datetime(action.enqueued_at),
    }


def encode_request(actions: Sequence[QueuedAction]) -> dict[str, Any]:
    return {"actions": [action_to_dict(a) for a in actions]}


def decode_request(document: Any) -> tuple[QueuedAction | Rejected, ...]:
    """Decode a sync request.

    Returns one entry per submitted action, in submission order: a
    QueuedAction, or a Rejected(INVALID_ACTION) for an action whose kind
    or payload is unusable.

    Raises:
        WireFormatError: If the document itself is unusable.
    """
    if not isinstance(document, Mapping):
        raise WireFormatError("request", "body must be an object")
    raw_actions = document.get("actions")
    if not isinstance(raw_actions, list):
        raise WireFormatError("request", "actions must be a list")

    decoded: list[QueuedAction | Rejected] = []
    for raw in raw_actions:
        if not isinstance(raw, Mapping):
            raise WireFormatError("request", "each action must be an object")
        action_id = _parse_uuid(raw.get("id"), "request", "action id")
        try:
            kind = parse_kind(raw.get("kind"))
            decoded.append(
                QueuedAction(
                    action_id=action_id,
                    kind=kind,
                    payload=payload_from_dict(kind, raw.get("payload")),
                    enqueued_at=_parse_datetime(
                        raw.get("enqueued_at"), "request", "enqueued_at",
                    ),
                )
            )
        except (InvalidActionError, WireFormatError) as exc:
            kind_value = raw.get("kind")
            decoded.append(
                Rejected(
                    action_id=action_id,
                    kind=_kind_or_none(kind_value),
                    reason=RejectionReason.INVALID_ACTION,
                    message=str(exc),
                )
            )
    return tuple(decoded)


_KIND_VALUES = frozenset(k.value for k in ActionKind)


def _kind_or_none(value: Any) -> ActionKind | None:
    if isinstance(value, str) and value in _KIND_VALUES:
        return ActionKind(value)
    return None


# =============================================================================
# Products and audit records
# =============================================================================


def product_to_dict(product: ProductSnapshot) -> dict[str, Any]:
    return {
        "id": str(product.product_id),
        "name": product.name,
        "sku": product.sku,
        "category": product.category,
        "brand": product.brand,
        "location": product.location,
        "quantity": product.quantity,
        "safety_stock": product.safety_stock,
        "price": str(product.price),
        "updated_at": (
            _format_datetime(product.updated_at) if product.updated_at else None
        ),
    }


def product_from_dict(data: Any) -> ProductSnapshot:
    if not isinstance(data, Mapping):
        raise WireFormatError("response", "product must be an object")
    try:
        return ProductSnapshot(
            product_id=_parse_uuid(data["id"], "response", "product id"),
            name=data["name"],
            sku=data["sku"],
            category=data.get("category", ""),
            brand=data.get("brand", ""),
            location=data["location"],
            quantity=int(data["quantity"]),
            safety_stock=int(data["safety_stock"]),
            price=Decimal(str(data.get("price", "0"))),
            updated_at=(
                _parse_datetime(data["updated_at"], "response", "updated_at")
                if data.get("updated_at") else None
            ),
        )
    except KeyError as exc:
        raise WireFormatError("response", f"product.{exc.args[0]} is required") from None
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise WireFormatError("response", f"invalid product: {exc}") from None


def record_to_dict(record: AdjustmentRecord | LocationMoveRecord) -> dict[str, Any]:
    if isinstance(record, AdjustmentRecord):
        return {
            "id": str(record.record_id),
            "product_id": str(record.product_id),
            "actor_id": str(record.actor_id),
            "quantity_delta": record.quantity_delta,
            "memo": record.memo,
            "created_at": _format_datetime(record.created_at),
        }
    return {
        "id": str(record.record_id),
        "product_id": str(record.product_id),
        "actor_id": str(record.actor_id),
        "from_location": record.from_location,
        "to_location": record.to_location,
        "moved_at": _format_datetime(record.moved_at),
    }


def record_from_dict(
    kind: ActionKind, data: Any,
) -> AdjustmentRecord | LocationMoveRecord:
    if not isinstance(data, Mapping):
        raise WireFormatError("response", "record must be an object")
    try:
        record_id = _parse_uuid(data["id"], "response", "record id")
        product_id = _parse_uuid(data["product_id"], "response", "record product_id")
        actor_id = _parse_uuid(data["actor_id"], "response", "record actor_id")
        if kind is ActionKind.ADJUST_INVENTORY:
            return AdjustmentRecord(
                record_id=record_id,
                product_id=product_id,
                actor_id=actor_id,
                quantity_delta=int(data["quantity_delta"]),
                memo=data.get("memo"),
                created_at=_parse_datetime(data["created_at"], "response", "created_at"),
            )
        return LocationMoveRecord(
            record_id=record_id,
            product_id=product_id,
            actor_id=actor_id,
            from_location=data["from_location"],
            to_location=data["to_location"],
            moved_at=_parse_datetime(data["moved_at"], "response", "moved_at"),
        )
    except KeyError as exc:
        raise WireFormatError("response", f"record.{exc.args[0]} is required") from None
    except (TypeError, ValueError) as exc:
        raise WireFormatError("response", f"invalid record: {exc}") from None


# =============================================================================
# Response
# =============================================================================


def encode_response(
    outcomes: Sequence[Outcome],
    submitted: Mapping[UUID, Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """Encode engine outcomes.

    Args:
        outcomes: Outcomes in applied order.
        submitted: Raw submitted actions by id, echoed back in ``errors``.
    """
    submitted = submitted or {}
    results: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []

    for outcome in outcomes:
        if isinstance(outcome, Applied):
            results.append({
                "id": str(outcome.action_id),
                "kind": outcome.kind.value,
                "outcome": "applied",
                "product": product_to_dict(outcome.product),
                "record": record_to_dict(outcome.record),
            })
        else:
            action = dict(submitted.get(outcome.action_id) or {})
            action["id"] = str(outcome.action_id)
            if outcome.kind is not None:
                action.setdefault("kind", outcome.kind.value)
            errors.append({
                "action": action,
                "reason": outcome.reason.value,
                "message": outcome.message,
            })

    return {
        "succeeded": len(results),
        "failed": len(errors),
        "results": results,
        "errors": errors,
    }


def decode_response(document: Any) -> tuple[Outcome, ...]:
    """Decode a sync response into outcomes.

    Raises:
        WireFormatError: If the document is malformed.
    """
    if not isinstance(document, Mapping):
        raise WireFormatError("response", "body must be an object")
    results = document.get("results", [])
    errors = document.get("errors") or []
    if not isinstance(results, list) or not isinstance(errors, list):
        raise WireFormatError("response", "results and errors must be lists")

    outcomes: list[Outcome] = []
    for raw in results:
        if not isinstance(raw, Mapping):
            raise WireFormatError("response", "each result must be an object")
        try:
            kind = parse_kind(raw.get("kind"))
        except InvalidActionError:
            raise WireFormatError("response", f"unknown kind {raw.get('kind')!r}") from None
        outcomes.append(
            Applied(
                action_id=_parse_uuid(raw.get("id"), "response", "result id"),
                kind=kind,
                product=product_from_dict(raw.get("product")),
                record=record_from_dict(kind, raw.get("record")),
            )
        )

    for raw in errors:
        if not isinstance(raw, Mapping) or not isinstance(raw.get("action"), Mapping):
            raise WireFormatError("response", "each error must carry an action object")
        action = raw["action"]
        try:
            reason = RejectionReason(raw.get("reason"))
        except ValueError:
            raise WireFormatError("response", f"unknown reason {raw.get('reason')!r}") from None
        kind_value = action.get("kind")
        outcomes.append(
            Rejected(
                action_id=_parse_uuid(action.get("id"), "response", "error action id"),
                kind=_kind_or_none(kind_value),
                reason=reason,
                message=str(raw.get("message", "")),
            )
        )

    return tuple(outcomes)
