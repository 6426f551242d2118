"""Tests for inventory_kernel.logging_config (JSON lines, context fields)."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import InsufficientStockError, TransientIOError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from inventory_sync.domain.types import RejectionReason, SyncStatus


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def json_lines():
    """Configure logging into a buffer; returns a reader of parsed lines."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(handler=handler, level="debug")

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return _read


class TestJsonLines:

    def test_envelope(self, json_lines):
        get_logger("sync.coordinator").info("sync_started")

        (record,) = json_lines()
        assert record["message"] == "sync_started"
        assert record["level"] == "INFO"
        assert record["logger"] == "inventory.sync.coordinator"
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_extra_and_context_fields(self, json_lines):
        LogContext.set(correlation_id="sync-1", device_id="till-1")
        get_logger("test").info("sync_completed", extra={"succeeded": 4, "failed": 1})

        (record,) = json_lines()
        assert record["correlation_id"] == "sync-1"
        assert record["device_id"] == "till-1"
        assert record["succeeded"] == 4
        assert record["failed"] == 1
        assert "action_id" not in record

    def test_domain_values_serialized(self, json_lines):
        product_id = uuid4()
        at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        get_logger("test").info(
            "action_applied",
            extra={
                "product_id": product_id,
                "enqueued_at": at,
                "price": Decimal("9.99"),
                "status": SyncStatus.COMPLETED,
                "reason": RejectionReason.NO_OP_MOVE,
            },
        )

        (record,) = json_lines()
        assert record["product_id"] == str(product_id)
        assert record["enqueued_at"] == at.isoformat()
        assert record["price"] == "9.99"
        assert record["status"] == "completed"
        assert record["reason"] == "no_op_move"

    def test_plain_exception(self, json_lines):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("action_unexpected_error", exc_info=True)

        (record,) = json_lines()
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "Traceback" in record["traceback"]

    def test_inventory_error_code_and_attributes(self, json_lines):
        try:
            raise InsufficientStockError("p-1", 10, -15)
        except InsufficientStockError:
            get_logger("test").warning("action_rejected", exc_info=True)

        (record,) = json_lines()
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_product_id"] == "p-1"
        assert record["exc_quantity"] == 10
        assert record["exc_quantity_delta"] == -15

    def test_transient_error_cause(self, json_lines):
        try:
            raise TransientIOError("Sync request timed out", cause="ReadTimeout")
        except TransientIOError:
            get_logger("test").warning("sync_transport_failed", exc_info=True)

        (record,) = json_lines()
        assert record["exc_code"] == "TRANSIENT_IO"
        assert record["exc_cause"] == "ReadTimeout"

    def test_level_name_accepted(self, json_lines):
        get_logger("deep.nested").debug("online_transition_coalesced")

        assert [r["message"] for r in json_lines()] == ["online_transition_coalesced"]


class TestLogContext:

    def test_set_ignores_none(self):
        LogContext.set(correlation_id="c", actor_id=None)

        assert LogContext.get_all() == {"correlation_id": "c"}

    def test_bind_nests_and_restores(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner", action_id="a-1"):
            assert LogContext.get_all() == {"correlation_id": "inner", "action_id": "a-1"}
        assert LogContext.get_all() == {"correlation_id": "outer"}

    def test_bind_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(action_id="a-1"):
                raise RuntimeError("handler failed")

        assert LogContext.get_all() == {}

    def test_all_fields(self):
        LogContext.set(correlation_id="c", actor_id="a", device_id="d", action_id="x")

        assert set(LogContext.get_all()) == {
            "correlation_id", "actor_id", "device_id", "action_id",
        }

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="event_id"):
            LogContext.set(event_id="e-1")

    def test_clear(self):
        LogContext.set(device_id="till-1")
        LogContext.clear()

        assert LogContext.get_all() == {}


class TestConfigureLogging:

    def test_second_call_is_ignored(self):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        configure_logging(handler=logging.StreamHandler(StringIO()))

        root = logging.getLogger("inventory")
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert root.propagate is False

    def test_reset_removes_handler(self):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        reset_logging()

        assert logging.getLogger("inventory").handlers == []
