"""
Pytest fixtures for the inventory test suite.

Provides:
- In-memory SQLite server and queue databases (no external services)
- Deterministic clock, recording notifier, fixed actor id
- Product factories
- Structured log capture

Two sessions must never hold a transaction on the same in-memory engine
at once (StaticPool shares one connection).  Engine-level tests work in
the ``session`` fixture; end-to-end tests go through ``session_scope``.
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from itertools import count
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.engine import (
    create_engine_for_url,
    create_tables,
    make_session_factory,
    session_scope,
)
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.values import ProductDraft, ProductSnapshot
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.services.notifier import RecordingNotifier
from inventory_kernel.services.product_store import ProductStore
from inventory_sync.models.queue import create_queue_table
from inventory_sync.services.action_queue import ActionQueue


# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

_sku_counter = count(1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, action_queue):
            action_queue.enqueue_move(product_id, "B-2")
            logs = captured_logs()
            assert any(r["message"] == "action_enqueued" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Server database: products, history (and the queue table, unused)."""
    eng = create_engine_for_url("sqlite:///:memory:")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return make_session_factory(engine)


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    s = session_factory()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def queue_engine():
    """Client database holding only the action queue."""
    eng = create_engine_for_url("sqlite:///:memory:")
    create_queue_table(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def queue_session_factory(queue_engine) -> sessionmaker[Session]:
    return make_session_factory(queue_engine)


@pytest.fixture
def action_queue(queue_session_factory, deterministic_clock) -> ActionQueue:
    return ActionQueue(queue_session_factory, clock=deterministic_clock)


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    return RecordingNotifier()


# =============================================================================
# Product factories
# =============================================================================


def make_product(
    session: Session,
    actor_id: UUID = TEST_ACTOR_ID,
    *,
    name: str = "Claw Hammer",
    sku: str | None = None,
    category: str = "Tools",
    brand: str = "Acme",
    location: str = "A-1",
    quantity: int = 10,
    safety_stock: int = 5,
    price: Decimal = Decimal("19.99"),
) -> ProductSnapshot:
    """Insert a product through ProductStore (flush only)."""
    draft = ProductDraft(
        name=name,
        sku=sku or f"SKU-{next(_sku_counter):05d}",
        category=category,
        brand=brand,
        location=location,
        quantity=quantity,
        safety_stock=safety_stock,
        price=price,
    )
    return ProductStore(session).create(draft, actor_id)


@pytest.fixture
def create_product(session, test_actor_id):
    """Factory fixture creating products in the test ``session``."""

    def _create(**overrides) -> ProductSnapshot:
        return make_product(session, test_actor_id, **overrides)

    return _create


@pytest.fixture
def create_committed_product(session_factory, test_actor_id):
    """Factory fixture committing products in their own transaction.

    Use when the code under test opens its own sessions.
    """

    def _create(**overrides) -> ProductSnapshot:
        with session_scope(session_factory) as s:
            return make_product(s, test_actor_id, **overrides)

    return _create
