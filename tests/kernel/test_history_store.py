"""Tests for HistoryStore (append-only audit trail)."""

from datetime import datetime, timedelta, timezone

import pytest

from inventory_kernel.services.history_store import HistoryStore


@pytest.fixture
def history(session):
    return HistoryStore(session)


class TestHistoryStore:

    def test_record_adjustment(self, history, create_product, test_actor_id):
        product = create_product()
        at = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

        record = history.record_adjustment(
            product.product_id, test_actor_id, -3, "damaged", at,
        )

        assert record.product_id == product.product_id
        assert record.actor_id == test_actor_id
        assert record.quantity_delta == -3
        assert record.memo == "damaged"
        assert record.created_at == at

    def test_adjustments_oldest_first(self, history, create_product, test_actor_id):
        product = create_product()
        base = datetime(2024, 3, 1, tzinfo=timezone.utc)
        history.record_adjustment(product.product_id, test_actor_id, 5, None,
                                  base + timedelta(minutes=2))
        history.record_adjustment(product.product_id, test_actor_id, -1, None, base)

        deltas = [r.quantity_delta for r in history.adjustments_for(product.product_id)]

        assert deltas == [-1, 5]

    def test_record_move(self, history, create_product, test_actor_id):
        product = create_product(location="A-1")
        at = datetime(2024, 3, 1, tzinfo=timezone.utc)

        history.record_move(product.product_id, test_actor_id, "A-1", "B-2", at)
        history.record_move(product.product_id, test_actor_id, "B-2", "C-3",
                            at + timedelta(seconds=1))

        moves = history.moves_for(product.product_id)
        assert [(m.from_location, m.to_location) for m in moves] == [
            ("A-1", "B-2"),
            ("B-2", "C-3"),
        ]

    def test_history_is_per_product(self, history, create_product, test_actor_id):
        first = create_product()
        second = create_product()
        at = datetime(2024, 3, 1, tzinfo=timezone.utc)
        history.record_adjustment(first.product_id, test_actor_id, 1, None, at)

        assert history.adjustments_for(second.product_id) == ()
