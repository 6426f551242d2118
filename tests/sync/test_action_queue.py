"""
Tests for inventory_sync.services.action_queue.

Validates ActionQueue: validation at enqueue, FIFO listing, idempotent
mark_synced, purge semantics, failure bookkeeping, discard, and
durability across queue instances.
"""

from uuid import uuid4

import pytest
from sqlalchemy import inspect
from sqlalchemy.orm import sessionmaker

from inventory_kernel.db.engine import create_engine_for_url
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.exceptions import InvalidActionError, QueueStorageError
from inventory_sync.domain.types import (
    ActionKind,
    AdjustInventoryPayload,
    MoveLocationPayload,
)
from inventory_sync.models.queue import create_queue_table
from inventory_sync.services.action_queue import ActionQueue


# =============================================================================
# Enqueue
# =============================================================================


class TestEnqueue:

    def test_enqueue_persists_pending_action(self, action_queue, deterministic_clock):
        product_id = uuid4()

        action_id = action_queue.enqueue_adjustment(product_id, -3, memo="damaged")

        action = action_queue.get(action_id)
        assert action is not None
        assert action.kind is ActionKind.ADJUST_INVENTORY
        assert action.payload == AdjustInventoryPayload(product_id, -3, "damaged")
        assert action.synced is False
        assert action.enqueued_at == deterministic_clock.now()
        assert action.seq == 1

    def test_enqueue_accepts_dict_payload(self, action_queue):
        product_id = uuid4()

        action_id = action_queue.enqueue(
            "move_location",
            {"product_id": str(product_id), "to_location": "C-3"},
        )

        action = action_queue.get(action_id)
        assert action.payload == MoveLocationPayload(product_id, "C-3")

    def test_unknown_kind_rejected(self, action_queue):
        with pytest.raises(InvalidActionError):
            action_queue.enqueue("delete_product", {"product_id": str(uuid4())})
        assert action_queue.count() == 0

    def test_mismatched_payload_rejected(self, action_queue):
        with pytest.raises(InvalidActionError):
            action_queue.enqueue(
                ActionKind.ADJUST_INVENTORY,
                MoveLocationPayload(uuid4(), "B-1"),
            )
        assert action_queue.count() == 0

    def test_zero_delta_rejected(self, action_queue):
        with pytest.raises(InvalidActionError, match="non-zero"):
            action_queue.enqueue_adjustment(uuid4(), 0)

    def test_blank_location_rejected(self, action_queue):
        with pytest.raises(InvalidActionError):
            action_queue.enqueue_move(uuid4(), "  ")

    def test_enqueue_logs_event(self, action_queue, captured_logs):
        action_id = action_queue.enqueue_move(uuid4(), "B-2")

        records = [r for r in captured_logs() if r["message"] == "action_enqueued"]
        assert len(records) == 1
        assert records[0]["action_id"] == str(action_id)
        assert records[0]["kind"] == "move_location"


# =============================================================================
# Listing
# =============================================================================


class TestListPending:

    def test_fifo_order(self, action_queue, deterministic_clock):
        ids = []
        for delta in (1, 2, 3):
            deterministic_clock.advance(1)
            ids.append(action_queue.enqueue_adjustment(uuid4(), delta))

        assert [a.action_id for a in action_queue.list_pending()] == ids

    def test_same_timestamp_ordered_by_seq(self, action_queue):
        ids = [action_queue.enqueue_move(uuid4(), f"L-{i}") for i in range(4)]

        pending = action_queue.list_pending()
        assert [a.action_id for a in pending] == ids
        assert [a.seq for a in pending] == [1, 2, 3, 4]

    def test_synced_actions_not_listed(self, action_queue):
        first = action_queue.enqueue_move(uuid4(), "A-2")
        second = action_queue.enqueue_move(uuid4(), "A-3")

        action_queue.mark_synced(first)

        assert [a.action_id for a in action_queue.list_pending()] == [second]
        assert action_queue.pending_count() == 1
        assert action_queue.count() == 2

    def test_empty_queue(self, action_queue):
        assert action_queue.list_pending() == ()


# =============================================================================
# Sync bookkeeping
# =============================================================================


class TestSyncBookkeeping:

    def test_mark_synced_twice_same_as_once(self, action_queue):
        action_id = action_queue.enqueue_move(uuid4(), "B-1")

        action_queue.mark_synced(action_id)
        action_queue.mark_synced(action_id)

        assert action_queue.get(action_id).synced is True
        assert action_queue.list_pending() == ()

    def test_mark_synced_unknown_id_is_noop(self, action_queue):
        action_queue.enqueue_move(uuid4(), "B-1")

        action_queue.mark_synced(uuid4())

        assert action_queue.pending_count() == 1

    def test_purge_removes_only_synced(self, action_queue):
        synced = action_queue.enqueue_move(uuid4(), "B-1")
        pending = action_queue.enqueue_move(uuid4(), "B-2")
        action_queue.mark_synced(synced)

        assert action_queue.purge_synced() == 1
        assert action_queue.get(synced) is None
        assert action_queue.get(pending) is not None

    def test_purge_with_nothing_synced_is_noop(self, action_queue):
        action_queue.enqueue_move(uuid4(), "B-1")

        assert action_queue.purge_synced() == 0
        assert action_queue.count() == 1

    def test_purge_empty_queue(self, action_queue):
        assert action_queue.purge_synced() == 0

    def test_record_failure_counts_attempts(self, action_queue):
        action_id = action_queue.enqueue_adjustment(uuid4(), -1)

        action_queue.record_failure(action_id, "transient_io: timeout")
        action_queue.record_failure(action_id, "not_found: gone")

        action = action_queue.get(action_id)
        assert action.attempts == 2
        assert action.last_error == "not_found: gone"
        assert action.synced is False

    def test_discard(self, action_queue):
        action_id = action_queue.enqueue_move(uuid4(), "B-1")

        assert action_queue.discard(action_id) is True
        assert action_queue.discard(action_id) is False
        assert action_queue.count() == 0


# =============================================================================
# Durability and storage failures
# =============================================================================


class TestDurability:

    def test_pending_actions_survive_restart(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'queue.db'}"
        clock = DeterministicClock()

        engine = create_engine_for_url(url)
        create_queue_table(engine)
        queue = ActionQueue(sessionmaker(bind=engine), clock=clock)
        first = queue.enqueue_adjustment(uuid4(), 4)
        clock.advance(1)
        second = queue.enqueue_move(uuid4(), "E-5")
        engine.dispose()

        reopened = create_engine_for_url(url)
        restarted = ActionQueue(sessionmaker(bind=reopened), clock=clock)
        try:
            assert [a.action_id for a in restarted.list_pending()] == [first, second]
            third = restarted.enqueue_move(uuid4(), "F-6")
            assert restarted.get(third).seq == 3
        finally:
            reopened.dispose()

    def test_storage_failure_raises_queue_storage_error(self):
        engine = create_engine_for_url("sqlite:///:memory:")
        queue = ActionQueue(sessionmaker(bind=engine))
        try:
            with pytest.raises(QueueStorageError) as exc_info:
                queue.enqueue_move(uuid4(), "B-1")
            assert exc_info.value.operation == "enqueue"
        finally:
            engine.dispose()


class TestQueueSchema:

    def test_queue_database_holds_only_the_queue_table(self):
        engine = create_engine_for_url("sqlite:///:memory:")
        try:
            create_queue_table(engine)
            assert inspect(engine).get_table_names() == ["queued_actions"]
        finally:
            engine.dispose()
