"""Tests for column types and transaction scope helpers."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import inspect, select

from inventory_kernel.db.base import UTCDateTime, UUIDString
from inventory_kernel.db.engine import create_tables, drop_tables, session_scope
from inventory_kernel.models.product import ProductModel


class TestUTCDateTime:

    def test_naive_bind_is_taken_as_utc(self):
        value = UTCDateTime().process_bind_param(datetime(2024, 1, 1, 12), None)

        assert value == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_aware_bind_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        value = UTCDateTime().process_bind_param(
            datetime(2024, 1, 1, 14, tzinfo=plus_two), None,
        )

        assert value == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        assert value.tzinfo == timezone.utc

    def test_result_is_aware(self):
        value = UTCDateTime().process_result_value(datetime(2024, 1, 1), None)

        assert value.tzinfo == timezone.utc

    def test_none_passes_through(self):
        assert UTCDateTime().process_bind_param(None, None) is None
        assert UTCDateTime().process_result_value(None, None) is None


class TestUUIDString:

    def test_round_trip(self):
        uid = uuid4()
        t = UUIDString()

        assert t.process_result_value(t.process_bind_param(uid, None), None) == uid


class TestSessionScope:

    def test_commits_on_success(self, session_factory, create_committed_product):
        product = create_committed_product(sku="COMMIT-1")

        with session_scope(session_factory) as s:
            row = s.execute(
                select(ProductModel).where(ProductModel.id == product.product_id)
            ).scalar_one_or_none()

        assert row is not None

    def test_rolls_back_and_reraises(self, session_factory, test_actor_id):
        with pytest.raises(RuntimeError):
            with session_scope(session_factory) as s:
                s.add(ProductModel(
                    name="Doomed", sku="ROLLBACK-1", created_by_id=test_actor_id,
                ))
                s.flush()
                raise RuntimeError("abort")

        with session_scope(session_factory) as s:
            row = s.execute(
                select(ProductModel).where(ProductModel.sku == "ROLLBACK-1")
            ).scalar_one_or_none()

        assert row is None


class TestSchema:

    def test_drop_and_recreate(self, engine):
        drop_tables(engine)
        assert inspect(engine).get_table_names() == []

        create_tables(engine)
        assert {"products", "inventory_adjustments", "location_history"} <= set(
            inspect(engine).get_table_names()
        )
