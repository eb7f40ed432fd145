"""Tests for the JSON order export store."""

import json
from datetime import datetime, timezone

import pytest

from allocation_engine.allocation.builder import create_allocation
from allocation_engine.core.exceptions import OrderDataError, OrderNotFoundError
from allocation_engine.storage.json_store import OrderStore


class TestOrderStore:
    """Tests for OrderStore."""

    def test_wrapped_export(self, orders_file):
        store = OrderStore(orders_file)

        assert store.list_ids() == ["100042", "100043"]
        assert store.exists("100043")
        assert not store.exists("999")
        assert store.get("100042")["customer"] == "Sofa reupholstery"

    def test_list_export(self, tmp_path, sample_orders):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps(sample_orders), encoding="utf-8")

        store = OrderStore(path)
        assert len(store.load_all()) == 2

    def test_numeric_ids_match_strings(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps([{"id": 7}]), encoding="utf-8")
        assert OrderStore(path).get("7") == {"id": 7}

    def test_missing_order(self, orders_file):
        with pytest.raises(OrderNotFoundError) as exc_info:
            OrderStore(orders_file).get("999")
        assert exc_info.value.order_id == "999"

    def test_missing_file(self, tmp_path):
        with pytest.raises(OrderDataError, match="not found"):
            OrderStore(tmp_path / "nope.json").list_ids()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(OrderDataError, match="invalid JSON"):
            OrderStore(path).list_ids()

    def test_invalid_shape(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps({"items": []}), encoding="utf-8")
        with pytest.raises(OrderDataError):
            OrderStore(path).list_ids()

        path.write_text(json.dumps([{"customer": "no id"}]), encoding="utf-8")
        with pytest.raises(OrderDataError, match="'id'"):
            OrderStore(path).list_ids()

    def test_service_dates(self, orders_file):
        store = OrderStore(orders_file)

        start, end = store.service_dates("100042")
        assert start == datetime(2024, 3, 18)
        assert end == datetime(2024, 4, 12)

        start, end = store.service_dates("100043")
        assert start == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert end == datetime(2024, 5, 31, tzinfo=timezone.utc)

    def test_service_dates_missing(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps([{"id": "1"}]), encoding="utf-8")
        assert OrderStore(path).service_dates("1") == (None, None)

    def test_save_allocation_replaces_field(self, orders_file, order_totals):
        """The whole allocation field is replaced and the wrapper kept."""
        allocation = create_allocation(
            [{"month": 5, "year": 2024, "percentage": 100}],
            order_totals,
            now="2024-05-02T09:00:00+00:00",
        )
        OrderStore(orders_file).save_allocation("100042", allocation)

        data = json.loads(orders_file.read_text(encoding="utf-8"))
        assert list(data) == ["orders"]
        saved = data["orders"][0]["allocation"]
        assert saved == allocation.to_document()
        assert [entry["month"] for entry in saved["allocations"]] == [5]
        assert "allocation" not in data["orders"][1]

    def test_save_allocation_list_export(self, tmp_path, sample_orders, order_totals):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps(sample_orders), encoding="utf-8")
        allocation = create_allocation(
            [{"month": 5, "year": 2024, "percentage": 100}],
            order_totals,
            now="2024-05-02T09:00:00+00:00",
        )

        OrderStore(path).save_allocation("100043", allocation)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert isinstance(data, list)
        assert data[1]["allocation"]["appliedAt"] == "2024-05-02T09:00:00+00:00"
