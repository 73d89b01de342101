"""
Tests for the table implementations and the generic resource store.
"""

import asyncio
import json

import pytest

from shopadmin.errors import NotFoundError, PersistenceFailure
from shopadmin.resources import ResourceStore
from shopadmin.tables import ORDER_COLUMNS, MemoryTable, PostgresTable


class FakeConnection:
    """Records SQL and answers fetchrow with a canned row."""

    def __init__(self, row=None):
        self.row = row
        self.calls = []

    async def fetchrow(self, query, *args):
        self.calls.append((query, args))
        return self.row

    async def fetch(self, query, *args):
        self.calls.append((query, args))
        return [self.row] if self.row else []


class FakePool:
    def __init__(self, conn):
        self.conn = conn

    def acquire(self):
        pool = self

        class _Acquire:
            async def __aenter__(self):
                return pool.conn

            async def __aexit__(self, *exc):
                return False

        return _Acquire()


ORDER_ROW = {
    "id": "o1",
    "customer_id": "c1",
    "items": json.dumps([{"productId": "p1", "quantity": 2, "price": 10}]),
    "total": 20.0,
    "status": "processing",
    "delivery_type": "delivery",
    "delivery_area": "sitra",
    "notes": "",
    "created_at": "2024-06-15T12:00:00+00:00",
    "updated_at": "2024-06-15T12:00:00+00:00",
}


class TestPostgresTable:
    def test_insert_maps_fields_to_columns(self):
        conn = FakeConnection(ORDER_ROW)
        table = PostgresTable(FakePool(conn), "orders", ORDER_COLUMNS, json_fields=("items",))

        record = asyncio.run(table.insert({
            "id": "o1",
            "customerId": "c1",
            "items": [{"productId": "p1", "quantity": 2, "price": 10}],
            "total": 20.0,
            "unknownField": "dropped",
        }))

        query, args = conn.calls[0]
        assert query == "INSERT INTO orders (id, customer_id, items, total) VALUES ($1, $2, $3, $4) RETURNING *"
        assert args[2] == json.dumps([{"productId": "p1", "quantity": 2, "price": 10}])
        assert record["customerId"] == "c1"
        assert record["items"] == [{"productId": "p1", "quantity": 2, "price": 10}]
        assert record["deliveryArea"] == "sitra"

    def test_update_binds_id_first(self):
        conn = FakeConnection(ORDER_ROW)
        table = PostgresTable(FakePool(conn), "orders", ORDER_COLUMNS, json_fields=("items",))

        asyncio.run(table.update("o1", {"status": "shipped", "id": "ignored", "updatedAt": "now"}))

        query, args = conn.calls[0]
        assert query == "UPDATE orders SET status = $2, updated_at = $3 WHERE id = $1 RETURNING *"
        assert args == ("o1", "shipped", "now")

    def test_missing_rows(self):
        conn = FakeConnection(None)
        table = PostgresTable(FakePool(conn), "orders", ORDER_COLUMNS)

        assert asyncio.run(table.select("nope")) is None
        assert asyncio.run(table.update("nope", {"status": "x"})) is None
        assert asyncio.run(table.delete("nope")) is False
        assert asyncio.run(table.select_all()) == []


class TestMemoryTable:
    def test_returns_copies(self):
        table = MemoryTable("customers")
        asyncio.run(table.insert({"id": "c1", "tags": ["a"]}))

        row = asyncio.run(table.select("c1"))
        row["tags"].append("b")

        assert asyncio.run(table.select("c1"))["tags"] == ["a"]

    def test_first_is_oldest(self):
        table = MemoryTable("admin_users")
        asyncio.run(table.insert({"id": "a"}))
        asyncio.run(table.insert({"id": "b"}))

        assert asyncio.run(table.select_first())["id"] == "a"
        assert [r["id"] for r in asyncio.run(table.select_all())] == ["b", "a"]


class FailingTable(MemoryTable):
    async def select_all(self):
        raise TimeoutError("query timed out")


class TestResourceStore:
    def test_timestamps(self):
        store = ResourceStore("category", MemoryTable("categories"))

        created = asyncio.run(store.create({"name": "Perfume", "createdAt": "1970-01-01"}))
        updated = asyncio.run(store.update(created["id"], {"name": "Oud"}))

        assert created["createdAt"] != "1970-01-01"
        assert updated["createdAt"] == created["createdAt"]
        assert updated["updatedAt"] >= created["updatedAt"]

    def test_not_found(self):
        store = ResourceStore("category", MemoryTable("categories"))

        with pytest.raises(NotFoundError):
            asyncio.run(store.get("nope"))
        with pytest.raises(NotFoundError):
            asyncio.run(store.delete("nope"))

    def test_table_fault_is_wrapped(self):
        store = ResourceStore("product", FailingTable("products"))

        with pytest.raises(PersistenceFailure) as exc_info:
            asyncio.run(store.list())

        assert str(exc_info.value) == "Failed to fetch product in database"
        assert exc_info.value.details == "query timed out"
