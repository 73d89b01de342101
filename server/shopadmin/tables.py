"""
Row storage behind a single async interface.

Records are plain dicts keyed by their wire (camelCase) field names. Two
implementations exist:

- MemoryTable: process-local dict, used when no DATABASE_URL is configured
  and as the credential fallback.
- PostgresTable: one asyncpg-backed table with an explicit field -> column map.

Both return copies, so callers can mutate what they get back.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, Iterable, List, Optional


class MemoryTable:
    """In-memory table; insertion order doubles as creation order."""

    def __init__(self, name: str):
        self.name = name
        self._rows: Dict[str, Dict[str, Any]] = {}

    def describe(self) -> str:
        return f"memory:{self.name}"

    async def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if record["id"] in self._rows:
            raise KeyError(f"duplicate id {record['id']} in {self.name}")
        self._rows[record["id"]] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def select_all(self) -> List[Dict[str, Any]]:
        """Newest first."""
        return [copy.deepcopy(row) for row in reversed(list(self._rows.values()))]

    async def select(self, record_id: str) -> Optional[Dict[str, Any]]:
        row = self._rows.get(record_id)
        return copy.deepcopy(row) if row is not None else None

    async def select_first(self) -> Optional[Dict[str, Any]]:
        """Oldest row, or None when empty."""
        for row in self._rows.values():
            return copy.deepcopy(row)
        return None

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        row = self._rows.get(record_id)
        if row is None:
            return None
        row.update(copy.deepcopy({k: v for k, v in changes.items() if k != "id"}))
        return copy.deepcopy(row)

    async def delete(self, record_id: str) -> bool:
        return self._rows.pop(record_id, None) is not None


class PostgresTable:
    """
    asyncpg-backed table.

    `columns` maps wire field names to column names; fields not in the map
    are not persisted. Fields listed in `json_fields` are stored as JSONB.
    """

    def __init__(
        self,
        pool: Any,
        name: str,
        columns: Dict[str, str],
        json_fields: Iterable[str] = (),
    ):
        self.pool = pool
        self.name = name
        self.columns = columns
        self.json_fields = set(json_fields)
        self._fields_by_column = {column: field for field, column in columns.items()}

    def describe(self) -> str:
        return f"postgres:{self.name}"

    def _encode(self, field: str, value: Any) -> Any:
        if field in self.json_fields and value is not None:
            return json.dumps(value)
        return value

    def _to_record(self, row: Any) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        for column, value in dict(row).items():
            field = self._fields_by_column.get(column, column)
            if field in self.json_fields and isinstance(value, str):
                value = json.loads(value)
            record[field] = value
        return record

    def _known(self, data: Dict[str, Any]) -> List[str]:
        return [field for field in data if field in self.columns]

    async def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        fields = self._known(record)
        columns = ", ".join(self.columns[f] for f in fields)
        placeholders = ", ".join(f"${i}" for i in range(1, len(fields) + 1))
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"INSERT INTO {self.name} ({columns}) VALUES ({placeholders}) RETURNING *",
                *[self._encode(f, record[f]) for f in fields],
            )
        return self._to_record(row)

    async def select_all(self) -> List[Dict[str, Any]]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT * FROM {self.name} ORDER BY created_at DESC")
        return [self._to_record(row) for row in rows]

    async def select(self, record_id: str) -> Optional[Dict[str, Any]]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT * FROM {self.name} WHERE id = $1", record_id)
        return self._to_record(row) if row else None

    async def select_first(self) -> Optional[Dict[str, Any]]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT * FROM {self.name} ORDER BY created_at ASC LIMIT 1")
        return self._to_record(row) if row else None

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        fields = [f for f in self._known(changes) if f != "id"]
        if not fields:
            return await self.select(record_id)
        assignments = ", ".join(f"{self.columns[f]} = ${i}" for i, f in enumerate(fields, start=2))
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"UPDATE {self.name} SET {assignments} WHERE id = $1 RETURNING *",
                record_id,
                *[self._encode(f, changes[f]) for f in fields],
            )
        return self._to_record(row) if row else None

    async def delete(self, record_id: str) -> bool:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"DELETE FROM {self.name} WHERE id = $1 RETURNING id", record_id)
        return row is not None


# Field -> column maps for the tables in db.SCHEMA

ADMIN_COLUMNS = {
    "id": "id",
    "email": "email",
    "password_hash": "password_hash",
    "created_at": "created_at",
    "updated_at": "updated_at",
}

CUSTOMER_COLUMNS = {
    "id": "id",
    "name": "name",
    "phone": "phone",
    "email": "email",
    "address": "address",
    "town": "town",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

CATEGORY_COLUMNS = {
    "id": "id",
    "name": "name",
    "description": "description",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

PRODUCT_COLUMNS = {
    "id": "id",
    "name": "name",
    "description": "description",
    "price": "price",
    "images": "images",
    "stock": "stock",
    "categoryId": "category_id",
    "isActive": "is_active",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

ORDER_COLUMNS = {
    "id": "id",
    "customerId": "customer_id",
    "items": "items",
    "total": "total",
    "status": "status",
    "deliveryType": "delivery_type",
    "deliveryArea": "delivery_area",
    "notes": "notes",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
