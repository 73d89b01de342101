"""
Generic CRUD store for the admin resources (customers, products,
categories, orders).

Table faults are not absorbed here: they surface as PersistenceFailure so
the HTTP layer can answer 500 with the underlying cause.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from .errors import NotFoundError, PersistenceFailure


logger = logging.getLogger(__name__)


IMMUTABLE_FIELDS = ("id", "createdAt")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResourceStore:
    """CRUD over one table, with id and timestamp bookkeeping."""

    def __init__(self, kind: str, table: Any):
        self.kind = kind
        self.table = table

    def _failure(self, operation: str, record_id: str, cause: Exception) -> PersistenceFailure:
        logger.error(f"[{self.kind}] {operation} failed (id={record_id}, table={self.table.describe()}): {cause}")
        return PersistenceFailure(self.kind, operation, cause)

    async def list(self) -> List[Dict[str, Any]]:
        try:
            return await self.table.select_all()
        except Exception as e:
            raise self._failure("fetch", "*", e) from e

    async def get(self, record_id: str) -> Dict[str, Any]:
        try:
            record = await self.table.select(record_id)
        except Exception as e:
            raise self._failure("fetch", record_id, e) from e
        if record is None:
            raise NotFoundError(self.kind, record_id)
        return record

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = utc_now()
        record = {k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}
        record.update({"id": str(uuid.uuid4()), "createdAt": now, "updatedAt": now})
        try:
            created = await self.table.insert(record)
        except Exception as e:
            raise self._failure("create", record["id"], e) from e
        logger.info(f"[{self.kind}] created {created['id']}")
        return created

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        updates = {k: v for k, v in changes.items() if k not in IMMUTABLE_FIELDS}
        updates["updatedAt"] = utc_now()
        try:
            updated = await self.table.update(record_id, updates)
        except Exception as e:
            raise self._failure("update", record_id, e) from e
        if updated is None:
            raise NotFoundError(self.kind, record_id)
        return updated

    async def delete(self, record_id: str) -> None:
        try:
            deleted = await self.table.delete(record_id)
        except Exception as e:
            raise self._failure("delete", record_id, e) from e
        if not deleted:
            raise NotFoundError(self.kind, record_id)
        logger.info(f"[{self.kind}] deleted {record_id}")
