from __future__ import annotations

import threading
import uuid
from typing import Any, Iterable

from pydantic import BaseModel

from domain.models import Resource
from domain.schemas import utcnow
from infrastructure.auth.provider import AuthProvider
from infrastructure.sync.adapter import SINGULAR, RemoteSyncAdapter, SyncError, entity_from_row, row_from_fields

_SORT = {
    Resource.TRANSACTIONS: ("date", True),
    Resource.CATEGORIES: ("name", False),
    Resource.ACCOUNTS: ("name", False),
    Resource.BUDGETS: ("month", True),
}


class InMemorySyncAdapter(RemoteSyncAdapter):
    """Process-local store with the same contract and row shapes as the hosted one."""

    name = "memory"

    def __init__(self, auth: AuthProvider, seed: dict[Resource, Iterable[dict[str, Any]]] | None = None) -> None:
        super().__init__(auth)
        self._lock = threading.Lock()
        self._rows: dict[Resource, dict[str, dict[str, Any]]] = {r: {} for r in Resource}
        for resource, rows in (seed or {}).items():
            for row in rows:
                self._rows[Resource(resource)][str(row["id"])] = dict(row)

    def rows(self, resource: Resource) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(row) for row in self._rows[resource].values()]

    def fetch_all(self, resource: Resource) -> list[BaseModel]:
        user_id = self._require_user()
        key, descending = _SORT[resource]
        with self._lock:
            rows = [row for row in self._rows[resource].values() if row.get("user_id") in (None, user_id)]
        rows.sort(key=lambda row: str(row.get(key) or ""), reverse=descending)
        return [entity_from_row(resource, row) for row in rows]

    def create(self, resource: Resource, fields: dict[str, Any]) -> BaseModel:
        user_id = self._require_user()
        now = utcnow()
        row = {**row_from_fields(resource, fields), "user_id": user_id, "created_at": now, "updated_at": now}
        row["id"] = str(row.get("id") or uuid.uuid4())
        with self._lock:
            if row["id"] in self._rows[resource]:
                raise SyncError(f"duplicate key value violates unique constraint on {resource.value}.id")
            self._rows[resource][row["id"]] = row
        return entity_from_row(resource, row)

    def update(self, resource: Resource, entity_id: str, fields: dict[str, Any]) -> BaseModel:
        user_id = self._require_user()
        with self._lock:
            current = self._rows[resource].get(entity_id)
            if current is None or current.get("user_id") not in (None, user_id):
                raise SyncError(f"No {SINGULAR[resource]} found with id {entity_id}")
            current.update(row_from_fields(resource, fields, for_update=True))
            current["updated_at"] = utcnow()
            row = dict(current)
        return entity_from_row(resource, row)

    def delete(self, resource: Resource, entity_id: str) -> None:
        user_id = self._require_user()
        with self._lock:
            current = self._rows[resource].get(entity_id)
            if current is not None and current.get("user_id") in (None, user_id):
                del self._rows[resource][entity_id]
