from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel

from domain.models import Resource
from domain.schemas import utcnow
from infrastructure.supabase.auth import SupabaseAuth
from infrastructure.supabase.client import SupabaseClient, SupabaseHTTPError
from infrastructure.sync.adapter import SINGULAR, RemoteSyncAdapter, SyncError, entity_from_row, row_from_fields

logger = logging.getLogger(__name__)

_ORDER = {
    Resource.TRANSACTIONS: "date.desc",
    Resource.CATEGORIES: "name.asc",
    Resource.ACCOUNTS: "name.asc",
    Resource.BUDGETS: "month.desc",
}


class SupabaseSyncAdapter(RemoteSyncAdapter):
    """Adapter for the hosted Postgres tables behind Supabase's REST API."""

    name = "supabase"

    def __init__(self, auth: SupabaseAuth, client: SupabaseClient | None = None) -> None:
        super().__init__(auth)
        self._client = client or SupabaseClient()

    def fetch_all(self, resource: Resource) -> list[BaseModel]:
        user_id = self._require_user()
        rows = self._call(
            f"fetching {resource.value}",
            "GET",
            resource,
            params={"select": "*", "user_id": f"eq.{user_id}", "order": _ORDER[resource]},
        )
        if not isinstance(rows, list):
            raise SyncError(f"Expected a list of {resource.value}, got {type(rows).__name__}")
        entities = [entity_from_row(resource, row) for row in rows if isinstance(row, dict)]
        logger.info("Supabase adapter fetched resource=%s count=%d", resource.value, len(entities))
        return entities

    def create(self, resource: Resource, fields: dict[str, Any]) -> BaseModel:
        user_id = self._require_user()
        now = utcnow()
        row = {**row_from_fields(resource, fields), "user_id": user_id, "created_at": now, "updated_at": now}
        operation = f"creating {SINGULAR[resource]}"
        rows = self._call(operation, "POST", resource, payload=row, prefer="return=representation")
        return entity_from_row(resource, self._single(rows, operation))

    def update(self, resource: Resource, entity_id: str, fields: dict[str, Any]) -> BaseModel:
        user_id = self._require_user()
        row = {**row_from_fields(resource, fields, for_update=True), "updated_at": utcnow()}
        operation = f"updating {SINGULAR[resource]}"
        rows = self._call(
            operation,
            "PATCH",
            resource,
            params={"id": f"eq.{entity_id}", "user_id": f"eq.{user_id}", "select": "*"},
            payload=row,
            prefer="return=representation",
        )
        return entity_from_row(resource, self._single(rows, operation))

    def delete(self, resource: Resource, entity_id: str) -> None:
        user_id = self._require_user()
        self._call(
            f"deleting {SINGULAR[resource]}",
            "DELETE",
            resource,
            params={"id": f"eq.{entity_id}", "user_id": f"eq.{user_id}"},
        )

    def _call(self, operation: str, method: str, resource: Resource, **kwargs: Any) -> Any:
        token = self._auth.access_token if isinstance(self._auth, SupabaseAuth) else None
        try:
            return self._client.request(method, f"/rest/v1/{resource.value}", token=token, **kwargs)
        except SupabaseHTTPError as exc:
            logger.error("Error in %s: status=%s %s", operation, exc.status, exc.payload)
            raise SyncError(exc.message or f"An error occurred during {operation}. Please try again.") from exc

    def _single(self, rows: Any, operation: str) -> dict[str, Any]:
        if isinstance(rows, list) and len(rows) == 1 and isinstance(rows[0], dict):
            return rows[0]
        if isinstance(rows, dict):
            return rows
        raise SyncError(f"An error occurred during {operation}. Please try again.")
