from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ValidationError

from domain.models import Resource
from domain.remote_schemas import BudgetRow, BudgetWrite
from domain.schemas import ENTITY_TYPES, Budget
from infrastructure.auth.provider import AuthProvider

UNAUTHENTICATED_MESSAGE = "User not authenticated"

SINGULAR = {
    Resource.TRANSACTIONS: "transaction",
    Resource.CATEGORIES: "category",
    Resource.ACCOUNTS: "account",
    Resource.BUDGETS: "budget",
}

# Server-owned columns never sent on update.
_READ_ONLY_FIELDS = {"id", "user_id", "created_at", "updated_at"}


class SyncError(RuntimeError):
    pass


class UnauthenticatedError(SyncError):
    def __init__(self, message: str = UNAUTHENTICATED_MESSAGE) -> None:
        super().__init__(message)


def budget_from_row(row: dict[str, Any]) -> Budget:
    return BudgetRow.model_validate(row).to_budget()


def budget_to_row(fields: dict[str, Any]) -> dict[str, Any]:
    return BudgetWrite.model_validate(fields).to_row()


def entity_from_row(resource: Resource, row: dict[str, Any]) -> BaseModel:
    try:
        if resource == Resource.BUDGETS:
            return budget_from_row(row)
        return ENTITY_TYPES[resource].model_validate(row)
    except ValidationError as exc:
        raise SyncError(f"Remote {SINGULAR[resource]} row did not match schema: {exc}") from exc


def row_from_fields(resource: Resource, fields: dict[str, Any], *, for_update: bool = False) -> dict[str, Any]:
    """Shape outgoing fields for the remote store (budgets rename `limit`)."""
    if resource == Resource.BUDGETS:
        return budget_to_row(fields)
    dropped = _READ_ONLY_FIELDS if for_update else _READ_ONLY_FIELDS - {"id"}
    return {k: v for k, v in fields.items() if k not in dropped}


class RemoteSyncAdapter(ABC):
    """
    Durable CRUD store for the four resources.

    Every call is scoped to the authenticated user and raises
    `UnauthenticatedError` when there is no session. Other failures raise
    `SyncError` carrying a user-presentable message.
    """

    name: str = "adapter"

    def __init__(self, auth: AuthProvider) -> None:
        self._auth = auth

    @property
    def auth(self) -> AuthProvider:
        return self._auth

    def _require_user(self) -> str:
        user_id = self._auth.current_user_id()
        if not user_id:
            raise UnauthenticatedError()
        return user_id

    @abstractmethod
    def fetch_all(self, resource: Resource) -> list[BaseModel]:
        raise NotImplementedError

    @abstractmethod
    def create(self, resource: Resource, fields: dict[str, Any]) -> BaseModel:
        raise NotImplementedError

    @abstractmethod
    def update(self, resource: Resource, entity_id: str, fields: dict[str, Any]) -> BaseModel:
        raise NotImplementedError

    @abstractmethod
    def delete(self, resource: Resource, entity_id: str) -> None:
        raise NotImplementedError
