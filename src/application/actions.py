from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

from domain.models import Resource
from domain.schemas import Account, Budget, Category, Transaction

Entity = Union[Transaction, Category, Account, Budget]


@dataclass(frozen=True)
class SetFilterState:
    patch: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SetCurrentPeriod:
    value: date


@dataclass(frozen=True)
class SetCollection:
    resource: Resource
    items: tuple[Entity, ...]


@dataclass(frozen=True)
class AddEntity:
    resource: Resource
    item: Entity


@dataclass(frozen=True)
class UpdateEntity:
    resource: Resource
    item: Entity


@dataclass(frozen=True)
class DeleteEntity:
    resource: Resource
    entity_id: str


@dataclass(frozen=True)
class ResetState:
    today: date


@dataclass(frozen=True)
class SetLoading:
    resource: Resource
    value: bool


@dataclass(frozen=True)
class SetError:
    resource: Resource
    message: str | None


Action = Union[
    SetFilterState,
    SetCurrentPeriod,
    SetCollection,
    AddEntity,
    UpdateEntity,
    DeleteEntity,
    SetLoading,
    SetError,
    ResetState,
]

MUTATIONS = (AddEntity, UpdateEntity, DeleteEntity)


def is_remote_mutation(action: Action) -> bool:
    return isinstance(action, MUTATIONS)
