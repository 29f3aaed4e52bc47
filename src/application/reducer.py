from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from types import MappingProxyType
from typing import Mapping

from application.actions import (
    Action,
    AddEntity,
    DeleteEntity,
    Entity,
    SetCollection,
    SetCurrentPeriod,
    SetError,
    SetFilterState,
    ResetState,
    SetLoading,
    UpdateEntity,
)
from application.periods import date_range
from domain.models import Resource
from domain.schemas import Account, Budget, Category, FilterState, Transaction

_COLLECTION_FIELDS = {
    Resource.TRANSACTIONS: "transactions",
    Resource.CATEGORIES: "categories",
    Resource.ACCOUNTS: "accounts",
    Resource.BUDGETS: "budgets",
}


def _flags(value: object) -> Mapping[Resource, object]:
    return MappingProxyType({r: value for r in Resource})


@dataclass(frozen=True)
class AppState:
    filter_state: FilterState
    current_period: date
    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    accounts: tuple[Account, ...] = ()
    budgets: tuple[Budget, ...] = ()
    loading: Mapping[Resource, bool] = field(default_factory=lambda: _flags(False))
    errors: Mapping[Resource, str | None] = field(default_factory=lambda: _flags(None))

    def collection(self, resource: Resource) -> tuple[Entity, ...]:
        return getattr(self, _COLLECTION_FIELDS[Resource(resource)])


def _resolve_range(filter_state: FilterState, reference: date) -> FilterState:
    span = date_range(filter_state.period, reference)
    return filter_state.model_copy(update={"start_date": span.start, "end_date": span.end})


def initial_state(today: date | None = None) -> AppState:
    today = today or date.today()
    return AppState(filter_state=_resolve_range(FilterState(), today), current_period=today)


def _with_collection(state: AppState, resource: Resource, items: tuple[Entity, ...]) -> AppState:
    return replace(state, **{_COLLECTION_FIELDS[resource]: items})


def _with_flag(flags: Mapping[Resource, object], resource: Resource, value: object) -> Mapping[Resource, object]:
    updated = dict(flags)
    updated[resource] = value
    return MappingProxyType(updated)


def reduce(state: AppState, action: Action) -> AppState:
    """Pure transition: the same state and action always yield the same next state."""
    if isinstance(action, SetFilterState):
        merged = FilterState.model_validate({**state.filter_state.model_dump(), **action.patch})
        if merged.period != state.filter_state.period:
            merged = _resolve_range(merged, state.current_period)
        return replace(state, filter_state=merged)

    if isinstance(action, SetCurrentPeriod):
        return replace(
            state,
            current_period=action.value,
            filter_state=_resolve_range(state.filter_state, action.value),
        )

    if isinstance(action, SetCollection):
        return _with_collection(state, action.resource, tuple(action.items))

    if isinstance(action, AddEntity):
        items = state.collection(action.resource)
        if action.resource == Resource.TRANSACTIONS:
            return _with_collection(state, action.resource, (action.item,) + items)
        return _with_collection(state, action.resource, items + (action.item,))

    if isinstance(action, UpdateEntity):
        items = tuple(action.item if e.id == action.item.id else e for e in state.collection(action.resource))
        return _with_collection(state, action.resource, items)

    if isinstance(action, DeleteEntity):
        items = tuple(e for e in state.collection(action.resource) if e.id != action.entity_id)
        return _with_collection(state, action.resource, items)

    if isinstance(action, ResetState):
        return initial_state(action.today)

    if isinstance(action, SetLoading):
        return replace(state, loading=_with_flag(state.loading, action.resource, action.value))

    if isinstance(action, SetError):
        return replace(state, errors=_with_flag(state.errors, action.resource, action.message))

    return state
