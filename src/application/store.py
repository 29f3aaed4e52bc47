from __future__ import annotations

import asyncio
import logging
import time
from datetime import date
from typing import Any, Callable, Coroutine, TypeVar

from application.actions import (
    Action,
    AddEntity,
    DeleteEntity,
    Entity,
    ResetState,
    SetCollection,
    SetError,
    SetLoading,
    UpdateEntity,
    is_remote_mutation,
)
from application.reducer import AppState, initial_state, reduce
from domain.models import Resource
from infrastructure.auth.provider import AuthProvider
from infrastructure.sync.adapter import SINGULAR, UNAUTHENTICATED_MESSAGE, RemoteSyncAdapter, SyncError

logger = logging.getLogger(__name__)

Listener = Callable[[AppState, Action], None]
T = TypeVar("T")

_VERBS = {AddEntity: "create", UpdateEntity: "update", DeleteEntity: "delete"}


class AppStore:
    """
    Single writer for the session's state.

    All state changes go through `dispatch`. Mutations of transactions,
    categories and accounts are applied locally first and then written to
    the remote store in the background; a failed write records an error for
    that resource and leaves the local change in place. Budget mutations
    touch local state only once the remote store has returned the canonical
    record.
    """

    def __init__(self, adapter: RemoteSyncAdapter, state: AppState | None = None) -> None:
        self._adapter = adapter
        self._state = state or initial_state()
        self._listeners: list[Listener] = []
        self._pending: set[asyncio.Task[bool]] = set()

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def adapter(self) -> RemoteSyncAdapter:
        return self._adapter

    @property
    def auth(self) -> AuthProvider:
        return self._adapter.auth

    @property
    def pending(self) -> int:
        return len(self._pending)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, action: Action) -> AppState:
        self._state = reduce(self._state, action)
        for listener in list(self._listeners):
            listener(self._state, action)
        return self._state

    def clear_error(self, resource: Resource) -> None:
        self.dispatch(SetError(resource, None))

    # ---- async wrapper ----
    def submit(self, action: Action) -> asyncio.Task[bool] | None:
        """
        Apply `action` and schedule its remote write, if any.

        Must be called from a running event loop when `action` is a mutation.
        Returns the scheduled task, whose result says whether the remote write
        succeeded, so callers may await it; nothing requires them to.
        """
        if not is_remote_mutation(action):
            self.dispatch(action)
            return None

        if action.resource == Resource.BUDGETS:
            coro = self._sync_confirmed(action)
        else:
            self.dispatch(action)
            coro = self._sync_optimistic(action)

        return self._track(coro)

    async def dispatch_async(self, action: Action) -> bool:
        task = self.submit(action)
        if task is None:
            return True
        return await task

    async def dispatch_confirmed(self, action: Action) -> tuple[bool, Entity | None]:
        """
        Write `action` remotely first and apply the canonical record on success.

        This is the path budget mutations take. Returns whether the write
        succeeded and the record now held in state (None for deletes and
        failures).
        """
        if not is_remote_mutation(action):
            raise ValueError(f"{type(action).__name__} has no remote write")
        return await self._track(self._confirm(action))

    def _track(self, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _sync_optimistic(self, action: Action) -> bool:
        ok, _ = await self._write(action)
        return ok

    async def _sync_confirmed(self, action: Action) -> bool:
        ok, _ = await self._confirm(action)
        return ok

    async def _confirm(self, action: Action) -> tuple[bool, Entity | None]:
        ok, canonical = await self._write(action)
        if not ok:
            return False, None
        if isinstance(action, DeleteEntity):
            self.dispatch(DeleteEntity(action.resource, action.entity_id))
            return True, None
        if canonical is not None:
            self.dispatch(type(action)(action.resource, canonical))
        return True, canonical

    async def _write(self, action: Action) -> tuple[bool, Any]:
        resource = action.resource
        verb = _VERBS[type(action)]
        started = time.perf_counter()
        try:
            if isinstance(action, AddEntity):
                result = await asyncio.to_thread(self._adapter.create, resource, action.item.model_dump())
            elif isinstance(action, UpdateEntity):
                result = await asyncio.to_thread(
                    self._adapter.update, resource, action.item.id, action.item.model_dump()
                )
            else:
                result = await asyncio.to_thread(self._adapter.delete, resource, action.entity_id)
        except SyncError as exc:
            logger.warning("Store remote %s failed resource=%s: %s", verb, resource.value, exc)
            self.dispatch(SetError(resource, str(exc)))
            return False, None
        except Exception:
            logger.exception("Store remote %s crashed resource=%s", verb, resource.value)
            self.dispatch(SetError(resource, f"Failed to {verb} {SINGULAR[resource]}"))
            return False, None
        logger.info(
            "Store remote %s complete resource=%s in %.2fs", verb, resource.value, time.perf_counter() - started
        )
        return True, result

    # ---- session ----
    async def load_all(self) -> None:
        """Initial bulk load of every resource for the signed-in user."""
        t0 = time.perf_counter()
        authenticated = await asyncio.to_thread(self.auth.is_authenticated)
        if not authenticated:
            logger.warning("Store load refused: no authenticated session")
            for resource in Resource:
                self.dispatch(SetError(resource, UNAUTHENTICATED_MESSAGE))
            return

        for resource in Resource:
            await self.load(resource)
        logger.info("Store load complete in %.2fs", time.perf_counter() - t0)

    async def load(self, resource: Resource) -> None:
        self.dispatch(SetLoading(resource, True))
        try:
            items = await asyncio.to_thread(self._adapter.fetch_all, resource)
        except SyncError as exc:
            logger.warning("Store load failed resource=%s: %s", resource.value, exc)
            self.dispatch(SetError(resource, str(exc)))
        except Exception:
            logger.exception("Store load crashed resource=%s", resource.value)
            self.dispatch(SetError(resource, f"Failed to load {resource.value}"))
        else:
            logger.info("Store loaded resource=%s count=%d", resource.value, len(items))
            self.dispatch(SetCollection(resource, tuple(items)))
        finally:
            self.dispatch(SetLoading(resource, False))

    async def sign_out(self) -> None:
        await self.drain()
        await asyncio.to_thread(self.auth.sign_out)
        self.dispatch(ResetState(date.today()))
        logger.info("Store reset after sign out")
