"""Optimistic mutations: apply locally, confirm remotely, roll back on failure.

Every operation follows the same three steps:

1. ``apply()`` runs synchronously so the UI changes before any round-trip.
2. ``remote_call()`` is awaited.
3. On success a ``success`` notification is pushed and the result returned;
   on failure ``rollback()`` restores the captured snapshot, an ``error``
   notification is pushed and the exception is re-raised.

Operations that share a ``resource`` key run one at a time, in submission
order, so each one snapshots the state left by the previous one and a late
rollback can never discard another operation's rollback. Operations on
different resources overlap freely.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from portal_tui.notifications import NotificationStore
from portal_tui.runtime import telemetry

from .collection import (
    ItemCollection,
    default_item_id,
    default_item_name,
    has_field,
    merge_item,
)

R = TypeVar("R")
T = TypeVar("T")

RemoteCall = Callable[[], Union[Awaitable[R], R]]

DEFAULT_SUCCESS_MESSAGE = "Operation completed"
DEFAULT_ERROR_MESSAGE = "Operation failed"
RESTARTING_STATUS = "restarting"


class OperationStatus(str, Enum):
    QUEUED = "queued"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(slots=True)
class OptimisticOperation:
    """Bookkeeping for one in-flight operation; dropped once settled."""

    id: str
    kind: str
    resource: Optional[str]
    success_message: str
    error_message: str
    started_at: float
    status: OperationStatus = OperationStatus.QUEUED


class RollbackError(RuntimeError):
    """Raised when ``rollback()`` itself fails after a remote failure."""

    def __init__(self, message: str, *, original: BaseException) -> None:
        super().__init__(message)
        self.original = original


def error_message_for(exc: BaseException, fallback: str) -> str:
    """Human readable message carried by ``exc``, else ``fallback``."""

    message = getattr(exc, "message", None)
    if not isinstance(message, str) or not message.strip():
        message = str(exc)
    return message.strip() or fallback


def describe(verb: str, names: Sequence[str]) -> str:
    if len(names) == 1:
        return f"{verb} {names[0]}"
    return f"{verb} {len(names)} items"


class OptimisticCoordinator:
    """Runs optimistic operations and reports outcomes to a notification store."""

    def __init__(
        self,
        notifications: NotificationStore | None = None,
        *,
        serialize: bool = True,
        clock: Callable[[], float] = time.monotonic,
        logger_name: str | None = None,
    ) -> None:
        self.notifications = (
            notifications if notifications is not None else NotificationStore()
        )
        self.serialize = serialize
        self._clock = clock
        self._logger_name = logger_name
        self._operations: Dict[str, OptimisticOperation] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._counter = itertools.count(1)

    async def perform_optimistic(
        self,
        apply: Callable[[], object],
        remote_call: RemoteCall[R],
        rollback: Callable[[], object],
        success_message: str = DEFAULT_SUCCESS_MESSAGE,
        error_message: str = DEFAULT_ERROR_MESSAGE,
        *,
        resource: Optional[str] = None,
        kind: str = "update",
    ) -> R:
        operation = OptimisticOperation(
            id=f"{kind}_{next(self._counter)}_{uuid.uuid4().hex[:8]}",
            kind=kind,
            resource=resource,
            success_message=success_message,
            error_message=error_message,
            started_at=self._clock(),
        )
        # Registered before waiting so queued operations show up as pending.
        self._operations[operation.id] = operation
        try:
            async with self._resource_lock(resource):
                return await self._run(operation, apply, remote_call, rollback)
        finally:
            self._operations.pop(operation.id, None)

    async def _run(
        self,
        operation: OptimisticOperation,
        apply: Callable[[], object],
        remote_call: RemoteCall[R],
        rollback: Callable[[], object],
    ) -> R:
        metadata = {
            "operation": operation.id,
            "kind": operation.kind,
            "resource": operation.resource or "-",
        }
        with telemetry.span(
            "optimistic::apply",
            logger_name=self._logger_name,
            component="optimistic",
            metadata=metadata,
        ):
            operation.status = OperationStatus.PENDING
            apply()

        try:
            result = remote_call()
            if inspect.isawaitable(result):
                result = await result
        except (Exception, asyncio.CancelledError) as exc:
            operation.status = OperationStatus.ROLLED_BACK
            self._rollback(operation, rollback, exc)
            if isinstance(exc, Exception):
                self.notifications.error(
                    error_message_for(exc, operation.error_message)
                )
            raise

        operation.status = OperationStatus.COMMITTED
        telemetry.record_event(
            "optimistic.commit",
            data=metadata,
            logger_name=self._logger_name,
        )
        self.notifications.success(operation.success_message)
        return result

    def _rollback(
        self,
        operation: OptimisticOperation,
        rollback: Callable[[], object],
        exc: BaseException,
    ) -> None:
        telemetry.record_event(
            "optimistic.rollback",
            level="warning",
            data={
                "operation": operation.id,
                "resource": operation.resource or "-",
                "reason": str(exc) or type(exc).__name__,
            },
            logger_name=self._logger_name,
        )
        try:
            rollback()
        except Exception as rollback_exc:
            self.notifications.error(error_message_for(exc, operation.error_message))
            raise RollbackError(
                f"Rollback of {operation.id} failed: {rollback_exc}", original=exc
            ) from rollback_exc

    @asynccontextmanager
    async def _resource_lock(self, resource: Optional[str]) -> AsyncIterator[None]:
        if resource is None or not self.serialize:
            yield
            return
        lock = self._locks.setdefault(resource, asyncio.Lock())
        self._lock_users[resource] = self._lock_users.get(resource, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[resource] -= 1
            if not self._lock_users[resource]:
                del self._lock_users[resource]
                del self._locks[resource]

    def is_pending(self, resource: Optional[str] = None) -> bool:
        if resource is None:
            return bool(self._operations)
        return any(op.resource == resource for op in self._operations.values())

    def pending_operations(
        self, resource: Optional[str] = None
    ) -> List[OptimisticOperation]:
        """In-flight operations in submission order, ``QUEUED`` ones included."""

        return [
            op
            for op in self._operations.values()
            if resource is None or op.resource == resource
        ]

    async def delete_items(
        self,
        collection: ItemCollection[T],
        items: Sequence[T],
        delete_api: Callable[[List[Any]], Union[Awaitable[R], R]],
        *,
        get_id: Callable[[T], Any] = default_item_id,
        get_name: Callable[[T], str] = default_item_name,
    ) -> R:
        """Remove ``items`` from ``collection`` now, then call ``delete_api(ids)``."""

        ids, names = self._ids_and_names(items, get_id, get_name)
        doomed = set(ids)
        backup: List[T] = []

        def apply() -> None:
            backup[:] = collection.snapshot()
            collection.replace(item for item in backup if get_id(item) not in doomed)

        return await self.perform_optimistic(
            apply,
            lambda: delete_api(ids),
            lambda: collection.replace(backup),
            describe("Deleted", names),
            describe("Failed to delete", names),
            resource=collection.name,
            kind="delete",
        )

    async def update_items(
        self,
        collection: ItemCollection[T],
        items: Sequence[T],
        updates: Mapping[str, Any],
        update_api: Callable[[List[Any], Mapping[str, Any]], Union[Awaitable[R], R]],
        *,
        get_id: Callable[[T], Any] = default_item_id,
        get_name: Callable[[T], str] = default_item_name,
        verbs: tuple[str, str] = ("Updated", "Failed to update"),
        kind: str = "update",
    ) -> R:
        """Merge ``updates`` into ``items`` now, then call ``update_api(ids, updates)``."""

        ids, names = self._ids_and_names(items, get_id, get_name)
        targets = set(ids)
        changes = dict(updates)
        backup: List[T] = []

        def apply() -> None:
            backup[:] = collection.snapshot()
            collection.replace(
                merge_item(item, changes) if get_id(item) in targets else item
                for item in backup
            )

        done, failed = verbs
        return await self.perform_optimistic(
            apply,
            lambda: update_api(ids, changes),
            lambda: collection.replace(backup),
            describe(done, names),
            describe(failed, names),
            resource=collection.name,
            kind=kind,
        )

    async def restart_items(
        self,
        collection: ItemCollection[T],
        items: Sequence[T],
        restart_api: Callable[[List[Any]], Union[Awaitable[R], R]],
        *,
        get_id: Callable[[T], Any] = default_item_id,
        get_name: Callable[[T], str] = default_item_name,
        status_field: str = "status",
    ) -> R:
        """Mark ``items`` as restarting now, then call ``restart_api(ids)``."""

        return await self.update_items(
            collection,
            items,
            {status_field: RESTARTING_STATUS},
            lambda ids, _updates: restart_api(ids),
            get_id=get_id,
            get_name=get_name,
            verbs=("Restarted", "Failed to restart"),
            kind="restart",
        )

    async def create_item(
        self,
        collection: ItemCollection[T],
        item: T,
        create_api: Callable[[T], Union[Awaitable[R], R]],
        *,
        get_name: Callable[[T], str] = default_item_name,
        id_field: str = "id",
        temp_id: Optional[str] = None,
    ) -> R:
        """Append ``item`` under a temporary id now, then call ``create_api(item)``.

        The temporary entry stays in place after success; the caller swaps in
        the server's copy once it has one.
        """

        placeholder = item
        if has_field(item, id_field):
            placeholder = merge_item(item, {id_field: temp_id or f"temp_{uuid.uuid4().hex}"})
        name = get_name(item)
        backup: List[T] = []

        def apply() -> None:
            backup[:] = collection.snapshot()
            collection.replace([*backup, placeholder])

        return await self.perform_optimistic(
            apply,
            lambda: create_api(item),
            lambda: collection.replace(backup),
            f"Created {name}",
            f"Failed to create {name}",
            resource=collection.name,
            kind="create",
        )

    @staticmethod
    def _ids_and_names(
        items: Sequence[T],
        get_id: Callable[[T], Any],
        get_name: Callable[[T], str],
    ) -> tuple[List[Any], List[str]]:
        if not items:
            raise ValueError("at least one item is required")
        return [get_id(item) for item in items], [get_name(item) for item in items]


__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "DEFAULT_SUCCESS_MESSAGE",
    "OperationStatus",
    "OptimisticCoordinator",
    "OptimisticOperation",
    "RollbackError",
    "describe",
    "error_message_for",
]
