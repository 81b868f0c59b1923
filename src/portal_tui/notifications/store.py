"""Bounded, expiring queue of user-visible outcome messages."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from portal_tui.runtime.telemetry import record_event

DEFAULT_CAPACITY = 5
DEFAULT_TTL_MS = 4000

Clock = Callable[[], float]
Listener = Callable[[Sequence["Notification"]], None]


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    kind: NotificationKind
    message: str
    created_at: float
    expires_at: Optional[float] = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class NotificationStore:
    """FIFO queue of at most ``capacity`` notifications.

    Each entry expires ``ttl_ms`` after it was pushed. Expiry is always
    judged by ``clock``: the queue is pruned whenever it is read, and, when an
    asyncio loop is running, a loop timer re-checks each entry at its deadline
    so subscribers hear about it without polling. A timer that fires before
    ``clock`` reaches the deadline re-arms for the remaining time.
    """

    def __init__(
        self,
        *,
        capacity: int = DEFAULT_CAPACITY,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Clock = time.monotonic,
        logger_name: str | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if ttl_ms < 0:
            raise ValueError("ttl_ms cannot be negative")
        self.capacity = capacity
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._logger_name = logger_name
        self._entries: List[Notification] = []
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._listeners: List[Listener] = []

    def push(
        self,
        kind: NotificationKind | str,
        message: str,
        *,
        ttl_ms: Optional[int] = None,
    ) -> str:
        """Append a notification and return its id. ``ttl_ms=0`` never expires."""

        kind = NotificationKind(kind)
        ttl = self.ttl_ms if ttl_ms is None else ttl_ms
        now = self._clock()
        notification = Notification(
            id=f"notification_{uuid.uuid4().hex}",
            kind=kind,
            message=message,
            created_at=now,
            expires_at=now + ttl / 1000.0 if ttl > 0 else None,
        )

        self._prune(now)
        while len(self._entries) >= self.capacity:
            evicted = self._entries.pop(0)
            self._cancel_timer(evicted.id)

        self._entries.append(notification)
        if ttl > 0:
            self._schedule_dismiss(notification.id, ttl)
        record_event(
            "notification.push",
            level="debug",
            data={"kind": kind.value, "message": message},
            logger_name=self._logger_name,
        )
        self._notify()
        return notification.id

    def success(self, message: str, *, ttl_ms: Optional[int] = None) -> str:
        return self.push(NotificationKind.SUCCESS, message, ttl_ms=ttl_ms)

    def error(self, message: str, *, ttl_ms: Optional[int] = None) -> str:
        return self.push(NotificationKind.ERROR, message, ttl_ms=ttl_ms)

    def warning(self, message: str, *, ttl_ms: Optional[int] = None) -> str:
        return self.push(NotificationKind.WARNING, message, ttl_ms=ttl_ms)

    def info(self, message: str, *, ttl_ms: Optional[int] = None) -> str:
        return self.push(NotificationKind.INFO, message, ttl_ms=ttl_ms)

    def dismiss(self, notification_id: str) -> bool:
        """Remove a notification. Unknown or already removed ids are ignored."""

        self._cancel_timer(notification_id)
        for index, entry in enumerate(self._entries):
            if entry.id == notification_id:
                del self._entries[index]
                self._notify()
                return True
        return False

    def list(self) -> List[Notification]:
        self.process_expired()
        return list(self._entries)

    def process_expired(self) -> List[Notification]:
        expired = self._prune(self._clock())
        if expired:
            self._notify()
        return expired

    def clear(self) -> None:
        for notification_id in list(self._timers):
            self._cancel_timer(notification_id)
        had_entries = bool(self._entries)
        self._entries.clear()
        if had_entries:
            self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __len__(self) -> int:
        return len(self.list())

    def _prune(self, now: float) -> List[Notification]:
        expired = [entry for entry in self._entries if entry.expired(now)]
        if expired:
            self._entries = [entry for entry in self._entries if not entry.expired(now)]
            for entry in expired:
                self._cancel_timer(entry.id)
        return expired

    def _schedule_dismiss(self, notification_id: str, delay_ms: float) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timers[notification_id] = loop.call_later(
            delay_ms / 1000.0, self._expire, notification_id
        )

    def _expire(self, notification_id: str) -> None:
        # The loop timer only prompts a check; ``clock`` decides expiry.
        self._timers.pop(notification_id, None)
        entry = next((e for e in self._entries if e.id == notification_id), None)
        if entry is None or entry.expires_at is None:
            return
        remaining = entry.expires_at - self._clock()
        if remaining > 0:
            self._schedule_dismiss(notification_id, remaining * 1000.0)
            return
        self.process_expired()

    def _cancel_timer(self, notification_id: str) -> None:
        handle = self._timers.pop(notification_id, None)
        if handle is not None:
            handle.cancel()

    def _notify(self) -> None:
        snapshot = tuple(self._entries)
        for listener in list(self._listeners):
            listener(snapshot)


__all__ = [
    "DEFAULT_CAPACITY",
    "DEFAULT_TTL_MS",
    "Notification",
    "NotificationKind",
    "NotificationStore",
]
