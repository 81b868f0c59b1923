"""Adapter wiring the dispatcher, router and notifications into UI callbacks."""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Set

from portal_tui.actions import Action, ActionRouter
from portal_tui.keymaps import KeyBinding
from portal_tui.modes import VIEW_CHANGED, KeyboardDispatcher, ViewSnapshot, normalize_key
from portal_tui.notifications import Notification, NotificationStore
from portal_tui.runtime import telemetry


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_mode: Callable[[ViewSnapshot], None]
    update_footer: Callable[[Sequence[KeyBinding]], None] = _noop
    update_notifications: Callable[[Sequence[Notification]], None] = _noop
    update_status: Callable[[str], None] = _noop
    log: Callable[[str], None] = _noop


Scheduler = Callable[[Awaitable[object]], object]


class TextualConsoleAdapter:
    """Bridges key events from a Textual app to the keyboard dispatcher.

    Command actions go to ``router``; when a handler returns an awaitable
    (an optimistic operation, usually) it is handed to ``schedule`` so key
    handling never blocks on a remote call.
    """

    def __init__(
        self,
        dispatcher: KeyboardDispatcher,
        router: ActionRouter,
        notifications: NotificationStore,
        hooks: TextualUIHooks,
        *,
        view_id: str,
        schedule: Scheduler | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.router = router
        self.notifications = notifications
        self.hooks = hooks
        self.view_id = view_id
        self._schedule = schedule or self._schedule_task
        self._tasks: Set[asyncio.Future] = set()
        self._unsubscribers: List[Callable[[], None]] = [
            dispatcher.bus.subscribe(VIEW_CHANGED, self._on_view_changed),
            notifications.subscribe(self.hooks.update_notifications),
        ]
        self.refresh()

    @property
    def state(self):
        return self.dispatcher.state_for(self.view_id)

    def handle_textual_key(
        self, key: str, *, modifiers: Iterable[str] = ()
    ) -> Optional[Action]:
        """Translate a Textual key into a keymap token and dispatch it."""

        token = normalize_key(key, modifiers)
        self.hooks.log(f"key -> view={self.view_id!r} token={token!r}")
        action = self.dispatcher.handle_key(self.view_id, token)
        if action is None:
            self.hooks.log(f"result <- miss token={token!r}")
            return None

        if not action.builtin:
            outcome = self.router.dispatch(action)
            if inspect.isawaitable(outcome):
                self._schedule(outcome)
        self.hooks.update_status(action.id)
        self.hooks.log(
            f"result <- action={action.id!r} builtin={action.builtin} "
            f"changed={action.changed}"
        )
        self.refresh()
        return action

    def switch_view(self, view_id: str) -> None:
        if view_id == self.view_id:
            return
        self.view_id = view_id
        self.hooks.update_status(f"view:{view_id}")
        self.refresh()

    def process_expired(self) -> List[Notification]:
        """Drop expired notifications; meant to be polled from a UI interval."""

        return self.notifications.process_expired()

    def refresh(self) -> None:
        self.hooks.update_mode(self.state.snapshot())
        self.hooks.update_footer(self.dispatcher.shortcuts(self.view_id))
        self.hooks.update_notifications(self.notifications.list())

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _on_view_changed(self, payload: object | None) -> None:
        if isinstance(payload, ViewSnapshot) and payload.view_id == self.view_id:
            self.hooks.update_mode(payload)
            self.hooks.update_footer(self.dispatcher.shortcuts(self.view_id))

    def _schedule_task(self, awaitable: Awaitable[object]) -> object:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # Already rolled back and reported by the coordinator.
            telemetry.record_event(
                "command.failed",
                level="warning",
                data={"view_id": self.view_id, "error": str(exc) or type(exc).__name__},
            )
        self.refresh()


__all__ = ["TextualConsoleAdapter", "TextualUIHooks"]
