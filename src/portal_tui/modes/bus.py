"""Minimal event bus the presentation layer subscribes to."""

from __future__ import annotations

from typing import Callable, Dict, List

Callback = Callable[[object], None]


class ActionBus:
    """Publishes structured signals (``view.changed``, ``action.dispatched``...)."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Callback]] = {}

    def subscribe(self, event: str, callback: Callback) -> Callable[[], None]:
        self._subscribers.setdefault(event, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


__all__ = ["ActionBus"]
