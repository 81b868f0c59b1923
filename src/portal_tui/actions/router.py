"""Command channel executing non built-in actions."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

from portal_tui.runtime.telemetry import record_event, span

from .models import Action, ActionRef, is_builtin

_RouteKey = Tuple[Optional[str], str]


class ActionRouter:
    """Maps action ids to command handlers.

    A handler registered for a specific view wins over one registered for
    every view. Handlers receive the :class:`Action`; whatever they return
    (including an awaitable) is handed back to the caller of ``dispatch``.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._routes: Dict[_RouteKey, ActionRef] = {}
        self._logger_name = logger_name

    def register(
        self,
        action_id: str,
        handler: Callable[[Action], object],
        *,
        view_id: Optional[str] = None,
        description: str = "",
        replace: bool = False,
    ) -> ActionRef:
        ref = ActionRef(
            id=action_id, handler=handler, description=description, view_id=view_id
        )
        return self.register_ref(ref, replace=replace)

    def register_ref(self, ref: ActionRef, *, replace: bool = False) -> ActionRef:
        if is_builtin(ref.id):
            raise ValueError(f"'{ref.id}' is a built-in mode transition")
        route = (ref.view_id, ref.id)
        if not replace and route in self._routes:
            scope = ref.view_id or "*"
            raise ValueError(f"Action '{ref.id}' already routed for view '{scope}'")
        self._routes[route] = ref
        return ref

    def unregister(self, action_id: str, *, view_id: Optional[str] = None) -> Optional[ActionRef]:
        return self._routes.pop((view_id, action_id), None)

    def lookup(self, action: Action) -> Optional[ActionRef]:
        return self._routes.get((action.view_id, action.id)) or self._routes.get(
            (None, action.id)
        )

    def handles(self, action: Action) -> bool:
        return self.lookup(action) is not None

    def dispatch(self, action: Action) -> object:
        """Run the handler for ``action``; unrouted actions are logged and dropped."""

        if action.builtin:
            return None
        ref = self.lookup(action)
        if ref is None:
            record_event(
                "router.unhandled",
                level="debug",
                data={"action": action.id, "view_id": action.view_id},
                logger_name=self._logger_name,
            )
            return None
        with span(
            "router::dispatch",
            logger_name=self._logger_name,
            component="actions",
            metadata={"action": action.id, "view_id": action.view_id},
        ):
            return ref(action)

    def __call__(self, action: Action) -> object:
        return self.dispatch(action)


__all__ = ["ActionRouter"]
