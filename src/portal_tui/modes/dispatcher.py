"""Keyboard dispatcher turning key events into actions."""

from __future__ import annotations

from typing import Callable, Iterable, List, Mapping, Optional

from portal_tui.actions.models import Action
from portal_tui.keymaps.models import KeyBinding
from portal_tui.keymaps.registry import KeymapRegistry
from portal_tui.runtime import telemetry

from .bus import ActionBus
from .state import ViewState, ViewStateStore
from .transitions import get_transition

ACTION_DISPATCHED = "action.dispatched"

ActionSink = Callable[[Action], object]

_NAMED_KEYS = {
    " ": "Space",
    "space": "Space",
    "escape": "Escape",
    "esc": "Escape",
    "enter": "Enter",
    "return": "Enter",
    "tab": "Tab",
    "backspace": "Backspace",
    "delete": "Delete",
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
}


def normalize_key(key: str, modifiers: Iterable[str] = ()) -> str:
    """Translate a host key name into the token used by keymaps.

    ``("r", ["ctrl"])`` and ``"ctrl+r"`` both become ``"Ctrl+r"``; named keys
    are capitalised (``"escape"`` -> ``"Escape"``); printable characters are
    kept as typed so ``"D"`` and ``"d"`` stay distinct.
    """

    mods = {str(mod).strip().lower() for mod in modifiers if str(mod).strip()}
    if len(key) > 1 and "+" in key:
        *prefix, key = key.split("+")
        mods.update(part.lower() for part in prefix if part)

    named = _NAMED_KEYS.get(key if len(key) == 1 else key.lower())
    token = named or key
    if "ctrl" in mods:
        return f"Ctrl+{token if named else token.lower()}"
    if "alt" in mods or "meta" in mods:
        return f"Alt+{token}"
    return token


class KeyboardDispatcher:
    """Resolves one key event per call against the registry and view state.

    Built-in mode transitions are applied to the view's :class:`ViewState`
    directly. Any other action is handed to ``sink`` (normally an
    :class:`~portal_tui.actions.ActionRouter`) and returned to the caller.
    """

    def __init__(
        self,
        registry: KeymapRegistry,
        states: ViewStateStore | None = None,
        *,
        sink: ActionSink | None = None,
        logger_name: str | None = None,
    ) -> None:
        self.registry = registry
        self.states = states if states is not None else ViewStateStore()
        self.sink = sink
        self._logger_name = logger_name
        self.logger = telemetry.get_logger(logger_name or "portal_tui.modes")

    @property
    def bus(self) -> ActionBus:
        return self.states.bus

    def state_for(self, view_id: str) -> ViewState:
        return self.states.get(view_id)

    def handle_key(
        self,
        view_id: str,
        key: str,
        ctx: Optional[Mapping[str, object]] = None,
    ) -> Optional[Action]:
        state = self.states.get(view_id)
        context = dict(ctx or {})
        with telemetry.span(
            "dispatcher::handle_key",
            logger_name=self._logger_name,
            component="dispatcher",
            metadata={"view_id": view_id, "key": key, "mode": state.mode.value},
        ) as handle:
            binding = self.registry.resolve(view_id, key, state.mode, state)
            if binding is None:
                handle.add_metadata("status", "miss")
                return None

            transition = get_transition(binding.action)
            if transition is not None:
                changed = transition(state, context)
                handle.add_metadata("status", "builtin")
                action = Action(
                    id=binding.action,
                    view_id=view_id,
                    key=key,
                    builtin=True,
                    changed=changed,
                    payload=context,
                )
                self.bus.emit(ACTION_DISPATCHED, action)
                return action

            handle.add_metadata("status", "command")
            action = Action(
                id=binding.action, view_id=view_id, key=key, payload=context
            )
            self.bus.emit(ACTION_DISPATCHED, action)
            if self.sink is not None:
                self.sink(action)
            return action

    def shortcuts(self, view_id: str) -> List[KeyBinding]:
        state = self.states.get(view_id)
        return self.registry.list_shortcuts(view_id, state.mode, state)

    def help_bindings(self, view_id: str) -> List[KeyBinding]:
        state = self.states.get(view_id)
        return self.registry.bindings_for_view(view_id, state.mode, state)


__all__ = ["ACTION_DISPATCHED", "ActionSink", "KeyboardDispatcher", "normalize_key"]
