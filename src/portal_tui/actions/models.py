"""Typed action values passed from the dispatcher to command handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional

# Built-in mode transitions applied by the dispatcher itself.
TOGGLE_SELECTION = "toggleSelection"
CLEAR_SELECTION = "clearSelection"
OPEN_SEARCH = "openSearch"
CLOSE_SEARCH = "closeSearch"
OPEN_INPUT = "openInput"
CLOSE_INPUT = "closeInput"
ESCAPE = "escape"

BUILTIN_ACTIONS: frozenset[str] = frozenset(
    {
        TOGGLE_SELECTION,
        CLEAR_SELECTION,
        OPEN_SEARCH,
        CLOSE_SEARCH,
        OPEN_INPUT,
        CLOSE_INPUT,
        ESCAPE,
    }
)


def is_builtin(action_id: str) -> bool:
    return action_id in BUILTIN_ACTIONS


@dataclass(frozen=True, slots=True)
class Action:
    """A resolved key event.

    ``builtin`` actions have already been applied to the view state when the
    dispatcher returns them; everything else is for a command handler.
    """

    id: str
    view_id: str
    key: str
    builtin: bool = False
    changed: bool = False
    payload: Mapping[str, object] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Action id cannot be empty")
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))


@dataclass(frozen=True, slots=True)
class ActionRef:
    """Command handler registered with the router for one action id."""

    id: str
    handler: Callable[..., object]
    description: str = ""
    view_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ActionRef id cannot be empty")
        if not callable(self.handler):
            raise TypeError("handler must be callable")

    def __call__(self, *args: object, **kwargs: object) -> object:
        return self.handler(*args, **kwargs)


__all__ = [
    "Action",
    "ActionRef",
    "BUILTIN_ACTIONS",
    "CLEAR_SELECTION",
    "CLOSE_INPUT",
    "CLOSE_SEARCH",
    "ESCAPE",
    "OPEN_INPUT",
    "OPEN_SEARCH",
    "TOGGLE_SELECTION",
    "is_builtin",
]
