"""Action values and the command router that executes them."""

from .models import (
    BUILTIN_ACTIONS,
    CLEAR_SELECTION,
    CLOSE_INPUT,
    CLOSE_SEARCH,
    ESCAPE,
    OPEN_INPUT,
    OPEN_SEARCH,
    TOGGLE_SELECTION,
    Action,
    ActionRef,
    is_builtin,
)
from .router import ActionRouter

__all__ = [
    "Action",
    "ActionRef",
    "ActionRouter",
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
