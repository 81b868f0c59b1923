"""View mode/selection state machine and keyboard dispatch."""

from .bus import ActionBus
from .state import VIEW_CHANGED, ViewSnapshot, ViewState, ViewStateStore
from .transitions import TRANSITIONS, get_transition
from .dispatcher import ACTION_DISPATCHED, KeyboardDispatcher, normalize_key

__all__ = [
    "ACTION_DISPATCHED",
    "ActionBus",
    "KeyboardDispatcher",
    "TRANSITIONS",
    "VIEW_CHANGED",
    "ViewSnapshot",
    "ViewState",
    "ViewStateStore",
    "get_transition",
    "normalize_key",
]
