"""Declarative view keymaps, the scoped registry and default bindings."""

from .models import GlobalKeymap, KeyBinding, KeymapConflictError, Mode, ViewKeymap
from .registry import MAX_SHORTCUTS, KeymapRegistry, RegistryStats
from .defaults import DEFAULT_GLOBAL_KEYMAP, DEFAULT_VIEW_KEYMAPS, load_default_keymaps

__all__ = [
    "DEFAULT_GLOBAL_KEYMAP",
    "DEFAULT_VIEW_KEYMAPS",
    "GlobalKeymap",
    "KeyBinding",
    "KeymapConflictError",
    "KeymapRegistry",
    "MAX_SHORTCUTS",
    "Mode",
    "RegistryStats",
    "ViewKeymap",
    "load_default_keymaps",
]
