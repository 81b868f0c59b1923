"""Built-in keymaps for the portal console views."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from portal_tui.actions.models import (
    CLEAR_SELECTION,
    CLOSE_INPUT,
    CLOSE_SEARCH,
    ESCAPE,
    OPEN_INPUT,
    OPEN_SEARCH,
    TOGGLE_SELECTION,
)

from .models import GlobalKeymap, KeyBinding, Mode, ViewKeymap
from .registry import KeymapRegistry

NAV = frozenset({Mode.NAVIGATION})
SEL = frozenset({Mode.SELECTION})
NAV_SEL = frozenset({Mode.NAVIGATION, Mode.SELECTION})


def has_current_item(state: Any) -> bool:
    return getattr(state, "current_item_id", None) is not None


def has_selection(state: Any) -> bool:
    return bool(getattr(state, "selected_item_ids", ()))


DEFAULT_GLOBAL_KEYMAP = GlobalKeymap.from_bindings(
    (
        KeyBinding("?", "Help", "showHelp", NAV_SEL, priority=8),
        KeyBinding("Escape", "Back", ESCAPE, priority=9),
        KeyBinding(":", "Command", "openCommandPalette", NAV_SEL, priority=7),
        KeyBinding("/", "Search", OPEN_SEARCH, NAV_SEL, priority=6),
        KeyBinding("q", "Quit", "quit", NAV_SEL, priority=10),
        KeyBinding("r", "Random theme", "randomTheme", NAV, priority=9),
        KeyBinding("Ctrl+r", "Refresh", "refresh", priority=6),
        KeyBinding("Ctrl+e", "Repeat", "repeatLastAction", NAV_SEL, priority=7),
        KeyBinding("Enter", "Apply", CLOSE_SEARCH, {Mode.SEARCH}),
        KeyBinding("Ctrl+s", "Save", "submitInput", {Mode.INPUT}, priority=1),
        KeyBinding("Ctrl+c", "Cancel", CLOSE_INPUT, {Mode.INPUT}, priority=2),
    )
)


def _navigation(view_label: str) -> tuple[KeyBinding, ...]:
    return (
        KeyBinding("j", "Down", "moveDown", NAV_SEL, priority=0),
        KeyBinding("k", "Up", "moveUp", NAV_SEL, priority=0),
        KeyBinding("Space", "Select", TOGGLE_SELECTION, NAV_SEL, priority=1),
        KeyBinding("x", "Clear", CLEAR_SELECTION, SEL, priority=1),
        KeyBinding("s", "Search", OPEN_SEARCH, NAV, priority=4),
        KeyBinding("f", "Filter", f"filter{view_label}", NAV, priority=6),
    )


SERVICES_KEYMAP = ViewKeymap.from_bindings(
    "services",
    _navigation("Services")
    + (
        KeyBinding(
            "d", "Delete", "deleteSelectedService", NAV, 2, has_current_item
        ),
        KeyBinding(
            "r", "Restart", "restartSelectedService", NAV, 3, has_current_item
        ),
        KeyBinding("i", "Inspect", "inspectSelectedService", NAV, 5, has_current_item),
        KeyBinding("e", "Edit", "editSelectedService", NAV, 5, has_current_item),
        KeyBinding("a", "Annotate", OPEN_INPUT, NAV, 7, has_current_item),
        KeyBinding("D", "Delete All", "deleteBulkServices", SEL, 2, has_selection),
        KeyBinding("R", "Restart All", "restartBulkServices", SEL, 3, has_selection),
        KeyBinding("Ctrl+r", "Refresh", "refreshServiceList", NAV_SEL, 6),
    ),
)

USERS_KEYMAP = ViewKeymap.from_bindings(
    "users",
    _navigation("Users")
    + (
        KeyBinding("d", "Delete", "deleteSelectedUser", NAV, 2, has_current_item),
        KeyBinding("e", "Edit", "editSelectedUser", NAV, 3, has_current_item),
        KeyBinding("p", "Permissions", "viewUserPermissions", NAV, 5, has_current_item),
        KeyBinding("g", "Groups", "viewUserGroups", NAV, 5, has_current_item),
        KeyBinding("r", "Reset Password", "resetUserPassword", NAV, 6, has_current_item),
        KeyBinding("c", "Create", "createNewUser", NAV, 4),
        KeyBinding("D", "Delete All", "deleteBulkUsers", SEL, 2, has_selection),
        KeyBinding("G", "Add to Group", "addUsersToGroup", SEL, 3, has_selection),
    ),
)

ITEMS_KEYMAP = ViewKeymap.from_bindings(
    "items",
    _navigation("Items")
    + (
        KeyBinding("d", "Delete", "deleteSelectedItem", NAV, 2, has_current_item),
        KeyBinding("e", "Edit", "editSelectedItem", NAV, 3, has_current_item),
        KeyBinding("v", "View Details", "viewItemDetails", NAV, 4, has_current_item),
        KeyBinding("o", "Open in Browser", "openItemInBrowser", NAV, 6, has_current_item),
        KeyBinding("u", "Update", "updateSelectedItem", NAV, 7, has_current_item),
        KeyBinding("D", "Delete All", "deleteBulkItems", SEL, 2, has_selection),
        KeyBinding("S", "Share All", "shareBulkItems", SEL, 3, has_selection),
    ),
)

GROUPS_KEYMAP = ViewKeymap.from_bindings(
    "groups",
    _navigation("Groups")
    + (
        KeyBinding("d", "Delete", "deleteSelectedGroup", NAV, 2, has_current_item),
        KeyBinding("e", "Edit", "editSelectedGroup", NAV, 3, has_current_item),
        KeyBinding("m", "Members", "viewGroupMembers", NAV, 4, has_current_item),
        KeyBinding("Enter", "Open", "viewGroupDetails", NAV, 5, has_current_item),
        KeyBinding("c", "Create", "createNewGroup", NAV, 5),
        KeyBinding("D", "Delete All", "deleteBulkGroups", SEL, 2, has_selection),
        KeyBinding("M", "Merge", "mergeGroups", SEL, 4, has_selection),
    ),
)

ADMIN_KEYMAP = ViewKeymap.from_bindings(
    "admin",
    (
        KeyBinding("j", "Down", "moveDown", NAV, priority=0),
        KeyBinding("k", "Up", "moveUp", NAV, priority=0),
        KeyBinding("r", "Restart Server", "restartServer", NAV, priority=3),
        KeyBinding("l", "Logs", "viewServerLogs", NAV, priority=2),
        KeyBinding("h", "Health", "checkHealth", NAV, priority=2),
        KeyBinding("c", "Clear Cache", "clearCache", NAV, priority=5),
        KeyBinding("u", "Update Settings", "updateSettings", NAV, priority=6),
        KeyBinding("b", "Backup", "createBackup", NAV, priority=7),
        KeyBinding("Enter", "Open", "viewAdminDetails", NAV, 5, has_current_item),
    ),
)

DEFAULT_VIEW_KEYMAPS: tuple[ViewKeymap, ...] = (
    SERVICES_KEYMAP,
    USERS_KEYMAP,
    ITEMS_KEYMAP,
    GROUPS_KEYMAP,
    ADMIN_KEYMAP,
)


def load_default_keymaps(
    registry: KeymapRegistry,
    *,
    include_global: bool = True,
    include_views: Sequence[str] | None = None,
    exclude_views: Sequence[str] | None = None,
    extra_keymaps: Iterable[ViewKeymap] | None = None,
) -> KeymapRegistry:
    """Register the built-in global keymap and view keymaps."""

    include = set(include_views) if include_views is not None else None
    exclude = set(exclude_views or ())

    if include_global:
        registry.set_global_keymap(DEFAULT_GLOBAL_KEYMAP)

    for keymap in DEFAULT_VIEW_KEYMAPS:
        if include is not None and keymap.view_id not in include:
            continue
        if keymap.view_id in exclude:
            continue
        registry.register_view_keymap(keymap)

    for keymap in extra_keymaps or ():
        registry.register_view_keymap(keymap)

    return registry


__all__ = [
    "ADMIN_KEYMAP",
    "DEFAULT_GLOBAL_KEYMAP",
    "DEFAULT_VIEW_KEYMAPS",
    "GROUPS_KEYMAP",
    "ITEMS_KEYMAP",
    "SERVICES_KEYMAP",
    "USERS_KEYMAP",
    "has_current_item",
    "has_selection",
    "load_default_keymaps",
]
