from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from portal_tui.keymaps import (
    MAX_SHORTCUTS,
    GlobalKeymap,
    KeyBinding,
    KeymapRegistry,
    Mode,
    ViewKeymap,
    load_default_keymaps,
)

NAV = frozenset({Mode.NAVIGATION})
SEL = frozenset({Mode.SELECTION})


def make_state(*, current: Any = None, selected: tuple = ()) -> SimpleNamespace:
    return SimpleNamespace(current_item_id=current, selected_item_ids=frozenset(selected))


def build_registry(
    view_bindings: list[KeyBinding],
    global_bindings: list[KeyBinding] | None = None,
    *,
    view_id: str = "services",
) -> KeymapRegistry:
    registry = KeymapRegistry(GlobalKeymap.from_bindings(global_bindings or []))
    registry.register_view_keymap(ViewKeymap.from_bindings(view_id, view_bindings))
    return registry


def test_view_binding_shadows_global_binding() -> None:
    registry = build_registry(
        [KeyBinding("r", "Restart", "restartSelectedService", NAV)],
        [KeyBinding("r", "Random theme", "randomTheme", NAV)],
    )

    assert registry.resolve_action("services", "r", Mode.NAVIGATION) == (
        "restartSelectedService"
    )


def test_global_binding_used_when_view_binding_does_not_qualify() -> None:
    registry = build_registry(
        [KeyBinding("r", "Restart", "restartSelectedService", SEL)],
        [KeyBinding("r", "Random theme", "randomTheme", NAV)],
    )

    assert registry.resolve_action("services", "r", Mode.NAVIGATION) == "randomTheme"
    assert registry.resolve_action("services", "r", Mode.SELECTION) == (
        "restartSelectedService"
    )


def test_resolve_misses_when_nothing_qualifies() -> None:
    registry = build_registry([KeyBinding("d", "Delete", "delete", NAV)])

    assert registry.resolve("services", "d", Mode.SEARCH) is None
    assert registry.resolve("services", "z", Mode.NAVIGATION) is None
    assert registry.resolve("unknown", "d", Mode.NAVIGATION) is None


def test_resolve_consults_availability_with_state() -> None:
    registry = build_registry(
        [
            KeyBinding(
                "d",
                "Delete",
                "deleteSelectedService",
                NAV,
                available=lambda state: state.current_item_id is not None,
            )
        ]
    )

    assert registry.resolve("services", "d", Mode.NAVIGATION, make_state()) is None
    binding = registry.resolve(
        "services", "d", Mode.NAVIGATION, make_state(current="svc-1")
    )
    assert binding is not None
    assert binding.action == "deleteSelectedService"


def test_unknown_view_falls_back_to_globals() -> None:
    registry = build_registry([], [KeyBinding("q", "Quit", "quit")])

    assert registry.resolve_action("nowhere", "q", Mode.NAVIGATION) == "quit"


def test_register_view_keymap_replaces_previous_table() -> None:
    registry = build_registry([KeyBinding("d", "Delete", "delete")])
    revision = registry.revision()

    registry.register_view_keymap(
        ViewKeymap.from_bindings("services", [KeyBinding("e", "Edit", "edit")])
    )

    assert registry.resolve("services", "d", Mode.NAVIGATION) is None
    assert registry.resolve_action("services", "e", Mode.NAVIGATION) == "edit"
    assert registry.revision() == revision + 1
    assert registry.stats().view_count == 1


def test_unregister_and_lookup_view_keymap() -> None:
    registry = build_registry([KeyBinding("d", "Delete", "delete")])

    removed = registry.unregister_view_keymap("services")

    assert removed is not None
    assert not registry.has_view("services")
    assert registry.unregister_view_keymap("services") is None
    with pytest.raises(KeyError):
        registry.get_view_keymap("services")


def test_list_shortcuts_sorted_by_priority_and_capped() -> None:
    bindings = [
        KeyBinding(chr(ord("a") + index), f"Action {index}", f"act{index}", priority=9 - index)
        for index in range(10)
    ]
    registry = build_registry(bindings)

    shortcuts = registry.list_shortcuts("services", Mode.NAVIGATION)

    assert len(shortcuts) == MAX_SHORTCUTS
    priorities = [binding.priority for binding in shortcuts]
    assert priorities == sorted(priorities)
    assert shortcuts[0].key == "j"


def test_list_shortcuts_keeps_registration_order_for_equal_priority() -> None:
    registry = build_registry(
        [
            KeyBinding("b", "B", "b", priority=3),
            KeyBinding("a", "A", "a", priority=3),
        ],
        [KeyBinding("z", "Z", "z", priority=3)],
    )

    keys = [binding.key for binding in registry.list_shortcuts("services", Mode.NAVIGATION)]

    assert keys == ["z", "b", "a"]


def test_list_shortcuts_filters_named_keys() -> None:
    registry = build_registry(
        [
            KeyBinding("Enter", "Open", "open", priority=0),
            KeyBinding("Ctrl+r", "Refresh", "refresh", priority=1),
            KeyBinding("d", "Delete", "delete", priority=2),
        ],
        [KeyBinding("Escape", "Back", "escape", priority=0)],
    )

    keys = [binding.key for binding in registry.list_shortcuts("services", Mode.NAVIGATION)]

    assert keys == ["Ctrl+r", "d"]


def test_list_shortcuts_drops_shadowed_globals() -> None:
    registry = build_registry(
        [KeyBinding("r", "Restart", "restart", NAV, priority=3)],
        [KeyBinding("r", "Random theme", "randomTheme", NAV, priority=1)],
    )

    shortcuts = registry.list_shortcuts("services", Mode.NAVIGATION)

    assert [binding.action for binding in shortcuts] == ["restart"]


def test_default_services_keymap_in_navigation() -> None:
    registry = load_default_keymaps(KeymapRegistry())
    state = make_state(current="svc-1")

    assert registry.resolve_action("services", "d", Mode.NAVIGATION, state) == (
        "deleteSelectedService"
    )
    assert registry.resolve_action("services", "r", Mode.NAVIGATION, state) == (
        "restartSelectedService"
    )
    assert registry.resolve_action("services", "r", Mode.NAVIGATION, make_state()) == (
        "randomTheme"
    )
    assert registry.resolve_action("services", "Ctrl+r", Mode.NAVIGATION, state) == (
        "refreshServiceList"
    )
    shortcuts = registry.list_shortcuts("services", Mode.NAVIGATION, state)
    assert 0 < len(shortcuts) <= MAX_SHORTCUTS


def test_default_bulk_bindings_need_selection() -> None:
    registry = load_default_keymaps(KeymapRegistry())
    selected = make_state(current="svc-1", selected=("svc-1",))

    assert registry.resolve("services", "D", Mode.NAVIGATION, selected) is None
    assert registry.resolve_action("services", "D", Mode.SELECTION, selected) == (
        "deleteBulkServices"
    )
    assert registry.resolve("services", "D", Mode.SELECTION, make_state()) is None


def test_load_default_keymaps_filters_views() -> None:
    registry = load_default_keymaps(
        KeymapRegistry(), include_views=["services", "users"], exclude_views=["users"]
    )

    assert registry.view_ids() == ("services",)
    assert registry.stats().global_count > 0
