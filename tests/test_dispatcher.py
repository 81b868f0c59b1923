from __future__ import annotations

from typing import List

import pytest

from portal_tui.actions import Action
from portal_tui.keymaps import (
    GlobalKeymap,
    KeyBinding,
    KeymapRegistry,
    Mode,
    ViewKeymap,
    load_default_keymaps,
)
from portal_tui.modes import ACTION_DISPATCHED, KeyboardDispatcher, ViewStateStore, normalize_key


def make_dispatcher(sink: List[Action] | None = None) -> KeyboardDispatcher:
    registry = load_default_keymaps(KeymapRegistry())
    return KeyboardDispatcher(
        registry, sink=sink.append if sink is not None else None
    )


@pytest.mark.parametrize(
    ("key", "modifiers", "expected"),
    [
        ("ctrl+r", (), "Ctrl+r"),
        ("r", ("ctrl",), "Ctrl+r"),
        ("R", ("ctrl",), "Ctrl+r"),
        (" ", (), "Space"),
        ("space", (), "Space"),
        ("escape", (), "Escape"),
        ("enter", (), "Enter"),
        ("D", (), "D"),
        ("?", (), "?"),
        ("x", ("alt",), "Alt+x"),
    ],
)
def test_normalize_key(key: str, modifiers: tuple[str, ...], expected: str) -> None:
    assert normalize_key(key, modifiers) == expected


def test_space_toggles_current_item_into_selection() -> None:
    sink: List[Action] = []
    dispatcher = make_dispatcher(sink)
    state = dispatcher.state_for("services")
    state.set_current_item("svc-1")

    action = dispatcher.handle_key("services", "Space")

    assert action is not None
    assert action.builtin is True
    assert action.changed is True
    assert state.mode is Mode.SELECTION
    assert state.selected_item_ids == frozenset({"svc-1"})
    assert sink == []


def test_toggle_without_item_changes_nothing() -> None:
    dispatcher = make_dispatcher()

    action = dispatcher.handle_key("services", "Space")

    assert action is not None
    assert action.changed is False
    assert dispatcher.state_for("services").mode is Mode.NAVIGATION


def test_toggle_uses_item_from_context() -> None:
    dispatcher = make_dispatcher()

    dispatcher.handle_key("services", "Space", {"item_id": "svc-9"})

    assert dispatcher.state_for("services").selected_item_ids == frozenset({"svc-9"})


def test_escape_clears_selection() -> None:
    dispatcher = make_dispatcher()
    state = dispatcher.state_for("services")
    state.toggle_selection("svc-1")

    action = dispatcher.handle_key("services", "Escape")

    assert action is not None and action.id == "escape"
    assert state.mode is Mode.NAVIGATION


def test_search_round_trip_keeps_selection() -> None:
    dispatcher = make_dispatcher()
    state = dispatcher.state_for("services")
    state.toggle_selection("svc-1")

    dispatcher.handle_key("services", "/")
    assert state.mode is Mode.SEARCH
    dispatcher.handle_key("services", "Enter")

    assert state.mode is Mode.SELECTION
    assert state.selected_item_ids == frozenset({"svc-1"})


def test_command_action_reaches_sink_once() -> None:
    sink: List[Action] = []
    dispatcher = make_dispatcher(sink)
    dispatcher.state_for("services").set_current_item("svc-1")

    action = dispatcher.handle_key("services", "d")

    assert action is not None
    assert action.builtin is False
    assert action.id == "deleteSelectedService"
    assert sink == [action]


def test_unbound_key_returns_none() -> None:
    sink: List[Action] = []
    dispatcher = make_dispatcher(sink)

    assert dispatcher.handle_key("services", "z") is None
    assert dispatcher.handle_key("services", "d") is None  # needs a current item
    assert sink == []


def test_dispatched_actions_are_published_on_bus() -> None:
    dispatcher = make_dispatcher()
    published: List[object] = []
    dispatcher.bus.subscribe(ACTION_DISPATCHED, published.append)

    dispatcher.handle_key("services", "q")
    dispatcher.handle_key("services", "/")

    assert [action.id for action in published] == ["quit", "openSearch"]  # type: ignore[attr-defined]


def test_view_keymap_takes_precedence_over_global_for_dispatch() -> None:
    registry = load_default_keymaps(KeymapRegistry())
    registry.register_view_keymap(
        ViewKeymap.from_bindings("custom", [KeyBinding("q", "Queue", "queueJob")])
    )
    dispatcher = KeyboardDispatcher(registry)

    action = dispatcher.handle_key("custom", "q")

    assert action is not None and action.id == "queueJob"


def test_shortcuts_reflect_current_mode() -> None:
    dispatcher = make_dispatcher()
    state = dispatcher.state_for("services")
    state.set_current_item("svc-1")

    navigation = {binding.action for binding in dispatcher.shortcuts("services")}
    state.toggle_selection("svc-1")
    selection = {binding.action for binding in dispatcher.shortcuts("services")}

    assert "deleteSelectedService" in navigation
    assert "deleteBulkServices" not in navigation
    assert "deleteBulkServices" in selection
    assert len(selection) <= 8


def test_dispatcher_uses_injected_empty_state_store() -> None:
    global_keymap = GlobalKeymap()
    registry = KeymapRegistry(global_keymap)
    states = ViewStateStore()

    dispatcher = KeyboardDispatcher(registry, states)
    dispatcher.state_for("services")

    assert dispatcher.states is states
    assert "services" in states
    assert registry.global_keymap is global_keymap


def test_annotate_input_round_trip() -> None:
    sink: List[Action] = []
    dispatcher = make_dispatcher(sink)
    state = dispatcher.state_for("services")
    state.set_current_item("svc-1")

    opened = dispatcher.handle_key("services", "a")
    assert opened is not None and opened.builtin and opened.id == "openInput"
    assert state.mode is Mode.INPUT
    assert dispatcher.handle_key("services", "d") is None

    submit = dispatcher.handle_key("services", "Ctrl+s")
    assert submit is not None and submit.id == "submitInput"
    assert sink == [submit]
    assert state.mode is Mode.INPUT

    cancel = dispatcher.handle_key("services", "Ctrl+c")
    assert cancel is not None and cancel.id == "closeInput"
    assert state.mode is Mode.NAVIGATION
