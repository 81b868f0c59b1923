from __future__ import annotations

import pytest

from portal_tui.keymaps import (
    GlobalKeymap,
    KeyBinding,
    KeymapConflictError,
    Mode,
    ViewKeymap,
)


def make_binding(
    key: str = "d",
    *,
    action: str = "deleteSelectedService",
    modes: frozenset[Mode] = frozenset(),
    priority: int = 5,
) -> KeyBinding:
    return KeyBinding(key, key.upper(), action, modes, priority)


def test_binding_modes_are_normalised_to_mode_members() -> None:
    binding = KeyBinding("d", "Delete", "delete", {"NAVIGATION", Mode.SELECTION})

    assert binding.modes == frozenset({Mode.NAVIGATION, Mode.SELECTION})
    assert binding.applies_to(Mode.SELECTION)
    assert not binding.applies_to(Mode.SEARCH)


def test_binding_without_modes_applies_everywhere() -> None:
    binding = make_binding()

    assert all(binding.applies_to(mode) for mode in Mode)


@pytest.mark.parametrize("priority", [-1, 11])
def test_binding_rejects_out_of_range_priority(priority: int) -> None:
    with pytest.raises(ValueError):
        make_binding(priority=priority)


def test_binding_rejects_non_integer_priority() -> None:
    with pytest.raises(TypeError):
        KeyBinding("d", "Delete", "delete", priority=2.5)  # type: ignore[arg-type]


def test_binding_requires_key_label_and_action() -> None:
    with pytest.raises(ValueError):
        KeyBinding("", "Delete", "delete")
    with pytest.raises(ValueError):
        KeyBinding("d", "", "delete")
    with pytest.raises(ValueError):
        KeyBinding("d", "Delete", "")


def test_availability_predicate_receives_state() -> None:
    seen: list[object] = []

    def available(state: object) -> bool:
        seen.append(state)
        return state == "ready"

    binding = KeyBinding("d", "Delete", "delete", available=available)

    assert binding.qualifies(Mode.NAVIGATION, "ready")
    assert not binding.qualifies(Mode.NAVIGATION, "busy")
    assert seen == ["ready", "busy"]


def test_footer_key_filter() -> None:
    assert make_binding("d").is_footer_key
    assert make_binding("Ctrl+r").is_footer_key
    assert not make_binding("Enter").is_footer_key
    assert not make_binding("Space").is_footer_key


def test_view_keymap_rejects_duplicate_keys() -> None:
    with pytest.raises(KeymapConflictError) as excinfo:
        ViewKeymap.from_bindings(
            "services",
            [make_binding("d"), make_binding("d", action="duplicate")],
        )

    assert excinfo.value.scope == "services"
    assert excinfo.value.existing.action == "deleteSelectedService"


def test_keymap_rejects_mismatched_entry_key() -> None:
    with pytest.raises(ValueError):
        GlobalKeymap(keys={"x": make_binding("d")})


def test_keymap_tables_are_read_only() -> None:
    keymap = ViewKeymap.from_bindings("services", [make_binding("d")])

    with pytest.raises(TypeError):
        keymap.keys["e"] = make_binding("e")  # type: ignore[index]
    assert len(keymap) == 1
    assert [binding.key for binding in keymap] == ["d"]
