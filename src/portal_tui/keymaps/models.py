"""Dataclasses describing view keymaps and their bindings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

MIN_PRIORITY = 0
MAX_PRIORITY = 10
DEFAULT_PRIORITY = 5

Availability = Callable[[Any], bool]


class Mode(str, Enum):
    """Interaction mode of a single view."""

    NAVIGATION = "NAVIGATION"
    INPUT = "INPUT"
    SELECTION = "SELECTION"
    SEARCH = "SEARCH"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Mode.NAVIGATION: "Navigate",
    Mode.INPUT: "Input",
    Mode.SELECTION: "Selection",
    Mode.SEARCH: "Search",
}


def _normalize_modes(modes: Iterable[Mode | str]) -> frozenset[Mode]:
    return frozenset(Mode(mode) for mode in modes)


@dataclass(frozen=True, slots=True)
class KeyBinding:
    """Associates a key with an action, the modes it applies to and a priority.

    An empty ``modes`` set means the binding applies in every mode. ``priority``
    only orders footer/help listings (0 first, 10 last); it never affects
    resolution.
    """

    key: str
    label: str
    action: str
    modes: frozenset[Mode] = frozenset()
    priority: int = DEFAULT_PRIORITY
    available: Optional[Availability] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("binding key cannot be empty")
        if not self.label:
            raise ValueError(f"binding '{self.key}' label cannot be empty")
        if not self.action:
            raise ValueError(f"binding '{self.key}' action cannot be empty")
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise TypeError(f"binding '{self.key}' priority must be an integer")
        if not MIN_PRIORITY <= self.priority <= MAX_PRIORITY:
            raise ValueError(
                f"binding '{self.key}' priority {self.priority} outside "
                f"[{MIN_PRIORITY}, {MAX_PRIORITY}]"
            )
        if self.available is not None and not callable(self.available):
            raise TypeError(f"binding '{self.key}' availability must be callable")
        object.__setattr__(self, "modes", _normalize_modes(self.modes))

    def applies_to(self, mode: Mode) -> bool:
        return not self.modes or mode in self.modes

    def is_available(self, state: Any) -> bool:
        if self.available is None:
            return True
        return bool(self.available(state))

    def qualifies(self, mode: Mode, state: Any) -> bool:
        return self.applies_to(mode) and self.is_available(state)

    @property
    def is_footer_key(self) -> bool:
        return len(self.key) == 1 or self.key.startswith("Ctrl+")


def _freeze_keys(owner: str, keys: Mapping[str, KeyBinding]) -> Mapping[str, KeyBinding]:
    frozen: dict[str, KeyBinding] = {}
    for key, binding in keys.items():
        if not isinstance(binding, KeyBinding):
            raise TypeError(f"{owner}: entry '{key}' is not a KeyBinding")
        if key != binding.key:
            raise ValueError(
                f"{owner}: entry '{key}' holds a binding for key '{binding.key}'"
            )
        frozen[key] = binding
    return MappingProxyType(frozen)


class KeymapConflictError(RuntimeError):
    """Raised when a keymap declares the same key twice within one scope."""

    def __init__(self, scope: str, binding: KeyBinding, existing: KeyBinding):
        super().__init__(
            f"Key '{binding.key}' in scope '{scope}' is bound to both "
            f"'{existing.action}' and '{binding.action}'"
        )
        self.scope = scope
        self.binding = binding
        self.existing = existing


def _index_bindings(owner: str, bindings: Iterable[KeyBinding]) -> dict[str, KeyBinding]:
    indexed: dict[str, KeyBinding] = {}
    for binding in bindings:
        existing = indexed.get(binding.key)
        if existing is not None:
            raise KeymapConflictError(owner, binding, existing)
        indexed[binding.key] = binding
    return indexed


@dataclass(frozen=True, slots=True)
class ViewKeymap:
    """Key table for a single view. Read-only once constructed."""

    view_id: str
    keys: Mapping[str, KeyBinding] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not self.view_id:
            raise ValueError("view_id cannot be empty")
        object.__setattr__(self, "keys", _freeze_keys(self.view_id, self.keys))

    @classmethod
    def from_bindings(cls, view_id: str, bindings: Iterable[KeyBinding]) -> "ViewKeymap":
        return cls(view_id=view_id, keys=_index_bindings(view_id, bindings))

    def __iter__(self):
        return iter(self.keys.values())

    def __len__(self) -> int:
        return len(self.keys)


@dataclass(frozen=True, slots=True)
class GlobalKeymap:
    """Scope-free key table consulted after the view table."""

    keys: Mapping[str, KeyBinding] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", _freeze_keys("global", self.keys))

    @classmethod
    def from_bindings(cls, bindings: Iterable[KeyBinding]) -> "GlobalKeymap":
        return cls(keys=_index_bindings("global", bindings))

    def __iter__(self):
        return iter(self.keys.values())

    def __len__(self) -> int:
        return len(self.keys)


__all__ = [
    "Availability",
    "DEFAULT_PRIORITY",
    "GlobalKeymap",
    "KeyBinding",
    "KeymapConflictError",
    "MAX_PRIORITY",
    "MIN_PRIORITY",
    "Mode",
    "ViewKeymap",
]
