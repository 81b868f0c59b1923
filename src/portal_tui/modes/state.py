"""Per-view interaction mode and selection state machine.

A view sits in a *base* mode, NAVIGATION or SELECTION, decided solely by
whether any item is selected. SEARCH and INPUT are overlays stacked on top of
the base mode; closing one returns to whatever was active before it, so an
open search never drops a selection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, Iterator, List, Optional

from portal_tui.keymaps.models import Mode

from .bus import ActionBus

ItemId = Hashable

VIEW_CHANGED = "view.changed"


@dataclass(frozen=True, slots=True)
class ViewSnapshot:
    """Read-only copy of a view's state handed to renderers."""

    view_id: str
    mode: Mode
    base_mode: Mode
    current_item_id: Optional[ItemId]
    selected_item_ids: frozenset
    overlays: tuple[Mode, ...]
    reason: str = ""


class ViewState:
    """Mode and selection of one live view.

    ``selected_item_ids`` is read-only; selection changes go through
    :meth:`toggle_selection`, :meth:`select_all` and :meth:`clear_selection`,
    which keep the base mode in step with the selection.
    """

    def __init__(self, view_id: str, *, bus: ActionBus | None = None) -> None:
        if not view_id:
            raise ValueError("view_id cannot be empty")
        self.view_id = view_id
        self._bus = bus
        self._base = Mode.NAVIGATION
        self._overlays: List[Mode] = []
        # dict keeps selection order for bulk operations
        self._selected: Dict[ItemId, None] = {}
        self._current: Optional[ItemId] = None

    @property
    def mode(self) -> Mode:
        if self._overlays:
            return self._overlays[-1]
        return self._base

    @property
    def base_mode(self) -> Mode:
        return self._base

    @property
    def overlays(self) -> tuple[Mode, ...]:
        return tuple(self._overlays)

    @property
    def current_item_id(self) -> Optional[ItemId]:
        return self._current

    @property
    def selected_item_ids(self) -> frozenset:
        return frozenset(self._selected)

    def selected_in_order(self) -> tuple[ItemId, ...]:
        return tuple(self._selected)

    def is_selected(self, item_id: ItemId) -> bool:
        return item_id in self._selected

    def set_current_item(self, item_id: Optional[ItemId]) -> bool:
        if item_id == self._current:
            return False
        self._current = item_id
        self._changed("current_item")
        return True

    def toggle_selection(self, item_id: ItemId) -> bool:
        """Flip ``item_id`` in the selection; returns whether it is now selected."""

        if item_id in self._selected:
            del self._selected[item_id]
            selected = False
        else:
            self._selected[item_id] = None
            selected = True
        self._sync_base()
        self._changed("toggle_selection")
        return selected

    def select_all(self, item_ids: Iterable[ItemId]) -> bool:
        ids = list(dict.fromkeys(item_ids))
        if ids == list(self._selected):
            return False
        self._selected = dict.fromkeys(ids)
        self._sync_base()
        self._changed("select_all")
        return True

    def clear_selection(self) -> bool:
        changed = bool(self._selected)
        self._selected.clear()
        self._sync_base()
        if changed:
            self._changed("clear_selection")
        return changed

    def open_search(self) -> bool:
        return self._open_overlay(Mode.SEARCH)

    def close_search(self) -> bool:
        return self._close_overlay(Mode.SEARCH)

    def open_input(self) -> bool:
        return self._open_overlay(Mode.INPUT)

    def close_input(self) -> bool:
        return self._close_overlay(Mode.INPUT)

    def escape(self) -> bool:
        """Leave the innermost mode. Returns ``False`` when already outermost."""

        if self._overlays:
            closed = self._overlays.pop()
            self._changed(f"escape:{closed.value}")
            return True
        if self._selected:
            return self.clear_selection()
        return False

    def snapshot(self, reason: str = "") -> ViewSnapshot:
        return ViewSnapshot(
            view_id=self.view_id,
            mode=self.mode,
            base_mode=self._base,
            current_item_id=self._current,
            selected_item_ids=frozenset(self._selected),
            overlays=tuple(self._overlays),
            reason=reason,
        )

    def _open_overlay(self, mode: Mode) -> bool:
        if self._overlays and self._overlays[-1] is mode:
            return False
        if mode in self._overlays:
            self._overlays.remove(mode)
        self._overlays.append(mode)
        self._changed(f"open:{mode.value}")
        return True

    def _close_overlay(self, mode: Mode) -> bool:
        if mode not in self._overlays:
            return False
        index = len(self._overlays) - 1 - self._overlays[::-1].index(mode)
        del self._overlays[index]
        self._changed(f"close:{mode.value}")
        return True

    def _sync_base(self) -> None:
        self._base = Mode.SELECTION if self._selected else Mode.NAVIGATION

    def _changed(self, reason: str) -> None:
        if self._bus is not None:
            self._bus.emit(VIEW_CHANGED, self.snapshot(reason))

    def __repr__(self) -> str:
        return (
            f"ViewState(view_id={self.view_id!r}, mode={self.mode.value}, "
            f"current={self._current!r}, selected={len(self._selected)})"
        )


class ViewStateStore:
    """Holds exactly one :class:`ViewState` per active view."""

    def __init__(self, *, bus: ActionBus | None = None) -> None:
        self.bus = bus if bus is not None else ActionBus()
        self._states: Dict[str, ViewState] = {}

    def get(self, view_id: str) -> ViewState:
        state = self._states.get(view_id)
        if state is None:
            state = ViewState(view_id, bus=self.bus)
            self._states[view_id] = state
        return state

    def peek(self, view_id: str) -> Optional[ViewState]:
        return self._states.get(view_id)

    def remove(self, view_id: str) -> Optional[ViewState]:
        return self._states.pop(view_id, None)

    def view_ids(self) -> tuple[str, ...]:
        return tuple(self._states)

    def __contains__(self, view_id: object) -> bool:
        return view_id in self._states

    def __iter__(self) -> Iterator[ViewState]:
        return iter(list(self._states.values()))

    def __len__(self) -> int:
        return len(self._states)


__all__ = ["ItemId", "VIEW_CHANGED", "ViewSnapshot", "ViewState", "ViewStateStore"]
