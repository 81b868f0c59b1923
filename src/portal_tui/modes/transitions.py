"""Built-in mode transitions the dispatcher applies without a command handler."""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from portal_tui.actions.models import (
    CLEAR_SELECTION,
    CLOSE_INPUT,
    CLOSE_SEARCH,
    ESCAPE,
    OPEN_INPUT,
    OPEN_SEARCH,
    TOGGLE_SELECTION,
)

from .state import ViewState

Transition = Callable[[ViewState, Mapping[str, object]], bool]


def toggle_selection(state: ViewState, ctx: Mapping[str, object]) -> bool:
    item_id = ctx.get("item_id", state.current_item_id)
    if item_id is None:
        return False
    state.toggle_selection(item_id)
    return True


def clear_selection(state: ViewState, ctx: Mapping[str, object]) -> bool:
    del ctx
    return state.clear_selection()


def open_search(state: ViewState, ctx: Mapping[str, object]) -> bool:
    del ctx
    return state.open_search()


def close_search(state: ViewState, ctx: Mapping[str, object]) -> bool:
    del ctx
    return state.close_search()


def open_input(state: ViewState, ctx: Mapping[str, object]) -> bool:
    del ctx
    return state.open_input()


def close_input(state: ViewState, ctx: Mapping[str, object]) -> bool:
    del ctx
    return state.close_input()


def escape(state: ViewState, ctx: Mapping[str, object]) -> bool:
    del ctx
    return state.escape()


TRANSITIONS: Mapping[str, Transition] = {
    TOGGLE_SELECTION: toggle_selection,
    CLEAR_SELECTION: clear_selection,
    OPEN_SEARCH: open_search,
    CLOSE_SEARCH: close_search,
    OPEN_INPUT: open_input,
    CLOSE_INPUT: close_input,
    ESCAPE: escape,
}


def get_transition(action_id: str) -> Optional[Transition]:
    return TRANSITIONS.get(action_id)


__all__ = ["TRANSITIONS", "Transition", "get_transition"]
