from __future__ import annotations

from typing import List

import pytest

from portal_tui.actions import Action, ActionRef, ActionRouter, is_builtin


def make_action(action_id: str = "deleteSelectedService", view_id: str = "services") -> Action:
    return Action(id=action_id, view_id=view_id, key="d")


def test_dispatch_runs_handler_and_returns_result() -> None:
    router = ActionRouter()
    received: List[Action] = []

    def handler(action: Action) -> str:
        received.append(action)
        return "ok"

    router.register("deleteSelectedService", handler)
    action = make_action()

    assert router.dispatch(action) == "ok"
    assert received == [action]


def test_view_specific_route_wins() -> None:
    router = ActionRouter()
    router.register("refresh", lambda action: "generic")
    router.register("refresh", lambda action: "services", view_id="services")

    assert router(make_action("refresh")) == "services"
    assert router(make_action("refresh", view_id="users")) == "generic"


def test_unrouted_and_builtin_actions_are_dropped() -> None:
    router = ActionRouter()

    assert router.dispatch(make_action("unknown")) is None
    assert router.dispatch(Action(id="escape", view_id="services", key="Escape", builtin=True)) is None


def test_register_rejects_builtins_and_duplicates() -> None:
    router = ActionRouter()
    router.register("quit", lambda action: None)

    with pytest.raises(ValueError):
        router.register("toggleSelection", lambda action: None)
    with pytest.raises(ValueError):
        router.register("quit", lambda action: None)

    router.register("quit", lambda action: "again", replace=True)
    assert router.dispatch(make_action("quit")) == "again"


def test_unregister_removes_route() -> None:
    router = ActionRouter()
    ref = router.register_ref(ActionRef(id="quit", handler=lambda action: None))

    assert router.handles(make_action("quit"))
    assert router.unregister("quit") is ref
    assert not router.handles(make_action("quit"))


def test_action_payload_is_read_only() -> None:
    action = Action(id="moveDown", view_id="services", key="j", payload={"count": 2})

    assert action.payload["count"] == 2
    assert is_builtin("escape")
    assert not is_builtin("moveDown")
    with pytest.raises(TypeError):
        action.payload["count"] = 3  # type: ignore[index]
