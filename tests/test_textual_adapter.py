from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List, Sequence

from portal_tui.actions import Action, ActionRouter
from portal_tui.adapters.textual import TextualConsoleAdapter, TextualUIHooks
from portal_tui.keymaps import KeyBinding, KeymapRegistry, Mode, load_default_keymaps
from portal_tui.modes import KeyboardDispatcher, ViewSnapshot
from portal_tui.notifications import Notification, NotificationStore


def make_adapter(
    hooks: TextualUIHooks,
    *,
    router: ActionRouter | None = None,
    scheduled: List[Awaitable[Any]] | None = None,
    notifications: NotificationStore | None = None,
) -> TextualConsoleAdapter:
    registry = load_default_keymaps(KeymapRegistry())
    dispatcher = KeyboardDispatcher(registry)
    dispatcher.state_for("services").set_current_item("svc-1")
    return TextualConsoleAdapter(
        dispatcher,
        router if router is not None else ActionRouter(),
        notifications if notifications is not None else NotificationStore(),
        hooks,
        view_id="services",
        schedule=scheduled.append if scheduled is not None else None,
    )


def test_adapter_refreshes_on_construction() -> None:
    modes: List[Mode] = []
    footers: List[Sequence[KeyBinding]] = []
    hooks = TextualUIHooks(
        update_mode=lambda snapshot: modes.append(snapshot.mode),
        update_footer=footers.append,
    )

    make_adapter(hooks)

    assert modes == [Mode.NAVIGATION]
    assert footers and len(footers[-1]) <= 8


def test_adapter_tracks_mode_changes() -> None:
    snapshots: List[ViewSnapshot] = []
    statuses: List[str] = []
    hooks = TextualUIHooks(update_mode=snapshots.append, update_status=statuses.append)
    adapter = make_adapter(hooks)

    action = adapter.handle_textual_key("space")

    assert action is not None and action.builtin
    assert snapshots[-1].mode is Mode.SELECTION
    assert "toggleSelection" in statuses

    adapter.handle_textual_key("escape")
    assert snapshots[-1].mode is Mode.NAVIGATION


def test_adapter_routes_commands_and_schedules_awaitables() -> None:
    router = ActionRouter()
    handled: List[str] = []

    async def delete(action: Action) -> str:
        handled.append(action.id)
        return action.id

    router.register("deleteSelectedService", delete)
    scheduled: List[Awaitable[Any]] = []
    adapter = make_adapter(
        TextualUIHooks(update_mode=lambda snapshot: None),
        router=router,
        scheduled=scheduled,
    )

    action = adapter.handle_textual_key("d")

    assert action is not None and action.id == "deleteSelectedService"
    assert len(scheduled) == 1
    assert handled == []

    async def drain() -> Any:
        return await scheduled[0]

    assert asyncio.run(drain()) == "deleteSelectedService"
    assert handled == ["deleteSelectedService"]


def test_adapter_normalises_modifier_keys() -> None:
    router = ActionRouter()
    seen: List[str] = []
    router.register("refreshServiceList", lambda action: seen.append(action.key))
    adapter = make_adapter(TextualUIHooks(update_mode=lambda snapshot: None), router=router)

    adapter.handle_textual_key("r", modifiers=("ctrl",))

    assert seen == ["Ctrl+r"]


def test_adapter_misses_are_logged() -> None:
    logs: List[str] = []
    hooks = TextualUIHooks(update_mode=lambda snapshot: None, log=logs.append)
    adapter = make_adapter(hooks)

    assert adapter.handle_textual_key("z") is None
    assert any(line.startswith("key ->") for line in logs)
    assert any("miss" in line for line in logs)


def test_adapter_forwards_notifications_until_closed() -> None:
    batches: List[Sequence[Notification]] = []
    notifications = NotificationStore()
    adapter = make_adapter(
        TextualUIHooks(update_mode=lambda snapshot: None, update_notifications=batches.append),
        notifications=notifications,
    )

    notifications.success("Deleted A")
    adapter.close()
    notifications.success("Deleted B")

    assert [n.message for n in batches[-1]] == ["Deleted A"]


def test_adapter_switch_view_refreshes_footer() -> None:
    footers: List[Sequence[KeyBinding]] = []
    hooks = TextualUIHooks(update_mode=lambda snapshot: None, update_footer=footers.append)
    adapter = make_adapter(hooks)

    adapter.switch_view("users")

    assert adapter.view_id == "users"
    assert "createNewUser" in {binding.action for binding in footers[-1]}
