"""Executable Textual app hosting the portal console core against a simulated portal."""

from __future__ import annotations

import argparse
import asyncio
import os
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from textual import events
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Header, Static

from portal_tui.actions import Action, ActionRouter
from portal_tui.keymaps import KeyBinding, KeymapRegistry, Mode, load_default_keymaps
from portal_tui.modes import KeyboardDispatcher, ViewSnapshot, ViewStateStore
from portal_tui.notifications import Notification, NotificationKind, NotificationStore
from portal_tui.optimistic import ItemCollection, OptimisticCoordinator
from portal_tui.runtime import telemetry

from .controller import TextualConsoleAdapter, TextualUIHooks

_KIND_STYLES = {
    NotificationKind.SUCCESS: "green",
    NotificationKind.ERROR: "red",
    NotificationKind.WARNING: "yellow",
    NotificationKind.INFO: "cyan",
}

_MODE_STYLES = {
    Mode.NAVIGATION: "green",
    Mode.INPUT: "yellow",
    Mode.SELECTION: "blue",
    Mode.SEARCH: "cyan",
}

SAMPLE_SERVICES: tuple[Dict[str, Any], ...] = (
    {"id": "svc-1", "name": "Parcels/MapServer", "status": "started"},
    {"id": "svc-2", "name": "Hydrants/FeatureServer", "status": "started"},
    {"id": "svc-3", "name": "Basemap/VectorTileServer", "status": "stopped"},
    {"id": "svc-4", "name": "Elevation/ImageServer", "status": "started"},
    {"id": "svc-5", "name": "Geocoder/GeocodeServer", "status": "started"},
)


class PortalError(RuntimeError):
    """Failure reported by the simulated portal."""


class SimulatedPortal:
    """Stand-in for the remote admin API with configurable latency and failures."""

    def __init__(self, *, latency: float = 0.8, fail_rate: float = 0.3) -> None:
        self.latency = latency
        self.fail_rate = fail_rate

    async def _round_trip(self, verb: str, ids: List[str]) -> Dict[str, Any]:
        await asyncio.sleep(self.latency)
        if random.random() < self.fail_rate:
            raise PortalError(f"Portal refused to {verb} {', '.join(ids)}")
        return {"success": True, "ids": ids}

    async def delete_services(self, ids: List[str]) -> Dict[str, Any]:
        return await self._round_trip("delete", ids)

    async def restart_services(self, ids: List[str]) -> Dict[str, Any]:
        return await self._round_trip("restart", ids)

    async def update_services(
        self, ids: List[str], updates: Mapping[str, Any]
    ) -> Dict[str, Any]:
        return {**await self._round_trip("update", ids), "updates": dict(updates)}


@dataclass
class ConsoleServices:
    """Everything the console core needs, constructed explicitly."""

    registry: KeymapRegistry
    states: ViewStateStore
    dispatcher: KeyboardDispatcher
    router: ActionRouter
    notifications: NotificationStore
    coordinator: OptimisticCoordinator
    collections: Dict[str, ItemCollection] = field(default_factory=dict)


def create_console_services() -> ConsoleServices:
    registry = load_default_keymaps(KeymapRegistry(logger_name="portal_tui.keymaps"))
    states = ViewStateStore()
    router = ActionRouter(logger_name="portal_tui.actions")
    dispatcher = KeyboardDispatcher(registry, states)
    notifications = NotificationStore(logger_name="portal_tui.notifications")
    coordinator = OptimisticCoordinator(
        notifications, logger_name="portal_tui.optimistic"
    )
    return ConsoleServices(
        registry=registry,
        states=states,
        dispatcher=dispatcher,
        router=router,
        notifications=notifications,
        coordinator=coordinator,
    )


class ServiceCommands:
    """Optimistic service commands for one view, independent of any widget."""

    def __init__(
        self,
        services: ConsoleServices,
        collection: ItemCollection[Dict[str, Any]],
        portal: SimulatedPortal,
    ) -> None:
        self.services = services
        self.collection = collection
        self.portal = portal

    def register(self, router: ActionRouter) -> None:
        router.register("deleteSelectedService", self.delete_current)
        router.register("deleteBulkServices", self.delete_selected)
        router.register("restartSelectedService", self.restart_current)
        router.register("restartBulkServices", self.restart_selected)

    def current(self, action: Action) -> List[Dict[str, Any]]:
        state = self.services.dispatcher.state_for(action.view_id)
        item = self.collection.find(state.current_item_id)
        return [item] if item is not None else []

    def selected(self, action: Action) -> List[Dict[str, Any]]:
        state = self.services.dispatcher.state_for(action.view_id)
        found = (self.collection.find(item_id) for item_id in state.selected_in_order())
        return [item for item in found if item is not None]

    async def delete(self, action: Action, items: List[Dict[str, Any]]) -> None:
        """Delete ``items``; the selection only loses them once the portal confirms."""

        if not items:
            return
        state = self.services.dispatcher.state_for(action.view_id)
        await self.services.coordinator.delete_items(
            self.collection, items, self.portal.delete_services
        )
        deleted = {item["id"] for item in items}
        state.select_all(
            item_id for item_id in state.selected_in_order() if item_id not in deleted
        )
        if self.collection.find(state.current_item_id) is None:
            ids = self.collection.ids()
            state.set_current_item(ids[0] if ids else None)

    async def delete_current(self, action: Action) -> None:
        await self.delete(action, self.current(action))

    async def delete_selected(self, action: Action) -> None:
        await self.delete(action, self.selected(action))

    async def restart(self, action: Action, items: List[Dict[str, Any]]) -> None:
        if not items:
            return
        await self.services.coordinator.restart_items(
            self.collection, items, self.portal.restart_services
        )
        # The portal reports back asynchronously; settle on "started" once confirmed.
        restarted = {item["id"] for item in items}
        self.collection.replace(
            {**item, "status": "started"} if item["id"] in restarted else item
            for item in self.collection
        )

    async def restart_current(self, action: Action) -> None:
        await self.restart(action, self.current(action))

    async def restart_selected(self, action: Action) -> None:
        await self.restart(action, self.selected(action))

    async def submit_note(self, action: Action, text: str) -> None:
        """Close the INPUT overlay and store ``text`` as the current item's note."""

        self.services.dispatcher.state_for(action.view_id).close_input()
        note = text.strip()
        items = self.current(action)
        if not note or not items:
            return
        await self.services.coordinator.update_items(
            self.collection,
            items,
            {"note": note},
            self.portal.update_services,
            verbs=("Annotated", "Failed to annotate"),
        )


class PortalConsoleApp(App[None]):
    """Services view of the portal console with optimistic delete/restart."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #item-list {
        height: 1fr;
        border: round $accent;
        padding: 0 1;
    }

    #notifications {
        height: auto;
        padding: 0 1;
    }

    #mode-line, #footer-line {
        height: 1;
        background: $surface-darken-1;
        padding: 0 1;
    }
    """

    def __init__(
        self,
        *,
        view_id: str = "services",
        portal: SimulatedPortal | None = None,
    ) -> None:
        super().__init__()
        self.view_id = view_id
        self.portal = portal if portal is not None else SimulatedPortal()
        self.services = create_console_services()
        self.collection: ItemCollection[Dict[str, Any]] = ItemCollection(
            view_id, SAMPLE_SERVICES
        )
        self.services.collections[view_id] = self.collection
        self.commands = ServiceCommands(self.services, self.collection, self.portal)
        self.adapter: TextualConsoleAdapter | None = None
        self._query = ""
        self._draft = ""
        self._list_widget: Static | None = None
        self._mode_widget: Static | None = None
        self._footer_widget: Static | None = None
        self._notice_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical():
            self._list_widget = Static("", id="item-list")
            yield self._list_widget
            self._notice_widget = Static("", id="notifications")
            yield self._notice_widget
        self._mode_widget = Static("", id="mode-line")
        self._footer_widget = Static("", id="footer-line")
        yield self._mode_widget
        yield self._footer_widget

    async def on_mount(self) -> None:
        self._register_commands()
        state = self.services.dispatcher.state_for(self.view_id)
        if len(self.collection):
            state.set_current_item(self.collection.ids()[0])
        self.collection.subscribe(lambda _items: self._render_items())
        hooks = TextualUIHooks(
            update_mode=self._update_mode,
            update_footer=self._update_footer,
            update_notifications=self._update_notifications,
        )
        self.adapter = TextualConsoleAdapter(
            self.services.dispatcher,
            self.services.router,
            self.services.notifications,
            hooks,
            view_id=self.view_id,
            schedule=lambda awaitable: self.run_worker(awaitable, exit_on_error=False),
        )
        self._render_items()
        self.set_interval(0.25, self._process_expired)

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter:
            return
        # Textual names punctuation ("question_mark"); keymaps use the character.
        char = event.character
        key = char if char and len(char) == 1 and char.isprintable() else event.key
        action = self.adapter.handle_textual_key(key)
        if action is None:
            self._handle_text(event)
        event.stop()

    def _handle_text(self, event: events.Key) -> None:
        if self.adapter is None:
            return
        mode = self.adapter.state.mode
        if mode is Mode.SEARCH:
            self._query = _edit(self._query, event)
            self._render_items()
        elif mode is Mode.INPUT:
            self._draft = _edit(self._draft, event)
            self._update_mode(self.adapter.state.snapshot("input"))

    def _register_commands(self) -> None:
        router = self.services.router
        self.commands.register(router)
        router.register("moveDown", lambda action: self._move(action, 1))
        router.register("moveUp", lambda action: self._move(action, -1))
        router.register(
            "submitInput", lambda action: self.commands.submit_note(action, self._draft)
        )
        router.register("showHelp", self._show_help)
        router.register("refresh", lambda action: self._render_items())
        router.register("quit", lambda action: self.exit())

    def _visible_items(self) -> List[Dict[str, Any]]:
        query = self._query.lower()
        return [item for item in self.collection if query in item["name"].lower()]

    def _move(self, action: Action, step: int) -> None:
        ids = [item["id"] for item in self._visible_items()]
        if not ids:
            return
        state = self.services.dispatcher.state_for(action.view_id)
        try:
            index = ids.index(state.current_item_id)
        except ValueError:
            index = -step if step > 0 else 0
        state.set_current_item(ids[max(0, min(len(ids) - 1, index + step))])
        self._render_items()

    def _show_help(self, action: Action) -> None:
        bindings = self.services.dispatcher.help_bindings(action.view_id)
        summary = "  ".join(f"{b.key}:{b.label}" for b in bindings)
        self.services.notifications.info(summary, ttl_ms=8000)

    def _process_expired(self) -> None:
        if self.adapter:
            self.adapter.process_expired()

    def _render_items(self) -> None:
        if not self._list_widget:
            return
        state = self.services.dispatcher.state_for(self.view_id)
        lines = []
        for item in self._visible_items():
            cursor = ">" if item["id"] == state.current_item_id else " "
            mark = "[x]" if state.is_selected(item["id"]) else "[ ]"
            line = f"{cursor} {mark} {item['name']:<32} {item['status']}"
            if item.get("note"):
                line += f"  # {item['note']}"
            lines.append(line)
        self._list_widget.update("\n".join(lines) or "(no services)")

    def _update_mode(self, snapshot: ViewSnapshot) -> None:
        if snapshot.mode is not Mode.INPUT:
            self._draft = ""
        if not self._mode_widget:
            return
        style = _MODE_STYLES[snapshot.mode]
        text = f"[b {style}]{snapshot.mode.display_name}[/]  view={snapshot.view_id}"
        if snapshot.selected_item_ids:
            text += f"  selected={len(snapshot.selected_item_ids)}"
        if snapshot.mode is Mode.SEARCH or self._query:
            text += f"  /{self._query}"
        if snapshot.mode is Mode.INPUT:
            text += f"  note: {self._draft}"
        self._mode_widget.update(text)
        self._render_items()

    def _update_footer(self, shortcuts: Sequence[KeyBinding]) -> None:
        if self._footer_widget:
            self._footer_widget.update(
                "  ".join(f"[b]{binding.key}[/] {binding.label}" for binding in shortcuts)
            )

    def _update_notifications(self, notifications: Sequence[Notification]) -> None:
        if self._notice_widget:
            self._notice_widget.update(
                "\n".join(
                    f"[{_KIND_STYLES[n.kind]}]{n.kind.value}[/] {n.message}"
                    for n in notifications
                )
            )


def _edit(text: str, event: events.Key) -> str:
    if event.key == "backspace":
        return text[:-1]
    if event.character and event.character.isprintable():
        return text + event.character
    return text


def _env_float(key: str, fallback: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return fallback
    try:
        return float(value)
    except ValueError:
        return fallback


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the portal console demo.")
    parser.add_argument(
        "--view",
        default=os.environ.get("PORTAL_TUI_VIEW", "services"),
        help="View to open (default: services)",
    )
    parser.add_argument(
        "--latency",
        type=float,
        default=_env_float("PORTAL_TUI_LATENCY", 0.8),
        help="Simulated portal latency in seconds (default: 0.8)",
    )
    parser.add_argument(
        "--fail-rate",
        type=float,
        default=_env_float("PORTAL_TUI_FAIL_RATE", 0.3),
        help="Probability that a simulated remote call fails (default: 0.3)",
    )
    parser.add_argument(
        "--log-preset",
        default=os.environ.get("PORTAL_TUI_LOG_PRESET", "quiet"),
        help="Telemetry preset: development, production or quiet (default: quiet)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    telemetry.configure(preset=args.log_preset)
    portal = SimulatedPortal(latency=args.latency, fail_rate=args.fail_rate)
    PortalConsoleApp(view_id=args.view, portal=portal).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
