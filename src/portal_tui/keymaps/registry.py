"""Keymap registry holding the global table and one table per view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from portal_tui.runtime.telemetry import record_event, span

from .models import GlobalKeymap, KeyBinding, KeymapConflictError, Mode, ViewKeymap

MAX_SHORTCUTS = 8


@dataclass(slots=True)
class RegistryStats:
    """Lightweight snapshot describing registry state."""

    global_count: int
    view_count: int
    binding_count: int
    views: tuple[str, ...]


class KeymapRegistry:
    """Owns the global keymap and the per-view keymaps.

    Lookups are two-tier: the view table is consulted first so a view can
    shadow a global key, then the global table.
    """

    def __init__(
        self,
        global_keymap: GlobalKeymap | None = None,
        *,
        logger_name: str | None = None,
    ) -> None:
        self._global = global_keymap if global_keymap is not None else GlobalKeymap()
        self._views: Dict[str, ViewKeymap] = {}
        self._logger_name = logger_name
        self._revision = 0

    def revision(self) -> int:
        return self._revision

    @property
    def global_keymap(self) -> GlobalKeymap:
        return self._global

    def set_global_keymap(self, keymap: GlobalKeymap) -> GlobalKeymap:
        if not isinstance(keymap, GlobalKeymap):
            raise TypeError("set_global_keymap expects a GlobalKeymap")
        with span(
            "keymaps::set_global",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"keys": len(keymap)},
        ):
            self._global = keymap
            self._touch()
            return keymap

    def register_view_keymap(self, keymap: ViewKeymap) -> ViewKeymap:
        """Insert or replace the keymap for ``keymap.view_id``.

        Registering the same view twice replaces the previous table; this is
        how keymaps are hot-reloaded.
        """

        if not isinstance(keymap, ViewKeymap):
            raise TypeError("register_view_keymap expects a ViewKeymap")
        with span(
            "keymaps::register_view",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"view_id": keymap.view_id, "keys": len(keymap)},
        ) as handle:
            if keymap.view_id in self._views:
                handle.add_metadata("replaced", True)
                record_event(
                    "keymaps.replace",
                    level="debug",
                    data={"view_id": keymap.view_id},
                    logger_name=self._logger_name,
                )
            self._views[keymap.view_id] = keymap
            self._touch()
            return keymap

    def unregister_view_keymap(self, view_id: str) -> Optional[ViewKeymap]:
        removed = self._views.pop(view_id, None)
        if removed is not None:
            self._touch()
        return removed

    def get_view_keymap(self, view_id: str) -> ViewKeymap:
        try:
            return self._views[view_id]
        except KeyError as exc:
            raise KeyError(f"View '{view_id}' has no registered keymap") from exc

    def has_view(self, view_id: str) -> bool:
        return view_id in self._views

    def view_ids(self) -> tuple[str, ...]:
        return tuple(self._views)

    def resolve(
        self, view_id: str, key: str, mode: Mode, state: Any = None
    ) -> Optional[KeyBinding]:
        """Return the qualifying binding for ``key``, view scope first."""

        with span(
            "keymaps::resolve",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"view_id": view_id, "key": key, "mode": Mode(mode).value},
        ) as handle:
            view = self._views.get(view_id)
            if view is not None:
                binding = view.keys.get(key)
                if binding is not None and binding.qualifies(mode, state):
                    handle.add_metadata("scope", "view")
                    return binding

            binding = self._global.keys.get(key)
            if binding is not None and binding.qualifies(mode, state):
                handle.add_metadata("scope", "global")
                return binding

            handle.add_metadata("scope", "none")
            return None

    def resolve_action(
        self, view_id: str, key: str, mode: Mode, state: Any = None
    ) -> Optional[str]:
        binding = self.resolve(view_id, key, mode, state)
        return binding.action if binding else None

    def bindings_for_view(
        self, view_id: str, mode: Mode, state: Any = None
    ) -> List[KeyBinding]:
        """Every qualifying binding, globals first, in registration order.

        A global binding is left out when a qualifying view binding shadows
        its key, so the listing agrees with ``resolve``.
        """

        view_bindings = [
            binding
            for binding in self._views.get(view_id, ViewKeymap(view_id))
            if binding.qualifies(mode, state)
        ]
        shadowed = {binding.key for binding in view_bindings}
        global_bindings = [
            binding
            for binding in self._global
            if binding.key not in shadowed and binding.qualifies(mode, state)
        ]
        return global_bindings + view_bindings

    def list_shortcuts(
        self, view_id: str, mode: Mode, state: Any = None
    ) -> List[KeyBinding]:
        """Footer projection: footer-friendly keys sorted by priority, at most 8."""

        candidates = [
            binding
            for binding in self.bindings_for_view(view_id, mode, state)
            if binding.is_footer_key
        ]
        # sorted() is stable, so equal priorities keep registration order.
        candidates = sorted(candidates, key=lambda binding: binding.priority)
        return candidates[:MAX_SHORTCUTS]

    def iter_bindings(self, view_id: Optional[str] = None) -> Iterator[KeyBinding]:
        if view_id is None:
            yield from self._global
            for keymap in self._views.values():
                yield from keymap
            return
        yield from self._views.get(view_id, ViewKeymap(view_id))

    def stats(self) -> RegistryStats:
        view_bindings = sum(len(keymap) for keymap in self._views.values())
        return RegistryStats(
            global_count=len(self._global),
            view_count=len(self._views),
            binding_count=len(self._global) + view_bindings,
            views=tuple(sorted(self._views)),
        )

    def _touch(self) -> None:
        self._revision += 1


__all__ = [
    "KeymapRegistry",
    "KeymapConflictError",
    "MAX_SHORTCUTS",
    "RegistryStats",
]
