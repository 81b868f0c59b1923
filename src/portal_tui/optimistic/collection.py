"""Observable list of displayed items that optimistic operations mutate."""

from __future__ import annotations

import dataclasses
from typing import Any, Callable, Generic, Iterable, Iterator, List, Mapping, TypeVar

T = TypeVar("T")

Listener = Callable[[tuple], None]


def default_item_id(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item["id"]
    return getattr(item, "id")


def default_item_name(item: Any) -> str:
    for field_name in ("title", "name", "username"):
        if isinstance(item, Mapping):
            value = item.get(field_name)
        else:
            value = getattr(item, field_name, None)
        if value:
            return str(value)
    return str(default_item_id(item))


def has_field(item: Any, field_name: str) -> bool:
    if isinstance(item, Mapping):
        return field_name in item
    return hasattr(item, field_name)


def merge_item(item: T, updates: Mapping[str, Any]) -> T:
    """Return a copy of ``item`` with ``updates`` applied; ``item`` is untouched."""

    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.replace(item, **updates)
    if isinstance(item, Mapping):
        return {**item, **updates}  # type: ignore[return-value]
    raise TypeError(f"Cannot apply updates to {type(item).__name__}")


class ItemCollection(Generic[T]):
    """Named, ordered list of items with change listeners.

    The name doubles as the resource key optimistic operations serialize on.
    """

    def __init__(self, name: str, items: Iterable[T] = ()) -> None:
        if not name:
            raise ValueError("collection name cannot be empty")
        self.name = name
        self._items: List[T] = list(items)
        self._listeners: List[Listener] = []

    @property
    def items(self) -> tuple:
        return tuple(self._items)

    def snapshot(self) -> List[T]:
        return list(self._items)

    def replace(self, items: Iterable[T]) -> None:
        self._items = list(items)
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def ids(self, get_id: Callable[[T], Any] = default_item_id) -> List[Any]:
        return [get_id(item) for item in self._items]

    def find(self, item_id: Any, get_id: Callable[[T], Any] = default_item_id) -> T | None:
        for item in self._items:
            if get_id(item) == item_id:
                return item
        return None

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def _notify(self) -> None:
        snapshot = tuple(self._items)
        for listener in list(self._listeners):
            listener(snapshot)


__all__ = [
    "ItemCollection",
    "default_item_id",
    "default_item_name",
    "has_field",
    "merge_item",
]
