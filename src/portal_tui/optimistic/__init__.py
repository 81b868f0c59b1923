"""Optimistic mutation coordinator and the collections it mutates."""

from .collection import ItemCollection, default_item_id, default_item_name, merge_item
from .coordinator import (
    DEFAULT_ERROR_MESSAGE,
    DEFAULT_SUCCESS_MESSAGE,
    OperationStatus,
    OptimisticCoordinator,
    OptimisticOperation,
    RollbackError,
    describe,
    error_message_for,
)

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "DEFAULT_SUCCESS_MESSAGE",
    "ItemCollection",
    "OperationStatus",
    "OptimisticCoordinator",
    "OptimisticOperation",
    "RollbackError",
    "default_item_id",
    "default_item_name",
    "describe",
    "error_message_for",
    "merge_item",
]
