"""Outcome notifications read by the presentation layer."""

from .store import (
    DEFAULT_CAPACITY,
    DEFAULT_TTL_MS,
    Notification,
    NotificationKind,
    NotificationStore,
)

__all__ = [
    "DEFAULT_CAPACITY",
    "DEFAULT_TTL_MS",
    "Notification",
    "NotificationKind",
    "NotificationStore",
]
