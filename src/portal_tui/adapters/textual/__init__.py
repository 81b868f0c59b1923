"""Textual adapter; the demo app lives in :mod:`portal_tui.adapters.textual.app`."""

from .controller import TextualConsoleAdapter, TextualUIHooks

__all__ = ["TextualConsoleAdapter", "TextualUIHooks"]
