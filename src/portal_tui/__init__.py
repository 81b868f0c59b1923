"""Input routing and optimistic mutation core for the portal console."""

__all__ = [
    "actions",
    "adapters",
    "keymaps",
    "modes",
    "notifications",
    "optimistic",
    "runtime",
]

__version__ = "0.1.0"
