"""Editable view over per-target context lists."""

__all__ = [
    "adapters",
    "context",
    "engine",
    "host",
    "runtime",
]

__version__ = "0.1.0"
