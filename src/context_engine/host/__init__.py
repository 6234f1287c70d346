"""Host editor model: buffers, overlays and the workspace holding them."""

from .buffer import Buffer, BufferValidationError, Cursor, Overlay
from .editor import FocusState, HostEditor, Workspace

__all__ = [
    "Buffer",
    "BufferValidationError",
    "Cursor",
    "FocusState",
    "HostEditor",
    "Overlay",
    "Workspace",
]
