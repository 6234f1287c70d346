"""Context items and the store that keeps them per target."""

from .items import (
    BufferItem,
    BufferKey,
    ContextItem,
    FileItem,
    FileKey,
    Identity,
    abbreviate_path,
)
from .store import ContextStore, guess_mime

__all__ = [
    "BufferItem",
    "BufferKey",
    "ContextItem",
    "ContextStore",
    "FileItem",
    "FileKey",
    "Identity",
    "abbreviate_path",
    "guess_mime",
]
