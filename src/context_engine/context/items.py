"""Context items and the identity keys used to find them in a list."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from context_engine.host import Buffer, Overlay


@dataclass(frozen=True, slots=True)
class BufferKey:
    """Identity of a buffer item; compares by buffer handle."""

    buffer: Buffer

    def __str__(self) -> str:
        return f"buffer:{self.buffer.name}"


@dataclass(frozen=True, slots=True)
class FileKey:
    path: str

    def __str__(self) -> str:
        return f"file:{self.path}"


Identity = Union[BufferKey, FileKey]


class ContextItem:
    """Base for everything a context list can hold."""

    kind: str = "Other"

    @property
    def identity(self) -> object:  # pragma: no cover - overridden
        raise NotImplementedError

    @property
    def display_name(self) -> str:
        return str(self.identity)

    def release(self) -> int:
        """Release owned resources; return how many were actually freed."""

        return 0

    def exists(self) -> bool:
        return True


@dataclass(eq=False)
class BufferItem(ContextItem):
    """A whole buffer, or only the spans covered by ``overlays``."""

    buffer: Buffer
    overlays: List[Overlay] = field(default_factory=list)

    kind = "Buffer"

    @property
    def identity(self) -> BufferKey:
        return BufferKey(self.buffer)

    @property
    def display_name(self) -> str:
        return self.buffer.name

    def release(self) -> int:
        return sum(1 for overlay in self.overlays if overlay.release())

    def exists(self) -> bool:
        return self.buffer.live


@dataclass(eq=False)
class FileItem(ContextItem):
    path: str
    mime: Optional[str] = None

    kind = "File"

    @property
    def identity(self) -> FileKey:
        return FileKey(self.path)

    @property
    def display_name(self) -> str:
        return abbreviate_path(self.path)

    def exists(self) -> bool:
        return Path(self.path).expanduser().is_file()


def abbreviate_path(path: str) -> str:
    """Collapse the home directory prefix to ``~``."""

    home = os.path.expanduser("~")
    if home and home != "/" and (path == home or path.startswith(home + os.sep)):
        return "~" + path[len(home) :]
    return path


__all__ = [
    "BufferItem",
    "BufferKey",
    "ContextItem",
    "FileItem",
    "FileKey",
    "Identity",
    "abbreviate_path",
]
