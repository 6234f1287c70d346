"""Host editor boundary: the services a context view needs from its editor."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Protocol

from context_engine.runtime import telemetry

from .buffer import Buffer, Cursor


class HostEditor(Protocol):
    """What the view adapter calls on the editor hosting it."""

    def buffer_exists(self, buffer: Buffer) -> bool:
        ...

    def file_exists(self, path: str) -> bool:
        ...

    def open_buffer(self, buffer: Buffer) -> Buffer:
        """Bring ``buffer`` forward for editing and return it."""
        ...

    def open_file(self, path: str) -> Buffer:
        """Visit ``path``, reusing a buffer already holding it."""
        ...

    def focus(self, buffer: Buffer, cursor: Cursor) -> None:
        ...

    def confirm(self, prompt: str) -> bool:
        ...


@dataclass(slots=True)
class FocusState:
    buffer: Optional[Buffer] = None
    cursor: Cursor = (0, 0)


def _decline(prompt: str) -> bool:
    del prompt
    return False


class Workspace:
    """In-memory editor: a buffer registry plus the real filesystem."""

    def __init__(
        self,
        buffers: Iterable[Buffer] = (),
        *,
        confirm: Callable[[str], bool] = _decline,
    ) -> None:
        self._buffers: Dict[str, Buffer] = {}
        self._confirm = confirm
        self.focused = FocusState()
        for buffer in buffers:
            self.add_buffer(buffer)

    def add_buffer(self, buffer: Buffer) -> Buffer:
        if buffer.name in self._buffers and self._buffers[buffer.name].live:
            raise ValueError(f"Buffer '{buffer.name}' already exists")
        self._buffers[buffer.name] = buffer
        return buffer

    def create_buffer(self, name: str, text: str = "") -> Buffer:
        return self.add_buffer(Buffer(name=name, text=text))

    def get_buffer(self, name: str) -> Optional[Buffer]:
        buffer = self._buffers.get(name)
        return buffer if buffer is not None and buffer.live else None

    def kill_buffer(self, name: str) -> None:
        buffer = self._buffers.pop(name, None)
        if buffer is not None:
            buffer.kill()

    def buffer_exists(self, buffer: Buffer) -> bool:
        return buffer.live and self._buffers.get(buffer.name) is buffer

    def file_exists(self, path: str) -> bool:
        return Path(path).expanduser().is_file()

    def open_buffer(self, buffer: Buffer) -> Buffer:
        self.focus(buffer, (0, 0))
        return buffer

    def open_file(self, path: str) -> Buffer:
        resolved = Path(path).expanduser()
        for buffer in self._buffers.values():
            if buffer.live and buffer.file_path == str(resolved):
                return self.open_buffer(buffer)
        text = resolved.read_text(encoding="utf-8", errors="replace")
        name = self._unique_name(resolved.name)
        buffer = self.add_buffer(Buffer(name=name, text=text, file_path=str(resolved)))
        return self.open_buffer(buffer)

    def focus(self, buffer: Buffer, cursor: Cursor) -> None:
        self.focused = FocusState(buffer=buffer, cursor=buffer.ensure_cursor(cursor))
        telemetry.record_event(
            "host.focus", level="debug", data={"buffer": buffer.name, "cursor": cursor}
        )

    def confirm(self, prompt: str) -> bool:
        return bool(self._confirm(prompt))

    def _unique_name(self, base: str) -> str:
        name, counter = base, 2
        while self.get_buffer(name) is not None:
            name = f"{base}<{counter}>"
            counter += 1
        return name


__all__ = ["FocusState", "HostEditor", "Workspace"]
