"""In-memory editor buffers and the overlays that decorate them."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from context_engine.runtime import telemetry

Cursor = Tuple[int, int]  # (row, column)


class BufferValidationError(RuntimeError):
    """Raised when a span or cursor falls outside the buffer text."""

    def __init__(self, message: str, *, cursor: Cursor | None = None) -> None:
        super().__init__(message)
        self.cursor = cursor


class Overlay:
    """A decoration over ``[start, end)`` of a buffer.

    Owned by whichever context item created it. ``release`` detaches it from
    the buffer exactly once; later calls are no-ops that return ``False``.
    """

    def __init__(self, buffer: "Buffer", start: Cursor, end: Cursor) -> None:
        self.buffer = buffer
        self.start = start
        self.end = end
        self.released = False

    def release(self) -> bool:
        if self.released:
            return False
        self.released = True
        self.buffer._detach(self)
        telemetry.record_event(
            "overlay.release",
            level="debug",
            data={"buffer": self.buffer.name, "start": self.start, "end": self.end},
        )
        return True

    def text(self) -> str:
        return self.buffer.get_text_range(self.start, self.end)

    def __repr__(self) -> str:
        state = " released" if self.released else ""
        return f"<Overlay {self.buffer.name} {self.start}-{self.end}{state}>"


class Buffer:
    """Named text holder; equality is handle identity."""

    def __init__(
        self, *, name: str, text: str = "", file_path: Optional[str] = None
    ) -> None:
        self.name = name
        self.file_path = file_path
        self.live = True
        self._lines: List[str] = _split_lines(text)
        self._overlays: List[Overlay] = []

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def overlays(self) -> Sequence[Overlay]:
        return tuple(self._overlays)

    def ensure_cursor(self, cursor: Cursor) -> Cursor:
        row, col = cursor
        if row < 0 or row >= self.line_count:
            raise BufferValidationError("Row out of range", cursor=cursor)
        if col < 0 or col > len(self._lines[row]):
            raise BufferValidationError("Column out of range", cursor=cursor)
        return cursor

    def make_overlay(self, start: Cursor, end: Cursor) -> Overlay:
        if not self.live:
            raise BufferValidationError(f"Buffer '{self.name}' has been killed")
        start = self.ensure_cursor(start)
        end = self.ensure_cursor(end)
        if start > end:
            start, end = end, start
        overlay = Overlay(self, start, end)
        self._overlays.append(overlay)
        return overlay

    def get_text_range(self, start: Cursor, end: Cursor) -> str:
        text = self.text
        return text[self._offset(start) : self._offset(end)]

    def kill(self) -> None:
        """Mark the buffer dead, taking its overlays down with it."""

        if not self.live:
            return
        for overlay in list(self._overlays):
            overlay.release()
        self.live = False

    def _detach(self, overlay: Overlay) -> None:
        if overlay in self._overlays:
            self._overlays.remove(overlay)

    def _offset(self, cursor: Cursor) -> int:
        row, col = self.ensure_cursor(cursor)
        return sum(len(line) + 1 for line in self._lines[:row]) + col

    def __repr__(self) -> str:
        return f"<Buffer {self.name}{'' if self.live else ' (killed)'}>"


def _split_lines(text: str) -> List[str]:
    lines = text.splitlines()
    if not lines:
        return [""]
    if text.endswith("\n"):
        lines.append("")
    return lines


__all__ = ["Buffer", "BufferValidationError", "Cursor", "Overlay"]
