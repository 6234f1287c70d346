"""Per-target context lists and the entry points that add to or remove from them."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from context_engine.engine.errors import ItemNotFoundError, TargetGoneError
from context_engine.host import Buffer, Cursor, Overlay
from context_engine.runtime.telemetry import record_event, span

from .items import BufferItem, BufferKey, ContextItem, FileItem, FileKey

Listener = Callable[[str], None]


def guess_mime(path: str) -> Optional[str]:
    """MIME label for non-text files; ``None`` means plain text."""

    mime, _ = mimetypes.guess_type(path)
    if mime is None or mime.startswith("text/"):
        return None
    return mime


class ContextStore:
    """Owns one ordered context list per live target.

    Listeners are notified with the target name after every add or remove
    entry point. ``replace`` does not notify; the caller already knows.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._lists: Dict[str, List[ContextItem]] = {}
        self._listeners: List[Listener] = []
        self._logger_name = logger_name

    # -- targets -------------------------------------------------------

    def open_target(self, target: str) -> None:
        self._lists.setdefault(target, [])

    def close_target(self, target: str) -> None:
        """Drop ``target`` and release everything its list still owns."""

        items = self._lists.pop(target, None)
        if items is None:
            return
        for item in items:
            item.release()
        self._notify(target)

    def targets(self) -> list[str]:
        return list(self._lists)

    def is_live(self, target: str) -> bool:
        return target in self._lists

    def require_live(self, target: str) -> None:
        if not self.is_live(target):
            raise TargetGoneError(f"Target '{target}' is gone", target=target)

    # -- raw access used by the engine's callers -----------------------

    def sequence(self, target: str) -> List[ContextItem]:
        self.require_live(target)
        return list(self._lists[target])

    def replace(self, target: str, items: Sequence[ContextItem]) -> None:
        self.require_live(target)
        self._lists[target] = list(items)

    def find(self, target: str, identity: object) -> ContextItem:
        for item in self.sequence(target):
            if item.identity == identity:
                return item
        raise ItemNotFoundError(
            f"No context item {identity}", identity=identity, target=target
        )

    # -- add / remove entry points -------------------------------------

    def add_buffer(self, target: str, buffer: Buffer) -> BufferItem:
        """Add the whole of ``buffer``; an existing entry is reused as is."""

        with self._mutation("add_buffer", target, buffer.name):
            existing = self._buffer_item(target, buffer)
            if existing is None:
                existing = BufferItem(buffer=buffer)
                self._lists[target].append(existing)
        self._notify(target)
        return existing

    def add_overlay(
        self, target: str, buffer: Buffer, start: Cursor, end: Cursor
    ) -> Overlay:
        """Add the span ``[start, end)`` of ``buffer`` as context.

        Spans of a buffer already in the list join its existing entry.
        """

        with self._mutation("add_overlay", target, buffer.name):
            overlay = buffer.make_overlay(start, end)
            item = self._buffer_item(target, buffer)
            if item is None:
                self._lists[target].append(BufferItem(buffer=buffer, overlays=[overlay]))
            else:
                item.overlays.append(overlay)
        self._notify(target)
        return overlay

    def add_file(self, target: str, path: str, *, mime: Optional[str] = None) -> FileItem:
        resolved = str(Path(path).expanduser().resolve())
        with self._mutation("add_file", target, resolved):
            existing = next(
                (
                    item
                    for item in self._lists[target]
                    if isinstance(item, FileItem) and item.identity == FileKey(resolved)
                ),
                None,
            )
            if existing is None:
                existing = FileItem(path=resolved, mime=mime or guess_mime(resolved))
                self._lists[target].append(existing)
        self._notify(target)
        return existing

    def remove(self, target: str, identity: object) -> ContextItem:
        with self._mutation("remove", target, identity):
            items = self._lists[target]
            for position, item in enumerate(items):
                if item.identity == identity:
                    item.release()
                    del items[position]
                    break
            else:
                raise ItemNotFoundError(
                    f"No context item {identity}", identity=identity, target=target
                )
        self._notify(target)
        return item

    def remove_overlay(self, target: str, overlay: Overlay) -> None:
        """Drop one span; a buffer entry left with no spans goes too."""

        with self._mutation("remove_overlay", target, overlay.buffer.name):
            item = self._buffer_item(target, overlay.buffer)
            if item is None or overlay not in item.overlays:
                raise ItemNotFoundError(
                    f"{overlay!r} is not in context",
                    identity=BufferKey(overlay.buffer),
                    target=target,
                )
            overlay.release()
            item.overlays.remove(overlay)
            if not item.overlays:
                self._lists[target].remove(item)
        self._notify(target)

    def remove_all(self, target: str) -> int:
        with self._mutation("remove_all", target, "*") as handle:
            items = self._lists[target]
            for item in items:
                item.release()
            count = len(items)
            self._lists[target] = []
            handle.add_metadata("removed", count)
        self._notify(target)
        return count

    # -- observers -----------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, target: str) -> None:
        for listener in list(self._listeners):
            listener(target)

    def _buffer_item(self, target: str, buffer: Buffer) -> Optional[BufferItem]:
        key = BufferKey(buffer)
        for item in self._lists[target]:
            if isinstance(item, BufferItem) and item.identity == key:
                return item
        return None

    def _mutation(self, operation: str, target: str, subject: object):
        self.require_live(target)
        record_event(
            f"store.{operation}",
            level="debug",
            data={"target": target, "subject": subject},
            logger_name=self._logger_name,
        )
        return span(
            f"store::{operation}",
            logger_name=self._logger_name,
            component="store",
            metadata={"target": target},
        )


__all__ = ["ContextStore", "Listener", "guess_mime"]
