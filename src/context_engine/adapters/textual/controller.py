"""UI-agnostic controller behind the context list view.

Holds the transient view state (cursor row and mark set), routes user actions
to the list engine and store, and reports back through ``TextualUIHooks``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence

from context_engine.context import BufferItem, ContextStore, FileItem
from context_engine.engine import (
    ContextListError,
    Row,
    SourceMissingError,
    TargetGoneError,
    delete_batch,
    delete_one,
    move,
    project,
)
from context_engine.host import Buffer, Cursor, HostEditor
from context_engine.runtime.telemetry import record_event

MARK_DELETE = "D"

HELP_TEXT = (
    "d mark  u unmark  U unmark all  x execute  delete remove  "
    "enter visit  shift+up/down move  t target  g refresh  q quit"
)


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


def _decline(prompt: str) -> bool:
    del prompt
    return False


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks the controller uses to drive the widgets."""

    update_rows: Callable[[Sequence[Row], int], None]
    update_status: Callable[[str], None] = _noop
    confirm: Callable[[str], bool] = _decline
    open_target: Callable[[Buffer, Cursor], None] = _noop
    quit: Callable[[], None] = _noop
    log: Callable[[str], None] = _noop


@dataclass(slots=True)
class ActionResult:
    ok: bool
    status: str = "ok"
    message: Optional[str] = None


class ContextListAdapter:
    """Bridges the context store and list engine to a tabular view."""

    def __init__(
        self,
        store: ContextStore,
        host: HostEditor,
        hooks: TextualUIHooks,
        *,
        target: str,
    ) -> None:
        self.store = store
        self.host = host
        self.hooks = hooks
        self.target = target
        self.rows: List[Row] = []
        self.cursor = 0
        self.marked: set[object] = set()
        self._unsubscribe = store.subscribe(self._on_store_changed)
        self.refresh()

    def close(self) -> None:
        self._unsubscribe()

    # -- commands ------------------------------------------------------

    def refresh(self) -> ActionResult:
        return self._run("refresh", self._refresh)

    def mark(self) -> ActionResult:
        identity = self.current_identity()
        if identity is None:
            return self._report(ActionResult(False, "empty", "No context item at point"))
        self.marked.add(identity)
        self._step(1)
        return ActionResult(True, "marked")

    def unmark(self) -> ActionResult:
        identity = self.current_identity()
        if identity is None:
            return self._report(ActionResult(False, "empty", "No context item at point"))
        self.marked.discard(identity)
        self._step(1)
        return ActionResult(True, "unmarked")

    def unmark_all(self) -> ActionResult:
        self.marked.clear()
        self._render()
        return ActionResult(True, "unmarked")

    def execute(self) -> ActionResult:
        def run() -> ActionResult:
            if not self.marked:
                return ActionResult(False, "empty", "No items marked for deletion")
            result = delete_batch(self.store.sequence(self.target), set(self.marked))
            self.store.replace(self.target, result.items)
            self._refresh()
            if result.failures:
                raise result.failures[0]
            noun = "item" if result.count == 1 else "items"
            return ActionResult(True, "deleted", f"Removed {result.count} {noun}")

        return self._run("execute", run)

    def delete_at_point(self, *, confirmed: Optional[bool] = None) -> ActionResult:
        def run() -> ActionResult:
            row = self.current_row()
            if row is None:
                return ActionResult(False, "empty", "No context item at point")
            self.store.require_live(self.target)
            answer = confirmed
            if answer is None:
                answer = self.hooks.confirm(f"Remove {row.name} from context?")
            if not answer:
                return ActionResult(False, "cancelled", "Nothing removed")
            items = delete_one(self.store.sequence(self.target), row.id)
            self.store.replace(self.target, items)
            self._refresh()
            return ActionResult(True, "deleted", f"Removed {row.name}")

        return self._run("delete_at_point", run)

    def visit(self) -> ActionResult:
        def run() -> ActionResult:
            row = self.current_row()
            if row is None:
                return ActionResult(False, "empty", "No context item at point")
            item = self.store.find(self.target, row.id)
            if isinstance(item, BufferItem):
                if not self.host.buffer_exists(item.buffer):
                    raise SourceMissingError(
                        f"Buffer {item.buffer.name} no longer exists", identity=row.id
                    )
                buffer = self.host.open_buffer(item.buffer)
                cursor = item.overlays[0].start if item.overlays else (0, 0)
            elif isinstance(item, FileItem):
                if not self.host.file_exists(item.path):
                    raise SourceMissingError(
                        f"File {item.path} no longer exists", identity=row.id
                    )
                try:
                    buffer = self.host.open_file(item.path)
                except OSError as exc:
                    raise SourceMissingError(
                        f"File {item.path} cannot be read: {exc.strerror or exc}",
                        identity=row.id,
                    ) from exc
                cursor = (0, 0)
            else:
                raise SourceMissingError(f"Cannot visit {row.name}", identity=row.id)
            self.host.focus(buffer, cursor)
            self.hooks.open_target(buffer, cursor)
            return ActionResult(True, "visited", f"Visiting {buffer.name}")

        return self._run("visit", run)

    def move_up(self) -> ActionResult:
        return self._run("move_up", lambda: self._move(-1))

    def move_down(self) -> ActionResult:
        return self._run("move_down", lambda: self._move(1))

    def switch_target(self, name: Optional[str] = None) -> ActionResult:
        def run() -> ActionResult:
            chosen = name if name is not None else self._next_target()
            self.store.require_live(chosen)
            self.target = chosen
            self.cursor = 0
            self._refresh()
            return ActionResult(True, "switched", f"Context for {chosen}")

        return self._run("switch_target", run)

    def next_row(self) -> ActionResult:
        self._step(1)
        return ActionResult(True)

    def previous_row(self) -> ActionResult:
        self._step(-1)
        return ActionResult(True)

    def select_row(self, index: int) -> None:
        """Sync the cursor with a row the widget moved to on its own."""

        if self.rows:
            self.cursor = max(0, min(index, len(self.rows) - 1))

    def help(self) -> ActionResult:
        return self._report(ActionResult(True, "help", HELP_TEXT))

    def quit(self) -> ActionResult:
        self.close()
        self.hooks.quit()
        return ActionResult(True, "quit")

    # -- state ---------------------------------------------------------

    def current_row(self) -> Optional[Row]:
        if 0 <= self.cursor < len(self.rows):
            return self.rows[self.cursor]
        return None

    def current_identity(self) -> Optional[object]:
        row = self.current_row()
        return row.id if row else None

    def rendered_rows(self) -> List[Row]:
        return [
            replace(row, mark=MARK_DELETE) if row.id in self.marked else row
            for row in self.rows
        ]

    # -- internals -----------------------------------------------------

    def _refresh(self, *, cursor: Optional[int] = None) -> ActionResult:
        self.marked.clear()
        try:
            items = self.store.sequence(self.target)
        except TargetGoneError:
            self.rows = []
            self.cursor = 0
            self._render()
            raise
        self.rows = project(items)
        if cursor is not None:
            self.cursor = cursor
        self.cursor = max(0, min(self.cursor, len(self.rows) - 1))
        self._render()
        return ActionResult(True, "refreshed")

    def _move(self, delta: int) -> ActionResult:
        identity = self.current_identity()
        if identity is None:
            return ActionResult(False, "empty", "No context item at point")
        result = move(self.store.sequence(self.target), identity, delta)
        self.store.replace(self.target, result.items)
        self._refresh(cursor=result.position)
        return ActionResult(True, "moved")

    def _next_target(self) -> str:
        targets = self.store.targets()
        if not targets:
            raise TargetGoneError("No live targets", target=self.target)
        if self.target not in targets:
            return targets[0]
        return targets[(targets.index(self.target) + 1) % len(targets)]

    def _step(self, delta: int) -> None:
        if self.rows:
            self.cursor = max(0, min(self.cursor + delta, len(self.rows) - 1))
        self._render()

    def _render(self) -> None:
        self.hooks.update_rows(self.rendered_rows(), self.cursor)

    def _run(self, action: str, operation: Callable[[], ActionResult]) -> ActionResult:
        self._log("action ->", action=action)
        try:
            result = operation()
        except ContextListError as exc:
            record_event(
                "view.error",
                level="warning",
                data={"action": action, "error": type(exc).__name__, "target": self.target},
            )
            result = ActionResult(False, type(exc).__name__, str(exc))
        self._log("result <-", ok=result.ok, status=result.status, message=result.message)
        return self._report(result)

    def _report(self, result: ActionResult) -> ActionResult:
        if result.message:
            self.hooks.update_status(result.message)
        return result

    def _on_store_changed(self, target: str) -> None:
        if target == self.target:
            self.refresh()

    def _log(self, prefix: str, **fields: object) -> None:
        snapshot: Dict[str, object] = {
            "target": self.target,
            "cursor": self.cursor,
            "rows": len(self.rows),
            "marked": len(self.marked),
        }
        snapshot.update({key: value for key, value in fields.items() if value is not None})
        parts = [prefix] + [f"{key}={value!r}" for key, value in snapshot.items()]
        self.hooks.log(" ".join(parts))


__all__ = [
    "ActionResult",
    "ContextListAdapter",
    "HELP_TEXT",
    "MARK_DELETE",
    "TextualUIHooks",
]
