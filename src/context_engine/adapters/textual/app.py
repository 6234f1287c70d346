"""Executable Textual app that lists and edits a target's context."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

try:  # pragma: no cover - imported only when the app is used
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal, Vertical
    from textual.screen import ModalScreen
    from textual.widgets import Button, DataTable, Footer, Header, Label, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use context_engine.adapters.textual.app"
    ) from exc

from context_engine.context import ContextStore
from context_engine.engine import Row
from context_engine.host import Buffer, Cursor, Workspace
from context_engine.runtime.telemetry import env, get_logger

from .controller import ContextListAdapter, TextualUIHooks

COLUMNS = (("Mark", 2), ("Type", 10), ("Name", 40), ("Details", 30))
DEFAULT_TARGET = env("TARGET", "*chat*") or "*chat*"


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no prompt dismissed with the answer."""

    BINDINGS = [
        ("y", "answer(True)", "Yes"),
        ("n", "answer(False)", "No"),
        ("escape", "answer(False)", "Cancel"),
    ]

    DEFAULT_CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 60;
        height: auto;
        border: thick $warning;
        background: $surface;
        padding: 1 2;
    }

    #confirm-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(self, prompt: str) -> None:
        super().__init__()
        self.prompt = prompt

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self.prompt)
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes", id="yes", variant="error")
                yield Button("No", id="no", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")

    def action_answer(self, answer: bool) -> None:
        self.dismiss(answer)


class ContextListApp(App[None]):
    """Tabular view over one target's context list."""

    TITLE = "Context"

    CSS = """
    Screen {
        layout: vertical;
    }

    #context-table {
        height: 1fr;
    }

    #preview {
        height: 8;
        border: round $accent;
        padding: 0 1;
        overflow: auto;
    }

    #status-line {
        height: 1;
        background: $surface-darken-1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("d", "mark", "Mark"),
        ("u", "unmark", "Unmark"),
        ("U", "unmark_all", "Unmark all"),
        ("x", "execute", "Execute"),
        ("delete", "delete_at_point", "Remove"),
        ("shift+up", "move_up", "Move up"),
        ("shift+down", "move_down", "Move down"),
        ("t", "switch_target", "Target"),
        ("g", "refresh", "Refresh"),
        ("question_mark", "help", "Help"),
        ("q", "quit_view", "Quit"),
    ]

    def __init__(self, store: ContextStore, workspace: Workspace, *, target: str) -> None:
        super().__init__()
        self.store = store
        self.workspace = workspace
        self.target = target
        self.adapter: ContextListAdapter | None = None
        self._logger = get_logger("context_engine.app")

    def compose(self) -> ComposeResult:
        yield Header()
        yield DataTable(id="context-table", cursor_type="row")
        yield Static("", id="preview")
        yield Static("", id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        for label, width in COLUMNS:
            table.add_column(label, width=width, key=label.lower())
        hooks = TextualUIHooks(
            update_rows=self._update_rows,
            update_status=self._update_status,
            open_target=self._open_target,
            quit=self.exit,
            log=self._logger.debug,
        )
        self.adapter = ContextListAdapter(
            self.store, self.workspace, hooks, target=self.target
        )
        table.focus()

    def on_unmount(self) -> None:
        if self.adapter:
            self.adapter.close()

    # -- widget updates ------------------------------------------------

    def _update_rows(self, rows: Sequence[Row], cursor: int) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for index, row in enumerate(rows):
            table.add_row(row.mark, row.type, row.name, row.details, key=str(index))
        if rows:
            table.move_cursor(row=cursor)
        if self.adapter:
            self.sub_title = self.adapter.target

    def _update_status(self, status: str) -> None:
        self.query_one("#status-line", Static).update(status)

    def _open_target(self, buffer: Buffer, cursor: Cursor) -> None:
        row, _ = cursor
        lines = buffer.text.splitlines()[row:]
        self.query_one("#preview", Static).update("\n".join(lines))

    # -- events --------------------------------------------------------

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if self.adapter:
            self.adapter.select_row(event.cursor_row)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if self.adapter:
            self.adapter.select_row(event.cursor_row)
            self.adapter.visit()

    # -- actions -------------------------------------------------------

    def action_mark(self) -> None:
        if self.adapter:
            self.adapter.mark()

    def action_unmark(self) -> None:
        if self.adapter:
            self.adapter.unmark()

    def action_unmark_all(self) -> None:
        if self.adapter:
            self.adapter.unmark_all()

    def action_execute(self) -> None:
        if self.adapter:
            self.adapter.execute()

    def action_delete_at_point(self) -> None:
        if not self.adapter:
            return
        row = self.adapter.current_row()
        if row is None:
            self.adapter.delete_at_point(confirmed=False)
            return
        adapter = self.adapter

        def answered(confirmed: bool | None) -> None:
            adapter.delete_at_point(confirmed=bool(confirmed))

        self.push_screen(ConfirmScreen(f"Remove {row.name} from context?"), answered)

    def action_move_up(self) -> None:
        if self.adapter:
            self.adapter.move_up()

    def action_move_down(self) -> None:
        if self.adapter:
            self.adapter.move_down()

    def action_switch_target(self) -> None:
        if self.adapter:
            self.adapter.switch_target()

    def action_refresh(self) -> None:
        if self.adapter:
            self.adapter.refresh()

    def action_help(self) -> None:
        if self.adapter:
            self.adapter.help()

    def action_quit_view(self) -> None:
        if self.adapter:
            self.adapter.quit()
        else:
            self.exit()


def build_demo(
    paths: Sequence[str], targets: Sequence[str]
) -> tuple[ContextStore, Workspace]:
    """Workspace and store seeded with ``paths``, or a sample buffer if none."""

    workspace = Workspace()
    store = ContextStore()
    for target in targets:
        workspace.create_buffer(target)
        store.open_target(target)
    primary = targets[0]
    for path in paths:
        store.add_file(primary, path)
    if not paths:
        scratch = workspace.create_buffer(
            "*scratch*",
            "Notes for the session.\nKeep the parser changes small.\nShip on Friday.\n",
        )
        store.add_overlay(primary, scratch, (0, 0), (0, 22))
        store.add_overlay(primary, scratch, (2, 0), (2, 15))
        store.add_buffer(primary, workspace.create_buffer("*notes*", "Loose ends.\n"))
    return store, workspace


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse and edit a context list.")
    parser.add_argument("paths", nargs="*", help="Files to add as context")
    parser.add_argument(
        "--target",
        action="append",
        dest="targets",
        help=f"Target session name; repeat for more (default: {DEFAULT_TARGET})",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    targets = args.targets or [DEFAULT_TARGET]
    store, workspace = build_demo(args.paths, targets)
    ContextListApp(store, workspace, target=targets[0]).run()


if __name__ == "__main__":  # pragma: no cover - manual run
    main()
