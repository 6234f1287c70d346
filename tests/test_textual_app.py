from __future__ import annotations

import asyncio

from textual.widgets import DataTable

from context_engine.adapters.textual.app import COLUMNS, ContextListApp, build_demo


def make_app() -> ContextListApp:
    store, workspace = build_demo([], ["*chat*"])
    return ContextListApp(store, workspace, target="*chat*")


def test_build_demo_seeds_sample_context() -> None:
    store, workspace = build_demo([], ["*chat*", "*review*"])

    assert store.targets() == ["*chat*", "*review*"]
    assert len(store.sequence("*chat*")) == 2
    assert store.sequence("*review*") == []
    assert workspace.get_buffer("*scratch*") is not None


def test_app_renders_rows_and_executes_marks() -> None:
    app = make_app()

    async def scenario() -> None:
        async with app.run_test() as pilot:
            await pilot.pause()
            table = app.query_one(DataTable)
            assert len(table.columns) == len(COLUMNS)
            assert table.row_count == 2

            await pilot.press("d")
            await pilot.pause()
            assert app.adapter is not None
            assert len(app.adapter.marked) == 1

            await pilot.press("x")
            await pilot.pause()
            assert table.row_count == 1

    asyncio.run(scenario())


def test_app_delete_asks_for_confirmation() -> None:
    app = make_app()

    async def scenario() -> None:
        async with app.run_test() as pilot:
            await pilot.pause()
            await pilot.press("delete")
            await pilot.pause()
            await pilot.press("n")
            await pilot.pause()
            assert app.query_one(DataTable).row_count == 2

            await pilot.press("delete")
            await pilot.pause()
            await pilot.press("y")
            await pilot.pause()
            assert app.query_one(DataTable).row_count == 1

    asyncio.run(scenario())
