from collections import Counter
from typing import List

import pytest

from context_engine.context import BufferItem, BufferKey, ContextItem, FileItem, FileKey
from context_engine.engine import (
    ItemNotFoundError,
    MoveOutOfRangeError,
    ReleaseFailedError,
    delete_batch,
    delete_one,
    move,
    project,
)
from context_engine.host import Buffer


class NoteItem(ContextItem):
    kind = "Note"

    def __init__(self, label: str) -> None:
        self.label = label

    @property
    def identity(self) -> str:
        return f"note:{self.label}"


def make_buffer(name: str = "B1") -> Buffer:
    return Buffer(name=name, text="alpha beta\ngamma delta\nepsilon\n")


def make_items() -> List[ContextItem]:
    return [
        FileItem(path="/a.txt"),
        BufferItem(buffer=make_buffer("B1")),
        FileItem(path="/c.png", mime="image/png"),
    ]


def test_project_matches_worked_example() -> None:
    buffer = make_buffer("B1")
    rows = project([FileItem(path="/a.txt"), BufferItem(buffer=buffer)])

    assert [(row.type, row.name, row.details) for row in rows] == [
        ("File", "/a.txt", "Text"),
        ("Buffer", "B1", "Full buffer"),
    ]
    assert rows[0].id == FileKey("/a.txt")
    assert rows[1].id == BufferKey(buffer)
    assert all(row.mark == "" for row in rows)


def test_project_pluralizes_overlay_counts() -> None:
    buffer = make_buffer()
    one = BufferItem(buffer=buffer, overlays=[buffer.make_overlay((0, 0), (0, 5))])
    other = make_buffer("B2")
    two = BufferItem(
        buffer=other,
        overlays=[other.make_overlay((0, 0), (0, 5)), other.make_overlay((1, 0), (1, 5))],
    )

    rows = project([one, two])

    assert rows[0].details == "1 overlay"
    assert rows[1].details == "2 overlays"


def test_project_uses_mime_and_blank_details_for_other_kinds() -> None:
    rows = project([FileItem(path="/c.png", mime="image/png"), NoteItem("todo")])

    assert rows[0].details == "image/png"
    assert (rows[1].type, rows[1].name, rows[1].details) == ("Note", "note:todo", "")


def test_project_abbreviates_home_directory(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", "/home/tester")

    rows = project([FileItem(path="/home/tester/notes/todo.md")])

    assert rows[0].name == "~/notes/todo.md"


def test_move_swaps_with_neighbour() -> None:
    items = make_items()[:2]

    result = move(items, FileKey("/a.txt"), 1)

    assert [item.identity for item in result.items] == [items[1].identity, FileKey("/a.txt")]
    assert result.position == 1
    assert [item.identity for item in items][0] == FileKey("/a.txt")


def test_move_is_a_swap_not_a_rotate() -> None:
    items = make_items()

    result = move(items, FileKey("/a.txt"), 2)

    assert result.items == [items[2], items[1], items[0]]


def test_move_then_back_restores_order() -> None:
    items = make_items()
    identity = items[1].identity

    forward = move(items, identity, 1)
    back = move(forward.items, identity, -1)

    assert back.items == items
    assert back.position == 1


def test_move_preserves_multiset() -> None:
    items = make_items()

    result = move(items, FileKey("/c.png"), -2)

    assert len(result.items) == len(items)
    assert Counter(map(id, result.items)) == Counter(map(id, items))


def test_move_out_of_range_leaves_list_untouched() -> None:
    items = make_items()
    snapshot = list(items)

    with pytest.raises(MoveOutOfRangeError) as excinfo:
        move(items, FileKey("/a.txt"), -1)

    assert excinfo.value.position == -1
    assert items == snapshot
    with pytest.raises(MoveOutOfRangeError):
        move(items, FileKey("/c.png"), 1)


def test_move_unknown_identity() -> None:
    with pytest.raises(ItemNotFoundError):
        move(make_items(), FileKey("/missing"), 1)


def test_delete_one_removes_and_releases() -> None:
    buffer = make_buffer()
    overlay = buffer.make_overlay((0, 0), (0, 5))
    items: List[ContextItem] = [FileItem(path="/a.txt"), BufferItem(buffer=buffer, overlays=[overlay])]

    updated = delete_one(items, BufferKey(buffer))

    assert len(updated) == 1
    assert all(item.identity != BufferKey(buffer) for item in updated)
    assert overlay.released is True
    assert buffer.overlays == ()
    assert len(items) == 2


def test_delete_one_unknown_identity() -> None:
    with pytest.raises(ItemNotFoundError):
        delete_one(make_items(), FileKey("/missing"))


def test_delete_batch_releases_every_overlay() -> None:
    buffer = make_buffer()
    overlays = [buffer.make_overlay((0, 0), (0, 5)), buffer.make_overlay((1, 0), (1, 5))]
    items: List[ContextItem] = [FileItem(path="/a.txt"), BufferItem(buffer=buffer, overlays=overlays)]

    result = delete_batch(items, {BufferKey(buffer)})

    assert result.count == 1
    assert [item.identity for item in result.items] == [FileKey("/a.txt")]
    assert all(overlay.released for overlay in overlays)


def test_delete_batch_ignores_stale_identities() -> None:
    items = make_items()

    result = delete_batch(items, {FileKey("/a.txt"), FileKey("/gone"), FileKey("/c.png")})

    assert result.count == 2
    assert len(result.items) == len(items) - result.count


def test_delete_batch_tolerates_already_released_overlays() -> None:
    buffer = make_buffer()
    overlay = buffer.make_overlay((0, 0), (0, 5))
    overlay.release()

    result = delete_batch([BufferItem(buffer=buffer, overlays=[overlay])], {BufferKey(buffer)})

    assert result.count == 1
    assert result.items == []


class BrokenItem(FileItem):
    def release(self) -> int:
        raise RuntimeError(f"release failed {self.path}")


def test_delete_batch_attempts_every_release_when_one_fails() -> None:
    buffer = make_buffer()
    overlay = buffer.make_overlay((0, 0), (0, 5))
    items: List[ContextItem] = [
        BrokenItem(path="/first"),
        BufferItem(buffer=buffer, overlays=[overlay]),
        BrokenItem(path="/second"),
        FileItem(path="/kept"),
    ]

    result = delete_batch(
        items, {FileKey("/first"), BufferKey(buffer), FileKey("/second")}
    )

    assert overlay.released is True
    assert result.count == 3
    assert [item.identity for item in result.items] == [FileKey("/kept")]
    assert [failure.identity for failure in result.failures] == [
        FileKey("/first"),
        FileKey("/second"),
    ]
    first = result.failures[0]
    assert isinstance(first, ReleaseFailedError)
    assert "release failed /first" in str(first)
    assert isinstance(first.__cause__, RuntimeError)


def test_delete_batch_without_failures_reports_none() -> None:
    result = delete_batch(make_items(), {FileKey("/a.txt")})

    assert result.failures == []
