"""Reorder, delete and project operations over a context list.

Every function takes the caller's sequence and returns a fresh list; the input
is never mutated and nothing is retained between calls. Releasing overlays
owned by removed items is the only side effect.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, List, Sequence

from context_engine.context.items import BufferItem, ContextItem, FileItem, Identity
from context_engine.runtime.telemetry import record_event, span

from .errors import ItemNotFoundError, MoveOutOfRangeError, ReleaseFailedError


@dataclass(slots=True)
class Row:
    """One line of the tabular view."""

    id: object
    mark: str
    type: str
    name: str
    details: str


@dataclass(slots=True)
class MoveResult:
    items: List[ContextItem]
    position: int


@dataclass(slots=True)
class BatchResult:
    items: List[ContextItem]
    count: int
    failures: List[ReleaseFailedError] = field(default_factory=list)


def index_of(items: Sequence[ContextItem], identity: Identity) -> int:
    for position, item in enumerate(items):
        if item.identity == identity:
            return position
    raise ItemNotFoundError(f"No context item {identity}", identity=identity)


def move(items: Sequence[ContextItem], identity: Identity, delta: int) -> MoveResult:
    """Swap the item with its neighbour ``delta`` rows away."""

    with span(
        "engine::move",
        component="engine",
        metadata={"identity": identity, "delta": delta},
    ) as handle:
        position = index_of(items, identity)
        target = position + delta
        if target < 0 or target >= len(items):
            handle.add_metadata("out_of_range", target)
            raise MoveOutOfRangeError(
                f"Cannot move {identity} to position {target}",
                identity=identity,
                position=target,
            )
        updated = list(items)
        updated[position], updated[target] = updated[target], updated[position]
        return MoveResult(items=updated, position=target)


def delete_one(items: Sequence[ContextItem], identity: Identity) -> List[ContextItem]:
    with span(
        "engine::delete_one", component="engine", metadata={"identity": identity}
    ) as handle:
        position = index_of(items, identity)
        released = items[position].release()
        handle.add_metadata("released", released)
        updated = list(items)
        del updated[position]
        return updated


def delete_batch(
    items: Sequence[ContextItem], identities: AbstractSet[Identity]
) -> BatchResult:
    """Drop every item whose identity is in ``identities``.

    Identities with no matching item are ignored. Every removed item's release
    is attempted; those that raise are reported in ``failures``, in list order,
    and the items are dropped regardless.
    """

    with span(
        "engine::delete_batch",
        component="engine",
        metadata={"requested": len(identities)},
    ) as handle:
        kept: List[ContextItem] = []
        removed: List[ContextItem] = []
        for item in items:
            (removed if item.identity in identities else kept).append(item)

        failures: List[ReleaseFailedError] = []
        for item in removed:
            try:
                item.release()
            except Exception as exc:
                failure = ReleaseFailedError(
                    f"Releasing {item.identity} failed: {exc}", identity=item.identity
                )
                failure.__cause__ = exc
                failures.append(failure)
                record_event(
                    "engine.release_failed",
                    level="warning",
                    data={"identity": item.identity, "error": repr(exc)},
                )

        handle.add_metadata("removed", len(removed))
        handle.add_metadata("release_failures", len(failures))
        return BatchResult(items=kept, count=len(removed), failures=failures)


def describe(item: ContextItem) -> str:
    if isinstance(item, BufferItem):
        count = len(item.overlays)
        if not count:
            return "Full buffer"
        return f"{count} overlay{'' if count == 1 else 's'}"
    if isinstance(item, FileItem):
        return item.mime or "Text"
    return ""


def project(items: Sequence[ContextItem]) -> List[Row]:
    return [
        Row(
            id=item.identity,
            mark="",
            type=item.kind,
            name=item.display_name,
            details=describe(item),
        )
        for item in items
    ]


__all__ = [
    "BatchResult",
    "MoveResult",
    "Row",
    "delete_batch",
    "delete_one",
    "describe",
    "index_of",
    "move",
    "project",
]
