"""List engine: move, delete and project over a context list."""

from .errors import (
    ContextListError,
    ItemNotFoundError,
    MoveOutOfRangeError,
    ReleaseFailedError,
    SourceMissingError,
    TargetGoneError,
)
from .list_engine import (
    BatchResult,
    MoveResult,
    Row,
    delete_batch,
    delete_one,
    describe,
    index_of,
    move,
    project,
)

__all__ = [
    "BatchResult",
    "ContextListError",
    "ItemNotFoundError",
    "MoveOutOfRangeError",
    "MoveResult",
    "ReleaseFailedError",
    "Row",
    "SourceMissingError",
    "TargetGoneError",
    "delete_batch",
    "delete_one",
    "describe",
    "index_of",
    "move",
    "project",
]
