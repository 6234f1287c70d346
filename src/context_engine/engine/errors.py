"""Recoverable errors raised while editing a context list."""

from __future__ import annotations

from typing import Optional


class ContextListError(RuntimeError):
    """Base class; views turn these into status messages."""

    def __init__(
        self,
        message: str,
        *,
        identity: object | None = None,
        target: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.identity = identity
        self.target = target


class ItemNotFoundError(ContextListError):
    """No item with the requested identity is in the list."""


class MoveOutOfRangeError(ContextListError):
    def __init__(
        self, message: str, *, identity: object | None = None, position: int = -1
    ) -> None:
        super().__init__(message, identity=identity)
        self.position = position


class TargetGoneError(ContextListError):
    """The target owning the list is no longer live."""


class SourceMissingError(ContextListError):
    """A visited buffer or file no longer exists."""


class ReleaseFailedError(ContextListError):
    """Releasing the overlays of a removed item raised; ``__cause__`` holds why."""


__all__ = [
    "ContextListError",
    "ItemNotFoundError",
    "MoveOutOfRangeError",
    "ReleaseFailedError",
    "SourceMissingError",
    "TargetGoneError",
]
