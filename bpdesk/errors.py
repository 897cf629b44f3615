from __future__ import annotations

from typing import Any


class ShapeError(ValueError):
    """Imported JSON could not be turned into a blueprint collection."""


class StoreError(Exception):
    """Base class for failures talking to the record store."""


class TransportUnreachable(StoreError):
    """The store could not be reached at all (refused, DNS, timeout, reset)."""


class ApplicationError(StoreError):
    """The store answered with a non-2xx status."""

    def __init__(self, status: int, message: str, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.data = data or {}

    def __str__(self) -> str:
        return f"{self.message} ({self.status})"


class Aborted(StoreError):
    """The request was superseded before it finished; never reported to the user."""
