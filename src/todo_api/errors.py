"""
Error taxonomy for the todo service.

Validation failures never reach this module; the router answers them
directly with a plaintext 400.
"""
from __future__ import annotations

from typing import Sequence


class TodoError(Exception):
    """Base class for service-level failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TodoNotFoundError(TodoError):
    """Raised when an update or delete affected zero rows."""

    def __init__(self, ids: Sequence[int]) -> None:
        super().__init__(f"todo not found: {list(ids)}")
        self.ids = list(ids)


class StoreError(TodoError):
    """Raised when the relational store fails to connect, execute or commit."""
