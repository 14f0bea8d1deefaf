"""
Error taxonomy for the record store.

Routing and validation errors are raised before the store is touched, so a
rejected request never leaves a partial write behind. ``PersistenceError`` is
the only kind that means the store itself refused or failed the operation.
"""

from __future__ import annotations

from typing import Any


class RecordStoreError(Exception):
    """Base class for every error raised by the record store."""


class UnsupportedIdentifier(RecordStoreError, ValueError):
    """The identifier is neither the collection nor one of its items."""

    def __init__(self, identifier: Any) -> None:
        self.identifier = identifier
        super().__init__(f"Unsupported identifier: {identifier!r}")


class UnsupportedOperation(RecordStoreError, ValueError):
    """The operation is not defined for this identifier shape."""

    def __init__(self, operation: str, identifier: Any) -> None:
        self.operation = operation
        self.identifier = identifier
        super().__init__(f"{operation} is not supported for {identifier!s}")


class InvalidField(RecordStoreError, ValueError):
    """A payload field failed validation."""

    def __init__(self, field: str, reason: str = "invalid value") -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid field {field!r}: {reason}")


class PersistenceError(RecordStoreError):
    """The store refused or failed an operation that passed validation."""


__all__ = [
    "RecordStoreError",
    "UnsupportedIdentifier",
    "UnsupportedOperation",
    "InvalidField",
    "PersistenceError",
]
