"""
Infrastructure package for the record store.

Centralizes the embedded database concerns (file, schema, upgrade policy, row
primitives). Keep this layer focused on I/O and resource management,
decoupled from routing and validation.
"""

from recordstore.infrastructure.storage import StorageEngine, StorageError

__all__ = [
    "StorageEngine",
    "StorageError",
]
