"""
Record store - a local single-table data-access layer.

Accepts CRUD requests addressed by path-style identifiers (``records`` for the
whole collection, ``records/<id>`` for one record), validates payloads against
a fixed schema, persists them to an embedded SQLite file and notifies
registered observers when data changes.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from recordstore.config import Settings, get_settings
from recordstore.domain import (
    Classifier,
    Collection,
    Item,
    Record,
    is_valid_classifier,
    parse_identifier,
)
from recordstore.errors import (
    InvalidField,
    PersistenceError,
    RecordStoreError,
    UnsupportedIdentifier,
    UnsupportedOperation,
)
from recordstore.infrastructure import StorageEngine, StorageError
from recordstore.notifications import ChangeNotifier, Subscription
from recordstore.router import QueryResult, RecordRouter
from recordstore.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Classifier",
    "Collection",
    "Item",
    "Record",
    "is_valid_classifier",
    "parse_identifier",
    # Errors
    "InvalidField",
    "PersistenceError",
    "RecordStoreError",
    "StorageError",
    "UnsupportedIdentifier",
    "UnsupportedOperation",
    # Storage and routing
    "StorageEngine",
    "RecordRouter",
    "QueryResult",
    "ChangeNotifier",
    "Subscription",
    # Logging
    "configure_logging",
    "get_logger",
]
