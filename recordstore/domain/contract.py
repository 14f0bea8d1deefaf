"""
Schema definition for the single ``records`` table.

Holds the table and column names, the classifier constants, the content
authority used to build type tokens, and the current schema version. Nothing
in here touches the database; the storage engine and the router both read
their names from this module so the two never drift apart.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Tuple

CONTENT_AUTHORITY = "recordstore"
PATH_RECORDS = "records"

DATABASE_NAME = "shelter.db"
# Bumping this drops and recreates the table, see StorageEngine.on_version_change.
DATABASE_VERSION = 1

TABLE_NAME = "records"

COLUMN_ID = "id"
COLUMN_NAME = "name"
COLUMN_CATEGORY = "category"
COLUMN_CLASSIFIER = "classifier"
# Older revisions called this "weight"/"weights"; "measure" is canonical.
COLUMN_MEASURE = "measure"

WRITABLE_COLUMNS: Tuple[str, ...] = (
    COLUMN_NAME,
    COLUMN_CATEGORY,
    COLUMN_CLASSIFIER,
    COLUMN_MEASURE,
)
ALL_COLUMNS: Tuple[str, ...] = (COLUMN_ID,) + WRITABLE_COLUMNS

CONTENT_LIST_TYPE = f"vnd.cursor.dir/{CONTENT_AUTHORITY}/{PATH_RECORDS}"
CONTENT_ITEM_TYPE = f"vnd.cursor.item/{CONTENT_AUTHORITY}/{PATH_RECORDS}"

DEFAULT_CATEGORY_LABEL = "Unknown category"


class Classifier(IntEnum):
    """Allowed values of the ``classifier`` column."""

    UNKNOWN = 0
    A = 1
    B = 2


CLASSIFIER_UNKNOWN = Classifier.UNKNOWN
CLASSIFIER_A = Classifier.A
CLASSIFIER_B = Classifier.B


def is_valid_classifier(value: Any) -> bool:
    """Return True iff ``value`` is one of the three classifier constants."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value in (CLASSIFIER_UNKNOWN, CLASSIFIER_A, CLASSIFIER_B)


CREATE_TABLE_SQL = (
    f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
    f"{COLUMN_ID} INTEGER PRIMARY KEY AUTOINCREMENT, "
    f"{COLUMN_NAME} TEXT NOT NULL, "
    f"{COLUMN_CATEGORY} TEXT, "
    f"{COLUMN_CLASSIFIER} INTEGER NOT NULL, "
    f"{COLUMN_MEASURE} INTEGER NOT NULL DEFAULT 0)"
)
DROP_TABLE_SQL = f"DROP TABLE IF EXISTS {TABLE_NAME}"


__all__ = [
    "ALL_COLUMNS",
    "CLASSIFIER_A",
    "CLASSIFIER_B",
    "CLASSIFIER_UNKNOWN",
    "COLUMN_CATEGORY",
    "COLUMN_CLASSIFIER",
    "COLUMN_ID",
    "COLUMN_MEASURE",
    "COLUMN_NAME",
    "CONTENT_AUTHORITY",
    "CONTENT_ITEM_TYPE",
    "CONTENT_LIST_TYPE",
    "CREATE_TABLE_SQL",
    "DATABASE_NAME",
    "DATABASE_VERSION",
    "DEFAULT_CATEGORY_LABEL",
    "DROP_TABLE_SQL",
    "PATH_RECORDS",
    "TABLE_NAME",
    "WRITABLE_COLUMNS",
    "Classifier",
    "is_valid_classifier",
]
