from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from recordstore.domain.contract import TABLE_NAME
from recordstore.infrastructure.storage import StorageEngine, StorageError

NEXT_VERSION = 2
SEEDED_ROWS = 3


def _table_columns(db_path: Path) -> list[str]:
    conn = sqlite3.connect(str(db_path))
    try:
        return [row[1] for row in conn.execute(f"PRAGMA table_info({TABLE_NAME})")]
    finally:
        conn.close()


def _seed(storage: StorageEngine, rows: int = SEEDED_ROWS) -> list[int]:
    return [
        storage.insert_row({"name": f"pet-{i}", "classifier": i % 3, "measure": i})
        for i in range(rows)
    ]


def test_first_open_creates_table_and_records_version(storage: StorageEngine, db_path: Path) -> None:
    assert storage.query_rows() == []
    assert _table_columns(db_path) == ["id", "name", "category", "classifier", "measure"]
    assert storage.stored_version() == 1


def test_insert_assigns_increasing_ids_and_default_measure(storage: StorageEngine) -> None:
    first = storage.insert_row({"name": "Toto", "classifier": 1})
    second = storage.insert_row({"name": "Rex", "classifier": 2, "category": "Collie"})

    assert second > first >= 0
    rows = storage.query_rows(order_by="id")
    assert rows[0] == {"id": first, "name": "Toto", "category": None, "classifier": 1, "measure": 0}
    assert rows[1]["category"] == "Collie"


def test_ids_are_not_reused_after_delete(storage: StorageEngine) -> None:
    ids = _seed(storage)
    storage.delete_rows("id = ?", (ids[-1],))

    assert storage.insert_row({"name": "new", "classifier": 0}) > ids[-1]


def test_insert_not_null_violation_raises_storage_error(storage: StorageEngine) -> None:
    with pytest.raises(StorageError) as excinfo:
        storage.insert_row({"classifier": 1})
    assert isinstance(excinfo.value.__cause__, sqlite3.IntegrityError)

    with pytest.raises(StorageError):
        storage.insert_row({})
    assert storage.query_rows() == []


def test_unknown_column_raises_storage_error(storage: StorageEngine) -> None:
    with pytest.raises(StorageError):
        storage.insert_row({"name": "Toto", "classifier": 1, "weight": 3})
    with pytest.raises(StorageError):
        storage.query_rows(columns=["weight"])


def test_malformed_column_name_is_refused(storage: StorageEngine) -> None:
    with pytest.raises(StorageError, match="Invalid column name"):
        storage.query_rows(columns=['name" FROM records; --'])


def test_query_projection_filter_and_sort(storage: StorageEngine) -> None:
    _seed(storage)

    rows = storage.query_rows(
        columns=["name", "measure"],
        where="measure >= ?",
        where_args=(1,),
        order_by="measure DESC",
    )

    assert rows == [{"name": "pet-2", "measure": 2}, {"name": "pet-1", "measure": 1}]


def test_update_and_delete_return_affected_counts(storage: StorageEngine) -> None:
    ids = _seed(storage)

    assert storage.update_rows({"category": "x"}, "id = ?", (ids[0],)) == 1
    assert storage.update_rows({"category": "y"}) == SEEDED_ROWS
    assert storage.update_rows({"category": "z"}, "id = ?", (9999,)) == 0
    assert storage.delete_rows("id = ?", (9999,)) == 0
    assert storage.delete_rows() == SEEDED_ROWS
    assert storage.query_rows() == []


def test_update_without_values_raises(storage: StorageEngine) -> None:
    with pytest.raises(StorageError):
        storage.update_rows({})


def test_write_rolls_back_when_block_raises(storage: StorageEngine) -> None:
    _seed(storage)

    with pytest.raises(RuntimeError):
        with storage.open_for_write() as conn:
            conn.execute(f"DELETE FROM {TABLE_NAME}")
            raise RuntimeError("abort")

    assert len(storage.query_rows()) == SEEDED_ROWS


def test_version_change_drops_all_rows_but_keeps_schema(storage: StorageEngine, db_path: Path) -> None:
    _seed(storage)

    with storage.open_for_write() as conn:
        storage.on_version_change(conn, 1, NEXT_VERSION)

    assert storage.query_rows() == []
    assert _table_columns(db_path) == ["id", "name", "category", "classifier", "measure"]


def test_opening_with_higher_version_upgrades_destructively(storage: StorageEngine, db_path: Path) -> None:
    _seed(storage)

    upgraded = StorageEngine(db_path, version=NEXT_VERSION)

    assert upgraded.query_rows() == []
    assert upgraded.stored_version() == NEXT_VERSION
    assert _table_columns(db_path) == ["id", "name", "category", "classifier", "measure"]
    # Same version again: data written after the upgrade survives.
    upgraded.insert_row({"name": "after", "classifier": 0})
    assert len(StorageEngine(db_path, version=NEXT_VERSION).query_rows()) == 1


def test_opening_with_lower_version_is_refused(db_path: Path) -> None:
    StorageEngine(db_path, version=NEXT_VERSION).query_rows()

    with pytest.raises(StorageError, match="downgrade"):
        StorageEngine(db_path, version=1).query_rows()


def test_invalid_version_rejected(db_path: Path) -> None:
    with pytest.raises(ValueError):
        StorageEngine(db_path, version=0)


def test_parent_directories_are_created(tmp_path: Path) -> None:
    storage = StorageEngine(tmp_path / "nested" / "dir" / "shelter.db")

    storage.insert_row({"name": "Toto", "classifier": 1})

    assert (tmp_path / "nested" / "dir" / "shelter.db").exists()


def test_unopenable_file_raises_storage_error(tmp_path: Path) -> None:
    storage = StorageEngine(tmp_path)  # a directory, not a database file

    with pytest.raises(StorageError):
        storage.query_rows()
