"""
Embedded storage engine for the record store.

Owns the SQLite database file, guarantees the ``records`` table exists before
any statement runs, and applies the version-upgrade policy. Connections are
opened per call and released on every exit path, so callers never hold a
handle across operations.

The upgrade policy is destructive on purpose: the database is a disposable
cache, not a system of record, so a version increase drops the table and
recreates it empty instead of migrating rows.
"""

from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Mapping, Optional, Sequence

from recordstore.domain.contract import (
    CREATE_TABLE_SQL,
    DATABASE_VERSION,
    DROP_TABLE_SQL,
    TABLE_NAME,
)
from recordstore.errors import RecordStoreError
from recordstore.utils.logging import get_logger

log = get_logger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class StorageError(RecordStoreError):
    """I/O failure or constraint violation reported by the embedded store."""


def _quote(name: str) -> str:
    """
    Return ``name`` as a bare SQL identifier.

    Bare rather than double-quoted: SQLite reads an unknown double-quoted
    name in a SELECT as a string literal instead of failing.
    """
    if not isinstance(name, str) or _IDENTIFIER.fullmatch(name) is None:
        raise StorageError(f"Invalid column name: {name!r}")
    return name


def _where(where: Optional[str]) -> str:
    return f" WHERE {where}" if where else ""


class StorageEngine:
    """
    Row-level access to the physical ``records`` table.

    Parameters
    ----------
    path : Path | str
        Location of the database file. Parent directories are created on demand.
    version : int
        Schema version this process expects. A higher version than the one
        stored in the file triggers ``on_version_change``; a lower one is refused.
    timeout : float
        Seconds to wait on the store's own write lock before failing.
    """

    def __init__(
        self,
        path: Path | str,
        version: int = DATABASE_VERSION,
        timeout: float = 5.0,
    ) -> None:
        if version < 1:
            raise ValueError(f"Schema version must be >= 1, got {version}")
        self.path = Path(path)
        self.version = version
        self._timeout = timeout

    # -- connection lifecycle --------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path), timeout=self._timeout)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            self._prepare(conn)
        except BaseException:
            conn.close()
            raise
        return conn

    def _prepare(self, conn: sqlite3.Connection) -> None:
        """Create or upgrade the schema so the connection is ready for use."""
        stored = self._user_version(conn)
        if stored == self.version:
            self.ensure_schema(conn)
            return
        if stored > self.version:
            raise StorageError(
                f"Database {self.path} is at schema version {stored}; "
                f"cannot downgrade to {self.version}"
            )

        conn.execute("BEGIN IMMEDIATE")
        try:
            # Another connection may have finished the upgrade while we waited.
            stored = self._user_version(conn)
            if stored == 0:
                self.ensure_schema(conn)
            elif stored < self.version:
                self.on_version_change(conn, stored, self.version)
            conn.execute(f"PRAGMA user_version = {int(self.version)}")
            conn.commit()
        except BaseException:
            conn.rollback()
            raise

    @staticmethod
    def _user_version(conn: sqlite3.Connection) -> int:
        return int(conn.execute("PRAGMA user_version").fetchone()[0])

    @contextmanager
    def open_for_read(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager yielding a connection for queries.

        The connection is closed on exit, including when the block raises.
        SQLite errors surface as StorageError.
        """
        conn: Optional[sqlite3.Connection] = None
        try:
            conn = self._connect()
            yield conn
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        finally:
            if conn is not None:
                conn.close()

    @contextmanager
    def open_for_write(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager yielding a connection inside a transaction.

        Commits when the block succeeds, rolls back when it raises, and always
        closes the connection. SQLite errors surface as StorageError.

        Example
        -------
            engine = StorageEngine("shelter.db")
            with engine.open_for_write() as conn:
                conn.execute("DELETE FROM records")
        """
        conn: Optional[sqlite3.Connection] = None
        try:
            conn = self._connect()
            try:
                yield conn
                conn.commit()
            except BaseException:
                conn.rollback()
                raise
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        finally:
            if conn is not None:
                conn.close()

    # -- schema ----------------------------------------------------------------

    def ensure_schema(self, conn: sqlite3.Connection) -> None:
        """Create the records table if it does not exist yet."""
        log.debug("Ensuring schema", extra={"sql": CREATE_TABLE_SQL})
        conn.execute(CREATE_TABLE_SQL)

    def on_version_change(
        self, conn: sqlite3.Connection, old_version: int, new_version: int
    ) -> None:
        """
        Drop the table unconditionally and recreate it empty.

        Every existing row is lost. This is the whole upgrade policy: the
        store only caches data, it never migrates it.
        """
        log.warning(
            "Schema version changed, dropping and recreating table",
            extra={"table": TABLE_NAME, "old_version": old_version, "new_version": new_version},
        )
        log.debug("Dropping table", extra={"sql": DROP_TABLE_SQL})
        conn.execute(DROP_TABLE_SQL)
        self.ensure_schema(conn)

    def stored_version(self) -> int:
        """Return the schema version recorded in the database file."""
        with self.open_for_read() as conn:
            return self._user_version(conn)

    # -- row primitives --------------------------------------------------------

    def insert_row(self, fields: Mapping[str, Any]) -> int:
        """
        Insert one row and return its new id.

        Raises
        ------
        StorageError
            If the store rejects the row (e.g. a NOT NULL violation). There is
            no partial insert: either one id comes back or this raises.
        """
        if fields:
            columns = ", ".join(_quote(name) for name in fields)
            placeholders = ", ".join("?" for _ in fields)
            sql = f"INSERT INTO {TABLE_NAME} ({columns}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {TABLE_NAME} DEFAULT VALUES"

        with self.open_for_write() as conn:
            cursor = conn.execute(sql, tuple(fields.values()))
            new_id = cursor.lastrowid
            if cursor.rowcount != 1 or new_id is None:
                raise StorageError(f"Failed to insert row into {TABLE_NAME}")
        return int(new_id)

    def query_rows(
        self,
        columns: Optional[Sequence[str]] = None,
        where: Optional[str] = None,
        where_args: Sequence[Any] = (),
        order_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run a SELECT against the table.

        Parameters
        ----------
        columns : sequence of str | None
            Projection. None selects every column.
        where : str | None
            Filter expression with ``?`` placeholders.
        where_args : sequence
            Values bound to the placeholders in ``where``.
        order_by : str | None
            ORDER BY expression.

        Returns
        -------
        list of dict
            One mapping per row, keyed by column name. Empty when nothing matches.
        """
        projection = ", ".join(_quote(name) for name in columns) if columns else "*"
        sql = f"SELECT {projection} FROM {TABLE_NAME}{_where(where)}"
        if order_by:
            sql += f" ORDER BY {order_by}"

        with self.open_for_read() as conn:
            rows = conn.execute(sql, tuple(where_args)).fetchall()
        return [dict(row) for row in rows]

    def update_rows(
        self,
        fields: Mapping[str, Any],
        where: Optional[str] = None,
        where_args: Sequence[Any] = (),
    ) -> int:
        """Update matching rows with ``fields`` and return how many changed."""
        if not fields:
            raise StorageError("Cannot update without values")
        assignments = ", ".join(f"{_quote(name)} = ?" for name in fields)
        sql = f"UPDATE {TABLE_NAME} SET {assignments}{_where(where)}"

        with self.open_for_write() as conn:
            cursor = conn.execute(sql, tuple(fields.values()) + tuple(where_args))
            return cursor.rowcount

    def delete_rows(
        self,
        where: Optional[str] = None,
        where_args: Sequence[Any] = (),
    ) -> int:
        """Delete matching rows and return how many were removed."""
        sql = f"DELETE FROM {TABLE_NAME}{_where(where)}"
        with self.open_for_write() as conn:
            cursor = conn.execute(sql, tuple(where_args))
            return cursor.rowcount


__all__ = ["StorageEngine", "StorageError"]
