"""
Record router: the single entry point for CRUD requests.

Every call parses its identifier into a Collection or an Item, validates the
payload fields relevant to the operation, delegates to the storage engine, and
tells registered observers what changed. Validation and routing failures are
raised before the store is touched.

Usage:
    from recordstore.router import RecordRouter

    router = RecordRouter.from_settings()
    new_id = router.insert("records", {"name": "Toto", "classifier": 1})
    rows = router.query(new_id)
    rows.watch(lambda changed: print("re-query", changed))
"""

from __future__ import annotations

from collections.abc import Sequence as SequenceABC
from contextlib import contextmanager
from typing import (
    Any,
    Dict,
    Generator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
    overload,
)

from recordstore.config import Settings, get_settings
from recordstore.domain.contract import (
    ALL_COLUMNS,
    COLUMN_CATEGORY,
    COLUMN_CLASSIFIER,
    COLUMN_MEASURE,
    COLUMN_NAME,
    CONTENT_ITEM_TYPE,
    CONTENT_LIST_TYPE,
    WRITABLE_COLUMNS,
    Classifier,
    is_valid_classifier,
)
from recordstore.domain.identifiers import Collection, Identifier, Item, parse_identifier
from recordstore.domain.models import Record
from recordstore.errors import InvalidField, PersistenceError, UnsupportedOperation
from recordstore.infrastructure.storage import StorageEngine, StorageError
from recordstore.notifications import ChangeCallback, ChangeNotifier, Subscription
from recordstore.utils.logging import get_logger

log = get_logger(__name__)

IdentifierLike = Union[str, Identifier]
Row = Dict[str, Any]

SAMPLE_RECORD: Mapping[str, Any] = {
    COLUMN_NAME: "Toto",
    COLUMN_CATEGORY: "Terrier",
    COLUMN_CLASSIFIER: Classifier.A,
    COLUMN_MEASURE: 7,
}


class QueryResult(SequenceABC):
    """
    Rows returned by ``RecordRouter.query``.

    Behaves as a read-only sequence of row mappings and remembers the
    identifier it was produced for, so a consumer can ask to be told when the
    data behind it changes without rebuilding the identifier.
    """

    def __init__(
        self,
        rows: Sequence[Row],
        identifier: Identifier,
        notifier: ChangeNotifier,
    ) -> None:
        self._rows: Tuple[Row, ...] = tuple(rows)
        self.identifier = identifier
        self._notifier = notifier

    @overload
    def __getitem__(self, index: int) -> Row: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Row]: ...

    def __getitem__(self, index):
        return self._rows[index]

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"QueryResult(identifier={str(self.identifier)!r}, rows={len(self._rows)})"

    def records(self) -> List[Record]:
        """Convert every row into a Record. Requires a full projection."""
        return [Record.from_row(row) for row in self._rows]

    def watch(
        self, callback: ChangeCallback, notify_for_descendants: Optional[bool] = None
    ) -> Subscription:
        """
        Subscribe ``callback`` to changes at this result's identifier.

        A collection result also follows changes made through item identifiers
        unless ``notify_for_descendants`` is given explicitly.
        """
        if notify_for_descendants is None:
            notify_for_descendants = isinstance(self.identifier, Collection)
        return self._notifier.subscribe(
            self.identifier, callback, notify_for_descendants=notify_for_descendants
        )


# -- validation ----------------------------------------------------------------


def _check_name(value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidField(COLUMN_NAME, "a non-empty name is required")


def _check_classifier(value: Any) -> None:
    if not is_valid_classifier(value):
        raise InvalidField(
            COLUMN_CLASSIFIER,
            f"must be one of {[int(c) for c in Classifier]}, got {value!r}",
        )


def _check_measure(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidField(COLUMN_MEASURE, f"must be a non-negative integer, got {value!r}")


_FIELD_CHECKS = (
    (COLUMN_NAME, _check_name),
    (COLUMN_CLASSIFIER, _check_classifier),
    (COLUMN_MEASURE, _check_measure),
)


def _check_known_columns(fields: Mapping[str, Any]) -> None:
    for key in fields:
        if key not in WRITABLE_COLUMNS:
            raise InvalidField(str(key), "unknown or read-only column")


def validate_insert(fields: Mapping[str, Any]) -> None:
    """
    Validate a full record payload.

    ``name`` and ``classifier`` are required, ``measure`` is optional,
    ``category`` is never checked. Rules run in that order and the first
    failure wins.
    """
    if fields.get(COLUMN_NAME) is None:
        raise InvalidField(COLUMN_NAME, "a name is required")
    _check_name(fields[COLUMN_NAME])
    if COLUMN_CLASSIFIER not in fields:
        raise InvalidField(COLUMN_CLASSIFIER, "a classifier is required")
    _check_classifier(fields[COLUMN_CLASSIFIER])
    if COLUMN_MEASURE in fields:
        _check_measure(fields[COLUMN_MEASURE])
    _check_known_columns(fields)


def validate_update(fields: Mapping[str, Any]) -> None:
    """Validate a partial payload: only the fields present are checked."""
    for column, check in _FIELD_CHECKS:
        if column in fields:
            check(fields[column])
    _check_known_columns(fields)


def _to_row(fields: Mapping[str, Any]) -> Row:
    """Plain column values ready for binding."""
    row = dict(fields)
    for column in (COLUMN_CLASSIFIER, COLUMN_MEASURE):
        if column in row:
            row[column] = int(row[column])
    return row


def _resolve_filter(
    identifier: Identifier, where: Optional[str], where_args: Sequence[Any]
) -> Tuple[Optional[str], Tuple[Any, ...]]:
    """
    Resolve the filter for ``identifier``.

    An item's implicit ``id = ?`` filter replaces the caller's filter and its
    arguments; the collection uses the caller's filter as given.
    """
    implicit, implicit_args = identifier.filter()
    if implicit is None:
        return where, tuple(where_args)
    if where:
        log.debug(
            "Caller filter ignored for item identifier",
            extra={"identifier": str(identifier), "where": where},
        )
    return implicit, implicit_args


class RecordRouter:
    """
    Routes CRUD requests on identifiers to the storage engine.

    Parameters
    ----------
    storage : StorageEngine
        Engine that owns the database file.
    notifier : ChangeNotifier | None
        Observer registry told about every successful mutation. A private one
        is created when omitted.
    """

    def __init__(self, storage: StorageEngine, notifier: Optional[ChangeNotifier] = None) -> None:
        self.storage = storage
        self.notifier = notifier if notifier is not None else ChangeNotifier()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RecordRouter":
        """Build a router backed by the database file named in settings."""
        settings = settings or get_settings()
        return cls(StorageEngine(settings.db_path, version=settings.db_version))

    # -- helpers ---------------------------------------------------------------

    @contextmanager
    def _persisting(self, operation: str, identifier: Identifier) -> Generator[None, None, None]:
        try:
            yield
        except StorageError as exc:
            log.exception(
                f"[{operation.upper()} FAILED] {identifier}",
                extra={"operation": operation, "identifier": str(identifier)},
            )
            raise PersistenceError(f"{operation} failed for {identifier}: {exc}") from exc

    @staticmethod
    def _validated(validate, fields: Mapping[str, Any], operation: str) -> None:
        try:
            validate(fields)
        except InvalidField as exc:
            log.info(
                f"Rejected {operation} payload",
                extra={"operation": operation, "field": exc.field, "reason": exc.reason},
            )
            raise

    # -- operations ------------------------------------------------------------

    def query(
        self,
        identifier: IdentifierLike,
        columns: Optional[Sequence[str]] = None,
        where: Optional[str] = None,
        where_args: Sequence[Any] = (),
        order_by: Optional[str] = None,
    ) -> QueryResult:
        """
        Read rows at ``identifier``.

        An item identifier restricts the result to its own row, so at most one
        row comes back. No match is an empty result, not an error.
        """
        parsed = parse_identifier(identifier)
        if columns is not None:
            for column in columns:
                if column not in ALL_COLUMNS:
                    raise InvalidField(str(column), "unknown column")
        selection, selection_args = _resolve_filter(parsed, where, where_args)

        with self._persisting("query", parsed):
            rows = self.storage.query_rows(columns, selection, selection_args, order_by)
        return QueryResult(rows, parsed, self.notifier)

    def insert(self, identifier: IdentifierLike, fields: Mapping[str, Any]) -> Item:
        """
        Insert a new record into the collection and return its item identifier.

        Raises
        ------
        UnsupportedOperation
            If ``identifier`` addresses a single record.
        InvalidField
            If the payload breaks a validation rule.
        PersistenceError
            If the store refuses the row.
        """
        parsed = parse_identifier(identifier)
        if not isinstance(parsed, Collection):
            raise UnsupportedOperation("insert", parsed)
        self._validated(validate_insert, fields, "insert")

        with self._persisting("insert", parsed):
            new_id = self.storage.insert_row(_to_row(fields))

        created = Item(new_id)
        log.debug("Record inserted", extra={"identifier": str(created)})
        self.notifier.notify_change(parsed)
        return created

    def update(
        self,
        identifier: IdentifierLike,
        fields: Mapping[str, Any],
        where: Optional[str] = None,
        where_args: Sequence[Any] = (),
    ) -> int:
        """
        Replace the given fields on every row matched by ``identifier``.

        An empty payload is a no-op that returns 0 without touching the store.
        Observers are told only when at least one row changed.
        """
        parsed = parse_identifier(identifier)
        if not fields:
            return 0
        self._validated(validate_update, fields, "update")
        selection, selection_args = _resolve_filter(parsed, where, where_args)

        with self._persisting("update", parsed):
            count = self.storage.update_rows(_to_row(fields), selection, selection_args)

        log.debug("Records updated", extra={"identifier": str(parsed), "count": count})
        if count > 0:
            self.notifier.notify_change(parsed)
        return count

    def delete(
        self,
        identifier: IdentifierLike,
        where: Optional[str] = None,
        where_args: Sequence[Any] = (),
    ) -> int:
        """Delete rows matched by ``identifier`` and return how many went."""
        parsed = parse_identifier(identifier)
        selection, selection_args = _resolve_filter(parsed, where, where_args)

        with self._persisting("delete", parsed):
            count = self.storage.delete_rows(selection, selection_args)

        log.debug("Records deleted", extra={"identifier": str(parsed), "count": count})
        if count > 0:
            self.notifier.notify_change(parsed)
        return count

    def type_of(self, identifier: IdentifierLike) -> str:
        """Return the list type token for the collection, the item token for an item."""
        parsed = parse_identifier(identifier)
        if isinstance(parsed, Item):
            return CONTENT_ITEM_TYPE
        return CONTENT_LIST_TYPE

    # -- observers -------------------------------------------------------------

    def subscribe(
        self,
        identifier: IdentifierLike,
        callback: ChangeCallback,
        notify_for_descendants: bool = False,
    ) -> Subscription:
        return self.notifier.subscribe(
            identifier, callback, notify_for_descendants=notify_for_descendants
        )

    on_change = subscribe

    def unsubscribe(self, subscription: Subscription) -> None:
        self.notifier.unsubscribe(subscription)

    # -- conveniences ----------------------------------------------------------

    def get(self, record_id: int) -> Optional[Record]:
        rows = self.query(Item(record_id))
        return Record.from_row(rows[0]) if rows else None

    def delete_all(self) -> int:
        """Remove every record."""
        return self.delete(Collection())

    def insert_sample(self) -> Item:
        """Insert the pre-defined sample record."""
        return self.insert(Collection(), SAMPLE_RECORD)


__all__ = [
    "QueryResult",
    "RecordRouter",
    "SAMPLE_RECORD",
    "validate_insert",
    "validate_update",
]
