from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from recordstore.config import get_settings
from recordstore.domain.contract import (
    COLUMN_CATEGORY,
    COLUMN_CLASSIFIER,
    COLUMN_ID,
    COLUMN_MEASURE,
    COLUMN_NAME,
    Classifier,
)
from recordstore.domain.identifiers import Collection, Item
from recordstore.domain.models import Record
from recordstore.errors import PersistenceError, RecordStoreError
from recordstore.infrastructure.storage import StorageEngine
from recordstore.router import RecordRouter
from recordstore.utils.logging import configure_logging

app = typer.Typer(help="Record store CLI.", no_args_is_help=True)
console = Console()

EXIT_PERSISTENCE = 1
EXIT_REJECTED = 2
EXIT_NOT_FOUND = 3


@app.callback()
def _setup(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Database file (default from RECORDSTORE_DB_PATH).",
    ),
) -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    storage = StorageEngine(db or settings.db_path, version=settings.db_version)
    ctx.obj = RecordRouter(storage)


def _router(ctx: typer.Context) -> RecordRouter:
    return ctx.obj


def _fail(exc: RecordStoreError) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    code = EXIT_PERSISTENCE if isinstance(exc, PersistenceError) else EXIT_REJECTED
    raise typer.Exit(code=code)


def _records_table(records: list[Record]) -> Table:
    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Classifier")
    table.add_column("Measure", justify="right")
    for record in records:
        table.add_row(
            str(record.id),
            record.name,
            record.display_category,
            record.classifier.name,
            str(record.measure),
        )
    return table


@app.command()
def info(ctx: typer.Context) -> None:
    """
    Show the database file and its schema version.
    """
    router = _router(ctx)
    try:
        stored = router.storage.stored_version()
        count = len(router.query(Collection(), columns=[COLUMN_ID]))
    except RecordStoreError as exc:
        _fail(exc)
    typer.echo(f"DB={router.storage.path} | version={stored} | records={count}")


@app.command("list")
def list_records(
    ctx: typer.Context,
    order_by: str = typer.Option(COLUMN_ID, "--order-by", "-o", help="Sort column."),
) -> None:
    """
    List every record.
    """
    if order_by not in (COLUMN_ID, COLUMN_NAME, COLUMN_CATEGORY, COLUMN_CLASSIFIER, COLUMN_MEASURE):
        typer.echo(f"Error: cannot sort by {order_by!r}", err=True)
        raise typer.Exit(code=EXIT_REJECTED)
    try:
        rows = _router(ctx).query(Collection(), order_by=order_by)
    except RecordStoreError as exc:
        _fail(exc)
    if not rows:
        typer.echo("No records.")
        return
    console.print(_records_table(rows.records()))


@app.command()
def show(ctx: typer.Context, record_id: int = typer.Argument(..., min=0)) -> None:
    """
    Show one record.
    """
    try:
        record = _router(ctx).get(record_id)
    except RecordStoreError as exc:
        _fail(exc)
    if record is None:
        typer.echo(f"No record with id {record_id}.", err=True)
        raise typer.Exit(code=EXIT_NOT_FOUND)
    console.print(_records_table([record]))


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n"),
    classifier: int = typer.Option(int(Classifier.UNKNOWN), "--classifier", "-c"),
    category: Optional[str] = typer.Option(None, "--category"),
    measure: Optional[int] = typer.Option(None, "--measure", "-m"),
) -> None:
    """
    Insert a record and print its identifier.
    """
    fields: Dict[str, Any] = {COLUMN_NAME: name, COLUMN_CLASSIFIER: classifier}
    if category is not None:
        fields[COLUMN_CATEGORY] = category
    if measure is not None:
        fields[COLUMN_MEASURE] = measure
    try:
        created = _router(ctx).insert(Collection(), fields)
    except RecordStoreError as exc:
        _fail(exc)
    typer.echo(str(created))


@app.command()
def update(
    ctx: typer.Context,
    record_id: int = typer.Argument(..., min=0),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    classifier: Optional[int] = typer.Option(None, "--classifier", "-c"),
    category: Optional[str] = typer.Option(None, "--category"),
    measure: Optional[int] = typer.Option(None, "--measure", "-m"),
) -> None:
    """
    Change the given fields of one record.
    """
    candidates = {
        COLUMN_NAME: name,
        COLUMN_CLASSIFIER: classifier,
        COLUMN_CATEGORY: category,
        COLUMN_MEASURE: measure,
    }
    fields = {key: value for key, value in candidates.items() if value is not None}
    try:
        count = _router(ctx).update(Item(record_id), fields)
    except RecordStoreError as exc:
        _fail(exc)
    typer.echo(f"Updated {count} record(s).")


@app.command()
def delete(ctx: typer.Context, record_id: int = typer.Argument(..., min=0)) -> None:
    """
    Delete one record.
    """
    try:
        count = _router(ctx).delete(Item(record_id))
    except RecordStoreError as exc:
        _fail(exc)
    typer.echo(f"Deleted {count} record(s).")


@app.command("delete-all")
def delete_all(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Delete every record.
    """
    if not yes:
        typer.confirm("Delete all records?", abort=True)
    try:
        count = _router(ctx).delete_all()
    except RecordStoreError as exc:
        _fail(exc)
    typer.echo(f"Deleted {count} record(s).")


@app.command("insert-sample")
def insert_sample(ctx: typer.Context) -> None:
    """
    Insert the pre-defined sample record.
    """
    try:
        created = _router(ctx).insert_sample()
    except RecordStoreError as exc:
        _fail(exc)
    typer.echo(str(created))


@app.command("type")
def type_of(ctx: typer.Context, identifier: str) -> None:
    """
    Print the type token of an identifier.
    """
    try:
        token = _router(ctx).type_of(identifier)
    except RecordStoreError as exc:
        _fail(exc)
    typer.echo(token)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
