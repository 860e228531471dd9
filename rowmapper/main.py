from __future__ import annotations

import sys
from typing import List

import typer

from rowmapper.config import get_settings
from rowmapper.infrastructure.sql_model import PostgresModel
from rowmapper.reporter import print_record
from rowmapper.utils.logging import configure_logging

app = typer.Typer(help="rowmapper CLI: inspect and edit table rows through records.")


def _load(table: str, row_id: str, pk: str):
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    model = PostgresModel(table, primary_key=pk, auto_save=False)
    record = model.get_row(row_id)
    if record is None:
        typer.echo(f"No row in '{table}' with {pk}={row_id}.", err=True)
        raise typer.Exit(code=1)
    return record


def _parse_assignment(assignment: str) -> tuple[str, str]:
    field, sep, value = assignment.partition("=")
    if not sep or not field:
        raise typer.BadParameter(f"Expected FIELD=VALUE, got '{assignment}'")
    return field, value


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"env={settings.app_env} log={settings.log_level} "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size}) "
        f"auto_save={settings.mapper_auto_save}"
    )


@app.command()
def show(
    table: str = typer.Argument(..., help="Table to read from."),
    row_id: str = typer.Argument(..., help="Primary key value."),
    pk: str = typer.Option("id", "--pk", help="Primary key column."),
) -> None:
    """
    Print one row's fields.
    """
    print_record(_load(table, row_id, pk))


@app.command()
def update(
    table: str = typer.Argument(..., help="Table to update."),
    row_id: str = typer.Argument(..., help="Primary key value."),
    assignments: List[str] = typer.Argument(..., help="FIELD=VALUE pairs."),
    pk: str = typer.Option("id", "--pk", help="Primary key column."),
) -> None:
    """
    Set one or more fields and save them in a single UPDATE.
    """
    pairs = [_parse_assignment(a) for a in assignments]
    record = _load(table, row_id, pk)
    record.auto_save = True
    with record.batch():
        for field, value in pairs:
            record.set(field, value)
    print_record(record)


@app.command()
def delete(
    table: str = typer.Argument(..., help="Table to delete from."),
    row_id: str = typer.Argument(..., help="Primary key value."),
    pk: str = typer.Option("id", "--pk", help="Primary key column."),
) -> None:
    """
    Delete one row.
    """
    record = _load(table, row_id, pk)
    record.delete()
    typer.echo(f"Deleted {table} {pk}={row_id}.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
