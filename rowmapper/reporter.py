from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from rowmapper.domain.record import Record


def build_record_table(record: Record) -> Table:
    """
    Render a record's fields as a two-column table.

    Dirty fields are marked with `*` and show the value they had before the
    pending change.
    """
    title = f"{record.table or type(record).__name__} {record.primary_key}={record.primary_key_value}"
    table = Table(title=title, box=box.SIMPLE_HEAVY, show_lines=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")
    table.add_column("Was", style="dim", overflow="fold")

    modified = record.modified
    for field, value in record.to_dict().items():
        marker = "*" if field in modified else ""
        was = repr(modified[field]) if field in modified else ""
        style = "bold" if field == record.primary_key else None
        table.add_row(f"{field}{marker}", repr(value), was, style=style)
    return table


def print_record(record: Record, console: Optional[Console] = None) -> None:
    (console or Console()).print(build_record_table(record))


__all__ = ["build_record_table", "print_record"]
