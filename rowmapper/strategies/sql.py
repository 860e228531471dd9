"""
Relational persistence: parameterised UPDATE of dirty fields, INSERT of the
full row through the model's `new_row()`.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from rowmapper.domain.models import InsertOptions, ReturnMode
from rowmapper.errors import InvalidIdentifierError
from rowmapper.strategies.abstract import AbstractPersistenceStrategy
from rowmapper.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from rowmapper.domain.record import Record

log = get_logger(__name__)

_SAFE_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_identifier(name: str) -> str:
    """Validate a table or column name before it is spliced into SQL text."""
    if not isinstance(name, str) or not _SAFE_IDENTIFIER_RE.match(name):
        raise InvalidIdentifierError(f"Invalid SQL identifier: {name!r}")
    return name


def build_update_sql(table: str, pk: str, fields: list[str]) -> str:
    assignments = ", ".join(f"{validate_identifier(f)} = :{f}" for f in fields)
    return f"UPDATE {validate_identifier(table)} SET {assignments} WHERE {validate_identifier(pk)} = :{pk}"


def build_delete_sql(table: str, pk: str) -> str:
    return f"DELETE FROM {validate_identifier(table)} WHERE {validate_identifier(pk)} = :{pk}"


class SqlPersistence(AbstractPersistenceStrategy):
    """
    Save records through an `SqlExecutor` (the record's parent model).
    """

    name: str = "sql"
    requires_table: bool = True

    def update(self, record: "Record", pk: str, **options: Any) -> Any:
        modified = record.modified
        if not modified:
            log.debug("Nothing to update", extra={"table": record.table, "pk": record.primary_key_value})
            return None

        data = record.to_dict()
        fields = [f for f in modified if f != pk]
        params = {f: data.get(f) for f in fields}
        params[pk] = data[pk]

        sql = build_update_sql(record.table, pk, fields)  # type: ignore[arg-type]
        log.debug(
            f"UPDATE {record.table}",
            extra={"table": record.table, "pk": data[pk], "fields": fields},
        )
        record.parent.query(sql).execute(params)
        record._mark_clean()
        return True

    def insert(self, record: "Record", pk: str, **options: Any) -> Any:
        data = record.to_dict()
        manual_key = not record.auto_generated_pk
        insert_options = InsertOptions(
            allow_explicit_key=manual_key and data.get(pk) is not None,
            restrict_columns=record.new_query_fields,
            return_mode=ReturnMode.KEY,
        )

        log.debug(
            f"INSERT {record.table}",
            extra={"table": record.table, "fields": sorted(data), "explicit_key": insert_options.allow_explicit_key},
        )
        new_pk = record.parent.new_row(data, insert_options)
        record._mark_clean()

        if manual_key and data.get(pk) is not None:
            return True
        if new_pk:
            record._assign_generated_key(new_pk)
            return True
        return False

    def delete(self, record: "Record") -> Any:
        pk = record.primary_key
        sql = build_delete_sql(record.table, pk)  # type: ignore[arg-type]
        log.debug(f"DELETE {record.table}", extra={"table": record.table, "pk": record.primary_key_value})
        return record.parent.query(sql).execute({pk: record.primary_key_value})


__all__ = ["SqlPersistence", "build_delete_sql", "build_update_sql", "validate_identifier"]
