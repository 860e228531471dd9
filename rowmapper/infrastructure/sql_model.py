"""
PostgreSQL table model: the executor SQL records save through.

`PostgresModel` implements the `SqlExecutor` contract on top of a psycopg
connection pool and hands out records bound to itself:

    users = PostgresModel("users", record_class=User)
    user = users.get_row(5)
    user.set("name", "new")
    user.save()            # UPDATE users SET name = ... WHERE id = 5

Statements written by the strategies use `:name` placeholders; they are
rewritten to psycopg's `%(name)s` style before execution.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Dict, FrozenSet, Generator, List, Optional, Type

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from rowmapper.config import get_settings
from rowmapper.domain.models import FieldMap, InsertOptions, ReturnMode
from rowmapper.domain.record import Item, Record
from rowmapper.infrastructure.db_factory import apply_statement_timeout, get_sync_pool
from rowmapper.strategies.sql import validate_identifier
from rowmapper.utils.logging import get_logger

log = get_logger(__name__)

_NAMED_PARAM_RE = re.compile(r"(?<![:\w]):([A-Za-z_][A-Za-z0-9_]*)")


def to_pyformat(statement: str) -> str:
    """Rewrite `:name` placeholders as `%(name)s`, escaping literal `%`."""
    return _NAMED_PARAM_RE.sub(r"%(\1)s", statement.replace("%", "%%"))


class SqlStatement:
    """
    A statement bound to a model, executed with a parameter mapping.
    """

    def __init__(self, model: "PostgresModel", statement: str) -> None:
        self.model = model
        self.statement = statement
        self._compiled = to_pyformat(statement)

    def execute(self, params: Optional[Dict[str, Any]] = None) -> int:
        """Run the statement and return the affected row count."""
        with self.model.cursor() as cur:
            cur.execute(self._compiled, params or {})
            return cur.rowcount

    def fetchall(self, params: Optional[Dict[str, Any]] = None) -> List[FieldMap]:
        with self.model.cursor(row_factory=dict_row) as cur:
            cur.execute(self._compiled, params or {})
            return list(cur.fetchall())

    def fetchone(self, params: Optional[Dict[str, Any]] = None) -> Optional[FieldMap]:
        with self.model.cursor(row_factory=dict_row) as cur:
            cur.execute(self._compiled, params or {})
            return cur.fetchone()

    def __repr__(self) -> str:
        return f"<SqlStatement {self.statement!r}>"


class PostgresModel:
    """
    A table in PostgreSQL, acting as the parent of the records it returns.

    Parameters
    ----------
    table : str
        Table name (a plain identifier).
    primary_key : str
        Identity column.
    pool : psycopg_pool.ConnectionPool | None
        Pool to execute through; defaults to the shared pool from `db_factory`.
    record_class : type[Record] | None
        Record type produced by `wrap_row()`.
    auto_save : bool | None
        `auto_save` for produced records; defaults to `MAPPER_AUTO_SAVE`.
    """

    record_class: Type[Record] = Item

    def __init__(
        self,
        table: str,
        primary_key: str = "id",
        pool: Any = None,
        record_class: Optional[Type[Record]] = None,
        auto_save: Optional[bool] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.table = validate_identifier(table)
        self.primary_key = validate_identifier(primary_key)
        self._pool = pool
        if record_class is not None:
            self.record_class = record_class
        self.auto_save = settings.mapper_auto_save if auto_save is None else auto_save
        self.statement_timeout_ms = (
            settings.db_statement_timeout_ms if statement_timeout_ms is None else statement_timeout_ms
        )
        self._columns: Optional[FrozenSet[str]] = None

    @property
    def pool(self) -> Any:
        if self._pool is None:
            self._pool = get_sync_pool()
        return self._pool

    @contextmanager
    def cursor(self, row_factory: Any = None) -> Generator[psycopg.Cursor, None, None]:
        """Borrow a pooled connection; the transaction commits when the block exits."""
        with self.pool.connection() as conn:
            with conn.cursor(row_factory=row_factory) as cur:
                apply_statement_timeout(cur, self.statement_timeout_ms)
                yield cur

    # ------------------------------------------------------------------ #
    # executor contract
    # ------------------------------------------------------------------ #
    def query(self, statement: str) -> SqlStatement:
        return SqlStatement(self, statement)

    def new_row(self, data: FieldMap, options: InsertOptions) -> Any:
        """
        Insert a row and return its primary key (or a success flag).

        Without `allow_explicit_key` the primary key column is left for the
        database to generate. Every other field in `data` is written;
        `restrict_columns` only names the fields that identify the new row, and
        `RETURNING` already reports its key.
        """
        columns = [c for c in data if c != self.primary_key]
        if options.allow_explicit_key:
            columns.append(self.primary_key)
        values = {c: data.get(c) for c in columns}

        if columns:
            stmt = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING {}").format(
                sql.Identifier(self.table),
                sql.SQL(", ").join(sql.Identifier(validate_identifier(c)) for c in columns),
                sql.SQL(", ").join(sql.Placeholder(c) for c in columns),
                sql.Identifier(self.primary_key),
            )
        else:
            stmt = sql.SQL("INSERT INTO {} DEFAULT VALUES RETURNING {}").format(
                sql.Identifier(self.table), sql.Identifier(self.primary_key)
            )

        with self.cursor() as cur:
            cur.execute(stmt, values)
            row = cur.fetchone()
            inserted = cur.rowcount

        log.debug(
            f"Inserted into {self.table}",
            extra={
                "table": self.table,
                "columns": columns,
                "lookup": options.restrict_columns,
                "rows": inserted,
            },
        )
        if options.return_mode is ReturnMode.SUCCESS:
            return inserted > 0
        return row[0] if row else None

    def is_known(self, name: str) -> bool:
        return name in self.columns()

    def columns(self) -> FrozenSet[str]:
        """Column names of the table, read once from information_schema."""
        if self._columns is None:
            rows = self.query(
                "SELECT column_name FROM information_schema.columns "
                "WHERE table_schema = current_schema() AND table_name = :table"
            ).fetchall({"table": self.table})
            self._columns = frozenset(r["column_name"] for r in rows)
        return self._columns

    # ------------------------------------------------------------------ #
    # record factories
    # ------------------------------------------------------------------ #
    def wrap_row(self, data: FieldMap) -> Record:
        return self.record_class(
            self,
            data=data,
            table=self.table,
            primary_key=self.primary_key,
            auto_save=self.auto_save,
        )

    def new_record(self, data: Optional[FieldMap] = None) -> Record:
        """A record not yet stored; its first save inserts it."""
        return self.wrap_row(dict(data or {}))

    def get_row(self, row_id: Any) -> Optional[Record]:
        return self.get_row_by_field(self.primary_key, row_id)

    def get_row_by_field(self, field: str, value: Any) -> Optional[Record]:
        """
        First row whose `field` equals `value`.

        Uses the real column name; record aliases are not known here.
        """
        field = validate_identifier(field)
        row = self.query(f"SELECT * FROM {self.table} WHERE {field} = :value LIMIT 1").fetchone(
            {"value": value}
        )
        return self.wrap_row(row) if row is not None else None

    def __repr__(self) -> str:
        return f"<PostgresModel {self.table} pk={self.primary_key}>"


__all__ = ["PostgresModel", "SqlStatement", "to_pyformat"]
