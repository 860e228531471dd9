"""
Document collection stored as JSONB in PostgreSQL.

Each collection is a table `(_id text primary key, data jsonb)`. The store
implements the `DocumentStore` contract with Mongo-like save semantics:
`save(document)` upserts the whole document and assigns a generated `_id`
into the mapping when it has none; `save(id, {"$set": ..., "$unset": ...})`
patches one document in place.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Collection, Dict, Generator, Optional, Type

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from rowmapper.config import get_settings
from rowmapper.domain.models import FieldMap
from rowmapper.domain.record import DocumentRecord
from rowmapper.errors import UnsupportedUpdateError
from rowmapper.infrastructure.db_factory import apply_statement_timeout, get_sync_pool
from rowmapper.strategies.sql import validate_identifier
from rowmapper.utils.logging import get_logger

log = get_logger(__name__)

ID_FIELD = "_id"
SUPPORTED_OPERATORS = frozenset({"$set", "$unset"})


class PostgresDocumentStore:
    """
    A named document collection, acting as the parent of its records.
    """

    record_class: Type[DocumentRecord] = DocumentRecord

    def __init__(
        self,
        collection: str,
        pool: Any = None,
        known_fields: Collection[str] = (),
        record_class: Optional[Type[DocumentRecord]] = None,
        auto_save: Optional[bool] = None,
    ) -> None:
        settings = get_settings()
        self.collection = validate_identifier(collection)
        self.known_fields = frozenset(known_fields)
        self._pool = pool
        if record_class is not None:
            self.record_class = record_class
        self.auto_save = settings.mapper_auto_save if auto_save is None else auto_save
        self.statement_timeout_ms = settings.db_statement_timeout_ms

    @property
    def pool(self) -> Any:
        if self._pool is None:
            self._pool = get_sync_pool()
        return self._pool

    @contextmanager
    def cursor(self, row_factory: Any = None) -> Generator[psycopg.Cursor, None, None]:
        with self.pool.connection() as conn:
            with conn.cursor(row_factory=row_factory) as cur:
                apply_statement_timeout(cur, self.statement_timeout_ms)
                yield cur

    def ensure_collection(self) -> None:
        """Create the backing table if it does not exist."""
        stmt = sql.SQL(
            "CREATE TABLE IF NOT EXISTS {} (_id text PRIMARY KEY, data jsonb NOT NULL DEFAULT '{{}}'::jsonb)"
        ).format(sql.Identifier(self.collection))
        with self.cursor() as cur:
            cur.execute(stmt)

    # ------------------------------------------------------------------ #
    # executor contract
    # ------------------------------------------------------------------ #
    def save(self, id_or_document: Any, update: Optional[Dict[str, Any]] = None) -> bool:
        if update is None:
            return self._upsert(id_or_document)
        return self._update(id_or_document, update)

    def _upsert(self, document: Dict[str, Any]) -> bool:
        if document.get(ID_FIELD) is None:
            document[ID_FIELD] = uuid.uuid4().hex
        body = {k: v for k, v in document.items() if k != ID_FIELD}
        stmt = sql.SQL(
            "INSERT INTO {} (_id, data) VALUES (%(id)s, %(data)s) "
            "ON CONFLICT (_id) DO UPDATE SET data = EXCLUDED.data"
        ).format(sql.Identifier(self.collection))
        with self.cursor() as cur:
            cur.execute(stmt, {"id": str(document[ID_FIELD]), "data": Jsonb(body)})
            saved = cur.rowcount > 0
        log.debug(
            f"Saved document in {self.collection}",
            extra={"collection": self.collection, "pk": document[ID_FIELD]},
        )
        return saved

    def _update(self, document_id: Any, update: Dict[str, Any]) -> bool:
        unsupported = set(update) - SUPPORTED_OPERATORS
        if unsupported:
            raise UnsupportedUpdateError(
                f"Unsupported update operator(s): {', '.join(sorted(unsupported))}"
            )
        changes = dict(update.get("$set") or {})
        removals = [k for k in (update.get("$unset") or {}) if k not in changes]
        stmt = sql.SQL(
            "UPDATE {} SET data = (data || %(changes)s) - %(removals)s::text[] WHERE _id = %(id)s"
        ).format(sql.Identifier(self.collection))
        with self.cursor() as cur:
            cur.execute(
                stmt, {"changes": Jsonb(changes), "removals": removals, "id": str(document_id)}
            )
            updated = cur.rowcount > 0
        log.debug(
            f"Updated document in {self.collection}",
            extra={"collection": self.collection, "pk": document_id, "fields": sorted(changes)},
        )
        return updated

    def delete_by_id(self, document_id: Any) -> bool:
        stmt = sql.SQL("DELETE FROM {} WHERE _id = %(id)s").format(sql.Identifier(self.collection))
        with self.cursor() as cur:
            cur.execute(stmt, {"id": str(document_id)})
            return cur.rowcount > 0

    def is_known(self, name: str) -> bool:
        return name in self.known_fields

    # ------------------------------------------------------------------ #
    # record factories
    # ------------------------------------------------------------------ #
    def wrap_document(self, document: FieldMap) -> DocumentRecord:
        return self.record_class(self, data=document, auto_save=self.auto_save)

    def new_record(self, data: Optional[FieldMap] = None) -> DocumentRecord:
        return self.wrap_document(dict(data or {}))

    def find_by_id(self, document_id: Any) -> Optional[DocumentRecord]:
        stmt = sql.SQL("SELECT _id, data FROM {} WHERE _id = %(id)s").format(
            sql.Identifier(self.collection)
        )
        with self.cursor(row_factory=dict_row) as cur:
            cur.execute(stmt, {"id": str(document_id)})
            row = cur.fetchone()
        if row is None:
            return None
        return self.wrap_document({ID_FIELD: row["_id"], **(row["data"] or {})})

    def __repr__(self) -> str:
        return f"<PostgresDocumentStore {self.collection}>"


__all__ = ["PostgresDocumentStore", "SUPPORTED_OPERATORS"]
