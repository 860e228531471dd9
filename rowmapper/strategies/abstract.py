"""
Abstract persistence interfaces and executor contracts.

A persistence strategy decides between INSERT and UPDATE for a record and
talks to the record's parent, the executor. Concrete strategies (SQL,
document store) implement `PersistenceStrategy`; executors implement
`SqlExecutor` or `DocumentStore` so that any model layer, a test fake
included, can sit behind a record.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, runtime_checkable

from rowmapper.domain.models import FieldMap, InsertOptions

if TYPE_CHECKING:  # pragma: no cover
    from rowmapper.domain.record import Record


@runtime_checkable
class PreparedStatement(Protocol):
    """A parameterised statement using `:name` placeholders."""

    def execute(self, params: Dict[str, Any]) -> Optional[int]:
        """Run the statement; may return the affected row count."""
        ...


@runtime_checkable
class SqlExecutor(Protocol):
    """
    Relational model a record saves through.
    """

    def query(self, sql: str) -> PreparedStatement:
        ...

    def new_row(self, data: FieldMap, options: InsertOptions) -> Any:
        """
        Insert `data` and return the generated key, or a success flag when
        `options.return_mode` is `ReturnMode.SUCCESS`.
        """
        ...

    def is_known(self, name: str) -> bool:
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """
    Document collection a record saves through.

    `save(document)` inserts and assigns the generated `_id` into the passed
    mapping; `save(id, update)` applies an update spec such as
    `{"$set": {...}}` to the document with that id.
    """

    def save(self, id_or_document: Any, update: Optional[Dict[str, Any]] = None) -> bool:
        ...

    def delete_by_id(self, document_id: Any) -> bool:
        ...

    def is_known(self, name: str) -> bool:
        ...


@runtime_checkable
class PersistenceStrategy(Protocol):
    """
    Common interface every persistence strategy implements.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    requires_table : bool
        Whether records using this strategy must be built with a table name.
    """

    name: str
    requires_table: bool

    def save(self, record: "Record", **options: Any) -> Any:
        ...

    def delete(self, record: "Record") -> Any:
        ...


class AbstractPersistenceStrategy(abc.ABC):
    """
    ABC helper for class-based strategies.

    Implements the INSERT/UPDATE decision; subclasses supply the two paths
    and `delete`.
    """

    name: str
    requires_table: bool = False

    def save(self, record: "Record", **options: Any) -> Any:
        """
        Update when the primary key is present and unmodified, else insert.
        """
        pk = options.pop("primary_key", None) or record.primary_key
        data = record.to_dict()
        if data.get(pk) is not None and pk not in record.modified:
            return self.update(record, pk, **options)
        return self.insert(record, pk, **options)

    @abc.abstractmethod
    def update(self, record: "Record", pk: str, **options: Any) -> Any:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def insert(self, record: "Record", pk: str, **options: Any) -> Any:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, record: "Record") -> Any:  # pragma: no cover - interface only
        raise NotImplementedError


__all__ = [
    "AbstractPersistenceStrategy",
    "DocumentStore",
    "PersistenceStrategy",
    "PreparedStatement",
    "SqlExecutor",
]
