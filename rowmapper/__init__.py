"""
rowmapper - active-record style row objects for relational and document stores.

This package binds in-memory records to a backend executor:

- Field aliasing and virtual (computed) fields
- Dirty-field tracking with one level of undo
- Batches that defer auto-save across multi-field edits
- INSERT vs UPDATE persistence with auto-generated or caller-assigned keys
- PostgreSQL table models and JSONB document collections as executors

Importing the package does not open any database connection; the pool is
created on first use by the infrastructure models.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports. The domain package must load before the strategies.
from rowmapper.domain import (
    DocumentRecord,
    FieldResolver,
    InsertOptions,
    Item,
    Record,
    ReturnMode,
    accessor,
    mutator,
)
from rowmapper.config import Settings, get_settings
from rowmapper.errors import (
    BatchStateError,
    ImmutablePrimaryKeyError,
    InvalidConstructionError,
    InvalidIdentifierError,
    MapperError,
    UnknownFieldError,
    UnsupportedUpdateError,
)
from rowmapper.strategies import (
    AbstractPersistenceStrategy,
    DocumentPersistence,
    DocumentStore,
    PersistenceStrategy,
    SqlExecutor,
    SqlPersistence,
)
from rowmapper.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Records
    "DocumentRecord",
    "FieldResolver",
    "Item",
    "Record",
    "accessor",
    "mutator",
    # Executor contracts and options
    "DocumentStore",
    "InsertOptions",
    "ReturnMode",
    "SqlExecutor",
    # Strategies
    "AbstractPersistenceStrategy",
    "DocumentPersistence",
    "PersistenceStrategy",
    "SqlPersistence",
    # Errors
    "BatchStateError",
    "ImmutablePrimaryKeyError",
    "InvalidConstructionError",
    "InvalidIdentifierError",
    "MapperError",
    "UnknownFieldError",
    "UnsupportedUpdateError",
    # Configuration
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
]
