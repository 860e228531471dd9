"""
Persistence strategies for rowmapper.

This module re-exports the abstract interfaces, the executor contracts and the
concrete strategies so downstream code can import from `rowmapper.strategies`
directly.
"""

from rowmapper.strategies.abstract import (
    AbstractPersistenceStrategy,
    DocumentStore,
    PersistenceStrategy,
    PreparedStatement,
    SqlExecutor,
)
from rowmapper.strategies.document import DocumentPersistence
from rowmapper.strategies.sql import SqlPersistence

__all__ = [
    # Abstracts
    "AbstractPersistenceStrategy",
    "PersistenceStrategy",
    # Executor contracts
    "DocumentStore",
    "PreparedStatement",
    "SqlExecutor",
    # Concrete strategies
    "DocumentPersistence",
    "SqlPersistence",
]
