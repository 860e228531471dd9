"""
Infrastructure package for rowmapper.

Centralizes database connectivity (pooling, connection factory) and the
PostgreSQL-backed executors records save through. Keep this layer focused on
I/O and resource management, decoupled from record/strategy logic.
"""

from rowmapper.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)
from rowmapper.infrastructure.document_store import PostgresDocumentStore
from rowmapper.infrastructure.sql_model import PostgresModel, SqlStatement

__all__ = [
    "PoolManager",
    "PostgresDocumentStore",
    "PostgresModel",
    "SqlStatement",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
