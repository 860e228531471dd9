"""
Pytest configuration for rowmapper.

Provides fixtures for:
- In-memory executors (SQL model, document store) that record every call
- Fake psycopg pools for exercising the Postgres-backed executors offline
- Database connection management for integration tests
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple

import psycopg
import pytest

from rowmapper.config import Settings
from rowmapper.domain.models import FieldMap, InsertOptions
from rowmapper.infrastructure.db_factory import get_sync_connection


# --------------------------------------------------------------------------- #
# in-memory executors
# --------------------------------------------------------------------------- #
class FakeStatement:
    def __init__(self, model: "FakeModel", sql: str) -> None:
        self.model = model
        self.sql = sql

    def execute(self, params: Dict[str, Any]) -> int:
        if self.model.error is not None:
            raise self.model.error
        self.model.executed.append((self.sql, dict(params)))
        return 1


class FakeModel:
    """SqlExecutor double: records statements and inserts."""

    def __init__(self, known: Tuple[str, ...] = (), next_key: Any = 100) -> None:
        self.known = set(known)
        self.next_key = next_key
        self.executed: List[Tuple[str, Dict[str, Any]]] = []
        self.inserted: List[Tuple[FieldMap, InsertOptions]] = []
        self.error: Optional[Exception] = None

    def query(self, sql: str) -> FakeStatement:
        return FakeStatement(self, sql)

    def new_row(self, data: FieldMap, options: InsertOptions) -> Any:
        if self.error is not None:
            raise self.error
        self.inserted.append((dict(data), options))
        return self.next_key

    def is_known(self, name: str) -> bool:
        return name in self.known

    @property
    def calls(self) -> int:
        return len(self.executed) + len(self.inserted)


class FakeDocumentStore:
    """DocumentStore double: assigns ids like a Mongo driver and records calls."""

    def __init__(self, known: Tuple[str, ...] = (), result: bool = True) -> None:
        self.known = set(known)
        self.result = result
        self.calls: List[Tuple[Any, ...]] = []
        self._counter = 0

    def save(self, id_or_document: Any, update: Optional[Dict[str, Any]] = None) -> bool:
        if update is None:
            if id_or_document.get("_id") is None and self.result:
                self._counter += 1
                id_or_document["_id"] = f"doc-{self._counter}"
            self.calls.append(("insert", dict(id_or_document)))
        else:
            self.calls.append(("update", id_or_document, update))
        return self.result

    def delete_by_id(self, document_id: Any) -> bool:
        self.calls.append(("delete", document_id))
        return True

    def is_known(self, name: str) -> bool:
        return name in self.known


@pytest.fixture
def model() -> FakeModel:
    return FakeModel(known=("username", "first_name", "last_name", "email", "name"))


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


# --------------------------------------------------------------------------- #
# fake psycopg pool
# --------------------------------------------------------------------------- #
class FakeCursor:
    def __init__(self, pool: "FakePool", row_factory: Any = None) -> None:
        self.pool = pool
        self.row_factory = row_factory
        self.rowcount = -1

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb

    def execute(self, query: Any, params: Any = None) -> None:
        self.pool.executed.append((query, params))
        self.rowcount = self.pool.rowcount

    def fetchone(self) -> Any:
        return self.pool.rows[0] if self.pool.rows else None

    def fetchall(self) -> List[Any]:
        return list(self.pool.rows)


class FakeConnection:
    def __init__(self, pool: "FakePool") -> None:
        self.pool = pool

    def cursor(self, row_factory: Any = None) -> FakeCursor:
        return FakeCursor(self.pool, row_factory=row_factory)


class _FakeConnectionContext:
    def __init__(self, pool: "FakePool") -> None:
        self.pool = pool

    def __enter__(self) -> FakeConnection:
        self.pool.checkouts += 1
        return FakeConnection(self.pool)

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb


class FakePool:
    """Stands in for psycopg_pool.ConnectionPool; every cursor shares `rows`."""

    def __init__(self, rows: Optional[List[Any]] = None, rowcount: int = 1) -> None:
        self.rows = list(rows or [])
        self.rowcount = rowcount
        self.executed: List[Tuple[Any, Any]] = []
        self.checkouts = 0

    def connection(self) -> _FakeConnectionContext:
        return _FakeConnectionContext(self)


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


# --------------------------------------------------------------------------- #
# integration database
# --------------------------------------------------------------------------- #
@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "rowmapper"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection(test_dsn: str) -> Generator[psycopg.Connection, None, None]:
    """
    Session-scoped connection for integration tests; skips when unreachable.
    """
    try:
        conn = psycopg.connect(test_dsn, connect_timeout=5)
    except psycopg.OperationalError:
        pytest.skip("Database not available for integration tests")
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture
def clean_tables(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the test tables before and after each test.
    """
    statement = "TRUNCATE TABLE public.users, public.settings, public.notes RESTART IDENTITY;"
    with db_connection.cursor() as cur:
        cur.execute(statement)
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute(statement)
    db_connection.commit()


@pytest.fixture
def db_pool(test_dsn: str, clean_tables) -> Generator[Any, None, None]:
    from psycopg_pool import ConnectionPool

    # Fail fast with the retrying factory before opening a pool.
    get_sync_connection(test_dsn).close()
    pool = ConnectionPool(conninfo=test_dsn, min_size=1, max_size=2, open=True)
    try:
        yield pool
    finally:
        pool.close()
