"""
Error kinds raised by the mapper.

Backend errors (psycopg exceptions, connection failures) are never wrapped:
they propagate unchanged from the executor to the caller.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional


class MapperError(Exception):
    """Base class for every error raised by rowmapper itself."""


class UnknownFieldError(MapperError, KeyError):
    """
    Strict field resolution failed.

    Carries the attempted name and a snapshot of the record's data so the
    failure can be diagnosed without the record at hand.
    """

    def __init__(self, field: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.field = field
        self.data = dict(data or {})
        super().__init__(field)

    def __str__(self) -> str:
        return f"Unknown field '{self.field}' in {json.dumps(self.data, default=str)}"


class ImmutablePrimaryKeyError(MapperError):
    """Attempted to overwrite or remove a primary key the caller does not own."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Cannot overwrite primary key '{field}'.")


class InvalidConstructionError(MapperError, ValueError):
    """A record was built without its parent model or storage location."""


class BatchStateError(MapperError):
    """Batch operation requested in the wrong state (nested start, end while idle)."""


class InvalidIdentifierError(MapperError, ValueError):
    """A table or field name cannot be used as an SQL identifier."""


class UnsupportedUpdateError(MapperError, ValueError):
    """A document update used an operator the store does not implement."""


__all__ = [
    "MapperError",
    "UnknownFieldError",
    "ImmutablePrimaryKeyError",
    "InvalidConstructionError",
    "BatchStateError",
    "InvalidIdentifierError",
    "UnsupportedUpdateError",
]
