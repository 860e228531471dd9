"""
Domain package for rowmapper.

Exports the record types, field hooks, the resolver and the value objects
shared with executors.
"""

from rowmapper.domain.batch import BatchController, BatchState
from rowmapper.domain.models import FieldMap, InsertOptions, ReturnMode
from rowmapper.domain.record import (
    DEFINED,
    MISSING,
    DocumentRecord,
    Item,
    Record,
    accessor,
    mutator,
)
from rowmapper.domain.resolver import FieldResolver

__all__ = [
    "BatchController",
    "BatchState",
    "DEFINED",
    "DocumentRecord",
    "FieldMap",
    "FieldResolver",
    "InsertOptions",
    "Item",
    "MISSING",
    "Record",
    "ReturnMode",
    "accessor",
    "mutator",
]
