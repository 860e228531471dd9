"""
Value objects exchanged between records, strategies and executors.

`InsertOptions` is what a persistence strategy hands to an executor's
`new_row()`; it mirrors the knobs a record carries (explicit primary key,
fields identifying the new row) plus how the executor should report success.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

FieldMap = Dict[str, Any]


class ReturnMode(str, Enum):
    """What `new_row()` returns after a successful insert."""

    KEY = "key"
    SUCCESS = "success"


class InsertOptions(BaseModel):
    """
    Options for inserting a new row.
    """

    allow_explicit_key: bool = Field(
        False, description="Write the caller-assigned primary key instead of letting the backend generate one."
    )
    restrict_columns: Optional[List[str]] = Field(
        None, description="Fields that identify the new row when the backend cannot report its key. Never narrows what is written."
    )
    return_mode: ReturnMode = Field(
        ReturnMode.KEY, description="Return the generated key, or only a success flag."
    )

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


__all__ = ["FieldMap", "InsertOptions", "ReturnMode"]
