"""
Batch controller: suspend auto-save across a multi-field edit.

    record.start_batch()
    record.set("a", 1)
    record.set("b", 2)
    record.end_batch()      # one save if auto_save was on

`cancel_batch()` calls the record's `undo()`, which reverts every tracked
modification, including ones made before the batch started.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

from rowmapper.errors import BatchStateError

if TYPE_CHECKING:  # pragma: no cover
    from rowmapper.domain.record import Record


class BatchState(str, Enum):
    IDLE = "idle"
    IN_BATCH = "in_batch"


class BatchController:
    """Idle -> InBatch -> Idle state machine over one record."""

    def __init__(self, record: "Record") -> None:
        self._record = record
        self.state = BatchState.IDLE
        self.saved_auto_save: Optional[bool] = None

    @property
    def active(self) -> bool:
        return self.state is BatchState.IN_BATCH

    def start(self) -> None:
        if self.active:
            raise BatchStateError("A batch is already open on this record; nested batches are not supported")
        self.saved_auto_save = self._record.auto_save
        self._record.auto_save = False
        self.state = BatchState.IN_BATCH

    def end(self) -> None:
        self._close("end")
        if self._record.auto_save:
            self._record.save()

    def cancel(self) -> None:
        self._require_open("cancel")
        self._record.undo()
        self._close("cancel")

    def _require_open(self, action: str) -> None:
        if not self.active:
            raise BatchStateError(f"Cannot {action} a batch: no batch is open")

    def _close(self, action: str) -> None:
        self._require_open(action)
        self._record.auto_save = bool(self.saved_auto_save)
        self.saved_auto_save = None
        self.state = BatchState.IDLE


__all__ = ["BatchController", "BatchState"]
