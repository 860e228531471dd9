"""
Document-store persistence: `$set` of dirty fields on update, whole-document
save on insert.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rowmapper.strategies.abstract import AbstractPersistenceStrategy
from rowmapper.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from rowmapper.domain.record import Record

log = get_logger(__name__)


class DocumentPersistence(AbstractPersistenceStrategy):
    """
    Save records through a `DocumentStore` (the record's parent collection).

    The document sent to the store is produced by the record's
    `to_document(**options)` hook, so subclasses can encode values for the
    store without touching the in-memory data.
    """

    name: str = "document"
    requires_table: bool = False

    def _encode(self, record: "Record", **options: Any) -> dict:
        to_document = getattr(record, "to_document", None)
        if to_document is None:
            return record.to_dict()
        return to_document(**options)

    def update(self, record: "Record", pk: str, **options: Any) -> Any:
        modified = record.modified
        if not modified:
            log.debug("Nothing to update", extra={"pk": record.primary_key_value})
            return None

        document = self._encode(record, **options)
        changes = {f: document.get(f) for f in modified if f != pk}
        document_id = record.to_dict()[pk]

        log.debug("Document update", extra={"pk": document_id, "fields": sorted(changes)})
        result = record.parent.save(document_id, {"$set": changes})
        record._mark_clean()
        return result

    def insert(self, record: "Record", pk: str, **options: Any) -> Any:
        document = self._encode(record, **options)

        log.debug("Document insert", extra={"fields": sorted(document)})
        result = record.parent.save(document)
        record._mark_clean()

        if not result:
            return False
        if record.auto_generated_pk and pk == record.primary_key and document.get(pk) is not None:
            record._assign_generated_key(document[pk])
        return True

    def delete(self, record: "Record") -> Any:
        document_id = record.primary_key_value
        log.debug("Document delete", extra={"pk": document_id})
        return record.parent.delete_by_id(document_id)


__all__ = ["DocumentPersistence"]
