"""
Active-record style row objects.

A `Record` wraps the data of one persisted row or document, tracks which
fields were changed since the last save (one level of undo per field) and
hands persistence to the strategy its class names. Subclasses customise a
record declaratively:

    class User(Item):
        aliases = {"login": "username"}
        virtuals = frozenset({"display_name"})

        @accessor("display_name")
        def _display_name(self):
            return f"{self.get('first')} {self.get('last')}"

        @mutator("display_name")
        def _set_display_name(self, value):
            first, _, last = value.partition(" ")
            self.set("first", first)
            self.set("last", last)

Hooks are collected into a per-class table when the class is created; no
method lookup by name happens at runtime.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, FrozenSet, Generator, List, Mapping, Optional

from rowmapper.domain.batch import BatchController
from rowmapper.domain.models import FieldMap
from rowmapper.domain.resolver import FieldResolver
from rowmapper.errors import ImmutablePrimaryKeyError, InvalidConstructionError
from rowmapper.strategies.abstract import PersistenceStrategy
from rowmapper.strategies.document import DocumentPersistence
from rowmapper.strategies.sql import SqlPersistence


class _Sentinel:
    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return f"<{self._name}>"


# Tracked pre-mutation value of a field the record did not carry at all.
MISSING: Any = _Sentinel("missing")
# Seeded into a manually-assigned primary key before its first value lands.
DEFINED: Any = _Sentinel("defined")


def accessor(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register the decorated method as the getter for logical field `name`."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        func.__accessor_for__ = name  # type: ignore[attr-defined]
        return func

    return decorator


def mutator(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register the decorated method as the setter for logical field `name`."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        func.__mutator_for__ = name  # type: ignore[attr-defined]
        return func

    return decorator


@dataclass(frozen=True)
class FieldHooks:
    getter: Optional[Callable[[Any], Any]] = None
    setter: Optional[Callable[[Any, Any], None]] = None


def _collect_hooks(cls: type) -> Dict[str, FieldHooks]:
    getters: Dict[str, Callable[..., Any]] = {}
    setters: Dict[str, Callable[..., Any]] = {}
    # Walk base classes first so subclasses override inherited hooks.
    for klass in reversed(cls.__mro__):
        for attr in vars(klass).values():
            if not callable(attr):
                continue
            if hasattr(attr, "__accessor_for__"):
                getters[attr.__accessor_for__] = attr
            if hasattr(attr, "__mutator_for__"):
                setters[attr.__mutator_for__] = attr
    return {
        name: FieldHooks(getters.get(name), setters.get(name))
        for name in set(getters) | set(setters)
    }


class Record:
    """
    In-memory mutable view of one backend row/document.

    Parameters
    ----------
    parent : object
        The model/collection that produced the record. It is the executor the
        persistence strategy talks to and answers `is_known(name)`.
    data : dict | None
        Snapshot of the stored fields.
    table : str | None
        Storage location; required by strategies that address tables.
    primary_key : str | None
        Overrides the class-level `primary_key`.
    auto_save : bool | None
        Overrides the class-level `auto_save`.
    """

    primary_key: ClassVar[str] = "id"
    auto_generated_pk: ClassVar[bool] = True
    aliases: ClassVar[Mapping[str, str]] = {}
    virtuals: ClassVar[FrozenSet[str]] = frozenset()
    new_query_fields: ClassVar[Optional[List[str]]] = None
    auto_save: bool = False

    persistence: ClassVar[PersistenceStrategy] = SqlPersistence()
    _hooks: ClassVar[Dict[str, FieldHooks]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._hooks = _collect_hooks(cls)

    def __init__(
        self,
        parent: Any,
        data: Optional[FieldMap] = None,
        table: Optional[str] = None,
        primary_key: Optional[str] = None,
        auto_save: Optional[bool] = None,
    ) -> None:
        if parent is None:
            raise InvalidConstructionError(
                f"{type(self).__name__} requires the parent model that produced it"
            )
        if self.persistence.requires_table and not table:
            raise InvalidConstructionError(
                f"{type(self).__name__} requires the table it is stored in"
            )
        self.parent = parent
        self.table = table
        if primary_key is not None:
            self.primary_key = primary_key  # type: ignore[misc]
        if auto_save is not None:
            self.auto_save = auto_save
        self._data: FieldMap = dict(data or {})
        self._modified: FieldMap = {}
        self._resolver = FieldResolver(
            self.primary_key, self.aliases, self.virtuals, parent.is_known
        )
        self._batch = BatchController(self)

    # ------------------------------------------------------------------ #
    # field access
    # ------------------------------------------------------------------ #
    def resolve(self, name: str, strict: bool = True) -> Optional[str]:
        return self._resolver.resolve(name, self._data, strict)

    def get(self, name: str) -> Any:
        field = self.resolve(name)
        hooks = self._hooks.get(name)
        if hooks is not None and hooks.getter is not None:
            return hooks.getter(self)
        return self._data.get(field)  # type: ignore[arg-type]

    def has(self, name: str) -> bool:
        """
        True if the field resolves and holds a value.

        The empty string counts as unset.
        """
        field = self.resolve(name, strict=False)
        if field is None:
            return False
        value = self._data.get(field)
        return value is not None and value != ""

    def set(self, name: str, value: Any) -> None:
        field: str = self.resolve(name)  # type: ignore[assignment]
        previous = self._data.get(field, MISSING)

        if field == self.primary_key:
            if self.auto_generated_pk:
                raise ImmutablePrimaryKeyError(field)
            if self._data.get(field) is None:
                self._data[field] = DEFINED

        tracked = field in self._modified
        if not self._resolver.is_virtual(field):
            self._modified.setdefault(field, previous)

        hooks = self._hooks.get(name)
        try:
            if hooks is not None and hooks.setter is not None:
                hooks.setter(self, value)
            else:
                self._data[field] = value
        except BaseException:
            # A failed mutator leaves the field as it was before this call.
            if previous is MISSING:
                self._data.pop(field, None)
            else:
                self._data[field] = previous
            if not tracked:
                self._modified.pop(field, None)
            raise

        if self.auto_save:
            self.save()

    def unset(self, name: str) -> None:
        """Set a field to None."""
        field: str = self.resolve(name)  # type: ignore[assignment]
        if field == self.primary_key:
            raise ImmutablePrimaryKeyError(field)
        self._modified.setdefault(field, self._data.get(field, MISSING))
        self._data[field] = None
        if self.auto_save:
            self.save()

    def restore(self, name: str) -> None:
        """
        Restore the value a field had before it was first modified.

        Has no useful effect with auto_save on: the change is already saved.
        """
        field: str = self.resolve(name)  # type: ignore[assignment]
        if field in self._modified:
            self._revert(self._data, field, self._modified.pop(field))

    def undo(self) -> None:
        """Revert every modified field. Does not touch the backend."""
        reverted = dict(self._data)
        for field, value in self._modified.items():
            self._revert(reverted, field, value)
        self._data = reverted
        self._modified = {}

    @staticmethod
    def _revert(data: FieldMap, field: str, value: Any) -> None:
        if value is MISSING:
            data.pop(field, None)
        else:
            data[field] = value

    __getitem__ = get
    __setitem__ = set
    __delitem__ = unset
    __contains__ = has

    # ------------------------------------------------------------------ #
    # state inspection
    # ------------------------------------------------------------------ #
    @property
    def modified(self) -> FieldMap:
        """Copy of the pre-mutation values of dirty fields."""
        return dict(self._modified)

    @property
    def is_dirty(self) -> bool:
        return bool(self._modified)

    @property
    def primary_key_value(self) -> Any:
        return self._data.get(self.primary_key)

    def to_dict(self) -> FieldMap:
        return dict(self._data)

    def _mark_clean(self) -> None:
        self._modified = {}

    def _assign_generated_key(self, value: Any) -> None:
        self._data[self.primary_key] = value

    # ------------------------------------------------------------------ #
    # persistence
    # ------------------------------------------------------------------ #
    def save(self, **options: Any) -> Any:
        """
        Save our data back to the backend.

        If the primary key is set and has not been modified, the dirty fields
        of the existing row are updated. Otherwise a new row is inserted and,
        for auto-generated keys, the new key is written back to the record.
        """
        return self.persistence.save(self, **options)

    def delete(self) -> Any:
        """Delete this record from the backend. In-memory data is kept."""
        return self.persistence.delete(self)

    # ------------------------------------------------------------------ #
    # batches
    # ------------------------------------------------------------------ #
    @property
    def in_batch(self) -> bool:
        return self._batch.active

    def start_batch(self) -> None:
        self._batch.start()

    def end_batch(self) -> None:
        self._batch.end()

    def cancel_batch(self) -> None:
        self._batch.cancel()

    @contextmanager
    def batch(self) -> Generator["Record", None, None]:
        """
        Run a block of edits as one batch.

        Ends the batch (saving once if auto_save was on) when the block
        finishes; cancels it and re-raises if the block raises.
        """
        self.start_batch()
        try:
            yield self
        except BaseException:
            self.cancel_batch()
            raise
        self.end_batch()

    def __repr__(self) -> str:
        location = f" {self.table}" if self.table else ""
        return f"<{type(self).__name__}{location} {self.primary_key}={self.primary_key_value!r}>"


class Item(Record):
    """A row of a relational table."""

    persistence = SqlPersistence()


class DocumentRecord(Record):
    """A document of a document-store collection."""

    primary_key = "_id"
    persistence = DocumentPersistence()

    def to_document(self, **options: Any) -> FieldMap:
        """Encode the record for the store. Override to transform values."""
        return dict(self._data)


__all__ = [
    "DEFINED",
    "MISSING",
    "DocumentRecord",
    "FieldHooks",
    "Item",
    "Record",
    "accessor",
    "mutator",
]
