"""
Logical-to-physical field name resolution.

A record accepts field names from callers that may be aliases, the primary
key before it has a value, columns the owning model knows about but the row
snapshot does not carry, or computed (virtual) names. The resolver turns
those into the physical name used as the key of the record's data.
"""

from __future__ import annotations

from typing import Any, Callable, Collection, Mapping, Optional

from rowmapper.errors import UnknownFieldError


class FieldResolver:
    """
    Resolve a logical field name against a record's static configuration.

    Resolution order:
      1. exact key in the current data
      2. alias table
      3. the primary key name
      4. the owning model's `is_known()` predicate
      5. the virtual field set

    Stored fields win over aliases, so an alias can never shadow a real
    column, and virtual names are only reached when nothing stored matches.
    """

    def __init__(
        self,
        primary_key: str,
        aliases: Mapping[str, str],
        virtuals: Collection[str],
        is_known: Callable[[str], bool],
    ) -> None:
        self.primary_key = primary_key
        self.aliases = dict(aliases)
        self.virtuals = frozenset(virtuals)
        self._is_known = is_known

    def resolve(
        self, name: str, data: Mapping[str, Any], strict: bool = True
    ) -> Optional[str]:
        if name in data:
            return name
        if name in self.aliases:
            return self.aliases[name]
        if name == self.primary_key:
            return name
        if self._is_known(name):
            return name
        if name in self.virtuals:
            return name
        if strict:
            raise UnknownFieldError(name, dict(data))
        return None

    def is_virtual(self, name: str) -> bool:
        return name in self.virtuals


__all__ = ["FieldResolver"]
