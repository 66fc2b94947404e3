"""Polymorphic "related entity" of a task.

A task points at exactly one record of a known kind. Existence checks go
through a registry of lookup callables keyed by kind, so adding a kind means
registering one more lookup rather than growing a conditional chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ..core.enums import RelatedKind
from ..core.exceptions import NotFoundError, ValidationError

Lookup = Callable[[str], Optional[object]]


@dataclass(frozen=True)
class RelatedEntity:
    kind: RelatedKind
    entity_id: str

    @classmethod
    def parse(cls, kind: Any, entity_id: Any) -> "RelatedEntity":
        try:
            parsed = kind if isinstance(kind, RelatedKind) else RelatedKind(kind)
        except ValueError:
            raise ValidationError("Invalid related entity type")
        if not entity_id:
            raise ValidationError("Please provide a related entity")
        return cls(kind=parsed, entity_id=str(entity_id))


class RelatedEntityRegistry:
    def __init__(self, lookups: Optional[Mapping[RelatedKind, Lookup]] = None):
        self._lookups: dict[RelatedKind, Lookup] = dict(lookups or {})

    def register(self, kind: RelatedKind, lookup: Lookup) -> None:
        self._lookups[kind] = lookup

    def resolve(self, related: RelatedEntity) -> Optional[object]:
        """Return the referenced record, or None for kind Other."""

        if related.kind is RelatedKind.OTHER:
            return None
        lookup = self._lookups.get(related.kind)
        if lookup is None:
            raise ValidationError("Invalid related entity type")
        record = lookup(related.entity_id)
        if record is None:
            raise NotFoundError(f"{related.kind.value} not found")
        return record

    def ensure_exists(self, related: RelatedEntity) -> None:
        self.resolve(related)
