# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Storage contracts the code generators depend on.

Each protocol has a SQLAlchemy implementation under ``skugraph.repositories``
and an in-memory implementation under ``skugraph.stores.memory``. The engine
only ever sees these protocols, so it behaves identically on either backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol
from urllib.parse import quote
from uuid import UUID

from skugraph.models.relationship import EntityRelationship, RelationshipType
from skugraph.models.sku import EntitySKU, SKUTemplate
from skugraph.schemas.relationship import RelationshipFilters


def _segment(value: str) -> str:
    return quote(value, safe="")


@dataclass(frozen=True, slots=True)
class SequenceScope:
    """Partition within which a counter is monotonic.

    Keys join segments with ``:``. Free-text segments are percent-escaped, which
    strips them of ``:``, ``@`` and ``*``. The date segment carries an ``@``
    prefix and the global root is ``*``.
    """

    key: str

    @classmethod
    def global_scope(cls, parts: tuple[str, ...] = ()) -> SequenceScope:
        return cls(":".join(("*", *map(_segment, parts))))

    @classmethod
    def for_kind(
        cls,
        entity_kind: str,
        tenant_id: str,
        *,
        day: date | None = None,
        parts: tuple[str, ...] = (),
    ) -> SequenceScope:
        segments = [_segment(tenant_id), _segment(entity_kind)]
        if day is not None:
            segments.append(f"@{day.isoformat()}")
        segments.extend(map(_segment, parts))
        return cls(":".join(segments))


class RelationshipStore(Protocol):
    async def put(
        self, edge: EntityRelationship, companion: EntityRelationship | None = None
    ) -> None:
        """Persist ``edge`` and, if given, its companion; both or neither."""
        ...

    async def get(self, tenant_id: str, edge_id: UUID) -> EntityRelationship | None: ...

    async def find_live(
        self,
        tenant_id: str,
        source_kind: str,
        source_id: str,
        target_kind: str,
        target_id: str,
        relationship_type: str,
    ) -> EntityRelationship | None:
        """Return the non-deleted edge with exactly these endpoints and type."""
        ...

    async def find_by_endpoint(
        self,
        tenant_id: str,
        kind: str,
        entity_id: str,
        relationship_type: str | None = None,
        *,
        active_only: bool = True,
    ) -> list[EntityRelationship]:
        """Edges touching the entity on either side, strongest first, oldest first on ties."""
        ...

    async def exists(
        self,
        tenant_id: str,
        source_kind: str,
        source_id: str,
        target_kind: str,
        target_id: str,
        relationship_type: str,
    ) -> bool: ...

    async def soft_delete(self, edges: list[EntityRelationship]) -> None: ...

    async def save(self, edges: list[EntityRelationship]) -> None:
        """Persist in-place changes to already stored edges."""
        ...

    async def list_relationships(
        self, tenant_id: str, filters: RelationshipFilters
    ) -> tuple[list[EntityRelationship], int]:
        """One page of live edges matching ``filters`` and the total match count."""
        ...

    async def record_interaction(
        self,
        tenant_id: str,
        source_kind: str,
        source_id: str,
        target_kind: str,
        target_id: str,
        relationship_type: str,
    ) -> int: ...

    async def stats(self, tenant_id: str) -> list[dict[str, Any]]: ...


class RelationshipTypeRegistry(Protocol):
    async def register(self, rel_type: RelationshipType) -> RelationshipType: ...

    async def get(self, name: str) -> RelationshipType: ...

    async def create_with_reverse(
        self, rel_type: RelationshipType
    ) -> tuple[RelationshipType, RelationshipType | None]: ...

    async def list_types(self) -> list[RelationshipType]: ...

    async def delete(self, name: str) -> None: ...


class TemplateStore(Protocol):
    async def add(self, template: SKUTemplate) -> SKUTemplate:
        """Insert ``template``, demoting the previous default of its kind if it is one.

        A name conflict raises StorageConflictError and leaves every other
        template untouched.
        """
        ...

    async def get(
        self, tenant_id: str, template_id: UUID, *, include_inactive: bool = False
    ) -> SKUTemplate | None:
        """Return a template by id, active ones only unless ``include_inactive``."""
        ...

    async def get_default(self, tenant_id: str, entity_kind: str) -> SKUTemplate | None: ...

    async def list_templates(
        self, tenant_id: str, entity_kind: str | None = None
    ) -> list[SKUTemplate]: ...

    async def clear_default(
        self, tenant_id: str, entity_kind: str, *, keep: UUID | None = None
    ) -> None:
        """Unset ``is_default`` on every template of the kind except ``keep``."""
        ...

    async def save(self, template: SKUTemplate) -> None: ...

    async def record_usage(self, template: SKUTemplate) -> None: ...


class SequenceCounter(Protocol):
    async def next(self, scope: SequenceScope) -> int:
        """Atomically advance and return the counter (1-based, never reused)."""
        ...

    async def peek(self, scope: SequenceScope) -> int:
        """Return the value ``next`` would hand out, without consuming it."""
        ...


class SKULedger(Protocol):
    async def get_active(
        self, tenant_id: str, entity_kind: str, entity_id: str
    ) -> EntitySKU | None: ...

    async def value_exists(self, sku_value: str) -> bool: ...

    async def latest_version(
        self, tenant_id: str, entity_kind: str, entity_id: str
    ) -> int: ...

    async def insert(self, entity_sku: EntitySKU) -> EntitySKU:
        """Atomically write ``entity_sku``.

        Raises StorageConflictError if ``sku_value`` is taken and
        DuplicateAssignmentError if the entity already has an active SKU.
        """
        ...

    async def retire(self, entity_sku: EntitySKU) -> None: ...


__all__ = [
    "RelationshipStore",
    "RelationshipTypeRegistry",
    "SKULedger",
    "SequenceCounter",
    "SequenceScope",
    "TemplateStore",
]
