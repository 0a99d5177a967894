# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""In-process implementations of the storage protocols.

Each store serializes its mutating operations behind an ``asyncio.Lock`` so the
atomicity guarantees match the database-backed repositories within one event
loop. Used by tests and by embedders that do not need persistence.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from typing import Any
from uuid import UUID, uuid4

from skugraph.errors import (
    DuplicateAssignmentError,
    DuplicateTypeError,
    ProtectedTypeError,
    StorageConflictError,
    UnknownTypeError,
)
from skugraph.models.base import utcnow
from skugraph.models.relationship import EntityRelationship, RelationshipType
from skugraph.models.sku import EntitySKU, SKUTemplate
from skugraph.schemas.relationship import RelationshipFilters
from skugraph.stores import SequenceScope


def _stamp(entity: EntityRelationship | EntitySKU | SKUTemplate) -> None:
    """Fill the defaults a database would apply at insert time."""
    now = utcnow()
    if entity.id is None:
        entity.id = uuid4()
    if entity.created_at is None:
        entity.created_at = now
    if entity.updated_at is None:
        entity.updated_at = now


class InMemoryRelationshipStore:
    def __init__(self) -> None:
        self._edges: dict[UUID, EntityRelationship] = {}
        # Insertion order breaks created_at ties deterministically.
        self._order: dict[UUID, int] = {}
        self._counter = itertools.count()
        self._lock = asyncio.Lock()

    def _live_key(self, edge: EntityRelationship) -> tuple[str, ...]:
        return (
            edge.tenant_id,
            edge.source_kind,
            edge.source_id,
            edge.target_kind,
            edge.target_id,
            edge.relationship_type,
        )

    async def put(
        self, edge: EntityRelationship, companion: EntityRelationship | None = None
    ) -> None:
        async with self._lock:
            batch = [edge] if companion is None else [edge, companion]
            live = {self._live_key(e) for e in self._edges.values() if not e.is_deleted}
            keys = [self._live_key(e) for e in batch]
            if any(k in live for k in keys) or len(set(keys)) != len(keys):
                raise StorageConflictError("Relationship already exists")
            for e in batch:
                _stamp(e)
                self._edges[e.id] = e
                self._order[e.id] = next(self._counter)

    async def get(self, tenant_id: str, edge_id: UUID) -> EntityRelationship | None:
        edge = self._edges.get(edge_id)
        if edge is None or edge.tenant_id != tenant_id or edge.is_deleted:
            return None
        return edge

    async def find_live(
        self,
        tenant_id: str,
        source_kind: str,
        source_id: str,
        target_kind: str,
        target_id: str,
        relationship_type: str,
    ) -> EntityRelationship | None:
        key = (tenant_id, source_kind, source_id, target_kind, target_id, relationship_type)
        for edge in self._edges.values():
            if not edge.is_deleted and self._live_key(edge) == key:
                return edge
        return None

    async def find_by_endpoint(
        self,
        tenant_id: str,
        kind: str,
        entity_id: str,
        relationship_type: str | None = None,
        *,
        active_only: bool = True,
    ) -> list[EntityRelationship]:
        matches = [
            e
            for e in self._edges.values()
            if e.tenant_id == tenant_id
            and e.touches(kind, entity_id)
            and (relationship_type is None or e.relationship_type == relationship_type)
            and (not active_only or (e.is_active and not e.is_deleted))
        ]
        matches.sort(key=lambda e: (-e.strength, e.created_at, self._order[e.id]))
        return matches

    async def exists(
        self,
        tenant_id: str,
        source_kind: str,
        source_id: str,
        target_kind: str,
        target_id: str,
        relationship_type: str,
    ) -> bool:
        edge = await self.find_live(
            tenant_id, source_kind, source_id, target_kind, target_id, relationship_type
        )
        return edge is not None

    async def soft_delete(self, edges: list[EntityRelationship]) -> None:
        async with self._lock:
            now = utcnow()
            for edge in edges:
                edge.is_deleted = True
                edge.is_active = False
                edge.deleted_at = now
                edge.updated_at = now

    async def save(self, edges: list[EntityRelationship]) -> None:
        now = utcnow()
        for edge in edges:
            edge.updated_at = now

    def _matches(self, edge: EntityRelationship, filters: RelationshipFilters) -> bool:
        for attr in (
            "source_kind",
            "source_id",
            "target_kind",
            "target_id",
            "relationship_type",
            "is_active",
        ):
            wanted = getattr(filters, attr)
            if wanted is not None and getattr(edge, attr) != wanted:
                return False
        if filters.min_strength is not None and edge.strength < filters.min_strength:
            return False
        if filters.max_strength is not None and edge.strength > filters.max_strength:
            return False
        return not filters.tags or bool(set(filters.tags).intersection(edge.tags))

    async def list_relationships(
        self, tenant_id: str, filters: RelationshipFilters
    ) -> tuple[list[EntityRelationship], int]:
        matched = [
            e
            for e in self._edges.values()
            if e.tenant_id == tenant_id and not e.is_deleted and self._matches(e, filters)
        ]
        matched.sort(
            key=lambda e: (
                -e.priority,
                -e.strength,
                e.last_interaction_at is None,
                -(e.last_interaction_at.timestamp() if e.last_interaction_at else 0.0),
            )
        )
        return matched[filters.offset : filters.offset + filters.limit], len(matched)

    async def record_interaction(
        self,
        tenant_id: str,
        source_kind: str,
        source_id: str,
        target_kind: str,
        target_id: str,
        relationship_type: str,
    ) -> int:
        async with self._lock:
            edge = await self.find_live(
                tenant_id, source_kind, source_id, target_kind, target_id, relationship_type
            )
            if edge is None:
                return 0
            edge.interaction_count += 1
            edge.last_interaction_at = utcnow()
            return 1

    async def stats(self, tenant_id: str) -> list[dict[str, Any]]:
        groups: dict[tuple[str, str, str], list[int]] = defaultdict(list)
        for edge in self._edges.values():
            if edge.tenant_id == tenant_id and edge.is_active and not edge.is_deleted:
                key = (edge.relationship_type, edge.source_kind, edge.target_kind)
                groups[key].append(edge.strength)
        return [
            {
                "relationship_type": rel_type,
                "source_kind": source_kind,
                "target_kind": target_kind,
                "count": len(strengths),
                "avg_strength": sum(strengths) / len(strengths),
            }
            for (rel_type, source_kind, target_kind), strengths in sorted(groups.items())
        ]


class InMemoryRelationshipTypeRegistry:
    def __init__(self) -> None:
        self._types: dict[str, RelationshipType] = {}
        self._lock = asyncio.Lock()

    async def register(self, rel_type: RelationshipType) -> RelationshipType:
        async with self._lock:
            if rel_type.name in self._types:
                raise DuplicateTypeError(rel_type.name)
            self._types[rel_type.name] = rel_type
        return rel_type

    async def get(self, name: str) -> RelationshipType:
        try:
            return self._types[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    async def create_with_reverse(
        self, rel_type: RelationshipType
    ) -> tuple[RelationshipType, RelationshipType | None]:
        if rel_type.is_bidirectional or not rel_type.reverse_name:
            return await self.register(rel_type), None
        reverse = rel_type.derive_reverse()
        async with self._lock:
            for name in (rel_type.name, reverse.name):
                if name in self._types:
                    raise DuplicateTypeError(name)
            self._types[rel_type.name] = rel_type
            self._types[reverse.name] = reverse
        return rel_type, reverse

    async def list_types(self) -> list[RelationshipType]:
        return sorted(self._types.values(), key=lambda t: t.name)

    async def delete(self, name: str) -> None:
        rel_type = await self.get(name)
        if rel_type.is_system:
            raise ProtectedTypeError(name)
        async with self._lock:
            self._types.pop(name, None)


class InMemoryTemplateStore:
    def __init__(self) -> None:
        self._templates: dict[UUID, SKUTemplate] = {}
        self._lock = asyncio.Lock()

    async def add(self, template: SKUTemplate) -> SKUTemplate:
        async with self._lock:
            for other in self._templates.values():
                if other.tenant_id == template.tenant_id and other.name == template.name:
                    raise StorageConflictError(
                        f"SKU template '{template.name}' already exists", value=template.name
                    )
            _stamp(template)
            if template.usage_count is None:
                template.usage_count = 0
            if template.is_default and template.is_active:
                self._clear_default(template.tenant_id, template.entity_kind, template.id)
            self._templates[template.id] = template
        return template

    def _clear_default(self, tenant_id: str, entity_kind: str, keep: UUID | None) -> None:
        for other in self._templates.values():
            if (
                other.tenant_id == tenant_id
                and other.entity_kind == entity_kind
                and other.id != keep
            ):
                other.is_default = False

    async def clear_default(
        self, tenant_id: str, entity_kind: str, *, keep: UUID | None = None
    ) -> None:
        async with self._lock:
            self._clear_default(tenant_id, entity_kind, keep)

    async def save(self, template: SKUTemplate) -> None:
        template.updated_at = utcnow()

    async def list_templates(
        self, tenant_id: str, entity_kind: str | None = None
    ) -> list[SKUTemplate]:
        matches = [
            t
            for t in self._templates.values()
            if t.tenant_id == tenant_id
            and t.is_active
            and (entity_kind is None or t.entity_kind == entity_kind)
        ]
        return sorted(matches, key=lambda t: t.created_at, reverse=True)

    async def get(
        self, tenant_id: str, template_id: UUID, *, include_inactive: bool = False
    ) -> SKUTemplate | None:
        template = self._templates.get(template_id)
        if template is None or template.tenant_id != tenant_id:
            return None
        if not template.is_active and not include_inactive:
            return None
        return template

    async def get_default(self, tenant_id: str, entity_kind: str) -> SKUTemplate | None:
        for template in self._templates.values():
            if (
                template.tenant_id == tenant_id
                and template.entity_kind == entity_kind
                and template.is_default
                and template.is_active
            ):
                return template
        return None

    async def record_usage(self, template: SKUTemplate) -> None:
        async with self._lock:
            template.usage_count = (template.usage_count or 0) + 1
            template.last_used_at = utcnow()


class InMemorySequenceCounter:
    def __init__(self) -> None:
        self._values: dict[str, int] = {}
        self._lock = asyncio.Lock()

    async def next(self, scope: SequenceScope) -> int:
        async with self._lock:
            value = self._values.get(scope.key, 0) + 1
            self._values[scope.key] = value
            return value

    async def peek(self, scope: SequenceScope) -> int:
        return self._values.get(scope.key, 0) + 1


class InMemorySKULedger:
    def __init__(self) -> None:
        self._rows: list[EntitySKU] = []
        self._values: set[str] = set()
        self._lock = asyncio.Lock()

    async def get_active(
        self, tenant_id: str, entity_kind: str, entity_id: str
    ) -> EntitySKU | None:
        for row in self._rows:
            if (
                row.tenant_id == tenant_id
                and row.entity_kind == entity_kind
                and row.entity_id == entity_id
                and row.is_active
            ):
                return row
        return None

    async def value_exists(self, sku_value: str) -> bool:
        return sku_value in self._values

    async def latest_version(self, tenant_id: str, entity_kind: str, entity_id: str) -> int:
        versions = [
            row.version
            for row in self._rows
            if row.tenant_id == tenant_id
            and row.entity_kind == entity_kind
            and row.entity_id == entity_id
        ]
        return max(versions, default=0)

    async def insert(self, entity_sku: EntitySKU) -> EntitySKU:
        async with self._lock:
            if entity_sku.sku_value in self._values:
                raise StorageConflictError(
                    f"SKU '{entity_sku.sku_value}' is taken", value=entity_sku.sku_value
                )
            for row in self._rows:
                if (
                    row.tenant_id == entity_sku.tenant_id
                    and row.entity_kind == entity_sku.entity_kind
                    and row.entity_id == entity_sku.entity_id
                    and row.is_active
                ):
                    raise DuplicateAssignmentError(entity_sku.entity_kind, entity_sku.entity_id)
            _stamp(entity_sku)
            self._rows.append(entity_sku)
            self._values.add(entity_sku.sku_value)
        return entity_sku

    async def retire(self, entity_sku: EntitySKU) -> None:
        async with self._lock:
            entity_sku.is_active = False
            entity_sku.updated_at = utcnow()

    def all_rows(self) -> list[EntitySKU]:
        return list(self._rows)
