# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Typed, directed edges between arbitrary (kind, id) entity references.

Creating an edge of a bidirectional type also writes the same type in the
opposite direction; a type with a ``reverse_name`` gets a companion edge of
the reverse type. Both rows are written in one storage call and carry each
other's id in ``paired_edge_id`` so updates and soft deletes follow the pair.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID, uuid4

from skugraph.errors import KindNotAllowedError, RelationshipNotFoundError
from skugraph.models.base import utcnow
from skugraph.models.relationship import EntityRelationship, RelationshipType
from skugraph.schemas.relationship import (
    InteractionCreate,
    MentionCreate,
    RelationshipCreate,
    RelationshipFilters,
    RelationshipTypeCreate,
    RelationshipUpdate,
)
from skugraph.stores import RelationshipStore, RelationshipTypeRegistry

logger = logging.getLogger(__name__)

MENTION_TYPE = "mentioned_in"

# Fields copied onto the companion edge whenever the primary edge changes.
_SHARED_FIELDS = (
    "strength",
    "priority",
    "is_active",
    "valid_from",
    "valid_until",
    "tags",
    "attrs",
)


def relationship_type_from(data: RelationshipTypeCreate) -> RelationshipType:
    return RelationshipType(
        name=data.name,
        display_name=data.display_name,
        description=data.description,
        source_kinds=list(data.source_kinds),
        target_kinds=list(data.target_kinds),
        is_bidirectional=data.is_bidirectional,
        reverse_name=data.reverse_name,
        default_strength=data.default_strength,
        is_system=data.is_system,
    )


class RelationshipService:
    def __init__(self, store: RelationshipStore, types: RelationshipTypeRegistry) -> None:
        self.store = store
        self.types = types

    # -- types ------------------------------------------------------------

    async def create_relationship_type(
        self, data: RelationshipTypeCreate
    ) -> tuple[RelationshipType, RelationshipType | None]:
        """Register a type, and its derived reverse type when it names one."""
        rel_type, reverse = await self.types.create_with_reverse(relationship_type_from(data))
        logger.info(
            "Registered relationship type %s%s",
            rel_type.name,
            f" (reverse {reverse.name})" if reverse is not None else "",
        )
        return rel_type, reverse

    async def list_relationship_types(self) -> list[RelationshipType]:
        return await self.types.list_types()

    async def get_relationship_type(self, name: str) -> RelationshipType:
        return await self.types.get(name)

    async def delete_relationship_type(self, name: str) -> None:
        await self.types.delete(name)

    # -- edges ------------------------------------------------------------

    async def create_relationship(
        self, tenant_id: str, data: RelationshipCreate
    ) -> EntityRelationship:
        """Create the edge (and its companion) or update the live edge it duplicates."""
        rel_type = await self.types.get(data.relationship_type)
        if not rel_type.allows(data.source_kind, data.target_kind):
            raise KindNotAllowedError(rel_type.name, data.source_kind, data.target_kind)
        strength = data.strength if data.strength is not None else rel_type.default_strength

        existing = await self.store.find_live(
            tenant_id,
            data.source_kind,
            data.source_id,
            data.target_kind,
            data.target_id,
            rel_type.name,
        )
        if existing is not None:
            changes: dict[str, Any] = {
                "strength": strength,
                "priority": data.priority,
                "is_active": data.is_active,
                "valid_from": data.valid_from,
                "valid_until": data.valid_until,
                "tags": list(data.tags),
                "attrs": dict(data.attrs),
            }
            await self._apply(tenant_id, existing, changes)
            return existing

        edge = EntityRelationship(
            id=uuid4(),
            tenant_id=tenant_id,
            relationship_type=rel_type.name,
            source_kind=data.source_kind,
            source_id=data.source_id,
            target_kind=data.target_kind,
            target_id=data.target_id,
            strength=strength,
            priority=data.priority,
            is_active=data.is_active,
            is_deleted=False,
            valid_from=data.valid_from,
            valid_until=data.valid_until,
            tags=list(data.tags),
            attrs=dict(data.attrs),
            interaction_count=1,
            last_interaction_at=utcnow(),
            created_by=data.created_by,
        )
        companion = await self._companion_for(rel_type, edge)
        await self.store.put(edge, companion)
        logger.info(
            "Created %s edge %s:%s -> %s:%s%s",
            rel_type.name,
            edge.source_kind,
            edge.source_id,
            edge.target_kind,
            edge.target_id,
            f" with {companion.relationship_type} companion" if companion is not None else "",
        )
        return edge

    async def _companion_for(
        self, rel_type: RelationshipType, edge: EntityRelationship
    ) -> EntityRelationship | None:
        companion_type = rel_type.companion_type
        if companion_type is None:
            return None
        self_loop = (edge.source_kind, edge.source_id) == (edge.target_kind, edge.target_id)
        if rel_type.is_bidirectional and self_loop:
            return None
        if companion_type != rel_type.name:
            # Must exist: the companion row references it.
            await self.types.get(companion_type)
        companion = EntityRelationship(
            id=uuid4(),
            tenant_id=edge.tenant_id,
            relationship_type=companion_type,
            source_kind=edge.target_kind,
            source_id=edge.target_id,
            target_kind=edge.source_kind,
            target_id=edge.source_id,
            strength=edge.strength,
            priority=edge.priority,
            is_active=edge.is_active,
            is_deleted=False,
            valid_from=edge.valid_from,
            valid_until=edge.valid_until,
            tags=list(edge.tags),
            attrs=dict(edge.attrs),
            interaction_count=1,
            last_interaction_at=edge.last_interaction_at,
            created_by=edge.created_by,
            paired_edge_id=edge.id,
        )
        edge.paired_edge_id = companion.id
        return companion

    async def _pair(
        self, tenant_id: str, edge: EntityRelationship
    ) -> list[EntityRelationship]:
        edges = [edge]
        if edge.paired_edge_id is not None:
            companion = await self.store.get(tenant_id, edge.paired_edge_id)
            if companion is not None:
                edges.append(companion)
        return edges

    async def _apply(
        self, tenant_id: str, edge: EntityRelationship, changes: dict[str, Any]
    ) -> None:
        edges = await self._pair(tenant_id, edge)
        for target in edges:
            for name, value in changes.items():
                if name in _SHARED_FIELDS:
                    setattr(target, name, value)
        await self.store.save(edges)

    async def get_relationship(self, tenant_id: str, edge_id: UUID) -> EntityRelationship:
        edge = await self.store.get(tenant_id, edge_id)
        if edge is None:
            raise RelationshipNotFoundError(edge_id)
        return edge

    async def update_relationship(
        self, tenant_id: str, edge_id: UUID, patch: RelationshipUpdate
    ) -> EntityRelationship:
        edge = await self.get_relationship(tenant_id, edge_id)
        await self._apply(tenant_id, edge, patch.model_dump(exclude_unset=True))
        return edge

    async def remove_relationship(self, tenant_id: str, edge_id: UUID) -> None:
        """Soft delete the edge and its companion."""
        edge = await self.get_relationship(tenant_id, edge_id)
        await self.store.soft_delete(await self._pair(tenant_id, edge))
        logger.info("Removed %s edge %s", edge.relationship_type, edge.id)

    async def get_entity_relationships(
        self,
        tenant_id: str,
        kind: str,
        entity_id: str,
        relationship_type: str | None = None,
        *,
        active_only: bool = True,
    ) -> list[EntityRelationship]:
        return await self.store.find_by_endpoint(
            tenant_id, kind, entity_id, relationship_type, active_only=active_only
        )

    async def list_relationships(
        self, tenant_id: str, filters: RelationshipFilters
    ) -> tuple[list[EntityRelationship], int]:
        return await self.store.list_relationships(tenant_id, filters)

    async def create_from_mention(
        self, tenant_id: str, data: MentionCreate, created_by: str | None = None
    ) -> EntityRelationship:
        """Record that ``target`` was mentioned inside ``source``."""
        tags = ["mention"]
        if data.context_type:
            tags.append(data.context_type)
        return await self.create_relationship(
            tenant_id,
            RelationshipCreate(
                relationship_type=MENTION_TYPE,
                source_kind=data.target_kind,
                source_id=data.target_id,
                target_kind=data.source_kind,
                target_id=data.source_id,
                strength=1,
                tags=tags,
                attrs={
                    "mention_context": data.context_type,
                    "context_data": data.context_data,
                    "mentioned_at": utcnow().isoformat(),
                },
                created_by=created_by,
            ),
        )

    async def record_interaction(self, tenant_id: str, data: InteractionCreate) -> bool:
        """Bump the interaction counter on the matching live edge. False if there is none."""
        touched = await self.store.record_interaction(
            tenant_id,
            data.source_kind,
            data.source_id,
            data.target_kind,
            data.target_id,
            data.relationship_type,
        )
        return touched > 0

    async def stats(self, tenant_id: str) -> list[dict[str, Any]]:
        return await self.store.stats(tenant_id)
