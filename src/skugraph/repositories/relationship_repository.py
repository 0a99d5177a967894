# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.errors import StorageConflictError
from skugraph.models.base import utcnow
from skugraph.models.relationship import EntityRelationship
from skugraph.repositories.base import BaseRepository
from skugraph.schemas.relationship import RelationshipFilters


class RelationshipRepository(BaseRepository[EntityRelationship]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, EntityRelationship)

    async def put(
        self, edge: EntityRelationship, companion: EntityRelationship | None = None
    ) -> None:
        # One flush, one transaction: a failure on either row leaves neither.
        self.session.add(edge)
        if companion is not None:
            self.session.add(companion)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise StorageConflictError("Relationship already exists") from exc

    async def get(self, tenant_id: str, edge_id: UUID) -> EntityRelationship | None:
        result = await self.session.execute(
            select(EntityRelationship).where(
                EntityRelationship.id == edge_id,
                EntityRelationship.tenant_id == tenant_id,
                EntityRelationship.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def find_live(
        self,
        tenant_id: str,
        source_kind: str,
        source_id: str,
        target_kind: str,
        target_id: str,
        relationship_type: str,
    ) -> EntityRelationship | None:
        result = await self.session.execute(
            select(EntityRelationship).where(
                EntityRelationship.tenant_id == tenant_id,
                EntityRelationship.source_kind == source_kind,
                EntityRelationship.source_id == source_id,
                EntityRelationship.target_kind == target_kind,
                EntityRelationship.target_id == target_id,
                EntityRelationship.relationship_type == relationship_type,
                EntityRelationship.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def find_by_endpoint(
        self,
        tenant_id: str,
        kind: str,
        entity_id: str,
        relationship_type: str | None = None,
        *,
        active_only: bool = True,
    ) -> list[EntityRelationship]:
        stmt = select(EntityRelationship).where(
            EntityRelationship.tenant_id == tenant_id,
            or_(
                and_(
                    EntityRelationship.source_kind == kind,
                    EntityRelationship.source_id == entity_id,
                ),
                and_(
                    EntityRelationship.target_kind == kind,
                    EntityRelationship.target_id == entity_id,
                ),
            ),
        )
        if relationship_type is not None:
            stmt = stmt.where(EntityRelationship.relationship_type == relationship_type)
        if active_only:
            stmt = stmt.where(
                EntityRelationship.is_active.is_(True),
                EntityRelationship.is_deleted.is_(False),
            )
        stmt = stmt.order_by(
            EntityRelationship.strength.desc(),
            EntityRelationship.created_at.asc(),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

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
        now = utcnow()
        for edge in edges:
            edge.is_deleted = True
            edge.is_active = False
            edge.deleted_at = now
        await self.session.flush()

    async def save(self, edges: list[EntityRelationship]) -> None:
        await self.session.flush()

    async def list_relationships(
        self, tenant_id: str, filters: RelationshipFilters
    ) -> tuple[list[EntityRelationship], int]:
        conditions: list[Any] = [
            EntityRelationship.tenant_id == tenant_id,
            EntityRelationship.is_deleted.is_(False),
        ]
        for column, value in (
            (EntityRelationship.source_kind, filters.source_kind),
            (EntityRelationship.source_id, filters.source_id),
            (EntityRelationship.target_kind, filters.target_kind),
            (EntityRelationship.target_id, filters.target_id),
            (EntityRelationship.relationship_type, filters.relationship_type),
            (EntityRelationship.is_active, filters.is_active),
        ):
            if value is not None:
                conditions.append(column == value)
        if filters.min_strength is not None:
            conditions.append(EntityRelationship.strength >= filters.min_strength)
        if filters.max_strength is not None:
            conditions.append(EntityRelationship.strength <= filters.max_strength)

        stmt = (
            select(EntityRelationship)
            .where(*conditions)
            .order_by(
                EntityRelationship.priority.desc(),
                EntityRelationship.strength.desc(),
                EntityRelationship.last_interaction_at.desc().nulls_last(),
            )
        )
        if filters.tags:
            # Tags live in a JSON list; any-of matching is done after loading.
            result = await self.session.execute(stmt)
            wanted = set(filters.tags)
            matched = [e for e in result.scalars().all() if wanted.intersection(e.tags)]
            page = matched[filters.offset : filters.offset + filters.limit]
            return page, len(matched)

        total = await self.session.execute(
            select(func.count()).select_from(EntityRelationship).where(*conditions)
        )
        result = await self.session.execute(stmt.limit(filters.limit).offset(filters.offset))
        return list(result.scalars().all()), total.scalar_one()

    async def record_interaction(
        self,
        tenant_id: str,
        source_kind: str,
        source_id: str,
        target_kind: str,
        target_id: str,
        relationship_type: str,
    ) -> int:
        """Bump the interaction counter of the matching live edge. Returns rows touched."""
        result = await self.session.execute(
            update(EntityRelationship)
            .where(
                EntityRelationship.tenant_id == tenant_id,
                EntityRelationship.source_kind == source_kind,
                EntityRelationship.source_id == source_id,
                EntityRelationship.target_kind == target_kind,
                EntityRelationship.target_id == target_id,
                EntityRelationship.relationship_type == relationship_type,
                EntityRelationship.is_deleted.is_(False),
            )
            .values(
                interaction_count=EntityRelationship.interaction_count + 1,
                last_interaction_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def stats(self, tenant_id: str) -> list[dict[str, Any]]:
        result = await self.session.execute(
            select(
                EntityRelationship.relationship_type,
                EntityRelationship.source_kind,
                EntityRelationship.target_kind,
                func.count().label("count"),
                func.avg(EntityRelationship.strength).label("avg_strength"),
            )
            .where(
                EntityRelationship.tenant_id == tenant_id,
                EntityRelationship.is_deleted.is_(False),
                EntityRelationship.is_active.is_(True),
            )
            .group_by(
                EntityRelationship.relationship_type,
                EntityRelationship.source_kind,
                EntityRelationship.target_kind,
            )
            .order_by(EntityRelationship.relationship_type)
        )
        return [
            {
                "relationship_type": row["relationship_type"],
                "source_kind": row["source_kind"],
                "target_kind": row["target_kind"],
                "count": row["count"],
                "avg_strength": (
                    float(row["avg_strength"]) if row["avg_strength"] is not None else None
                ),
            }
            for row in result.mappings().all()
        ]
