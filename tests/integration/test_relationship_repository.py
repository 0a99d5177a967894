# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.errors import (
    DuplicateTypeError,
    ProtectedTypeError,
    StorageConflictError,
    UnknownTypeError,
)
from skugraph.models.relationship import EntityRelationship, RelationshipType
from skugraph.repositories.relationship_repository import RelationshipRepository
from skugraph.repositories.relationship_type_repository import RelationshipTypeRepository
from skugraph.schemas.relationship import RelationshipCreate, RelationshipFilters
from skugraph.services.catalog import install_builtin_types
from skugraph.services.relationship_service import RelationshipService
from tests.conftest import TENANT, make_edge, make_relationship_type


async def _service(db_session: AsyncSession) -> RelationshipService:
    types = RelationshipTypeRepository(db_session)
    await install_builtin_types(types)
    return RelationshipService(RelationshipRepository(db_session), types)


class TestRelationshipTypeRepository:
    async def test_register_and_get(self, db_session: AsyncSession) -> None:
        repo = RelationshipTypeRepository(db_session)
        await repo.register(RelationshipType(**make_relationship_type(name="blocks")))

        fetched = await repo.get("blocks")
        assert fetched.source_kinds == ["*"]
        assert [t.name for t in await repo.list_types()] == ["blocks"]

    async def test_duplicate_name(self, db_session: AsyncSession) -> None:
        repo = RelationshipTypeRepository(db_session)
        await repo.register(RelationshipType(**make_relationship_type(name="blocks")))
        with pytest.raises(DuplicateTypeError):
            await repo.register(RelationshipType(**make_relationship_type(name="blocks")))

    async def test_create_with_reverse(self, db_session: AsyncSession) -> None:
        repo = RelationshipTypeRepository(db_session)
        rel_type, reverse = await repo.create_with_reverse(
            RelationshipType(
                **make_relationship_type(
                    source_kinds=["Vendor"], target_kinds=["Product"], reverse_name="supplied_by"
                )
            )
        )
        assert reverse is not None
        assert (await repo.get("supplied_by")).target_kinds == ["Vendor"]

    async def test_delete(self, db_session: AsyncSession) -> None:
        repo = RelationshipTypeRepository(db_session)
        await repo.register(RelationshipType(**make_relationship_type(name="blocks")))
        await repo.register(
            RelationshipType(**make_relationship_type(name="core", is_system=True))
        )

        await repo.delete("blocks")
        with pytest.raises(UnknownTypeError):
            await repo.get("blocks")
        with pytest.raises(ProtectedTypeError):
            await repo.delete("core")


class TestRelationshipRepository:
    async def test_put_and_find(self, db_session: AsyncSession) -> None:
        await RelationshipTypeRepository(db_session).register(
            RelationshipType(**make_relationship_type())
        )
        repo = RelationshipRepository(db_session)
        weak = EntityRelationship(**make_edge(target_id="v-1", strength=2))
        strong = EntityRelationship(**make_edge(target_id="v-2", strength=5))
        await repo.put(weak)
        await repo.put(strong)

        edges = await repo.find_by_endpoint(TENANT, "Product", "p-1", "supplier")
        assert [e.target_id for e in edges] == ["v-2", "v-1"]
        assert await repo.exists(TENANT, "Product", "p-1", "Vendor", "v-1", "supplier")
        assert await repo.get("tenant-b", weak.id) is None

    async def test_live_duplicate_is_a_conflict(
        self, db_session: AsyncSession
    ) -> None:
        await RelationshipTypeRepository(db_session).register(
            RelationshipType(**make_relationship_type())
        )
        repo = RelationshipRepository(db_session)
        await repo.put(EntityRelationship(**make_edge()))
        with pytest.raises(StorageConflictError):
            await repo.put(EntityRelationship(**make_edge()))

    async def test_soft_deleted_edge_frees_the_slot(self, db_session: AsyncSession) -> None:
        await RelationshipTypeRepository(db_session).register(
            RelationshipType(**make_relationship_type())
        )
        repo = RelationshipRepository(db_session)
        edge = EntityRelationship(**make_edge())
        await repo.put(edge)
        await repo.soft_delete([edge])

        assert await repo.get(TENANT, edge.id) is None
        await repo.put(EntityRelationship(**make_edge()))
        assert len(await repo.find_by_endpoint(TENANT, "Product", "p-1")) == 1


class TestRelationshipServiceOnDatabase:
    async def test_pair_written_and_removed_together(self, db_session: AsyncSession) -> None:
        service = await _service(db_session)
        edge = await service.create_relationship(
            TENANT,
            RelationshipCreate(
                relationship_type="supplier",
                source_kind="Vendor",
                source_id="v-1",
                target_kind="Product",
                target_id="p-1",
            ),
        )
        await db_session.commit()

        companion = await service.get_relationship(TENANT, edge.paired_edge_id)
        assert companion.relationship_type == "supplied_by"

        await service.remove_relationship(TENANT, edge.id)
        await db_session.commit()
        assert await service.get_entity_relationships(TENANT, "Product", "p-1") == []

    async def test_list_count_and_stats(self, db_session: AsyncSession) -> None:
        service = await _service(db_session)
        for vendor, strength, tags in (("v-1", 2, ["local"]), ("v-2", 4, ["import"])):
            await service.create_relationship(
                TENANT,
                RelationshipCreate(
                    relationship_type="supplier",
                    source_kind="Vendor",
                    source_id=vendor,
                    target_kind="Product",
                    target_id="p-1",
                    strength=strength,
                    tags=tags,
                ),
            )
        await db_session.commit()

        page, total = await service.list_relationships(
            TENANT, RelationshipFilters(relationship_type="supplier")
        )
        assert total == 2
        assert [e.source_id for e in page] == ["v-2", "v-1"]

        page, total = await service.list_relationships(
            TENANT, RelationshipFilters(tags=["local"])
        )
        assert total == 1
        assert page[0].source_id == "v-1"

        stats = {row["relationship_type"]: row for row in await service.stats(TENANT)}
        assert stats["supplier"]["count"] == 2
        assert stats["supplier"]["avg_strength"] == pytest.approx(3.0)

    async def test_record_interaction(self, db_session: AsyncSession) -> None:
        service = await _service(db_session)
        edge = await service.create_relationship(
            TENANT,
            RelationshipCreate(
                relationship_type="related_to",
                source_kind="Task",
                source_id="t-1",
                target_kind="Project",
                target_id="prj-1",
            ),
        )
        await db_session.commit()

        touched = await service.store.record_interaction(
            TENANT, "Task", "t-1", "Project", "prj-1", "related_to"
        )
        assert touched == 1
        await db_session.refresh(edge)
        assert edge.interaction_count == 2
