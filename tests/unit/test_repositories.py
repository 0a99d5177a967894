# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from unittest.mock import MagicMock

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skugraph.models.relationship import EntityRelationship, RelationshipType
from skugraph.models.sku import EntitySKU, SKUTemplate
from skugraph.repositories.base import BaseRepository
from skugraph.repositories.relationship_repository import RelationshipRepository
from skugraph.repositories.relationship_type_repository import RelationshipTypeRepository
from skugraph.repositories.sequence_repository import SqlSequenceCounter
from skugraph.repositories.sku_repository import EntitySKURepository, SKUTemplateRepository


class TestBaseRepositoryInstantiation:
    def test_base_repository_stores_session_and_model(self) -> None:
        mock_session = MagicMock(spec=AsyncSession)
        repo = BaseRepository(mock_session, SKUTemplate)
        assert repo.session is mock_session
        assert repo.model is SKUTemplate


class TestRelationshipRepositoryInstantiation:
    def test_relationship_repository_sets_model(self) -> None:
        repo = RelationshipRepository(MagicMock(spec=AsyncSession))
        assert repo.model is EntityRelationship

    def test_relationship_repository_has_custom_methods(self) -> None:
        repo = RelationshipRepository(MagicMock(spec=AsyncSession))
        for name in (
            "put",
            "find_live",
            "find_by_endpoint",
            "soft_delete",
            "list_relationships",
            "record_interaction",
            "stats",
        ):
            assert callable(getattr(repo, name, None))


class TestRelationshipTypeRepositoryInstantiation:
    def test_relationship_type_repository_sets_model(self) -> None:
        repo = RelationshipTypeRepository(MagicMock(spec=AsyncSession))
        assert repo.model is RelationshipType

    def test_relationship_type_repository_has_custom_methods(self) -> None:
        repo = RelationshipTypeRepository(MagicMock(spec=AsyncSession))
        assert callable(getattr(repo, "register", None))
        assert callable(getattr(repo, "create_with_reverse", None))


class TestSKURepositoryInstantiation:
    def test_template_repository_sets_model(self) -> None:
        repo = SKUTemplateRepository(MagicMock(spec=AsyncSession))
        assert repo.model is SKUTemplate
        assert callable(getattr(repo, "get_default", None))
        assert callable(getattr(repo, "clear_default", None))

    def test_entity_sku_repository_sets_model(self) -> None:
        repo = EntitySKURepository(MagicMock(spec=AsyncSession))
        assert repo.model is EntitySKU
        assert callable(getattr(repo, "insert", None))
        assert callable(getattr(repo, "latest_version", None))


class TestSequenceCounterInstantiation:
    def test_sequence_counter_keeps_session_factory(self) -> None:
        factory = MagicMock(spec=async_sessionmaker)
        counter = SqlSequenceCounter(factory)
        assert callable(getattr(counter, "next", None))
        assert callable(getattr(counter, "peek", None))
