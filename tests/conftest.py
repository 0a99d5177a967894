# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

import os

# Settings are read lazily, but the app module builds its middleware at import.
os.environ.setdefault("SKUGRAPH_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncIterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from skugraph.models.base import Base
from skugraph.models.relationship import RelationshipType
from skugraph.models.sku import SKUTemplate
from skugraph.schemas.sku import components_to_rows, parse_component
from skugraph.services.entity_data import EntityDataRegistry, StaticEntityProvider
from skugraph.services.template_engine import TemplateSKUEngine
from skugraph.services.uniqueness import UniquenessEnforcer
from skugraph.stores.memory import (
    InMemoryRelationshipStore,
    InMemoryRelationshipTypeRegistry,
    InMemorySequenceCounter,
    InMemorySKULedger,
    InMemoryTemplateStore,
)

TENANT = "tenant-a"
FIXED_NOW = datetime(2024, 12, 1, 9, 30, tzinfo=timezone.utc)


def _get_test_database_url(tmp_path: Path) -> str:
    """Return the test database URL from env, falling back to a SQLite file.

    A file rather than ``:memory:`` because sequence counters commit on their
    own connection and must see the same database.
    """
    return os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite+aiosqlite:///{tmp_path / 'skugraph-test.db'}",
    )


@pytest.fixture
async def async_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create an async engine for the test database."""
    engine = create_async_engine(_get_test_database_url(tmp_path), echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Provide a database session that rolls back anything left uncommitted."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------------------------
# Entity data
# ---------------------------------------------------------------------------


@pytest.fixture
def entity_rows() -> dict[str, StaticEntityProvider]:
    """One static provider per kind used in tests; tests add rows as needed."""
    return {
        kind: StaticEntityProvider()
        for kind in (
            "Product",
            "ProductCategory",
            "Vendor",
            "Project",
            "Task",
            "WorkOrder",
            "Budget",
        )
    }


@pytest.fixture
def providers(entity_rows: dict[str, StaticEntityProvider]) -> EntityDataRegistry:
    registry = EntityDataRegistry()
    for kind, provider in entity_rows.items():
        registry.register(kind, provider)
    return registry


# ---------------------------------------------------------------------------
# In-memory engine
# ---------------------------------------------------------------------------


class MemoryBackend:
    """Bundle of in-memory stores wired into one engine."""

    def __init__(self, providers: EntityDataRegistry, *, max_attempts: int = 1000) -> None:
        self.templates = InMemoryTemplateStore()
        self.relationships = InMemoryRelationshipStore()
        self.types = InMemoryRelationshipTypeRegistry()
        self.sequences = InMemorySequenceCounter()
        self.ledger = InMemorySKULedger()
        self.engine = TemplateSKUEngine(
            templates=self.templates,
            relationships=self.relationships,
            providers=providers,
            sequences=self.sequences,
            ledger=self.ledger,
            enforcer=UniquenessEnforcer(max_attempts),
            clock=lambda: FIXED_NOW,
        )


@pytest.fixture
def backend(providers: EntityDataRegistry) -> MemoryBackend:
    return MemoryBackend(providers)


# ---------------------------------------------------------------------------
# Factory helpers for creating model instances in tests
# ---------------------------------------------------------------------------


def make_relationship_type(
    *,
    name: str = "supplier",
    source_kinds: list[str] | None = None,
    target_kinds: list[str] | None = None,
    is_bidirectional: bool = False,
    reverse_name: str | None = None,
    default_strength: int = 3,
    is_system: bool = False,
) -> dict[str, object]:
    """Return kwargs suitable for constructing a RelationshipType model instance."""
    return {
        "name": name,
        "display_name": name.replace("_", " ").title(),
        "description": f"{name} relationship",
        "source_kinds": source_kinds if source_kinds is not None else ["*"],
        "target_kinds": target_kinds if target_kinds is not None else ["*"],
        "is_bidirectional": is_bidirectional,
        "reverse_name": reverse_name,
        "default_strength": default_strength,
        "is_system": is_system,
    }


def make_edge(
    *,
    source_kind: str = "Product",
    source_id: str = "p-1",
    target_kind: str = "Vendor",
    target_id: str = "v-1",
    relationship_type: str = "supplier",
    strength: int = 3,
    tenant_id: str = TENANT,
    tags: list[str] | None = None,
) -> dict[str, object]:
    """Return kwargs suitable for constructing an EntityRelationship model instance."""
    return {
        "id": uuid4(),
        "tenant_id": tenant_id,
        "relationship_type": relationship_type,
        "source_kind": source_kind,
        "source_id": source_id,
        "target_kind": target_kind,
        "target_id": target_id,
        "strength": strength,
        "priority": 1,
        "is_active": True,
        "is_deleted": False,
        "tags": tags if tags is not None else [],
        "attrs": {},
        "interaction_count": 1,
    }


def make_template(
    *,
    template: str = "PRJ-{category}-{sequence}",
    components: dict[str, dict[str, Any]] | None = None,
    entity_kind: str = "Project",
    name: str | None = None,
    is_default: bool = True,
    tenant_id: str = TENANT,
) -> dict[str, object]:
    """Return kwargs suitable for constructing an SKUTemplate model instance.

    ``components`` is given in the request form and stored in row form.
    """
    if components is None:
        components = {
            "category": {
                "type": "entity_field",
                "path": "kind",
                "transform": "upper",
                "maxLength": 3,
                "fallback": "GEN",
            },
            "sequence": {"type": "sequence", "length": 3},
        }
    parsed = {key: parse_component(value) for key, value in components.items()}
    return {
        "id": uuid4(),
        "tenant_id": tenant_id,
        "name": name or f"template-{uuid4().hex[:8]}",
        "entity_kind": entity_kind,
        "template": template,
        "components": components_to_rows(parsed),
        "is_default": is_default,
        "is_active": True,
        "usage_count": 0,
    }


async def add_template(backend: MemoryBackend, **kwargs: Any) -> SKUTemplate:
    return await backend.templates.add(SKUTemplate(**make_template(**kwargs)))


async def add_type(backend: MemoryBackend, **kwargs: Any) -> RelationshipType:
    return await backend.types.register(RelationshipType(**make_relationship_type(**kwargs)))
