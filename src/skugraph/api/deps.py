# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.config import get_settings
from skugraph.db.session import get_db, get_session_factory
from skugraph.repositories import (
    EntitySKURepository,
    RelationshipRepository,
    RelationshipTypeRepository,
    SKUTemplateRepository,
    SqlSequenceCounter,
)
from skugraph.services.classification_codec import ClassificationCodec
from skugraph.services.entity_data import EntityDataRegistry
from skugraph.services.relationship_service import RelationshipService
from skugraph.services.template_engine import TemplateSKUEngine
from skugraph.services.template_service import TemplateService
from skugraph.services.uniqueness import UniquenessEnforcer
from skugraph.stores import SequenceCounter


async def get_tenant_id(x_tenant_id: str = Header(..., min_length=1)) -> str:
    """Tenant is an explicit, required header; there is no default tenant."""
    return x_tenant_id


def get_entity_providers(request: Request) -> EntityDataRegistry:
    return request.app.state.entity_providers


def get_sequence_counter() -> SequenceCounter:
    return SqlSequenceCounter(get_session_factory())


def get_relationship_service(db: AsyncSession = Depends(get_db)) -> RelationshipService:
    return RelationshipService(RelationshipRepository(db), RelationshipTypeRepository(db))


def get_template_service(db: AsyncSession = Depends(get_db)) -> TemplateService:
    return TemplateService(SKUTemplateRepository(db))


def get_sku_engine(
    db: AsyncSession = Depends(get_db),
    providers: EntityDataRegistry = Depends(get_entity_providers),
    sequences: SequenceCounter = Depends(get_sequence_counter),
) -> TemplateSKUEngine:
    settings = get_settings()
    return TemplateSKUEngine(
        templates=SKUTemplateRepository(db),
        relationships=RelationshipRepository(db),
        providers=providers,
        sequences=sequences,
        ledger=EntitySKURepository(db),
        enforcer=UniquenessEnforcer(settings.sku_max_reserve_attempts),
        min_length=settings.sku_min_length,
    )


def get_codec() -> ClassificationCodec:
    return ClassificationCodec()
