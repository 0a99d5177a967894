# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.api.deps import get_relationship_service, get_tenant_id
from skugraph.db.session import get_db
from skugraph.schemas.common import PaginatedResponse
from skugraph.schemas.relationship import (
    InteractionCreate,
    MentionCreate,
    RelationshipCreate,
    RelationshipFilters,
    RelationshipResponse,
    RelationshipStat,
    RelationshipUpdate,
)
from skugraph.services.relationship_service import RelationshipService

router = APIRouter(prefix="/relationships", tags=["relationships"])


@router.get("", response_model=PaginatedResponse[RelationshipResponse])
async def list_relationships(
    filters: Annotated[RelationshipFilters, Query()],
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
) -> PaginatedResponse[RelationshipResponse]:
    edges, total = await service.list_relationships(tenant_id, filters)
    items = [RelationshipResponse.model_validate(e) for e in edges]
    return PaginatedResponse(
        items=items, total=total, limit=filters.limit, offset=filters.offset
    )


@router.post("", response_model=RelationshipResponse, status_code=201)
async def create_relationship(
    body: RelationshipCreate,
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
    db: AsyncSession = Depends(get_db),
) -> RelationshipResponse:
    edge = await service.create_relationship(tenant_id, body)
    await db.commit()
    return RelationshipResponse.model_validate(edge)


@router.get("/stats", response_model=list[RelationshipStat])
async def relationship_stats(
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
) -> list[RelationshipStat]:
    return [RelationshipStat(**row) for row in await service.stats(tenant_id)]


@router.get("/entity/{kind}/{entity_id}", response_model=list[RelationshipResponse])
async def get_entity_relationships(
    kind: str,
    entity_id: str,
    relationship_type: str | None = Query(None),
    active_only: bool = Query(True),
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
) -> list[RelationshipResponse]:
    edges = await service.get_entity_relationships(
        tenant_id, kind, entity_id, relationship_type, active_only=active_only
    )
    return [RelationshipResponse.model_validate(e) for e in edges]


@router.post("/mentions", response_model=RelationshipResponse, status_code=201)
async def create_mention(
    body: MentionCreate,
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
    db: AsyncSession = Depends(get_db),
) -> RelationshipResponse:
    edge = await service.create_from_mention(tenant_id, body)
    await db.commit()
    return RelationshipResponse.model_validate(edge)


@router.post("/interactions")
async def record_interaction(
    body: InteractionCreate,
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    recorded = await service.record_interaction(tenant_id, body)
    await db.commit()
    return {"recorded": recorded}


@router.get("/{relationship_id}", response_model=RelationshipResponse)
async def get_relationship(
    relationship_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipResponse:
    edge = await service.get_relationship(tenant_id, relationship_id)
    return RelationshipResponse.model_validate(edge)


@router.patch("/{relationship_id}", response_model=RelationshipResponse)
async def update_relationship(
    relationship_id: UUID,
    body: RelationshipUpdate,
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
    db: AsyncSession = Depends(get_db),
) -> RelationshipResponse:
    edge = await service.update_relationship(tenant_id, relationship_id, body)
    await db.commit()
    return RelationshipResponse.model_validate(edge)


@router.delete("/{relationship_id}", status_code=204)
async def remove_relationship(
    relationship_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: RelationshipService = Depends(get_relationship_service),
    db: AsyncSession = Depends(get_db),
) -> None:
    await service.remove_relationship(tenant_id, relationship_id)
    await db.commit()
