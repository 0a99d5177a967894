# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.api.deps import get_relationship_service
from skugraph.db.session import get_db
from skugraph.schemas.relationship import RelationshipTypeCreate, RelationshipTypeResponse
from skugraph.services.catalog import install_builtin_types
from skugraph.services.relationship_service import RelationshipService

router = APIRouter(prefix="/relationship-types", tags=["relationship-types"])


@router.get("", response_model=list[RelationshipTypeResponse])
async def list_relationship_types(
    service: RelationshipService = Depends(get_relationship_service),
) -> list[RelationshipTypeResponse]:
    types = await service.list_relationship_types()
    return [RelationshipTypeResponse.model_validate(t) for t in types]


@router.post("", response_model=list[RelationshipTypeResponse], status_code=201)
async def create_relationship_type(
    body: RelationshipTypeCreate,
    service: RelationshipService = Depends(get_relationship_service),
    db: AsyncSession = Depends(get_db),
) -> list[RelationshipTypeResponse]:
    """Register a type. The response also lists the derived reverse type, if any."""
    rel_type, reverse = await service.create_relationship_type(body)
    await db.commit()
    created = [rel_type] if reverse is None else [rel_type, reverse]
    return [RelationshipTypeResponse.model_validate(t) for t in created]


@router.post("/builtin", response_model=list[str])
async def install_builtin_relationship_types(
    service: RelationshipService = Depends(get_relationship_service),
    db: AsyncSession = Depends(get_db),
) -> list[str]:
    installed = await install_builtin_types(service.types)
    await db.commit()
    return installed


@router.get("/{name}", response_model=RelationshipTypeResponse)
async def get_relationship_type(
    name: str,
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipTypeResponse:
    return RelationshipTypeResponse.model_validate(await service.get_relationship_type(name))


@router.delete("/{name}", status_code=204)
async def delete_relationship_type(
    name: str,
    service: RelationshipService = Depends(get_relationship_service),
    db: AsyncSession = Depends(get_db),
) -> None:
    await service.delete_relationship_type(name)
    await db.commit()
