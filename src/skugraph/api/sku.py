# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.api.deps import get_sku_engine, get_template_service, get_tenant_id
from skugraph.db.session import get_db
from skugraph.schemas.sku import (
    EntitySKUResponse,
    GenerateSKURequest,
    GenerateSKUResponse,
    PreviewSKUResponse,
    SKUTemplateCreate,
    SKUTemplateResponse,
    SKUTemplateUpdate,
    SKUValidationResponse,
    TemplateSummary,
    ValidateSKURequest,
)
from skugraph.services.template_engine import TemplateSKUEngine
from skugraph.services.template_service import TemplateService

router = APIRouter(prefix="/sku", tags=["sku"])


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@router.post("/templates", response_model=SKUTemplateResponse, status_code=201)
async def create_template(
    body: SKUTemplateCreate,
    tenant_id: str = Depends(get_tenant_id),
    service: TemplateService = Depends(get_template_service),
    db: AsyncSession = Depends(get_db),
) -> SKUTemplateResponse:
    template = await service.create_template(tenant_id, body)
    await db.commit()
    return SKUTemplateResponse.model_validate(template)


@router.get("/templates", response_model=list[SKUTemplateResponse])
async def list_templates(
    entity_kind: str | None = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    service: TemplateService = Depends(get_template_service),
) -> list[SKUTemplateResponse]:
    templates = await service.list_templates(tenant_id, entity_kind)
    return [SKUTemplateResponse.model_validate(t) for t in templates]


@router.get("/templates/default/{entity_kind}", response_model=SKUTemplateResponse)
async def get_default_template(
    entity_kind: str,
    tenant_id: str = Depends(get_tenant_id),
    service: TemplateService = Depends(get_template_service),
) -> SKUTemplateResponse:
    template = await service.get_default_template(tenant_id, entity_kind)
    return SKUTemplateResponse.model_validate(template)


@router.get("/templates/{template_id}", response_model=SKUTemplateResponse)
async def get_template(
    template_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: TemplateService = Depends(get_template_service),
) -> SKUTemplateResponse:
    template = await service.get_template(tenant_id, template_id)
    return SKUTemplateResponse.model_validate(template)


@router.patch("/templates/{template_id}", response_model=SKUTemplateResponse)
async def update_template(
    template_id: UUID,
    body: SKUTemplateUpdate,
    tenant_id: str = Depends(get_tenant_id),
    service: TemplateService = Depends(get_template_service),
    db: AsyncSession = Depends(get_db),
) -> SKUTemplateResponse:
    template = await service.update_template(tenant_id, template_id, body)
    await db.commit()
    return SKUTemplateResponse.model_validate(template)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


@router.post("/generate", response_model=GenerateSKUResponse, status_code=201)
async def generate_sku(
    body: GenerateSKURequest,
    tenant_id: str = Depends(get_tenant_id),
    engine: TemplateSKUEngine = Depends(get_sku_engine),
    db: AsyncSession = Depends(get_db),
) -> GenerateSKUResponse:
    entity_sku = await engine.generate(
        body.entity_kind,
        body.entity_id,
        tenant_id,
        template_id=body.template_id,
        overrides=body.overrides,
    )
    await db.commit()
    return GenerateSKUResponse(sku=entity_sku.sku_value)


@router.post("/preview", response_model=PreviewSKUResponse)
async def preview_sku(
    body: GenerateSKURequest,
    tenant_id: str = Depends(get_tenant_id),
    engine: TemplateSKUEngine = Depends(get_sku_engine),
) -> PreviewSKUResponse:
    preview = await engine.preview(
        body.entity_kind,
        body.entity_id,
        tenant_id,
        template_id=body.template_id,
        overrides=body.overrides,
    )
    template = preview.template
    return PreviewSKUResponse(
        sku=preview.sku,
        components=preview.components,
        template=TemplateSummary(id=template.id, name=template.name, template=template.template),
        unresolved_placeholders=preview.unresolved_placeholders,
    )


@router.post("/validate", response_model=SKUValidationResponse)
async def validate_sku(
    body: ValidateSKURequest,
    engine: TemplateSKUEngine = Depends(get_sku_engine),
) -> SKUValidationResponse:
    result = await engine.validate_code(body.sku)
    return SKUValidationResponse(is_valid=result.is_valid, reason=result.reason)


@router.get("/entities/{entity_kind}/{entity_id}", response_model=EntitySKUResponse)
async def get_entity_sku(
    entity_kind: str,
    entity_id: str,
    tenant_id: str = Depends(get_tenant_id),
    engine: TemplateSKUEngine = Depends(get_sku_engine),
) -> EntitySKUResponse:
    entity_sku = await engine.get_entity_sku(entity_kind, entity_id, tenant_id)
    if entity_sku is None:
        raise HTTPException(status_code=404, detail=f"No SKU for {entity_kind} {entity_id}")
    return EntitySKUResponse.model_validate(entity_sku)


@router.delete("/entities/{entity_kind}/{entity_id}", response_model=EntitySKUResponse)
async def retire_entity_sku(
    entity_kind: str,
    entity_id: str,
    tenant_id: str = Depends(get_tenant_id),
    engine: TemplateSKUEngine = Depends(get_sku_engine),
    db: AsyncSession = Depends(get_db),
) -> EntitySKUResponse:
    entity_sku = await engine.retire_entity_sku(entity_kind, entity_id, tenant_id)
    await db.commit()
    return EntitySKUResponse.model_validate(entity_sku)
