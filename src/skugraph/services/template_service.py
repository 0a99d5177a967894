# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from skugraph.errors import NoTemplateFoundError
from skugraph.models.sku import SKUTemplate
from skugraph.schemas.sku import SKUTemplateCreate, SKUTemplateUpdate, components_to_rows
from skugraph.stores import TemplateStore

logger = logging.getLogger(__name__)

_NULLABLE = frozenset({"description", "example_output"})


class TemplateService:
    """Tenant-scoped management of SKU templates.

    At most one active default exists per (tenant, entity kind): promoting a
    template to default demotes the previous one first.
    """

    def __init__(self, store: TemplateStore) -> None:
        self.store = store

    async def create_template(self, tenant_id: str, data: SKUTemplateCreate) -> SKUTemplate:
        template = SKUTemplate(
            id=uuid4(),
            tenant_id=tenant_id,
            name=data.name,
            description=data.description,
            entity_kind=data.entity_kind,
            template=data.template,
            components=components_to_rows(data.components),
            is_default=data.is_default,
            is_active=data.is_active,
            usage_count=0,
            example_output=data.example_output,
        )
        template = await self.store.add(template)
        logger.info(
            "Created SKU template %s (%s) for %s", template.name, template.id, data.entity_kind
        )
        return template

    async def get_template(self, tenant_id: str, template_id: UUID) -> SKUTemplate:
        template = await self.store.get(tenant_id, template_id)
        if template is None:
            raise NoTemplateFoundError("", template_id)
        return template

    async def get_default_template(self, tenant_id: str, entity_kind: str) -> SKUTemplate:
        template = await self.store.get_default(tenant_id, entity_kind)
        if template is None:
            raise NoTemplateFoundError(entity_kind)
        return template

    async def list_templates(
        self, tenant_id: str, entity_kind: str | None = None
    ) -> list[SKUTemplate]:
        return await self.store.list_templates(tenant_id, entity_kind)

    async def update_template(
        self, tenant_id: str, template_id: UUID, patch: SKUTemplateUpdate
    ) -> SKUTemplate:
        template = await self.store.get(tenant_id, template_id, include_inactive=True)
        if template is None:
            raise NoTemplateFoundError("", template_id)
        changes = {
            name: value
            for name, value in patch.model_dump(exclude_unset=True, exclude={"components"}).items()
            if value is not None or name in _NULLABLE
        }
        if patch.components is not None:
            changes["components"] = components_to_rows(patch.components)
        becomes_default = changes.get("is_default", template.is_default) and changes.get(
            "is_active", template.is_active
        )
        if becomes_default:
            await self.store.clear_default(tenant_id, template.entity_kind, keep=template.id)
        for name, value in changes.items():
            setattr(template, name, value)
        await self.store.save(template)
        return template
