# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from uuid import UUID

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skugraph.errors import DuplicateAssignmentError, StorageConflictError
from skugraph.models.base import utcnow
from skugraph.models.sku import EntitySKU, SKUTemplate
from skugraph.repositories.base import BaseRepository, dialect_insert


class SKUTemplateRepository(BaseRepository[SKUTemplate]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SKUTemplate)

    async def add(self, template: SKUTemplate) -> SKUTemplate:
        # Written as non-default first so a name conflict leaves the current default alone.
        promote = template.is_default and template.is_active
        template.is_default = False
        self.session.add(template)
        await self.save(template)
        if promote:
            await self.clear_default(template.tenant_id, template.entity_kind, keep=template.id)
            template.is_default = True
            await self.save(template)
        return template

    async def save(self, template: SKUTemplate) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise StorageConflictError(
                f"SKU template '{template.name}' already exists", value=template.name
            ) from exc

    async def get(
        self, tenant_id: str, template_id: UUID, *, include_inactive: bool = False
    ) -> SKUTemplate | None:
        stmt = select(SKUTemplate).where(
            SKUTemplate.id == template_id,
            SKUTemplate.tenant_id == tenant_id,
        )
        if not include_inactive:
            stmt = stmt.where(SKUTemplate.is_active.is_(True))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_default(self, tenant_id: str, entity_kind: str) -> SKUTemplate | None:
        result = await self.session.execute(
            select(SKUTemplate).where(
                SKUTemplate.tenant_id == tenant_id,
                SKUTemplate.entity_kind == entity_kind,
                SKUTemplate.is_default.is_(True),
                SKUTemplate.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def list_templates(
        self, tenant_id: str, entity_kind: str | None = None
    ) -> list[SKUTemplate]:
        stmt = select(SKUTemplate).where(
            SKUTemplate.tenant_id == tenant_id,
            SKUTemplate.is_active.is_(True),
        )
        if entity_kind is not None:
            stmt = stmt.where(SKUTemplate.entity_kind == entity_kind)
        result = await self.session.execute(stmt.order_by(SKUTemplate.created_at.desc()))
        return list(result.scalars().all())

    async def clear_default(
        self, tenant_id: str, entity_kind: str, *, keep: UUID | None = None
    ) -> None:
        stmt = update(SKUTemplate).where(
            SKUTemplate.tenant_id == tenant_id,
            SKUTemplate.entity_kind == entity_kind,
            SKUTemplate.is_default.is_(True),
        )
        if keep is not None:
            stmt = stmt.where(SKUTemplate.id != keep)
        await self.session.execute(
            stmt.values(is_default=False).execution_options(synchronize_session="fetch")
        )

    async def record_usage(self, template: SKUTemplate) -> None:
        await self.session.execute(
            update(SKUTemplate)
            .where(SKUTemplate.id == template.id)
            .values(
                usage_count=SKUTemplate.usage_count + 1,
                last_used_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(template)


class EntitySKURepository(BaseRepository[EntitySKU]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, EntitySKU)

    async def get_active(
        self, tenant_id: str, entity_kind: str, entity_id: str
    ) -> EntitySKU | None:
        result = await self.session.execute(
            select(EntitySKU).where(
                EntitySKU.tenant_id == tenant_id,
                EntitySKU.entity_kind == entity_kind,
                EntitySKU.entity_id == entity_id,
                EntitySKU.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def value_exists(self, sku_value: str) -> bool:
        result = await self.session.execute(
            select(exists().where(EntitySKU.sku_value == sku_value))
        )
        return bool(result.scalar())

    async def latest_version(self, tenant_id: str, entity_kind: str, entity_id: str) -> int:
        result = await self.session.execute(
            select(func.max(EntitySKU.version)).where(
                EntitySKU.tenant_id == tenant_id,
                EntitySKU.entity_kind == entity_kind,
                EntitySKU.entity_id == entity_id,
            )
        )
        return result.scalar() or 0

    async def insert(self, entity_sku: EntitySKU) -> EntitySKU:
        """Write the row with ON CONFLICT (sku_value) DO NOTHING.

        An empty RETURNING means another caller owns the value. Any other
        unique violation is the one-active-SKU-per-entity index.
        """
        table = EntitySKU.__table__
        now = utcnow()
        stmt = (
            dialect_insert(self.session, table)
            .values(
                id=entity_sku.id,
                tenant_id=entity_sku.tenant_id,
                entity_kind=entity_sku.entity_kind,
                entity_id=entity_sku.entity_id,
                sku_value=entity_sku.sku_value,
                template_id=entity_sku.template_id,
                components=entity_sku.components,
                version=entity_sku.version,
                is_active=True,
                generated_at=now,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=[table.c.sku_value])
            .returning(table.c.id)
        )
        try:
            result = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise DuplicateAssignmentError(entity_sku.entity_kind, entity_sku.entity_id) from exc
        if result.scalar_one_or_none() is None:
            raise StorageConflictError(
                f"SKU '{entity_sku.sku_value}' is taken", value=entity_sku.sku_value
            )
        stored = await self.session.execute(select(EntitySKU).where(EntitySKU.id == entity_sku.id))
        return stored.scalar_one()

    async def retire(self, entity_sku: EntitySKU) -> None:
        entity_sku.is_active = False
        await self.session.flush()
