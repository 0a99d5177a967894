# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Template-driven SKU generation.

A template such as ``PRJ-{category}-{sequence}`` names its placeholders; each
placeholder is resolved by a typed component definition (entity field,
related entity field, sequence, date, static value, category/supplier code).
The rendered string is upper-cased, made unique by the
:class:`~skugraph.services.uniqueness.UniquenessEnforcer` and persisted as an
:class:`~skugraph.models.sku.EntitySKU`.

Preview runs the same resolution with side-effect free reads (``peek`` on
sequences, ``probe`` on the ledger), so with no intervening state change a
preview shows exactly the value ``generate`` would persist.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from skugraph.errors import DuplicateAssignmentError, EntityNotFoundError, NoTemplateFoundError
from skugraph.models.base import utcnow
from skugraph.models.sku import EntitySKU, SKUTemplate
from skugraph.schemas.sku import (
    CategoryCodeComponent,
    ComponentDefinition,
    DateComponent,
    EntityFieldComponent,
    RelationshipComponent,
    SequenceComponent,
    StaticComponent,
    SupplierCodeComponent,
    Transform,
    components_from_rows,
)
from skugraph.services.entity_data import AttributeMap, EntityDataRegistry, lookup_path
from skugraph.services.uniqueness import UniquenessEnforcer
from skugraph.stores import (
    RelationshipStore,
    SequenceCounter,
    SequenceScope,
    SKULedger,
    TemplateStore,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")
# Alternation is tried left to right, so YYYY wins over YY at the same offset.
_DATE_TOKEN = re.compile(r"YYYY|YY|MM|DD")
_WORD = re.compile(r"[A-Z0-9]+")
_VOWELS = frozenset("AEIOU")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def format_date(fmt: str, moment: datetime) -> str:
    """Replace ``YYYY``, ``YY``, ``MM`` and ``DD`` in ``fmt``; other text is kept."""
    tokens = {
        "YYYY": f"{moment.year:04d}",
        "YY": f"{moment.year % 100:02d}",
        "MM": f"{moment.month:02d}",
        "DD": f"{moment.day:02d}",
    }
    return _DATE_TOKEN.sub(lambda match: tokens[match.group(0)], fmt)


def abbreviate(value: str) -> str:
    """Initials for several words, first letter plus consonants for one."""
    words = _WORD.findall(value.upper())
    if not words:
        return ""
    if len(words) > 1:
        return "".join(word[0] for word in words)
    word = words[0]
    return word[0] + "".join(ch for ch in word[1:] if ch not in _VOWELS)


def apply_transform(value: str, transform: Transform | None) -> str:
    if transform is None:
        return value
    if isinstance(transform, dict):
        if value in transform:
            return transform[value]
        lowered = {k.lower(): v for k, v in transform.items()}
        return lowered.get(value.lower(), value)
    if transform == "upper":
        return value.upper()
    if transform == "lower":
        return value.lower()
    return abbreviate(value)


def render(template: str, values: Mapping[str, str]) -> tuple[str, list[str]]:
    """Substitute ``{key}`` placeholders. Unknown keys stay as literal text.

    Returns the rendered string and the keys that had no value.
    """
    unresolved: list[str] = []

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in values:
            return values[key]
        unresolved.append(key)
        return match.group(0)

    return _PLACEHOLDER.sub(replace, template), unresolved


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _shape(value: str, transform: Transform | None, length: int | None) -> str:
    shaped = apply_transform(value, transform)
    return shaped[:length] if length is not None else shaped


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Resolution:
    template: SKUTemplate
    components: dict[str, str]
    code: str
    unresolved: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SKUPreview:
    sku: str
    components: dict[str, str]
    template: SKUTemplate
    unresolved_placeholders: list[str]


@dataclass(frozen=True, slots=True)
class SKUValidation:
    is_valid: bool
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class _Context:
    entity_kind: str
    entity_id: str
    tenant_id: str
    attrs: AttributeMap
    now: datetime


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TemplateSKUEngine:
    """Generates, previews, looks up and validates template-based SKUs."""

    def __init__(
        self,
        templates: TemplateStore,
        relationships: RelationshipStore,
        providers: EntityDataRegistry,
        sequences: SequenceCounter,
        ledger: SKULedger,
        *,
        enforcer: UniquenessEnforcer | None = None,
        clock: Callable[[], datetime] = utcnow,
        min_length: int = 3,
    ) -> None:
        self.templates = templates
        self.relationships = relationships
        self.providers = providers
        self.sequences = sequences
        self.ledger = ledger
        self.enforcer = enforcer or UniquenessEnforcer()
        self.clock = clock
        self.min_length = min_length

    async def generate(
        self,
        entity_kind: str,
        entity_id: str,
        tenant_id: str,
        template_id: UUID | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> EntitySKU:
        template = await self._load_template(entity_kind, tenant_id, template_id)
        attrs = await self.providers.fetch(entity_kind, entity_id, tenant_id)
        # Checked before any sequence number is consumed; the ledger's unique
        # index still decides races.
        if await self.ledger.get_active(tenant_id, entity_kind, entity_id) is not None:
            raise DuplicateAssignmentError(entity_kind, entity_id)

        ctx = _Context(entity_kind, entity_id, tenant_id, attrs, self.clock())
        resolution = await self._resolve(template, ctx, overrides or {}, consume=True)
        version = await self.ledger.latest_version(tenant_id, entity_kind, entity_id) + 1

        async def claim(value: str) -> EntitySKU:
            return await self.ledger.insert(
                EntitySKU(
                    id=uuid4(),
                    tenant_id=tenant_id,
                    entity_kind=entity_kind,
                    entity_id=entity_id,
                    sku_value=value,
                    template_id=template.id,
                    components=dict(resolution.components),
                    version=version,
                    is_active=True,
                    generated_at=ctx.now,
                )
            )

        entity_sku = await self.enforcer.reserve(resolution.code, claim)
        await self.templates.record_usage(template)
        logger.info(
            "Generated SKU %s for %s %s (template %s, version %d)",
            entity_sku.sku_value,
            entity_kind,
            entity_id,
            template.id,
            version,
        )
        return entity_sku

    async def preview(
        self,
        entity_kind: str,
        entity_id: str,
        tenant_id: str,
        template_id: UUID | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> SKUPreview:
        template = await self._load_template(entity_kind, tenant_id, template_id)
        attrs = await self.providers.fetch(entity_kind, entity_id, tenant_id)
        ctx = _Context(entity_kind, entity_id, tenant_id, attrs, self.clock())
        resolution = await self._resolve(template, ctx, overrides or {}, consume=False)
        sku = await self.enforcer.probe(resolution.code, self.ledger.value_exists)
        return SKUPreview(
            sku=sku,
            components=resolution.components,
            template=template,
            unresolved_placeholders=resolution.unresolved,
        )

    async def get_entity_sku(
        self, entity_kind: str, entity_id: str, tenant_id: str
    ) -> EntitySKU | None:
        return await self.ledger.get_active(tenant_id, entity_kind, entity_id)

    async def retire_entity_sku(
        self, entity_kind: str, entity_id: str, tenant_id: str
    ) -> EntitySKU:
        """Deactivate the entity's SKU. The value itself is never handed out again."""
        entity_sku = await self.ledger.get_active(tenant_id, entity_kind, entity_id)
        if entity_sku is None:
            raise EntityNotFoundError(entity_kind, entity_id)
        await self.ledger.retire(entity_sku)
        logger.info("Retired SKU %s for %s %s", entity_sku.sku_value, entity_kind, entity_id)
        return entity_sku

    async def validate_code(self, code: str) -> SKUValidation:
        if len(code) < self.min_length:
            return SKUValidation(is_valid=False, reason="SKU too short")
        if await self.ledger.value_exists(code):
            return SKUValidation(is_valid=False, reason="SKU already exists")
        return SKUValidation(is_valid=True)

    # -- resolution -------------------------------------------------------

    async def _load_template(
        self, entity_kind: str, tenant_id: str, template_id: UUID | None
    ) -> SKUTemplate:
        if template_id is not None:
            template = await self.templates.get(tenant_id, template_id)
        else:
            template = await self.templates.get_default(tenant_id, entity_kind)
        if template is None:
            raise NoTemplateFoundError(entity_kind, template_id)
        return template

    async def _resolve(
        self,
        template: SKUTemplate,
        ctx: _Context,
        overrides: Mapping[str, Any],
        *,
        consume: bool,
    ) -> Resolution:
        resolved: dict[str, str] = {}
        for key, definition in components_from_rows(template.components).items():
            override = overrides.get(key)
            if override is not None:
                resolved[key] = str(override)
                continue
            resolved[key] = await self._resolve_component(definition, ctx, resolved, consume)

        rendered, unresolved = render(template.template, resolved)
        if unresolved:
            logger.warning(
                "Template %s left placeholders unresolved for %s %s: %s",
                template.id,
                ctx.entity_kind,
                ctx.entity_id,
                ", ".join(unresolved),
            )
        return Resolution(
            template=template,
            components=resolved,
            code=rendered.upper(),
            unresolved=unresolved,
        )

    async def _resolve_component(
        self,
        definition: ComponentDefinition,
        ctx: _Context,
        resolved: Mapping[str, str],
        consume: bool,
    ) -> str:
        match definition:
            case StaticComponent():
                return definition.value
            case EntityFieldComponent():
                value = lookup_path(ctx.attrs, definition.path)
                if not _present(value):
                    return definition.default
                return _shape(str(value), definition.transform, definition.length)
            case RelationshipComponent():
                related = await self._related_attrs(ctx, definition.relationship_type)
                value = None if related is None else lookup_path(related, definition.field)
                if not _present(value):
                    return definition.default
                return _shape(str(value), definition.transform, definition.length)
            case SequenceComponent():
                scope = self._sequence_scope(definition, ctx, resolved)
                if consume:
                    number = await self.sequences.next(scope)
                else:
                    number = await self.sequences.peek(scope)
                return str(number).zfill(definition.length)
            case DateComponent():
                return format_date(definition.format, ctx.now)
            case CategoryCodeComponent():
                return await self._category_code(definition, ctx)
            case SupplierCodeComponent():
                return await self._supplier_code(definition, ctx)
        raise TypeError(f"Unsupported component definition {definition!r}")

    def _sequence_scope(
        self, definition: SequenceComponent, ctx: _Context, resolved: Mapping[str, str]
    ) -> SequenceScope:
        parts = tuple(resolved.get(ref, "").upper() for ref in definition.partition_by)
        if definition.scope == "global":
            return SequenceScope.global_scope(parts)
        day = ctx.now.date() if definition.scope == "daily" else None
        return SequenceScope.for_kind(ctx.entity_kind, ctx.tenant_id, day=day, parts=parts)

    async def _related_attrs(self, ctx: _Context, relationship_type: str) -> AttributeMap | None:
        """Attributes of the strongest related entity, or None when there is no edge."""
        edges = await self.relationships.find_by_endpoint(
            ctx.tenant_id, ctx.entity_kind, ctx.entity_id, relationship_type
        )
        if not edges:
            return None
        kind, other_id = edges[0].other_endpoint(ctx.entity_kind, ctx.entity_id)
        return await self.providers.fetch(kind, other_id, ctx.tenant_id)

    async def _category_code(self, definition: CategoryCodeComponent, ctx: _Context) -> str:
        code = _code_or_name(ctx.attrs, "category.", definition.length)
        if code is None:
            related = await self._related_attrs(ctx, definition.relationship_type)
            if related is not None:
                code = _code_or_name(related, "", definition.length)
        return code if code is not None else definition.default

    async def _supplier_code(self, definition: SupplierCodeComponent, ctx: _Context) -> str:
        related = await self._related_attrs(ctx, definition.relationship_type)
        if related is None:
            return definition.default
        abbreviation = lookup_path(related, "sku_abbreviation")
        if _present(abbreviation):
            return str(abbreviation)
        name = lookup_path(related, "name")
        if _present(name):
            return str(name)[: definition.length]
        return definition.default


def _code_or_name(attrs: Mapping[str, Any], prefix: str, length: int) -> str | None:
    code = lookup_path(attrs, f"{prefix}code")
    if _present(code):
        return str(code)
    name = lookup_path(attrs, f"{prefix}name")
    if _present(name):
        return str(name)[:length]
    return None
