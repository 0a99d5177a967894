# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Built-in relationship types and SKU templates installed on a fresh tenant."""

from __future__ import annotations

import logging

from skugraph.models.relationship import ANY_KIND
from skugraph.schemas.relationship import RelationshipTypeCreate
from skugraph.schemas.sku import SKUTemplateCreate
from skugraph.services.relationship_service import relationship_type_from
from skugraph.stores import RelationshipTypeRegistry

logger = logging.getLogger(__name__)


def _paired(
    name: str,
    reverse_name: str,
    source_kinds: list[str],
    target_kinds: list[str],
    strength: int,
    description: str,
) -> RelationshipTypeCreate:
    return RelationshipTypeCreate(
        name=name,
        display_name=name.replace("_", " ").title(),
        description=description,
        source_kinds=source_kinds,
        target_kinds=target_kinds,
        reverse_name=reverse_name,
        default_strength=strength,
        is_system=True,
    )


BUILTIN_RELATIONSHIP_TYPES: list[RelationshipTypeCreate] = [
    _paired(
        "supplier", "supplied_by", ["Contact", "Vendor"], ["Product"], 3,
        "Entity supplies products or services to another entity",
    ),
    _paired(
        "category", "contains", ["Product"], ["ProductCategory"], 2,
        "Entity belongs to a category",
    ),
    _paired(
        "assigned_to", "assigned", ["Task", "Project"], ["User"], 4,
        "Work is assigned to a user",
    ),
    _paired(
        "belongs_to", "includes", ["Task", "Budget", "WorkOrder"], ["Project"], 3,
        "Entity is part of a project",
    ),
    _paired("funds", "funded_by", ["Budget"], ["Project", "Task"], 3, "Budget funds work"),
    _paired(
        "produces", "produced_by", ["WorkOrder"], ["Product"], 4,
        "Work order produces a product",
    ),
    _paired(
        "manages", "managed_by", ["User"], ["Project", "Task", "Budget", "WorkOrder"], 4,
        "User manages an entity",
    ),
    _paired(
        "brand_of", "branded_by", ["Brand", "Contact"], ["Product"], 3,
        "Brand under which a product is sold",
    ),
    _paired(
        "located_at", "houses", ["Product", "WorkOrder", "User"], ["Location"], 2,
        "Entity is kept or works at a location",
    ),
    _paired(
        "depends_on", "dependency_of", ["Task", "Project", "WorkOrder"],
        ["Task", "Project", "Product", "User"], 3,
        "Entity cannot proceed without another",
    ),
    RelationshipTypeCreate(
        name="works_with",
        display_name="Works With",
        description="Collaboration between people",
        source_kinds=["User", "Contact"],
        target_kinds=["User", "Contact"],
        is_bidirectional=True,
        default_strength=2,
        is_system=True,
    ),
    RelationshipTypeCreate(
        name="mentioned_in",
        display_name="Mentioned In",
        description="Entity is mentioned in a task, comment, document or budget",
        source_kinds=["User", "Contact", "Product", "Project", "Task"],
        target_kinds=["Task", "Comment", "Document", "Budget"],
        default_strength=1,
        is_system=True,
    ),
    RelationshipTypeCreate(
        name="related_to",
        display_name="Related To",
        description="Generic link between any two entities",
        source_kinds=[ANY_KIND],
        target_kinds=[ANY_KIND],
        is_bidirectional=True,
        default_strength=1,
        is_system=True,
    ),
]


BUILTIN_SKU_TEMPLATES: list[SKUTemplateCreate] = [
    SKUTemplateCreate.model_validate(
        {
            "name": "Standard Product SKU",
            "description": "Category, supplier, format and a per-category sequence",
            "entity_kind": "Product",
            "template": "{category}-{supplier}-{format}-{sequence}",
            "components": {
                "category": {"type": "category_code", "length": 3},
                "supplier": {"type": "supplier_code", "length": 3},
                "format": {
                    "type": "entity_field",
                    "path": "format",
                    "default": "100",
                    "transform": {"ENVASADOS": "100", "CONGELADOS": "200", "FRESCOS": "300"},
                },
                "sequence": {"type": "sequence", "length": 3, "partition_by": ["category"]},
            },
            "is_default": True,
            "example_output": "CAF-SMT-100-001",
        }
    ),
    SKUTemplateCreate.model_validate(
        {
            "name": "Simple Product SKU",
            "description": "Product type prefix with a global sequence",
            "entity_kind": "Product",
            "template": "{type_prefix}{sequence}",
            "components": {
                "type_prefix": {
                    "type": "entity_field",
                    "path": "type",
                    "default": "P",
                    "transform": {"TERMINADO": "T", "INSUMO": "I", "SERVICIO": "S"},
                },
                "sequence": {"type": "sequence", "length": 5, "scope": "global"},
            },
            "example_output": "T00001",
        }
    ),
    SKUTemplateCreate.model_validate(
        {
            "name": "Standard Work Order SKU",
            "description": "Date, produced product and a daily sequence",
            "entity_kind": "WorkOrder",
            "template": "WO-{date}-{product}-{sequence}",
            "components": {
                "date": {"type": "date", "format": "YYMMDD"},
                "product": {
                    "type": "relationship",
                    "relationship_type": "produces",
                    "field": "sku",
                    "length": 8,
                    "default": "UNKNOWN",
                },
                "sequence": {"type": "sequence", "length": 3, "scope": "daily"},
            },
            "is_default": True,
            "example_output": "WO-241201-CAF-SMT-001",
        }
    ),
    SKUTemplateCreate.model_validate(
        {
            "name": "Project Task SKU",
            "description": "Project abbreviation and a per-project sequence",
            "entity_kind": "Task",
            "template": "{project_code}-T{sequence}",
            "components": {
                "project_code": {
                    "type": "relationship",
                    "relationship_type": "belongs_to",
                    "field": "name",
                    "length": 6,
                    "default": "PROJ",
                    "transform": "abbreviate",
                },
                "sequence": {"type": "sequence", "length": 4, "partition_by": ["project_code"]},
            },
            "is_default": True,
            "example_output": "MRLL-T0001",
        }
    ),
    SKUTemplateCreate.model_validate(
        {
            "name": "Contact Reference Code",
            "description": "Contact type prefix and a per-type sequence",
            "entity_kind": "Contact",
            "template": "{type_prefix}-{sequence}",
            "components": {
                "type_prefix": {
                    "type": "entity_field",
                    "path": "type",
                    "default": "CNT",
                    "transform": {
                        "supplier": "SUP",
                        "customer": "CUS",
                        "brand": "BRD",
                        "important": "VIP",
                    },
                },
                "sequence": {"type": "sequence", "length": 4, "partition_by": ["type_prefix"]},
            },
            "is_default": True,
            "example_output": "SUP-0001",
        }
    ),
    SKUTemplateCreate.model_validate(
        {
            "name": "Budget Reference Code",
            "description": "Project, budget year and budget category",
            "entity_kind": "Budget",
            "template": "BGT-{project}-{period}-{category}",
            "components": {
                "project": {
                    "type": "relationship",
                    "relationship_type": "belongs_to",
                    "field": "name",
                    "length": 4,
                    "default": "GEN",
                    "transform": "abbreviate",
                },
                "period": {"type": "date", "format": "YYYY"},
                "category": {
                    "type": "entity_field",
                    "path": "category",
                    "default": "OPX",
                    "transform": {
                        "OPEX": "OPX",
                        "CAPEX": "CPX",
                        "REVENUE": "REV",
                        "OTHER": "OTH",
                    },
                },
            },
            "is_default": True,
            "example_output": "BGT-MRLL-2024-OPX",
        }
    ),
    SKUTemplateCreate.model_validate(
        {
            "name": "Employee Code",
            "description": "Role abbreviation and a per-role sequence",
            "entity_kind": "User",
            "template": "EMP-{department}-{sequence}",
            "components": {
                "department": {
                    "type": "entity_field",
                    "path": "role.name",
                    "length": 3,
                    "default": "GEN",
                    "transform": "abbreviate",
                },
                "sequence": {"type": "sequence", "length": 3, "partition_by": ["department"]},
            },
            "is_default": True,
            "example_output": "EMP-ADM-001",
        }
    ),
]


async def install_builtin_types(registry: RelationshipTypeRegistry) -> list[str]:
    """Register every built-in type that is not registered yet. Returns the new names."""
    existing = {rel_type.name for rel_type in await registry.list_types()}
    installed: list[str] = []
    for data in BUILTIN_RELATIONSHIP_TYPES:
        if data.name in existing:
            continue
        rel_type, reverse = await registry.create_with_reverse(relationship_type_from(data))
        installed.append(rel_type.name)
        if reverse is not None:
            installed.append(reverse.name)
    logger.info("Installed %d built-in relationship types", len(installed))
    return installed
