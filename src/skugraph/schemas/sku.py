# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)

# "upper" / "lower" / "abbreviate", or a lookup table from raw value to code.
Transform = Literal["upper", "lower", "abbreviate"] | dict[str, str]

# Fallback for category and supplier codes when nothing can be resolved.
GENERIC_CODE = "GEN"

_SCOPE_ALIASES = {"perEntityKind": "entity_kind", "per_entity_kind": "entity_kind"}


class _Component(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: str | None = None


class StaticComponent(_Component):
    type: Literal["static"] = "static"
    value: str = ""


class EntityFieldComponent(_Component):
    type: Literal["entity_field", "entityField"] = "entity_field"
    path: str = Field(..., validation_alias=AliasChoices("path", "field"))
    default: str = Field("", validation_alias=AliasChoices("default", "fallback"))
    transform: Transform | None = None
    length: int | None = Field(
        None, ge=1, validation_alias=AliasChoices("length", "max_length", "maxLength")
    )


class RelationshipComponent(_Component):
    type: Literal["relationship"] = "relationship"
    relationship_type: str = Field(
        ..., validation_alias=AliasChoices("relationship_type", "relationshipType")
    )
    field: str
    default: str = Field("", validation_alias=AliasChoices("default", "fallback"))
    transform: Transform | None = None
    length: int | None = Field(
        None, ge=1, validation_alias=AliasChoices("length", "max_length", "maxLength")
    )


class SequenceComponent(_Component):
    type: Literal["sequence"] = "sequence"
    scope: Literal["global", "entity_kind", "daily"] = "entity_kind"
    length: int = Field(4, ge=1, le=18)
    # Keys of earlier components whose resolved values split the counter further.
    partition_by: list[str] = Field(
        [], validation_alias=AliasChoices("partition_by", "partitionBy")
    )

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: Any) -> Any:
        return _SCOPE_ALIASES.get(value, value) if isinstance(value, str) else value


class DateComponent(_Component):
    type: Literal["date"] = "date"
    format: str = "YYMMDD"


class CategoryCodeComponent(_Component):
    type: Literal["category_code", "categoryCode"] = "category_code"
    length: int = Field(3, ge=1)
    relationship_type: str = "category"
    default: str = GENERIC_CODE


class SupplierCodeComponent(_Component):
    type: Literal["supplier_code", "supplierCode"] = "supplier_code"
    length: int = Field(3, ge=1)
    relationship_type: str = "supplier"
    default: str = GENERIC_CODE


ComponentDefinition = Annotated[
    StaticComponent
    | EntityFieldComponent
    | RelationshipComponent
    | SequenceComponent
    | DateComponent
    | CategoryCodeComponent
    | SupplierCodeComponent,
    Field(discriminator="type"),
]

_component_adapter: TypeAdapter[ComponentDefinition] = TypeAdapter(ComponentDefinition)


def parse_component(data: dict[str, Any]) -> ComponentDefinition:
    return _component_adapter.validate_python(data)


def components_to_rows(components: dict[str, ComponentDefinition]) -> list[dict[str, Any]]:
    """Serialize an ordered component map to the stored list form."""
    return [
        {"key": key, **definition.model_dump(mode="json", exclude_none=True)}
        for key, definition in components.items()
    ]


def components_from_rows(rows: list[dict[str, Any]]) -> dict[str, ComponentDefinition]:
    """Inverse of :func:`components_to_rows`, preserving stored order."""
    result: dict[str, ComponentDefinition] = {}
    for row in rows:
        data = dict(row)
        key = str(data.pop("key"))
        result[key] = parse_component(data)
    return result


def _check_partitions(components: dict[str, ComponentDefinition]) -> None:
    seen: set[str] = set()
    for key, definition in components.items():
        if isinstance(definition, SequenceComponent):
            for ref in definition.partition_by:
                if ref not in seen:
                    raise ValueError(
                        f"sequence component '{key}' partitions by '{ref}', "
                        "which must be declared before it"
                    )
        seen.add(key)


class SKUTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    entity_kind: str
    template: str = Field(..., min_length=1)
    components: dict[str, ComponentDefinition]
    is_active: bool = True
    is_default: bool = False
    example_output: str | None = None

    @model_validator(mode="after")
    def _validate_partitions(self) -> SKUTemplateCreate:
        _check_partitions(self.components)
        return self


class SKUTemplateUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    template: str | None = None
    components: dict[str, ComponentDefinition] | None = None
    is_active: bool | None = None
    is_default: bool | None = None
    example_output: str | None = None

    @model_validator(mode="after")
    def _validate_partitions(self) -> SKUTemplateUpdate:
        if self.components is not None:
            _check_partitions(self.components)
        return self


class SKUTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    name: str
    description: str | None
    entity_kind: str
    template: str
    components: list[dict[str, Any]]
    is_default: bool
    is_active: bool
    usage_count: int
    last_used_at: datetime | None
    example_output: str | None


class TemplateSummary(BaseModel):
    id: UUID
    name: str
    template: str


class GenerateSKURequest(BaseModel):
    entity_kind: str
    entity_id: str
    template_id: UUID | None = None
    overrides: dict[str, Any] = {}


class GenerateSKUResponse(BaseModel):
    sku: str


class PreviewSKUResponse(BaseModel):
    sku: str
    components: dict[str, Any]
    template: TemplateSummary
    unresolved_placeholders: list[str] = []


class EntitySKUResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    entity_kind: str
    entity_id: str
    sku_value: str
    template_id: UUID | None
    components: dict[str, Any]
    version: int
    is_active: bool
    generated_at: datetime


class ValidateSKURequest(BaseModel):
    sku: str


class SKUValidationResponse(BaseModel):
    is_valid: bool
    reason: str | None = None
