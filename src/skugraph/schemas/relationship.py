# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RelationshipTypeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    display_name: str | None = None
    description: str | None = None
    source_kinds: list[str] = Field(..., min_length=1)
    target_kinds: list[str] = Field(..., min_length=1)
    is_bidirectional: bool = False
    reverse_name: str | None = None
    default_strength: int = Field(1, ge=1, le=5)
    is_system: bool = False

    @model_validator(mode="after")
    def _check_reverse_name(self) -> RelationshipTypeCreate:
        if self.is_bidirectional:
            # Bidirectional types traverse under their own name both ways.
            self.reverse_name = None
        elif self.reverse_name is not None and self.reverse_name == self.name:
            raise ValueError("reverse_name must differ from name")
        return self


class RelationshipTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    display_name: str | None
    description: str | None
    source_kinds: list[str]
    target_kinds: list[str]
    is_bidirectional: bool
    reverse_name: str | None
    default_strength: int
    is_system: bool


class RelationshipCreate(BaseModel):
    relationship_type: str
    source_kind: str
    source_id: str
    target_kind: str
    target_id: str
    strength: int | None = Field(None, ge=1, le=5)
    priority: int = Field(1, ge=1, le=10)
    is_active: bool = True
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    tags: list[str] = []
    attrs: dict[str, Any] = {}
    created_by: str | None = None


class RelationshipUpdate(BaseModel):
    strength: int | None = Field(None, ge=1, le=5)
    priority: int | None = Field(None, ge=1, le=10)
    is_active: bool | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    tags: list[str] | None = None
    attrs: dict[str, Any] | None = None


class RelationshipFilters(BaseModel):
    source_kind: str | None = None
    source_id: str | None = None
    target_kind: str | None = None
    target_id: str | None = None
    relationship_type: str | None = None
    min_strength: int | None = Field(None, ge=1, le=5)
    max_strength: int | None = Field(None, ge=1, le=5)
    tags: list[str] | None = None
    is_active: bool | None = None
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class RelationshipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    relationship_type: str
    source_kind: str
    source_id: str
    target_kind: str
    target_id: str
    strength: int
    priority: int
    is_active: bool
    paired_edge_id: UUID | None
    tags: list[str]
    attrs: dict[str, Any]
    interaction_count: int
    last_interaction_at: datetime | None
    created_at: datetime
    updated_at: datetime


class MentionCreate(BaseModel):
    """An entity (target) mentioned inside another entity (source)."""

    source_kind: str
    source_id: str
    target_kind: str
    target_id: str
    context_type: str | None = None
    context_data: dict[str, Any] | None = None


class InteractionCreate(BaseModel):
    source_kind: str
    source_id: str
    target_kind: str
    target_id: str
    relationship_type: str


class RelationshipStat(BaseModel):
    relationship_type: str
    source_kind: str
    target_kind: str
    count: int
    avg_strength: float | None
