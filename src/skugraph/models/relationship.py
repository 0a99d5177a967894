# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from skugraph.models.base import Base, JSONType, TimestampMixin, UUIDMixin

# Matches any entity kind in RelationshipType.source_kinds / target_kinds.
ANY_KIND = "*"


class RelationshipType(TimestampMixin, Base):
    __tablename__ = "relationship_types"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String, default=None)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    source_kinds: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    target_kinds: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    is_bidirectional: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    reverse_name: Mapped[str | None] = mapped_column(String, default=None)
    default_strength: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_system: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    __table_args__ = (
        CheckConstraint(
            "default_strength >= 1 AND default_strength <= 5",
            name="ck_relationship_types_default_strength",
        ),
        CheckConstraint(
            "reverse_name IS NULL OR reverse_name != name",
            name="ck_relationship_types_reverse_name",
        ),
    )

    def allows(self, source_kind: str, target_kind: str) -> bool:
        """Return True if an edge ``source_kind -> target_kind`` is permitted."""
        return (
            ANY_KIND in self.source_kinds or source_kind in self.source_kinds
        ) and (ANY_KIND in self.target_kinds or target_kind in self.target_kinds)

    def derive_reverse(self) -> RelationshipType:
        """Build the inverse type: kinds swapped, paired back to this type."""
        if self.is_bidirectional or not self.reverse_name:
            raise ValueError(f"Relationship type '{self.name}' has no reverse name")
        return RelationshipType(
            name=self.reverse_name,
            display_name=None,
            description=f"Inverse of '{self.name}'",
            source_kinds=list(self.target_kinds),
            target_kinds=list(self.source_kinds),
            is_bidirectional=False,
            reverse_name=self.name,
            default_strength=self.default_strength,
            is_system=self.is_system,
        )

    @property
    def companion_type(self) -> str | None:
        """Type name of the edge materialized in the opposite direction, if any."""
        if self.is_bidirectional:
            return self.name
        return self.reverse_name


class EntityRelationship(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "entity_relationships"

    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    relationship_type: Mapped[str] = mapped_column(
        ForeignKey("relationship_types.name"),
        nullable=False,
    )
    source_kind: Mapped[str] = mapped_column(String, nullable=False)
    source_id: Mapped[str] = mapped_column(String, nullable=False)
    target_kind: Mapped[str] = mapped_column(String, nullable=False)
    target_id: Mapped[str] = mapped_column(String, nullable=False)
    strength: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    valid_from: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    valid_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    # Companion edge written in the same statement; no FK so both rows can be
    # inserted together.
    paired_edge_id: Mapped[UUID | None] = mapped_column(default=None)
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    attrs: Mapped[dict[str, object]] = mapped_column(JSONType, nullable=False, default=dict)
    interaction_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_interaction_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    created_by: Mapped[str | None] = mapped_column(String, default=None)

    __table_args__ = (
        CheckConstraint(
            "strength >= 1 AND strength <= 5",
            name="ck_entity_relationships_strength",
        ),
        Index("idx_entity_relationships_source", "tenant_id", "source_kind", "source_id"),
        Index("idx_entity_relationships_target", "tenant_id", "target_kind", "target_id"),
        Index("idx_entity_relationships_type", "relationship_type"),
        Index(
            "uq_entity_relationships_live_edge",
            "tenant_id",
            "source_kind",
            "source_id",
            "target_kind",
            "target_id",
            "relationship_type",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    def touches(self, kind: str, entity_id: str) -> bool:
        return (self.source_kind == kind and self.source_id == entity_id) or (
            self.target_kind == kind and self.target_id == entity_id
        )

    def other_endpoint(self, kind: str, entity_id: str) -> tuple[str, str]:
        """Return the (kind, id) on the side of this edge that is not the given entity."""
        if self.source_kind == kind and self.source_id == entity_id:
            return self.target_kind, self.target_id
        return self.source_kind, self.source_id
