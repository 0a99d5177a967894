# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from skugraph.models.base import Base, JSONType, TimestampMixin, UUIDMixin, utcnow


class SKUTemplate(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "sku_templates"

    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    entity_kind: Mapped[str] = mapped_column(String, nullable=False)
    template: Mapped[str] = mapped_column(String, nullable=False)
    # Ordered list of {"key": ..., "type": ..., ...}; a list keeps the declared
    # order, JSONB objects do not.
    components: Mapped[list[dict[str, object]]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    example_output: Mapped[str | None] = mapped_column(String, default=None)

    __table_args__ = (
        UniqueConstraint("tenant_id", "name"),
        Index("idx_sku_templates_kind", "tenant_id", "entity_kind"),
        Index(
            "uq_sku_templates_default",
            "tenant_id",
            "entity_kind",
            unique=True,
            postgresql_where=text("is_default = true AND is_active = true"),
            sqlite_where=text("is_default = 1 AND is_active = 1"),
        ),
    )


class EntitySKU(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "entity_skus"

    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    entity_kind: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[str] = mapped_column(String, nullable=False)
    sku_value: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    template_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("sku_templates.id"),
        default=None,
    )
    components: Mapped[dict[str, object]] = mapped_column(
        JSONType, nullable=False, default=dict
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_entity_skus_entity", "tenant_id", "entity_kind", "entity_id"),
        Index(
            "uq_entity_skus_active_entity",
            "tenant_id",
            "entity_kind",
            "entity_id",
            unique=True,
            postgresql_where=text("is_active = true"),
            sqlite_where=text("is_active = 1"),
        ),
    )


class SequenceCounterRow(Base):
    __tablename__ = "sku_sequences"

    scope_key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
