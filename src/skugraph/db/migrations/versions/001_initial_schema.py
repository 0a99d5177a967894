# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Initial schema: relationship graph, SKU templates, entity SKUs, sequences.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    # ------------------------------------------------------------------
    # 1. relationship_types
    # ------------------------------------------------------------------
    op.create_table(
        "relationship_types",
        sa.Column("name", sa.String(), primary_key=True),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "source_kinds",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "target_kinds",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("is_bidirectional", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("reverse_name", sa.String(), nullable=True),
        sa.Column("default_strength", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
        sa.CheckConstraint(
            "default_strength >= 1 AND default_strength <= 5",
            name="ck_relationship_types_default_strength",
        ),
        sa.CheckConstraint(
            "reverse_name IS NULL OR reverse_name != name",
            name="ck_relationship_types_reverse_name",
        ),
    )

    # ------------------------------------------------------------------
    # 2. entity_relationships
    # ------------------------------------------------------------------
    op.create_table(
        "entity_relationships",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column(
            "relationship_type",
            sa.String(),
            sa.ForeignKey("relationship_types.name"),
            nullable=False,
        ),
        sa.Column("source_kind", sa.String(), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("target_kind", sa.String(), nullable=False),
        sa.Column("target_id", sa.String(), nullable=False),
        sa.Column("strength", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paired_edge_id", sa.Uuid(), nullable=True),
        sa.Column(
            "tags", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        sa.Column(
            "attrs", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column("interaction_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_interaction_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "strength >= 1 AND strength <= 5",
            name="ck_entity_relationships_strength",
        ),
    )
    op.create_index(
        "idx_entity_relationships_source",
        "entity_relationships",
        ["tenant_id", "source_kind", "source_id"],
    )
    op.create_index(
        "idx_entity_relationships_target",
        "entity_relationships",
        ["tenant_id", "target_kind", "target_id"],
    )
    op.create_index(
        "idx_entity_relationships_type", "entity_relationships", ["relationship_type"]
    )
    op.create_index(
        "uq_entity_relationships_live_edge",
        "entity_relationships",
        [
            "tenant_id",
            "source_kind",
            "source_id",
            "target_kind",
            "target_id",
            "relationship_type",
        ],
        unique=True,
        postgresql_where=sa.text("is_deleted = false"),
    )

    # ------------------------------------------------------------------
    # 3. sku_templates
    # ------------------------------------------------------------------
    op.create_table(
        "sku_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("entity_kind", sa.String(), nullable=False),
        sa.Column("template", sa.String(), nullable=False),
        sa.Column(
            "components",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("example_output", sa.String(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "name"),
    )
    op.create_index("idx_sku_templates_kind", "sku_templates", ["tenant_id", "entity_kind"])
    op.create_index(
        "uq_sku_templates_default",
        "sku_templates",
        ["tenant_id", "entity_kind"],
        unique=True,
        postgresql_where=sa.text("is_default = true AND is_active = true"),
    )

    # ------------------------------------------------------------------
    # 4. entity_skus
    # ------------------------------------------------------------------
    op.create_table(
        "entity_skus",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("entity_kind", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("sku_value", sa.String(), nullable=False, unique=True),
        sa.Column(
            "template_id",
            sa.Uuid(),
            sa.ForeignKey("sku_templates.id"),
            nullable=True,
        ),
        sa.Column(
            "components",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "generated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        *_timestamps(),
    )
    op.create_index(
        "idx_entity_skus_entity", "entity_skus", ["tenant_id", "entity_kind", "entity_id"]
    )
    op.create_index(
        "uq_entity_skus_active_entity",
        "entity_skus",
        ["tenant_id", "entity_kind", "entity_id"],
        unique=True,
        postgresql_where=sa.text("is_active = true"),
    )

    # ------------------------------------------------------------------
    # 5. sku_sequences
    # ------------------------------------------------------------------
    op.create_table(
        "sku_sequences",
        sa.Column("scope_key", sa.String(), primary_key=True),
        sa.Column("value", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.text("now()"),
        ),
    )


def downgrade() -> None:
    op.drop_table("sku_sequences")
    op.drop_index("uq_entity_skus_active_entity", table_name="entity_skus")
    op.drop_index("idx_entity_skus_entity", table_name="entity_skus")
    op.drop_table("entity_skus")
    op.drop_index("uq_sku_templates_default", table_name="sku_templates")
    op.drop_index("idx_sku_templates_kind", table_name="sku_templates")
    op.drop_table("sku_templates")
    op.drop_index("uq_entity_relationships_live_edge", table_name="entity_relationships")
    op.drop_index("idx_entity_relationships_type", table_name="entity_relationships")
    op.drop_index("idx_entity_relationships_target", table_name="entity_relationships")
    op.drop_index("idx_entity_relationships_source", table_name="entity_relationships")
    op.drop_table("entity_relationships")
    op.drop_table("relationship_types")
