# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

import pytest

from skugraph.models.base import Base, TimestampMixin, UUIDMixin
from skugraph.models.relationship import EntityRelationship, RelationshipType
from skugraph.models.sku import EntitySKU, SequenceCounterRow, SKUTemplate
from tests.conftest import make_edge, make_relationship_type


class TestRelationshipTypeRules:
    def test_allows_listed_kinds(self) -> None:
        rel_type = RelationshipType(
            **make_relationship_type(source_kinds=["Vendor"], target_kinds=["Product"])
        )
        assert rel_type.allows("Vendor", "Product")
        assert not rel_type.allows("Product", "Vendor")
        assert not rel_type.allows("Vendor", "Task")

    def test_wildcard_matches_any_kind(self) -> None:
        rel_type = RelationshipType(
            **make_relationship_type(source_kinds=["*"], target_kinds=["Project"])
        )
        assert rel_type.allows("Anything", "Project")
        assert not rel_type.allows("Anything", "Task")

    def test_derive_reverse_swaps_kinds(self) -> None:
        rel_type = RelationshipType(
            **make_relationship_type(
                source_kinds=["Contact", "Vendor"],
                target_kinds=["Product"],
                reverse_name="supplied_by",
                is_system=True,
            )
        )
        reverse = rel_type.derive_reverse()
        assert reverse.name == "supplied_by"
        assert reverse.reverse_name == "supplier"
        assert reverse.source_kinds == ["Product"]
        assert reverse.target_kinds == ["Contact", "Vendor"]
        assert reverse.default_strength == rel_type.default_strength
        assert reverse.is_system is True

    def test_derive_reverse_requires_a_reverse_name(self) -> None:
        rel_type = RelationshipType(**make_relationship_type(name="related_to"))
        with pytest.raises(ValueError):
            rel_type.derive_reverse()

    def test_companion_type(self) -> None:
        bidirectional = RelationshipType(
            **make_relationship_type(name="works_with", is_bidirectional=True)
        )
        paired = RelationshipType(**make_relationship_type(reverse_name="supplied_by"))
        plain = RelationshipType(**make_relationship_type(name="blocks"))
        assert bidirectional.companion_type == "works_with"
        assert paired.companion_type == "supplied_by"
        assert plain.companion_type is None


class TestEntityRelationshipEndpoints:
    def test_touches_either_side(self) -> None:
        edge = EntityRelationship(**make_edge())
        assert edge.touches("Product", "p-1")
        assert edge.touches("Vendor", "v-1")
        assert not edge.touches("Product", "v-1")

    def test_other_endpoint(self) -> None:
        edge = EntityRelationship(**make_edge())
        assert edge.other_endpoint("Product", "p-1") == ("Vendor", "v-1")
        assert edge.other_endpoint("Vendor", "v-1") == ("Product", "p-1")


class TestColumnDefaults:
    def test_relationship_defaults(self) -> None:
        table = EntityRelationship.__table__
        assert table.c["strength"].default.arg == 1
        assert table.c["priority"].default.arg == 1
        assert table.c["interaction_count"].default.arg == 1
        assert table.c["is_deleted"].default.arg is False
        assert table.c["paired_edge_id"].nullable

    def test_template_defaults(self) -> None:
        table = SKUTemplate.__table__
        assert table.c["usage_count"].default.arg == 0
        assert table.c["is_default"].default.arg is False
        assert table.c["is_active"].default.arg is True

    def test_entity_sku_value_is_unique(self) -> None:
        assert EntitySKU.__table__.c["sku_value"].unique
        assert EntitySKU.__table__.c["version"].default.arg == 1

    def test_sequence_row_keyed_by_scope(self) -> None:
        assert [c.name for c in SequenceCounterRow.__table__.primary_key] == ["scope_key"]


class TestMixins:
    def test_timestamped_models(self) -> None:
        for model in (RelationshipType, EntityRelationship, SKUTemplate, EntitySKU):
            assert issubclass(model, TimestampMixin)
            assert issubclass(model, Base)

    def test_uuid_models(self) -> None:
        for model in (EntityRelationship, SKUTemplate, EntitySKU):
            assert issubclass(model, UUIDMixin)
        assert not issubclass(RelationshipType, UUIDMixin)

    def test_tables_registered(self) -> None:
        assert set(Base.metadata.tables) == {
            "relationship_types",
            "entity_relationships",
            "sku_templates",
            "entity_skus",
            "sku_sequences",
        }
