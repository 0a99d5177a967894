# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from skugraph.models.base import Base, JSONType, TimestampMixin, UUIDMixin
from skugraph.models.relationship import ANY_KIND, EntityRelationship, RelationshipType
from skugraph.models.sku import EntitySKU, SequenceCounterRow, SKUTemplate

__all__ = [
    "ANY_KIND",
    "Base",
    "EntityRelationship",
    "EntitySKU",
    "JSONType",
    "RelationshipType",
    "SKUTemplate",
    "SequenceCounterRow",
    "TimestampMixin",
    "UUIDMixin",
]
