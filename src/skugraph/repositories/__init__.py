# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from skugraph.repositories.base import BaseRepository
from skugraph.repositories.relationship_repository import RelationshipRepository
from skugraph.repositories.relationship_type_repository import RelationshipTypeRepository
from skugraph.repositories.sequence_repository import SqlSequenceCounter
from skugraph.repositories.sku_repository import EntitySKURepository, SKUTemplateRepository

__all__ = [
    "BaseRepository",
    "EntitySKURepository",
    "RelationshipRepository",
    "RelationshipTypeRepository",
    "SKUTemplateRepository",
    "SqlSequenceCounter",
]
