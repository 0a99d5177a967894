# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Attribute lookup for entities owned by the host application.

The generators never know an entity's real schema. The host registers one
async provider per :class:`EntityKind`; each returns a flat attribute map with
one level of nested associations flattened under dotted keys
(``project.name``), or ``None`` when the entity does not exist.
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from skugraph.errors import EntityNotFoundError, ProviderNotRegisteredError

AttributeMap = dict[str, Any]
EntityDataProvider = Callable[[str, str], Awaitable[Mapping[str, Any] | None]]


class EntityKind(str, enum.Enum):
    PRODUCT = "Product"
    PRODUCT_CATEGORY = "ProductCategory"
    CONTACT = "Contact"
    VENDOR = "Vendor"
    BRAND = "Brand"
    WORK_ORDER = "WorkOrder"
    TASK = "Task"
    PROJECT = "Project"
    USER = "User"
    BUDGET = "Budget"
    LOCATION = "Location"
    COMMENT = "Comment"
    DOCUMENT = "Document"


def flatten_attributes(
    record: Mapping[str, Any], associations: Mapping[str, Mapping[str, Any] | None] | None = None
) -> AttributeMap:
    """Merge an entity's scalar fields with one level of nested associations.

    Each association is kept as a nested dict under its name and also spread
    into dotted keys, so both ``attrs["project"]["name"]`` and
    ``attrs["project.name"]`` resolve.
    """
    attrs: AttributeMap = dict(record)
    for name, related in (associations or {}).items():
        if related is None:
            continue
        attrs[name] = dict(related)
        for key, value in related.items():
            attrs[f"{name}.{key}"] = value
    return attrs


def lookup_path(attrs: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path against an attribute map. Returns None on a miss."""
    if path in attrs:
        return attrs[path]
    current: Any = attrs
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    return current


class StaticEntityProvider:
    """Serves attributes from an in-memory ``{entity_id: attributes}`` table."""

    def __init__(self, rows: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._rows: dict[tuple[str, str], AttributeMap] = {}
        self._any_tenant: dict[str, AttributeMap] = {}
        for entity_id, attrs in (rows or {}).items():
            self._any_tenant[entity_id] = dict(attrs)

    def add(
        self, entity_id: str, attrs: Mapping[str, Any], *, tenant_id: str | None = None
    ) -> None:
        if tenant_id is None:
            self._any_tenant[entity_id] = dict(attrs)
        else:
            self._rows[(tenant_id, entity_id)] = dict(attrs)

    async def __call__(self, entity_id: str, tenant_id: str) -> AttributeMap | None:
        row = self._rows.get((tenant_id, entity_id))
        if row is None:
            row = self._any_tenant.get(entity_id)
        return None if row is None else dict(row)


class EntityDataRegistry:
    """Explicit map from entity kind to the provider that loads it."""

    def __init__(self) -> None:
        self._providers: dict[EntityKind, EntityDataProvider] = {}

    @staticmethod
    def _coerce(kind: EntityKind | str) -> EntityKind:
        try:
            return EntityKind(kind)
        except ValueError:
            raise ProviderNotRegisteredError(str(kind)) from None

    def register(self, kind: EntityKind | str, provider: EntityDataProvider) -> None:
        """Add a provider. Raises ValueError if the kind already has one."""
        entity_kind = self._coerce(kind)
        if entity_kind in self._providers:
            msg = f"Entity kind '{entity_kind.value}' already has a provider"
            raise ValueError(msg)
        self._providers[entity_kind] = provider

    def kinds(self) -> list[EntityKind]:
        return list(self._providers)

    async def fetch(self, kind: EntityKind | str, entity_id: str, tenant_id: str) -> AttributeMap:
        entity_kind = self._coerce(kind)
        provider = self._providers.get(entity_kind)
        if provider is None:
            raise ProviderNotRegisteredError(entity_kind.value)
        attrs = await provider(entity_id, tenant_id)
        if attrs is None:
            raise EntityNotFoundError(entity_kind.value, entity_id)
        result = dict(attrs)
        result.setdefault("id", entity_id)
        result.setdefault("entity_kind", entity_kind.value)
        return result
