# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Domain exceptions raised by the relationship graph and code generators."""

from __future__ import annotations


class SkuGraphError(Exception):
    """Base exception for all skugraph domain errors."""


# ---------------------------------------------------------------------------
# Relationship graph
# ---------------------------------------------------------------------------


class UnknownTypeError(SkuGraphError):
    """Raised when a relationship type name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Relationship type '{name}' is not registered")
        self.name = name


class DuplicateTypeError(SkuGraphError):
    """Raised when registering a relationship type whose name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Relationship type '{name}' is already registered")
        self.name = name


class ProtectedTypeError(SkuGraphError):
    """Raised when deleting a built-in (system) relationship type."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Relationship type '{name}' is a system type and cannot be deleted")
        self.name = name


class RelationshipNotFoundError(SkuGraphError):
    def __init__(self, relationship_id: object) -> None:
        super().__init__(f"Relationship with ID {relationship_id} not found")
        self.relationship_id = relationship_id


# ---------------------------------------------------------------------------
# Entities and templates
# ---------------------------------------------------------------------------


class EntityNotFoundError(SkuGraphError):
    def __init__(self, entity_kind: str, entity_id: str) -> None:
        super().__init__(f"{entity_kind} with ID {entity_id} not found")
        self.entity_kind = entity_kind
        self.entity_id = entity_id


class ProviderNotRegisteredError(SkuGraphError):
    """Raised when no EntityDataProvider is registered for an entity kind."""

    def __init__(self, entity_kind: str) -> None:
        super().__init__(f"No entity data provider registered for kind '{entity_kind}'")
        self.entity_kind = entity_kind


class NoTemplateFoundError(SkuGraphError):
    def __init__(self, entity_kind: str, template_id: object | None = None) -> None:
        if template_id is not None:
            msg = f"SKU template with ID {template_id} not found"
        else:
            msg = f"No SKU template found for entity type: {entity_kind}"
        super().__init__(msg)
        self.entity_kind = entity_kind
        self.template_id = template_id


class DuplicateAssignmentError(SkuGraphError):
    """Raised when an entity already has an active SKU."""

    def __init__(self, entity_kind: str, entity_id: str) -> None:
        super().__init__(f"{entity_kind} {entity_id} already has a SKU assigned")
        self.entity_kind = entity_kind
        self.entity_id = entity_id


# ---------------------------------------------------------------------------
# Validation and storage
# ---------------------------------------------------------------------------


class ValidationFailedError(SkuGraphError):
    """Raised when input violates a structural rule. ``errors`` lists every violation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = errors or [message]


class KindNotAllowedError(ValidationFailedError):
    """Raised when an edge's endpoint kinds are not permitted by its type."""

    def __init__(self, relationship_type: str, source_kind: str, target_kind: str) -> None:
        super().__init__(
            f"Relationship type '{relationship_type}' does not allow "
            f"{source_kind} -> {target_kind}"
        )
        self.relationship_type = relationship_type
        self.source_kind = source_kind
        self.target_kind = target_kind


class StorageConflictError(SkuGraphError):
    """Raised by the storage layer when an atomic write lost a race."""

    def __init__(self, message: str, value: str | None = None) -> None:
        super().__init__(message)
        self.value = value


class ExhaustedRetriesError(SkuGraphError):
    """Raised when every suffixed candidate for a base code was taken."""

    def __init__(self, candidate: str, attempts: int) -> None:
        super().__init__(
            f"Could not reserve a unique code for '{candidate}' after {attempts} attempts"
        )
        self.candidate = candidate
        self.attempts = attempts
