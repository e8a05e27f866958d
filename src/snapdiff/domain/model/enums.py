"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Discriminator for the catalog tables and their change records."""

    MODEL = "model"
    ENDPOINT = "endpoint"
    PROVIDER = "provider"


class ChangeKind(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
