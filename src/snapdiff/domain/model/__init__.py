"""Domain model for catalog snapshots and their changes."""

from __future__ import annotations

from .change import ChangeCrawlIndex, ChangeKey, ChangeRecord
from .entity import (
    Active,
    Availability,
    CatalogEntity,
    Endpoint,
    Model,
    Provider,
    Unavailable,
    new_id,
)
from .enums import ChangeKind, EntityType
from .snapshot import CatalogSnapshot, parse_crawl_timestamp

__all__ = [
    "Active",
    "Availability",
    "CatalogEntity",
    "CatalogSnapshot",
    "ChangeCrawlIndex",
    "ChangeKey",
    "ChangeKind",
    "ChangeRecord",
    "Endpoint",
    "EntityType",
    "Model",
    "Provider",
    "Unavailable",
    "new_id",
    "parse_crawl_timestamp",
]
