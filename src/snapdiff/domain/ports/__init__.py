"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    CatalogEntityRepository,
    ChangeCrawlIndexRepository,
    ChangeRecordRepository,
    EndpointRepository,
    ModelRepository,
    ProviderRepository,
    Repository,
)
from .snapshots import SnapshotArchive
from .unit_of_work import (
    CatalogRepositories,
    CatalogUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CatalogEntityRepository",
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "ChangeCrawlIndexRepository",
    "ChangeRecordRepository",
    "EndpointRepository",
    "ModelRepository",
    "ProviderRepository",
    "Repository",
    "RepositoryCollection",
    "SnapshotArchive",
    "UnitOfWork",
]
