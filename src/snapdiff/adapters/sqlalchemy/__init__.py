"""SQLAlchemy adapter package for snapdiff."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCatalogEntityRepository,
    SqlAlchemyChangeCrawlIndexRepository,
    SqlAlchemyChangeRecordRepository,
    SqlAlchemyEndpointRepository,
    SqlAlchemyModelRepository,
    SqlAlchemyProviderRepository,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCatalogEntityRepository",
    "SqlAlchemyChangeCrawlIndexRepository",
    "SqlAlchemyChangeRecordRepository",
    "SqlAlchemyEndpointRepository",
    "SqlAlchemyModelRepository",
    "SqlAlchemyProviderRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
