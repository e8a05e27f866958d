"""Application configuration helpers."""

from __future__ import annotations

from .env import env_positive_int
from .errors import ConfigurationError
from .logging import configure_logging
from .pipeline import (
    DEFAULT_FEED_MAX_GROUPS,
    DEFAULT_FEED_PAGE_SIZE,
    DEFAULT_MATERIALIZE_BATCH_SIZE,
    PipelineConfig,
    get_pipeline_config,
)
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "DEFAULT_FEED_MAX_GROUPS",
    "DEFAULT_FEED_PAGE_SIZE",
    "DEFAULT_MATERIALIZE_BATCH_SIZE",
    "ConfigurationError",
    "DatabaseConfig",
    "PipelineConfig",
    "StorageConfig",
    "configure_logging",
    "env_positive_int",
    "get_database_config",
    "get_database_uri",
    "get_pipeline_config",
    "get_storage_config",
]
