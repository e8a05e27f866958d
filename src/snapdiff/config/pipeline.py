"""Defaults for the snapshot pipeline and the change feed."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .env import env_positive_int
from .storage import get_storage_config

DEFAULT_MATERIALIZE_BATCH_SIZE = 500
DEFAULT_FEED_MAX_GROUPS = 10
DEFAULT_FEED_PAGE_SIZE = 50


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    archive_dir: Path
    materialize_batch_size: int = DEFAULT_MATERIALIZE_BATCH_SIZE
    feed_max_groups: int = DEFAULT_FEED_MAX_GROUPS
    feed_page_size: int = DEFAULT_FEED_PAGE_SIZE


def get_pipeline_config() -> PipelineConfig:
    env_archive = os.getenv("SNAPDIFF_ARCHIVE_DIR")
    archive_dir = Path(env_archive) if env_archive else get_storage_config().archive_path()
    return PipelineConfig(
        archive_dir=archive_dir.expanduser(),
        materialize_batch_size=env_positive_int(
            "SNAPDIFF_MATERIALIZE_BATCH_SIZE", DEFAULT_MATERIALIZE_BATCH_SIZE
        ),
        feed_max_groups=env_positive_int("SNAPDIFF_FEED_MAX_GROUPS", DEFAULT_FEED_MAX_GROUPS),
        feed_page_size=env_positive_int("SNAPDIFF_FEED_PAGE_SIZE", DEFAULT_FEED_PAGE_SIZE),
    )
