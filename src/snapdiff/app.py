"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from snapdiff.adapters.archive import JsonDirectoryArchive
from snapdiff.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from snapdiff.config import PipelineConfig, get_pipeline_config
from snapdiff.domain.feed import FeedPage, paginate
from snapdiff.domain.materialize import MaterializeResult, materialize_snapshot
from snapdiff.domain.pipeline import (
    CrawlResult,
    backfill_changes,
    process_crawl,
    process_snapshot_pair,
)
from snapdiff.domain.ports import CatalogUnitOfWork

if TYPE_CHECKING:
    from datetime import date

    from snapdiff.domain.changes import ReconcileCounts
    from snapdiff.domain.ports import SnapshotArchive

UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]

log = getLogger(__name__)


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def _archive(archive: SnapshotArchive | None, config: PipelineConfig) -> SnapshotArchive:
    return archive or JsonDirectoryArchive(config.archive_dir)


def _latest_crawl_id(archive: SnapshotArchive) -> str:
    crawl_ids = archive.list_crawl_ids()
    if not crawl_ids:
        raise LookupError("The crawl archive is empty")
    return crawl_ids[-1]


def materialize_crawl(
    crawl_id: str | None = None,
    *,
    archive: SnapshotArchive | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: PipelineConfig | None = None,
) -> MaterializeResult:
    """Bring the current-state tables in line with one archived crawl."""

    effective_config = config or get_pipeline_config()
    effective_archive = _archive(archive, effective_config)
    snapshot = effective_archive.load(crawl_id or _latest_crawl_id(effective_archive))
    return materialize_snapshot(
        _unit_of_work_factory(unit_of_work_factory),
        snapshot,
        batch_size=effective_config.materialize_batch_size,
    )


def update_changes(
    crawl_id: str | None = None,
    *,
    archive: SnapshotArchive | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: PipelineConfig | None = None,
) -> ReconcileCounts | None:
    """Recompute and store the changes between ``crawl_id`` and its predecessor."""

    effective_archive = _archive(archive, config or get_pipeline_config())
    current_id = crawl_id or _latest_crawl_id(effective_archive)
    previous_id = effective_archive.previous_crawl_id(current_id)
    if previous_id is None:
        log.info(f"Crawl {current_id} has no predecessor, nothing to compare")
        return None
    return process_snapshot_pair(
        _unit_of_work_factory(unit_of_work_factory),
        effective_archive.load(previous_id),
        effective_archive.load(current_id),
    )


def process(
    crawl_id: str | None = None,
    *,
    archive: SnapshotArchive | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: PipelineConfig | None = None,
) -> CrawlResult | None:
    """Materialize a crawl and record its changes; the scheduler's per-crawl job."""

    effective_config = config or get_pipeline_config()
    log.info(f"Processing crawl {crawl_id or '(latest)'} from {effective_config.archive_dir}")
    return process_crawl(
        _unit_of_work_factory(unit_of_work_factory),
        _archive(archive, effective_config),
        crawl_id,
        batch_size=effective_config.materialize_batch_size,
    )


def backfill(
    from_crawl_id: str | None = None,
    *,
    archive: SnapshotArchive | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: PipelineConfig | None = None,
) -> int:
    return backfill_changes(
        _unit_of_work_factory(unit_of_work_factory),
        _archive(archive, config or get_pipeline_config()),
        from_crawl_id,
    )


def changes_feed(
    cursor: str | None = None,
    *,
    page_size: int | None = None,
    max_groups: int | None = None,
    displayable_only: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: PipelineConfig | None = None,
) -> FeedPage:
    """Read one feed page; records stay readable after the session closes."""

    effective_config = config or get_pipeline_config()
    if page_size is None:
        page_size = effective_config.feed_page_size
    if max_groups is None:
        max_groups = effective_config.feed_max_groups
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return paginate(
            uow.repositories.changes,
            cursor,
            page_size,
            max_groups=max_groups,
            displayable_only=displayable_only,
        )


def change_days(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> list[date]:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return list(uow.repositories.crawl_index.list_days())
