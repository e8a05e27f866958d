"""Crawl-level orchestration of the materialize, extract and reconcile stages."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from snapdiff.config.pipeline import DEFAULT_MATERIALIZE_BATCH_SIZE
from snapdiff.domain.changes.extract import extract_changes
from snapdiff.domain.changes.reconcile import reconcile_changes
from snapdiff.domain.materialize import materialize_snapshot

if TYPE_CHECKING:
    from collections.abc import Callable

    from snapdiff.domain.changes.reconcile import ReconcileCounts
    from snapdiff.domain.materialize import MaterializeResult
    from snapdiff.domain.model import CatalogSnapshot
    from snapdiff.domain.ports import CatalogUnitOfWork, SnapshotArchive

log = getLogger(__name__)


@dataclass(slots=True)
class CrawlResult:
    crawl_id: str
    materialized: MaterializeResult
    previous_crawl_id: str | None = None
    changes: ReconcileCounts | None = None


def process_snapshot_pair(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    previous: CatalogSnapshot,
    current: CatalogSnapshot,
) -> ReconcileCounts:
    """Extract the changes between two adjacent snapshots and persist them."""

    changes = extract_changes(previous, current)
    with unit_of_work_factory() as uow:
        counts = reconcile_changes(
            uow.repositories.changes,
            uow.repositories.crawl_index,
            previous_crawl_id=previous.crawl_id,
            crawl_id=current.crawl_id,
            changes=changes,
            crawl_day=current.crawled_at.date(),
        )
        uow.commit()
    return counts


def process_crawl(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    archive: SnapshotArchive,
    crawl_id: str | None = None,
    *,
    batch_size: int = DEFAULT_MATERIALIZE_BATCH_SIZE,
) -> CrawlResult | None:
    """Materialize ``crawl_id`` (the latest archived crawl by default) and record its changes.

    A snapshot without endpoints is treated as a broken crawl: nothing is written, so
    the whole catalog is not flagged unavailable by one bad fetch.
    """

    if crawl_id is None:
        crawl_ids = archive.list_crawl_ids()
        if not crawl_ids:
            log.warning("No archived crawls to process")
            return None
        crawl_id = crawl_ids[-1]

    snapshot = archive.load(crawl_id)
    if not snapshot.endpoints:
        log.warning(f"Crawl {crawl_id} has no endpoints, skipping")
        return None

    materialized = materialize_snapshot(unit_of_work_factory, snapshot, batch_size=batch_size)
    result = CrawlResult(crawl_id=crawl_id, materialized=materialized)

    previous_crawl_id = archive.previous_crawl_id(crawl_id)
    if previous_crawl_id is None:
        log.info(f"Crawl {crawl_id} has no predecessor, no changes recorded")
        return result

    result.previous_crawl_id = previous_crawl_id
    result.changes = process_snapshot_pair(
        unit_of_work_factory, archive.load(previous_crawl_id), snapshot
    )
    return result


def backfill_changes(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    archive: SnapshotArchive,
    from_crawl_id: str | None = None,
) -> int:
    """Process every adjacent archived pair from ``from_crawl_id`` onwards.

    Without ``from_crawl_id`` the walk resumes at the latest processed crawl, so
    repeated runs only pick up new archives. Returns the number of pairs processed.
    """

    start = from_crawl_id
    if start is None:
        with unit_of_work_factory() as uow:
            start = uow.repositories.crawl_index.latest_crawl_id()

    crawl_ids = archive.list_crawl_ids(start=start)
    log.info(f"Backfilling changes from {start or 'the first crawl'}: {len(crawl_ids)} archives")

    previous: CatalogSnapshot | None = None
    pairs = 0
    for crawl_id in crawl_ids:
        current = archive.load(crawl_id)
        if previous is not None:
            counts = process_snapshot_pair(unit_of_work_factory, previous, current)
            pairs += 1
            log.debug(f"Pair {previous.crawl_id}->{crawl_id}: {counts.as_dict()}")
        previous = current

    log.info(f"Backfill complete: {pairs} pairs processed")
    return pairs
