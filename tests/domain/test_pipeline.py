from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from snapdiff.domain.changes import ReconcileCounts
from snapdiff.domain.materialize import MaterializeCounts
from snapdiff.domain.model import ChangeKind, EntityType
from snapdiff.domain.pipeline import backfill_changes, process_crawl, process_snapshot_pair
from tests.helpers.catalog import (
    CRAWL_1,
    CRAWL_2,
    CRAWL_3,
    FakeCatalogUnitOfWork,
    FakeSnapshotArchive,
    make_endpoint,
    make_model,
    make_snapshot,
)

if TYPE_CHECKING:
    from snapdiff.domain.model import CatalogSnapshot


def _snapshot(crawl_id: str, context_length: int) -> CatalogSnapshot:
    return make_snapshot(
        crawl_id,
        models=[make_model("m1", context_length=context_length)],
        endpoints=[make_endpoint("ep-1", model_slug="m1")],
    )


def test_first_crawl_materializes_without_changes() -> None:
    uow = FakeCatalogUnitOfWork()
    archive = FakeSnapshotArchive([_snapshot(CRAWL_1, 4096)])

    result = process_crawl(lambda: uow, archive)

    assert result is not None
    assert result.crawl_id == CRAWL_1
    assert result.previous_crawl_id is None
    assert result.changes is None
    assert result.materialized.models == MaterializeCounts(insert=1)
    assert uow.changes.records == []


def test_latest_crawl_is_diffed_against_its_predecessor() -> None:
    uow = FakeCatalogUnitOfWork()
    archive = FakeSnapshotArchive([_snapshot(CRAWL_1, 4096), _snapshot(CRAWL_2, 8192)])

    result = process_crawl(lambda: uow, archive)

    assert result is not None
    assert result.crawl_id == CRAWL_2
    assert result.previous_crawl_id == CRAWL_1
    assert result.changes == ReconcileCounts(insert=1)
    (record,) = uow.changes.records
    assert (record.entity_type, record.change_kind, record.path) == (
        EntityType.MODEL,
        ChangeKind.UPDATE,
        "context_length",
    )
    assert uow.crawl_index.rows[(CRAWL_1, CRAWL_2)].crawl_day == date(2025, 1, 1)
    assert uow.commits == 2


def test_explicit_crawl_id_is_processed() -> None:
    uow = FakeCatalogUnitOfWork()
    archive = FakeSnapshotArchive(
        [_snapshot(CRAWL_1, 1), _snapshot(CRAWL_2, 2), _snapshot(CRAWL_3, 3)]
    )

    result = process_crawl(lambda: uow, archive, CRAWL_2)

    assert result is not None
    assert result.previous_crawl_id == CRAWL_1
    assert {record.crawl_id for record in uow.changes.records} == {CRAWL_2}


def test_empty_archive_processes_nothing() -> None:
    uow = FakeCatalogUnitOfWork()

    assert process_crawl(lambda: uow, FakeSnapshotArchive()) is None
    assert uow.commits == 0


def test_snapshot_without_endpoints_is_skipped_entirely() -> None:
    uow = FakeCatalogUnitOfWork()
    archive = FakeSnapshotArchive(
        [_snapshot(CRAWL_1, 4096), make_snapshot(CRAWL_2, models=[make_model("m1")])]
    )

    assert process_crawl(lambda: uow, archive) is None
    assert uow.commits == 0
    assert uow.entities(EntityType.MODEL) == {}


def test_snapshot_pair_runs_in_one_unit_of_work() -> None:
    uow = FakeCatalogUnitOfWork()

    counts = process_snapshot_pair(lambda: uow, _snapshot(CRAWL_1, 1), _snapshot(CRAWL_2, 2))
    again = process_snapshot_pair(lambda: uow, _snapshot(CRAWL_1, 1), _snapshot(CRAWL_2, 2))

    assert counts == ReconcileCounts(insert=1)
    assert again == ReconcileCounts(stable=1)
    assert uow.commits == 2


def test_backfill_walks_every_adjacent_pair() -> None:
    uow = FakeCatalogUnitOfWork()
    archive = FakeSnapshotArchive(
        [_snapshot(CRAWL_1, 1), _snapshot(CRAWL_2, 2), _snapshot(CRAWL_3, 3)]
    )

    pairs = backfill_changes(lambda: uow, archive)

    assert pairs == 2
    assert set(uow.crawl_index.rows) == {(CRAWL_1, CRAWL_2), (CRAWL_2, CRAWL_3)}
    assert archive.loads == [CRAWL_1, CRAWL_2, CRAWL_3]


def test_backfill_resumes_from_latest_indexed_crawl() -> None:
    uow = FakeCatalogUnitOfWork()
    archive = FakeSnapshotArchive([_snapshot(CRAWL_1, 1), _snapshot(CRAWL_2, 2)])
    backfill_changes(lambda: uow, archive)
    archive.add(_snapshot(CRAWL_3, 3))
    archive.loads.clear()

    pairs = backfill_changes(lambda: uow, archive)

    assert pairs == 1
    assert archive.loads == [CRAWL_2, CRAWL_3]


def test_backfill_from_explicit_start() -> None:
    uow = FakeCatalogUnitOfWork()
    archive = FakeSnapshotArchive(
        [_snapshot(CRAWL_1, 1), _snapshot(CRAWL_2, 2), _snapshot(CRAWL_3, 3)]
    )

    pairs = backfill_changes(lambda: uow, archive, CRAWL_2)

    assert pairs == 1
    assert set(uow.crawl_index.rows) == {(CRAWL_2, CRAWL_3)}
