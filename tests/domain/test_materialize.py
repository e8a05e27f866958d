from __future__ import annotations

from snapdiff.domain.materialize import (
    MaterializeCounts,
    content_equal,
    materialize_entities,
    materialize_snapshot,
)
from snapdiff.domain.model import Active, Endpoint, EntityType, Model, Provider, Unavailable
from tests.helpers.catalog import (
    CRAWL_1,
    CRAWL_2,
    CRAWL_3,
    FakeCatalogEntityRepository,
    FakeCatalogUnitOfWork,
    crawl_time,
    make_endpoint,
    make_model,
    make_provider,
    make_snapshot,
)


def test_first_run_inserts_every_entity() -> None:
    repository = FakeCatalogEntityRepository[Model]()

    counts = materialize_entities(
        repository,
        [make_model("a/one"), make_model("a/two")],
        crawled_at=crawl_time(CRAWL_1),
    )

    assert counts == MaterializeCounts(insert=2)
    assert sorted(repository.entities) == ["a/one", "a/two"]
    assert repository.entities["a/one"].updated_at == crawl_time(CRAWL_1)


def test_rerun_with_same_snapshot_is_all_stable() -> None:
    repository = FakeCatalogEntityRepository[Model]()
    snapshot = [make_model("a/one", context_length=4096), make_model("a/two")]
    materialize_entities(repository, snapshot, crawled_at=crawl_time(CRAWL_1))

    counts = materialize_entities(
        repository,
        [make_model("a/one", context_length=4096), make_model("a/two")],
        crawled_at=crawl_time(CRAWL_2),
    )

    assert counts == MaterializeCounts(stable=2)
    assert repository.entities["a/one"].updated_at == crawl_time(CRAWL_1)


def test_changed_content_replaces_row_in_place() -> None:
    repository = FakeCatalogEntityRepository[Model]()
    materialize_entities(
        repository, [make_model("a/one", context_length=4096)], crawled_at=crawl_time(CRAWL_1)
    )
    stored = repository.entities["a/one"]

    counts = materialize_entities(
        repository, [make_model("a/one", context_length=8192)], crawled_at=crawl_time(CRAWL_2)
    )

    assert counts == MaterializeCounts(update=1)
    assert repository.entities["a/one"] is stored
    assert stored.attributes["context_length"] == 8192
    assert stored.updated_at == crawl_time(CRAWL_2)


def test_missing_entity_is_marked_unavailable_exactly_once() -> None:
    repository = FakeCatalogEntityRepository[Model]()
    materialize_entities(
        repository, [make_model("x"), make_model("y")], crawled_at=crawl_time(CRAWL_1)
    )

    first = materialize_entities(repository, [make_model("x")], crawled_at=crawl_time(CRAWL_2))
    second = materialize_entities(repository, [make_model("x")], crawled_at=crawl_time(CRAWL_3))

    missing = repository.entities["y"]
    assert first == MaterializeCounts(stable=1, unavailable=1)
    assert second == MaterializeCounts(stable=1)
    assert missing.unavailable_at == crawl_time(CRAWL_2)
    assert missing.availability == Unavailable(since=crawl_time(CRAWL_2))
    assert repository.entities["x"].availability == Active()


def test_reappearing_entity_keeps_its_unavailable_marker() -> None:
    repository = FakeCatalogEntityRepository[Model]()
    materialize_entities(repository, [make_model("y")], crawled_at=crawl_time(CRAWL_1))
    materialize_entities(repository, [], crawled_at=crawl_time(CRAWL_2))

    counts = materialize_entities(repository, [make_model("y")], crawled_at=crawl_time(CRAWL_3))

    assert counts == MaterializeCounts(stable=1)
    assert repository.entities["y"].unavailable_at == crawl_time(CRAWL_2)


def test_duplicate_keys_in_snapshot_keep_last_occurrence() -> None:
    repository = FakeCatalogEntityRepository[Model]()

    counts = materialize_entities(
        repository,
        [make_model("a/one", context_length=1), make_model("a/one", context_length=2)],
        crawled_at=crawl_time(CRAWL_1),
    )

    assert counts == MaterializeCounts(insert=1)
    assert repository.entities["a/one"].attributes["context_length"] == 2


def test_current_rows_are_read_in_bounded_batches() -> None:
    repository = FakeCatalogEntityRepository[Model]([make_model(f"m{index}") for index in range(5)])

    counts = materialize_entities(
        repository,
        [make_model(f"m{index}") for index in range(5)],
        crawled_at=crawl_time(CRAWL_1),
        batch_size=2,
    )

    assert counts == MaterializeCounts(stable=5)
    assert repository.batch_sizes == [2]


def test_volatile_fields_do_not_count_as_content() -> None:
    stored = make_model("a/one")
    stored.updated_at = crawl_time(CRAWL_1)
    stored.unavailable_at = crawl_time(CRAWL_2)

    assert content_equal(stored, make_model("a/one"))
    assert not content_equal(stored, make_model("a/one", context_length=1))


def test_materialize_snapshot_covers_all_tables_in_one_commit() -> None:
    uow = FakeCatalogUnitOfWork()
    snapshot = make_snapshot(
        CRAWL_1,
        models=[make_model("a/one")],
        endpoints=[make_endpoint("ep-1", model_slug="a/one")],
        providers=[make_provider("openai")],
    )

    result = materialize_snapshot(lambda: uow, snapshot)

    assert uow.commits == 1
    assert result.crawl_id == CRAWL_1
    assert result.counts_for(EntityType.MODEL) == MaterializeCounts(insert=1)
    assert result.counts_for(EntityType.ENDPOINT) == MaterializeCounts(insert=1)
    assert result.counts_for(EntityType.PROVIDER) == MaterializeCounts(insert=1)
    assert set(uow.entities(EntityType.ENDPOINT)) == {"ep-1"}
    assert type(uow.entities(EntityType.MODEL)["a/one"]) is Model
    assert type(uow.entities(EntityType.ENDPOINT)["ep-1"]) is Endpoint
    assert type(uow.entities(EntityType.PROVIDER)["openai"]) is Provider

    rerun = materialize_snapshot(lambda: uow, snapshot)

    assert rerun.models.as_dict() == {"stable": 1, "update": 0, "insert": 0, "unavailable": 0}
    assert rerun.endpoints == MaterializeCounts(stable=1)
    assert rerun.providers == MaterializeCounts(stable=1)
