"""Reusable factories and in-memory fakes for catalog pipeline tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from snapdiff.domain.errors import SnapshotNotFoundError
from snapdiff.domain.model import (
    CatalogEntity,
    CatalogSnapshot,
    ChangeCrawlIndex,
    ChangeKind,
    ChangeRecord,
    Endpoint,
    EntityType,
    Model,
    Provider,
)
from snapdiff.domain.ports import CatalogRepositories

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence
    from datetime import date
    from types import TracebackType

CRAWL_1 = "1735689600000"  # 2025-01-01T00:00:00Z
CRAWL_2 = "1735693200000"  # 2025-01-01T01:00:00Z
CRAWL_3 = "1735779600000"  # 2025-01-02T01:00:00Z


def crawl_time(crawl_id: str) -> datetime:
    return datetime.fromtimestamp(int(crawl_id) / 1000, tz=UTC)


def make_model(slug: str = "openai/gpt-4o", **attributes: Any) -> Model:
    return Model(slug=slug, attributes={"name": slug, **attributes})


def make_endpoint(
    uuid: str = "ep-1",
    *,
    model_slug: str = "openai/gpt-4o",
    provider_slug: str = "openai",
    provider_tag_slug: str | None = None,
    **attributes: Any,
) -> Endpoint:
    return Endpoint(
        uuid=uuid,
        model_slug=model_slug,
        provider_slug=provider_slug,
        provider_tag_slug=provider_tag_slug or provider_slug,
        attributes=attributes,
    )


def make_provider(slug: str = "openai", **attributes: Any) -> Provider:
    return Provider(slug=slug, attributes={"name": slug, **attributes})


def make_snapshot(
    crawl_id: str = CRAWL_1,
    *,
    models: Iterable[Model] = (),
    endpoints: Iterable[Endpoint] = (),
    providers: Iterable[Provider] = (),
) -> CatalogSnapshot:
    return CatalogSnapshot.create(
        crawl_id,
        models=list(models),
        endpoints=list(endpoints),
        providers=list(providers),
    )


def make_change(
    *,
    entity_type: EntityType = EntityType.MODEL,
    change_kind: ChangeKind = ChangeKind.UPDATE,
    crawl_id: str = CRAWL_2,
    previous_crawl_id: str = CRAWL_1,
    path: str | None = "context_length",
    before: Any = 4096,
    after: Any = 8192,
    raw: dict[str, Any] | None = None,
    **identity: str,
) -> ChangeRecord:
    is_update = change_kind is ChangeKind.UPDATE
    segments = path.split(".") if path and is_update else []
    if is_update and raw is None and path is not None:
        raw = {"type": "UPDATE", "key": segments[0], "value": after, "oldValue": before}
    return ChangeRecord(
        crawl_id=crawl_id,
        previous_crawl_id=previous_crawl_id,
        entity_type=entity_type,
        change_kind=change_kind,
        path=path if is_update else None,
        path_level_1=segments[0] if segments else None,
        path_level_2=segments[1] if len(segments) > 1 else None,
        before=before if is_update else None,
        after=after if is_update else None,
        raw=raw if is_update else None,
        **identity,
    )


class FakeCatalogEntityRepository[TEntity: CatalogEntity]:
    """Keeps entities in memory; mutations on returned objects are "persisted"."""

    def __init__(self, entities: Iterable[TEntity] = ()) -> None:
        self.entities: dict[str, TEntity] = {entity.natural_key: entity for entity in entities}
        self.batch_sizes: list[int] = []

    def add(self, entity: TEntity) -> None:
        self.entities[entity.natural_key] = entity

    def get(self, natural_key: str) -> TEntity | None:
        return self.entities.get(natural_key)

    def iter_batches(self, batch_size: int) -> Iterator[Sequence[TEntity]]:
        self.batch_sizes.append(batch_size)
        ordered = [self.entities[key] for key in sorted(self.entities)]
        for start in range(0, len(ordered), batch_size):
            yield ordered[start : start + batch_size]


class FakeChangeRecordRepository:
    def __init__(self, records: Iterable[ChangeRecord] = ()) -> None:
        self.records: list[ChangeRecord] = list(records)
        self.crawl_reads: list[str] = []

    def add(self, entity: ChangeRecord) -> None:
        self.records.append(entity)

    def remove(self, entity: ChangeRecord) -> None:
        self.records = [record for record in self.records if record is not entity]

    def list_pair(self, previous_crawl_id: str, crawl_id: str) -> Sequence[ChangeRecord]:
        return [
            record
            for record in self.records
            if record.previous_crawl_id == previous_crawl_id and record.crawl_id == crawl_id
        ]

    def list_crawl(self, crawl_id: str) -> Sequence[ChangeRecord]:
        self.crawl_reads.append(crawl_id)
        return [record for record in self.records if record.crawl_id == crawl_id]

    def latest_crawl_id(self, *, before: str | None = None) -> str | None:
        candidates = [
            record.crawl_id
            for record in self.records
            if before is None or record.crawl_id < before
        ]
        return max(candidates, default=None)


class FakeChangeCrawlIndexRepository:
    def __init__(self) -> None:
        self.rows: dict[tuple[str, str], ChangeCrawlIndex] = {}

    def record(
        self,
        *,
        previous_crawl_id: str,
        crawl_id: str,
        change_count: int,
        crawl_day: date | None,
    ) -> None:
        self.rows[(previous_crawl_id, crawl_id)] = ChangeCrawlIndex(
            previous_crawl_id=previous_crawl_id,
            crawl_id=crawl_id,
            change_count=change_count,
            crawl_day=crawl_day,
        )

    def latest_crawl_id(self) -> str | None:
        return max((crawl_id for _, crawl_id in self.rows), default=None)

    def list_days(self) -> Sequence[date]:
        days = {
            row.crawl_day
            for row in self.rows.values()
            if row.change_count > 0 and row.crawl_day is not None
        }
        return sorted(days, reverse=True)


@dataclass
class FakeCatalogUnitOfWork:
    """Unit of work over shared fakes; state outlives each ``with`` block like a database."""

    repositories: CatalogRepositories = field(
        default_factory=lambda: CatalogRepositories(
            models=FakeCatalogEntityRepository[Model](),
            endpoints=FakeCatalogEntityRepository[Endpoint](),
            providers=FakeCatalogEntityRepository[Provider](),
            changes=FakeChangeRecordRepository(),
            crawl_index=FakeChangeCrawlIndexRepository(),
        )
    )
    commits: int = 0
    rollbacks: int = 0

    def __enter__(self) -> FakeCatalogUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    @property
    def changes(self) -> FakeChangeRecordRepository:
        repository = self.repositories.changes
        assert isinstance(repository, FakeChangeRecordRepository)
        return repository

    @property
    def crawl_index(self) -> FakeChangeCrawlIndexRepository:
        repository = self.repositories.crawl_index
        assert isinstance(repository, FakeChangeCrawlIndexRepository)
        return repository

    def entities(self, entity_type: EntityType) -> dict[str, CatalogEntity]:
        repositories = self.repositories
        repository = {
            EntityType.MODEL: repositories.models,
            EntityType.ENDPOINT: repositories.endpoints,
            EntityType.PROVIDER: repositories.providers,
        }[entity_type]
        assert isinstance(repository, FakeCatalogEntityRepository)
        return dict(repository.entities)  # pyright: ignore[reportUnknownArgumentType, reportUnknownMemberType]


class FakeSnapshotArchive:
    def __init__(self, snapshots: Iterable[CatalogSnapshot] = ()) -> None:
        self.snapshots: dict[str, CatalogSnapshot] = {
            snapshot.crawl_id: snapshot for snapshot in snapshots
        }
        self.loads: list[str] = []

    def add(self, snapshot: CatalogSnapshot) -> None:
        self.snapshots[snapshot.crawl_id] = snapshot

    def list_crawl_ids(self, *, start: str | None = None) -> Sequence[str]:
        return [
            crawl_id
            for crawl_id in sorted(self.snapshots)
            if start is None or crawl_id >= start
        ]

    def previous_crawl_id(self, crawl_id: str) -> str | None:
        earlier = [candidate for candidate in self.snapshots if candidate < crawl_id]
        return max(earlier, default=None)

    def load(self, crawl_id: str) -> CatalogSnapshot:
        self.loads.append(crawl_id)
        try:
            return self.snapshots[crawl_id]
        except KeyError as exc:
            raise SnapshotNotFoundError(f"No archived snapshot for crawl {crawl_id}") from exc
