"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from snapdiff.adapters.sqlalchemy.mappings import (
    change_crawl_index_table,
    change_record_table,
    natural_key_column,
)
from snapdiff.domain.model import (
    CatalogEntity,
    ChangeCrawlIndex,
    ChangeRecord,
    Endpoint,
    Model,
    Provider,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import date

    from sqlalchemy.orm import Session


class SqlAlchemyCatalogEntityRepository[TEntity: CatalogEntity]:
    """Current-state table keyed by the entity's natural key."""

    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._key_column = natural_key_column(entity_cls)

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, natural_key: str) -> TEntity | None:
        stmt = select(self._entity_cls).where(self._key_column == natural_key).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def iter_batches(self, batch_size: int) -> Iterator[Sequence[TEntity]]:
        # keyset pagination on the natural key keeps each read bounded
        last_key: str | None = None
        while True:
            stmt = select(self._entity_cls).order_by(self._key_column).limit(batch_size)
            if last_key is not None:
                stmt = stmt.where(self._key_column > last_key)
            batch = list(self.session.scalars(stmt))
            if not batch:
                return
            yield batch
            if len(batch) < batch_size:
                return
            last_key = batch[-1].natural_key


class SqlAlchemyModelRepository(SqlAlchemyCatalogEntityRepository[Model]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Model)


class SqlAlchemyEndpointRepository(SqlAlchemyCatalogEntityRepository[Endpoint]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Endpoint)


class SqlAlchemyProviderRepository(SqlAlchemyCatalogEntityRepository[Provider]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Provider)


class SqlAlchemyChangeRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ChangeRecord) -> None:
        self.session.add(entity)

    def remove(self, entity: ChangeRecord) -> None:
        self.session.delete(entity)

    def list_pair(self, previous_crawl_id: str, crawl_id: str) -> Sequence[ChangeRecord]:
        stmt = (
            select(ChangeRecord)
            .where(change_record_table.c.previous_crawl_id == previous_crawl_id)
            .where(change_record_table.c.crawl_id == crawl_id)
            .order_by(*_natural_order())
        )
        return list(self.session.scalars(stmt))

    def list_crawl(self, crawl_id: str) -> Sequence[ChangeRecord]:
        stmt = (
            select(ChangeRecord)
            .where(change_record_table.c.crawl_id == crawl_id)
            .order_by(*_natural_order())
        )
        return list(self.session.scalars(stmt))

    def latest_crawl_id(self, *, before: str | None = None) -> str | None:
        stmt = select(func.max(change_record_table.c.crawl_id))
        if before is not None:
            stmt = stmt.where(change_record_table.c.crawl_id < before)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyChangeCrawlIndexRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def record(
        self,
        *,
        previous_crawl_id: str,
        crawl_id: str,
        change_count: int,
        crawl_day: date | None,
    ) -> None:
        row = self.session.get(ChangeCrawlIndex, (previous_crawl_id, crawl_id))
        if row is None:
            row = ChangeCrawlIndex(previous_crawl_id=previous_crawl_id, crawl_id=crawl_id)
            self.session.add(row)
        row.change_count = change_count
        row.crawl_day = crawl_day
        row.updated_at = datetime.now(UTC)

    def latest_crawl_id(self) -> str | None:
        stmt = select(func.max(change_crawl_index_table.c.crawl_id))
        return self.session.execute(stmt).scalar_one_or_none()

    def list_days(self) -> Sequence[date]:
        day = change_crawl_index_table.c.crawl_day
        stmt = (
            select(day)
            .where(change_crawl_index_table.c.change_count > 0)
            .where(day.is_not(None))
            .distinct()
            .order_by(day.desc())
        )
        return list(self.session.scalars(stmt))


def _natural_order() -> tuple[object, ...]:
    columns = change_record_table.c
    return (
        columns.entity_type,
        columns.change_kind,
        columns.model_slug,
        columns.provider_slug,
        columns.provider_tag_slug,
        columns.endpoint_uuid,
        columns.path,
    )
