"""Ports for persisting catalog state and change records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from snapdiff.domain.model import CatalogEntity, ChangeRecord, Endpoint, Model, Provider

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import date


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class CatalogEntityRepository[TCatalog: CatalogEntity](Repository[TCatalog], Protocol):
    """Current-state table for one entity type, keyed by natural key."""

    def get(self, natural_key: str) -> TCatalog | None: ...

    def iter_batches(self, batch_size: int) -> Iterator[Sequence[TCatalog]]:
        """Yield every stored entity in natural-key order, ``batch_size`` rows per read."""
        ...


@runtime_checkable
class ModelRepository(CatalogEntityRepository[Model], Protocol):
    """Repository contract for models."""


@runtime_checkable
class EndpointRepository(CatalogEntityRepository[Endpoint], Protocol):
    """Repository contract for endpoints."""


@runtime_checkable
class ProviderRepository(CatalogEntityRepository[Provider], Protocol):
    """Repository contract for providers."""


@runtime_checkable
class ChangeRecordRepository(Repository[ChangeRecord], Protocol):
    """Persistence contract for change records."""

    def remove(self, entity: ChangeRecord) -> None: ...

    def list_pair(self, previous_crawl_id: str, crawl_id: str) -> Sequence[ChangeRecord]: ...

    def list_crawl(self, crawl_id: str) -> Sequence[ChangeRecord]: ...

    def latest_crawl_id(self, *, before: str | None = None) -> str | None:
        """Greatest stored ``crawl_id`` strictly below ``before`` (any when ``None``)."""
        ...


@runtime_checkable
class ChangeCrawlIndexRepository(Protocol):
    """Secondary index of processed crawl pairs, written together with change records."""

    def record(
        self,
        *,
        previous_crawl_id: str,
        crawl_id: str,
        change_count: int,
        crawl_day: date | None,
    ) -> None: ...

    def latest_crawl_id(self) -> str | None: ...

    def list_days(self) -> Sequence[date]:
        """Distinct days holding at least one change, most recent first."""
        ...
