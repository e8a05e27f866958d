"""Reconcile the current-state catalog tables against a freshly fetched snapshot.

For every entity type the new snapshot is matched against the stored rows by natural
key: equal content is stable, differing content replaces the row, unknown keys are
inserted. Stored rows the snapshot no longer advertises move to ``Unavailable`` the
first time they are missed. Nothing is ever deleted, so re-running the same snapshot
converges to an all-stable result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from snapdiff.config.pipeline import DEFAULT_MATERIALIZE_BATCH_SIZE
from snapdiff.domain.diffing import diff
from snapdiff.domain.model import EntityType

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from snapdiff.domain.model import CatalogEntity, CatalogSnapshot
    from snapdiff.domain.ports import CatalogEntityRepository, CatalogUnitOfWork

log = getLogger(__name__)


@dataclass(slots=True)
class MaterializeCounts:
    stable: int = 0
    update: int = 0
    insert: int = 0
    unavailable: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "stable": self.stable,
            "update": self.update,
            "insert": self.insert,
            "unavailable": self.unavailable,
        }


@dataclass(slots=True)
class MaterializeResult:
    crawl_id: str
    models: MaterializeCounts = field(default_factory=MaterializeCounts)
    endpoints: MaterializeCounts = field(default_factory=MaterializeCounts)
    providers: MaterializeCounts = field(default_factory=MaterializeCounts)

    def counts_for(self, entity_type: EntityType) -> MaterializeCounts:
        if entity_type is EntityType.MODEL:
            return self.models
        if entity_type is EntityType.ENDPOINT:
            return self.endpoints
        return self.providers


def content_equal(current: CatalogEntity, candidate: CatalogEntity) -> bool:
    """Compare stored and snapshot content; bookkeeping timestamps are not content."""
    return diff(current.content(), candidate.content()) is None


def materialize_entities[TCatalog: CatalogEntity](
    repository: CatalogEntityRepository[TCatalog],
    entities: Iterable[TCatalog],
    *,
    crawled_at: datetime,
    batch_size: int = DEFAULT_MATERIALIZE_BATCH_SIZE,
) -> MaterializeCounts:
    """Upsert ``entities`` into ``repository`` and flag the ones that disappeared."""

    counts = MaterializeCounts()

    current_by_key: dict[str, TCatalog] = {}
    for batch in repository.iter_batches(batch_size):
        for current in batch:
            current_by_key[current.natural_key] = current

    latest_by_key: dict[str, TCatalog] = {}
    for entity in entities:
        if entity.natural_key in latest_by_key:
            log.warning(
                f"Duplicate {entity.entity_type} key {entity.natural_key!r} in snapshot; "
                "keeping the last occurrence"
            )
        latest_by_key[entity.natural_key] = entity

    for key, entity in latest_by_key.items():
        current = current_by_key.pop(key, None)
        if current is None:
            repository.add(entity.clone(at=crawled_at))
            counts.insert += 1
        elif content_equal(current, entity):
            counts.stable += 1
        else:
            current.replace_content(entity, at=crawled_at)
            counts.update += 1

    # whatever is left was not advertised by this snapshot
    for current in current_by_key.values():
        if current.mark_unavailable(crawled_at):
            counts.unavailable += 1

    return counts


def materialize_snapshot(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    snapshot: CatalogSnapshot,
    *,
    batch_size: int = DEFAULT_MATERIALIZE_BATCH_SIZE,
) -> MaterializeResult:
    """Materialize all entity tables for ``snapshot`` inside one unit of work."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        crawled_at = snapshot.crawled_at
        result = MaterializeResult(
            crawl_id=snapshot.crawl_id,
            models=materialize_entities(
                repositories.models, snapshot.models, crawled_at=crawled_at, batch_size=batch_size
            ),
            endpoints=materialize_entities(
                repositories.endpoints,
                snapshot.endpoints,
                crawled_at=crawled_at,
                batch_size=batch_size,
            ),
            providers=materialize_entities(
                repositories.providers,
                snapshot.providers,
                crawled_at=crawled_at,
                batch_size=batch_size,
            ),
        )
        uow.commit()

    log.info(
        "Materialized crawl %s: models=%s, endpoints=%s, providers=%s",
        snapshot.crawl_id,
        result.models.as_dict(),
        result.endpoints.as_dict(),
        result.providers.as_dict(),
    )
    return result
