"""Point-in-time catalog snapshots handed over by the ingestion collaborator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from snapdiff.domain.model.enums import EntityType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from snapdiff.domain.model.entity import CatalogEntity, Endpoint, Model, Provider


def parse_crawl_timestamp(crawl_id: str) -> datetime | None:
    """Read a crawl id as epoch milliseconds; ``None`` for non-numeric or out-of-range ids."""

    stripped = crawl_id.strip()
    if not stripped.isdigit():
        return None
    try:
        return datetime.fromtimestamp(int(stripped) / 1000, tz=UTC)
    except (OverflowError, ValueError, OSError):
        return None


@dataclass(slots=True, kw_only=True)
class CatalogSnapshot:
    crawl_id: str
    crawled_at: datetime
    models: list[Model] = field(default_factory=list["Model"])
    endpoints: list[Endpoint] = field(default_factory=list["Endpoint"])
    providers: list[Provider] = field(default_factory=list["Provider"])

    @classmethod
    def create(
        cls,
        crawl_id: str,
        *,
        models: Sequence[Model] = (),
        endpoints: Sequence[Endpoint] = (),
        providers: Sequence[Provider] = (),
        crawled_at: datetime | None = None,
    ) -> CatalogSnapshot:
        resolved = crawled_at or parse_crawl_timestamp(crawl_id)
        if resolved is None:
            raise ValueError(
                f"crawl id {crawl_id!r} is not epoch milliseconds; pass crawled_at explicitly"
            )
        return cls(
            crawl_id=crawl_id,
            crawled_at=resolved,
            models=list(models),
            endpoints=list(endpoints),
            providers=list(providers),
        )

    def entities(self, entity_type: EntityType) -> Sequence[CatalogEntity]:
        if entity_type is EntityType.MODEL:
            return self.models
        if entity_type is EntityType.ENDPOINT:
            return self.endpoints
        return self.providers

    def entities_by_key(self, entity_type: EntityType) -> dict[str, CatalogEntity]:
        """Later duplicates of a natural key win, matching the upstream listing order."""
        return {entity.natural_key: entity for entity in self.entities(entity_type)}
