"""Change records persisted between adjacent crawls, and their secondary index."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from snapdiff.domain.model.entity import new_id

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID

    from snapdiff.domain.model.enums import ChangeKind, EntityType


@dataclass(frozen=True, slots=True)
class ChangeKey:
    """Reconciliation identity of a change within one ``(previous_crawl_id, crawl_id)`` pair."""

    entity_type: str
    change_kind: str
    model_slug: str
    provider_slug: str
    provider_tag_slug: str
    endpoint_uuid: str
    path: str


@dataclass(eq=False, kw_only=True)
class ChangeRecord:
    """One detected difference between two adjacent snapshots."""

    id: UUID = field(default_factory=new_id)
    crawl_id: str
    previous_crawl_id: str
    entity_type: EntityType
    change_kind: ChangeKind

    model_slug: str | None = None
    provider_slug: str | None = None
    provider_tag_slug: str | None = None
    endpoint_uuid: str | None = None

    path: str | None = None
    path_level_1: str | None = None
    path_level_2: str | None = None

    before: Any = None
    after: Any = None
    raw: dict[str, Any] | None = None

    @property
    def key(self) -> ChangeKey:
        return ChangeKey(
            entity_type=str(self.entity_type),
            change_kind=str(self.change_kind),
            model_slug=self.model_slug or "",
            provider_slug=self.provider_slug or "",
            provider_tag_slug=self.provider_tag_slug or "",
            endpoint_uuid=self.endpoint_uuid or "",
            path=self.path or "",
        )

    def content(self) -> dict[str, Any]:
        """Everything except the storage identity."""
        return {
            "crawl_id": self.crawl_id,
            "previous_crawl_id": self.previous_crawl_id,
            "entity_type": str(self.entity_type),
            "change_kind": str(self.change_kind),
            "model_slug": self.model_slug,
            "provider_slug": self.provider_slug,
            "provider_tag_slug": self.provider_tag_slug,
            "endpoint_uuid": self.endpoint_uuid,
            "path": self.path,
            "path_level_1": self.path_level_1,
            "path_level_2": self.path_level_2,
            "before": self.before,
            "after": self.after,
            "raw": self.raw,
        }

    def replace_content(self, other: ChangeRecord) -> None:
        self.crawl_id = other.crawl_id
        self.previous_crawl_id = other.previous_crawl_id
        self.entity_type = other.entity_type
        self.change_kind = other.change_kind
        self.model_slug = other.model_slug
        self.provider_slug = other.provider_slug
        self.provider_tag_slug = other.provider_tag_slug
        self.endpoint_uuid = other.endpoint_uuid
        self.path = other.path
        self.path_level_1 = other.path_level_1
        self.path_level_2 = other.path_level_2
        self.before = copy.deepcopy(other.before)
        self.after = copy.deepcopy(other.after)
        self.raw = copy.deepcopy(other.raw)


@dataclass(eq=False, kw_only=True)
class ChangeCrawlIndex:
    """Per crawl-pair summary maintained alongside every change-set write.

    Doubles as the log of processed pairs and as the source of the
    "days with changes" listing.
    """

    previous_crawl_id: str
    crawl_id: str
    change_count: int = 0
    crawl_day: date | None = None
    updated_at: datetime | None = None
