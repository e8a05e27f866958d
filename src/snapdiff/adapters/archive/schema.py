"""Schemas for snapshot files in the local crawl archive.

Only the identity of each entity is modeled; every other key is kept as an extra and
becomes the entity's attribute bag.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArchiveBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", protected_namespaces=())

    def attributes(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class ArchivedModel(ArchiveBaseModel):
    slug: str


class ArchivedEndpoint(ArchiveBaseModel):
    uuid: str
    model_slug: str
    provider_slug: str
    provider_tag_slug: str | None = None


class ArchivedProvider(ArchiveBaseModel):
    slug: str


class ArchivedSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    crawl_id: str | None = None
    crawled_at: datetime | None = None
    models: list[ArchivedModel] = Field(default_factory=list[ArchivedModel])
    endpoints: list[ArchivedEndpoint] = Field(default_factory=list[ArchivedEndpoint])
    providers: list[ArchivedProvider] = Field(default_factory=list[ArchivedProvider])
