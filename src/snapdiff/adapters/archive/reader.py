"""Read archived crawls stored as ``<crawl_id>.json`` files in one directory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from snapdiff.adapters.archive.schema import ArchivedSnapshot
from snapdiff.domain.errors import SnapshotNotFoundError
from snapdiff.domain.model import CatalogSnapshot, Endpoint, Model, Provider

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

log = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".json"


class ArchiveFormatError(ValueError):
    """Raised when an archived snapshot file cannot be parsed."""


def translate_snapshot(crawl_id: str, archived: ArchivedSnapshot) -> CatalogSnapshot:
    """Build a domain snapshot; ``crawled_at`` falls back to the crawl id timestamp."""

    if archived.crawl_id is not None and archived.crawl_id != crawl_id:
        log.warning(
            "Archived snapshot %s declares crawl id %s; using the file name",
            crawl_id,
            archived.crawl_id,
        )

    models = [Model(slug=item.slug, attributes=item.attributes()) for item in archived.models]
    endpoints = [
        Endpoint(
            uuid=item.uuid,
            model_slug=item.model_slug,
            provider_slug=item.provider_slug,
            provider_tag_slug=item.provider_tag_slug or item.provider_slug,
            attributes=item.attributes(),
        )
        for item in archived.endpoints
    ]
    providers = [
        Provider(slug=item.slug, attributes=item.attributes()) for item in archived.providers
    ]
    return CatalogSnapshot.create(
        crawl_id,
        models=models,
        endpoints=endpoints,
        providers=providers,
        crawled_at=archived.crawled_at,
    )


class JsonDirectoryArchive:
    """``SnapshotArchive`` over a directory of JSON snapshot files."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def list_crawl_ids(self, *, start: str | None = None) -> Sequence[str]:
        if not self.path.is_dir():
            log.warning(f"Archive directory {self.path} does not exist")
            return []
        crawl_ids = sorted(
            entry.stem for entry in self.path.glob(f"*{SNAPSHOT_SUFFIX}") if entry.is_file()
        )
        if start is None:
            return crawl_ids
        return [crawl_id for crawl_id in crawl_ids if crawl_id >= start]

    def previous_crawl_id(self, crawl_id: str) -> str | None:
        earlier = [candidate for candidate in self.list_crawl_ids() if candidate < crawl_id]
        return earlier[-1] if earlier else None

    def load(self, crawl_id: str) -> CatalogSnapshot:
        snapshot_path = self.path / f"{crawl_id}{SNAPSHOT_SUFFIX}"
        if not snapshot_path.is_file():
            raise SnapshotNotFoundError(f"No archived snapshot for crawl {crawl_id}")
        try:
            archived = ArchivedSnapshot.model_validate_json(snapshot_path.read_bytes())
        except ValidationError as exc:
            raise ArchiveFormatError(f"Invalid snapshot file {snapshot_path}: {exc}") from exc
        snapshot = translate_snapshot(crawl_id, archived)
        log.debug(
            "Loaded crawl %s: %s models, %s endpoints, %s providers",
            crawl_id,
            len(snapshot.models),
            len(snapshot.endpoints),
            len(snapshot.providers),
        )
        return snapshot
