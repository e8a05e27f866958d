"""Port for reading archived catalog snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from snapdiff.domain.model import CatalogSnapshot


@runtime_checkable
class SnapshotArchive(Protocol):
    """Crawl archive provided by the ingestion collaborator.

    Crawl ids are opaque strings whose lexical order is their chronological order.
    """

    def list_crawl_ids(self, *, start: str | None = None) -> Sequence[str]:
        """Archived crawl ids in ascending order, from ``start`` inclusive."""
        ...

    def previous_crawl_id(self, crawl_id: str) -> str | None: ...

    def load(self, crawl_id: str) -> CatalogSnapshot:
        """Raise ``SnapshotNotFoundError`` when ``crawl_id`` is not archived."""
        ...
