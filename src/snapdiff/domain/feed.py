"""Paginated change feed, grouped by crawl, newest first.

Each page walks crawl ids that hold stored changes in descending order, strictly below
the cursor, and reads one crawl group at a time. Scanning stops after ``max_groups``
crawls or once ``page_size_goal`` changes are collected, whichever comes first, so a
long run of crawls whose changes are all filtered out cannot stall a request.

Inside a group the order is fixed: model deletes, then endpoint changes, then the
remaining model changes, then provider changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from snapdiff.config.pipeline import DEFAULT_FEED_MAX_GROUPS, DEFAULT_FEED_PAGE_SIZE
from snapdiff.domain.changes.display import should_display
from snapdiff.domain.model import ChangeKind, EntityType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from snapdiff.domain.model import ChangeRecord
    from snapdiff.domain.ports import ChangeRecordRepository

log = getLogger(__name__)

_KIND_RANK: Final[dict[ChangeKind, int]] = {
    ChangeKind.CREATE: 0,
    ChangeKind.UPDATE: 1,
    ChangeKind.DELETE: 2,
}


@dataclass(slots=True)
class FeedGroup:
    crawl_id: str
    changes: list[ChangeRecord] = field(default_factory=list["ChangeRecord"])


@dataclass(slots=True)
class FeedPage:
    items: list[FeedGroup]
    next_cursor: str | None
    done: bool

    @property
    def change_count(self) -> int:
        return sum(len(group.changes) for group in self.items)


type FeedSortKey = tuple[int, str, str, str, int, str, str]


def feed_sort_key(change: ChangeRecord) -> FeedSortKey:
    model_slug = change.model_slug or ""
    provider_slug = change.provider_slug or ""
    path = change.path or ""

    if change.entity_type is EntityType.ENDPOINT:
        primary = (1, change.provider_tag_slug or "", model_slug, path)
    elif change.entity_type is EntityType.MODEL:
        rank = 0 if change.change_kind is ChangeKind.DELETE else 2
        primary = (rank, model_slug, path, "")
    else:
        primary = (3, provider_slug, path, "")

    return (
        *primary,
        _KIND_RANK[change.change_kind],
        change.endpoint_uuid or "",
        provider_slug,
    )


def sort_feed_group(changes: Iterable[ChangeRecord]) -> list[ChangeRecord]:
    return sorted(changes, key=feed_sort_key)


def paginate(
    repository: ChangeRecordRepository,
    cursor: str | None = None,
    page_size_goal: int = DEFAULT_FEED_PAGE_SIZE,
    *,
    max_groups: int = DEFAULT_FEED_MAX_GROUPS,
    displayable_only: bool = False,
) -> FeedPage:
    """Return the next feed page strictly older than ``cursor``.

    ``next_cursor`` is the last crawl id scanned, so passing it back continues the walk
    even when the scanned window produced no visible change. ``done`` is set once no
    older crawl holds changes.
    """

    items: list[FeedGroup] = []
    collected = 0
    scanned = 0
    next_cursor = cursor

    crawl_id = repository.latest_crawl_id(before=cursor)
    while crawl_id is not None and scanned < max_groups and collected < page_size_goal:
        changes = list(repository.list_crawl(crawl_id))
        if displayable_only:
            changes = [change for change in changes if should_display(change)]
        if changes:
            items.append(FeedGroup(crawl_id=crawl_id, changes=sort_feed_group(changes)))
            collected += len(changes)
        scanned += 1
        next_cursor = crawl_id
        crawl_id = repository.latest_crawl_id(before=crawl_id)

    log.debug(
        "Feed page from %s: %s groups, %s changes, %s crawls scanned",
        cursor,
        len(items),
        collected,
        scanned,
    )
    return FeedPage(items=items, next_cursor=next_cursor, done=crawl_id is None)
