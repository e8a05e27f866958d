"""Idempotent persistence of one crawl pair's change set.

The freshly extracted records are matched against the records already stored for the
exact ``(previous_crawl_id, crawl_id)`` pair by ``ChangeKey``. New keys are inserted,
differing content is replaced, identical content is left alone and stored records
nobody produced any more are deleted. Re-running the extractor for the same pair
therefore never duplicates nor loses history.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from snapdiff.domain.diffing import diff
from snapdiff.domain.errors import ChangeKeyCollisionError, ChangePairMismatchError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from snapdiff.domain.model import ChangeKey, ChangeRecord
    from snapdiff.domain.ports import ChangeCrawlIndexRepository, ChangeRecordRepository

log = getLogger(__name__)


@dataclass(slots=True)
class ReconcileCounts:
    insert: int = 0
    update: int = 0
    delete: int = 0
    stable: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "insert": self.insert,
            "update": self.update,
            "delete": self.delete,
            "stable": self.stable,
        }

    @property
    def total(self) -> int:
        """Number of records stored for the pair after reconciliation."""
        return self.insert + self.update + self.stable


def records_equal(stored: ChangeRecord, fresh: ChangeRecord) -> bool:
    return diff(stored.content(), fresh.content()) is None


def index_by_key(
    changes: Iterable[ChangeRecord],
    *,
    previous_crawl_id: str,
    crawl_id: str,
) -> dict[ChangeKey, ChangeRecord]:
    """Index a fresh batch by reconciliation key.

    Raises ``ChangePairMismatchError`` for records of another pair and
    ``ChangeKeyCollisionError`` when two records share a key with different content.
    Exact duplicates collapse into one.
    """

    indexed: dict[ChangeKey, ChangeRecord] = {}
    for change in changes:
        _check_pair(change, previous_crawl_id=previous_crawl_id, crawl_id=crawl_id)
        existing = indexed.get(change.key)
        if existing is None:
            indexed[change.key] = change
            continue
        if not records_equal(existing, change):
            raise ChangeKeyCollisionError(
                f"Two different changes share key {change.key} "
                f"in pair {previous_crawl_id}->{crawl_id}"
            )
        log.info(f"Collapsing duplicate change {change.key}")
    return indexed


def reconcile_changes(
    repository: ChangeRecordRepository,
    crawl_index: ChangeCrawlIndexRepository,
    *,
    previous_crawl_id: str,
    crawl_id: str,
    changes: Iterable[ChangeRecord],
    crawl_day: date | None = None,
) -> ReconcileCounts:
    """Converge stored records for one crawl pair to ``changes``.

    The batch is validated completely before the repository is touched. The crawl
    index row for the pair is written even when the pair holds no change, so it also
    records which pairs were processed.
    """

    fresh_by_key = index_by_key(changes, previous_crawl_id=previous_crawl_id, crawl_id=crawl_id)

    stored_by_key: dict[ChangeKey, ChangeRecord] = {}
    counts = ReconcileCounts()
    for stored in repository.list_pair(previous_crawl_id, crawl_id):
        if stored.key in stored_by_key:
            # older runs could store colliding keys; keep one and converge
            repository.remove(stored)
            counts.delete += 1
            continue
        stored_by_key[stored.key] = stored

    for key, fresh in fresh_by_key.items():
        stored = stored_by_key.pop(key, None)
        if stored is None:
            repository.add(fresh)
            counts.insert += 1
        elif records_equal(stored, fresh):
            counts.stable += 1
        else:
            stored.replace_content(fresh)
            counts.update += 1

    for stored in stored_by_key.values():
        repository.remove(stored)
        counts.delete += 1

    crawl_index.record(
        previous_crawl_id=previous_crawl_id,
        crawl_id=crawl_id,
        change_count=counts.total,
        crawl_day=crawl_day,
    )

    log.info(
        "Reconciled changes %s->%s: %s",
        previous_crawl_id,
        crawl_id,
        counts.as_dict(),
    )
    return counts


def _check_pair(change: ChangeRecord, *, previous_crawl_id: str, crawl_id: str) -> None:
    if change.previous_crawl_id != previous_crawl_id or change.crawl_id != crawl_id:
        raise ChangePairMismatchError(
            f"Change for pair {change.previous_crawl_id}->{change.crawl_id} "
            f"passed while reconciling {previous_crawl_id}->{crawl_id}"
        )
