"""Domain error definitions."""

from __future__ import annotations


class SnapdiffError(RuntimeError):
    """Base class for domain failures surfaced to the scheduler."""


class ChangePairMismatchError(SnapdiffError):
    """Raised when a change record does not belong to the crawl pair being reconciled."""


class ChangeKeyCollisionError(SnapdiffError):
    """Raised when two different change records share one reconciliation key."""


class SnapshotNotFoundError(SnapdiffError, LookupError):
    """Raised when an archived snapshot cannot be located."""
