"""Local crawl archive adapter."""

from __future__ import annotations

from .reader import ArchiveFormatError, JsonDirectoryArchive, translate_snapshot
from .schema import (
    ArchivedEndpoint,
    ArchivedModel,
    ArchivedProvider,
    ArchivedSnapshot,
)

__all__ = [
    "ArchiveFormatError",
    "ArchivedEndpoint",
    "ArchivedModel",
    "ArchivedProvider",
    "ArchivedSnapshot",
    "JsonDirectoryArchive",
    "translate_snapshot",
]
