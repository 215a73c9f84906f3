"""In-memory fingerprint cache keyed by absolute file path."""

from __future__ import annotations

from dataclasses import dataclass

import logging
import pathlib


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached content hash and the stat values that validated it."""

    content_hash: str
    mtime_ns: int
    size: int

    def matches(self, size: int, mtime_ns: int) -> bool:
        """Check whether the entry is still valid for the given stat values."""
        return self.size == size and self.mtime_ns == mtime_ns


class HashCache:
    """Process-lifetime hash cache.

    Entries are only replaced when a file is re-hashed; entries for files that
    no longer exist are never looked up again and stay until ``clear()``.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    @staticmethod
    def _key(path: pathlib.Path | str) -> str:
        return str(path)

    def get(self, path: pathlib.Path | str) -> CacheEntry | None:
        """Return the entry stored for *path*, valid or not."""
        return self._entries.get(self._key(path))

    def put(self, path: pathlib.Path | str, entry: CacheEntry) -> None:
        """Store or overwrite the entry for *path*."""
        self._entries[self._key(path)] = entry

    def lookup(self, path: pathlib.Path | str, size: int, mtime_ns: int) -> str | None:
        """Return the cached hash if the entry matches *size* and *mtime_ns*."""
        entry = self.get(path)
        if entry is None:
            return None
        if not entry.matches(size, mtime_ns):
            logger.debug(f"stale cache entry for {path}")
            return None
        return entry.content_hash

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, pathlib.PurePath)):
            return False
        return self._key(path) in self._entries
