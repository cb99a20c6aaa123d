"""Decides whether a cached record still describes a file."""

from __future__ import annotations

from typing import Optional

from filesweep.models import FileRecord


class StalenessOracle:
    """Compares cached metadata with a live read.

    ``resolution_ns`` is the timestamp granularity of the filesystem. Both
    timestamps are truncated to it before comparison so that a cache written
    on a finer-grained platform still matches on a coarser one.
    """

    def __init__(self, resolution_ns: int = 1) -> None:
        if resolution_ns < 1:
            raise ValueError("resolution_ns must be at least 1")
        self.resolution_ns = resolution_ns

    def _truncate(self, timestamp: int) -> int:
        return timestamp - timestamp % self.resolution_ns

    def is_fresh(self, cached: FileRecord, live_size: int, live_modified: Optional[int]) -> bool:
        if cached.size != live_size:
            return False
        if live_modified is None or cached.modified_at is None:
            # Only a record that never had a time may match a missing live time.
            return live_modified is None and cached.modified_at is None
        return self._truncate(cached.modified_at) == self._truncate(live_modified)


_EXACT = StalenessOracle()


def is_fresh(cached: FileRecord, live_size: int, live_modified: Optional[int]) -> bool:
    """Exact comparison at nanosecond resolution."""
    return _EXACT.is_fresh(cached, live_size, live_modified)
