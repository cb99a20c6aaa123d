"""Incremental scan: reconciles the filesystem with the metadata cache."""

from __future__ import annotations

import logging
import os
import stat
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, List, Optional

from filesweep.cache.store import MetadataStore
from filesweep.models import FileRecord, Match, ScanResult
from filesweep.scan.predicates import Predicate
from filesweep.scan.staleness import StalenessOracle
from filesweep.scan.walker import EntryKind, WalkEntry, WalkFault, WalkItem, walk
from filesweep.utils.files import FaultKind, classify_os_error

LOGGER = logging.getLogger(__name__)

Walker = Callable[..., Iterable[WalkItem]]


class _Counter:
    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> None:
        with self._lock:
            self._value += 1

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class _ScanTally:
    """Shared aggregates of one run, each guarded by its own lock."""

    def __init__(self) -> None:
        self.scanned = _Counter()
        self.permission_denied = _Counter()
        self.other_errors = _Counter()
        self.cache_hits = _Counter()
        self.refreshed = _Counter()
        self._matches: List[Match] = []
        self._matches_lock = threading.Lock()

    def add_match(self, match: Match) -> None:
        with self._matches_lock:
            self._matches.append(match)

    def to_result(self) -> ScanResult:
        with self._matches_lock:
            matches = list(self._matches)
        return ScanResult(
            matches=matches,
            scanned=self.scanned.value,
            permission_denied=self.permission_denied.value,
            other_errors=self.other_errors.value,
            cache_hits=self.cache_hits.value,
            refreshed=self.refreshed.value,
        )


def _modified_ns(stat_result: os.stat_result) -> Optional[int]:
    return getattr(stat_result, "st_mtime_ns", None)


class ScanEngine:
    """Walks a tree, refreshing stale cache records and collecting matches."""

    def __init__(
        self,
        store: MetadataStore,
        predicate: Predicate,
        *,
        oracle: StalenessOracle | None = None,
        workers: int = 1,
        walker: Walker = walk,
        follow_links: bool = False,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.store = store
        self.predicate = predicate
        self.oracle = oracle or StalenessOracle()
        self.workers = workers
        self.walker = walker
        self.follow_links = follow_links

    def run(self, root: str | os.PathLike) -> ScanResult:
        """Scan ``root`` and return matches and counters for this run."""
        root = os.path.abspath(root)
        tally = _ScanTally()
        items = self.walker(root, follow_links=self.follow_links)

        if self.workers == 1:
            for item in items:
                if self._accept(item, tally):
                    self._process_file(item, tally)
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="filesweep") as pool:
                futures = [
                    pool.submit(self._process_file, item, tally)
                    for item in items
                    if self._accept(item, tally)
                ]
                for future in as_completed(futures):
                    future.result()

        result = tally.to_result()
        LOGGER.debug(
            "Scanned %d files under %s: %d cache hits, %d refreshed, %d errors",
            result.scanned,
            root,
            result.cache_hits,
            result.refreshed,
            result.errors,
        )
        return result

    def _accept(self, item: WalkItem, tally: _ScanTally) -> bool:
        """Count traversal faults; return True for regular files only."""
        if isinstance(item, WalkFault):
            self._record_fault(item.path, item.error, tally)
            return False
        return item.kind is EntryKind.FILE

    def _record_fault(self, path: str, error: Optional[BaseException], tally: _ScanTally) -> None:
        if classify_os_error(error) is FaultKind.PERMISSION_DENIED:
            tally.permission_denied.increment()
        else:
            tally.other_errors.increment()
        LOGGER.debug("Skipping %s: %s", path, error)

    def _process_file(self, entry: WalkEntry, tally: _ScanTally) -> None:
        tally.scanned.increment()
        path = entry.path
        cached = self.store.get(path)

        try:
            live = entry.stat()
        except OSError as exc:
            # A cached record is kept as-is when the file cannot be read
            self._record_fault(path, exc, tally)
            return

        if not stat.S_ISREG(live.st_mode):
            self._record_fault(path, None, tally)
            return

        live_modified = _modified_ns(live)
        if cached is not None and self.oracle.is_fresh(cached, live.st_size, live_modified):
            tally.cache_hits.increment()
            record = cached
        else:
            record = FileRecord(size=live.st_size, modified_at=live_modified)
            self.store.upsert(path, record)
            tally.refreshed.increment()

        if self.predicate.matches(path, record.size):
            tally.add_match(Match(path=path, size=record.size, modified_at=record.modified_at))
