"""In-memory metadata cache keyed by absolute path."""

from __future__ import annotations

import threading
from typing import Dict, Iterator, Mapping, Optional

from filesweep.models import FileRecord


class MetadataStore:
    """Thread-safe mapping of path to last-known :class:`FileRecord`."""

    def __init__(self, records: Optional[Mapping[str, FileRecord]] = None) -> None:
        self._records: Dict[str, FileRecord] = dict(records or {})
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[FileRecord]:
        with self._lock:
            return self._records.get(path)

    def upsert(self, path: str, record: FileRecord) -> None:
        with self._lock:
            self._records[path] = record

    def remove(self, path: str) -> bool:
        with self._lock:
            return self._records.pop(path, None) is not None

    def snapshot(self) -> Dict[str, FileRecord]:
        """Copy of every record, including all upserts completed so far."""
        with self._lock:
            return dict(self._records)

    def paths(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._records
