"""JSON-backed persistence for the metadata cache."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from filesweep.cache.store import MetadataStore
from filesweep.models import FileRecord
from filesweep.utils.files import atomic_write_text

LOGGER = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _encode_timestamp(modified_at: Optional[int]) -> Optional[dict]:
    if modified_at is None:
        return None
    secs, nanos = divmod(modified_at, NANOS_PER_SECOND)
    return {"secs_since_epoch": secs, "nanos_since_epoch": nanos}


def _decode_timestamp(payload: Any) -> Optional[int]:
    if payload is None:
        return None
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid timestamp: {payload!r}")
    secs = payload.get("secs_since_epoch")
    nanos = payload.get("nanos_since_epoch")
    if not _is_int(secs) or not _is_int(nanos) or not 0 <= nanos < NANOS_PER_SECOND:
        raise ValueError(f"Invalid timestamp: {payload!r}")
    return secs * NANOS_PER_SECOND + nanos


def encode_records(records: Mapping[str, FileRecord]) -> str:
    """Serialize records into the on-disk JSON document."""
    payload = {
        path: {
            "file_size": record.size,
            "last_modified": _encode_timestamp(record.modified_at),
        }
        for path, record in records.items()
    }
    return json.dumps(payload, sort_keys=True, ensure_ascii=True)


def decode_records(text: str) -> Dict[str, FileRecord]:
    """Parse the on-disk JSON document.

    Raises:
        ValueError: If the document is not valid JSON or has the wrong shape.
    """
    try:
        payload = json.loads(text)
    except RecursionError as exc:
        raise ValueError("Cache document is nested too deeply") from exc
    if not isinstance(payload, dict):
        raise ValueError("Cache document must be a JSON object")

    records: Dict[str, FileRecord] = {}
    for path, entry in payload.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid cache entry for {path!r}")
        size = entry.get("file_size")
        if not _is_int(size) or size < 0:
            raise ValueError(f"Invalid size for {path!r}: {size!r}")
        records[path] = FileRecord(size=size, modified_at=_decode_timestamp(entry.get("last_modified")))
    return records


class CacheFile:
    """Loads and atomically commits a :class:`MetadataStore`."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> MetadataStore:
        """Read the cache, starting cold if it is missing or unreadable."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            LOGGER.info("No cache at %s, starting cold", self.path)
            return MetadataStore()
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Could not read cache %s: %s; starting cold", self.path, exc)
            return MetadataStore()

        try:
            records = decode_records(text)
        except ValueError as exc:
            LOGGER.warning("Ignoring corrupt cache %s: %s", self.path, exc)
            return MetadataStore()

        LOGGER.debug("Loaded %d cached records from %s", len(records), self.path)
        return MetadataStore(records)

    def commit(self, store: MetadataStore) -> None:
        """Write the store to disk.

        Raises:
            OSError: If the cache cannot be written. The previous file, if any,
                is left untouched.
        """
        records = store.snapshot()
        atomic_write_text(self.path, encode_records(records))
        LOGGER.debug("Committed %d records to %s", len(records), self.path)
