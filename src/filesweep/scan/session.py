"""Load, scan, prune and commit as one run."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from filesweep.cache.storage import CacheFile
from filesweep.cache.store import MetadataStore
from filesweep.config import AppConfig
from filesweep.models import ScanResult
from filesweep.scan.engine import ScanEngine
from filesweep.scan.predicates import Predicate
from filesweep.scan.staleness import StalenessOracle
from filesweep.utils.files import validate_root

LOGGER = logging.getLogger(__name__)


def _is_missing(path: str) -> bool:
    try:
        os.lstat(path)
    except (FileNotFoundError, NotADirectoryError):
        return True
    except OSError:
        # Present but unreadable
        return False
    return False


def _is_within(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        return False


def prune_missing(store: MetadataStore, within: Optional[str] = None) -> int:
    """Remove records of files that no longer exist, optionally only under ``within``."""
    if within is not None:
        within = os.path.abspath(within)
    removed = 0
    for path in store.paths():
        if within is not None and not _is_within(path, within):
            continue
        if _is_missing(path) and store.remove(path):
            removed += 1
    if removed:
        LOGGER.info("Pruned %d missing files from the cache", removed)
    return removed


def run_scan(
    root: Path,
    predicate: Predicate,
    config: AppConfig,
    *,
    base_dir: Path | None = None,
) -> ScanResult:
    """Run one incremental scan and persist the updated cache.

    A cache that cannot be saved is reported in ``ScanResult.warnings``.

    Raises:
        InvalidRootError: If ``root`` does not exist.
    """
    root = validate_root(root)
    cache = CacheFile(config.resolve_cache_path(base_dir))
    store = cache.load()

    engine = ScanEngine(
        store,
        predicate,
        oracle=StalenessOracle(config.mtime_resolution_ns),
        workers=config.workers,
        follow_links=config.follow_links,
    )
    result = engine.run(root)

    if config.prune_missing:
        result.pruned = prune_missing(store, within=str(root))

    try:
        cache.commit(store)
    except OSError as exc:
        message = f"Failed to save cache {cache.path}: {exc}"
        LOGGER.warning(message)
        result.warnings.append(message)
    return result


def prune_cache(config: AppConfig, *, base_dir: Path | None = None) -> int:
    """Drop every cached record whose file is gone and save the cache.

    Raises:
        OSError: If the pruned cache cannot be written.
    """
    cache = CacheFile(config.resolve_cache_path(base_dir))
    store = cache.load()
    removed = prune_missing(store)
    if removed:
        cache.commit(store)
    return removed
