"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

CACHE_FILENAME = "file_cache.json"


def _get_default_cache_path() -> Path:
    """Get the default cache path based on execution context."""
    # When running from a checkout, prefer local data/ if it exists
    local_cache = Path("data") / CACHE_FILENAME
    if local_cache.exists():
        return local_cache

    return Path.home() / ".cache" / "filesweep" / CACHE_FILENAME


@dataclass(slots=True)
class AppConfig:
    cache_path: Path | None = None
    workers: int = 8
    follow_links: bool = False
    prune_missing: bool = False
    mtime_resolution_ns: int = 1

    def __post_init__(self) -> None:
        if self.cache_path is None:
            self.cache_path = _get_default_cache_path()
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.mtime_resolution_ns < 1:
            raise ValueError("mtime_resolution_ns must be at least 1")

    def resolve_cache_path(self, base_dir: Path | None = None) -> Path:
        if self.cache_path is None:
            self.cache_path = _get_default_cache_path()
        if Path(self.cache_path).is_absolute() or base_dir is None:
            return Path(self.cache_path)
        return base_dir / self.cache_path
