"""Core FileSweep data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Last-known metadata of a regular file."""

    size: int
    modified_at: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Match:
    """File that satisfied the active predicate."""

    path: str
    size: int
    modified_at: Optional[int] = None


@dataclass(slots=True)
class ScanResult:
    matches: List[Match] = field(default_factory=list)
    scanned: int = 0
    permission_denied: int = 0
    other_errors: int = 0
    cache_hits: int = 0
    refreshed: int = 0
    pruned: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def errors(self) -> int:
        return self.permission_denied + self.other_errors

    def sorted_matches(self) -> List[Match]:
        return sorted(self.matches, key=lambda match: match.path)
