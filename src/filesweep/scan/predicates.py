"""Classification rules applied to scanned files."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import PurePath
from typing import Protocol, Union


class Predicate(Protocol):
    def matches(self, path: str, size: int) -> bool: ...


@dataclass(frozen=True, slots=True)
class SizeAtLeast:
    threshold: int

    def __post_init__(self) -> None:
        if self.threshold < 0:
            raise ValueError("threshold must be non-negative")

    def matches(self, path: str, size: int) -> bool:
        return size >= self.threshold

    def describe(self) -> str:
        return f"size >= {self.threshold} bytes"


@dataclass(frozen=True, slots=True)
class NameEquals:
    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must not be empty")

    def matches(self, path: str, size: int) -> bool:
        return PurePath(path).name == self.name

    def describe(self) -> str:
        return f"name == {self.name!r}"


@dataclass(frozen=True, slots=True)
class NameGlob:
    pattern: str

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("pattern must not be empty")

    def matches(self, path: str, size: int) -> bool:
        return fnmatchcase(PurePath(path).name, self.pattern)

    def describe(self) -> str:
        return f"name matches {self.pattern!r}"


AnyPredicate = Union[SizeAtLeast, NameEquals, NameGlob]
