"""Recursive directory enumeration."""

from __future__ import annotations

import errno
import os
import stat
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterator, List, Optional, Tuple, Union

_InodeKey = Tuple[int, int]


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class WalkEntry:
    """Entry found during traversal; metadata is read on demand."""

    path: str
    kind: EntryKind
    follow_links: bool = False

    def stat(self) -> os.stat_result:
        return os.stat(self.path, follow_symlinks=self.follow_links)


@dataclass(frozen=True, slots=True)
class WalkFault:
    """Entry or directory that could not be read."""

    path: str
    error: Optional[OSError] = None


WalkItem = Union[WalkEntry, WalkFault]


def _kind_from_mode(mode: int) -> EntryKind:
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def _entry_kind(entry: os.DirEntry, follow_links: bool) -> EntryKind:
    if follow_links and entry.is_symlink():
        # Raises for dangling links
        return _kind_from_mode(entry.stat(follow_symlinks=True).st_mode)
    if entry.is_dir(follow_symlinks=False):
        return EntryKind.DIRECTORY
    if entry.is_file(follow_symlinks=False):
        return EntryKind.FILE
    return EntryKind.OTHER


def walk(root: Union[str, os.PathLike], *, follow_links: bool = False) -> Iterator[WalkItem]:
    """Yield every entry under ``root`` (root included) and every traversal fault.

    Order is unspecified. Symbolic links are reported as ``OTHER`` unless
    ``follow_links`` is set, in which case they are resolved and directory
    cycles are reported as faults instead of being descended into. The root
    itself is always resolved, so a link to a directory is walked.
    """
    root = os.fspath(root)
    try:
        root_stat = os.stat(root)
    except OSError as exc:
        yield WalkFault(root, exc)
        return

    root_kind = _kind_from_mode(root_stat.st_mode)
    yield WalkEntry(root, root_kind, follow_links=True)
    if root_kind is not EntryKind.DIRECTORY:
        return

    root_key = (root_stat.st_dev, root_stat.st_ino)
    pending: List[Tuple[str, FrozenSet[_InodeKey]]] = [(root, frozenset([root_key]))]
    while pending:
        directory, ancestors = pending.pop()
        try:
            with os.scandir(directory) as iterator:
                children = list(iterator)
        except OSError as exc:
            yield WalkFault(directory, exc)
            continue

        for child in children:
            try:
                kind = _entry_kind(child, follow_links)
            except OSError as exc:
                yield WalkFault(child.path, exc)
                continue

            if kind is not EntryKind.DIRECTORY:
                yield WalkEntry(child.path, kind, follow_links)
                continue

            child_ancestors = ancestors
            if follow_links:
                try:
                    child_stat = child.stat(follow_symlinks=True)
                except OSError as exc:
                    yield WalkFault(child.path, exc)
                    continue
                key = (child_stat.st_dev, child_stat.st_ino)
                if key in ancestors:
                    yield WalkFault(
                        child.path,
                        OSError(errno.ELOOP, "File system loop detected", child.path),
                    )
                    continue
                child_ancestors = ancestors | {key}

            yield WalkEntry(child.path, kind, follow_links)
            pending.append((child.path, child_ancestors))
