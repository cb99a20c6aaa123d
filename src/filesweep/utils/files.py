"""Utility helpers for working with files."""

from __future__ import annotations

import errno
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional


class InvalidRootError(ValueError):
    """Raised when a scan root does not exist."""


class FaultKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"


_DENIED_ERRNOS = {errno.EACCES, errno.EPERM}


def classify_os_error(error: Optional[BaseException]) -> FaultKind:
    """Split a filesystem failure into permission-denied or other."""
    if isinstance(error, PermissionError):
        return FaultKind.PERMISSION_DENIED
    if isinstance(error, OSError) and error.errno in _DENIED_ERRNOS:
        return FaultKind.PERMISSION_DENIED
    return FaultKind.OTHER


def validate_root(path: Path) -> Path:
    """Return the absolute scan root, or raise if it does not exist."""
    if not os.path.lexists(path):
        raise InvalidRootError(f"Directory '{path}' not found")
    return Path(os.path.abspath(path))


def atomic_write_text(target: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Replace ``target`` with ``content`` so readers never see a partial file."""
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
