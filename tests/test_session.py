"""Tests for full scan runs with a persisted cache."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from filesweep.cache.storage import CacheFile, encode_records
from filesweep.cache.store import MetadataStore
from filesweep.config import AppConfig
from filesweep.models import FileRecord
from filesweep.scan.predicates import SizeAtLeast
from filesweep.scan.session import prune_cache, prune_missing, run_scan
from filesweep.utils.files import InvalidRootError


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(cache_path=tmp_path / "cache" / "file_cache.json", workers=4)


@pytest.fixture
def root(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    root.mkdir()
    (root / "A").write_bytes(b"a" * 10)
    (root / "B").write_bytes(b"b" * 2048)
    return root


class TestRunScan:
    """Test run_scan orchestration."""

    def test_persists_cache_between_runs(self, root: Path, config: AppConfig) -> None:
        first = run_scan(root, SizeAtLeast(1024), config)

        assert [Path(m.path).name for m in first.matches] == ["B"]
        assert first.warnings == []
        cached = CacheFile(config.cache_path).load().snapshot()
        assert set(cached) == {str(root / "A"), str(root / "B")}

        second = run_scan(root, SizeAtLeast(1024), config)

        assert second.cache_hits == 2
        assert second.refreshed == 0
        assert CacheFile(config.cache_path).load().snapshot() == cached

    def test_truncated_file_updates_cache(self, root: Path, config: AppConfig) -> None:
        run_scan(root, SizeAtLeast(1024), config)
        (root / "B").write_bytes(b"b" * 10)

        result = run_scan(root, SizeAtLeast(1024), config)

        assert result.matches == []
        cached = CacheFile(config.cache_path).load().snapshot()
        assert cached[str(root / "B")].size == 10

    def test_corrupt_cache_starts_cold(self, root: Path, config: AppConfig) -> None:
        config.cache_path.parent.mkdir(parents=True)
        config.cache_path.write_text("garbage")

        result = run_scan(root, SizeAtLeast(0), config)

        assert result.refreshed == 2
        assert len(CacheFile(config.cache_path).load()) == 2

    def test_commit_failure_is_a_warning(
        self, root: Path, config: AppConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Should still return results when the cache cannot be saved."""
        with patch.object(CacheFile, "commit", side_effect=OSError("read-only filesystem")):
            with caplog.at_level(logging.WARNING):
                result = run_scan(root, SizeAtLeast(1024), config)

        assert [Path(m.path).name for m in result.matches] == ["B"]
        assert len(result.warnings) == 1
        assert "read-only filesystem" in result.warnings[0]
        assert "Failed to save cache" in caplog.text

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_linked_root(self, root: Path, tmp_path: Path, config: AppConfig) -> None:
        """Should scan through a root that is a link to a directory."""
        link = tmp_path / "link"
        link.symlink_to(root)

        result = run_scan(link, SizeAtLeast(1024), config)

        assert result.scanned == 2
        assert [m.path for m in result.matches] == [str(link / "B")]

    def test_missing_root(self, tmp_path: Path, config: AppConfig) -> None:
        with pytest.raises(InvalidRootError):
            run_scan(tmp_path / "missing", SizeAtLeast(0), config)

        assert not config.cache_path.exists()

    def test_relative_cache_path_uses_base_dir(self, root: Path, tmp_path: Path) -> None:
        config = AppConfig(cache_path=Path("rel/cache.json"), workers=1)

        run_scan(root, SizeAtLeast(0), config, base_dir=tmp_path)

        assert (tmp_path / "rel" / "cache.json").exists()

    def test_independent_caches(self, root: Path, tmp_path: Path) -> None:
        """Should keep separate runs isolated by cache path."""
        first = AppConfig(cache_path=tmp_path / "one.json")
        second = AppConfig(cache_path=tmp_path / "two.json")

        run_scan(root, SizeAtLeast(0), first)
        result = run_scan(root, SizeAtLeast(0), second)

        assert result.cache_hits == 0

    def test_vanished_file_kept_by_default(self, root: Path, config: AppConfig) -> None:
        run_scan(root, SizeAtLeast(0), config)
        (root / "A").unlink()

        result = run_scan(root, SizeAtLeast(0), config)

        assert result.pruned == 0
        assert str(root / "A") in CacheFile(config.cache_path).load()

    def test_prune_missing_enabled(self, root: Path, config: AppConfig) -> None:
        run_scan(root, SizeAtLeast(0), config)
        (root / "A").unlink()
        config.prune_missing = True

        result = run_scan(root, SizeAtLeast(0), config)

        assert result.pruned == 1
        cached = CacheFile(config.cache_path).load()
        assert str(root / "A") not in cached
        assert str(root / "B") in cached


class TestPruneMissing:
    """Test prune_missing helper."""

    def test_removes_only_missing(self, tmp_path: Path) -> None:
        present = tmp_path / "present"
        present.write_text("x")
        store = MetadataStore(
            {str(present): FileRecord(1), str(tmp_path / "gone"): FileRecord(2)}
        )

        assert prune_missing(store) == 1
        assert list(store.paths()) == [str(present)]

    def test_respects_scope(self, tmp_path: Path) -> None:
        """Should leave records outside the scanned root alone."""
        inside = str(tmp_path / "root" / "gone")
        outside = str(tmp_path / "elsewhere" / "gone")
        sibling = str(tmp_path / "root-sibling" / "gone")
        store = MetadataStore(
            {inside: FileRecord(1), outside: FileRecord(2), sibling: FileRecord(3)}
        )

        removed = prune_missing(store, within=str(tmp_path / "root"))

        assert removed == 1
        assert set(store.paths()) == {outside, sibling}

    def test_unreadable_paths_are_kept(self, tmp_path: Path) -> None:
        path = str(tmp_path / "locked")
        store = MetadataStore({path: FileRecord(1)})

        with patch("filesweep.scan.session.os.lstat", side_effect=PermissionError("denied")):
            assert prune_missing(store) == 0

        assert path in store


class TestPruneCache:
    """Test prune_cache."""

    def test_prunes_and_saves(self, tmp_path: Path) -> None:
        present = tmp_path / "present"
        present.write_text("x")
        cache_path = tmp_path / "cache.json"
        cache_path.write_text(
            encode_records({str(present): FileRecord(1), "/definitely/not/here": FileRecord(2)})
        )

        removed = prune_cache(AppConfig(cache_path=cache_path))

        assert removed == 1
        assert set(CacheFile(cache_path).load().snapshot()) == {str(present)}

    def test_nothing_to_prune_leaves_file(self, tmp_path: Path) -> None:
        cache_path = tmp_path / "cache.json"
        cache_path.write_text("{}")
        before = os.stat(cache_path).st_mtime_ns

        assert prune_cache(AppConfig(cache_path=cache_path)) == 0
        assert os.stat(cache_path).st_mtime_ns == before
