"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from filesweep.config import AppConfig, _get_default_cache_path


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.cache_path == _get_default_cache_path()
        assert config.workers == 8
        assert config.follow_links is False
        assert config.prune_missing is False
        assert config.mtime_resolution_ns == 1

    def test_custom_config(self) -> None:
        """Should create config with custom values."""
        config = AppConfig(
            cache_path=Path("/custom/cache.json"),
            workers=2,
            follow_links=True,
            prune_missing=True,
            mtime_resolution_ns=1_000_000_000,
        )

        assert config.cache_path == Path("/custom/cache.json")
        assert config.workers == 2
        assert config.follow_links is True
        assert config.prune_missing is True
        assert config.mtime_resolution_ns == 1_000_000_000

    def test_rejects_zero_workers(self) -> None:
        """Should refuse a pool without workers."""
        with pytest.raises(ValueError, match="workers"):
            AppConfig(workers=0)

    def test_rejects_zero_resolution(self) -> None:
        """Should refuse a zero timestamp resolution."""
        with pytest.raises(ValueError, match="resolution"):
            AppConfig(mtime_resolution_ns=0)

    def test_resolve_cache_path_absolute(self) -> None:
        """Should return absolute path as-is."""
        config = AppConfig(cache_path=Path("/absolute/cache.json"))

        assert config.resolve_cache_path(Path("/elsewhere")) == Path("/absolute/cache.json")

    def test_resolve_cache_path_relative_no_base(self) -> None:
        """Should return relative path when no base_dir provided."""
        config = AppConfig(cache_path=Path("relative/cache.json"))

        assert config.resolve_cache_path(base_dir=None) == Path("relative/cache.json")

    def test_resolve_cache_path_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        config = AppConfig(cache_path=Path("relative/cache.json"))

        resolved = config.resolve_cache_path(base_dir=Path("/base/directory"))

        assert resolved == Path("/base/directory/relative/cache.json")


class TestDefaultCachePath:
    """Test default cache location selection."""

    def test_prefers_local_data_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should use data/file_cache.json when it exists in the working directory."""
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "file_cache.json").write_text("{}")
        monkeypatch.chdir(tmp_path)

        assert _get_default_cache_path() == Path("data/file_cache.json")

    def test_falls_back_to_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should use the per-user cache directory otherwise."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path / "home"))

        expected = tmp_path / "home" / ".cache" / "filesweep" / "file_cache.json"
        assert _get_default_cache_path() == expected
