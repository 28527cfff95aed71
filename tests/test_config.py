"""Tests for splitspec.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from splitspec.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_global_config,
    load_project_config,
    resolve_config,
    save_global_config,
)
from splitspec.exceptions import ConfigError
from splitspec.models import GlobalConfig, ResolverConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("splitspec.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "splitspec"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("splitspec.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "splitspec"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("splitspec.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "splitspec"
        assert result.is_dir()

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("splitspec.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".splitspec"
        assert get_data_dir() == tmp_path / ".splitspec" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        _atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "content")
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("splitspec.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        cfg = load_global_config()
        assert cfg == GlobalConfig()
        assert cfg.workspace is None
        assert cfg.resolver.max_depth == 10

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = GlobalConfig(
            workspace="/srv/specs",
            default_project="public",
            resolver=ResolverConfig(max_depth=4),
        )
        save_global_config(original)
        assert load_global_config() == original

    def test_saved_config_is_valid_json(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(default_project="public"))
        path = isolated_config / "config" / "splitspec" / "config.json"
        assert json.loads(path.read_text(encoding="utf-8"))["default_project"] == "public"

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "splitspec" / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{invalid json!!!", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "splitspec" / "config.json",
            {"resolver": {"max_depth": -1}},
        )
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()


# ---------------------------------------------------------------------------
# Project-local config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_load_returns_none_when_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_relative_workspace_is_made_absolute(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "splitspec.json", {"workspace": "specs"})
        data = load_project_config()
        assert data is not None
        assert Path(data["workspace"]) == isolated_config / "specs"

    def test_absolute_workspace_is_kept(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "splitspec.json", {"workspace": "/srv/specs"})
        assert load_project_config() == {"workspace": "/srv/specs"}

    def test_non_object_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "splitspec.json", ["not", "an", "object"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()

    def test_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        (isolated_config / "splitspec.json").write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    """CLI > env > project > global > defaults."""

    def test_defaults(self, isolated_config: Path) -> None:
        assert resolve_config() == GlobalConfig()

    def test_global_values_used(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(workspace="/global", default_project="public"))
        cfg = resolve_config()
        assert cfg.workspace == "/global"
        assert cfg.default_project == "public"

    def test_project_overrides_global(self, isolated_config: Path) -> None:
        save_global_config(
            GlobalConfig(workspace="/global", resolver=ResolverConfig(max_depth=3))
        )
        _write_json(
            isolated_config / "splitspec.json",
            {"workspace": "/project", "resolver": {"indent_step": 4}},
        )
        cfg = resolve_config()
        assert cfg.workspace == "/project"
        # nested sections are merged, not replaced
        assert cfg.resolver.max_depth == 3
        assert cfg.resolver.indent_step == 4

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "splitspec.json", {"workspace": "/project"})
        monkeypatch.setenv("SPLITSPEC_WORKSPACE", "/env")
        monkeypatch.setenv("SPLITSPEC_PROJECT", "internal")
        monkeypatch.setenv("SPLITSPEC_MAX_DEPTH", "5")

        cfg = resolve_config()
        assert cfg.workspace == "/env"
        assert cfg.default_project == "internal"
        assert cfg.resolver.max_depth == 5

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPLITSPEC_WORKSPACE", "/env")
        monkeypatch.setenv("SPLITSPEC_PROJECT", "internal")
        monkeypatch.setenv("SPLITSPEC_MAX_DEPTH", "5")

        cfg = resolve_config(cli_workspace="/cli", cli_project="public", cli_max_depth=2)
        assert cfg.workspace == "/cli"
        assert cfg.default_project == "public"
        assert cfg.resolver.max_depth == 2

    def test_resolve_does_not_write_global_config(
        self, isolated_config: Path
    ) -> None:
        resolve_config(cli_workspace="/cli")
        assert load_global_config().workspace is None

    def test_bad_env_depth_raises_config_error(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPLITSPEC_MAX_DEPTH", "deep")
        with pytest.raises(ConfigError, match="SPLITSPEC_MAX_DEPTH"):
            resolve_config()

    def test_negative_depth_raises_config_error(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config(cli_max_depth=-1)
