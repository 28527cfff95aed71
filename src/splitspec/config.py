"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for splitspec:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.splitspec/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~splitspec.models.GlobalConfig`
  JSON file storing the default workspace, default project and resolver
  limits.
* **Project-local config** -- ``./splitspec.json`` in the current directory,
  typically committed next to a spec repository to pin its workspace root.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from splitspec.exceptions import ConfigError
from splitspec.models import GlobalConfig

_APP_NAME = "splitspec"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "splitspec.json"

ENV_WORKSPACE = "SPLITSPEC_WORKSPACE"
ENV_PROJECT = "SPLITSPEC_PROJECT"
ENV_MAX_DEPTH = "SPLITSPEC_MAX_DEPTH"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/splitspec/`` (default ``~/.config/splitspec/``).
    On macOS/Windows: ``~/.splitspec/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/splitspec/`` (default ``~/.local/share/splitspec/``).
    On macOS/Windows: ``~/.splitspec/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the exception re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~splitspec.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./splitspec.json``.

    Accepts the same keys as the global config. A relative ``workspace`` is
    taken relative to the directory holding the file.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    workspace = data.get("workspace")
    if isinstance(workspace, str) and not Path(workspace).is_absolute():
        data["workspace"] = str(path.parent / workspace)
    return data


# --- Precedence resolution ---


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay *overlay* onto *base* (nested dicts merged, rest replaced)."""
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def resolve_config(
    cli_workspace: Optional[str] = None,
    cli_project: Optional[str] = None,
    cli_max_depth: Optional[int] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_workspace``, ``cli_project``, ``cli_max_depth``)
        2. Environment variables (``SPLITSPEC_WORKSPACE``,
           ``SPLITSPEC_PROJECT``, ``SPLITSPEC_MAX_DEPTH``)
        3. Project config (``./splitspec.json``)
        4. User config (``~/.config/splitspec/config.json``)
        5. Defaults

    Returns:
        The effective :class:`~splitspec.models.GlobalConfig`. It is never
        saved back to disk.

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    # 5 + 4
    data = load_global_config().model_dump(mode="json")

    # 3
    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    # 2
    env_workspace = os.environ.get(ENV_WORKSPACE)
    if env_workspace:
        data["workspace"] = env_workspace
    env_project = os.environ.get(ENV_PROJECT)
    if env_project:
        data["default_project"] = env_project
    env_depth = os.environ.get(ENV_MAX_DEPTH)
    if env_depth:
        try:
            data["resolver"]["max_depth"] = int(env_depth)
        except ValueError:
            raise ConfigError(
                f"{ENV_MAX_DEPTH} must be an integer, got: {env_depth}"
            ) from None

    # 1
    if cli_workspace is not None:
        data["workspace"] = cli_workspace
    if cli_project is not None:
        data["default_project"] = cli_project
    if cli_max_depth is not None:
        data["resolver"]["max_depth"] = cli_max_depth

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
