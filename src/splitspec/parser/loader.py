"""Read workspace files and parse them into Python mappings.

This module is the only place that touches the file system. Everything above
it works through a :class:`FileSystemStore`, the document store the parser
sub-package is written against:

* :meth:`FileSystemStore.read_text` -- raw text of a file.
* :meth:`FileSystemStore.resolve_relative` -- join a relative ``$ref`` path
  onto a directory, returning ``None`` when the target does not exist.
* :meth:`FileSystemStore.parent_of` -- directory containing a file.
* :meth:`FileSystemStore.parse_mapping` -- structural YAML/JSON parse that
  must yield a mapping.

The store never writes, never caches and never retries: a failed read is
final for that call, and the next call always sees the latest file contents.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from splitspec.exceptions import (
    DocumentNotFoundError,
    MalformedDocumentError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)


class FileSystemStore:
    """Document store backed by a workspace directory on local disk.

    Relative paths handed to the store are interpreted against the workspace
    root; absolute paths are used as-is. Returned paths are always absolute
    and normalised (``..`` segments collapsed), so they can serve as identity
    keys for cycle detection.

    Args:
        root: Workspace root directory.

    Raises:
        StorageUnavailableError: If *root* does not exist or is not a
            directory.

    Example::

        store = FileSystemStore("~/work/api-specs")
        root = store.absolute("public/openapi.yaml")
        spec = store.parse_mapping(store.read_text(root), hint="yaml")
    """

    def __init__(self, root: str | Path) -> None:
        root_path = Path(root).expanduser()
        if not root_path.is_dir():
            raise StorageUnavailableError(f"Workspace root not found: {root}")
        self._root = Path(os.path.abspath(root_path))

    @property
    def root(self) -> Path:
        """Absolute workspace root."""
        return self._root

    def absolute(self, path: str | Path) -> Path:
        """Return *path* as a normalised absolute path inside the workspace."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self._root / candidate
        return Path(os.path.normpath(candidate))

    def relative(self, path: str | Path) -> str:
        """Return *path* relative to the workspace root, using ``/`` separators."""
        return Path(os.path.relpath(self.absolute(path), self._root)).as_posix()

    def exists(self, path: str | Path) -> bool:
        return self.absolute(path).is_file()

    def read_text(self, path: str | Path) -> str:
        """Read a file as UTF-8 text.

        Args:
            path: Workspace-relative or absolute file path.

        Returns:
            The file content.

        Raises:
            DocumentNotFoundError: If the file is missing or cannot be read.
        """
        file_path = self.absolute(path)
        if not file_path.is_file():
            raise DocumentNotFoundError(f"File not found: {file_path}")
        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentNotFoundError(f"Failed to read {file_path}: {exc}") from exc

    def resolve_relative(self, base_dir: str | Path, relative_path: str) -> Path | None:
        """Resolve *relative_path* against *base_dir*.

        A leading ``./`` and surrounding whitespace are tolerated. Absolute
        *relative_path* values are kept as they are.

        Returns:
            The normalised absolute path of an existing file, or ``None``
            when no file exists there.
        """
        cleaned = relative_path.strip()
        if not cleaned:
            return None
        candidate = self.absolute(Path(self.absolute(base_dir)) / cleaned)
        if not candidate.is_file():
            logger.debug("No file at %s (from %s)", candidate, relative_path)
            return None
        return candidate

    def parent_of(self, path: str | Path) -> Path:
        return self.absolute(path).parent

    def parse_mapping(self, content: str, hint: str = "") -> dict[str, Any]:
        """Parse *content* into a mapping; see :func:`parse_mapping`."""
        return parse_mapping(content, hint=hint)

    def walk(self) -> list[Path]:
        """Return every directory under the root, skipping hidden ones.

        Directories are listed parents first, siblings in name order, so
        callers get a stable traversal order across platforms.
        """
        found: list[Path] = []
        for dirpath, dirnames, _ in os.walk(self._root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            found.append(Path(dirpath))
        return found


def parse_mapping(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML into a mapping.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.
    Split specs are almost always YAML, so callers usually pass
    ``hint="yaml"``.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed dictionary. Key order follows the document.

    Raises:
        MalformedDocumentError: If the content cannot be parsed, or parses to
            something other than a mapping.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise MalformedDocumentError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        return _require_mapping(result)

    msg = "Failed to parse document as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise MalformedDocumentError(msg)


def hint_for(path: str | Path) -> str:
    """Return the ``parse_mapping`` hint matching *path*'s extension."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        raise MalformedDocumentError(
            "Document must be a JSON/YAML mapping (got "
            f"{type(result).__name__ if result is not None else 'empty document'})"
        )
    return result
