"""Discover API projects declared in ``redocly.yaml`` files.

A Redocly configuration names its APIs under ``apis``, each with a ``root``
spec path relative to the configuration file::

    apis:
      public:
        root: public/openapi.yaml
      internal:
        root: internal/openapi.yaml

:func:`discover_projects` finds every ``redocly.yaml`` (or ``redocly.yml``)
below the workspace root and turns each entry into an
:class:`~splitspec.models.ApiProject` whose ``root_path`` is relative to the
workspace root. Unreadable or malformed configuration files are logged and
skipped so that one broken file does not hide the others.
"""

from __future__ import annotations

import logging
from pathlib import Path

from splitspec.exceptions import DocumentNotFoundError, MalformedDocumentError
from splitspec.models import ApiProject
from splitspec.parser.loader import FileSystemStore

logger = logging.getLogger(__name__)

REDOCLY_FILENAMES = ("redocly.yaml", "redocly.yml")


def find_redocly_files(store: FileSystemStore) -> list[Path]:
    """Return one Redocly config per directory, ``redocly.yaml`` preferred."""
    found: list[Path] = []
    for directory in store.walk():
        for filename in REDOCLY_FILENAMES:
            candidate = directory / filename
            if candidate.is_file():
                found.append(candidate)
                break
    return found


def projects_from_config(config_path: Path, store: FileSystemStore) -> list[ApiProject]:
    """Read the ``apis`` map of one Redocly configuration file.

    Raises:
        DocumentNotFoundError: If the file cannot be read.
        MalformedDocumentError: If it is not a YAML mapping.
    """
    data = store.parse_mapping(store.read_text(config_path), hint="yaml")
    apis = data.get("apis")
    if not isinstance(apis, dict):
        logger.warning("No 'apis' section in %s", config_path)
        return []

    projects: list[ApiProject] = []
    for name, entry in apis.items():
        if not isinstance(entry, dict) or not isinstance(entry.get("root"), str):
            logger.debug("API %s in %s has no root, skipped", name, config_path)
            continue
        root_path = store.relative(config_path.parent / entry["root"])
        logger.debug("Project %s: root=%s", name, root_path)
        projects.append(ApiProject(name=str(name), root_path=root_path))
    return projects


def discover_projects(store: FileSystemStore) -> list[ApiProject]:
    """Find every API project declared anywhere in the workspace.

    Returns:
        Projects in traversal order (parent directories first, then
        subdirectories by name), then declaration order within each file.
    """
    projects: list[ApiProject] = []
    for config_path in find_redocly_files(store):
        try:
            projects.extend(projects_from_config(config_path, store))
        except (DocumentNotFoundError, MalformedDocumentError) as exc:
            logger.warning("Skipping %s: %s", config_path, exc)
    logger.debug("Discovered %d API projects", len(projects))
    return projects
