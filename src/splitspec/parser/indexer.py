"""Cheap endpoint index for split OpenAPI projects.

Indexing answers "which URL templates exist, which file holds each, and which
HTTP methods does that file define" for thousands of endpoints without
resolving a single schema:

* the root ``openapi.yaml`` is parsed structurally, but only its ``paths``
  mapping is read;
* each referenced path-item file is read as raw text and scanned line by line
  for ``<method>:`` at the start of a line.

The full, expensive parse of one endpoint lives in
:mod:`splitspec.parser.endpoint`. Failures here are isolated per file: a
missing or unreadable path-item file still yields an
:class:`~splitspec.models.EndpointInfo` (with no methods), and an unreadable
root yields an empty index. Both are logged as warnings.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from splitspec.exceptions import DocumentNotFoundError, MalformedDocumentError
from splitspec.models import ApiProject, EndpointInfo, HTTPMethod
from splitspec.parser.loader import FileSystemStore

logger = logging.getLogger(__name__)

_METHOD_PATTERNS = [
    (method.value, re.compile(rf"^{method.value}\s*:", re.MULTILINE))
    for method in HTTPMethod
]


def detect_methods(content: str) -> list[str]:
    """Return the canonical HTTP methods declared at column 0 of *content*.

    Only keys at the very start of a line count, which in a path-item file
    means top-level operation keys. The result follows the canonical order
    of :class:`~splitspec.models.HTTPMethod`.
    """
    return [method for method, pattern in _METHOD_PATTERNS if pattern.search(content)]


def path_refs(root: dict[str, Any]) -> list[tuple[str, str]]:
    """Return ``(url_template, ref)`` pairs for every ``$ref`` entry under ``paths``.

    Inline path items are skipped. Order follows the document.
    """
    paths = root.get("paths")
    if not isinstance(paths, dict):
        logger.warning("No 'paths' section in root document")
        return []

    refs: list[tuple[str, str]] = []
    for api_path, path_item in paths.items():
        if isinstance(path_item, dict) and isinstance(path_item.get("$ref"), str):
            refs.append((str(api_path), path_item["$ref"].strip()))
        else:
            logger.debug("Path %s has an inline definition, not indexed", api_path)
    return refs


def index_paths(
    root_text: str, project_base_dir: Path, store: FileSystemStore
) -> list[EndpointInfo]:
    """Index the externally referenced paths of one root spec document.

    Args:
        root_text: Raw text of the project's root spec.
        project_base_dir: Directory containing the root spec; path-item
            references are resolved against it.
        store: Document store used for path-item reads.

    Returns:
        One entry per ``$ref``-valued entry under ``paths``, in document
        order. Empty when the root does not parse as a mapping.
    """
    try:
        root = store.parse_mapping(root_text, hint="yaml")
    except MalformedDocumentError as exc:
        logger.warning("Root spec in %s could not be parsed: %s", project_base_dir, exc)
        return []

    endpoints: list[EndpointInfo] = []
    for api_path, ref in path_refs(root):
        file_part = ref.partition("#")[0]
        path = store.resolve_relative(project_base_dir, file_part)
        methods: list[str] = []
        if path is None:
            logger.warning(
                "Endpoint file not found: %s (expected under %s)", ref, project_base_dir
            )
        else:
            try:
                methods = detect_methods(store.read_text(path))
            except DocumentNotFoundError as exc:
                logger.warning("Error reading endpoint file %s: %s", path, exc)
        logger.debug("Endpoint %s has methods: %s", api_path, methods)
        endpoints.append(EndpointInfo(api_path=api_path, file_path=ref, methods=methods))

    logger.debug("Indexed %d endpoints under %s", len(endpoints), project_base_dir)
    return endpoints


def discover_endpoint_index(
    project: ApiProject, store: FileSystemStore
) -> list[EndpointInfo]:
    """Index every endpoint of *project*.

    An unreadable root spec is reported as a warning and yields an empty
    list; callers treat "no endpoints" and "read failure" alike.
    """
    root_path = store.absolute(project.root_path)
    try:
        root_text = store.read_text(root_path)
    except DocumentNotFoundError as exc:
        logger.warning("Root spec for project %s not readable: %s", project.name, exc)
        return []
    endpoints = index_paths(root_text, root_path.parent, store)
    if not endpoints:
        logger.warning("No endpoints indexed for project %s", project.name)
    return endpoints
