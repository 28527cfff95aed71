"""Split-spec parser -- index endpoints, resolve ``$ref`` chains, build field trees.

This sub-package turns a Redocly-style split OpenAPI workspace into the
models defined in :mod:`splitspec.models`. It is organised in two tiers:

* the cheap **index** (:func:`discover_endpoint_index`) lists every path,
  its path-item file and the HTTP methods in it, without touching schemas;
* the expensive **full parse** (:func:`parse_endpoint`) resolves one
  operation's request and response schemas into field trees.

Typical usage::

    from splitspec.parser import FileSystemStore, discover_projects
    from splitspec.parser import discover_endpoint_index, parse_endpoint

    store = FileSystemStore("specs")
    project = discover_projects(store)[0]
    for entry in discover_endpoint_index(project, store):
        print(entry.api_path, entry.methods)
    endpoint = parse_endpoint(project.root_path, entry.file_path, "get", store)

Sub-modules:

* :mod:`~splitspec.parser.loader` -- file-system document store.
* :mod:`~splitspec.parser.projects` -- ``redocly.yaml`` project discovery.
* :mod:`~splitspec.parser.indexer` -- line-scan endpoint index.
* :mod:`~splitspec.parser.operation` -- structural operation extraction.
* :mod:`~splitspec.parser.resolver` -- ``$ref`` resolution.
* :mod:`~splitspec.parser.scanner` -- indentation-based properties scanner.
* :mod:`~splitspec.parser.schema_tree` -- bounded, cycle-safe tree builder.
* :mod:`~splitspec.parser.endpoint` -- full endpoint parse.
"""

from splitspec.parser.endpoint import find_endpoint, parse_endpoint
from splitspec.parser.indexer import discover_endpoint_index
from splitspec.parser.loader import FileSystemStore
from splitspec.parser.projects import discover_projects

__all__ = [
    "FileSystemStore",
    "discover_projects",
    "discover_endpoint_index",
    "find_endpoint",
    "parse_endpoint",
]
