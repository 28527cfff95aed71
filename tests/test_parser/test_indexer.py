"""Tests for splitspec.parser.indexer -- the cheap endpoint index."""

from __future__ import annotations

import logging
import textwrap
from pathlib import Path

import pytest

from splitspec.models import ApiProject, EndpointInfo
from splitspec.parser.indexer import (
    detect_methods,
    discover_endpoint_index,
    index_paths,
    path_refs,
)
from splitspec.parser.loader import FileSystemStore


# ---------------------------------------------------------------------------
# detect_methods
# ---------------------------------------------------------------------------


class TestDetectMethods:
    def test_canonical_order(self) -> None:
        text = "delete:\n  summary: x\nget:\n  summary: y\npatch: {}\n"
        assert detect_methods(text) == ["get", "delete", "patch"]

    def test_all_methods(self) -> None:
        text = "".join(f"{m}:\n  x: 1\n" for m in ("options", "head", "patch", "delete", "put", "post", "get"))
        assert detect_methods(text) == ["get", "post", "put", "delete", "patch", "head", "options"]

    def test_indented_keys_do_not_count(self) -> None:
        text = textwrap.dedent("""\
            post:
              requestBody:
                content:
                  application/json:
                    schema:
                      properties:
                        get: {type: string}
                        head: {type: string}
        """)
        assert detect_methods(text) == ["post"]

    def test_space_before_colon(self) -> None:
        assert detect_methods("get :\n  summary: x\n") == ["get"]

    def test_prefix_words_do_not_count(self) -> None:
        assert detect_methods("getter: 1\nposts: 2\n") == []

    def test_trace_is_not_indexed(self) -> None:
        assert detect_methods("trace:\n  summary: x\n") == []

    def test_no_methods(self) -> None:
        assert detect_methods("parameters: []\n") == []


# ---------------------------------------------------------------------------
# path_refs
# ---------------------------------------------------------------------------


class TestPathRefs:
    def test_only_ref_entries_in_order(self) -> None:
        root = {
            "paths": {
                "/b": {"$ref": "./paths/b.yaml"},
                "/inline": {"get": {}},
                "/a": {"$ref": " paths/a.yaml "},
            }
        }
        assert path_refs(root) == [("/b", "./paths/b.yaml"), ("/a", "paths/a.yaml")]

    def test_missing_paths(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="splitspec"):
            assert path_refs({"openapi": "3.0.3"}) == []
        assert "No 'paths' section" in caplog.text


# ---------------------------------------------------------------------------
# index_paths / discover_endpoint_index
# ---------------------------------------------------------------------------


class TestIndexPaths:
    """Test indexing a project's root document."""

    def test_users_workspace(self, users_store: FileSystemStore) -> None:
        project = ApiProject(name="public", root_path="public/openapi.yaml")
        index = discover_endpoint_index(project, users_store)

        assert index == [
            EndpointInfo(api_path="/users", file_path="./paths/users.yaml", methods=["get", "post"]),
            EndpointInfo(
                api_path="/users/{id}",
                file_path="paths/users_{id}.yaml",
                methods=["get", "delete"],
            ),
        ]
        assert index[0].display_name == "users"

    def test_scenario_single_path(self, make_workspace) -> None:
        root = make_workspace(
            {
                "openapi.yaml": """
                    paths:
                      /users:
                        $ref: "./paths/users.yaml"
                """,
                "paths/users.yaml": """
                    get:
                      summary: List users
                """,
            }
        )
        store = FileSystemStore(root)
        index = index_paths(store.read_text("openapi.yaml"), root, store)
        assert [e.model_dump() for e in index] == [
            {"api_path": "/users", "file_path": "./paths/users.yaml", "methods": ["get"]}
        ]

    def test_missing_file_keeps_entry(
        self, make_workspace, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = make_workspace(
            {
                "openapi.yaml": """
                    paths:
                      /gone:
                        $ref: paths/gone.yaml
                      /here:
                        $ref: paths/here.yaml
                """,
                "paths/here.yaml": "put:\n  summary: x\n",
            }
        )
        store = FileSystemStore(root)
        with caplog.at_level(logging.WARNING, logger="splitspec"):
            index = index_paths(store.read_text("openapi.yaml"), root, store)

        assert [(e.api_path, e.methods) for e in index] == [("/gone", []), ("/here", ["put"])]
        assert "Endpoint file not found" in caplog.text

    def test_file_with_no_methods(self, make_workspace) -> None:
        root = make_workspace(
            {
                "openapi.yaml": "paths:\n  /x:\n    $ref: x.yaml\n",
                "x.yaml": "summary: nothing here\n",
            }
        )
        store = FileSystemStore(root)
        (entry,) = index_paths(store.read_text("openapi.yaml"), root, store)
        assert entry.methods == []

    def test_pointer_suffix_in_path_ref(self, make_workspace) -> None:
        root = make_workspace(
            {
                "openapi.yaml": "paths:\n  /x:\n    $ref: 'x.yaml#/x'\n",
                "x.yaml": "get:\n  summary: x\n",
            }
        )
        store = FileSystemStore(root)
        (entry,) = index_paths(store.read_text("openapi.yaml"), root, store)
        assert entry.file_path == "x.yaml#/x"
        assert entry.methods == ["get"]

    def test_malformed_root_gives_empty(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        store = FileSystemStore(tmp_path)
        with caplog.at_level(logging.WARNING, logger="splitspec"):
            assert index_paths("paths: [unclosed", tmp_path, store) == []
        assert "could not be parsed" in caplog.text

    def test_missing_root_gives_empty(self, tmp_path: Path) -> None:
        store = FileSystemStore(tmp_path)
        project = ApiProject(name="ghost", root_path="ghost/openapi.yaml")
        assert discover_endpoint_index(project, store) == []

    def test_does_not_read_schemas(self, users_workspace: Path) -> None:
        # An unparseable schema must not affect the index.
        (users_workspace / "public" / "schemas" / "User.yaml").write_text("::: not yaml [")
        store = FileSystemStore(users_workspace)
        project = ApiProject(name="public", root_path="public/openapi.yaml")
        assert len(discover_endpoint_index(project, store)) == 2
