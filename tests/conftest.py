"""Shared test fixtures for splitspec.

Provides a builder for split OpenAPI workspaces on disk, isolated config
environments, output state management, and a CLI runner. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import logging
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from splitspec.output import OutputFormat, OutputManager, reset_output, set_output
from splitspec.parser.loader import FileSystemStore


WorkspaceBuilder = Callable[[dict[str, str]], Path]


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative_path: content}`` below *root*, dedenting each content."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Workspace fixtures
# ---------------------------------------------------------------------------


USERS_WORKSPACE: dict[str, str] = {
    "redocly.yaml": """
        apis:
          public:
            root: public/openapi.yaml
    """,
    "public/openapi.yaml": """
        openapi: 3.0.3
        info:
          title: Users API
          version: 1.0.0
        paths:
          /users:
            $ref: "./paths/users.yaml"
          /users/{id}:
            $ref: paths/users_{id}.yaml
          /health:
            get:
              summary: Inline path item
              responses:
                '200':
                  description: OK
    """,
    "public/paths/users.yaml": """
        get:
          tags:
            - Users
          summary: List users
          operationId: listUsers
          parameters:
            - name: limit
              in: query
              description: Page size
              schema:
                type: integer
                format: int32
          responses:
            '200':
              description: OK
              content:
                application/json:
                  schema:
                    $ref: "../schemas/UserList.yaml"
        post:
          tags: [Users]
          summary: Create user
          operationId: createUser
          requestBody:
            required: true
            content:
              application/json:
                schema:
                  $ref: ../schemas/User.yaml
          responses:
            '201':
              description: Created
              content:
                application/json:
                  schema:
                    $ref: ../schemas/User.yaml
    """,
    "public/paths/users_{id}.yaml": """
        parameters:
          - name: id
            in: path
            schema:
              type: string
        get:
          summary: Get user
          operationId: getUser
          responses:
            '200':
              description: OK
              content:
                application/json:
                  schema:
                    $ref: ../schemas/User.yaml
        delete:
          summary: Delete user
          responses:
            '204':
              description: Deleted
    """,
    "public/schemas/UserList.yaml": """
        type: object
        required: [id]
        properties:
          id: {type: integer}
          name: {type: string}
    """,
    "public/schemas/User.yaml": """
        type: object
        required:
          - id
          - email
        properties:
          id:
            type: integer
            format: int64
            description: "Unique identifier"
          email:
            type: string
            format: email
            example: 'jane@example.com'
          address:
            $ref: ./Address.yaml
          tags:
            type: array
            items:
              type: string
    """,
    "public/schemas/Address.yaml": """
        type: object
        required: [city]
        properties:
          street:
            type: string
          city:
            type: string
            description: City name
    """,
}


@pytest.fixture
def make_workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Return a function that writes files into a fresh workspace directory."""
    root = tmp_path / "workspace"
    root.mkdir()

    def _build(files: dict[str, str]) -> Path:
        return write_tree(root, files)

    return _build


@pytest.fixture
def users_workspace(make_workspace: WorkspaceBuilder) -> Path:
    """A one-project workspace with /users, /users/{id} and an inline /health."""
    return make_workspace(USERS_WORKSPACE)


@pytest.fixture
def users_store(users_workspace: Path) -> FileSystemStore:
    return FileSystemStore(users_workspace)


@pytest.fixture
def two_project_workspace(make_workspace: WorkspaceBuilder) -> Path:
    """The users workspace declared twice, as 'public' and 'internal'."""
    files = dict(USERS_WORKSPACE)
    files["redocly.yaml"] = """
        apis:
          public:
            root: public/openapi.yaml
          internal:
            root: public/openapi.yaml
    """
    return make_workspace(files)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config, clears all SPLITSPEC_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("splitspec.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["SPLITSPEC_WORKSPACE", "SPLITSPEC_PROJECT", "SPLITSPEC_MAX_DEPTH"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging_between_tests() -> None:
    """Drop handlers the CLI callback attached to the ``splitspec`` logger."""
    yield
    logger = logging.getLogger("splitspec")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
