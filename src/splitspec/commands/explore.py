"""Explore commands -- read-only views over a split OpenAPI workspace.

Provides the top-level ``projects``, ``endpoints`` and ``show`` commands.
Each resolves the effective configuration via
:func:`~splitspec.config.resolve_config`, opens the workspace through a
:class:`~splitspec.parser.loader.FileSystemStore` and renders the result in
the active output format: a table or tree in Rich mode, tab-separated text in
plain mode, and the :mod:`splitspec.wire` encoding in JSON mode.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.text import Text
from rich.tree import Tree

from splitspec.exceptions import DocumentNotFoundError, InvalidUsageError, SplitspecError
from splitspec.models import ApiProject, GlobalConfig, ParsedEndpoint, SchemaField
from splitspec.output import (
    OutputFormat,
    debug,
    error,
    format_response,
    get_output,
    print_data,
    print_table,
    print_tree,
    suggest,
    warning,
)


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Turn :class:`~splitspec.exceptions.SplitspecError` into a clean exit."""
    try:
        yield
    except SplitspecError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _resolve(ctx: typer.Context, project: Optional[str] = None) -> GlobalConfig:
    from splitspec.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(
        cli_workspace=obj.get("workspace"),
        cli_project=project,
        cli_max_depth=obj.get("max_depth"),
    )


def _open_store(config: GlobalConfig):  # noqa: ANN202
    from splitspec.parser import FileSystemStore

    root = Path(config.workspace) if config.workspace else Path.cwd()
    debug(f"Workspace: {root}")
    return FileSystemStore(root)


def _select_project(projects: list[ApiProject], name: Optional[str]) -> ApiProject:
    """Pick the named project, or the only one when no name is given.

    Raises:
        DocumentNotFoundError: If the workspace declares no projects.
        InvalidUsageError: If *name* is unknown, or several projects exist
            and none was named.
    """
    if not projects:
        raise DocumentNotFoundError("No redocly.yaml projects found in workspace")
    available = ", ".join(p.name for p in projects)
    if name is None:
        if len(projects) == 1:
            return projects[0]
        raise InvalidUsageError(
            f"Several projects found ({available}). Pass --project NAME."
        )
    for project in projects:
        if project.name == name:
            return project
    raise InvalidUsageError(f"Unknown project '{name}'. Available: {available}")


# ------------------------------------------------------------------ #
# projects
# ------------------------------------------------------------------ #


def projects_command(ctx: typer.Context) -> None:
    """List the API projects declared in redocly.yaml files.

    Example::

        splitspec --workspace specs projects
        splitspec projects --json
    """
    from splitspec.parser import discover_projects
    from splitspec.wire import project_to_wire

    with _cli_errors():
        store = _open_store(_resolve(ctx))
        projects = discover_projects(store)

    if not projects:
        warning("No redocly.yaml projects found in workspace.")
        suggest("Pass --workspace DIR pointing at a folder with redocly.yaml.")

    if get_output().format == OutputFormat.JSON:
        format_response([project_to_wire(p) for p in projects])
        return
    print_table(
        ["Name", "Root"],
        [[p.name, p.root_path] for p in projects],
        title="API Projects",
    )


# ------------------------------------------------------------------ #
# endpoints
# ------------------------------------------------------------------ #


def endpoints_command(
    ctx: typer.Context,
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="API project name from redocly.yaml."
    ),
) -> None:
    """List every endpoint of a project with its HTTP methods.

    Only the root spec and the path-item files are read; no schema is
    resolved.

    Example::

        splitspec endpoints
        splitspec endpoints --project public --plain
    """
    from splitspec.parser import discover_endpoint_index, discover_projects
    from splitspec.wire import endpoint_info_to_wire

    with _cli_errors():
        config = _resolve(ctx, project)
        store = _open_store(config)
        selected = _select_project(discover_projects(store), config.default_project)
        index = discover_endpoint_index(selected, store)

    if get_output().format == OutputFormat.JSON:
        format_response([endpoint_info_to_wire(entry) for entry in index])
        return
    print_table(
        ["Path", "File", "Methods"],
        [
            [entry.api_path, entry.file_path, ", ".join(m.upper() for m in entry.methods)]
            for entry in index
        ],
        title=f"Endpoints of {selected.name}",
    )


# ------------------------------------------------------------------ #
# show
# ------------------------------------------------------------------ #


def show_command(
    ctx: typer.Context,
    target: str = typer.Argument(
        help="API path from the index (e.g. /users) or path-item file path."
    ),
    method: str = typer.Argument(help="HTTP method, e.g. get or POST."),
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="API project name from redocly.yaml."
    ),
) -> None:
    """Parse one endpoint and show its parameters, request and response fields.

    Example::

        splitspec show /users get
        splitspec show paths/users.yaml post --json
    """
    from splitspec.parser import (
        discover_endpoint_index,
        discover_projects,
        find_endpoint,
        parse_endpoint,
    )
    from splitspec.wire import endpoint_to_wire

    with _cli_errors():
        config = _resolve(ctx, project)
        store = _open_store(config)
        selected = _select_project(discover_projects(store), config.default_project)

        entry = find_endpoint(discover_endpoint_index(selected, store), target)
        if entry is not None:
            file_path = entry.file_path
        elif target.startswith("/"):
            raise InvalidUsageError(f"Unknown endpoint '{target}' in project {selected.name}")
        else:
            file_path = target

        endpoint = parse_endpoint(
            selected.root_path, file_path, method, store, config.resolver
        )

    fmt = get_output().format
    if fmt == OutputFormat.JSON:
        format_response(endpoint_to_wire(endpoint))
    elif fmt == OutputFormat.PLAIN:
        for line in _plain_lines(endpoint):
            print_data(line)
    else:
        print_tree(_endpoint_tree(endpoint, target))


def _sections(endpoint: ParsedEndpoint) -> list[tuple[str, list[SchemaField]]]:
    response_label = f"Response {endpoint.response_status or ''}".rstrip()
    return [
        ("Parameters", endpoint.parameters),
        (f"Request body ({endpoint.request_schema_name})", endpoint.request_fields),
        (f"{response_label} ({endpoint.response_schema_name})", endpoint.response_fields),
    ]


def _plain_lines(endpoint: ParsedEndpoint) -> list[str]:
    lines = [f"{endpoint.method}\t{endpoint.url or ''}"]
    for label, value in (
        ("operationId", endpoint.operation_id),
        ("tag", endpoint.tag),
        ("summary", endpoint.summary),
    ):
        if value:
            lines.append(f"{label}\t{value}")
    for title, fields in _sections(endpoint):
        if not fields:
            continue
        lines.append(f"# {title}")
        lines.extend(_plain_field_lines(fields))
    return lines


def _plain_field_lines(fields: list[SchemaField]) -> list[str]:
    lines: list[str] = []
    for field in fields:
        lines.append(
            "\t".join(
                [
                    field.display_name,
                    field.display_type,
                    "required" if field.required else "",
                    field.description or "",
                ]
            )
        )
        lines.extend(_plain_field_lines(field.children))
    return lines


def _endpoint_tree(endpoint: ParsedEndpoint, target: str) -> Tree:
    title = Text.assemble((endpoint.method, "bold magenta"), " ", endpoint.url or target)
    if endpoint.deprecated:
        title.append(" (deprecated)", style="yellow")
    tree = Tree(title)
    if endpoint.summary:
        tree.add(Text(endpoint.summary, style="italic"))
    if endpoint.operation_id:
        tree.add(Text.assemble(("operationId: ", "dim"), endpoint.operation_id))
    for label, fields in _sections(endpoint):
        if not fields:
            continue
        branch = tree.add(Text(label, style="bold cyan"))
        _add_fields(branch, fields)
    return tree


def _add_fields(branch: Tree, fields: list[SchemaField]) -> None:
    for field in fields:
        label = Text(field.name, style="bold")
        if field.display_type:
            label.append(f" {field.display_type}", style="green")
        if field.format:
            label.append(f" ({field.format})", style="dim")
        if field.required:
            label.append(" *", style="red")
        if field.ref_name:
            label.append(f" -> {field.ref_name}", style="blue")
        if field.description:
            label.append(f"  {field.description}", style="dim")
        node = branch.add(label)
        _add_fields(node, field.children)
