"""Full parse of one endpoint: operation metadata plus resolved field trees.

This is the expensive tier of the two-tier design. Where
:mod:`splitspec.parser.indexer` only scans path-item files for method keys,
:func:`parse_endpoint` reads one path-item file, extracts the requested
operation and resolves its request body, success response and parameters
into :class:`~splitspec.models.SchemaField` trees.

Nothing is cached between calls. Every call re-reads the files involved, so
edits on disk show up in the next parse and concurrent calls never share
state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from splitspec.exceptions import (
    DocumentNotFoundError,
    EndpointFileNotFoundError,
    MalformedDocumentError,
)
from splitspec.models import (
    UNKNOWN_SCHEMA_NAME,
    EndpointInfo,
    OperationView,
    ParsedEndpoint,
    ResolvedLocation,
    ResolverConfig,
    SchemaField,
)
from splitspec.parser.indexer import path_refs
from splitspec.parser.loader import FileSystemStore, hint_for
from splitspec.parser.operation import operation_from_document
from splitspec.parser.resolver import ReferenceResolver, ref_short_name
from splitspec.parser.schema_tree import SchemaTreeBuilder

logger = logging.getLogger(__name__)


def parse_endpoint(
    project_root_path: str,
    endpoint_relative_path: str,
    method: str,
    store: FileSystemStore,
    config: Optional[ResolverConfig] = None,
) -> ParsedEndpoint:
    """Parse one HTTP method of one path-item file.

    Args:
        project_root_path: Root spec path, relative to the workspace root
            (e.g. ``public/openapi.yaml``).
        endpoint_relative_path: Path-item file relative to the root spec's
            directory, as written in its ``paths`` section. A leading ``./``
            is allowed.
        method: HTTP method, any case.
        store: Document store for all reads.
        config: Depth ceiling and indentation step for the field trees.

    Returns:
        A freshly built :class:`~splitspec.models.ParsedEndpoint`.

    Raises:
        DocumentNotFoundError: If the root spec does not exist.
        EndpointFileNotFoundError: If the path-item file does not exist.
        MalformedDocumentError: If the path-item file is not a mapping.
        MethodNotFoundError: If the file has no operation for *method*.

    Example::

        store = FileSystemStore("specs")
        endpoint = parse_endpoint("public/openapi.yaml", "paths/users.yaml", "get", store)
        print(endpoint.summary, [f.name for f in endpoint.response_fields])
    """
    root_file = store.absolute(project_root_path)
    if not root_file.is_file():
        raise DocumentNotFoundError(f"OpenAPI file not found: {project_root_path}")
    api_root_dir = root_file.parent

    clean_path = endpoint_relative_path.strip()
    if clean_path.startswith("./"):
        clean_path = clean_path[2:]
    clean_path = clean_path.partition("#")[0]
    endpoint_file = store.resolve_relative(api_root_dir, clean_path)
    if endpoint_file is None:
        full_path = api_root_dir / clean_path
        raise EndpointFileNotFoundError(
            f"Endpoint file not found: {clean_path} (full path: {full_path})"
        )

    logger.debug("Parsing %s %s", method.upper(), endpoint_file)
    content = store.read_text(endpoint_file)
    document = store.parse_mapping(content, hint=hint_for(endpoint_file) or "yaml")
    view = operation_from_document(document, method)

    resolver = ReferenceResolver(store)
    builder = SchemaTreeBuilder(resolver, config)
    context = ResolvedLocation(
        path=endpoint_file,
        base_dir=endpoint_file.parent,
        text=content,
        name=ref_short_name(endpoint_file.name),
        document=document,
    )

    request_name, request_fields = _schema_fields(
        builder, context, view.request_schema_ref, view.request_schema, "requestBody"
    )
    response_name, response_fields = _schema_fields(
        builder, context, view.response_schema_ref, view.response_schema, "responses"
    )

    result = ParsedEndpoint(
        method=view.method,
        url=_lookup_url(root_file, endpoint_file, store),
        operation_id=view.operation_id,
        tag=view.tag,
        summary=view.summary,
        description=view.description,
        deprecated=view.deprecated,
        request_body_required=view.request_body_required,
        request_fields=request_fields,
        response_fields=response_fields,
        parameters=_parameter_fields(builder, context, view),
        request_schema_name=request_name,
        response_schema_name=response_name,
        response_status=view.response_status,
    )
    logger.debug(
        "Parsed %s with %d request and %d response fields",
        result.method,
        len(result.request_fields),
        len(result.response_fields),
    )
    return result


def find_endpoint(index: list[EndpointInfo], target: str) -> Optional[EndpointInfo]:
    """Find an index entry by API path (``/users``) or by path-item file path."""
    for entry in index:
        if entry.api_path == target:
            return entry
    wanted = _normalise_ref(target)
    for entry in index:
        if _normalise_ref(entry.file_path) == wanted:
            return entry
    return None


def _normalise_ref(path: str) -> str:
    path = path.strip().partition("#")[0]
    while path.startswith("./"):
        path = path[2:]
    return path


def _schema_fields(
    builder: SchemaTreeBuilder,
    context: ResolvedLocation,
    ref: Optional[str],
    inline: Optional[dict[str, Any]],
    label: str,
) -> tuple[str, list[SchemaField]]:
    """Build the root fields for a request or response schema."""
    if ref:
        fields = builder.build_ref(ref, context.base_dir, 0, frozenset(), context=context)
        return ref_short_name(ref), fields
    if inline is not None:
        location = builder.resolver.inline(
            inline, context.path, label, document=context.document
        )
        return UNKNOWN_SCHEMA_NAME, builder.build(location)
    logger.debug("No %s schema in %s", label, context.path)
    return UNKNOWN_SCHEMA_NAME, []


def _parameter_fields(
    builder: SchemaTreeBuilder, context: ResolvedLocation, view: OperationView
) -> list[SchemaField]:
    """Turn operation parameters into depth-0 fields.

    ``$ref`` parameters are resolved through the same resolver as schemas;
    ones that cannot be resolved are left out.
    """
    fields: list[SchemaField] = []
    for param in view.parameters:
        param_context = context
        if isinstance(param.get("$ref"), str):
            location = builder.resolver.resolve(param["$ref"], context.base_dir, context)
            if location is None or location.schema_ is None:
                logger.debug("Parameter %s not resolved", param["$ref"])
                continue
            param, param_context = location.schema_, location

        name = param.get("name")
        if not isinstance(name, str):
            continue
        schema = param.get("schema") if isinstance(param.get("schema"), dict) else {}
        example = param.get("example", schema.get("example"))
        schema_ref = schema.get("$ref") if isinstance(schema.get("$ref"), str) else None
        items = schema.get("items") if isinstance(schema.get("items"), dict) else {}

        children: list[SchemaField] = []
        ref_name: Optional[str] = None
        nested_ref = schema_ref or (items.get("$ref") if isinstance(items.get("$ref"), str) else None)
        if nested_ref:
            ref_name = ref_short_name(nested_ref)
            children = builder.build_ref(
                nested_ref, param_context.base_dir, 1, frozenset(), context=param_context
            )

        fields.append(
            SchemaField(
                name=name,
                type=_optional_text(schema.get("type")),
                format=_optional_text(schema.get("format")),
                description=_optional_text(param.get("description")),
                example=_optional_text(example),
                required=param.get("required") is True or param.get("in") == "path",
                is_array=schema.get("type") == "array" or bool(items),
                depth=0,
                ref_name=ref_name,
                children=children,
            )
        )
    return fields


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _lookup_url(root_file: Path, endpoint_file: Path, store: FileSystemStore) -> Optional[str]:
    """Find the URL template whose ``paths`` entry points at *endpoint_file*."""
    try:
        root = store.parse_mapping(store.read_text(root_file), hint="yaml")
    except (DocumentNotFoundError, MalformedDocumentError) as exc:
        logger.debug("URL lookup skipped, root spec unusable: %s", exc)
        return None
    for api_path, ref in path_refs(root):
        target = store.resolve_relative(root_file.parent, ref.partition("#")[0])
        if target == endpoint_file:
            return api_path
    return None
