"""JSON-ready encoding of parser results for UI consumers.

Web and editor front-ends render field trees directly, so the encoding is
flat and forgiving: camelCase keys, optional strings as ``""`` instead of
``null``, and a ``children`` array only on fields that have children.
Escaping of quotes, backslashes and control characters is left to the
:mod:`json` encoder in :func:`dumps`.

Example::

    >>> field_to_wire(SchemaField(name="id", type="integer", required=True))
    {'name': 'id', 'type': 'integer', 'description': '', 'format': '',
     'example': '', 'required': True, 'depth': 0, 'hasChildren': False}
"""

from __future__ import annotations

import json
from typing import Any, Optional

from splitspec.models import ApiProject, EndpointInfo, ParsedEndpoint, SchemaField


def _text(value: Optional[str]) -> str:
    return value if value is not None else ""


def field_to_wire(field: SchemaField) -> dict[str, Any]:
    """Encode one field and, recursively, its children."""
    data: dict[str, Any] = {
        "name": field.name,
        "type": _text(field.type),
        "description": _text(field.description),
        "format": _text(field.format),
        "example": _text(field.example),
        "required": field.required,
        "depth": field.depth,
        "hasChildren": field.has_children,
    }
    if field.is_array:
        data["isArray"] = True
    if field.ref_name:
        data["refName"] = field.ref_name
    if field.has_children:
        data["children"] = [field_to_wire(child) for child in field.children]
    return data


def endpoint_to_wire(endpoint: ParsedEndpoint) -> dict[str, Any]:
    """Encode a parsed endpoint with its request, response and parameter trees."""
    return {
        "method": endpoint.method,
        "url": _text(endpoint.url),
        "operationId": _text(endpoint.operation_id),
        "tag": _text(endpoint.tag),
        "summary": _text(endpoint.summary),
        "requestBodyRequired": endpoint.request_body_required,
        "requestSchemaName": _text(endpoint.request_schema_name),
        "requestFields": [field_to_wire(f) for f in endpoint.request_fields],
        "responseFields": [field_to_wire(f) for f in endpoint.response_fields],
        "parameters": [field_to_wire(f) for f in endpoint.parameters],
    }


def endpoint_info_to_wire(entry: EndpointInfo) -> dict[str, Any]:
    return {
        "apiPath": entry.api_path,
        "filePath": entry.file_path,
        "displayName": entry.display_name,
        "methods": list(entry.methods),
    }


def project_to_wire(project: ApiProject) -> dict[str, Any]:
    return {"name": project.name, "rootPath": project.root_path}


def dumps(data: Any) -> str:
    """Serialise wire data as indented JSON."""
    return json.dumps(data, indent=2, ensure_ascii=False)
