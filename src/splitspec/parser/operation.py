"""Extract one operation from a path-item document.

A path-item file in a split spec maps HTTP methods to operation objects::

    get:
      tags: [Users]
      summary: List users
      operationId: listUsers
      responses:
        '200':
          content:
            application/json:
              schema:
                $ref: ../schemas/UserList.yaml

:func:`extract_operation` parses the file structurally, looks the method up
among the top-level keys (so a ``get:`` nested somewhere else can never be
mistaken for the operation) and returns an
:class:`~splitspec.models.OperationView` with the metadata and the two schema
pointers the endpoint parser needs. Request and response schemas are found
the same way: ``content`` -> media type -> ``schema``, where the schema is
either a ``$ref`` or an inline mapping.

Missing keys below the method never raise; they simply leave the matching
view attribute empty.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from splitspec.exceptions import MalformedDocumentError, MethodNotFoundError
from splitspec.models import OperationView
from splitspec.parser.loader import parse_mapping

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"

_OPERATION_KEYS = frozenset(
    {"get", "post", "put", "delete", "patch", "head", "options", "trace"}
)
_SUCCESS_RANGE = re.compile(r"^2[0-9xX]{2}$")


def extract_operation(content: str, method: str, hint: str = "yaml") -> OperationView:
    """Parse *content* and extract the operation for *method*.

    Args:
        content: Raw text of a path-item file.
        method: HTTP method, any case.
        hint: Format hint passed to :func:`~splitspec.parser.loader.parse_mapping`.

    Returns:
        The extracted :class:`~splitspec.models.OperationView`.

    Raises:
        MalformedDocumentError: If *content* is not a YAML/JSON mapping.
        MethodNotFoundError: If the mapping has no key for *method*.
    """
    document = parse_mapping(content, hint=hint)
    return operation_from_document(document, method)


def operation_from_document(document: dict[str, Any], method: str) -> OperationView:
    """Extract the operation for *method* from an already parsed path item.

    Path-level ``parameters`` are merged into the operation's own list, the
    operation winning for parameters that share ``name`` and ``in``.

    Raises:
        MethodNotFoundError: If the mapping has no key for *method*.
        MalformedDocumentError: If the method's value is not a mapping.
    """
    key = _find_method_key(document, method)
    if key is None:
        raise MethodNotFoundError(f"Method {method.lower()} not found in file")

    operation = document[key]
    if operation is None:
        operation = {}
    if not isinstance(operation, dict):
        raise MalformedDocumentError(
            f"Operation '{key}' must be a mapping (got {type(operation).__name__})"
        )

    view = OperationView(
        method=key.upper(),
        operation_id=_text(operation.get("operationId")),
        summary=_text(operation.get("summary")),
        description=_text(operation.get("description")),
        tag=_first_tag(operation.get("tags")),
        deprecated=operation.get("deprecated") is True,
        parameters=_merge_parameters(
            _parameter_list(document.get("parameters")),
            _parameter_list(operation.get("parameters")),
        ),
    )

    request_body = operation.get("requestBody")
    if isinstance(request_body, dict):
        if "$ref" in request_body:
            logger.debug("requestBody of %s is a $ref, not followed", key)
        view.request_body_required = request_body.get("required") is True
        view.request_schema_ref, view.request_schema = _split_schema(
            _media_schema(request_body.get("content"))
        )

    status, response = _success_response(operation.get("responses"))
    if response is not None:
        view.response_status = status
        view.response_schema_ref, view.response_schema = _split_schema(
            _media_schema(response.get("content"))
        )

    return view


def _find_method_key(document: dict[str, Any], method: str) -> Optional[str]:
    wanted = method.strip().lower()
    if wanted not in _OPERATION_KEYS:
        return None
    for key in document:
        if isinstance(key, str) and key.lower() == wanted:
            return key
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


def _first_tag(tags: Any) -> Optional[str]:
    if isinstance(tags, list) and tags:
        return _text(tags[0])
    return None


def _media_schema(content: Any) -> Any:
    """Return the schema of the JSON media type, else of the first media type with one."""
    if not isinstance(content, dict):
        return None
    media = content.get(JSON_MEDIA_TYPE)
    if isinstance(media, dict) and "schema" in media:
        return media["schema"]
    for media in content.values():
        if isinstance(media, dict) and "schema" in media:
            return media["schema"]
    return None


def _split_schema(schema: Any) -> tuple[Optional[str], Optional[dict[str, Any]]]:
    """Split a schema into ``($ref, None)`` or ``(None, inline_mapping)``."""
    if not isinstance(schema, dict):
        return None, None
    ref = schema.get("$ref")
    if isinstance(ref, str):
        return ref.strip(), None
    return None, schema


def _success_response(responses: Any) -> tuple[Optional[str], Optional[dict[str, Any]]]:
    """Pick the first 2xx response in document order, falling back to ``default``.

    Responses without a schema are skipped so that a bare ``204`` listed
    before a ``200`` does not hide the body schema.
    """
    if not isinstance(responses, dict):
        return None, None

    fallback: tuple[Optional[str], Optional[dict[str, Any]]] = (None, None)
    for code, response in responses.items():
        status = str(code)
        if not isinstance(response, dict):
            continue
        if "$ref" in response:
            logger.debug("Response %s is a $ref, not followed", status)
            continue
        if _SUCCESS_RANGE.match(status):
            if _media_schema(response.get("content")) is not None:
                return status, response
            if fallback[0] is None:
                fallback = (status, response)
        elif status == "default" and fallback[0] is None:
            fallback = (status, response)
    return fallback


def _parameter_list(params: Any) -> list[dict[str, Any]]:
    if not isinstance(params, list):
        return []
    return [param for param in params if isinstance(param, dict)]


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field). ``$ref`` parameters never collide.
    """
    op_keys = {
        (param.get("name"), param.get("in"))
        for param in op_params
        if "$ref" not in param
    }
    merged = [
        param
        for param in path_params
        if "$ref" in param or (param.get("name"), param.get("in")) not in op_keys
    ]
    merged.extend(op_params)
    return merged
