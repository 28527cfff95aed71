"""Canonical Pydantic models shared across all splitspec modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ResolverConfig`, :class:`OutputConfig` and :class:`GlobalConfig`.

**Parser models** -- produced by the :mod:`splitspec.parser` sub-package:
    :class:`HTTPMethod`, :class:`ApiProject`, :class:`EndpointInfo`,
    :class:`SchemaField`, :class:`OperationView`, :class:`ResolvedLocation`
    and :class:`ParsedEndpoint`.

Index and project entries, field trees and parsed endpoints are frozen. The
``edited_*`` overlays exist for UI layers only and are set on copies.
"""

from __future__ import annotations

import enum
import re
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_SCHEMA_NAME = "Unknown"
"""Schema name reported when an operation body has no ``$ref``."""

_YAML_SUFFIX = re.compile(r"\.ya?ml$")


# --- Configuration ---


class ResolverConfig(BaseModel):
    """Limits and layout assumptions used while building field trees."""

    max_depth: int = Field(
        default=10,
        ge=0,
        description="Deepest $ref nesting level that is still expanded",
    )
    indent_step: int = Field(
        default=2,
        ge=1,
        description="Columns between a 'properties:' key and its property names",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/splitspec/config.json``.

    Loaded and saved by :func:`~splitspec.config.load_global_config` and
    :func:`~splitspec.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~splitspec.config.resolve_config`
    for the full precedence chain.
    """

    workspace: Optional[str] = Field(
        default=None, description="Workspace root holding redocly.yaml files"
    )
    default_project: Optional[str] = None
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Index ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods the indexer looks for, in canonical order.

    ``trace`` is a valid OpenAPI operation key but is not part of the indexed
    set; :func:`~splitspec.parser.operation.extract_operation` still accepts
    it when asked explicitly.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"
    HEAD = "head"
    OPTIONS = "options"


class ApiProject(BaseModel):
    """An API declared under ``apis:`` in a ``redocly.yaml`` file."""

    model_config = ConfigDict(frozen=True)

    name: str
    root_path: str = Field(
        description="Root spec path relative to the workspace root"
    )


class EndpointInfo(BaseModel):
    """Lightweight index entry: one URL template and its path-item file.

    Produced without parsing any schema. ``methods`` lists the canonical HTTP
    methods found at the start of a line in the file; it is empty when the
    file declares none or could not be read.
    """

    model_config = ConfigDict(frozen=True)

    api_path: str
    file_path: str = Field(description="Path-item $ref exactly as written in the root spec")
    methods: list[str] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        """File name of the path-item file without its YAML extension."""
        return _YAML_SUFFIX.sub("", self.file_path.rsplit("/", 1)[-1])


# --- Field tree ---


class SchemaField(BaseModel):
    """A node in a resolved request/response schema tree.

    Children appear in the order their property names appear in the source
    document. ``depth`` is 0 for the roots of a tree and grows by one per
    nesting level, whether that level came from a ``$ref`` or an inline
    ``properties:`` block.

    Nodes are frozen; UI layers set the ``edited_*`` overlays with
    ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    example: Optional[str] = None
    required: bool = False
    is_array: bool = False
    depth: int = Field(default=0, ge=0)
    ref_name: Optional[str] = Field(
        default=None, description="Short name of the $ref that produced the children"
    )
    children: list[SchemaField] = Field(default_factory=list)
    # UI-only overlays, never written back to the spec files
    edited_description: Optional[str] = None
    edited_example: Optional[str] = None

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def display_name(self) -> str:
        """Name indented by two spaces per depth level."""
        return "  " * self.depth + self.name

    @property
    def display_type(self) -> str:
        """Type name, suffixed with ``[]`` for arrays, or ``""`` when unknown."""
        if self.type is None:
            return ""
        if self.is_array:
            return f"{self.type}[]"
        return self.type


# --- Parsing ---


class OperationView(BaseModel):
    """The parts of one operation object that the endpoint parser consumes."""

    method: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tag: Optional[str] = None
    deprecated: bool = False
    request_body_required: bool = False
    request_schema_ref: Optional[str] = None
    request_schema: Optional[dict[str, Any]] = Field(
        default=None, description="Inline request schema when there is no $ref"
    )
    response_status: Optional[str] = None
    response_schema_ref: Optional[str] = None
    response_schema: Optional[dict[str, Any]] = Field(
        default=None, description="Inline response schema when there is no $ref"
    )
    parameters: list[dict[str, Any]] = Field(default_factory=list)


class ResolvedLocation(BaseModel):
    """A concrete schema location produced by the reference resolver.

    ``text`` is the raw file content for whole-file targets, which the
    properties scanner walks by indentation. It is ``None`` for pointer
    targets, anchors and inline schemas; those are read from ``schema_``
    directly. ``document`` is the structural parse of the whole file (used
    for same-document anchors) and ``schema_`` the pointed-to mapping; both
    are ``None`` when the file does not parse.
    """

    model_config = ConfigDict(populate_by_name=True)

    path: Path
    pointer: str = ""
    base_dir: Path
    text: Optional[str] = None
    name: str
    document: Optional[dict[str, Any]] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")

    @property
    def key(self) -> str:
        """Identity used by the cycle guard."""
        return f"{self.path}#{self.pointer}"


class ParsedEndpoint(BaseModel):
    """Fully parsed view of one HTTP method of one path-item file.

    Built fresh on every call to
    :func:`~splitspec.parser.endpoint.parse_endpoint`; nothing is cached, so
    two calls against unchanged files produce equal instances.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    url: Optional[str] = None
    operation_id: Optional[str] = None
    tag: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False
    request_body_required: bool = False
    request_fields: list[SchemaField] = Field(default_factory=list)
    response_fields: list[SchemaField] = Field(default_factory=list)
    parameters: list[SchemaField] = Field(default_factory=list)
    request_schema_name: Optional[str] = None
    response_schema_name: Optional[str] = None
    response_status: Optional[str] = None
    # Reserved for caller annotation
    algorithm: Optional[str] = None
    notes: Optional[str] = None
