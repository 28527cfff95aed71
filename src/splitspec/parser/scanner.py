"""Indentation-driven scanner for ``properties:`` blocks.

Schema files in split specs are written by hand and vary a lot in style, so
property discovery works on physical layout instead of a strict YAML parse:

1. The first ``properties:`` line fixes the block column ``P``.
2. Lines at exactly ``P + step`` that look like ``name:`` start a property.
3. Lines at ``P + 2*step`` are that property's attributes (``type``,
   ``format``, ``description``, ``example``, ``$ref``, ``items``, nested
   ``properties`` and ``required``). A ``$ref`` anywhere deeper, such as under
   ``items:`` or in an ``allOf`` list item, also counts; the first one wins.
4. The block ends at the first non-blank, non-comment line indented ``<= P``.

Flow-style values (``id: {type: integer}``) and block scalars
(``description: >-``) are understood; anything else that does not fit is
skipped rather than reported. Values are taken verbatim apart from one layer
of matching quotes on ``description`` and ``example``.

Schemas that only exist as parsed mappings (pointer targets, anchors and
inline bodies) go through :func:`mapping_properties` and
:func:`mapping_required` instead, which find the same first ``properties``
block structurally.

This module knows nothing about files or ``$ref`` resolution. It returns
:class:`RawProperty` records that
:class:`~splitspec.parser.schema_tree.SchemaTreeBuilder` turns into fields.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

_PROPERTIES_LINE = re.compile(r"^properties\s*:(.*)$")
_PROPERTY_LINE = re.compile(r"""^(['"]?)([\w.$-]+)\1\s*:(.*)$""")
_ATTRIBUTE_LINE = re.compile(r"^(-\s+)?([\w$-]+)\s*:\s*(.*)$")
_REF_VALUE = re.compile(r"""^['"]?([^'"\s]+)['"]?""")
_BLOCK_SCALAR = re.compile(r"^([|>])([+-]?)\d*$")
_REQUIRED_BLOCK = re.compile(r"^[ \t]*required[ \t]*:[ \t]*\n((?:[ \t]*-[ \t]*\S+[^\n]*\n?)+)", re.MULTILINE)
_REQUIRED_FLOW = re.compile(r"^[ \t]*required[ \t]*:[ \t]*\[([^\]]*)\]", re.MULTILINE)
_LIST_ITEM = re.compile(r"^[ \t]*-[ \t]*(\S+)")

_SCALAR_ATTRIBUTES = ("type", "format")
_TEXT_ATTRIBUTES = ("description", "example")


@dataclass
class RawProperty:
    """One property as found in the text, before any ``$ref`` is followed.

    Attributes:
        name: Property key.
        type: ``type`` value as written.
        format: ``format`` value as written.
        description: Description with one layer of quotes removed.
        example: Example literal with one layer of quotes removed.
        ref: First ``$ref`` found for the property (quotes removed).
        is_array: ``type: array`` or an ``items:`` key was seen.
        required: ``required`` names of an inline nested object.
        properties: Inline nested properties, in document order.
    """

    name: str
    type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    example: Optional[str] = None
    ref: Optional[str] = None
    is_array: bool = False
    required: list[str] = field(default_factory=list)
    properties: list[RawProperty] = field(default_factory=list)


def strip_quotes(value: str) -> str:
    """Remove exactly one layer of matching single or double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def clean_ref(value: str) -> Optional[str]:
    """Return the reference target from a raw ``$ref`` value, without quotes."""
    match = _REF_VALUE.match(value.strip())
    return match.group(1) if match else None


def scan_properties(text: str, indent_step: int = 2) -> list[RawProperty]:
    """Scan the first ``properties:`` block of *text*.

    Args:
        text: Schema document text.
        indent_step: Columns between nesting levels.

    Returns:
        Properties in document order. Empty when there is no
        ``properties:`` key.
    """
    lines = text.splitlines()
    for index, line in enumerate(lines):
        stripped = line.strip()
        match = _PROPERTIES_LINE.match(stripped)
        if match is None:
            continue
        remainder = match.group(1).strip()
        if remainder and not remainder.startswith("#"):
            return _flow_properties(remainder)
        properties, _ = _scan_block(lines, index, _indent(line), indent_step)
        return properties
    return []


def find_properties_owner(node: Any) -> Optional[dict[str, Any]]:
    """Return the first mapping, in document order, that has a ``properties`` key.

    This is the structural counterpart of where :func:`scan_properties` finds
    its block in the text of the same document.
    """
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "properties":
                return node
            found = find_properties_owner(value)
            if found is not None:
                return found
    elif isinstance(node, list):
        for item in node:
            found = find_properties_owner(item)
            if found is not None:
                return found
    return None


def mapping_properties(schema: dict[str, Any]) -> list[RawProperty]:
    """Build properties from an already parsed schema mapping.

    Used for pointer targets, anchors and inline schemas, whose values are
    read as parsed instead of from re-rendered text.
    """
    owner = find_properties_owner(schema)
    if owner is None or not isinstance(owner["properties"], dict):
        return []
    return _mapping_properties(owner["properties"])


def mapping_required(schema: dict[str, Any]) -> list[str]:
    """Return the ``required`` names beside the first ``properties`` block."""
    owner = find_properties_owner(schema)
    if owner is None:
        return []
    required = owner.get("required")
    if not isinstance(required, list):
        return []
    return [str(name) for name in required]


def scan_required(text: str) -> list[str]:
    """Collect names from the first ``required:`` list found in *text*.

    Both block lists (``- id`` lines) and flow lists (``[id, name]``) are
    recognised. Used when the document cannot be parsed structurally.
    """
    block = _REQUIRED_BLOCK.search(text)
    flow = _REQUIRED_FLOW.search(text)
    if block is not None and (flow is None or block.start() < flow.start()):
        return [
            strip_quotes(m.group(1))
            for m in (_LIST_ITEM.match(line) for line in block.group(1).splitlines())
            if m is not None
        ]
    if flow is not None:
        return _split_flow_list(flow.group(1))
    return []


# --------------------------------------------------------------------------- #
# Block scanning
# --------------------------------------------------------------------------- #


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _scan_block(
    lines: list[str], start: int, block_indent: int, step: int
) -> tuple[list[RawProperty], int]:
    """Scan property entries below the ``properties:`` line at *start*.

    Returns the properties and the index of the first line after the block.
    """
    name_indent = block_indent + step
    attr_indent = name_indent + step
    properties: list[RawProperty] = []
    current: Optional[RawProperty] = None

    i = start + 1
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            i += 1
            continue

        indent = _indent(line)
        if indent <= block_indent:
            break

        if indent == name_indent:
            match = _PROPERTY_LINE.match(stripped)
            if match is not None:
                current = RawProperty(name=match.group(2))
                properties.append(current)
                remainder = match.group(3).strip()
                if remainder and not remainder.startswith("#"):
                    _apply_flow(current, remainder)
            i += 1
            continue

        if current is None or indent < attr_indent:
            i += 1
            continue

        attribute = _ATTRIBUTE_LINE.match(stripped)
        if attribute is None:
            i += 1
            continue
        list_item, key, value = attribute.groups()
        value = value.strip()

        if key == "$ref":
            if current.ref is None:
                current.ref = clean_ref(value)
            i += 1
            continue

        if key == "properties" and not current.properties and current.ref is None:
            if value:
                current.properties = _flow_properties(value)
                i += 1
            else:
                current.properties, i = _scan_block(lines, i, indent, step)
            continue

        if key == "required" and not current.required and not list_item:
            if not value:
                current.required, i = _block_list(lines, i, indent)
                continue
            if value.startswith("["):
                current.required = _split_flow_list(value.strip("[]"))
            i += 1
            continue

        if indent != attr_indent or list_item:
            i += 1
            continue

        if key in _TEXT_ATTRIBUTES:
            block = _BLOCK_SCALAR.match(value)
            if block is not None:
                text, i = _block_scalar(lines, i, indent, block.group(1))
                setattr(current, key, text)
                continue
            setattr(current, key, strip_quotes(value))
        elif key in _SCALAR_ATTRIBUTES:
            setattr(current, key, value)
            if key == "type" and value == "array":
                current.is_array = True
        elif key == "items":
            current.is_array = True
            if value:
                _apply_flow_items(current, value)
        i += 1

    return properties, i


def _block_list(lines: list[str], start: int, key_indent: int) -> tuple[list[str], int]:
    """Collect ``- item`` lines following the key at *start*."""
    items: list[str] = []
    i = start + 1
    while i < len(lines):
        stripped = lines[i].strip()
        if not stripped or stripped.startswith("#"):
            i += 1
            continue
        if not stripped.startswith("-") or _indent(lines[i]) < key_indent:
            break
        items.append(strip_quotes(stripped[1:].strip()))
        i += 1
    return items, i


def _block_scalar(
    lines: list[str], start: int, key_indent: int, style: str
) -> tuple[str, int]:
    """Collect a ``|`` or ``>`` block scalar body following the key at *start*."""
    body: list[str] = []
    i = start + 1
    while i < len(lines):
        line = lines[i]
        if line.strip() and _indent(line) <= key_indent:
            break
        body.append(line)
        i += 1

    while body and not body[-1].strip():
        body.pop()
    content = [line for line in body if line.strip()]
    margin = min((_indent(line) for line in content), default=0)
    if style == "|":
        return "\n".join(line[margin:] for line in body), i
    return " ".join(line.strip() for line in content), i


def _split_flow_list(inner: str) -> list[str]:
    return [strip_quotes(item.strip()) for item in inner.split(",") if item.strip()]


# --------------------------------------------------------------------------- #
# Flow-style values
# --------------------------------------------------------------------------- #


def _load_flow(value: str) -> Any:
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return None


def _apply_flow(prop: RawProperty, value: str) -> None:
    """Apply a flow mapping written on the property line itself."""
    mapping = _load_flow(value)
    if isinstance(mapping, dict):
        _apply_mapping(prop, mapping)


def _apply_flow_items(prop: RawProperty, value: str) -> None:
    items = _load_flow(value)
    if isinstance(items, dict) and prop.ref is None and isinstance(items.get("$ref"), str):
        prop.ref = items["$ref"]


def _flow_properties(value: str) -> list[RawProperty]:
    mapping = _load_flow(value)
    if not isinstance(mapping, dict):
        return []
    return _mapping_properties(mapping)


def _mapping_properties(mapping: dict[str, Any]) -> list[RawProperty]:
    properties: list[RawProperty] = []
    for name, spec in mapping.items():
        prop = RawProperty(name=str(name))
        if isinstance(spec, dict):
            _apply_mapping(prop, spec)
        properties.append(prop)
    return properties


def _apply_mapping(prop: RawProperty, mapping: dict[str, Any]) -> None:
    """Copy attributes from an already-parsed schema mapping onto *prop*."""
    for key in _SCALAR_ATTRIBUTES + _TEXT_ATTRIBUTES:
        if mapping.get(key) is not None:
            setattr(prop, key, _scalar_text(mapping[key]))
    if prop.type == "array":
        prop.is_array = True

    if mapping.get("items") is not None:
        prop.is_array = True
    ref = _first_ref(mapping)
    if ref is not None:
        prop.ref = ref.strip()

    nested = mapping.get("properties")
    if isinstance(nested, dict) and prop.ref is None:
        prop.properties = _mapping_properties(nested)
    required = mapping.get("required")
    if isinstance(required, list):
        prop.required = [str(name) for name in required]


def _first_ref(node: Any) -> Optional[str]:
    """First ``$ref`` string under *node*, not looking inside nested ``properties``."""
    if isinstance(node, dict):
        if isinstance(node.get("$ref"), str):
            return node["$ref"]
        children = [value for key, value in node.items() if key != "properties"]
    elif isinstance(node, list):
        children = node
    else:
        return None
    for child in children:
        found = _first_ref(child)
        if found is not None:
            return found
    return None


def _scalar_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)
