"""Build bounded, cycle-safe field trees from resolved schema documents.

:class:`SchemaTreeBuilder` combines the two halves of schema reading:

* layout -- for whole files, :func:`~splitspec.parser.scanner.scan_properties`
  finds property names, attributes and nested ``$ref`` values by
  indentation, so the file's own indentation step applies;
* structure -- pointer targets, anchors and inline schemas only exist as
  parsed mappings and are read with
  :func:`~splitspec.parser.scanner.mapping_properties`. The ``required``
  list always comes from the mapping that owns the ``properties`` block,
  with a text scan as fallback for documents that do not parse.

Every nested ``$ref`` goes back through the
:class:`~splitspec.parser.resolver.ReferenceResolver`. Two guards bound the
recursion, both taken from :class:`~splitspec.models.ResolverConfig`:

* a depth ceiling (``max_depth``, 10 by default) -- a ``$ref`` that would be
  expanded deeper than the ceiling produces no children;
* a per-path visited set of resolved locations -- a ``$ref`` whose target is
  already being expanded further up the same chain produces no children.

The visited set is an immutable ``frozenset`` extended for each branch, so a
schema referenced by two sibling properties is expanded under both. Neither
guard raises; each truncation is logged at debug level.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from splitspec.models import ResolvedLocation, ResolverConfig, SchemaField
from splitspec.parser.resolver import ReferenceResolver, ref_short_name
from splitspec.parser.scanner import (
    RawProperty,
    mapping_properties,
    mapping_required,
    scan_properties,
    scan_required,
)

logger = logging.getLogger(__name__)


class SchemaTreeBuilder:
    """Expands schema documents into ordered :class:`~splitspec.models.SchemaField` trees.

    Args:
        resolver: Resolver used for every nested ``$ref``.
        config: Depth ceiling and indentation step.

    Example::

        builder = SchemaTreeBuilder(ReferenceResolver(store))
        fields = builder.build_ref("../schemas/Order.yaml", endpoint_dir)
        for field in fields:
            print(field.display_name, field.display_type)
    """

    def __init__(
        self, resolver: ReferenceResolver, config: Optional[ResolverConfig] = None
    ) -> None:
        self._resolver = resolver
        self._config = config or ResolverConfig()

    @property
    def resolver(self) -> ReferenceResolver:
        return self._resolver

    @property
    def config(self) -> ResolverConfig:
        return self._config

    def build_ref(
        self,
        ref: str,
        current_dir: Path,
        depth: int = 0,
        visited: frozenset[str] = frozenset(),
        context: Optional[ResolvedLocation] = None,
    ) -> list[SchemaField]:
        """Resolve *ref* and build the fields of its target at *depth*.

        Returns an empty list, without raising, when the depth ceiling is
        exceeded, the target cannot be resolved, or the target is already on
        the current chain.
        """
        if depth > self._config.max_depth:
            logger.debug(
                "Depth limit %d reached at %s, not expanding",
                self._config.max_depth,
                ref,
            )
            return []

        location = self._resolver.resolve(ref, current_dir, context)
        if location is None:
            logger.debug("No children for unresolved $ref %s", ref)
            return []
        if location.key in visited:
            logger.debug("Circular $ref %s -> %s, not expanding", ref, location.key)
            return []
        return self.build(location, depth, visited)

    def build(
        self,
        location: ResolvedLocation,
        depth: int = 0,
        visited: frozenset[str] = frozenset(),
    ) -> list[SchemaField]:
        """Build the fields declared under the ``properties`` of *location*.

        Args:
            location: Resolved schema document.
            depth: Depth assigned to the returned fields.
            visited: Locations already expanded on the path to this one.

        Returns:
            Fields in document order; empty when the schema has no
            ``properties`` block.
        """
        visited = visited | {location.key}
        if location.text is None:
            raw = mapping_properties(location.schema_ or {})
        else:
            raw = scan_properties(location.text, self._config.indent_step)
        if not raw:
            logger.debug("No properties in %s", location.key)
            return []

        required = set(self._required_names(location))
        logger.debug(
            "Schema %s: %d properties at depth %d", location.name, len(raw), depth
        )
        return [
            self._to_field(prop, required, depth, location, visited) for prop in raw
        ]

    def _to_field(
        self,
        prop: RawProperty,
        required: set[str],
        depth: int,
        location: ResolvedLocation,
        visited: frozenset[str],
    ) -> SchemaField:
        children: list[SchemaField] = []
        ref_name: Optional[str] = None

        if prop.ref:
            ref_name = ref_short_name(prop.ref)
            children = self.build_ref(
                prop.ref, location.base_dir, depth + 1, visited, context=location
            )
        elif prop.properties:
            nested_required = set(prop.required)
            children = [
                self._to_field(child, nested_required, depth + 1, location, visited)
                for child in prop.properties
            ]

        return SchemaField(
            name=prop.name,
            type=prop.type,
            format=prop.format,
            description=prop.description,
            example=prop.example,
            required=prop.name in required,
            is_array=prop.is_array,
            depth=depth,
            ref_name=ref_name,
            children=children,
        )

    @staticmethod
    def _required_names(location: ResolvedLocation) -> list[str]:
        if location.schema_ is not None:
            return mapping_required(location.schema_)
        return scan_required(location.text or "")
