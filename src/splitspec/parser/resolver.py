"""Resolve ``$ref`` strings in split OpenAPI documents to concrete locations.

Three ``$ref`` forms are supported:

* a relative file path -- ``../schemas/Pet.yaml``;
* a relative file path with an in-document pointer --
  ``../schemas/Pet.yaml#/components/schemas/Pet``;
* a same-document anchor -- ``#/components/schemas/Pet``, resolved against the
  mapping of the document that contains the reference.

Resolution is a pure function of the reference, the directory it appears in
and whatever is on disk at that moment: nothing is cached. A target that does
not exist yields ``None`` (unresolved) rather than an exception, because split
specs routinely point outside the part of the workspace being browsed.

The public pieces are :class:`ReferenceResolver`, :func:`ref_short_name` and
:func:`resolve_pointer`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

from splitspec.exceptions import DocumentNotFoundError, MalformedDocumentError
from splitspec.models import ResolvedLocation
from splitspec.parser.loader import FileSystemStore, hint_for

logger = logging.getLogger(__name__)

_YAML_SUFFIX = re.compile(r"\.ya?ml$")


def ref_short_name(ref: str) -> str:
    """Derive a display name from any ``$ref`` string.

    Strips a trailing ``.yaml``/``.yml`` extension, then keeps the text after
    the last ``/``.

    Example::

        ref_short_name("../schemas/Pet.yaml")                     # "Pet"
        ref_short_name("../schemas/Pet.yaml#/components/schemas/Pet")  # "Pet"
        ref_short_name("#/components/schemas/Pet")                # "Pet"
    """
    stripped = _YAML_SUFFIX.sub("", ref.strip())
    return stripped.rsplit("/", 1)[-1]


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Walk a JSON Pointer (``/a/b/0`` or ``#/a/b/0``) through *document*.

    Handles RFC 6901 escaping (``~0`` for ``~``, ``~1`` for ``/``). An empty
    pointer returns *document* itself.

    Raises:
        DocumentNotFoundError: If any segment does not exist, or the walk
            reaches a scalar before the pointer is exhausted.
    """
    path_str = pointer[1:] if pointer.startswith("#") else pointer
    if path_str in ("", "/"):
        return document

    current: Any = document
    for segment in path_str.lstrip("/").split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise DocumentNotFoundError(
                    f"Cannot resolve pointer '{pointer}': "
                    f"key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise DocumentNotFoundError(
                    f"Cannot resolve pointer '{pointer}': "
                    f"invalid array index '{segment}'"
                ) from exc
        else:
            raise DocumentNotFoundError(
                f"Cannot resolve pointer '{pointer}': "
                f"cannot navigate into {type(current).__name__}"
            )

    return current


class ReferenceResolver:
    """Turns ``$ref`` strings into :class:`~splitspec.models.ResolvedLocation` values.

    Args:
        store: Document store used for every file lookup and read.

    Example::

        resolver = ReferenceResolver(store)
        location = resolver.resolve("../schemas/Pet.yaml", store.absolute("paths"))
        if location is not None:
            print(location.name, location.path)
    """

    def __init__(self, store: FileSystemStore) -> None:
        self._store = store

    @property
    def store(self) -> FileSystemStore:
        return self._store

    def resolve(
        self,
        ref: str,
        current_dir: Path,
        context: Optional[ResolvedLocation] = None,
    ) -> Optional[ResolvedLocation]:
        """Resolve *ref* as seen from a document in *current_dir*.

        Args:
            ref: The ``$ref`` value, quotes already removed.
            current_dir: Directory of the document containing the reference.
            context: The document containing the reference, needed only for
                same-document anchors.

        Returns:
            The resolved location, or ``None`` when the target file is absent
            or unreadable, or an anchor cannot be followed.
        """
        ref = ref.strip()
        if not ref:
            return None
        if ref.startswith("#"):
            return self._resolve_anchor(ref, context)

        file_part, _, pointer = ref.partition("#")
        path = self._store.resolve_relative(current_dir, file_part)
        if path is None:
            logger.debug("Unresolved $ref %s (from %s)", ref, current_dir)
            return None
        try:
            text = self._store.read_text(path)
        except DocumentNotFoundError as exc:
            logger.debug("Unreadable $ref target %s: %s", ref, exc)
            return None

        try:
            document: Optional[dict[str, Any]] = self._store.parse_mapping(
                text, hint=hint_for(path)
            )
        except MalformedDocumentError:
            # Layout scanning still works on text that is not strict YAML
            logger.debug("Schema file %s is not a structured mapping", path)
            document = None

        schema = document
        if pointer and document is not None:
            try:
                target = resolve_pointer(document, pointer)
            except DocumentNotFoundError:
                logger.debug("Pointer %s not in %s, using whole file", pointer, path)
            else:
                if isinstance(target, dict):
                    return ResolvedLocation(
                        path=path,
                        pointer=pointer,
                        base_dir=path.parent,
                        text=None,
                        name=ref_short_name(ref),
                        document=document,
                        schema=target,
                    )

        return ResolvedLocation(
            path=path,
            pointer="",
            base_dir=path.parent,
            text=text,
            name=ref_short_name(ref),
            document=document,
            schema=schema,
        )

    def inline(
        self,
        schema: dict[str, Any],
        origin: Path,
        name: str,
        document: Optional[dict[str, Any]] = None,
    ) -> ResolvedLocation:
        """Wrap an inline schema mapping found in the document at *origin*.

        Nested relative ``$ref`` values inside the schema are resolved
        against *origin*'s directory, and anchors against *document*.
        """
        return ResolvedLocation(
            path=origin,
            pointer=f"/{name}",
            base_dir=origin.parent,
            text=None,
            name=name,
            document=document,
            schema=schema,
        )

    def _resolve_anchor(
        self, ref: str, context: Optional[ResolvedLocation]
    ) -> Optional[ResolvedLocation]:
        if context is None or context.document is None:
            logger.debug("Anchor %s has no enclosing document to resolve against", ref)
            return None
        try:
            target = resolve_pointer(context.document, ref)
        except DocumentNotFoundError as exc:
            logger.debug("Unresolved anchor %s in %s: %s", ref, context.path, exc)
            return None
        if not isinstance(target, dict):
            logger.debug("Anchor %s in %s is not a mapping", ref, context.path)
            return None
        return ResolvedLocation(
            path=context.path,
            pointer=ref[1:],
            base_dir=context.base_dir,
            text=None,
            name=ref_short_name(ref),
            document=context.document,
            schema=target,
        )
