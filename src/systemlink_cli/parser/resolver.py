"""Resolve ``$ref`` JSON Reference pointers in Swagger documents.

Swagger models commonly use ``$ref`` pointers (e.g.
``{"$ref": "#/definitions/Tag"}`` or ``{"$ref": "#/parameters/Token"}``) to
avoid repetition. This module performs a recursive deep-copy traversal of the
document, replacing every ``$ref`` with the object it points to, so that the
compiler never has to follow a pointer itself.

Only **internal** references (those starting with ``#/``) are supported.
Resolution fails closed: a missing target, an external reference, or a
circular reference raises :class:`ValueError` rather than leaving a partially
resolved document behind. The compiler turns that into a
:class:`~systemlink_cli.exceptions.ParseError` for the document.

The single public function is :func:`resolve_refs`.
"""

from __future__ import annotations

import copy
from typing import Any


def resolve_refs(document: dict[str, Any]) -> dict[str, Any]:
    """Resolve all ``$ref`` pointers in *document*.

    Args:
        document: The decoded Swagger document.

    Returns:
        A **new** dictionary (deep copy) with every ``$ref`` replaced by its
        target. The input is not modified.

    Raises:
        ValueError: If a reference is external, points to a non-existent
            location, or is part of a reference cycle.

    Example::

        raw = load_document(content)
        resolved = resolve_refs(raw)
        # resolved["paths"]["/tags"]["post"]["parameters"][0]["schema"]
        # now holds the inlined definition instead of a $ref pointer.
    """
    root = copy.deepcopy(document)
    return _deep_resolve(root, root, frozenset())


def _resolve_ref(ref: str, root: dict[str, Any]) -> Any:
    """Look up a single ``#/...`` pointer in *root*.

    Handles RFC 6901 escaping (``~0`` for ``~``, ``~1`` for ``/``).
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        raise ValueError(
            f"External $ref not supported: {ref}. "
            "Only internal references (#/...) are handled."
        )

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise ValueError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise ValueError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise ValueError(
                f"Cannot resolve $ref '{ref}': "
                f"cannot navigate into {type(current).__name__}"
            )

    return current


def _deep_resolve(obj: Any, root: dict[str, Any], stack: frozenset[str]) -> Any:
    """Recursively resolve all ``$ref`` pointers within *obj*.

    ``stack`` holds the references currently being expanded on this branch.
    Meeting one of them again means the document refers to itself, which
    cannot be inlined, so resolution stops with an error. Sibling branches
    get their own copy of the set, so a definition used twice side by side is
    not mistaken for a cycle.
    """
    if isinstance(obj, dict):
        if "$ref" in obj:
            ref = obj["$ref"]
            if ref in stack:
                raise ValueError(f"Circular $ref '{ref}'")
            target = _resolve_ref(ref, root)
            return _deep_resolve(target, root, stack | {ref})

        return {key: _deep_resolve(value, root, stack) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_deep_resolve(item, root, stack) for item in obj]

    return obj
