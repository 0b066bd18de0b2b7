"""Decode raw Swagger documents into Python dictionaries.

Swagger models are shipped as files in the ``models`` directory and may be
written in YAML or JSON. Since every JSON document is also valid YAML, a
single :func:`yaml.safe_load` pass handles both formats.

The two public functions are:

* :func:`load_document` -- decode the bytes of a
  :class:`~systemlink_cli.models.SpecDocument` into a mapping.
* :func:`validate_swagger_version` -- reject documents that declare an
  unsupported version (OpenAPI 3.x or Swagger other than 2.0).

Failures are reported as plain :class:`ValueError` causes; the compiler wraps
them into :class:`~systemlink_cli.exceptions.ParseError` together with the
document name.
"""

from __future__ import annotations

from typing import Any

import yaml


def load_document(content: bytes) -> dict[str, Any]:
    """Parse *content* as YAML (or JSON) and return the top-level mapping.

    Args:
        content: The raw document bytes, UTF-8 encoded.

    Returns:
        The decoded document.

    Raises:
        ValueError: If the content is not valid YAML/JSON, or if its top-level
            value is not a mapping.
    """
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"Model is not valid UTF-8: {exc}") from exc

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML/JSON: {exc}") from exc

    if not isinstance(document, dict):
        kind = "empty document" if document is None else type(document).__name__
        raise ValueError(f"Model must be a JSON/YAML object (got {kind})")

    return document


def validate_swagger_version(document: dict[str, Any]) -> str:
    """Validate the document's declared version and return it.

    Documents that omit the ``swagger`` field are treated as Swagger 2.0,
    which is how hand-written service models are usually shipped.

    Args:
        document: The decoded Swagger document.

    Returns:
        The version string, ``"2.0"``.

    Raises:
        ValueError: If the document is OpenAPI 3.x or declares a Swagger
            version other than 2.0.
    """
    if "openapi" in document:
        raise ValueError(
            f"OpenAPI {document['openapi']} is not supported. "
            "Only Swagger 2.0 models are handled."
        )

    version = str(document.get("swagger", "2.0"))
    if version != "2.0":
        raise ValueError(f"Unsupported Swagger version: {version}")
    return version
