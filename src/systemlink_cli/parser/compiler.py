"""Compile Swagger 2.0 documents into :class:`~systemlink_cli.models.Definition` models.

This module walks a fully ``$ref``-resolved Swagger document and builds the
normalized operation/parameter model the command line is generated from. The
public entry point is :meth:`SwaggerParser.parse`; internally it delegates to
private helpers that each handle one level of the Swagger structure:

* ``_parse_url`` -- the ``schemes`` and ``host`` fields.
* ``_parse_paths`` -- the ``paths`` object, iterating over every path and
  HTTP verb.
* ``_parse_parameters`` -- the parameters of one operation, flattening
  schema-bearing (body) parameters into one parameter per property.

Parameter merging follows the Swagger specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Protocol, Sequence

from systemlink_cli.exceptions import ParseError
from systemlink_cli.models import (
    Definition,
    Operation,
    Parameter,
    ParameterLocation,
    SpecDocument,
)
from systemlink_cli.parser.loader import load_document, validate_swagger_version
from systemlink_cli.parser.resolver import resolve_refs
from systemlink_cli.parser.types import (
    map_location,
    map_parameter_type,
    schema_type,
)

DEFAULT_SERVICE_URL = "https://api.systemlinkcloud.com"

# Order in which verbs of a path item are turned into operations.
_HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")

_MATCH_FIRST_CAP = re.compile(r"(.)([A-Z][a-z]+)")
_MATCH_ALL_CAP = re.compile(r"([a-z0-9])([A-Z])")


class Parser(Protocol):
    """Turns raw service models into compiled definitions."""

    def parse(self, documents: Sequence[SpecDocument]) -> list[Definition]: ...


class SwaggerParser:
    """Compile Swagger 2.0 documents (YAML or JSON) into definitions.

    Each document becomes one :class:`~systemlink_cli.models.Definition`
    named after the document. The first malformed document aborts the whole
    batch with a :class:`~systemlink_cli.exceptions.ParseError`.

    Example::

        docs = [SpecDocument(name="tags", content=path.read_bytes())]
        for definition in SwaggerParser().parse(docs):
            for operation in definition.operations:
                print(definition.name, operation.name)
    """

    def parse(self, documents: Sequence[SpecDocument]) -> list[Definition]:
        """Compile every document, returning definitions sorted by name.

        Raises:
            ParseError: If any document is malformed, declares an invalid
                type or location, or has unresolvable references.
        """
        definitions = [self._parse_document(doc) for doc in documents]
        return sorted(definitions, key=lambda d: d.name)

    def _parse_document(self, document: SpecDocument) -> Definition:
        try:
            raw = load_document(document.content)
            validate_swagger_version(raw)
            spec = resolve_refs(raw)
            operations = _parse_paths(spec.get("basePath") or "", spec.get("paths"))
        except ValueError as exc:
            raise ParseError(document.name, exc) from exc

        return Definition(
            name=document.name,
            url=_parse_url(spec),
            operations=sorted(operations, key=lambda o: o.name),
        )


# ---------------------------------------------------------------------------
# Document level
# ---------------------------------------------------------------------------


def _parse_url(spec: dict[str, Any]) -> str:
    """Return ``scheme://host`` of the service, or the cloud default."""
    host = spec.get("host")
    schemes = spec.get("schemes") or []
    if host and schemes:
        return f"{schemes[0]}://{host}"
    return DEFAULT_SERVICE_URL


def _parse_paths(base_path: str, paths: Any) -> list[Operation]:
    """Create an operation for every verb of every path item."""
    if not paths:
        return []
    if not isinstance(paths, dict):
        raise ValueError("'paths' must be an object")

    operations: list[Operation] = []
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        path_params = path_item.get("parameters") or []

        for method in _HTTP_METHODS:
            operation = _parse_operation(
                method.upper(), base_path + path, path_item.get(method), path_params,
            )
            if operation is not None:
                operations.append(operation)

    return operations


def _parse_operation(
    method: str,
    path: str,
    operation: Optional[dict[str, Any]],
    path_params: list[dict[str, Any]],
) -> Optional[Operation]:
    if operation is None:
        return None
    # Websocket endpoints cannot be expressed as a request/response call.
    if "websocket" in path.lower():
        return None
    if not isinstance(operation, dict):
        raise ValueError(f"Operation {method} {path} must be an object")

    params = _merge_parameters(path_params, operation.get("parameters") or [])
    description = operation.get("description") or operation.get("summary") or ""

    return Operation(
        name=operation_name(str(operation.get("operationId") or ""), path),
        description=description,
        method=method,
        path=path,
        parameters=_parse_parameters(params),
    )


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field).
    """
    for param in [*path_params, *op_params]:
        if not isinstance(param, dict):
            raise ValueError(f"Invalid parameter definition: {param!r}")

    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [
        p for p in path_params
        if (p.get("name", ""), p.get("in", "")) not in overridden
    ]
    merged.extend(op_params)
    return merged


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


def _parse_parameters(params: list[dict[str, Any]]) -> list[Parameter]:
    result: list[Parameter] = []
    for param in params:
        if param.get("schema") is not None:
            result.extend(_parse_schema_parameter(param))
        else:
            result.append(_parse_simple_parameter(param))
    return result


def _parse_simple_parameter(param: dict[str, Any]) -> Parameter:
    """Map a schema-less parameter (path, query, header, formData) directly."""
    items = param.get("items")
    items_type = items.get("type") if isinstance(items, dict) else None

    return Parameter(
        name=str(param.get("name", "")),
        description=param.get("description") or "",
        type_info=map_parameter_type(param.get("type", ""), items_type),
        location=map_location(param.get("in", "")),
        required=bool(param.get("required", False)),
    )


def _parse_schema_parameter(param: dict[str, Any]) -> list[Parameter]:
    """Flatten a schema-bearing parameter into one parameter per property.

    Arrays of scalars additionally yield one parameter carrying the whole
    array under the parameter's own name. Arrays of objects have the item
    properties flattened instead (one level deep).
    """
    schema = param["schema"]
    if not isinstance(schema, dict):
        raise ValueError(f"Invalid schema for parameter '{param.get('name', '')}'")
    location = map_location(param.get("in", ""))

    result = _parse_properties(schema, location)

    items = schema.get("items")
    if isinstance(items, dict):
        if schema_type(items) != "object":
            result.append(
                Parameter(
                    name=str(param.get("name", "")),
                    description=param.get("description") or "",
                    type_info=map_parameter_type(schema_type(schema), schema_type(items)),
                    location=location,
                    required=bool(param.get("required", False)),
                )
            )
        result.extend(_parse_properties(items, location))

    return result


def _parse_properties(schema: dict[str, Any], location: ParameterLocation) -> list[Parameter]:
    properties = schema.get("properties") or {}
    required_list = schema.get("required")
    required = set(required_list) if isinstance(required_list, list) else set()

    result: list[Parameter] = []
    for name, prop in properties.items():
        if not isinstance(prop, dict):
            raise ValueError(f"Invalid schema for property '{name}'")
        items = prop.get("items")
        items_type = schema_type(items) if isinstance(items, dict) else None

        result.append(
            Parameter(
                name=str(name),
                description=prop.get("description") or "",
                type_info=map_parameter_type(schema_type(prop), items_type),
                location=location,
                required=name in required,
            )
        )
    return result


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def to_dash_case(value: str) -> str:
    """Convert camelCase / PascalCase to lower dash-case.

    Example::

        >>> to_dash_case("myMethod")
        'my-method'
        >>> to_dash_case("MyMethod1")
        'my-method1'
    """
    dashed = _MATCH_FIRST_CAP.sub(r"\1-\2", value)
    dashed = _MATCH_ALL_CAP.sub(r"\1-\2", dashed)
    return dashed.lower()


def operation_name(operation_id: str, path: str) -> str:
    """Derive the sub-command name of an operation.

    The operation id is preferred; without one the path (slashes removed) is
    used. Only the last dot-separated segment is kept, underscores become
    dashes, and camel case is dash-cased.

    Example::

        >>> operation_name("MyOperation.MyMethod1", "/x")
        'my-method1'
        >>> operation_name("", "/create-session")
        'create-session'
    """
    if not operation_id:
        operation_id = path.replace("/", "")
    name = operation_id.split(".")[-1].replace("_", "-")
    return to_dash_case(name)
