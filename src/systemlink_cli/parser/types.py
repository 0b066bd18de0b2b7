"""Map Swagger type and location strings onto the semantic model enums.

These are pure functions without side effects. Unknown values raise
:class:`ValueError` whose message becomes the cause of the document's
:class:`~systemlink_cli.exceptions.ParseError`.
"""

from __future__ import annotations

from typing import Optional

from systemlink_cli.models import ParameterLocation, ParameterType

_SCALAR_TYPES: dict[str, ParameterType] = {
    "string": ParameterType.STRING,
    "integer": ParameterType.INTEGER,
    "number": ParameterType.NUMBER,
    "boolean": ParameterType.BOOLEAN,
    "object": ParameterType.OBJECT,
    "file": ParameterType.FILE,
}

_ARRAY_TYPES: dict[str, ParameterType] = {
    "string": ParameterType.STRING_ARRAY,
    "integer": ParameterType.INTEGER_ARRAY,
    "number": ParameterType.NUMBER_ARRAY,
    "boolean": ParameterType.BOOLEAN_ARRAY,
    "object": ParameterType.OBJECT_ARRAY,
}

_LOCATIONS: dict[str, ParameterLocation] = {
    "path": ParameterLocation.PATH,
    "query": ParameterLocation.QUERY,
    "header": ParameterLocation.HEADER,
    "body": ParameterLocation.BODY,
    "formData": ParameterLocation.FORM_DATA,
}


def map_array_type(items_type: str) -> ParameterType:
    """Map the ``items.type`` of an array to the matching array tag.

    Raises:
        ValueError: For item types without an array tag (including nested
            arrays).
    """
    try:
        return _ARRAY_TYPES[items_type]
    except (KeyError, TypeError):
        raise ValueError(f"Invalid array type '{items_type}'") from None


def map_parameter_type(type_name: str, items_type: Optional[str] = None) -> ParameterType:
    """Map a Swagger ``type`` (plus ``items.type`` for arrays) to a :class:`ParameterType`.

    An array without a declared item type is treated as an array of objects.

    Example::

        >>> map_parameter_type("integer")
        <ParameterType.INTEGER: 'integer'>
        >>> map_parameter_type("array", "number")
        <ParameterType.NUMBER_ARRAY: 'number[]'>
        >>> map_parameter_type("array")
        <ParameterType.OBJECT_ARRAY: 'object[]'>

    Raises:
        ValueError: For unrecognised type strings.
    """
    if type_name == "array":
        return map_array_type(items_type or "object")
    try:
        return _SCALAR_TYPES[type_name]
    except (KeyError, TypeError):
        raise ValueError(f"Invalid type '{type_name}'") from None


def map_location(in_value: str) -> ParameterLocation:
    """Map a Swagger ``in`` value to a :class:`ParameterLocation`.

    Raises:
        ValueError: For unrecognised locations.
    """
    try:
        return _LOCATIONS[in_value]
    except (KeyError, TypeError):
        raise ValueError(f"Invalid location '{in_value}'") from None


def schema_type(schema: dict) -> str:
    """Return the declared type of a schema, ``"object"`` when absent.

    Swagger allows ``type`` to be given as a list; the first entry wins.
    """
    declared = schema.get("type")
    if isinstance(declared, list):
        declared = declared[0] if declared else None
    return declared or "object"
