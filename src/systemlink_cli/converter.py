"""Convert raw command-line strings into typed parameter values.

Flag values arrive as plain strings. :class:`ValueConverter` looks up the
declared :class:`~systemlink_cli.models.Parameter` for every flag and produces
the matching member of the :data:`~systemlink_cli.models.ConvertedValue`
union:

=============  ==============================================================
Type           Accepted input
=============  ==============================================================
``string``     anything, unchanged
``file``       a path to a local file, unchanged
``integer``    base-10 digits with optional sign (leading zeros allowed),
               within the signed 64-bit range
``number``     a floating point literal
``boolean``    ``true`` or ``false``, case-insensitive
``object``     any JSON text
``T[]``        comma-separated list of ``T`` (``object[]``: JSON text)
=============  ==============================================================

A name declared by several parameters (e.g. ``id`` in both the path and the
query string) is converted once per parameter. Conversion is all-or-nothing:
the first failure aborts the call with a
:class:`~systemlink_cli.exceptions.ConversionError`.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Mapping, Sequence

from systemlink_cli.exceptions import ConversionError, UndeclaredParameterError
from systemlink_cli.models import (
    BooleanArrayValue,
    BooleanValue,
    FileValue,
    IntegerArrayValue,
    IntegerValue,
    NumberArrayValue,
    NumberValue,
    ObjectArrayValue,
    ObjectValue,
    Parameter,
    ParameterType,
    ParameterValue,
    StringArrayValue,
    StringValue,
)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _to_integer(value: str) -> int:
    if not _INTEGER_RE.fullmatch(value):
        raise ValueError(f"not an integer: {value!r}")
    result = int(value, 10)
    if not _INT64_MIN <= result <= _INT64_MAX:
        raise ValueError(f"integer out of range: {value!r}")
    return result


def _to_number(value: str) -> float:
    # float() tolerates padding, digit separators and non-ASCII digits; the command line does not.
    if not value.isascii() or value != value.strip() or "_" in value:
        raise ValueError(f"not a number: {value!r}")
    return float(value)


def _to_boolean(value: str) -> bool:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_json(value: str) -> Any:
    return json.loads(value)


def _split(value: str, convert: Callable[[str], Any]) -> list[Any]:
    return [convert(item) for item in value.split(",")]


def convert_to_type(value: str, type_info: ParameterType):
    """Convert one raw string to the value model for *type_info*.

    Raises:
        ValueError: If *value* is not valid for the type.
    """
    if type_info is ParameterType.STRING:
        return StringValue(value=value)
    if type_info is ParameterType.FILE:
        return FileValue(value=value)
    if type_info is ParameterType.INTEGER:
        return IntegerValue(value=_to_integer(value))
    if type_info is ParameterType.NUMBER:
        return NumberValue(value=_to_number(value))
    if type_info is ParameterType.BOOLEAN:
        return BooleanValue(value=_to_boolean(value))
    if type_info is ParameterType.OBJECT:
        return ObjectValue(value=_to_json(value))
    if type_info is ParameterType.STRING_ARRAY:
        return StringArrayValue(value=value.split(","))
    if type_info is ParameterType.INTEGER_ARRAY:
        return IntegerArrayValue(value=_split(value, _to_integer))
    if type_info is ParameterType.NUMBER_ARRAY:
        return NumberArrayValue(value=_split(value, _to_number))
    if type_info is ParameterType.BOOLEAN_ARRAY:
        return BooleanArrayValue(value=_split(value, _to_boolean))
    if type_info is ParameterType.OBJECT_ARRAY:
        return ObjectArrayValue(value=_to_json(value))
    raise TypeError(f"Unhandled parameter type {type_info!r}")


class ValueConverter:
    """Converts command-line input strings into the types declared by the model."""

    def convert_values(
        self,
        values: Mapping[str, str],
        parameters: Sequence[Parameter],
    ) -> list[ParameterValue]:
        """Convert every ``name -> raw string`` pair against *parameters*.

        Args:
            values: Raw flag values keyed by parameter name.
            parameters: All parameters declared by the operation.

        Returns:
            One :class:`~systemlink_cli.models.ParameterValue` per matching
            parameter, in input order.

        Raises:
            ConversionError: If any value does not match its declared type.
            UndeclaredParameterError: If a name matches no parameter at all.
        """
        result: list[ParameterValue] = []
        for name, value in values.items():
            matching = [p for p in parameters if p.name == name]
            if not matching:
                raise UndeclaredParameterError(name)
            for parameter in matching:
                result.append(self._convert_value(value, parameter))
        return result

    def _convert_value(self, value: str, parameter: Parameter) -> ParameterValue:
        try:
            converted = convert_to_type(value, parameter.type_info)
        except ValueError as exc:
            raise ConversionError(parameter.name) from exc
        return ParameterValue(parameter=parameter, converted=converted)
