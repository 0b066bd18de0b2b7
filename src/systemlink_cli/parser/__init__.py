"""Swagger model compiler -- load, resolve ``$ref`` pointers, and build definitions.

This sub-package turns raw Swagger 2.0 documents (JSON or YAML) into
:class:`~systemlink_cli.models.Definition` models that the command line is
generated from.

Typical usage::

    from systemlink_cli.parser import SwaggerParser

    definitions = SwaggerParser().parse(documents)

Sub-modules:

* :mod:`~systemlink_cli.parser.loader` -- byte decoding and version checks.
* :mod:`~systemlink_cli.parser.resolver` -- recursive ``$ref`` resolution that
  fails closed on cycles.
* :mod:`~systemlink_cli.parser.types` -- Swagger type/location strings to
  model enums.
* :mod:`~systemlink_cli.parser.compiler` -- walks the resolved document and
  produces definitions, operations and flattened parameters.
"""

from systemlink_cli.parser.compiler import Parser, SwaggerParser, operation_name

__all__ = ["Parser", "SwaggerParser", "operation_name"]
