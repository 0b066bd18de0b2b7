"""CLI command generation from compiled service definitions.

Modules:
    :mod:`~systemlink_cli.generator.param_mapper` -- parameters and global
    settings to Typer option descriptors.
    :mod:`~systemlink_cli.generator.command_tree` -- one sub-application per
    definition, one command per operation.
"""

from systemlink_cli.generator.command_tree import build_command_tree

__all__ = ["build_command_tree"]
