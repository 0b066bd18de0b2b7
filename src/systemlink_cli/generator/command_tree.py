"""Build Typer commands from compiled service definitions.

Every :class:`~systemlink_cli.models.Definition` becomes a sub-application
named after the definition, and every operation becomes a command of that
sub-application::

    systemlink <definition> <operation> [--<parameter> VALUE ...] [global options]

Running a generated command:

1. Checks that every required parameter was given, reporting all missing
   ones together.
2. Resolves :class:`~systemlink_cli.models.Settings` from the selected
   profile, overlaid with the global options the user supplied explicitly
   (on the command line or through their ``NI_*`` environment variable).
   An empty URL falls back to the definition's URL.
3. Converts the flag values to their declared types.
4. Calls the service and prints the response, or the error on stderr.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

import typer

from systemlink_cli.client import ServiceCaller
from systemlink_cli.config import resolve_settings
from systemlink_cli.converter import ValueConverter
from systemlink_cli.exceptions import SystemLinkError, ValidationError
from systemlink_cli.generator.param_mapper import (
    GLOBAL_OPTION_NAMES,
    GLOBAL_OPTIONS,
    build_option_descriptors,
)
from systemlink_cli.models import ConfigFile, Definition, Operation
from systemlink_cli.output import OutputManager, get_output, set_output

ConfigLoader = Callable[[], ConfigFile]

_SETTINGS_OPTIONS = tuple(opt["name"] for opt in GLOBAL_OPTIONS if opt["name"] != "profile")
# Compared by name: typer may bring its own copy of click and its enum.
_EXPLICIT_SOURCES = frozenset({"COMMANDLINE", "ENVIRONMENT"})


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def build_command_tree(
    app: typer.Typer,
    definitions: Sequence[Definition],
    caller: ServiceCaller,
    config_loader: ConfigLoader,
) -> typer.Typer:
    """Register one sub-application per definition on *app*.

    Args:
        app: The root application.
        definitions: Compiled definitions, registered in the given order.
        caller: Performs the HTTP call when a command runs.
        config_loader: Returns the configuration file; only called when a
            command actually runs.

    Returns:
        *app*, for chaining.
    """
    for definition in definitions:
        sub = typer.Typer(
            name=definition.name,
            help=f"Operations of the {definition.name} service.",
            no_args_is_help=True,
            rich_markup_mode=None,
        )
        registered: set[str] = set()
        for operation in definition.operations:
            # The first of several operations with the same name wins.
            if operation.name in registered:
                continue
            registered.add(operation.name)
            fn = _build_command_function(definition, operation, caller, config_loader)
            sub.command(name=operation.name, help=operation.description or None)(fn)
        app.add_typer(sub, name=definition.name)
    return app


# ---------------------------------------------------------------------------
# Command function generation
# ---------------------------------------------------------------------------


def _build_command_function(
    definition: Definition,
    operation: Operation,
    caller: ServiceCaller,
    config_loader: ConfigLoader,
) -> Callable[..., Any]:
    """Dynamically generate a Typer-compatible function for *operation*.

    Typer reads options from the function signature, so the function source
    is built as a string (one keyword argument per option), compiled and
    executed into a namespace holding the option descriptors.
    """
    descriptors = build_option_descriptors(operation.parameters)
    func_name = "_cmd_" + "".join(c if c.isalnum() else "_" for c in f"{definition.name}_{operation.name}")

    namespace: dict[str, Any] = {"_ann_ctx": typer.Context}
    sig_parts: list[str] = ["_ctx: _ann_ctx"]
    for idx, desc in enumerate(descriptors):
        namespace[f"_default_opt_{idx}"] = desc["default"]
        namespace[f"_ann_opt_{idx}"] = desc["type"]
        sig_parts.append(f"{desc['name']}: _ann_opt_{idx} = _default_opt_{idx}")

    value_items = ", ".join(
        f"{d['original_name']!r}: {d['name']}"
        for d in descriptors
        if d["original_name"] not in GLOBAL_OPTION_NAMES
    )
    global_items = ", ".join(f"{opt['name']!r}: {opt['name']}" for opt in GLOBAL_OPTIONS)

    source = (
        f"def {func_name}({', '.join(sig_parts)}):\n"
        f"    return _dispatch(_ctx, {{{value_items}}}, {{{global_items}}})\n"
    )
    namespace["_dispatch"] = _make_dispatch(definition, operation, caller, config_loader)

    code = compile(source, f"<systemlink:{definition.name}:{operation.name}>", "exec")
    exec(code, namespace)  # noqa: S102 -- controlled code generation
    fn = namespace[func_name]
    fn.__doc__ = operation.description or None
    return fn


def _make_dispatch(
    definition: Definition,
    operation: Operation,
    caller: ServiceCaller,
    config_loader: ConfigLoader,
) -> Callable[[typer.Context, dict[str, Optional[str]], dict[str, Any]], None]:
    """Return the function that runs *operation* with the parsed options."""

    def _dispatch(
        ctx: typer.Context,
        values: dict[str, Optional[str]],
        global_values: dict[str, Any],
    ) -> None:
        try:
            _run_operation(definition, operation, caller, config_loader, ctx, values, global_values)
        except SystemLinkError as exc:
            get_output().error(str(exc))
            raise typer.Exit(code=exc.exit_code) from exc

    return _dispatch


def _explicit_global_values(ctx: typer.Context, global_values: dict[str, Any]) -> dict[str, Any]:
    """Keep only the global options the user actually supplied."""
    explicit: dict[str, Any] = {}
    for name in _SETTINGS_OPTIONS:
        source = ctx.get_parameter_source(name)
        if source is not None and source.name in _EXPLICIT_SOURCES:
            explicit[name] = global_values[name]
    return explicit


def _run_operation(
    definition: Definition,
    operation: Operation,
    caller: ServiceCaller,
    config_loader: ConfigLoader,
    ctx: typer.Context,
    values: dict[str, Optional[str]],
    global_values: dict[str, Any],
) -> None:
    supplied = {name: value for name, value in values.items() if value is not None}

    missing: list[str] = []
    for param in operation.parameters:
        if (
            param.required
            and param.name not in GLOBAL_OPTION_NAMES
            and param.name not in supplied
            and param.name not in missing
        ):
            missing.append(param.name)
    if missing:
        raise ValidationError(missing)

    settings = resolve_settings(
        config_loader(),
        global_values.get("profile") or "",
        _explicit_global_values(ctx, global_values),
    )
    if not settings.url:
        settings = settings.model_copy(update={"url": definition.url})
    set_output(OutputManager(verbose=settings.verbose))

    parameter_values = ValueConverter().convert_values(supplied, operation.parameters)

    result = caller.call(operation, parameter_values, settings)
    if result.error is not None:
        raise result.error
    get_output().print_response(result.text)
