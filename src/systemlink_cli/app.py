"""Typer application factory and CLI entry point for systemlink-cli.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. It reads the Swagger models from the models directory,
compiles them, generates one command group per model and runs the Typer
application. Unhandled exceptions are written to a crash log under the data
directory.

See Also:
    :mod:`systemlink_cli.config`: Config file lookup and settings resolution.
    :mod:`systemlink_cli.generator`: Command generation.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Sequence

import typer

from systemlink_cli import __version__
from systemlink_cli.client import NIService, ServiceCaller
from systemlink_cli.config import get_data_dir, get_models_dir, load_config
from systemlink_cli.exceptions import ConfigError, SystemLinkError
from systemlink_cli.exit_codes import EXIT_GENERIC_FAILURE
from systemlink_cli.generator import build_command_tree
from systemlink_cli.generator.command_tree import ConfigLoader
from systemlink_cli.models import Definition, SpecDocument
from systemlink_cli.output import error
from systemlink_cli.parser import SwaggerParser


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"systemlink {__version__}")
        raise typer.Exit()


def create_app(
    definitions: Sequence[Definition],
    caller: ServiceCaller,
    config_loader: ConfigLoader = load_config,
) -> typer.Typer:
    """Create the root application with one command group per definition."""
    app = typer.Typer(
        name="systemlink",
        help="Command-Line Interface for NI SystemLink Services",
        no_args_is_help=True,
        add_completion=False,
        rich_markup_mode=None,
    )

    @app.callback()
    def main_callback(
        version: bool = typer.Option(
            False,
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ) -> None:
        """Command-Line Interface for NI SystemLink Services."""

    return build_command_tree(app, definitions, caller, config_loader)


def load_models(models_dir: Path) -> list[SpecDocument]:
    """Read every file in *models_dir*; the file name without extension names the model.

    Raises:
        ConfigError: If the directory is missing, empty or unreadable.
    """
    try:
        files = sorted(p for p in models_dir.iterdir() if p.is_file())
    except OSError:
        files = []
    if not files:
        raise ConfigError(
            "No model files found. Make sure that the models folder contains "
            f"json files: {models_dir}"
        )

    documents: list[SpecDocument] = []
    for path in files:
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise ConfigError(f"Cannot read model file {path}: {exc}") from exc
        documents.append(SpecDocument(name=path.stem, content=content))
    return documents


def _write_crash_log(exc: BaseException) -> Path:
    """Save the traceback of *exc* under ``<data dir>/logs`` and return the file."""
    log_dir = get_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_file.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return log_file


def main() -> None:
    """Entry point of the ``systemlink`` console script.

    Loading the models and building the command tree happen on every run, so
    a broken models directory is reported like any other error. Unexpected
    exceptions leave a crash log behind and exit with
    :data:`~systemlink_cli.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    try:
        definitions = SwaggerParser().parse(load_models(get_models_dir()))
        create_app(definitions, NIService())()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except SystemLinkError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)
