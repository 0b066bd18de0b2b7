"""Terminal output for systemlink-cli.

Service responses go to stdout untouched, so ``systemlink tags get-tag ... |
jq`` works. Everything else goes to stderr through one Rich console:

* errors, always shown with an ``Error:`` prefix;
* retry progress, shown with ``--verbose`` only;
* records of the ``systemlink_cli`` logger (the SSH tunnel logs there),
  rendered by a :class:`rich.logging.RichHandler` at DEBUG level with
  ``--verbose`` and WARNING level otherwise.

Colour is dropped when ``NO_COLOR`` is set (to any value) or ``TERM=dumb``.

A generated command installs a fresh :class:`OutputManager` with
:func:`set_output` as soon as its settings are resolved; anything printed
earlier (argument errors, for instance) goes through the lazily created
default from :func:`get_output`.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

LOGGER_NAME = "systemlink_cli"


def _color_disabled() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


class OutputManager:
    """Writes responses to stdout and diagnostics to stderr.

    Args:
        verbose: Show debug messages and DEBUG log records.
        no_color: Plain stderr output even on a colour terminal.
    """

    def __init__(self, verbose: bool = False, no_color: bool = False) -> None:
        self.verbose = verbose
        self.no_color = no_color or _color_disabled()
        self.console = Console(
            file=sys.stderr,
            stderr=True,
            no_color=self.no_color,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )

    def print_response(self, text: str) -> None:
        """Write a service response to stdout, ending it with a newline.

        Rich is bypassed so brackets in a payload are never read as markup.
        """
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        sys.stdout.flush()

    def error(self, message: str) -> None:
        # Service errors carry the full response text, printed verbatim.
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[dim]\\[debug] {escape(message)}[/dim]")

    def log_handler(self) -> logging.Handler:
        """Return a handler rendering log records on this manager's console."""
        handler = RichHandler(
            console=self.console,
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        return handler


_output: Optional[OutputManager] = None
_handler: Optional[logging.Handler] = None


def get_output() -> OutputManager:
    """Return the active :class:`OutputManager`, creating a non-verbose default once."""
    global _output
    if _output is None:
        set_output(OutputManager())
    assert _output is not None
    return _output


def set_output(output: OutputManager) -> None:
    """Make *output* the active manager and route package logging to it."""
    global _output, _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
    _output = output
    _handler = output.log_handler()
    logger.addHandler(_handler)
    logger.setLevel(logging.DEBUG if output.verbose else logging.WARNING)


def reset_output() -> None:
    """Drop the active manager and its log handler (used by the test suite)."""
    global _output, _handler
    if _handler is not None:
        logging.getLogger(LOGGER_NAME).removeHandler(_handler)
    _output = None
    _handler = None


def error(message: str) -> None:
    """Print an error to stderr via the active manager."""
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
