"""Map operation parameters and global settings to Typer CLI options.

This module converts :class:`~systemlink_cli.models.Parameter` models into
descriptor dictionaries that
:func:`~systemlink_cli.generator.command_tree._build_command_function` uses to
construct dynamically generated function signatures.

**Mapping rules:**

* Every parameter becomes an optional ``--<name>`` string option, spelled
  exactly as in the model. Values are converted later by the
  :class:`~systemlink_cli.converter.ValueConverter`, so Typer never sees the
  declared type.
* Parameters sharing a name (path and query ``id``, say) collapse into one
  option whose value feeds all of them.
* Required parameters are *not* enforced by Typer; the command validates
  them itself so every missing argument is reported at once.
* Names taken by :data:`GLOBAL_OPTIONS` are not exposed a second time.
"""

from __future__ import annotations

import keyword
import re
from typing import Any, Optional, Sequence

import typer

from systemlink_cli.models import Parameter

# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------

# (python name, flag, environment variable, help, is_bool, hidden)
_GLOBAL_OPTION_SPECS: tuple[tuple[str, str, str, str, bool, bool], ...] = (
    ("api_key", "--api-key", "NI_API_KEY", "API KEY for accessing the NI services", False, False),
    ("username", "--username", "NI_USERNAME", "Username for basic auth (SystemLink Server)", False, False),
    ("password", "--password", "NI_PASSWORD", "Password for basic auth (SystemLink Server)", False, False),
    ("verbose", "--verbose", "NI_VERBOSE", "Provides debug output", True, False),
    ("url", "--url", "NI_URL", "SystemLink server base URL", False, False),
    ("profile", "--profile", "NI_PROFILE", "Profile to load from configuration file", False, False),
    ("insecure", "--insecure", "NI_INSECURE", "Ignore SSL certificate errors", True, True),
    ("ssh_proxy", "--ssh-proxy", "NI_SSH_PROXY", "Use HTTP(S) over SSH", False, True),
    ("ssh_key", "--ssh-key", "NI_SSH_KEY", "SSH private key used for authentication", False, True),
    ("ssh_known_host", "--ssh-known-host", "NI_SSH_KNOWN_HOST", "Known host used for SSH host key auth", False, True),
)


def _build_global_option(spec: tuple[str, str, str, str, bool, bool]) -> dict[str, Any]:
    py_name, flag, envvar, help_text, is_bool, hidden = spec
    if is_bool:
        py_type: Any = bool
        default = typer.Option(False, flag, envvar=envvar, help=help_text, hidden=hidden)
    else:
        py_type = Optional[str]
        default = typer.Option(None, flag, envvar=envvar, help=help_text, hidden=hidden)
    return {
        "name": py_name,
        "original_name": flag[2:],
        "type": py_type,
        "default": default,
        "help": help_text,
    }


GLOBAL_OPTIONS: tuple[dict[str, Any], ...] = tuple(
    _build_global_option(spec) for spec in _GLOBAL_OPTION_SPECS
)
"""Connection options added to every operation command."""

GLOBAL_OPTION_NAMES: frozenset[str] = frozenset(opt["original_name"] for opt in GLOBAL_OPTIONS)
"""Flag names (without ``--``) of :data:`GLOBAL_OPTIONS`."""


# ---------------------------------------------------------------------------
# Name sanitisation
# ---------------------------------------------------------------------------

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_param_name(name: str) -> str:
    """Convert a model parameter name to a valid Python identifier.

    The identifier only names the argument of the generated function; the
    flag keeps the original spelling.

    Example::

        >>> sanitize_param_name("tagPath")
        'tag_path'
        >>> sanitize_param_name("x-ni-request")
        'x_ni_request'
        >>> sanitize_param_name("class")
        'class_'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = result.lower()
    result = result.replace("-", "_").replace(".", "_")
    result = _INVALID_IDENT_RE.sub("_", result)
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        result = "param"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


# ---------------------------------------------------------------------------
# Parameter mapping
# ---------------------------------------------------------------------------


def unique_parameters(parameters: Sequence[Parameter]) -> list[Parameter]:
    """Return the first parameter for each distinct name, skipping global names.

    A parameter is marked required on the command line when any parameter
    of that name is required.
    """
    seen: dict[str, Parameter] = {}
    for param in parameters:
        if param.name in GLOBAL_OPTION_NAMES:
            continue
        if param.name not in seen:
            seen[param.name] = param
        elif param.required and not seen[param.name].required:
            seen[param.name] = seen[param.name].model_copy(update={"required": True})
    return list(seen.values())


def map_parameter_to_option(param: Parameter, py_name: str) -> dict[str, Any]:
    """Map a :class:`~systemlink_cli.models.Parameter` to a Typer descriptor dict.

    Args:
        param: The parameter to expose.
        py_name: Unique Python identifier for the generated function argument.

    Returns:
        A dict with the keys ``name`` (Python identifier), ``original_name``
        (model name, used to look values up), ``type``, ``default`` (the
        :func:`typer.Option` descriptor) and ``help``.
    """
    help_text = param.description
    if param.required:
        help_text = f"{help_text} [required]" if help_text else "[required]"

    return {
        "name": py_name,
        "original_name": param.name,
        "type": Optional[str],
        "default": typer.Option(None, f"--{param.name}", help=help_text or None),
        "help": help_text,
    }


def build_option_descriptors(parameters: Sequence[Parameter]) -> list[dict[str, Any]]:
    """Build the option descriptors of one operation command.

    Operation options come first (one per unique parameter name), followed by
    :data:`GLOBAL_OPTIONS`. Python identifiers are made unique across both.
    """
    taken = {opt["name"] for opt in GLOBAL_OPTIONS}
    descriptors: list[dict[str, Any]] = []
    for param in unique_parameters(parameters):
        py_name = base = sanitize_param_name(param.name)
        suffix = 2
        while py_name in taken:
            py_name = f"{base}_{suffix}"
            suffix += 1
        taken.add(py_name)
        descriptors.append(map_parameter_to_option(param, py_name))

    descriptors.extend(GLOBAL_OPTIONS)
    return descriptors
