"""Exception hierarchy for systemlink-cli.

All user-facing errors inherit from :class:`SystemLinkError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`systemlink_cli.exit_codes`. The top-level handler in
:func:`systemlink_cli.app.main` catches ``SystemLinkError`` and exits with the
appropriate code, while unexpected exceptions produce a crash log and exit
with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SystemLinkError (exit 1)
    +-- ConfigError         (exit 1)
    +-- ValidationError     (exit 2)
    +-- ConversionError     (exit 2)
    +-- ParseError          (exit 7)
    +-- ServiceError        (exit 6)
    |   +-- SSHProxyError   (exit 6)
    +-- APIError            (exit 3/4/5/1 by HTTP status)

Internal inconsistencies (a value for a parameter the operation never
declared) raise :class:`UndeclaredParameterError`, which deliberately sits
outside this hierarchy: it is a programming fault, not a user error.
"""

from __future__ import annotations

from systemlink_cli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_SPEC_PARSE_ERROR,
)


class SystemLinkError(Exception):
    """Base exception for all user-facing systemlink-cli errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SystemLinkError):
    """Raised when ``systemlink.yaml`` or the models directory cannot be read."""

    exit_code = EXIT_GENERIC_FAILURE


class ValidationError(SystemLinkError):
    """Raised when required arguments are missing.

    Every missing argument name is collected before the error is raised so the
    user sees the complete list at once.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__("\n".join(f"Missing argument: --{name}" for name in self.missing))


class ConversionError(SystemLinkError):
    """Raised when an argument value does not match its declared type.

    The underlying parse failure is intentionally dropped so every conversion
    problem reads the same way on the command line.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid value for argument '{name}'")


class ParseError(SystemLinkError):
    """Raised when a Swagger model is malformed or cannot be resolved.

    Args:
        name: The model (document) name being parsed.
        cause: Description of what went wrong.
    """

    exit_code = EXIT_SPEC_PARSE_ERROR

    def __init__(self, name: str, cause: str | Exception):
        self.name = name
        self.cause = cause
        super().__init__(f"Error parsing model '{name}': {cause}")


class ServiceError(SystemLinkError):
    """Raised when calling a service fails before a response could be read.

    The ``stage`` names the step that failed -- ``Error starting proxy``,
    ``Error creating request``, ``Error sending request`` or
    ``Error receiving response``.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, stage: str, cause: str | Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")


class SSHProxyError(SystemLinkError):
    """Raised when the SSH session backing the tunnel proxy cannot be opened."""

    exit_code = EXIT_CONNECTION_ERROR


class APIError(SystemLinkError):
    """Returned (not raised) by a service call answered with HTTP status >= 400.

    The message is the complete output text so that callers can print the
    error and still show the service's response body.
    """

    def __init__(self, status_code: int, text: str):
        self.status_code = status_code
        self.text = text
        super().__init__(text, exit_code=_exit_code_for_status(status_code))


class UndeclaredParameterError(RuntimeError):
    """A value was supplied for a parameter the operation does not declare."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Parameter {name} not defined in model.")


def _exit_code_for_status(status_code: int) -> int:
    if status_code in (401, 403):
        return EXIT_AUTH_FAILURE
    if status_code == 404:
        return EXIT_NOT_FOUND
    if status_code >= 500:
        return EXIT_SERVER_ERROR
    return EXIT_GENERIC_FAILURE
