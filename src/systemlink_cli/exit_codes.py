"""Process exit codes of the ``systemlink`` command.

Every :class:`~systemlink_cli.exceptions.SystemLinkError` subclass carries
one of these, so scripts can branch on ``$?`` instead of scraping stderr::

    $ systemlink tags get-tag --path missing.tag
    Error: {
            "message": "Tag not found"
    }
    $ echo $?
    4
"""

EXIT_SUCCESS = 0
"""The service answered with a 2xx/3xx status."""

EXIT_GENERIC_FAILURE = 1
"""Config file problems, 4xx statuses without a dedicated code, crashes."""

EXIT_INVALID_USAGE = 2
"""A required argument is missing or a value does not parse as its type."""

EXIT_AUTH_FAILURE = 3
"""HTTP 401 or 403: wrong API key or credentials."""

EXIT_NOT_FOUND = 4
"""HTTP 404."""

EXIT_SERVER_ERROR = 5
"""HTTP 5xx, after the retries are used up."""

EXIT_CONNECTION_ERROR = 6
"""The tunnel, the request, the connection or the response body failed."""

EXIT_SPEC_PARSE_ERROR = 7
"""A file in the models directory is not a usable Swagger 2.0 document."""
