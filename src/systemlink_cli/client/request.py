"""Assemble the HTTP request for one operation call.

:func:`build_request` turns an operation, its converted parameter values and
the invocation settings into a ready-to-send :class:`httpx.Request`:

* **URL** -- ``settings.url`` + operation path. Path values replace their
  ``{name}`` placeholder literally; query values are appended as
  ``?a=1&b=2`` in input order. Neither is percent-encoded here.
* **Body** -- body-located values form one JSON object (keys sorted, compact
  separators). Without body values, form-data values are uploaded as
  ``multipart/form-data`` files.
* **Headers** -- header-located values, then ``x-ni-api-key``, HTTP Basic
  auth, a fresh ``x-request-id`` and the body content type.
"""

from __future__ import annotations

import base64
import json
import os
import random
import uuid
from typing import Any, Sequence

import httpx

from systemlink_cli.models import Operation, ParameterLocation, ParameterValue, Settings

_INT32_MAX = 2**31 - 1


def _filter(values: Sequence[ParameterValue], location: ParameterLocation) -> list[ParameterValue]:
    return [v for v in values if v.location == location]


def build_url(base_url: str, operation: Operation, values: Sequence[ParameterValue]) -> str:
    """Return the full request URL including the query string.

    A path value ``my/tag`` for ``/v1/tags/{path}`` plus a query value
    ``take=5`` yields ``http://localhost/v1/tags/my/tag?take=5``.
    """
    url = base_url + operation.path
    for value in _filter(values, ParameterLocation.PATH):
        url = url.replace("{" + value.name + "}", value.converted.as_text())

    query = [f"{v.name}={v.converted.as_text()}" for v in _filter(values, ParameterLocation.QUERY)]
    if query:
        url += "?" + "&".join(query)
    return url


def build_json_body(values: Sequence[ParameterValue]) -> bytes:
    """Serialize body values into one compact JSON object with sorted keys.

    Raises:
        ValueError: If a value cannot be represented in JSON (NaN, infinity).
    """
    body = {v.name: v.converted.as_json() for v in values}
    return json.dumps(
        body, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False,
    ).encode("utf-8")


def _read_files(values: Sequence[ParameterValue]) -> list[tuple[str, tuple[str, bytes]]]:
    files = []
    for value in values:
        path = value.converted.as_text()
        with open(path, "rb") as f:
            files.append((value.name, (os.path.basename(path), f.read())))
    return files


def new_request_id() -> str:
    """Return a fresh UUID4, or a random integer string if none can be generated."""
    try:
        return str(uuid.uuid4())
    except (OSError, NotImplementedError):
        return str(random.randint(0, _INT32_MAX))


def _basic_auth(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def build_request(
    operation: Operation,
    values: Sequence[ParameterValue],
    settings: Settings,
) -> httpx.Request:
    """Build the request for *operation*.

    The returned request has its body fully loaded, so it can be sent more
    than once and dumped in verbose mode.

    Raises:
        OSError: If a form-data file cannot be read.
        ValueError: If the JSON body cannot be serialized.
    """
    url = build_url(settings.url, operation, values)

    header_values = {v.name: v.converted.as_text() for v in _filter(values, ParameterLocation.HEADER)}
    headers: list[tuple[str, str]] = list(header_values.items())
    if settings.api_key:
        headers.append(("x-ni-api-key", settings.api_key))
    if settings.username or settings.password:
        headers.append(("Authorization", _basic_auth(settings.username, settings.password)))
    headers.append(("x-request-id", new_request_id()))

    kwargs: dict[str, Any] = {}
    body_values = _filter(values, ParameterLocation.BODY)
    form_values = _filter(values, ParameterLocation.FORM_DATA)
    if body_values:
        kwargs["content"] = build_json_body(body_values)
        headers.append(("content-type", "application/json"))
    elif form_values:
        # httpx generates the multipart content type with its boundary.
        kwargs["files"] = _read_files(form_values)

    request = httpx.Request(operation.method, url, headers=headers, **kwargs)
    request.read()
    return request
