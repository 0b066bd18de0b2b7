"""Render requests and responses as command output.

Without ``--verbose`` only the response body is shown, re-indented when it is
JSON (:func:`format_body`). With ``--verbose`` the raw request and response
are dumped in HTTP/1.1 wire form, request first (:func:`dump_request`,
:func:`dump_response`).
"""

from __future__ import annotations

import json

import httpx


_JSON_SPACE = " \t\r\n"


def _reject_constant(value: str) -> None:
    raise ValueError(f"invalid JSON constant {value}")


def _indent_json(text: str, indent: str = "\t") -> str:
    """Re-indent valid JSON *text*, changing whitespace only.

    Values keep their exact spelling: numbers, escapes and duplicate keys
    are copied through. Leading whitespace is dropped and trailing
    whitespace kept.
    """
    body = text.lstrip(_JSON_SPACE)
    trailing = body[len(body.rstrip(_JSON_SPACE)):]
    body = body.rstrip(_JSON_SPACE)

    out: list[str] = []
    depth = 0
    in_string = escaped = False
    opened = False  # a bracket was just written and its first element is pending
    for ch in body:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch in _JSON_SPACE:
            continue
        if opened and ch not in "]}":
            opened = False
            depth += 1
            out.append("\n" + indent * depth)
        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in "{[":
            opened = True
            out.append(ch)
        elif ch in "]}":
            if opened:
                opened = False
            else:
                depth -= 1
                out.append("\n" + indent * depth)
            out.append(ch)
        elif ch == ",":
            out.append(",\n" + indent * depth)
        elif ch == ":":
            out.append(": ")
        else:
            out.append(ch)
    return "".join(out) + trailing


def format_body(content: bytes) -> str:
    """Pretty-print *content* as tab-indented JSON, or return it as text.

    Only whitespace changes; the values are shown exactly as the service
    sent them.

    Example::

        >>> format_body(b'{"a":1.50}')
        '{\\n\\t"a": 1.50\\n}'
        >>> format_body(b"not json")
        'not json'
    """
    text = content.decode("utf-8", errors="replace")
    try:
        json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return text
    return _indent_json(text)


def _dump_headers(headers: httpx.Headers) -> str:
    return "".join(f"{key}: {value}\r\n" for key, value in headers.multi_items())


def dump_request(request: httpx.Request) -> str:
    """Return the request line, headers and body as sent on the wire."""
    target = request.url.raw_path.decode("ascii")
    head = f"{request.method} {target} HTTP/1.1\r\n{_dump_headers(request.headers)}\r\n"
    return head + request.content.decode("utf-8", errors="replace")


def dump_response(response: httpx.Response) -> str:
    """Return the status line, headers and body of a response that has been read."""
    version = response.http_version or "HTTP/1.1"
    status = f"{version} {response.status_code} {response.reason_phrase}".rstrip()
    return f"{status}\r\n{_dump_headers(response.headers)}\r\n{response.text}"
