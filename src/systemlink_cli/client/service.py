"""Call a SystemLink service operation over HTTP.

:class:`NIService` is the production :class:`ServiceCaller`. A call runs in
four stages, each failure wrapped in a
:class:`~systemlink_cli.exceptions.ServiceError` naming the stage:

1. ``Error starting proxy`` -- optional HTTP-over-SSH tunnel.
2. ``Error creating request`` -- see :mod:`systemlink_cli.client.request`.
3. ``Error sending request`` -- up to three attempts with a fixed one second
   delay, retrying network failures and 5xx responses.
4. ``Error receiving response`` -- reading the body.

A response with status >= 400 is not raised: it comes back in
:class:`CallResult` with :attr:`CallResult.error` set so the caller can print
the error and still show what the service returned.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import httpx

from systemlink_cli.client.request import build_request
from systemlink_cli.client.response import dump_request, dump_response, format_body
from systemlink_cli.exceptions import (
    APIError,
    ServiceError,
    SSHProxyError,
    UndeclaredParameterError,
)
from systemlink_cli.models import Operation, ParameterValue, Settings
from systemlink_cli.output import get_output
from systemlink_cli.ssh import HTTPOverSSHProxy, SSHConfig

MAX_ATTEMPTS = 3
RETRY_DELAY = 1.0
CONNECT_TIMEOUT = 10.0


@dataclass
class CallResult:
    """Outcome of a completed service call.

    Attributes:
        status_code: HTTP status of the final response.
        text: Output to display (formatted body, or full dumps when verbose).
        error: Set when ``status_code >= 400``; its message is ``text``.
    """

    status_code: int
    text: str
    error: Optional[APIError] = None


class ServiceCaller(Protocol):
    """Performs one operation call with converted values and resolved settings."""

    def call(
        self,
        operation: Operation,
        values: Sequence[ParameterValue],
        settings: Settings,
    ) -> CallResult: ...


class NIService:
    """HTTP service caller backed by :class:`httpx.Client`.

    Args:
        transport: Transport override, mainly for tests
            (:class:`httpx.MockTransport`). When omitted a
            :class:`httpx.HTTPTransport` is created per call, honouring
            ``settings.insecure`` and the SSH tunnel.
        retry_delay: Seconds to wait between attempts.
        proxy_factory: Creates the SSH tunnel; replaceable in tests.

    Example::

        result = NIService().call(operation, values, settings)
        if result.error:
            output.error(str(result.error))
    """

    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        retry_delay: float = RETRY_DELAY,
        proxy_factory: type[HTTPOverSSHProxy] = HTTPOverSSHProxy,
    ) -> None:
        self._transport = transport
        self._retry_delay = retry_delay
        self._proxy_factory = proxy_factory

    def call(
        self,
        operation: Operation,
        values: Sequence[ParameterValue],
        settings: Settings,
    ) -> CallResult:
        """Send *operation* and return the formatted result.

        Raises:
            ServiceError: If any stage fails before a response is read.
            UndeclaredParameterError: If a value belongs to a parameter the
                operation does not declare.
        """
        for value in values:
            if value.parameter not in operation.parameters:
                raise UndeclaredParameterError(value.name)

        try:
            proxy_url = self._start_proxy(settings)
        except (ValueError, SSHProxyError) as exc:
            raise ServiceError("Error starting proxy", exc) from exc

        try:
            request = build_request(operation, values, settings)
        except (OSError, ValueError, httpx.InvalidURL) as exc:
            raise ServiceError("Error creating request", exc) from exc

        output = dump_request(request) + "\n" if settings.verbose else ""

        with self._client(settings, proxy_url) as client:
            response = self._send(client, request)
            try:
                response.read()
            except (httpx.HTTPError, httpx.StreamError) as exc:
                raise ServiceError("Error receiving response", exc) from exc
            finally:
                response.close()

        if settings.verbose:
            output += dump_response(response)
        else:
            output += format_body(response.content)

        error = APIError(response.status_code, output) if response.status_code >= 400 else None
        return CallResult(status_code=response.status_code, text=output, error=error)

    def _start_proxy(self, settings: Settings) -> Optional[str]:
        config = SSHConfig.from_proxy(settings.ssh_proxy, settings.ssh_key, settings.ssh_known_host)
        if config is None:
            return None
        return "http://" + self._proxy_factory().start(config)

    def _client(self, settings: Settings, proxy_url: Optional[str]) -> httpx.Client:
        transport = self._transport or httpx.HTTPTransport(
            verify=not settings.insecure,
            proxy=proxy_url,
        )
        return httpx.Client(
            transport=transport,
            timeout=httpx.Timeout(None, connect=CONNECT_TIMEOUT),
        )

    def _send(self, client: httpx.Client, request: httpx.Request) -> httpx.Response:
        """Send with fixed-delay retry on network errors and 5xx responses.

        When every attempt ends in a 5xx response the last one is returned.
        """
        output = get_output()
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                response = client.send(request, stream=True)
            except httpx.TransportError as exc:
                if attempt == MAX_ATTEMPTS:
                    raise ServiceError("Error sending request", exc) from exc
                output.debug(
                    f"Connection error: {exc}, retrying in {self._retry_delay}s "
                    f"(attempt {attempt}/{MAX_ATTEMPTS})"
                )
                time.sleep(self._retry_delay)
                continue

            if response.status_code >= 500 and attempt < MAX_ATTEMPTS:
                response.close()
                output.debug(
                    f"Server error {response.status_code}, retrying in {self._retry_delay}s "
                    f"(attempt {attempt}/{MAX_ATTEMPTS})"
                )
                time.sleep(self._retry_delay)
                continue

            return response

        raise AssertionError("unreachable")  # pragma: no cover
