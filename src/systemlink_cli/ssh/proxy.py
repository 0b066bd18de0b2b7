"""HTTP proxy that relays every outbound connection through an SSH session.

:class:`HTTPOverSSHProxy` opens an authenticated SSH session and starts a
small forwarding HTTP proxy on an ephemeral loopback port. The service caller
points its HTTP client at that proxy, so requests reach servers that are only
visible from the SSH host:

* ``CONNECT host:port`` (HTTPS) -- a ``direct-tcpip`` channel is opened to the
  target and bytes are relayed in both directions.
* absolute-form plain HTTP requests -- the request is rewritten to
  origin-form, sent over a fresh channel, and the response relayed back.

The proxy runs on a daemon thread for the lifetime of the process and is
never shut down explicitly. Each service call starts its own tunnel.
"""

from __future__ import annotations

import base64
import logging
import select
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

import paramiko
from paramiko.pkey import UnknownKeyType

from systemlink_cli.exceptions import SSHProxyError
from systemlink_cli.ssh.config import SSHConfig

logger = logging.getLogger(__name__)

Dialer = Callable[[str, int], Any]
"""Opens a stream to ``(host, port)``; must offer ``recv``/``sendall``/``fileno``/``close``."""

_BUFFER_SIZE = 32 * 1024
_CONNECT_TIMEOUT = 10.0

_HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
})


# ---------------------------------------------------------------------------
# SSH session
# ---------------------------------------------------------------------------


def load_private_key(key_file: str) -> Optional[paramiko.PKey]:
    """Read a private key, returning ``None`` if it cannot be read or parsed.

    A missing key is not an error here: the connection is then attempted
    without any authentication method and the server rejects it.
    """
    if not key_file:
        return None
    try:
        return paramiko.PKey.from_path(key_file)
    except (OSError, ValueError, TypeError, paramiko.SSHException, UnknownKeyType) as exc:
        logger.debug("Cannot load SSH key %s: %s", key_file, exc)
        return None


def parse_known_host(known_host: str) -> Optional[paramiko.PKey]:
    """Parse a host key in ``authorized_keys`` format (``<type> <base64> [comment]``).

    Returns:
        The public key, or ``None`` if the text is not a valid key.
    """
    fields = known_host.split()
    if len(fields) < 2:
        return None
    try:
        return paramiko.PKey.from_type_string(fields[0], base64.b64decode(fields[1]))
    except (ValueError, paramiko.SSHException, UnknownKeyType) as exc:
        logger.debug("Cannot parse SSH known host: %s", exc)
        return None


class FixedHostKeyPolicy(paramiko.MissingHostKeyPolicy):
    """Accept exactly one host key; reject every server when none is configured."""

    def __init__(self, host_key: Optional[paramiko.PKey]) -> None:
        self._host_key = host_key

    def missing_host_key(self, client: paramiko.SSHClient, hostname: str, key: paramiko.PKey) -> None:
        if self._host_key is None or key != self._host_key:
            raise paramiko.SSHException(f"Host key for {hostname} does not match the known host")


# ---------------------------------------------------------------------------
# Forwarding HTTP proxy
# ---------------------------------------------------------------------------


def _relay(client: Any, upstream: Any) -> None:
    """Copy bytes between *client* and *upstream* until either side closes."""
    peers = {client: upstream, upstream: client}
    try:
        while True:
            readable, _, broken = select.select(list(peers), [], list(peers))
            if broken:
                return
            for source in readable:
                data = source.recv(_BUFFER_SIZE)
                if not data:
                    return
                peers[source].sendall(data)
    except OSError as exc:
        logger.debug("Proxy relay ended: %s", exc)


def _split_host_port(authority: str, default_port: int) -> tuple[str, int]:
    parts = urlsplit("//" + authority)
    if not parts.hostname:
        raise ValueError(f"Invalid target '{authority}'")
    return parts.hostname, parts.port or default_port


class ForwardingProxyServer(ThreadingHTTPServer):
    """Threaded HTTP proxy whose upstream connections come from *dial*."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], dial: Dialer) -> None:
        self.dial = dial
        super().__init__(address, ProxyRequestHandler)


class ProxyRequestHandler(BaseHTTPRequestHandler):
    """Handles ``CONNECT`` tunnels and absolute-form plain HTTP requests."""

    protocol_version = "HTTP/1.1"
    server: ForwardingProxyServer

    def do_CONNECT(self) -> None:
        self.close_connection = True
        try:
            host, port = _split_host_port(self.path, 443)
        except ValueError as exc:
            self.send_error(400, str(exc))
            return

        upstream = self._dial(host, port)
        if upstream is None:
            return
        try:
            self.send_response(200, "Connection established")
            self.end_headers()
            _relay(self.connection, upstream)
        finally:
            upstream.close()

    def _forward(self) -> None:
        self.close_connection = True
        url = urlsplit(self.path)
        if url.scheme != "http" or not url.hostname:
            self.send_error(400, "Only absolute http:// URLs can be proxied")
            return
        if "Transfer-Encoding" in self.headers:
            self.send_error(411, "Chunked request bodies are not supported")
            return

        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""

        upstream = self._dial(url.hostname, url.port or 80)
        if upstream is None:
            return
        try:
            upstream.sendall(self._origin_request(url) + body)
            _relay(self.connection, upstream)
        except OSError as exc:
            logger.debug("Forwarding %s failed: %s", self.path, exc)
        finally:
            upstream.close()

    do_GET = _forward
    do_HEAD = _forward
    do_POST = _forward
    do_PUT = _forward
    do_PATCH = _forward
    do_DELETE = _forward
    do_OPTIONS = _forward

    def _origin_request(self, url: Any) -> bytes:
        target = url.path or "/"
        if url.query:
            target = f"{target}?{url.query}"
        lines = [f"{self.command} {target} HTTP/1.1"]
        for key, value in self.headers.items():
            if key.lower() not in _HOP_BY_HOP_HEADERS:
                lines.append(f"{key}: {value}")
        lines.append("Connection: close")
        return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")

    def _dial(self, host: str, port: int) -> Any:
        try:
            return self.server.dial(host, port)
        except (OSError, paramiko.SSHException) as exc:
            logger.debug("Cannot reach %s:%s through the tunnel: %s", host, port, exc)
            self.send_error(502, f"Cannot reach {host}:{port}")
            return None

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("proxy %s - %s", self.address_string(), format % args)


def start_forwarding_proxy(dial: Dialer) -> str:
    """Serve a forwarding proxy on an ephemeral loopback port in the background.

    Returns:
        The proxy address as ``localhost:<port>``.
    """
    server = ForwardingProxyServer(("127.0.0.1", 0), dial)
    thread = threading.Thread(target=server.serve_forever, name="ssh-http-proxy", daemon=True)
    thread.start()
    port = server.server_address[1]
    logger.debug("HTTP proxy listening on localhost:%s", port)
    return f"localhost:{port}"


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


class HTTPOverSSHProxy:
    """Tunnels HTTP(S) requests through SSH by running a local forwarding proxy.

    Example::

        config = SSHConfig.from_proxy("ubuntu@10.0.0.5", "key.pem", known_host)
        address = HTTPOverSSHProxy().start(config)
        httpx.Client(proxy=f"http://{address}")
    """

    def start(self, config: SSHConfig) -> str:
        """Open the SSH session and start the local proxy.

        Returns:
            ``localhost:<port>`` of the proxy.

        Raises:
            SSHProxyError: If the SSH connection or authentication fails.
        """
        client = self._connect(config)
        transport = client.get_transport()
        if transport is None:
            raise SSHProxyError(f"Could not SSH into {config.address}: no transport")

        def dial(host: str, port: int) -> paramiko.Channel:
            return transport.open_channel("direct-tcpip", (host, port), ("127.0.0.1", 0))

        return start_forwarding_proxy(dial)

    def _connect(self, config: SSHConfig) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(FixedHostKeyPolicy(parse_known_host(config.known_host)))
        try:
            client.connect(
                config.host_name,
                port=config.port,
                username=config.user_name,
                pkey=load_private_key(config.key_file),
                look_for_keys=False,
                allow_agent=False,
                timeout=_CONNECT_TIMEOUT,
            )
        except (OSError, paramiko.SSHException) as exc:
            client.close()
            raise SSHProxyError(
                f"Could not SSH into {config.address}. Make sure that you have "
                "provided the correct SSH key and the server is a known host. "
                f"Error: {exc}"
            ) from exc
        return client
