"""Connection parameters of the SSH tunnel proxy."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

DEFAULT_SSH_USER = "ubuntu"
DEFAULT_SSH_PORT = 22


class SSHConfig(BaseModel):
    """Everything needed to open the SSH session behind the tunnel proxy.

    Attributes:
        host_name: SSH server host name or address.
        port: SSH server port.
        key_file: Path to the private key used for public-key authentication.
        known_host: The server's host key in ``authorized_keys`` format
            (``ssh-ed25519 AAAA... comment``).
        user_name: Login user.
    """

    model_config = ConfigDict(frozen=True)

    host_name: str
    port: int = DEFAULT_SSH_PORT
    key_file: str = ""
    known_host: str = ""
    user_name: str = DEFAULT_SSH_USER

    @classmethod
    def from_proxy(
        cls,
        proxy: str,
        key_file: str = "",
        known_host: str = "",
    ) -> Optional[SSHConfig]:
        """Parse a ``[user@]host[:port]`` proxy specification.

        Returns:
            ``None`` when *proxy* is empty (no tunnel requested), otherwise the
            parsed configuration.

        Raises:
            ValueError: If the host is missing or the port is not a number.

        Example::

            >>> SSHConfig.from_proxy("admin@10.0.0.5:2222").user_name
            'admin'
            >>> SSHConfig.from_proxy("10.0.0.5").port
            22
        """
        if not proxy:
            return None

        parts = urlsplit("//" + proxy)
        port = parts.port  # raises ValueError for a malformed port
        if not parts.hostname:
            raise ValueError(f"Invalid SSH proxy '{proxy}': missing host name")

        return cls(
            host_name=parts.hostname,
            port=port or DEFAULT_SSH_PORT,
            key_file=key_file,
            known_host=known_host,
            user_name=parts.username or DEFAULT_SSH_USER,
        )

    @property
    def address(self) -> str:
        return f"{self.host_name}:{self.port}"
