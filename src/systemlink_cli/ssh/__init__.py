"""HTTP-over-SSH tunnelling.

Classes:
    :class:`SSHConfig` -- parsed ``[user@]host[:port]`` plus key material.
    :class:`HTTPOverSSHProxy` -- opens the SSH session and a local forwarding
    HTTP proxy whose upstream connections are SSH channels.
"""

from systemlink_cli.ssh.config import SSHConfig
from systemlink_cli.ssh.proxy import HTTPOverSSHProxy

__all__ = ["SSHConfig", "HTTPOverSSHProxy"]
