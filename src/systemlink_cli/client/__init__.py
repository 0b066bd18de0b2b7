"""HTTP client module for systemlink-cli.

Classes:
    :class:`ServiceCaller` -- protocol every service caller implements.
    :class:`NIService` -- blocking caller backed by :class:`httpx.Client`
    with optional HTTP-over-SSH tunnelling and retry.
    :class:`CallResult` -- status, display text and error of one call.

Example::

    from systemlink_cli.client import NIService

    result = NIService().call(operation, values, settings)
    print(result.text)
"""

from systemlink_cli.client.service import CallResult, NIService, ServiceCaller

__all__ = ["CallResult", "NIService", "ServiceCaller"]
