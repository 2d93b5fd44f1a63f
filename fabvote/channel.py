"""fabvote — Secure Channel Factory.

A ``Channel`` is the long-lived TLS connection to one gateway endpoint,
shared by every session opened against it. The endpoint certificate is
verified against the configured root and the host alias, not the
address that is dialled. Nothing touches the network until the first
request.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any

import httpx
from cryptography import x509

from fabvote.exceptions import ConnectionSetupError

logger = logging.getLogger("fabvote.channel")


def _ssl_context(tls_root_cert: bytes) -> ssl.SSLContext:
    try:
        x509.load_pem_x509_certificates(tls_root_cert)
    except ValueError as e:
        raise ConnectionSetupError(f"Cannot parse TLS root certificate: {e}") from e

    # Passing cadata keeps the system CA store out of the context.
    try:
        context = ssl.create_default_context(
            ssl.Purpose.SERVER_AUTH, cadata=tls_root_cert.decode("ascii")
        )
    except (ssl.SSLError, UnicodeDecodeError) as e:
        raise ConnectionSetupError(f"Cannot load TLS root certificate: {e}") from e
    return context


class Channel:
    """Multiplexed HTTPS transport to one gateway endpoint.

    Safe for concurrent requests. Close it once, at shutdown::

        async with new_channel(root, "localhost:7051", "peer0.org1.example.com") as ch:
            ...
    """

    def __init__(
        self,
        endpoint: str,
        host_alias: str | None = None,
        *,
        verify: ssl.SSLContext | bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.host_alias = host_alias
        self._client = httpx.AsyncClient(
            base_url=f"https://{endpoint}",
            verify=verify,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def post(
        self,
        path: str,
        body: dict[str, Any],
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """POST a JSON body. Transport errors propagate as ``httpx`` exceptions."""
        if self._closed:
            raise RuntimeError("Channel is closed")
        extensions = {"sni_hostname": self.host_alias} if self.host_alias else None
        logger.debug("POST %s%s (timeout %.3fs)", self.endpoint, path, timeout)
        return await self._client.post(
            path,
            json=body,
            headers=headers,
            timeout=timeout,
            extensions=extensions,
        )

    async def close(self) -> None:
        """Release the connection pool. Further calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        await self._client.aclose()
        logger.debug("Closed channel to %s", self.endpoint)

    async def __aenter__(self) -> Channel:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


def new_channel(
    tls_root_cert: bytes,
    endpoint: str,
    host_alias: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Channel:
    """Build a channel trusting only ``tls_root_cert``.

    Raises:
        ConnectionSetupError: the root certificate cannot be parsed.
    """
    context = _ssl_context(tls_root_cert)
    return Channel(endpoint, host_alias, verify=context, transport=transport)
