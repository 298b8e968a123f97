"""TLS-wrapped TCP transport."""

from __future__ import annotations

import ssl

import httpx

from ..config import TlsMaterial
from ..errors import ConfigurationError
from ..logger import BoundLogger, create_logger
from .base import TransportKind, normalize_endpoint, send_streaming


def build_ssl_context(material: TlsMaterial | None, *, verify: bool) -> ssl.SSLContext:
    """Client context with the engine's certificate chain loaded.

    With ``verify`` the CA bundle from the certificate directory is the only
    trust root and the server hostname is checked. Without it the server
    certificate is accepted as presented.
    """
    cafile = str(material.ca_file) if material and material.ca_file else None
    try:
        context = ssl.create_default_context(cafile=cafile)
        if material is not None:
            context.load_cert_chain(str(material.cert_file), str(material.key_file))
    except (OSError, ssl.SSLError) as exc:
        raise ConfigurationError(f"Cannot load TLS material: {exc}", context=material) from exc

    if material is not None and not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class EncryptedTcpTransport:
    kind: TransportKind = "tls"

    def __init__(
        self,
        host: str,
        port: int,
        *,
        material: TlsMaterial | None = None,
        verify: bool = False,
        timeout: float | None = None,
        client: httpx.Client | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._base = f"https://{host}:{port}"
        self._logger = (logger or create_logger()).child("tls")
        if client is None:
            context = build_ssl_context(material, verify=verify)
            client = httpx.Client(verify=context, timeout=httpx.Timeout(timeout))
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client

    @property
    def client(self) -> httpx.Client:
        return self._client

    @property
    def base_url(self) -> str:
        return self._base

    def build_url(self, endpoint: str) -> str:
        return f"{self._base}{normalize_endpoint(endpoint)}"

    def send(self, request: httpx.Request) -> httpx.Response:
        return send_streaming(self._client, request, self._logger)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __repr__(self) -> str:
        return f"EncryptedTcpTransport({self._base})"


__all__ = ["EncryptedTcpTransport", "build_ssl_context"]
