"""Local domain socket transport."""

from __future__ import annotations

import socket

import httpx

from ..errors import ConfigurationError
from ..logger import BoundLogger, create_logger
from .base import TransportKind, normalize_endpoint, send_streaming

# Requests are routed by the socket, the authority is only a placeholder
_PLACEHOLDER_BASE = "http://localhost"


def unix_sockets_supported() -> bool:
    return hasattr(socket, "AF_UNIX")


class UnixSocketTransport:
    kind: TransportKind = "unix"

    def __init__(
        self,
        path: str,
        *,
        timeout: float | None = None,
        client: httpx.Client | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        if not unix_sockets_supported():
            raise ConfigurationError("Unix socket support is not available on this platform", context=path)
        self._path = path
        self._logger = (logger or create_logger()).child("unix")
        if client is None:
            # The daemon closes idle socket connections, never keep them around
            limits = httpx.Limits(max_keepalive_connections=0)
            transport = httpx.HTTPTransport(uds=path, limits=limits)
            client = httpx.Client(transport=transport, timeout=httpx.Timeout(timeout))
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client

    @property
    def client(self) -> httpx.Client:
        return self._client

    @property
    def path(self) -> str:
        return self._path

    def build_url(self, endpoint: str) -> str:
        return f"{_PLACEHOLDER_BASE}{normalize_endpoint(endpoint)}"

    def send(self, request: httpx.Request) -> httpx.Response:
        return send_streaming(self._client, request, self._logger)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __repr__(self) -> str:
        return f"UnixSocketTransport({self._path})"


__all__ = ["UnixSocketTransport", "unix_sockets_supported"]
