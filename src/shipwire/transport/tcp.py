"""Plain TCP transport."""

from __future__ import annotations

import httpx

from ..logger import BoundLogger, create_logger
from .base import TransportKind, normalize_endpoint, send_streaming


class TcpTransport:
    kind: TransportKind = "tcp"

    def __init__(
        self,
        host: str,
        port: int,
        *,
        timeout: float | None = None,
        client: httpx.Client | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        # tcp:// is not an HTTP scheme, requests go out as http://
        self._base = f"http://{host}:{port}"
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))
        self._owns_client = client is None
        self._logger = (logger or create_logger()).child("tcp")

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
        return f"TcpTransport({self._base})"


__all__ = ["TcpTransport"]
