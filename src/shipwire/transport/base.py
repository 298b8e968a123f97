"""Common transport abstractions."""

from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

import httpx

from ..errors import NetworkError
from ..logger import BoundLogger

TransportKind = Literal["tcp", "tls", "unix"]


@runtime_checkable
class Transport(Protocol):
    @property
    def kind(self) -> TransportKind: ...

    @property
    def client(self) -> httpx.Client: ...

    def build_url(self, endpoint: str) -> str: ...

    def send(self, request: httpx.Request) -> httpx.Response: ...

    def close(self) -> None: ...


def send_streaming(client: httpx.Client, request: httpx.Request, logger: BoundLogger) -> httpx.Response:
    """Send through the pooled client leaving the response body unread."""
    logger.debug("%s %s", request.method, request.url.raw_path.decode("ascii", errors="replace"))
    try:
        response = client.send(request, stream=True)
    except httpx.TimeoutException as exc:
        raise NetworkError(f"Request timed out: {exc}", context=str(request.url)) from exc
    except httpx.TransportError as exc:
        raise NetworkError(f"Cannot reach engine at {request.url}: {exc}", context=str(request.url)) from exc
    logger.debug("<- %s status=%s", request.url.raw_path.decode("ascii", errors="replace"), response.status_code)
    return response


def normalize_endpoint(endpoint: str) -> str:
    return endpoint if endpoint.startswith("/") else f"/{endpoint}"


__all__ = ["Transport", "TransportKind", "normalize_endpoint", "send_streaming"]
