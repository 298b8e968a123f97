"""Request execution and response classification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Union

import httpx

from .errors import Fault, NetworkError, SerializationError, UpgradeRejected
from .logger import BoundLogger, create_logger
from .parser import extract_error_message
from .streams import ChunkStream
from .transport import Transport
from .upgrade import UpgradeChannel

RequestContent = Union[bytes, str, Iterable[bytes]]
Body = tuple[RequestContent, str]

SUCCESS_STATUSES = frozenset({200, 201, 101, 204})
SWITCHING_PROTOCOLS = 101

UNKNOWN_ERROR = "unknown error code"

JSON_CONTENT = "application/json"
TAR_CONTENT = "application/x-tar"


@dataclass(frozen=True)
class Request:
    method: str
    path: str
    body: Body | None = None
    headers: Mapping[str, str] | None = None


class RequestExecutor:
    """Sends requests through one transport and classifies the answers."""

    def __init__(
        self,
        transport: Transport,
        *,
        default_headers: Mapping[str, str] | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._transport = transport
        self._default_headers = dict(default_headers or {})
        self._logger = (logger or create_logger()).child("executor")

    @property
    def transport(self) -> Transport:
        return self._transport

    def build_request(self, request: Request, *, upgrade: bool = False) -> httpx.Request:
        headers = httpx.Headers(self._default_headers)
        if request.headers:
            headers.update(request.headers)
        if upgrade:
            headers["Connection"] = "Upgrade"
            headers["Upgrade"] = "tcp"
        # The domain socket backend needs an empty Host, TCP daemons ignore it
        headers["Host"] = ""

        content: RequestContent | None = None
        if request.body is not None:
            content, content_type = request.body
            headers["Content-Type"] = content_type

        return self._transport.client.build_request(
            request.method.upper(),
            self._transport.build_url(request.path),
            content=content,
            headers=headers,
        )

    def send(self, request: Request) -> httpx.Response:
        """Send ``request`` and return the success response with its body unread."""
        response = self._transport.send(self.build_request(request))
        return self._classify(response)

    def execute(
        self,
        method: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return self.send(Request(method, path, body=body, headers=headers))

    def request(
        self,
        method: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Make a request and return the whole response body as text."""
        response = self.execute(method, path, body=body, headers=headers)
        raw = _read_fully(response)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SerializationError(f"Response body is not valid UTF-8: {exc}", context=path) from exc

    def stream(
        self,
        method: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ChunkStream:
        response = self.execute(method, path, body=body, headers=headers)
        return ChunkStream(response, logger=self._logger)

    def upgrade(
        self,
        method: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> UpgradeChannel:
        """Ask the engine to switch protocols and hand back the raw connection."""
        built = self.build_request(Request(method, path, body=body, headers=headers), upgrade=True)
        response = self._transport.send(built)
        if response.status_code != SWITCHING_PROTOCOLS:
            status = response.status_code
            response.close()
            self._logger.debug("Upgrade of %s rejected with status=%s", path, status)
            raise UpgradeRejected(status, context=path)
        return UpgradeChannel(response, logger=self._logger)

    def close(self) -> None:
        self._transport.close()

    def _classify(self, response: httpx.Response) -> httpx.Response:
        status = response.status_code
        if status in SUCCESS_STATUSES:
            return response

        body_text = _read_fully(response).decode("utf-8", errors="replace")
        message = extract_error_message(body_text) or response.reason_phrase or UNKNOWN_ERROR
        self._logger.debug("Engine fault status=%s message=%s", status, message)
        raise Fault(status, message, context=body_text)


def _read_fully(response: httpx.Response) -> bytes:
    try:
        return response.read()
    except httpx.TransportError as exc:
        raise NetworkError(f"Failed reading response body: {exc}", context=str(response.url)) from exc
    finally:
        response.close()


__all__ = [
    "Body",
    "JSON_CONTENT",
    "Request",
    "RequestExecutor",
    "SUCCESS_STATUSES",
    "TAR_CONTENT",
]
