"""High-level entry point for talking to a container engine."""

from __future__ import annotations

import json
from typing import Any, Iterator, Mapping
from urllib.parse import urlencode

import httpx

from .config import ClientConfig, ConnectionDescriptor, resolve_descriptor
from .demux import FrameDemultiplexer
from .errors import SerializationError
from .executor import JSON_CONTENT, Body, RequestExecutor
from .logger import BoundLogger, LogLevel, create_logger
from .parser import parse_json
from .streams import ChunkStream, JSONValueStream, LineStream
from .transport import Transport, select_transport
from .types import ExecuteResult
from .upgrade import UpgradeChannel


def json_body(payload: Any) -> Body:
    return json.dumps(payload).encode("utf-8"), JSON_CONTENT


def with_query(path: str, query: Mapping[str, Any] | None) -> str:
    if not query:
        return path
    params = {key: value for key, value in query.items() if value is not None}
    if not params:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{urlencode(params)}"


class EngineClient:
    """Primary entry point for interacting with a container engine.

    Takes a ``ClientConfig`` or the same options as keywords. Note that
    ``tls_verify=False`` disables server verification only when
    ``tls_cert_dir`` is set; a plain ``https://`` endpoint is always verified.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        endpoint: str | None = None,
        tls_cert_dir: str | None = None,
        tls_verify: bool = False,
        timeout: float | None = None,
        default_headers: Mapping[str, str] | None = None,
        transport: Transport | None = None,
        http_client: httpx.Client | None = None,
        logger: object | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        options = config or ClientConfig(
            endpoint=endpoint,
            tls_cert_dir=tls_cert_dir,
            tls_verify=tls_verify,
            timeout=timeout,
            default_headers=default_headers,
            logger=logger,
            log_level=log_level,
        )
        self._logger = create_logger(logger=options.logger, level=options.log_level)
        self.descriptor: ConnectionDescriptor = resolve_descriptor(options)
        self._logger.debug("Initializing EngineClient for %s", self.descriptor)
        self._transport = transport or select_transport(
            self.descriptor,
            timeout=options.timeout,
            client=http_client,
            logger=self._logger,
        )
        self._executor = RequestExecutor(
            self._transport,
            default_headers=options.default_headers,
            logger=self._logger,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "EngineClient":
        """Client for the engine named by DOCKER_HOST, falling back to the local socket."""
        return cls(ClientConfig.from_env(environ, **overrides))

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    @property
    def logger(self) -> BoundLogger:
        return self._logger

    # Daemon-level calls

    def ping(self) -> str:
        return self.get("/_ping")

    def version(self) -> Any:
        return self.get_json("/version")

    def info(self) -> Any:
        return self.get_json("/info")

    def events(self, query: Mapping[str, Any] | None = None) -> Iterator[Any]:
        """Follow the engine's event feed, one decoded JSON object per line."""
        lines = LineStream(self.stream_get(with_query("/events", query)), logger=self._logger)
        try:
            for line in lines:
                if not line.strip():
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError as exc:
                    raise SerializationError(f"Malformed event: {exc}", context=line) from exc
        finally:
            lines.close()

    # Buffered requests

    def request(
        self,
        method: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        return self._executor.request(method, path, body=body, headers=headers)

    def request_safe(
        self,
        method: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ExecuteResult[str]:
        try:
            data = self.request(method, path, body=body, headers=headers)
            return ExecuteResult(ok=True, data=data)
        except Exception as exc:
            return ExecuteResult(ok=False, error=exc)

    def get(self, path: str, headers: Mapping[str, str] | None = None) -> str:
        return self.request("GET", path, headers=headers)

    def post(self, path: str, body: Body | None = None, headers: Mapping[str, str] | None = None) -> str:
        return self.request("POST", path, body=body, headers=headers)

    def put(self, path: str, body: Body | None = None, headers: Mapping[str, str] | None = None) -> str:
        return self.request("PUT", path, body=body, headers=headers)

    def delete(self, path: str, headers: Mapping[str, str] | None = None) -> str:
        return self.request("DELETE", path, headers=headers)

    def get_json(self, path: str) -> Any:
        return parse_json(self.get(path), context=path)

    def post_json(self, path: str, body: Body | None = None, headers: Mapping[str, str] | None = None) -> Any:
        return parse_json(self.post(path, body=body, headers=headers), context=path)

    def delete_json(self, path: str) -> Any:
        return parse_json(self.delete(path), context=path)

    # Streaming requests

    def stream_get(self, path: str, headers: Mapping[str, str] | None = None) -> ChunkStream:
        return self._executor.stream("GET", path, headers=headers)

    def stream_post(
        self,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ChunkStream:
        return self._executor.stream("POST", path, body=body, headers=headers)

    def stream_values(
        self,
        method: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
        *,
        reassemble: bool = False,
    ) -> JSONValueStream:
        """JSON values from a streaming endpoint (pulls, builds, stats)."""
        chunks = self._executor.stream(method, path, body=body, headers=headers)
        return JSONValueStream(chunks, reassemble=reassemble, logger=self._logger)

    def stream_frames(
        self,
        method: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> FrameDemultiplexer:
        """Multiplexed output (logs, exec start) split into stdout/stderr frames."""
        chunks = self._executor.stream(method, path, body=body, headers=headers)
        return FrameDemultiplexer(chunks, logger=self._logger)

    def stream_post_upgrade(self, path: str, body: Body | None = None) -> UpgradeChannel:
        return self._executor.upgrade("POST", path, body=body)

    def close(self) -> None:
        self._executor.close()

    def __enter__(self) -> "EngineClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["EngineClient", "json_body", "with_query"]
