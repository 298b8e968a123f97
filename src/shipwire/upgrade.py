"""Raw duplex connections obtained through an HTTP protocol upgrade."""

from __future__ import annotations

from typing import Any, Iterator

import httpcore
import httpx

from .demux import FrameDemultiplexer
from .errors import NetworkError
from .logger import BoundLogger, create_logger

DEFAULT_READ_SIZE = 64 * 1024

_IO_ERRORS = (httpcore.NetworkError, httpcore.TimeoutException, OSError)


class UpgradeChannel:
    """Bidirectional byte stream left behind by a ``101 Switching Protocols``.

    Writes go straight to the connection (interactive input). The read side
    yields raw buffers and is usually handed to ``frames()`` to split output
    channels apart. Closing the channel closes the connection; an upgraded
    connection is never returned to the pool.
    """

    def __init__(
        self,
        response: httpx.Response,
        *,
        read_size: int = DEFAULT_READ_SIZE,
        logger: BoundLogger | None = None,
    ) -> None:
        stream: Any = response.extensions.get("network_stream")
        if stream is None:
            response.close()
            raise NetworkError("Transport did not expose the upgraded connection", context=str(response.url))
        self._response = response
        self._stream = stream
        self._read_size = read_size
        self._closed = False
        self._logger = (logger or create_logger()).child("upgrade")

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, max_bytes: int | None = None) -> bytes:
        """Next buffer from the connection, ``b""`` once the engine hangs up."""
        if self._closed:
            return b""
        try:
            data = self._stream.read(max_bytes or self._read_size)
        except _IO_ERRORS as exc:
            self.close()
            raise NetworkError(f"Upgraded connection read failed: {exc}") from exc
        self._logger.trace("read bytes=%d", len(data))
        return data

    def write(self, data: bytes) -> None:
        if self._closed:
            raise NetworkError("Upgraded connection is closed")
        try:
            self._stream.write(data)
        except _IO_ERRORS as exc:
            self.close()
            raise NetworkError(f"Upgraded connection write failed: {exc}") from exc
        self._logger.trace("wrote bytes=%d", len(data))

    def __iter__(self) -> Iterator[bytes]:
        while True:
            data = self.read()
            if not data:
                return
            yield data

    def frames(self) -> FrameDemultiplexer:
        """Demultiplex the read side; closing the result closes this channel."""
        return FrameDemultiplexer(self, logger=self._logger)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.close()
        finally:
            self._response.close()
        self._logger.debug("Upgraded connection closed")

    def __enter__(self) -> "UpgradeChannel":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["DEFAULT_READ_SIZE", "UpgradeChannel"]
