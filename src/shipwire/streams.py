"""Lazy, pull-driven views over streaming response bodies."""

from __future__ import annotations

import codecs
import json
import re
from collections import deque
from typing import Any, Iterable, Iterator

import httpx

from .errors import NetworkError, SerializationError
from .logger import BoundLogger, create_logger

_WHITESPACE = re.compile(r"[ \t\n\r]*")


def _close_source(source: object) -> None:
    close = getattr(source, "close", None)
    if callable(close):
        close()


class ChunkStream:
    """Byte buffers of one response body, in arrival order.

    Nothing is read from the connection until the consumer asks for the next
    buffer. The stream is single pass; once exhausted, failed or closed it
    yields nothing more and the response is released.
    """

    def __init__(self, response: httpx.Response, *, logger: BoundLogger | None = None) -> None:
        self._response = response
        self._chunks = response.iter_bytes()
        self._closed = False
        self._logger = (logger or create_logger()).child("chunks")

    @property
    def response(self) -> httpx.Response:
        return self._response

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "ChunkStream":
        return self

    def __next__(self) -> bytes:
        if self._closed:
            raise StopIteration
        try:
            while True:
                chunk = next(self._chunks)
                if chunk:
                    self._logger.trace("chunk bytes=%d", len(chunk))
                    return chunk
        except StopIteration:
            self.close()
            raise
        except httpx.DecodingError as exc:
            self.close()
            raise SerializationError(f"Cannot decode response body: {exc}") from exc
        except httpx.TransportError as exc:
            self.close()
            raise NetworkError(f"Connection failed mid-stream: {exc}") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._chunks.close()
        self._response.close()

    def __enter__(self) -> "ChunkStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class JSONValueStream:
    """Top-level JSON values decoded from a sequence of byte buffers.

    By default every buffer must hold whole documents: each one is parsed on
    its own and a document cut by a buffer boundary fails the stream with a
    SerializationError. With ``reassemble=True`` an incomplete trailing
    document is carried over to the next buffer and the stream only fails if
    it ends inside a document. A bare scalar that touches the end of a buffer
    is also held back, since ``12`` may continue as ``123``.
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        *,
        reassemble: bool = False,
        logger: BoundLogger | None = None,
    ) -> None:
        self._source = chunks
        self._chunks = iter(chunks)
        self._reassemble = reassemble
        self._decoder = json.JSONDecoder()
        self._text = codecs.getincrementaldecoder("utf-8")()
        self._residual = ""
        self._pending: deque[Any] = deque()
        self._error: SerializationError | None = None
        self._done = False
        self._closed = False
        self._logger = (logger or create_logger()).child("json")

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "JSONValueStream":
        return self

    def __next__(self) -> Any:
        while not self._pending:
            if self._error is not None:
                error, self._error = self._error, None
                self.close()
                raise error
            if self._done:
                raise StopIteration
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._finish()
                continue
            except Exception:
                self.close()
                raise
            self._feed(chunk)
        return self._pending.popleft()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._done = True
        self._pending.clear()
        _close_source(self._source)

    def __enter__(self) -> "JSONValueStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _feed(self, chunk: bytes) -> None:
        try:
            text = self._text.decode(chunk, final=not self._reassemble)
        except UnicodeDecodeError as exc:
            self._error = SerializationError(f"Stream is not valid UTF-8: {exc}", context=chunk)
            return

        values, rest, exc = self._scan(self._residual + text, final=not self._reassemble)
        self._pending.extend(values)
        self._logger.trace("decoded %d values from %d bytes", len(values), len(chunk))
        if exc is None or self._reassemble:
            self._residual = rest
        else:
            self._residual = ""
            self._error = SerializationError(f"Malformed or fragmented JSON: {exc}", context=rest)

    def _finish(self) -> None:
        self._done = True
        tail = self._residual + self._text.decode(b"", final=True)
        self._residual = ""
        if not tail.strip():
            return
        values, rest, exc = self._scan(tail)
        self._pending.extend(values)
        if exc is not None:
            self._error = SerializationError("Stream ended inside a JSON document", context=rest)

    def _scan(
        self,
        text: str,
        *,
        final: bool = True,
    ) -> tuple[list[Any], str, json.JSONDecodeError | None]:
        values: list[Any] = []
        idx = 0
        end = len(text)
        while True:
            idx = _WHITESPACE.match(text, idx).end()  # type: ignore[union-attr]
            if idx == end:
                return values, "", None
            start = idx
            try:
                value, idx = self._decoder.raw_decode(text, idx)
            except json.JSONDecodeError as exc:
                return values, text[idx:], exc
            if idx == end and not final and not isinstance(value, (dict, list, str)):
                return values, text[start:], None
            values.append(value)


class LineStream:
    """Newline-delimited text records, reassembled across buffer boundaries."""

    def __init__(self, chunks: Iterable[bytes], *, logger: BoundLogger | None = None) -> None:
        self._source = chunks
        self._chunks = iter(chunks)
        self._text = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._lines: deque[str] = deque()
        self._done = False
        self._closed = False
        self._logger = (logger or create_logger()).child("lines")

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        while not self._lines:
            if self._done:
                raise StopIteration
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._done = True
                tail = self._buffer + self._decode(b"", final=True)
                self._buffer = ""
                if tail:
                    self._lines.append(tail.rstrip("\r"))
                continue
            except Exception:
                self.close()
                raise
            self._split(self._buffer + self._decode(chunk))
            self._logger.trace("split %d lines from %d bytes", len(self._lines), len(chunk))
        return self._lines.popleft()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._done = True
        self._lines.clear()
        _close_source(self._source)

    def __enter__(self) -> "LineStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _decode(self, chunk: bytes, *, final: bool = False) -> str:
        try:
            return self._text.decode(chunk, final=final)
        except UnicodeDecodeError as exc:
            self.close()
            raise SerializationError(f"Stream is not valid UTF-8: {exc}") from exc

    def _split(self, text: str) -> None:
        *complete, self._buffer = text.split("\n")
        self._lines.extend(line.rstrip("\r") for line in complete)


__all__ = ["ChunkStream", "JSONValueStream", "LineStream"]
