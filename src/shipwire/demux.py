"""Decoder for the engine's multiplexed stdin/stdout/stderr framing.

Every frame is an 8 byte header followed by its payload::

    [tag:1][reserved:3][length:4, big endian][payload:length]

Tags 0, 1 and 2 name stdin, stdout and stderr. Reserved bytes are ignored on
read and written as zero.
"""

from __future__ import annotations

import struct
from collections import deque
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Iterator

from .errors import InvalidFrameError, ShipwireError, TruncatedStreamError
from .logger import BoundLogger, create_logger

HEADER_SIZE = 8
_HEADER = struct.Struct(">B3xI")


class StreamTag(IntEnum):
    STDIN = 0
    STDOUT = 1
    STDERR = 2


@dataclass(frozen=True)
class Frame:
    tag: StreamTag
    payload: bytes

    def as_text(self, encoding: str = "utf-8") -> str:
        """Payload decoded leniently; output may split multibyte characters."""
        return self.payload.decode(encoding, errors="replace")


@dataclass(frozen=True)
class DemuxState:
    """``tag is None`` while awaiting a header, else awaiting ``remaining`` payload bytes."""

    tag: StreamTag | None = None
    remaining: int = 0

    @property
    def awaiting_header(self) -> bool:
        return self.tag is None


AWAITING_HEADER = DemuxState()


def parse_header(header: bytes) -> tuple[StreamTag, int]:
    raw_tag, length = _HEADER.unpack(header)
    try:
        tag = StreamTag(raw_tag)
    except ValueError as exc:
        raise InvalidFrameError(f"Unknown stream tag {raw_tag}", context=header) from exc
    return tag, length


def encode_frame(tag: StreamTag | int, payload: bytes) -> bytes:
    return _HEADER.pack(int(tag), len(payload)) + payload


class FrameDemultiplexer:
    """Splits a chunked byte stream into whole ``Frame`` values.

    Frames come out identical however the input happens to be chunked. A frame
    is only surfaced once its header and its full payload have arrived; if the
    input ends with a partial frame buffered a TruncatedStreamError is raised
    instead. Closing the demultiplexer closes its source.
    """

    def __init__(self, chunks: Iterable[bytes], *, logger: BoundLogger | None = None) -> None:
        self._source = chunks
        self._chunks = iter(chunks)
        self._residual = bytearray()
        self._state = AWAITING_HEADER
        self._ready: deque[Frame] = deque()
        self._error: ShipwireError | None = None
        self._done = False
        self._closed = False
        self._logger = (logger or create_logger()).child("demux")

    def __iter__(self) -> Iterator[Frame]:
        return self

    def __next__(self) -> Frame:
        while not self._ready:
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
        return self._ready.popleft()

    def _feed(self, chunk: bytes) -> None:
        self._residual += chunk
        try:
            while True:
                if self._state.awaiting_header:
                    if len(self._residual) < HEADER_SIZE:
                        break
                    tag, length = parse_header(bytes(self._residual[:HEADER_SIZE]))
                    del self._residual[:HEADER_SIZE]
                    self._state = DemuxState(tag, length)
                else:
                    tag, remaining = self._state.tag, self._state.remaining
                    if len(self._residual) < remaining:
                        break
                    payload = bytes(self._residual[:remaining])
                    del self._residual[:remaining]
                    self._ready.append(Frame(tag, payload))
                    self._logger.trace("frame %s bytes=%d", tag.name, remaining)
                    self._state = AWAITING_HEADER
        except InvalidFrameError as exc:
            # Frames completed before the bad header are still delivered
            self._error = exc
            self._done = True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._done = True
        self._ready.clear()
        self._residual.clear()
        self._state = AWAITING_HEADER
        close = getattr(self._source, "close", None)
        if callable(close):
            close()

    def _finish(self) -> None:
        self._done = True
        if self._state.awaiting_header and not self._residual:
            return
        if self._state.awaiting_header:
            detail = f"{len(self._residual)} of {HEADER_SIZE} header bytes"
        else:
            detail = f"{len(self._residual)} of {self._state.remaining} payload bytes"
        self._residual.clear()
        self._state = AWAITING_HEADER
        self._error = TruncatedStreamError(f"Stream ended mid-frame after {detail}")

    def __enter__(self) -> "FrameDemultiplexer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "DemuxState",
    "Frame",
    "FrameDemultiplexer",
    "HEADER_SIZE",
    "StreamTag",
    "encode_frame",
    "parse_header",
]
