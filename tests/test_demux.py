import pytest

from shipwire import Frame, FrameDemultiplexer, StreamTag, TruncatedStreamError, encode_frame
from shipwire.demux import HEADER_SIZE, parse_header
from shipwire.errors import InvalidFrameError


FRAMES = [
    (StreamTag.STDOUT, b"hello\n"),
    (StreamTag.STDERR, b"warning: disk almost full\n"),
    (StreamTag.STDOUT, b""),
    (StreamTag.STDIN, b"echo"),
    (StreamTag.STDOUT, bytes(range(256)) * 3),
]


def wire() -> bytes:
    return b"".join(encode_frame(tag, payload) for tag, payload in FRAMES)


def expected() -> list[Frame]:
    return [Frame(tag, payload) for tag, payload in FRAMES]


def decode(chunks) -> list[Frame]:
    return list(FrameDemultiplexer(chunks))


class ClosingSource:
    def __init__(self, chunks: list[bytes]) -> None:
        self._chunks = chunks
        self.pulled = 0
        self.closed = False

    def __iter__(self):
        for chunk in self._chunks:
            self.pulled += 1
            yield chunk

    def close(self) -> None:
        self.closed = True


def test_header_layout_is_big_endian_with_reserved_bytes() -> None:
    header = encode_frame(StreamTag.STDERR, b"x" * 258)[:HEADER_SIZE]
    assert header == b"\x02\x00\x00\x00\x00\x00\x01\x02"
    assert parse_header(b"\x01\xff\xff\xff\x00\x00\x00\x05") == (StreamTag.STDOUT, 5)


def test_single_chunk_decodes_all_frames() -> None:
    assert decode([wire()]) == expected()


def test_byte_at_a_time_matches_single_chunk() -> None:
    data = wire()
    assert decode([data[i : i + 1] for i in range(len(data))]) == expected()


def test_every_two_way_split_matches_single_chunk() -> None:
    data = wire()
    for offset in range(len(data) + 1):
        assert decode([data[:offset], data[offset:]]) == expected(), offset


@pytest.mark.parametrize("size", [3, 7, 8, 9, 13, 64])
def test_fixed_size_chunking_is_irrelevant(size: int) -> None:
    data = wire()
    assert decode([data[i : i + size] for i in range(0, len(data), size)]) == expected()


def test_empty_stream_ends_cleanly() -> None:
    assert decode([]) == []
    assert decode([b""]) == []


def test_partial_header_raises_truncated() -> None:
    demux = FrameDemultiplexer([b"\x01\x00\x00\x00\x00"])
    with pytest.raises(TruncatedStreamError):
        next(demux)
    assert list(demux) == []


def test_short_payload_raises_truncated_without_partial_frame() -> None:
    data = encode_frame(StreamTag.STDOUT, b"first") + encode_frame(StreamTag.STDERR, b"second")[:-2]
    demux = FrameDemultiplexer([data])
    assert next(demux) == Frame(StreamTag.STDOUT, b"first")
    with pytest.raises(TruncatedStreamError):
        next(demux)
    assert list(demux) == []


def test_unknown_tag_is_rejected_after_earlier_frames() -> None:
    data = encode_frame(StreamTag.STDOUT, b"ok") + b"\x07\x00\x00\x00\x00\x00\x00\x01z"
    demux = FrameDemultiplexer([data])
    assert next(demux).payload == b"ok"
    with pytest.raises(InvalidFrameError):
        next(demux)


def test_frames_are_pulled_on_demand() -> None:
    source = ClosingSource([encode_frame(StreamTag.STDOUT, b"a"), encode_frame(StreamTag.STDOUT, b"b")])
    demux = FrameDemultiplexer(source)
    assert next(demux).payload == b"a"
    assert source.pulled == 1


def test_close_mid_stream_releases_source() -> None:
    source = ClosingSource([wire()[:20], wire()[20:]])
    demux = FrameDemultiplexer(source)
    next(demux)
    demux.close()
    assert source.closed is True
    assert list(demux) == []


def test_frame_text_is_lenient() -> None:
    assert Frame(StreamTag.STDOUT, b"caf\xc3").as_text() == "caf�"
