import io

import pytest

from webpmux.exceptions import TruncationError
from webpmux.parsers.byte_reader import ByteReader


class TrickleStream(io.RawIOBase):
    """Returns at most one byte per read, like a slow socket."""

    def __init__(self, data):
        self.data = data
        self.pos = 0

    def readable(self):
        return True

    def read(self, n=-1):
        chunk = self.data[self.pos:self.pos + min(n, 1)]
        self.pos += len(chunk)
        return chunk


def test_fixed_width_reads_are_little_endian():
    reader = ByteReader(b"\x01\x02\x03\x04" b"\x05\x06\x07" b"\x08\x09" b"\xff" b"\xfe\xff\xff\xff")
    assert reader.read_uint32() == 0x04030201
    assert reader.read_uint24() == 0x070605
    assert reader.read_uint16() == 0x0908
    assert reader.read_int8() == -1
    assert reader.read_int32() == -2
    assert reader.position == 14


def test_uint32_does_not_go_negative():
    assert ByteReader(b"\xff\xff\xff\xff").read_uint32() == 0xFFFFFFFF


def test_read_1based():
    reader = ByteReader(b"\x00\x00\x00" b"\xff\xff\xff" b"\x0f\x00\x00")
    assert reader.read_1based() == 1
    assert reader.read_1based() == 1 << 24
    assert reader.read_1based() == 16


def test_fourcc_is_not_validated():
    assert ByteReader(b"\x00ab ").read_fourcc() == b"\x00ab "


def test_short_read_raises_truncation():
    reader = ByteReader(b"abc")
    with pytest.raises(TruncationError) as excinfo:
        reader.read_n_bytes(4)
    assert excinfo.value.offset == 3


def test_skip_at_end_raises_truncation():
    reader = ByteReader(b"a")
    reader.read_uint8()
    with pytest.raises(TruncationError):
        reader.skip_1_byte()


def test_short_reads_from_stream_are_gathered():
    reader = ByteReader(TrickleStream(b"RIFF\x10\x00\x00\x00"))
    assert reader.read_fourcc() == b"RIFF"
    assert reader.read_uint32() == 16
    assert reader.at_eof()


def test_at_eof_detects_leftover_byte():
    reader = ByteReader(b"xy")
    reader.read_uint8()
    assert not reader.at_eof()
    assert reader.at_eof()


def test_rejects_non_stream():
    with pytest.raises(TypeError):
        ByteReader(42)


def test_payload_does_not_alias_input_buffer():
    source = bytearray(b"abcd")
    data = ByteReader(source).read_n_bytes(4)
    source[0] = 0
    assert data == b"abcd"
