import struct

import pytest

from webpmux.exceptions import CodecError
from webpmux.parsers.chunks import ALPHChunk, EXIFChunk, VP8Chunk, VP8LChunk
from webpmux.parsers.codecs.image.bitstream_header import (
    parse_alpha_header,
    probe_bitstream,
    probe_vp8,
    probe_vp8l,
)

from tests.builders import VP8_KEYFRAME, VP8L_HEADER


def test_probe_vp8_keyframe():
    header = probe_vp8(VP8Chunk(VP8_KEYFRAME))
    assert (header.width, header.height) == (16, 8)
    assert header.show_frame
    assert header.version == 0
    assert header.first_partition_size == 10
    assert header.horizontal_scale == 0 and header.vertical_scale == 0
    assert not header.lossless


def test_probe_vp8_scale_bits():
    data = VP8_KEYFRAME[:6] + struct.pack("<HH", 16 | (1 << 14), 8 | (3 << 14))
    header = probe_vp8(VP8Chunk(data))
    assert (header.width, header.height) == (16, 8)
    assert (header.horizontal_scale, header.vertical_scale) == (1, 3)


def test_probe_vp8_rejects_interframe():
    with pytest.raises(CodecError):
        probe_vp8(VP8Chunk(b"\x01" + VP8_KEYFRAME[1:]))


def test_probe_vp8_rejects_bad_start_code():
    with pytest.raises(CodecError):
        probe_vp8(VP8Chunk(VP8_KEYFRAME[:3] + b"\x00\x00\x00" + VP8_KEYFRAME[6:]))


def test_probe_vp8_short_data():
    with pytest.raises(CodecError):
        probe_vp8(VP8Chunk(VP8_KEYFRAME[:5]))


def test_probe_vp8l():
    header = probe_vp8l(VP8LChunk(VP8L_HEADER))
    assert (header.width, header.height) == (16, 8)
    assert header.has_alpha
    assert header.lossless


def test_probe_vp8l_rejects_bad_signature():
    with pytest.raises(CodecError):
        probe_vp8l(VP8LChunk(b"\x2e" + VP8L_HEADER[1:]))


def test_probe_vp8l_rejects_unknown_version():
    with pytest.raises(CodecError):
        probe_vp8l(VP8LChunk(b"\x2f" + struct.pack("<I", 1 << 29)))


def test_alpha_header_fields():
    # reserved=0, pre-processing=1, filtering=2 (vertical), compression=1
    header = parse_alpha_header(ALPHChunk(bytes([0b00011001]) + b"\x00"))
    assert (header.preprocessing, header.filtering, header.compression) == (1, 2, 1)
    assert header.to_dict()["filtering"] == "vertical"


def test_alpha_header_rejects_unknown_compression():
    with pytest.raises(CodecError):
        parse_alpha_header(ALPHChunk(b"\x03"))


def test_empty_alpha_chunk():
    with pytest.raises(CodecError):
        parse_alpha_header(ALPHChunk(b""))


def test_probe_bitstream_dispatch():
    assert probe_bitstream(VP8LChunk(VP8L_HEADER)).lossless
    assert not probe_bitstream(VP8Chunk(VP8_KEYFRAME)).lossless
    with pytest.raises(TypeError):
        probe_bitstream(EXIFChunk(b""))
