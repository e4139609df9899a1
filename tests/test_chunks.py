import pytest

from webpmux.parsers.chunks import (
    ALPHChunk, ANIMChunk, ANMFChunk, EXIFChunk, ICCPChunk, UnknownChunk,
    VP8Chunk, VP8LChunk, VP8XChunk, WebPImage, XMPChunk, chunk_full_size,
)


@pytest.mark.parametrize("length", [0, 1, 2, 3, 10, 29, 30])
def test_full_size_pads_odd_payloads(length):
    chunk = VP8Chunk(b"\x00" * length)
    assert chunk.payload_size == length
    assert chunk.full_size == length + 8 + length % 2 == chunk_full_size(length)
    assert len(chunk.to_bytes()) == chunk.full_size


def test_unknown_chunk_serializes_with_pad():
    chunk = UnknownChunk(b"BLAH", bytes([1, 2, 3]))
    assert chunk.tag == b"BLAH"
    assert chunk.payload_size == 3
    assert chunk.to_bytes() == b"BLAH\x03\x00\x00\x00\x01\x02\x03\x00"


def test_unknown_chunk_requires_four_byte_tag():
    with pytest.raises(ValueError):
        UnknownChunk(b"BLA", b"")


def test_data_chunk_copies_payload():
    source = bytearray(b"\x01\x02")
    chunk = EXIFChunk(source)
    source[0] = 9
    assert chunk.data == b"\x01\x02"
    assert isinstance(chunk.data, bytes)


def test_chunks_are_immutable():
    chunk = VP8XChunk(flags=0x10, width=4, height=4)
    with pytest.raises(AttributeError):
        chunk.width = 5


def test_equality_depends_on_kind():
    assert ICCPChunk(b"x") == ICCPChunk(b"x")
    assert ICCPChunk(b"x") != XMPChunk(b"x")


def test_vp8x_layout_and_flags():
    chunk = VP8XChunk(flags=0x3E, width=640, height=1)
    assert chunk.raw_data == b"\x3e\x00\x00\x00" + (639).to_bytes(3, "little") + b"\x00\x00\x00"
    assert chunk.payload_size == 10
    assert chunk.has_icc and chunk.has_alpha and chunk.has_exif and chunk.has_xmp and chunk.has_animation


def test_vp8x_rejects_zero_dimension():
    with pytest.raises(ValueError):
        VP8XChunk(width=0, height=1)


def test_anim_layout():
    chunk = ANIMChunk(background_color=0xFF102030, loop_count=3)
    assert chunk.raw_data == b"\x30\x20\x10\xff\x03\x00"


def test_anmf_sizes_and_flags():
    frame = ANMFChunk(x=1, y=2, width=3, height=4, duration=100, flags=0x03,
                      sub_chunks=[ALPHChunk(b"\x00\x01\x02"), VP8Chunk(b"\x00" * 4)])
    assert frame.payload_size == 16 + 12 + 12
    assert len(frame.raw_data) == frame.payload_size
    assert frame.left == 2 and frame.top == 4
    assert not frame.blend
    assert frame.dispose_to_background
    assert isinstance(frame.sub_chunks, tuple)
    assert frame.bitstream == VP8Chunk(b"\x00" * 4)
    assert frame.alpha == ALPHChunk(b"\x00\x01\x02")


def test_anmf_rejects_top_level_chunk_kinds():
    with pytest.raises(TypeError):
        ANMFChunk(sub_chunks=[EXIFChunk(b"")])


def test_simple_image_holds_one_bitstream():
    image = WebPImage.simple(VP8LChunk(b"\x2f"))
    assert not image.is_extended
    assert image.vp8x is None
    assert image.bitstream == VP8LChunk(b"\x2f")
    assert image.payload_size == 4 + 10


def test_single_chunk_image_must_be_bitstream():
    with pytest.raises(ValueError):
        WebPImage((VP8XChunk(),))
    with pytest.raises(ValueError):
        WebPImage((ICCPChunk(b""),))


def test_extended_image_must_start_with_vp8x():
    with pytest.raises(ValueError):
        WebPImage((ALPHChunk(b""), VP8Chunk(b"")))


def test_extended_image_accessors():
    image = WebPImage((VP8XChunk(flags=0x2C), ICCPChunk(b"icc"), VP8Chunk(b"v"), EXIFChunk(b"ex"), XMPChunk(b"<x/>")))
    assert image.is_extended
    assert image.metadata == {"icc": b"icc", "exif": b"ex", "xmp": b"<x/>"}
    assert image.find(b"EXIF") == EXIFChunk(b"ex")
    assert image.find(b"ANIM") is None
    assert image.frames == []
    info = image.to_dict()
    assert info["tag"] == "RIFF"
    assert [chunk["tag"] for chunk in info["chunks"]] == ["VP8X", "ICCP", "VP8 ", "EXIF", "XMP "]
