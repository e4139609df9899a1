from dataclasses import dataclass, asdict

from bitstring import ConstBitStream, ReadError

from webpmux.exceptions import CodecError
from webpmux.parsers.chunks import ALPHChunk, VP8Chunk, VP8LChunk

VP8_START_CODE = b"\x9d\x01\x2a"
VP8L_SIGNATURE = 0x2F

ALPHA_COMPRESSION = {0: "none", 1: "lossless"}
ALPHA_FILTERING = {0: "none", 1: "horizontal", 2: "vertical", 3: "gradient"}
ALPHA_PREPROCESSING = {0: "none", 1: "level reduction"}


@dataclass(frozen=True)
class VP8Header:
    width: int
    height: int
    horizontal_scale: int
    vertical_scale: int
    version: int
    show_frame: bool
    first_partition_size: int
    lossless = False
    has_alpha = False

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class VP8LHeader:
    width: int
    height: int
    has_alpha: bool
    version: int
    lossless = True

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class AlphaHeader:
    preprocessing: int
    filtering: int
    compression: int
    reserved: int

    def to_dict(self):
        return {
            "preprocessing": ALPHA_PREPROCESSING.get(self.preprocessing, self.preprocessing),
            "filtering": ALPHA_FILTERING[self.filtering],
            "compression": ALPHA_COMPRESSION.get(self.compression, self.compression),
            "reserved": self.reserved,
        }


def probe_vp8(chunk):
    """
    Parse the VP8 key frame header:
      3 bytes: frame tag (key frame bit, version, show_frame, first partition size)
      3 bytes: start code 0x9D 0x01 0x2A
      2 bytes: 14-bit width + 2-bit horizontal scale
      2 bytes: 14-bit height + 2-bit vertical scale
    """
    bs = ConstBitStream(bytes=chunk.data)
    try:
        frame_tag = bs.read("uintle:24")
        start_code = bs.read("bytes:3")
        width_field = bs.read("uintle:16")
        height_field = bs.read("uintle:16")
    except ReadError as exc:
        raise CodecError("VP8 bitstream too short for a frame header", tag=chunk.tag) from exc

    if frame_tag & 1:
        raise CodecError("VP8 bitstream does not start with a key frame", tag=chunk.tag)
    if start_code != VP8_START_CODE:
        raise CodecError(f"invalid VP8 start code {start_code.hex()}", offset=3, tag=chunk.tag)

    return VP8Header(
        width=width_field & 0x3FFF,
        height=height_field & 0x3FFF,
        horizontal_scale=width_field >> 14,
        vertical_scale=height_field >> 14,
        version=(frame_tag >> 1) & 0x7,
        show_frame=bool((frame_tag >> 4) & 1),
        first_partition_size=frame_tag >> 5,
    )


def probe_vp8l(chunk):
    """
    Parse the VP8L header:
      1 byte: signature 0x2F
      4 bytes: 14-bit width - 1, 14-bit height - 1, alpha hint bit, 3-bit version
    """
    bs = ConstBitStream(bytes=chunk.data)
    try:
        signature = bs.read("uint:8")
        bits = bs.read("uintle:32")
    except ReadError as exc:
        raise CodecError("VP8L bitstream too short for a header", tag=chunk.tag) from exc

    if signature != VP8L_SIGNATURE:
        raise CodecError(f"invalid VP8L signature 0x{signature:02x}", offset=0, tag=chunk.tag)
    version = bits >> 29
    if version != 0:
        raise CodecError(f"unsupported VP8L version {version}", offset=1, tag=chunk.tag)

    return VP8LHeader(
        width=(bits & 0x3FFF) + 1,
        height=((bits >> 14) & 0x3FFF) + 1,
        has_alpha=bool((bits >> 28) & 1),
        version=version,
    )


def parse_alpha_header(chunk):
    """ALPH header byte, most significant bits first: Rsv(2) P(2) F(2) C(2)."""
    bs = ConstBitStream(bytes=chunk.data)
    try:
        reserved, preprocessing, filtering, compression = bs.readlist("uint:2, uint:2, uint:2, uint:2")
    except ReadError as exc:
        raise CodecError("empty ALPH chunk", tag=chunk.tag) from exc
    if compression not in ALPHA_COMPRESSION:
        raise CodecError(f"unknown alpha compression method {compression}", offset=0, tag=chunk.tag)
    return AlphaHeader(preprocessing=preprocessing, filtering=filtering,
                       compression=compression, reserved=reserved)


def probe_bitstream(chunk):
    if isinstance(chunk, VP8Chunk):
        return probe_vp8(chunk)
    if isinstance(chunk, VP8LChunk):
        return probe_vp8l(chunk)
    if isinstance(chunk, ALPHChunk):
        return parse_alpha_header(chunk)
    raise TypeError(f"{type(chunk).__name__} does not carry picture data")
