import struct
from dataclasses import dataclass, field
from typing import ClassVar, Tuple

RIFF = b"RIFF"
WEBP = b"WEBP"
VP8X = b"VP8X"
ICCP = b"ICCP"
ANIM = b"ANIM"
ANMF = b"ANMF"
ALPH = b"ALPH"
VP8 = b"VP8 "
VP8L = b"VP8L"
EXIF = b"EXIF"
XMP = b"XMP "

CHUNK_HEADER_SIZE = 8        # fourcc + UInt32 length
VP8X_PAYLOAD_SIZE = 10
ANIM_PAYLOAD_SIZE = 6
ANMF_HEADER_SIZE = 16
MAX_UINT24 = 0xFFFFFF
MAX_UINT32 = 0xFFFFFFFF
MAX_DIMENSION = MAX_UINT24 + 1

# VP8X flag bits (first payload byte)
FLAG_ANIMATION = 0x02
FLAG_XMP = 0x04
FLAG_EXIF = 0x08
FLAG_ALPHA = 0x10
FLAG_ICC = 0x20

# ANMF flag bits
ANMF_DISPOSE = 0x01
ANMF_NO_BLEND = 0x02


def padded_size(size):
    return size + (size & 1)


def chunk_full_size(payload_size):
    """On-wire size of a chunk: header, payload and the pad byte for odd lengths."""
    return CHUNK_HEADER_SIZE + padded_size(payload_size)


def frame_chunk(tag, payload):
    """Serialize one chunk: tag, UInt32 length, payload and the optional zero pad byte."""
    return tag + struct.pack("<I", len(payload)) + payload + b"\x00" * (len(payload) & 1)


def _pack_uint24(value):
    return value.to_bytes(3, "little")


def _check_range(name, value, low, high):
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not low <= value <= high:
        raise ValueError(f"{name} must be within [{low}, {high}], got {value}")


def _as_bytes(name, value):
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like, got {type(value).__name__}")
    return bytes(value)


class Chunk:
    """
    Common behaviour of every chunk kind.

    Subclasses provide ``raw_data``: the exact payload bytes, without the
    8-byte header and without the pad byte.
    """
    TAG: ClassVar[bytes] = b""

    @property
    def tag(self):
        return self.TAG

    @property
    def raw_data(self):
        raise NotImplementedError("Subclasses should implement this property")

    @property
    def payload_size(self):
        return len(self.raw_data)

    @property
    def full_size(self):
        return chunk_full_size(self.payload_size)

    def to_bytes(self):
        return frame_chunk(self.tag, self.raw_data)

    def to_dict(self):
        return {
            "tag": self.tag.decode("latin-1"),
            "payload_size": self.payload_size,
            "full_size": self.full_size,
        }


@dataclass(frozen=True, repr=False)
class DataChunk(Chunk):
    """A chunk whose payload is kept as opaque bytes."""
    data: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "data", _as_bytes("data", self.data))

    @property
    def raw_data(self):
        return self.data

    def __repr__(self):
        return f"{type(self).__name__}(payload_size={len(self.data)})"


class MetadataChunk(DataChunk):
    pass


class ICCPChunk(MetadataChunk):
    TAG = ICCP


class EXIFChunk(MetadataChunk):
    TAG = EXIF


class XMPChunk(MetadataChunk):
    TAG = XMP


class ALPHChunk(DataChunk):
    TAG = ALPH


class BitstreamChunk(DataChunk):
    """VP8 or VP8L picture data."""
    lossless: ClassVar[bool] = False


class VP8Chunk(BitstreamChunk):
    TAG = VP8


class VP8LChunk(BitstreamChunk):
    TAG = VP8L
    lossless = True


@dataclass(frozen=True, repr=False)
class UnknownChunk(Chunk):
    """A chunk with an unrecognized tag, kept verbatim."""
    fourcc: bytes
    data: bytes = b""

    def __post_init__(self):
        fourcc = _as_bytes("fourcc", self.fourcc)
        if len(fourcc) != 4:
            raise ValueError(f"fourcc must be 4 bytes long, got {len(fourcc)}")
        object.__setattr__(self, "fourcc", fourcc)
        object.__setattr__(self, "data", _as_bytes("data", self.data))

    @property
    def tag(self):
        return self.fourcc

    @property
    def raw_data(self):
        return self.data

    def __repr__(self):
        return f"UnknownChunk(fourcc={self.fourcc!r}, payload_size={len(self.data)})"


@dataclass(frozen=True)
class VP8XChunk(Chunk):
    """
    Extended format header.

    ``flags`` is the raw 32-bit value of the first four payload bytes; only
    the low byte carries the feature bits, the rest is reserved and kept
    as read. ``width`` and ``height`` are the canvas size in pixels.
    """
    TAG = VP8X
    flags: int = 0
    width: int = 1
    height: int = 1

    def __post_init__(self):
        _check_range("flags", self.flags, 0, MAX_UINT32)
        _check_range("width", self.width, 1, MAX_DIMENSION)
        _check_range("height", self.height, 1, MAX_DIMENSION)

    @property
    def raw_data(self):
        return (struct.pack("<I", self.flags)
                + _pack_uint24(self.width - 1)
                + _pack_uint24(self.height - 1))

    @property
    def has_icc(self):
        return bool(self.flags & FLAG_ICC)

    @property
    def has_alpha(self):
        return bool(self.flags & FLAG_ALPHA)

    @property
    def has_exif(self):
        return bool(self.flags & FLAG_EXIF)

    @property
    def has_xmp(self):
        return bool(self.flags & FLAG_XMP)

    @property
    def has_animation(self):
        return bool(self.flags & FLAG_ANIMATION)

    def to_dict(self):
        info = super().to_dict()
        info.update({
            "flags": self.flags,
            "width": self.width,
            "height": self.height,
            "icc": self.has_icc,
            "alpha": self.has_alpha,
            "exif": self.has_exif,
            "xmp": self.has_xmp,
            "animation": self.has_animation,
        })
        return info


@dataclass(frozen=True)
class ANIMChunk(Chunk):
    """Global animation parameters. The background colour is stored in B, G, R, A byte order."""
    TAG = ANIM
    background_color: int = 0
    loop_count: int = 0

    def __post_init__(self):
        _check_range("background_color", self.background_color, 0, MAX_UINT32)
        _check_range("loop_count", self.loop_count, 0, 0xFFFF)

    @property
    def raw_data(self):
        return struct.pack("<IH", self.background_color, self.loop_count)

    def to_dict(self):
        info = super().to_dict()
        info.update({"background_color": self.background_color, "loop_count": self.loop_count})
        return info


FRAME_CHUNK_TYPES = (VP8Chunk, VP8LChunk, ALPHChunk, UnknownChunk)


@dataclass(frozen=True)
class ANMFChunk(Chunk):
    """
    One animation frame: a 16-byte frame header followed by its own
    ALPH / VP8 / VP8L (or unknown) sub-chunks.

    ``x`` and ``y`` are the wire values; the pixel offset is twice that.
    """
    TAG = ANMF
    x: int = 0
    y: int = 0
    width: int = 1
    height: int = 1
    duration: int = 0
    flags: int = 0
    sub_chunks: Tuple[Chunk, ...] = field(default=())

    def __post_init__(self):
        _check_range("x", self.x, 0, MAX_UINT24)
        _check_range("y", self.y, 0, MAX_UINT24)
        _check_range("width", self.width, 1, MAX_DIMENSION)
        _check_range("height", self.height, 1, MAX_DIMENSION)
        _check_range("duration", self.duration, 0, MAX_UINT24)
        _check_range("flags", self.flags, 0, 0xFF)
        sub_chunks = tuple(self.sub_chunks)
        for chunk in sub_chunks:
            if not isinstance(chunk, FRAME_CHUNK_TYPES):
                raise TypeError(f"{type(chunk).__name__} is not allowed inside an ANMF chunk")
        object.__setattr__(self, "sub_chunks", sub_chunks)

    @property
    def frame_header(self):
        return (_pack_uint24(self.x) + _pack_uint24(self.y)
                + _pack_uint24(self.width - 1) + _pack_uint24(self.height - 1)
                + _pack_uint24(self.duration) + bytes([self.flags]))

    @property
    def raw_data(self):
        return self.frame_header + b"".join(chunk.to_bytes() for chunk in self.sub_chunks)

    @property
    def payload_size(self):
        return ANMF_HEADER_SIZE + sum(chunk.full_size for chunk in self.sub_chunks)

    @property
    def left(self):
        return self.x * 2

    @property
    def top(self):
        return self.y * 2

    @property
    def blend(self):
        return not self.flags & ANMF_NO_BLEND

    @property
    def dispose_to_background(self):
        return bool(self.flags & ANMF_DISPOSE)

    @property
    def bitstream(self):
        for chunk in self.sub_chunks:
            if isinstance(chunk, BitstreamChunk):
                return chunk
        return None

    @property
    def alpha(self):
        for chunk in self.sub_chunks:
            if isinstance(chunk, ALPHChunk):
                return chunk
        return None

    def to_dict(self):
        info = super().to_dict()
        info.update({
            "x_offset": self.left,
            "y_offset": self.top,
            "width": self.width,
            "height": self.height,
            "duration_ms": self.duration,
            "blend": self.blend,
            "dispose": self.dispose_to_background,
            "sub_chunks": [chunk.to_dict() for chunk in self.sub_chunks],
        })
        return info


@dataclass(frozen=True)
class WebPImage(Chunk):
    """
    Root of a chunk tree: the RIFF chunk with form type WEBP.

    A simple image holds exactly one VP8 or VP8L chunk. An extended image
    holds VP8X first, then the remaining top-level chunks in file order.
    """
    TAG = RIFF
    FORM_TYPE: ClassVar[bytes] = WEBP
    chunks: Tuple[Chunk, ...] = ()

    def __post_init__(self):
        chunks = tuple(self.chunks)
        if not chunks:
            raise ValueError("a WebP image needs at least one chunk")
        for chunk in chunks:
            if not isinstance(chunk, Chunk) or isinstance(chunk, WebPImage):
                raise TypeError(f"{type(chunk).__name__} cannot be a top-level WebP chunk")
        if len(chunks) == 1 and not isinstance(chunks[0], BitstreamChunk):
            raise ValueError("a single-chunk WebP image must hold a VP8 or VP8L chunk")
        if len(chunks) > 1 and not isinstance(chunks[0], VP8XChunk):
            raise ValueError("an extended WebP image must start with a VP8X chunk")
        object.__setattr__(self, "chunks", chunks)

    @classmethod
    def simple(cls, bitstream):
        return cls((bitstream,))

    @property
    def raw_data(self):
        return self.FORM_TYPE + b"".join(chunk.to_bytes() for chunk in self.chunks)

    @property
    def payload_size(self):
        return len(self.FORM_TYPE) + sum(chunk.full_size for chunk in self.chunks)

    @property
    def is_extended(self):
        return isinstance(self.chunks[0], VP8XChunk)

    @property
    def vp8x(self):
        return self.chunks[0] if self.is_extended else None

    def find(self, tag):
        for chunk in self.chunks:
            if chunk.tag == tag:
                return chunk
        return None

    def find_all(self, tag):
        return [chunk for chunk in self.chunks if chunk.tag == tag]

    @property
    def bitstream(self):
        """The top-level VP8/VP8L chunk of a still image, or None for an animation."""
        for chunk in self.chunks:
            if isinstance(chunk, BitstreamChunk):
                return chunk
        return None

    @property
    def alpha(self):
        return self.find(ALPH)

    @property
    def animation(self):
        return self.find(ANIM)

    @property
    def frames(self):
        return [chunk for chunk in self.chunks if isinstance(chunk, ANMFChunk)]

    @property
    def metadata(self):
        found = {}
        for key, tag in (("icc", ICCP), ("exif", EXIF), ("xmp", XMP)):
            chunk = self.find(tag)
            if chunk is not None:
                found[key] = chunk.data
        return found

    def to_dict(self):
        info = super().to_dict()
        info.update({
            "form_type": self.FORM_TYPE.decode("latin-1"),
            "extended": self.is_extended,
            "chunks": [chunk.to_dict() for chunk in self.chunks],
        })
        return info
