"""
webpmux - read and write WebP RIFF containers.

``demux`` turns a byte stream into a tree of typed chunks, ``mux`` turns
such a tree back into bytes. Pixel work is delegated to a codec bridge
(``PillowCodec``).
"""

__version__ = "0.1.0"

from webpmux.exceptions import (
    CodecError,
    ContainerError,
    FramingError,
    MalformedSizeError,
    MissingBitstreamError,
    SizeOverflowError,
    TruncationError,
    WebPError,
)
from webpmux.parsers.chunks import (
    ALPHChunk,
    ANIMChunk,
    ANMFChunk,
    BitstreamChunk,
    Chunk,
    EXIFChunk,
    ICCPChunk,
    UnknownChunk,
    VP8Chunk,
    VP8LChunk,
    VP8XChunk,
    WebPImage,
    XMPChunk,
)
from webpmux.parsers.images.webp_parser import MAX_CHUNK_SIZE, WEBPParser, demux
from webpmux.parsers.images.webp_writer import assemble, assemble_animation, mux, write
from webpmux.parsers.codecs.codec import PillowCodec, PixelLayout, decode_frames
from webpmux.parsers.codecs.image.bitstream_header import probe_bitstream

__all__ = [
    "demux",
    "mux",
    "write",
    "assemble",
    "assemble_animation",
    "WEBPParser",
    "MAX_CHUNK_SIZE",
    "Chunk",
    "WebPImage",
    "VP8XChunk",
    "ICCPChunk",
    "ANIMChunk",
    "ANMFChunk",
    "ALPHChunk",
    "BitstreamChunk",
    "VP8Chunk",
    "VP8LChunk",
    "EXIFChunk",
    "XMPChunk",
    "UnknownChunk",
    "PillowCodec",
    "PixelLayout",
    "decode_frames",
    "probe_bitstream",
    "WebPError",
    "ContainerError",
    "FramingError",
    "TruncationError",
    "SizeOverflowError",
    "MalformedSizeError",
    "MissingBitstreamError",
    "CodecError",
]
