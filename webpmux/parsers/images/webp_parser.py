import logging

from webpmux.exceptions import (
    FramingError,
    MalformedSizeError,
    MissingBitstreamError,
    SizeOverflowError,
)
from webpmux.parsers.byte_reader import ByteReader
from webpmux.parsers.chunks import (
    ALPH, ANIM, ANIM_PAYLOAD_SIZE, ANMF, ANMF_HEADER_SIZE, CHUNK_HEADER_SIZE,
    EXIF, ICCP, RIFF, VP8, VP8L, VP8X, VP8X_PAYLOAD_SIZE, WEBP, XMP,
    ALPHChunk, ANIMChunk, ANMFChunk, EXIFChunk, ICCPChunk, UnknownChunk,
    VP8Chunk, VP8LChunk, VP8XChunk, WebPImage, XMPChunk,
)

logger = logging.getLogger(__name__)

# Largest payload materialized as a single buffer.
MAX_CHUNK_SIZE = 2 ** 31 - 1


class ChunkBudget:
    """
    Byte count still owed to one scope (the whole file, or one ANMF frame).

    Every chunk header read is charged here together with its payload and,
    for odd lengths, its pad byte.
    """

    def __init__(self, scope, remaining):
        self.scope = scope
        self.remaining = remaining

    def charge(self, length):
        """Charge one chunk (header + payload + pad); return True when a pad byte is owed."""
        pad = bool(length & 1)
        self.remaining -= CHUNK_HEADER_SIZE + length + pad
        return pad

    def has_more(self):
        return self.remaining > 0

    def check_not_overdrawn(self, reader, tag=None):
        if self.remaining < 0:
            raise MalformedSizeError(
                f"chunk runs {-self.remaining} bytes past the end of the {self.scope}",
                offset=reader.position, tag=tag,
            )

    def check_closed(self, reader):
        if self.remaining != 0:
            raise MalformedSizeError(
                f"{self.scope} does not end on a chunk boundary ({self.remaining} bytes left)",
                offset=reader.position,
            )


def _data_chunk(chunk_cls):
    def read(parser, tag, length):
        return chunk_cls(parser.reader.read_n_bytes(length))
    return read


def _read_unknown(parser, tag, length):
    return UnknownChunk(tag, parser.reader.read_n_bytes(length))


def _read_vp8x(parser, tag, length):
    parser.expect_size(tag, length, VP8X_PAYLOAD_SIZE)
    reader = parser.reader
    return VP8XChunk(flags=reader.read_uint32(), width=reader.read_1based(), height=reader.read_1based())


def _read_anim(parser, tag, length):
    parser.expect_size(tag, length, ANIM_PAYLOAD_SIZE)
    reader = parser.reader
    return ANIMChunk(background_color=reader.read_uint32(), loop_count=reader.read_uint16())


def _read_anmf(parser, tag, length):
    """
    Parse the 16-byte frame header, then walk the nested sub-chunks
    against a budget of their own.
    """
    if length < ANMF_HEADER_SIZE:
        raise MalformedSizeError(
            f"ANMF payload must hold a {ANMF_HEADER_SIZE}-byte frame header, declared {length}",
            offset=parser.reader.position, tag=tag,
        )
    reader = parser.reader
    x = reader.read_uint24()
    y = reader.read_uint24()
    width = reader.read_1based()
    height = reader.read_1based()
    duration = reader.read_uint24()
    flags = reader.read_uint8()

    budget = ChunkBudget("ANMF frame", length - ANMF_HEADER_SIZE)
    sub_chunks = []
    while budget.has_more():
        sub_chunks.append(parser.read_chunk(budget, FRAME_CHUNK_READERS))

    return ANMFChunk(x=x, y=y, width=width, height=height, duration=duration,
                     flags=flags, sub_chunks=sub_chunks)


CHUNK_READERS = {
    VP8X: _read_vp8x,
    ICCP: _data_chunk(ICCPChunk),
    ANIM: _read_anim,
    ANMF: _read_anmf,
    ALPH: _data_chunk(ALPHChunk),
    VP8: _data_chunk(VP8Chunk),
    VP8L: _data_chunk(VP8LChunk),
    EXIF: _data_chunk(EXIFChunk),
    XMP: _data_chunk(XMPChunk),
}

FRAME_CHUNK_READERS = {tag: CHUNK_READERS[tag] for tag in (ALPH, VP8, VP8L)}

SIMPLE_CHUNK_READERS = {tag: CHUNK_READERS[tag] for tag in (VP8, VP8L)}


class WEBPParser:
    """
    Demultiplexer for one WebP byte stream.

    ``parse()`` walks the stream once, front to back, and returns the
    WebPImage tree. Any structural problem raises a ContainerError; no
    partial tree is ever returned.
    """

    def __init__(self, source, max_chunk_size=MAX_CHUNK_SIZE):
        self.reader = source if isinstance(source, ByteReader) else ByteReader(source)
        self.max_chunk_size = max_chunk_size

    def parse(self):
        # 1) RIFF header and form type
        file_budget, file_pad = self._parse_riff_header()

        # 2) The first chunk decides between the simple and the extended form
        tag, length = self.read_chunk_header()
        if tag == VP8X:
            vp8x = self._read_payload(file_budget, tag, length, CHUNK_READERS)
            chunks = [vp8x]
            # 3) Extended form: everything up to the declared end of file
            while file_budget.has_more():
                chunks.append(self.read_chunk(file_budget, CHUNK_READERS))
        elif tag in SIMPLE_CHUNK_READERS:
            chunks = [self._read_payload(file_budget, tag, length, SIMPLE_CHUNK_READERS)]
        else:
            raise MissingBitstreamError("no VP8X, VP8 or VP8L chunk found",
                                        offset=self.reader.position - CHUNK_HEADER_SIZE, tag=tag)

        # 4) Close the file scope
        file_budget.check_closed(self.reader)
        if file_pad:
            self.reader.skip_1_byte()
        if not self.reader.at_eof():
            raise MalformedSizeError("data found after the declared end of the RIFF chunk",
                                     offset=self.reader.position - 1)

        if len(chunks) == 1 and tag == VP8X:
            raise MissingBitstreamError("extended WebP image has no chunks after VP8X",
                                        offset=self.reader.position, tag=VP8X)
        return WebPImage(tuple(chunks))

    def _parse_riff_header(self):
        """
        Parse RIFF header:
        - 'RIFF' (4 bytes)
        - file_size (4 bytes, little-endian), counting everything after itself
        - 'WEBP' (4 bytes)
        """
        riff_tag = self.reader.read_fourcc()
        if riff_tag != RIFF:
            raise FramingError("not a RIFF file: illegal magic number", offset=0, tag=riff_tag)
        file_size = self.reader.read_uint32()
        form_type = self.reader.read_fourcc()
        if form_type != WEBP:
            raise FramingError("RIFF form type is not WEBP", offset=8, tag=form_type)

        file_pad = bool(file_size & 1)
        logger.debug("RIFF size %d%s", file_size, " (odd, padded)" if file_pad else "")
        # The pad of an odd-sized file sits after the last chunk.
        return ChunkBudget("RIFF file", file_size - file_pad - len(WEBP)), file_pad

    def read_chunk_header(self):
        tag = self.reader.read_fourcc()
        length = self.reader.read_uint32()
        if length > self.max_chunk_size:
            raise SizeOverflowError(
                f"chunk length {length} exceeds the limit of {self.max_chunk_size} bytes",
                offset=self.reader.position - 4, tag=tag,
            )
        return tag, length

    def read_chunk(self, budget, readers):
        tag, length = self.read_chunk_header()
        return self._read_payload(budget, tag, length, readers)

    def _read_payload(self, budget, tag, length, readers):
        start = self.reader.position
        pad = budget.charge(length)
        budget.check_not_overdrawn(self.reader, tag)
        read = readers.get(tag, _read_unknown)
        chunk = read(self, tag, length)
        if pad:
            self.reader.skip_1_byte()
        logger.debug("%s chunk at offset %d: %d bytes%s", tag, start - CHUNK_HEADER_SIZE,
                     length, " + pad" if pad else "")
        return chunk

    def expect_size(self, tag, length, expected):
        if length != expected:
            raise MalformedSizeError(
                f"{tag.decode('latin-1')} payload must be {expected} bytes, declared {length}",
                offset=self.reader.position, tag=tag,
            )


def demux(source, max_chunk_size=MAX_CHUNK_SIZE):
    """
    Read a complete WebP container from ``source`` (bytes or a readable
    stream) and return its WebPImage chunk tree.
    """
    return WEBPParser(source, max_chunk_size=max_chunk_size).parse()
