import io
import logging
import struct

from webpmux.exceptions import SizeOverflowError
from webpmux.parsers.chunks import (
    FLAG_ALPHA, FLAG_ANIMATION, FLAG_EXIF, FLAG_ICC, FLAG_XMP, MAX_UINT32, RIFF,
    ALPHChunk, ANIMChunk, ANMFChunk, BitstreamChunk, EXIFChunk, ICCPChunk,
    VP8XChunk, WebPImage, XMPChunk,
)

logger = logging.getLogger(__name__)


def write(image, stream):
    """
    Serialize a WebPImage tree to ``stream``. Returns the number of bytes written.
    """
    riff_size = image.payload_size
    if riff_size > MAX_UINT32:
        raise SizeOverflowError(f"RIFF size {riff_size} does not fit in 32 bits", tag=RIFF)

    written = stream.write(RIFF + struct.pack("<I", riff_size) + image.FORM_TYPE)
    for chunk in image.chunks:
        written += stream.write(chunk.to_bytes())
        logger.debug("wrote %s chunk, %d bytes", chunk.tag, chunk.full_size)
    return written


def mux(image):
    """Serialize a WebPImage tree to bytes."""
    buffer = io.BytesIO()
    write(image, buffer)
    return buffer.getvalue()


def _metadata_chunks(icc, exif, xmp):
    flags = 0
    chunks = {}
    if icc is not None:
        flags |= FLAG_ICC
        chunks["icc"] = ICCPChunk(icc)
    if exif is not None:
        flags |= FLAG_EXIF
        chunks["exif"] = EXIFChunk(exif)
    if xmp is not None:
        flags |= FLAG_XMP
        chunks["xmp"] = XMPChunk(xmp)
    return flags, chunks


def assemble(bitstream_chunks, width, height, icc=None, exif=None, xmp=None):
    """
    Build a still image tree from codec output.

    Without metadata or alpha the simple form is used. Otherwise the
    extended form is laid out as VP8X, ICCP, ALPH, VP8/VP8L, EXIF, XMP
    and the VP8X flags are set from what is present.
    """
    bitstream_chunks = tuple(bitstream_chunks)
    bitstream = [chunk for chunk in bitstream_chunks if isinstance(chunk, BitstreamChunk)]
    if len(bitstream) != 1:
        raise ValueError("exactly one VP8 or VP8L chunk is required")
    alpha = [chunk for chunk in bitstream_chunks if isinstance(chunk, ALPHChunk)]

    flags, metadata = _metadata_chunks(icc, exif, xmp)
    if not metadata and not alpha:
        return WebPImage.simple(bitstream[0])
    if alpha:
        flags |= FLAG_ALPHA

    chunks = [VP8XChunk(flags=flags, width=width, height=height)]
    if "icc" in metadata:
        chunks.append(metadata["icc"])
    chunks.extend(alpha)
    chunks.extend(bitstream)
    chunks.extend(metadata[key] for key in ("exif", "xmp") if key in metadata)
    return WebPImage(tuple(chunks))


def assemble_animation(frames, width, height, background_color=0, loop_count=0,
                       icc=None, exif=None, xmp=None):
    """
    Build an animated image tree: VP8X, ICCP, ANIM, ANMF..., EXIF, XMP.
    """
    frames = tuple(frames)
    if not frames or not all(isinstance(frame, ANMFChunk) for frame in frames):
        raise ValueError("an animation needs at least one ANMF frame")

    flags, metadata = _metadata_chunks(icc, exif, xmp)
    flags |= FLAG_ANIMATION
    if any(frame.alpha is not None for frame in frames):
        flags |= FLAG_ALPHA

    chunks = [VP8XChunk(flags=flags, width=width, height=height)]
    if "icc" in metadata:
        chunks.append(metadata["icc"])
    chunks.append(ANIMChunk(background_color=background_color, loop_count=loop_count))
    chunks.extend(frames)
    chunks.extend(metadata[key] for key in ("exif", "xmp") if key in metadata)
    return WebPImage(tuple(chunks))
