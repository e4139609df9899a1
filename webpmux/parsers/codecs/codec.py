import io
import logging
from enum import Enum

import numpy as np
from PIL import Image

from webpmux.exceptions import CodecError
from webpmux.parsers.chunks import (
    FLAG_ALPHA, ALPHChunk, BitstreamChunk, VP8Chunk, VP8XChunk, WebPImage,
)
from webpmux.parsers.codecs.image.bitstream_header import probe_vp8
from webpmux.parsers.images.webp_parser import demux
from webpmux.parsers.images.webp_writer import mux

logger = logging.getLogger(__name__)


class PixelLayout(Enum):
    RGBA = "RGBA"
    ARGB = "ARGB"
    BGRA = "BGRA"
    RGB = "RGB"
    BGR = "BGR"

    @property
    def channels(self):
        return len(self.value)

    @property
    def has_alpha(self):
        return "A" in self.value


def _to_rgb_array(pixels, width, height, row_stride, layout):
    """View a raw pixel buffer as an (height, width, channels) array in R, G, B(, A) order."""
    bpp = layout.channels
    if width < 1 or height < 1:
        raise ValueError(f"invalid picture size {width}x{height}")
    if row_stride is None:
        row_stride = width * bpp
    if row_stride < width * bpp:
        raise ValueError(f"row stride {row_stride} is shorter than a row of {width * bpp} bytes")

    buffer = np.frombuffer(pixels, dtype=np.uint8)
    needed = row_stride * (height - 1) + width * bpp
    if buffer.size < needed:
        raise ValueError(f"pixel buffer holds {buffer.size} bytes, {needed} needed")

    rows = np.lib.stride_tricks.as_strided(buffer, shape=(height, width, bpp),
                                           strides=(row_stride, bpp, 1), writeable=False)
    order = [layout.value.index(channel) for channel in "RGBA"[:bpp]]
    return np.ascontiguousarray(rows[:, :, order])


def _from_rgba_array(rgba, layout):
    order = ["RGBA".index(channel) for channel in layout.value]
    return np.ascontiguousarray(rgba[:, :, order]).tobytes()


class PillowCodec:
    """
    Codec bridge backed by Pillow's libwebp bindings.

    Args:
        method: libwebp effort level, 0 (fast) to 6 (slow, smaller output)
        exact: keep RGB values under fully transparent pixels when encoding
    """

    def __init__(self, method=4, exact=False):
        if not 0 <= method <= 6:
            raise ValueError("method must be within [0, 6]")
        self.method = method
        self.exact = exact

    def encode(self, pixels, width, height, row_stride=None, layout=PixelLayout.RGBA, quality=None):
        """
        Compress a raw pixel buffer.

        Lossless when ``quality`` is None, giving ``(VP8LChunk,)``. Lossy
        otherwise, giving ``(VP8Chunk,)`` or ``(ALPHChunk, VP8Chunk)`` when
        the picture has transparency.
        """
        if quality is not None and not 0 <= quality <= 100:
            raise ValueError("quality must be within [0, 100]")
        array = _to_rgb_array(pixels, width, height, row_stride, PixelLayout(layout))
        image = Image.fromarray(array)

        output = io.BytesIO()
        try:
            if quality is None:
                image.save(output, format="WEBP", lossless=True, method=self.method, exact=self.exact)
            else:
                image.save(output, format="WEBP", quality=quality, method=self.method, exact=self.exact)
        except (OSError, ValueError) as exc:
            raise CodecError(f"WebP encoding failed: {exc}") from exc

        chunks = self._picture_chunks(demux(output.getvalue()))
        logger.debug("encoded %dx%d %s picture into %s", width, height, PixelLayout(layout).value,
                     [chunk.tag for chunk in chunks])
        return chunks

    @staticmethod
    def _picture_chunks(webp):
        # A single-frame image may come back wrapped as an animation frame.
        source = webp.frames[0].sub_chunks if webp.frames else webp.chunks
        return tuple(chunk for chunk in source if isinstance(chunk, (ALPHChunk, BitstreamChunk)))

    def decode(self, chunk, layout=PixelLayout.RGBA):
        """Decode a VP8 or VP8L chunk; returns (pixels, width, height)."""
        if not isinstance(chunk, BitstreamChunk):
            raise TypeError(f"expected a VP8 or VP8L chunk, got {type(chunk).__name__}")
        return self._decode_container(mux(WebPImage.simple(chunk)), PixelLayout(layout))

    def decode_with_alpha(self, alpha_chunk, vp8_chunk, layout=PixelLayout.RGBA):
        """Decode a lossy picture together with its separate alpha plane."""
        if not isinstance(alpha_chunk, ALPHChunk) or not isinstance(vp8_chunk, VP8Chunk):
            raise TypeError("expected an ALPH chunk and a VP8 chunk")
        header = probe_vp8(vp8_chunk)
        vp8x = VP8XChunk(flags=FLAG_ALPHA, width=header.width, height=header.height)
        container = mux(WebPImage((vp8x, alpha_chunk, vp8_chunk)))
        return self._decode_container(container, PixelLayout(layout))

    def decode_image(self, webp, layout=PixelLayout.RGBA):
        """Decode the still picture of a tree, or the first frame of an animation."""
        if webp.frames:
            return self.decode_frame(webp.frames[0], layout)
        return self._decode_picture(webp.bitstream, webp.alpha, layout)

    def decode_frame(self, frame, layout=PixelLayout.RGBA):
        return self._decode_picture(frame.bitstream, frame.alpha, layout)

    def _decode_picture(self, bitstream, alpha, layout):
        if bitstream is None:
            raise CodecError("no VP8 or VP8L picture to decode")
        if isinstance(bitstream, VP8Chunk) and alpha is not None:
            return self.decode_with_alpha(alpha, bitstream, layout)
        return self.decode(bitstream, layout)

    def _decode_container(self, data, layout):
        try:
            with Image.open(io.BytesIO(data), formats=["WEBP"]) as im:
                im.load()
                rgba = np.asarray(im.convert("RGBA"))
        except (OSError, ValueError, SyntaxError) as exc:
            raise CodecError(f"WebP decoding failed: {exc}") from exc
        height, width = rgba.shape[:2]
        return _from_rgba_array(rgba, layout), width, height


def decode_frames(webp, codec=None, layout=PixelLayout.RGBA):
    """
    Decode every ANMF frame of an animated tree. Frame pixels are not
    composited onto the canvas.
    """
    codec = codec or PillowCodec()
    decoded = []
    for index, frame in enumerate(webp.frames):
        pixels, width, height = codec.decode_frame(frame, layout)
        decoded.append({
            "frame_index": index,
            "x_offset": frame.left,
            "y_offset": frame.top,
            "width": width,
            "height": height,
            "raw_data": pixels,
        })
    return decoded
