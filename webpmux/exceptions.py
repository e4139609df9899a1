"""
Exception classes for webpmux.

Container errors describe a byte stream that is not a well-formed WebP
RIFF container. Codec errors describe picture data that the container
carried correctly but that cannot be turned into pixels (or back).
"""


class WebPError(Exception):
    """
    Base exception for all webpmux errors.

    Args:
        message: Descriptive error message
        offset: Stream position where the problem was detected, if known
        tag: Four-character tag of the chunk being processed, if known
    """
    def __init__(self, message="", offset=None, tag=None):
        self.message = message
        self.offset = offset
        self.tag = tag
        super().__init__(self._format())

    def _format(self):
        details = []
        if self.tag is not None:
            details.append(f"tag={self.tag!r}")
        if self.offset is not None:
            details.append(f"offset={self.offset}")
        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class ContainerError(WebPError):
    """Raised when the RIFF/WebP container structure is invalid."""
    pass


class FramingError(ContainerError):
    """Wrong magic tag at the RIFF or WEBP position."""
    pass


class TruncationError(ContainerError):
    """Fewer bytes are available than a declared length requires."""
    pass


class SizeOverflowError(ContainerError):
    """A declared chunk length exceeds what can be held in one buffer."""
    pass


class MalformedSizeError(ContainerError):
    """
    Raised when size bookkeeping does not add up.

    This happens when:
    - a chunk runs past the end of its enclosing scope
    - a scope (the whole file or an ANMF frame) does not end exactly at 0
    - bytes remain after the declared end of the file
    - a fixed-layout chunk declares the wrong payload size
    """
    pass


class MissingBitstreamError(ContainerError):
    """The container does not start with VP8X, VP8 or VP8L."""
    pass


class CodecError(WebPError):
    """Pixel-level encode or decode failure."""
    pass
