import io
import struct

from webpmux.exceptions import TruncationError


class ByteReader:
    """
    Sequential little-endian reader over a non-seekable byte source.

    The source is anything with a ``read(n)`` method, or a bytes-like
    object. Every read either returns exactly the requested number of
    bytes or raises TruncationError; there is no backtracking.
    """

    def __init__(self, source):
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        if not hasattr(source, "read"):
            raise TypeError(f"expected a bytes-like object or a readable stream, got {type(source).__name__}")
        self.stream = source
        self.position = 0

    def read_n_bytes(self, n):
        if n < 0:
            raise ValueError("cannot read a negative number of bytes")
        buf = bytearray()
        # Raw streams and sockets may return short reads.
        while len(buf) < n:
            data = self.stream.read(n - len(buf))
            if not data:
                raise TruncationError(
                    f"unexpected end of data: wanted {n} bytes, got {len(buf)}",
                    offset=self.position + len(buf),
                )
            buf += data
        self.position += n
        return bytes(buf)

    def read_fourcc(self):
        return self.read_n_bytes(4)

    def read_uint32(self):
        return struct.unpack("<I", self.read_n_bytes(4))[0]

    def read_int32(self):
        return struct.unpack("<i", self.read_n_bytes(4))[0]

    def read_uint24(self):
        b = self.read_n_bytes(3)
        return b[0] | (b[1] << 8) | (b[2] << 16)

    def read_uint16(self):
        return struct.unpack("<H", self.read_n_bytes(2))[0]

    def read_uint8(self):
        return self.read_n_bytes(1)[0]

    def read_int8(self):
        return struct.unpack("<b", self.read_n_bytes(1))[0]

    def read_1based(self):
        # Dimensions are stored as value - 1 in 24 bits.
        return self.read_uint24() + 1

    def skip_1_byte(self):
        """Consume the even-alignment pad byte that follows an odd-sized payload."""
        return self.read_n_bytes(1)

    def at_eof(self):
        """
        Probe the source for one more byte.

        A byte found here is consumed, so this is only meaningful once the
        caller expects nothing further.
        """
        data = self.stream.read(1)
        if data:
            self.position += len(data)
            return False
        return True
