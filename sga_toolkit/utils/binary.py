"""Binary reading utilities for little-endian Relic data."""

import struct
from io import BytesIO
from typing import BinaryIO, Union

from ..errors import InvalidEncodingError, TruncatedInputError


class BinaryReader:
    """Helper for reading little-endian binary data (PC format)."""

    def __init__(self, data: Union[bytes, BinaryIO]):
        if isinstance(data, (bytes, bytearray)):
            self._stream = BytesIO(data)
        else:
            self._stream = data

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    def tell(self) -> int:
        return self._stream.tell()

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._stream.seek(offset, whence)

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def read_bytes(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) < size:
            raise TruncatedInputError(f"Expected {size} bytes, got {len(data)}")
        return data

    def read_u8(self) -> int:
        return struct.unpack("<B", self.read_bytes(1))[0]

    def read_u16(self) -> int:
        return struct.unpack("<H", self.read_bytes(2))[0]

    def read_u32(self) -> int:
        return struct.unpack("<I", self.read_bytes(4))[0]

    def read_u64(self) -> int:
        return struct.unpack("<Q", self.read_bytes(8))[0]

    def read_i32(self) -> int:
        return struct.unpack("<i", self.read_bytes(4))[0]

    def read_f32(self) -> float:
        return struct.unpack("<f", self.read_bytes(4))[0]

    def read_cstring(self) -> str:
        """Read a NUL-terminated UTF-8 string.

        Raises TruncatedInputError if the stream ends before the terminator.
        """
        chars = []
        while True:
            byte = self._stream.read(1)
            if not byte:
                raise TruncatedInputError("Unterminated string")
            if byte == b"\x00":
                break
            chars.append(byte)
        return _decode(b"".join(chars), "utf-8")

    def read_fixed_string(self, char_count: int, char_size: int = 1) -> str:
        """Read a fixed-width, NUL-padded string.

        The field is ``char_count * char_size`` bytes long and ends at the
        first character slot that is entirely zero. One-byte characters are
        UTF-8, two-byte characters are UTF-16LE.
        """
        if char_size == 1:
            encoding = "utf-8"
        elif char_size == 2:
            encoding = "utf-16-le"
        else:
            raise ValueError(f"Unsupported character size: {char_size}")

        data = self.read_bytes(char_count * char_size)
        zero = b"\x00" * char_size
        end = len(data)
        for i in range(0, len(data), char_size):
            if data[i : i + char_size] == zero:
                end = i
                break
        return _decode(data[:end], encoding)

    def skip(self, count: int) -> None:
        """Skip forward by count bytes."""
        self._stream.seek(count, 1)

    def remaining(self) -> int:
        """Return number of bytes remaining in stream."""
        current = self.tell()
        self._stream.seek(0, 2)  # Seek to end
        end = self.tell()
        self._stream.seek(current)
        return end - current


def _decode(data: bytes, encoding: str) -> str:
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise InvalidEncodingError(f"Invalid {encoding} string {data!r}: {e.reason}") from e
