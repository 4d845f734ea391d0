"""
Implements the byte cursor the container codecs read and write through.
Every multi-byte primitive uses the byte order the cursor was created with;
there is no host-order default.
"""

import struct
from typing import Optional

from ..common.errors import TruncatedInput

_BYTE_ORDER_PREFIX = {"big": ">", "little": "<"}


class BinaryCursor:
    """
    Owns a byte buffer and a position into it.

    Reads are bounds-checked against the buffer end and raise TruncatedInput
    instead of returning short data. Writes always append.
    """

    def __init__(self, byteorder: str, data: Optional[bytes] = None):
        """
        Initializes the cursor.

        Args:
            byteorder: "big" or "little"; applies to every u16/u32 and
                       length-prefix operation on this cursor.
            data: Bytes to initialize the cursor for reading.
                  If None, initializes an empty buffer for writing.
        """
        if byteorder not in _BYTE_ORDER_PREFIX:
            raise ValueError(f"byteorder must be 'big' or 'little', got {byteorder!r}")
        self.byteorder = byteorder
        self._prefix = _BYTE_ORDER_PREFIX[byteorder]
        self.buffer: bytearray = bytearray(data) if data is not None else bytearray()
        self.position: int = 0

    def remaining(self) -> int:
        return len(self.buffer) - self.position

    def is_exhausted(self) -> bool:
        return self.remaining() == 0

    def _check(self, n: int, what: str):
        if n < 0:
            raise ValueError(f"Byte count must be non-negative, got {n}")
        if self.position + n > len(self.buffer):
            raise TruncatedInput(n, self.remaining(), what)

    def peek_exact(self, n: int, what: str = "") -> bytes:
        """Returns the next n bytes without advancing."""
        self._check(n, what)
        return bytes(self.buffer[self.position : self.position + n])

    def read_exact(self, n: int, what: str = "") -> bytes:
        data = self.peek_exact(n, what)
        self.position += n
        return data

    def skip(self, n: int, what: str = ""):
        self._check(n, what)
        self.position += n

    def write_bytes(self, data: bytes):
        self.buffer.extend(data)
        self.position = len(self.buffer)

    def _read_struct(self, code: str, what: str) -> int:
        fmt = self._prefix + code
        (value,) = struct.unpack(fmt, self.read_exact(struct.calcsize(fmt), what))
        return value

    def _write_struct(self, code: str, value: int):
        try:
            self.write_bytes(struct.pack(self._prefix + code, value))
        except struct.error as e:
            raise ValueError(f"Value {value} does not fit in format {code!r}") from e

    def read_u8(self, what: str = "") -> int:
        return self._read_struct("B", what)

    def read_u16(self, what: str = "") -> int:
        return self._read_struct("H", what)

    def read_u32(self, what: str = "") -> int:
        return self._read_struct("I", what)

    def write_u8(self, value: int):
        self._write_struct("B", value)

    def write_u16(self, value: int):
        self._write_struct("H", value)

    def write_u32(self, value: int):
        self._write_struct("I", value)

    def read_length_prefixed_string(self, what: str = "") -> bytes:
        """Reads a u32 length followed by that many raw bytes."""
        length = self.read_u32(what)
        return self.read_exact(length, what)

    def write_length_prefixed_string(self, data: bytes):
        self.write_u32(len(data))
        self.write_bytes(data)

    def get_bytes(self) -> bytes:
        """Returns the current buffer content as bytes."""
        return bytes(self.buffer)
