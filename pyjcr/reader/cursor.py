"""
Sequential big-endian reader over an immutable byte buffer.
"""

import struct

from ..errors import TruncatedInput


_U2 = struct.Struct(">H")
_U4 = struct.Struct(">I")


class Cursor:
    """Reads unsigned big-endian integers and byte runs, tracking position."""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0

    @property
    def position(self) -> int:
        return self.pos

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def require(self, length: int):
        """Fail unless at least length bytes remain."""
        if length > self.remaining:
            raise TruncatedInput(length, self.remaining, self.pos)

    def require_items(self, count: int, item_size: int):
        """Fail unless count items of at least item_size bytes can follow."""
        self.require(count * item_size)

    def seek(self, pos: int):
        if not 0 <= pos <= len(self.data):
            raise TruncatedInput(pos - self.pos, self.remaining, self.pos)
        self.pos = pos

    def read_u1(self) -> int:
        self.require(1)
        val = self.data[self.pos]
        self.pos += 1
        return val

    def read_u2(self) -> int:
        self.require(2)
        val = _U2.unpack_from(self.data, self.pos)[0]
        self.pos += 2
        return val

    def read_u4(self) -> int:
        self.require(4)
        val = _U4.unpack_from(self.data, self.pos)[0]
        self.pos += 4
        return val

    def read_bytes(self, length: int) -> bytes:
        self.require(length)
        val = self.data[self.pos:self.pos + length]
        self.pos += length
        return val

    def read_u2_list(self, count: int) -> tuple[int, ...]:
        """Read count consecutive u2 values."""
        self.require_items(count, 2)
        values = struct.unpack_from(f">{count}H", self.data, self.pos)
        self.pos += 2 * count
        return values
