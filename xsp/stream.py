"""Little-endian positional reader over an in-memory file image.

Every reader in this package walks a buffer sequentially; offsets are
never self-described by the format, so each skip and read below must
match the wire layout byte-for-byte.  Reading past the end of the
buffer raises :class:`~xsp.errors.StructuralError` instead of returning
a short result.
"""

from __future__ import annotations

import struct

from .errors import StructuralError

# Fixed-width strings are written by legacy Windows software: UTF-8 for
# plain ASCII content, CP1251 for Cyrillic thread and pattern names.
FALLBACK_ENCODING = "cp1251"


class ByteReader:
    def __init__(self, data: bytes, pos: int = 0) -> None:
        self.data = bytes(data)
        self.pos = pos

    def __repr__(self) -> str:
        return f"ByteReader(pos=0x{self.pos:04X}, size=0x{len(self.data):04X})"

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def tell(self) -> int:
        return self.pos

    def seek(self, pos: int) -> None:
        if pos < 0 or pos > len(self.data):
            raise StructuralError(
                f"seek to 0x{pos:04X} outside buffer of 0x{len(self.data):04X} bytes"
            )
        self.pos = pos

    def _require(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"negative byte count {count}")
        if self.pos + count > len(self.data):
            raise StructuralError(
                f"unexpected end of data at 0x{self.pos:04X}: "
                f"need {count} bytes, {self.remaining} left"
            )

    def skip(self, count: int) -> None:
        self._require(count)
        self.pos += count

    def read(self, count: int) -> bytes:
        self._require(count)
        chunk = self.data[self.pos : self.pos + count]
        self.pos += count
        return chunk

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        self._require(size)
        value = struct.unpack_from(fmt, self.data, self.pos)[0]
        self.pos += size
        return value

    def read_u8(self) -> int:
        return self._unpack("<B")

    def read_u16(self) -> int:
        return self._unpack("<H")

    def read_u32(self) -> int:
        return self._unpack("<I")

    def read_i32(self) -> int:
        return self._unpack("<i")

    def read_cstring(self, length: int) -> str:
        """Read a NUL-terminated string stored in a ``length + 1`` byte field.

        A field with no terminator holds garbage and decodes to ``""``.
        """
        raw = self.read(length + 1)
        end = raw.find(b"\x00")
        if end == -1:
            return ""
        text = raw[:end]
        try:
            return text.decode("utf-8")
        except UnicodeDecodeError:
            return text.decode(FALLBACK_ENCODING, errors="replace")

    def read_hex_color(self) -> str:
        """Read an RGB triple as an upper-case hex string (``"2C3225"``)."""
        return self.read(3).hex().upper()
