"""Cursor over a single section buffer."""

from __future__ import annotations

import struct

from tagfile.codec import decode_offset, decode_packed_int
from tagfile.errors import CorruptIndexError, FormatMismatchError


class SectionReader:
    """Sequential reader over the payload of one section.

    Byte order is chosen per read: framing values and packed integers are
    always big-endian, item and patch records are little-endian.
    """

    def __init__(self, data: bytes, name: str = "") -> None:
        self.data = bytes(data)
        self.name = name
        self.pos = 0

    def __len__(self) -> int:
        return len(self.data)

    @property
    def remaining(self) -> int:
        """Return the number of unread bytes."""
        return len(self.data) - self.pos

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def error(self, message: str, index: int | None = None, offset: int | None = None) -> CorruptIndexError:
        """Build a CorruptIndexError pointing at this section."""
        return CorruptIndexError(
            message,
            section=self.name or None,
            offset=self.pos if offset is None else offset,
            index=index,
        )

    def _take(self, size: int) -> int:
        if size > self.remaining:
            raise self.error(f"Need {size} bytes but only {self.remaining} remain")
        start = self.pos
        self.pos += size
        return start

    def read_bytes(self, size: int) -> bytes:
        start = self._take(size)
        return self.data[start : start + size]

    def read_u8(self) -> int:
        start = self._take(1)
        return self.data[start]

    def read_u32(self, big_endian: bool = False) -> int:
        start = self._take(4)
        return struct.unpack_from(">I" if big_endian else "<I", self.data, start)[0]

    def read_i32(self, big_endian: bool = False) -> int:
        start = self._take(4)
        return struct.unpack_from(">i" if big_endian else "<i", self.data, start)[0]

    def read_ascii(self, size: int) -> str:
        start = self.pos
        raw = self.read_bytes(size)
        try:
            return raw.decode("ascii")
        except UnicodeDecodeError as e:
            raise FormatMismatchError(
                f"Expected ASCII text, got {raw!r}",
                section=self.name or None,
                offset=start + e.start,
            ) from e

    def read_cstring(self) -> str:
        """Read a null-terminated ASCII string.

        An unterminated string running to the end of the buffer is accepted.
        """
        end = self.data.find(b"\x00", self.pos)
        if end < 0:
            end = len(self.data)
        text = self.read_ascii(end - self.pos)
        if not self.at_end:
            self.pos += 1
        return text

    def read_packed_int(self) -> int:
        start = self.pos
        try:
            value, self.pos = decode_packed_int(self.data, self.pos)
        except CorruptIndexError as e:
            raise self.error(e.message, offset=start) from e
        return value

    def read_offset(self) -> int:
        start = self.pos
        try:
            value, self.pos = decode_offset(self.data, self.pos)
        except CorruptIndexError as e:
            raise self.error(e.message, offset=start) from e
        return value

    def read_string_list(self) -> list[str]:
        """Read null-terminated strings until the buffer is exhausted.

        Empty entries are skipped; they come from the 4-byte padding at the
        end of string table sections.
        """
        strings = []
        while not self.at_end:
            text = self.read_cstring()
            if text:
                strings.append(text)
        return strings
