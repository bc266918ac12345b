"""Write-side primitives for tag file data.

These mirror the individual reads in ``SectionReader``. They are enough to
lay out sections by hand; there is no encoder for a whole container.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from tagfile.codec import OFFSET_SIZE, encode_offset, encode_packed_int


class TagWriter:
    """Append-only byte buffer with named offset placeholders."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._placeholders: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def position(self) -> int:
        return len(self._buffer)

    def write_bytes(self, data: bytes) -> None:
        self._buffer += data

    def write_u32(self, value: int, big_endian: bool = False) -> None:
        self._buffer += struct.pack(">I" if big_endian else "<I", value)

    def write_i32(self, value: int, big_endian: bool = False) -> None:
        self._buffer += struct.pack(">i" if big_endian else "<i", value)

    def write_ascii(self, text: str, terminate: bool = False) -> None:
        self._buffer += text.encode("ascii")
        if terminate:
            self._buffer.append(0)

    def write_packed_int(self, value: int) -> None:
        self._buffer += encode_packed_int(value)

    def write_offset(self, value: int, marker: bool = True) -> None:
        self._buffer += encode_offset(value, marker)

    def reserve_offset(self, name: str) -> None:
        """Write a zeroed offset to be filled in later under ``name``."""
        if name in self._placeholders:
            raise ValueError(f"Placeholder '{name}' is already reserved")
        self._placeholders[name] = len(self._buffer)
        self._buffer += bytes(OFFSET_SIZE)

    def fill_offset(self, name: str, value: int, marker: bool = True) -> None:
        """Fill the placeholder reserved under ``name``."""
        if name not in self._placeholders:
            raise KeyError(f"No placeholder named '{name}'")
        pos = self._placeholders.pop(name)
        self._buffer[pos : pos + OFFSET_SIZE] = encode_offset(value, marker)

    def pad(self, align: int) -> None:
        """Zero-pad the buffer to a multiple of ``align``."""
        remainder = len(self._buffer) % align
        if remainder:
            self._buffer += bytes(align - remainder)

    def write_string_list(self, strings: Iterable[str]) -> None:
        """Write null-terminated strings followed by padding to 4 bytes."""
        for s in strings:
            self.write_ascii(s, terminate=True)
        self.pad(4)

    @contextmanager
    def section(self, tag: str) -> Iterator[TagWriter]:
        """Write a section header, then fill in its length on exit.

        The length covers the 8-byte header as well as the payload.
        """
        if len(tag) != 4:
            raise ValueError(f"Section tags are 4 characters, got '{tag}'")
        start = len(self._buffer)
        name = f"{tag}@{start}"
        self.reserve_offset(name)
        self.write_ascii(tag)
        yield self
        self.fill_offset(name, len(self._buffer) - start)

    def getvalue(self) -> bytes:
        if self._placeholders:
            raise ValueError(
                f"Unfilled placeholders: {', '.join(sorted(self._placeholders))}"
            )
        return bytes(self._buffer)
